# -*- coding: utf-8 -*-

"""
测试发布包下载（download_archive）：
 - 成功下载与进度回调
 - 失败重试次数与重试间隔
 - 非 2xx、0 字节内容视为失败
 - Content-Length 非法时按大小未知处理
 - 旧文件在下载前被删除

仅测试公开接口，通过 monkeypatch/stub 隔离网络调用与等待。
"""

from types import SimpleNamespace

import pytest
import requests

from easytier_deploy.asset_client.binaries import download_archive
from easytier_deploy.errors import FetchExhausted

URL = "http://cdn.example/easytier-linux-x86_64-v2.3.0.zip"


class FakeStreamResponse:
    def __init__(self, *, status=200, content=b"", headers=None):
        self.status_code = status
        self._content = content
        self.headers = headers if headers is not None else {"Content-Length": str(len(content))}
        self.closed = False

    def raise_for_status(self):
        if not (200 <= self.status_code < 300):
            raise requests.HTTPError(f"HTTP {self.status_code}")

    def iter_content(self, chunk_size=1):
        for i in range(0, len(self._content), chunk_size):
            yield self._content[i:i + chunk_size]

    def close(self):
        self.closed = True


def patch_get(monkeypatch, responses):
    """按顺序返回预置响应；元素为异常实例时抛出"""
    calls = []
    queue = list(responses)

    def fake_get(url, **kwargs):
        calls.append((url, kwargs))
        item = queue.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    monkeypatch.setattr("easytier_deploy.asset_client.binaries.requests", SimpleNamespace(get=fake_get))
    return calls


def test_download_success_writes_file_and_reports_progress(monkeypatch, tmp_path):
    payload = b"PK" + b"x" * 200_000
    calls = patch_get(monkeypatch, [FakeStreamResponse(content=payload)])
    messages = []
    sleeps = []

    dest = tmp_path / "easytier.zip"
    result = download_archive(URL, dest, progress=messages.append, sleep=sleeps.append)

    assert result == dest
    assert dest.read_bytes() == payload
    assert len(calls) == 1
    assert calls[0][1]["stream"] is True
    assert sleeps == []
    assert messages and "100%" in messages[-1]


def test_retries_exactly_max_retries_with_fixed_backoff(monkeypatch, tmp_path):
    calls = patch_get(monkeypatch, [requests.ConnectionError("reset")] * 3)
    sleeps = []

    with pytest.raises(FetchExhausted) as exc:
        download_archive(URL, tmp_path / "a.zip", max_retries=3, backoff=3.0, sleep=sleeps.append)

    assert len(calls) == 3
    assert sleeps == [3.0, 3.0]
    assert sum(sleeps) == 6.0
    assert exc.value.attempts == 3
    assert not (tmp_path / "a.zip").exists()


def test_non_2xx_and_empty_body_count_as_failures(monkeypatch, tmp_path):
    calls = patch_get(monkeypatch, [
        FakeStreamResponse(status=404, content=b"not found"),
        FakeStreamResponse(content=b"", headers={}),
        FakeStreamResponse(content=b"zip-bytes"),
    ])
    sleeps = []

    dest = download_archive(URL, tmp_path / "a.zip", max_retries=3, backoff=0.5, sleep=sleeps.append)

    assert len(calls) == 3
    assert sleeps == [0.5, 0.5]
    assert dest.read_bytes() == b"zip-bytes"


def test_single_attempt_does_not_sleep(monkeypatch, tmp_path):
    patch_get(monkeypatch, [FakeStreamResponse(status=500)])
    sleeps = []
    with pytest.raises(FetchExhausted):
        download_archive(URL, tmp_path / "a.zip", max_retries=1, sleep=sleeps.append)
    assert sleeps == []


def test_stale_file_is_removed_before_download(monkeypatch, tmp_path):
    dest = tmp_path / "a.zip"
    dest.write_bytes(b"stale partial content")
    patch_get(monkeypatch, [requests.Timeout("slow")])

    with pytest.raises(FetchExhausted):
        download_archive(URL, dest, max_retries=1, sleep=lambda s: None)
    assert not dest.exists()


def test_malformed_content_length_is_treated_as_unknown(monkeypatch, tmp_path):
    payload = b"PK" + b"x" * 1000
    patch_get(monkeypatch, [FakeStreamResponse(content=payload, headers={"Content-Length": "abc"})])
    messages = []

    dest = download_archive(URL, tmp_path / "easytier.zip", progress=messages.append, sleep=lambda s: None)

    assert dest.read_bytes() == payload
    assert not any("%" in m for m in messages)
