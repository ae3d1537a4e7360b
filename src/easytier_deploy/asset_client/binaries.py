# -*- coding: utf-8 -*-
"""
下载 EasyTier 发布包（带重试）
"""
import os
import time
from pathlib import Path
from typing import Callable, Optional

import requests
from requests.exceptions import RequestException
from loguru import logger

from ..errors import FetchExhausted

CHUNK_SIZE = 64 * 1024

ProgressCallback = Callable[[str], None]


class EmptyDownload(Exception):
    """服务端返回了 0 字节内容"""


def _remove_partial(dest: Path) -> None:
    if dest.exists():
        dest.unlink()


def _content_length(resp) -> int:
    """Content-Length 缺失或非法时返回 0（大小未知）"""
    try:
        return max(int(resp.headers.get("Content-Length") or 0), 0)
    except (TypeError, ValueError):
        return 0


def _stream_to_file(url: str, dest: Path, timeout: float, progress: ProgressCallback) -> int:
    """执行一次 GET 并写入文件，返回写入字节数"""
    resp = requests.get(url, stream=True, timeout=timeout)
    try:
        resp.raise_for_status()
        total = _content_length(resp)
        written = 0
        next_report = 10
        with open(dest, "wb") as f:
            for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
                if not chunk:
                    continue
                f.write(chunk)
                written += len(chunk)
                if total:
                    percent = written * 100 // total
                    if percent >= next_report:
                        progress(f"已下载 {percent}% ({written}/{total} 字节)")
                        next_report = (percent // 10 + 1) * 10
    finally:
        resp.close()

    if written == 0:
        raise EmptyDownload("下载内容为空")
    return written


def download_archive(
    url: str,
    dest: Path,
    max_retries: int = 3,
    backoff: float = 3.0,
    timeout: float = 180,
    progress: Optional[ProgressCallback] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> Path:
    """
    下载发布包到 dest。

    非 2xx、网络错误或 0 字节内容均视为一次失败；共尝试 max_retries 次，
    两次尝试之间固定等待 backoff 秒。

    :param url: 下载链接
    :param dest: 目标文件路径（已存在的旧文件会先被删除）
    :param max_retries: 最大尝试次数
    :param backoff: 重试间隔（秒）
    :param timeout: 单次请求超时（秒）
    :param progress: 进度回调
    :param sleep: 等待函数，测试时可替换
    :return: dest
    :raises FetchExhausted: 重试次数耗尽
    """
    progress = progress or (lambda _msg: None)
    dest = Path(dest)
    os.makedirs(dest.parent, exist_ok=True)

    if dest.exists():
        logger.warning(f"删除旧的下载文件: {dest}")
        _remove_partial(dest)

    last_error = ""
    for attempt in range(1, max_retries + 1):
        logger.info(f"尝试下载 (第 {attempt} 次): {url}")
        try:
            size = _stream_to_file(url, dest, timeout, progress)
            logger.info(f"下载完成: {dest.name} ({size} 字节)")
            return dest
        except (RequestException, EmptyDownload, OSError) as e:
            last_error = str(e)
            _remove_partial(dest)
            if attempt < max_retries:
                logger.warning(f"下载失败: {e}，将在 {backoff:g} 秒后重试...")
                sleep(backoff)
            else:
                logger.error(f"下载失败: {e}")

    raise FetchExhausted(url, max_retries, last_error)
