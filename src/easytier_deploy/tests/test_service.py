# -*- coding: utf-8 -*-
"""
针对服务相关模块的测试：
- ServiceManager：写入单元文件并依次执行 daemon-reload / enable / restart
- systemctl 失败时抛出 ServiceInstallFailed
- download_service_unit：下载失败时回退到默认模板
- 自定义安装目录下使用远程单元文件时给出警告
- 预检：root 权限与外部工具安装
"""

import subprocess
from pathlib import Path
from types import SimpleNamespace

import pytest
import requests
from loguru import logger

from easytier_deploy.asset_client.service_unit import default_service_unit, download_service_unit
from easytier_deploy.errors import DependencyMissing, PrivilegeError, ServiceInstallFailed
from easytier_deploy.service import preflight
from easytier_deploy.service.systemd import ServiceManager

REMOTE_UNIT = "[Unit]\nDescription=Remote\n\n[Service]\nExecStart=/root/easytier/easytier-core -c x\n"


class FakeResponse:
    def __init__(self, *, status=200, headers=None, text=""):
        self.status_code = status
        self.headers = headers or {}
        self._text = text

    def raise_for_status(self):
        if not (200 <= self.status_code < 300):
            raise requests.HTTPError(f"HTTP {self.status_code}")

    @property
    def text(self):
        return self._text

    def json(self):
        raise ValueError("not json")


def fake_systemctl(monkeypatch, fail_on=None):
    commands = []

    def fake_run(cmd, **kwargs):
        commands.append(cmd[1:])
        code = 1 if fail_on and fail_on in cmd else 0
        return subprocess.CompletedProcess(cmd, code, stdout="ok\n", stderr="boom" if code else "")

    monkeypatch.setattr("easytier_deploy.service.systemd.subprocess.run", fake_run)
    return commands


def test_install_writes_unit_and_restarts(monkeypatch, tmp_path):
    commands = fake_systemctl(monkeypatch)
    unit = default_service_unit("easytier", Path("/root/easytier"))

    path = ServiceManager(unit_dir=tmp_path).install(unit)

    assert path == tmp_path / "easytier.service"
    text = path.read_text()
    assert "ExecStart=/root/easytier/easytier-core" in text
    assert "WorkingDirectory=/root/easytier" in text
    assert "RestartSec=5s" in text
    assert commands == [
        ["daemon-reload"],
        ["enable", "easytier.service"],
        ["restart", "easytier.service"],
    ]


def test_install_overwrites_previous_unit(monkeypatch, tmp_path):
    fake_systemctl(monkeypatch)
    (tmp_path / "easytier.service").write_text("old unit content that is much longer than needed\n" * 10)
    unit = default_service_unit("easytier", Path("/srv/et"))

    ServiceManager(unit_dir=tmp_path).install(unit)
    assert (tmp_path / "easytier.service").read_text() == unit.render()


def test_systemctl_failure_raises(monkeypatch, tmp_path):
    commands = fake_systemctl(monkeypatch, fail_on="enable")
    unit = default_service_unit("easytier", Path("/root/easytier"))

    with pytest.raises(ServiceInstallFailed) as exc:
        ServiceManager(unit_dir=tmp_path).install(unit)
    assert "boom" in str(exc.value)
    assert ["restart", "easytier.service"] not in commands


def test_missing_systemctl_raises(monkeypatch, tmp_path):
    def fake_run(cmd, **kwargs):
        raise FileNotFoundError(cmd[0])

    monkeypatch.setattr("easytier_deploy.service.systemd.subprocess.run", fake_run)
    with pytest.raises(ServiceInstallFailed):
        ServiceManager(unit_dir=tmp_path).install(default_service_unit("easytier", Path("/x")))


def test_download_service_unit_uses_remote_text(monkeypatch):
    def fake_get(url, timeout=0):
        return FakeResponse(headers={"Content-Type": "text/plain"}, text=REMOTE_UNIT.replace("\n", "\r\n"))

    monkeypatch.setattr("easytier_deploy.asset_client.service_unit.requests", SimpleNamespace(get=fake_get))
    unit = download_service_unit("http://raw.example/easytier.service", "easytier", Path("/root/easytier"))

    assert unit.source == "remote"
    assert unit.render() == REMOTE_UNIT


@pytest.mark.parametrize("install_dir, warned", [
    ("/root/easytier", False),
    ("/opt/easytier", True),
])
def test_remote_unit_with_custom_install_dir_warns(monkeypatch, install_dir, warned):
    def fake_get(url, timeout=0):
        return FakeResponse(headers={"Content-Type": "text/plain"}, text=REMOTE_UNIT)

    monkeypatch.setattr("easytier_deploy.asset_client.service_unit.requests", SimpleNamespace(get=fake_get))
    warnings = []
    sink_id = logger.add(warnings.append, level="WARNING", format="{message}")
    try:
        unit = download_service_unit("http://raw.example/easytier.service", "easytier", Path(install_dir))
    finally:
        logger.remove(sink_id)

    assert unit.source == "remote"
    assert any(install_dir in str(m) for m in warnings) is warned


@pytest.mark.parametrize("response", [
    requests.ConnectionError("offline"),
    FakeResponse(status=404, text="not found"),
    FakeResponse(text="<html>rate limited</html>"),
])
def test_download_service_unit_falls_back_to_template(monkeypatch, response):
    def fake_get(url, timeout=0):
        if isinstance(response, Exception):
            raise response
        return response

    monkeypatch.setattr("easytier_deploy.asset_client.service_unit.requests", SimpleNamespace(get=fake_get))
    unit = download_service_unit("http://raw.example/easytier.service", "easytier", Path("/root/easytier"))

    assert unit.source == "template"
    assert "ExecStart=/root/easytier/easytier-core" in unit.render()


def test_check_privileges(monkeypatch):
    monkeypatch.setattr(preflight.os, "geteuid", lambda: 0)
    preflight.check_privileges()

    monkeypatch.setattr(preflight.os, "geteuid", lambda: 1000)
    with pytest.raises(PrivilegeError):
        preflight.check_privileges()


def test_ensure_tools_installs_missing_with_package_manager(monkeypatch):
    available = {"apt-get", "tar"}
    commands = []

    def fake_which(name):
        return f"/usr/bin/{name}" if name in available else None

    def fake_run(cmd, **kwargs):
        commands.append(cmd)
        if cmd[:2] == ["apt-get", "install"]:
            available.add(cmd[-1])
        return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")

    monkeypatch.setattr(preflight.shutil, "which", fake_which)
    monkeypatch.setattr(preflight.subprocess, "run", fake_run)

    assert preflight.ensure_tools(["tar", "unzip"]) == ["unzip"]
    assert commands == [["apt-get", "update", "-qq"], ["apt-get", "install", "-y", "unzip"]]


def test_ensure_tools_without_package_manager(monkeypatch):
    monkeypatch.setattr(preflight.shutil, "which", lambda name: None)
    with pytest.raises(DependencyMissing):
        preflight.ensure_tools(["unzip"])


def test_ensure_tools_install_failure(monkeypatch):
    monkeypatch.setattr(preflight.shutil, "which", lambda name: "/usr/bin/yum" if name == "yum" else None)

    def fake_run(cmd, **kwargs):
        raise subprocess.CalledProcessError(1, cmd, stderr="No package unzip available")

    monkeypatch.setattr(preflight.subprocess, "run", fake_run)
    with pytest.raises(DependencyMissing) as exc:
        preflight.ensure_tools(["unzip"])
    assert "No package" in str(exc.value)
