# -*- coding: utf-8 -*-
"""
systemd 服务管理。

文件功能:
    - 写入服务单元文件（完全覆盖旧文件），重新加载 systemd，启用并重启服务。
    - 查询服务状态，供结果展示使用。

公开接口:
    - 类 ServiceManager
        - 方法: install(unit) -> Path
        - 方法: status(service_name) -> str
        - 方法: unit_exists(service_name) -> bool
"""

from __future__ import annotations

import subprocess
from pathlib import Path

from loguru import logger

from ..asset_client.utils import write_text
from ..config import DEFAULT_UNIT_DIR
from ..errors import ServiceInstallFailed
from ..workers.schemas import ServiceUnit
from .paths import get_unit_path


class ServiceManager:
    """通过 systemctl 管理单个服务"""

    def __init__(self, unit_dir: Path = Path(DEFAULT_UNIT_DIR), systemctl: str = "systemctl"):
        self.unit_dir = Path(unit_dir)
        self.systemctl = systemctl

    def _run(self, *args: str) -> subprocess.CompletedProcess:
        return subprocess.run(
            [self.systemctl, *args],
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            check=False,
        )

    def _checked(self, *args: str) -> None:
        cmd = " ".join([self.systemctl, *args])
        try:
            result = self._run(*args)
        except OSError as e:
            raise ServiceInstallFailed(f"执行 {cmd} 失败: {e}") from e
        if result.returncode != 0:
            detail = (result.stderr or "").strip() or (result.stdout or "").strip()
            raise ServiceInstallFailed(f"{cmd} 返回 {result.returncode}: {detail}")

    def unit_exists(self, service_name: str) -> bool:
        return get_unit_path(self.unit_dir, service_name).exists()

    def install(self, unit: ServiceUnit) -> Path:
        """
        安装并 (重新) 启动服务。

        :raises ServiceInstallFailed: 写入单元文件或任一 systemctl 命令失败
        """
        unit_path = get_unit_path(self.unit_dir, unit.name)
        logger.info(f"安装服务文件: {unit_path} (来源: {unit.source})")
        try:
            write_text(unit.render(), str(unit_path))
        except OSError as e:
            raise ServiceInstallFailed(f"写入服务文件失败: {e}") from e

        logger.info("重新加载systemd配置...")
        self._checked("daemon-reload")
        logger.info(f"启用服务 {unit.file_name}...")
        self._checked("enable", unit.file_name)
        logger.info(f"启动服务 {unit.file_name}...")
        self._checked("restart", unit.file_name)
        return unit_path

    def status(self, service_name: str) -> str:
        try:
            result = self._run("status", "--no-pager", f"{service_name}.service")
        except OSError as e:
            logger.warning(f"无法查询服务状态: {e}")
            return ""
        return (result.stdout or "").rstrip()
