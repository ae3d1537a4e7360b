# -*- coding: utf-8 -*-
"""
安装前检查。

文件功能:
    - 检查当前进程是否具备 root 权限（不自动切换用户，由操作者使用 sudo 重新执行）。
    - 检查所需外部工具，缺失时通过系统包管理器安装。

公开接口:
    - check_privileges() -> None
    - detect_package_manager() -> str | None
    - ensure_tools(tools) -> list[str]
"""

from __future__ import annotations

import os
import shutil
import subprocess
from typing import Iterable, Optional

from loguru import logger

from ..errors import DependencyMissing, PrivilegeError

# 包管理器 -> (刷新索引命令, 安装命令前缀)
PACKAGE_MANAGERS: dict[str, tuple[Optional[list[str]], list[str]]] = {
    "apt-get": (["apt-get", "update", "-qq"], ["apt-get", "install", "-y"]),
    "dnf": (None, ["dnf", "install", "-y"]),
    "yum": (None, ["yum", "install", "-y"]),
    "apk": (["apk", "update"], ["apk", "add"]),
}

# 命令名 -> 软件包名
TOOL_PACKAGES = {
    "systemctl": "systemd",
    "unzip": "unzip",
    "tar": "tar",
    "curl": "curl",
    "wget": "wget",
}


def check_privileges() -> None:
    logger.info("检查系统权限")
    if os.geteuid() != 0:
        raise PrivilegeError("此程序需要 root 权限运行，请使用 sudo 或以 root 用户身份重新执行")
    logger.info("权限检查通过")


def detect_package_manager() -> Optional[str]:
    for name in PACKAGE_MANAGERS:
        if shutil.which(name):
            return name
    return None


def _install_package(manager: str, package: str) -> None:
    refresh, install = PACKAGE_MANAGERS[manager]
    try:
        if refresh is not None:
            subprocess.run(refresh, check=True, stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True)
        subprocess.run([*install, package], check=True, stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True)
    except subprocess.CalledProcessError as e:
        raise DependencyMissing(f"安装 {package} 失败: {(e.stderr or '').strip()}") from e
    except OSError as e:
        raise DependencyMissing(f"调用 {manager} 失败: {e}") from e


def ensure_tools(tools: Iterable[str]) -> list[str]:
    """
    确保外部工具可用。

    :param tools: 命令名列表
    :return: 本次新安装的命令名
    :raises DependencyMissing: 工具缺失且无法安装
    """
    missing = [t for t in dict.fromkeys(tools) if shutil.which(t) is None]
    if not missing:
        return []

    manager = detect_package_manager()
    if manager is None:
        raise DependencyMissing(f"缺少工具 {', '.join(missing)}，且未找到可用的包管理器")

    installed = []
    for tool in missing:
        package = TOOL_PACKAGES.get(tool, tool)
        logger.info(f"安装 {tool} 工具 (包: {package}, 包管理器: {manager})...")
        _install_package(manager, package)
        if shutil.which(tool) is None:
            raise DependencyMissing(f"已安装 {package}，但仍找不到命令 {tool}")
        installed.append(tool)
    return installed
