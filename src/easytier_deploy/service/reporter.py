# -*- coding: utf-8 -*-
"""
安装结果展示：文件列表与服务状态。
"""

from __future__ import annotations

import stat
from pathlib import Path
from typing import Optional

from loguru import logger

from ..workers.schemas import InstallReport
from .systemd import ServiceManager


def list_files(directory: Path) -> list[str]:
    """返回类似 ls -l 的文件列表行"""
    lines = []
    for path in sorted(Path(directory).iterdir()):
        st = path.lstat()
        lines.append(f"{stat.filemode(st.st_mode)} {st.st_size:>10} {path.name}")
    return lines


def show_report(report: InstallReport, service_manager: Optional[ServiceManager] = None, service_name: str = "") -> None:
    logger.info(f"EasyTier {report.release.version.tag} ({report.release.platform.value}) 部署完成！")
    logger.info(f"工作目录: {report.install_dir}")
    logger.info("当前目录文件列表:")
    for line in list_files(report.install_dir):
        logger.info(f"  {line}")

    if report.backed_up_files:
        logger.info(f"已备份: {', '.join(report.backed_up_files)}")

    if service_manager is None or not service_name:
        return

    if report.service_installed:
        status = service_manager.status(service_name)
        if status:
            logger.info(f"{service_name} 服务状态:\n{status}")
    elif report.service_error:
        logger.warning(f"服务注册失败: {report.service_error}")
    elif service_manager.unit_exists(service_name):
        logger.warning(
            f"检测到已有服务 {service_name}.service，如需重启服务，请运行:\n"
            f"  systemctl daemon-reload\n"
            f"  systemctl restart {service_name}"
        )
