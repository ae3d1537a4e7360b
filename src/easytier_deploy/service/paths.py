# -*- coding: utf-8 -*-
"""
统一的路径管理服务。

文件功能:
    - 集中描述安装目录布局：安装目录、backup/ 备份目录、受管理的 easytier-* 文件。
    - 给出 systemd 单元文件的落盘位置。

公开接口:
    - 类 InstallLayout: 安装目录布局。
    - get_unit_path(unit_dir, service_name): 单元文件路径。
"""

import re
from dataclasses import dataclass
from pathlib import Path

MANAGED_PATTERN = "easytier-*"
BACKUP_DIR_NAME = "backup"

# easytier-linux-x86_64-v2.3.0.zip 之类的发布包，不属于安装内容
RELEASE_ARCHIVE_RE = re.compile(r"^(?P<stem>.+?)-v\d+\.\d+\.\d+\.(zip|tar\.gz|tgz)$")


@dataclass(frozen=True)
class InstallLayout:
    install_dir: Path

    @property
    def backup_dir(self) -> Path:
        return self.install_dir / BACKUP_DIR_NAME

    def managed_files(self) -> list[Path]:
        """安装目录第一层中匹配 easytier-* 的文件与目录，发布包除外"""
        if not self.install_dir.is_dir():
            return []
        return sorted(
            p for p in self.install_dir.glob(MANAGED_PATTERN)
            if not (p.is_file() and RELEASE_ARCHIVE_RE.match(p.name))
        )

    def archive_path(self, archive_name: str) -> Path:
        """发布包下载到安装目录中，部署完成后删除"""
        return self.install_dir / archive_name


def get_unit_path(unit_dir: Path, service_name: str) -> Path:
    return Path(unit_dir) / f"{service_name}.service"
