# -*- coding: utf-8 -*-
"""
EasyTier 发布包安装器

解析版本与平台，下载发布包，备份旧文件后部署到安装目录，并可选注册 systemd 服务。
"""

from .config import InstallerConfig, load_config
from .workers.install_coordinator import InstallCoordinator
from .workers.schemas import InstallReport, PlatformId, ReleaseAsset, ReleaseVersion, ResolvedRelease

__version__ = "0.1.0"

__all__ = [
    "InstallCoordinator",
    "InstallReport",
    "InstallerConfig",
    "PlatformId",
    "ReleaseAsset",
    "ReleaseVersion",
    "ResolvedRelease",
    "load_config",
]
