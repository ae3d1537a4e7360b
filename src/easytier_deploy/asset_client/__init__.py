# -*- coding: utf-8 -*-
"""
资源下载客户端

负责从发布站点获取版本标签、EasyTier 发布包以及 systemd 服务文件。

公开接口:
    - 类 AssetClient
        - 方法: fetch_latest_tag() -> str | None
        - 方法: fetch_mirror_tag() -> str | None
        - 方法: download_archive(url, dest, progress=None) -> Path
        - 方法: download_service_unit() -> ServiceUnit
"""
import time
from pathlib import Path
from typing import Callable, Optional

from ..config import InstallerConfig
from ..workers.schemas import ServiceUnit
from .binaries import download_archive as download_archive_func
from .release_index import fetch_latest_tag as fetch_latest_tag_func, \
                           fetch_mirror_tag as fetch_mirror_tag_func
from .service_unit import download_service_unit as download_service_unit_func


class AssetClient:
    """封装了发布资源下载逻辑的客户端"""

    def __init__(self, config: InstallerConfig, sleep: Callable[[float], None] = time.sleep):
        self.config = config
        self.sleep = sleep

    def fetch_latest_tag(self) -> Optional[str]:
        return fetch_latest_tag_func(self.config.index_url, self.config.request_timeout)

    def fetch_mirror_tag(self) -> Optional[str]:
        return fetch_mirror_tag_func(self.config.mirror_index_url, self.config.request_timeout)

    def download_archive(self, url: str, dest: Path, progress: Optional[Callable[[str], None]] = None) -> Path:
        return download_archive_func(
            url,
            dest,
            max_retries=self.config.max_retries,
            backoff=self.config.backoff,
            timeout=self.config.download_timeout,
            progress=progress,
            sleep=self.sleep,
        )

    def download_service_unit(self) -> ServiceUnit:
        return download_service_unit_func(
            self.config.service_url,
            self.config.service_name,
            self.config.install_dir,
            self.config.request_timeout,
        )
