# -*- coding: utf-8 -*-

"""
版本、平台与下载链接解析

文件功能:
    - 确定本次安装的版本号：用户指定 → 主发布索引 → 镜像发布页 → 内置默认版本。
    - 将用户指定的平台或本机架构映射为受支持的平台。
    - 由版本、平台与发布地址生成发布包文件名、下载链接和解压目录名。

公开接口:
    - resolve_version(explicit=None, client=None, default_version=DEFAULT_VERSION) -> ReleaseVersion
    - resolve_platform(explicit=None, machine=None) -> PlatformId
    - is_platform_name(text) -> bool
    - build_release_asset(version, platform, release_base, mirror_prefix="") -> ReleaseAsset
    - resolve_release(version, platform, release_base, mirror_prefix="") -> ResolvedRelease

内部方法:
    - _accept_tag(tag, source): 校验来自远程的标签，非法时返回 None
"""

from __future__ import annotations

import platform as host_platform
from typing import TYPE_CHECKING, Optional

from loguru import logger

from ..config import DEFAULT_VERSION
from ..errors import (
    InvalidVersionFormat,
    UnsupportedArchitecture,
    UnsupportedPlatform,
    VersionResolutionExhausted,
)
from .schemas import PlatformId, ReleaseAsset, ReleaseVersion, ResolvedRelease

if TYPE_CHECKING:
    from ..asset_client import AssetClient

# uname -m 的输出 -> 平台
ARCH_TABLE: dict[str, PlatformId] = {
    "x86_64": PlatformId.AMD64,
    "amd64": PlatformId.AMD64,
    "aarch64": PlatformId.ARM64,
    "arm64": PlatformId.ARM64,
    "armv8": PlatformId.ARM64,
    "armv7l": PlatformId.ARMV7,
    "armv7ml": PlatformId.ARMV7,
    "armv7": PlatformId.ARMV7,
    "i386": PlatformId.I386,
    "i686": PlatformId.I386,
    "mips": PlatformId.MIPS,
}

# 发布包中的架构名也可作为平台参数
PLATFORM_ALIASES: dict[str, PlatformId] = {p.asset_arch: p for p in PlatformId}


def _accept_tag(tag: Optional[str], source: str) -> Optional[ReleaseVersion]:
    if not tag:
        return None
    try:
        return ReleaseVersion.parse(tag)
    except InvalidVersionFormat:
        logger.warning(f"{source}返回的版本号格式无效: {tag}")
        return None


def resolve_version(
    explicit: Optional[str] = None,
    client: Optional["AssetClient"] = None,
    default_version: str = DEFAULT_VERSION,
) -> ReleaseVersion:
    """
    确定目标版本。

    用户指定的版本只做前缀剥离与格式校验；未指定时依次查询主索引与镜像，
    两者都失败则告警并使用默认版本。三条路径都经过同一校验。

    :raises InvalidVersionFormat: 用户指定或默认版本格式非法
    """
    if explicit:
        version = ReleaseVersion.parse(explicit)
        logger.info(f"使用指定版本: {version.tag}")
        return version

    if client is None:
        from ..asset_client import AssetClient
        from ..config import InstallerConfig

        client = AssetClient(InstallerConfig())

    logger.info("正在获取最新版本号...")
    version = _accept_tag(client.fetch_latest_tag(), "发布索引")
    if version is not None:
        logger.info(f"使用最新版本: {version.tag}")
        return version

    logger.warning("无法从 API 获取最新版本，尝试备用方法...")
    version = _accept_tag(client.fetch_mirror_tag(), "镜像发布页")
    if version is not None:
        logger.info(f"使用最新版本: {version.tag}")
        return version

    reason = VersionResolutionExhausted("发布索引与镜像均未返回有效版本")
    logger.warning(f"{reason}，使用备用版本 {default_version}")
    return ReleaseVersion.parse(default_version)


def is_platform_name(text: Optional[str]) -> bool:
    if not text:
        return False
    name = text.strip().lower()
    return name in PlatformId.supported() or name in PLATFORM_ALIASES


def resolve_platform(explicit: Optional[str] = None, machine: Optional[str] = None) -> PlatformId:
    """
    确定目标平台。

    :param explicit: 用户指定的平台（平台名或发布包架构名）
    :param machine: 本机架构标识，默认读取 platform.machine()
    :raises UnsupportedPlatform: 指定的平台不受支持
    :raises UnsupportedArchitecture: 自动检测到的架构不受支持
    """
    if explicit:
        name = explicit.strip().lower()
        if name in PlatformId.supported():
            result = PlatformId(name)
        elif name in PLATFORM_ALIASES:
            result = PLATFORM_ALIASES[name]
        else:
            raise UnsupportedPlatform(explicit, PlatformId.supported())
        logger.info(f"使用手动指定的平台: {result.value}")
        return result

    arch = machine if machine is not None else host_platform.machine()
    result = ARCH_TABLE.get(arch.strip().lower())
    if result is None:
        raise UnsupportedArchitecture(arch, PlatformId.supported())
    logger.info(f"自动检测到系统架构: {arch} -> {result.value}")
    return result


def build_release_asset(
    version: ReleaseVersion,
    platform: PlatformId,
    release_base: str,
    mirror_prefix: str = "",
) -> ReleaseAsset:
    """
    生成发布包信息，纯函数。

    mirror_prefix 非空时下载链接经代理访问，形如
    https://gh-proxy.com/github.com/EasyTier/EasyTier/releases/download/v2.3.0/...
    """
    extract_dir_name = f"easytier-linux-{platform.asset_arch}"
    archive_name = f"{extract_dir_name}-{version.tag}.zip"
    url = f"{release_base.rstrip('/')}/{version.tag}/{archive_name}"
    if mirror_prefix:
        _scheme, sep, rest = url.partition("://")
        url = f"{mirror_prefix.rstrip('/')}/{rest if sep else url}"
    return ReleaseAsset(
        archive_name=archive_name,
        download_url=url,
        extract_dir_name=extract_dir_name,
    )


def resolve_release(
    version: ReleaseVersion,
    platform: PlatformId,
    release_base: str,
    mirror_prefix: str = "",
) -> ResolvedRelease:
    asset = build_release_asset(version, platform, release_base, mirror_prefix)
    logger.info(f"目标平台: {platform.value} ({platform.asset_arch})")
    logger.info(f"目标版本: {version.tag}")
    logger.info(f"下载链接: {asset.download_url}")
    return ResolvedRelease(version=version, platform=platform, asset=asset)
