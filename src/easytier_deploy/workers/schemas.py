# -*- coding: utf-8 -*-

"""
通用数据模型（schemas）

文件功能:
    - 定义安装流程各阶段之间传递的 pydantic 模型，全部不可变。

公开接口:
    - 类 PlatformId(str, Enum): 支持的平台集合，附带发布包中的架构名。
    - 类 ReleaseVersion(BaseModel): x.y.z 版本号。
    - 类 ReleaseAsset(BaseModel): 发布包文件名、下载链接与解压目录名。
    - 类 ResolvedRelease(BaseModel): 一次运行解析出的版本、平台与发布包。
    - 类 ServiceUnit(BaseModel): systemd 单元描述。
    - 类 InstallReport(BaseModel): 安装结果汇总。

公开接口的 pydantic 模型:
    - ReleaseVersion, ReleaseAsset, ResolvedRelease, ServiceUnit, InstallReport
"""

from __future__ import annotations

import re
from enum import Enum
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..errors import InvalidVersionFormat

VERSION_PATTERN = r"^\d+\.\d+\.\d+$"
_VERSION_RE = re.compile(r"\d+\.\d+\.\d+")


class PlatformId(str, Enum):
    """支持的平台"""

    AMD64 = "amd64"
    ARM64 = "arm64"
    ARMV7 = "armv7"
    I386 = "i386"
    MIPS = "mips"

    @property
    def asset_arch(self) -> str:
        """发布包文件名中使用的架构名"""
        return _ASSET_ARCH[self]

    @classmethod
    def supported(cls) -> list[str]:
        return [p.value for p in cls]


_ASSET_ARCH = {
    PlatformId.AMD64: "x86_64",
    PlatformId.ARM64: "aarch64",
    PlatformId.ARMV7: "armv7",
    PlatformId.I386: "i386",
    PlatformId.MIPS: "mips",
}


class ReleaseVersion(BaseModel):
    """发布版本号，不含 v 前缀"""

    model_config = ConfigDict(frozen=True)

    value: str = Field(pattern=VERSION_PATTERN)

    @classmethod
    def parse(cls, text: str) -> "ReleaseVersion":
        """去掉可选的 v/V 前缀并校验格式，不做任何猜测或修正"""
        candidate = text[1:] if text[:1] in ("v", "V") else text
        if not _VERSION_RE.fullmatch(candidate):
            raise InvalidVersionFormat(text)
        return cls(value=candidate)

    @property
    def tag(self) -> str:
        return f"v{self.value}"

    def __str__(self) -> str:
        return self.value


class ReleaseAsset(BaseModel):
    model_config = ConfigDict(frozen=True)

    archive_name: str
    download_url: str
    extract_dir_name: str


class ResolvedRelease(BaseModel):
    """一次运行中唯一的解析结果，在各阶段之间以参数传递"""

    model_config = ConfigDict(frozen=True)

    version: ReleaseVersion
    platform: PlatformId
    asset: ReleaseAsset


class ServiceUnit(BaseModel):
    """systemd 单元描述；remote_text 非空时表示使用远程下载的单元文件原文"""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str = "EasyTier Service"
    exec_start: str
    working_directory: str
    user: str = "root"
    restart: str = "on-failure"
    restart_sec: str = "5s"
    source: Literal["remote", "template"] = "template"
    remote_text: Optional[str] = None

    @property
    def file_name(self) -> str:
        return f"{self.name}.service"

    def render(self) -> str:
        if self.remote_text:
            return self.remote_text
        return (
            "[Unit]\n"
            f"Description={self.description}\n"
            "After=network.target\n"
            "\n"
            "[Service]\n"
            "Type=simple\n"
            f"User={self.user}\n"
            f"ExecStart={self.exec_start}\n"
            f"WorkingDirectory={self.working_directory}\n"
            f"Restart={self.restart}\n"
            f"RestartSec={self.restart_sec}\n"
            "\n"
            "[Install]\n"
            "WantedBy=multi-user.target\n"
        )


class InstallReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    release: ResolvedRelease
    install_dir: Path
    installed_files: list[str] = []
    backed_up_files: list[str] = []
    service_installed: bool = False
    service_error: Optional[str] = None
