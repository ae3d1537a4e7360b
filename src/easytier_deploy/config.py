# -*- coding: utf-8 -*-

"""
安装器配置

文件功能:
    - 集中定义安装目录、发布地址、镜像前缀、重试参数等可配置项的默认值。
    - 支持通过环境变量覆盖默认值，CLI 参数再覆盖环境变量。

公开接口:
    - 类 InstallerConfig(BaseModel): 安装器的全部配置项（不可变）。
    - load_config(env=None, **overrides) -> InstallerConfig

公开接口的 pydantic 模型:
    - InstallerConfig
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ConfigError

GITHUB_REPO = "EasyTier/EasyTier"
DEFAULT_INSTALL_DIR = "/root/easytier"
DEFAULT_RELEASE_BASE = f"https://github.com/{GITHUB_REPO}/releases/download"
DEFAULT_MIRROR_PREFIX = "https://gh-proxy.com"
DEFAULT_INDEX_URL = f"https://api.github.com/repos/{GITHUB_REPO}/releases/latest"
DEFAULT_MIRROR_INDEX_URL = f"{DEFAULT_MIRROR_PREFIX}/github.com/{GITHUB_REPO}/releases/latest"
DEFAULT_VERSION = "2.3.0"
DEFAULT_SERVICE_URL = (
    "https://raw.githubusercontent.com/zhugeyufeng/easytier-auto-deploy/main/resource/easytier.service"
)
DEFAULT_SERVICE_NAME = "easytier"
DEFAULT_UNIT_DIR = "/etc/systemd/system"

# 环境变量名 -> 配置字段名
ENV_FIELDS: dict[str, str] = {
    "EASYTIER_INSTALL_DIR": "install_dir",
    "EASYTIER_MIRROR": "mirror_prefix",
    "EASYTIER_RELEASE_BASE": "release_base",
    "EASYTIER_INDEX_URL": "index_url",
    "EASYTIER_MIRROR_INDEX_URL": "mirror_index_url",
    "EASYTIER_DEFAULT_VERSION": "default_version",
    "EASYTIER_SERVICE_URL": "service_url",
    "EASYTIER_SERVICE_NAME": "service_name",
    "EASYTIER_UNIT_DIR": "unit_dir",
    "EASYTIER_MAX_RETRIES": "max_retries",
    "EASYTIER_BACKOFF": "backoff",
    "EASYTIER_INSTALL_SERVICE": "install_service",
    "EASYTIER_REQUIRED_TOOLS": "required_tools",
}


class InstallerConfig(BaseModel):
    """安装器配置项"""

    model_config = ConfigDict(frozen=True)

    install_dir: Path = Path(DEFAULT_INSTALL_DIR)
    release_base: str = DEFAULT_RELEASE_BASE
    mirror_prefix: str = DEFAULT_MIRROR_PREFIX
    index_url: str = DEFAULT_INDEX_URL
    mirror_index_url: str = DEFAULT_MIRROR_INDEX_URL
    default_version: str = DEFAULT_VERSION
    service_url: str = DEFAULT_SERVICE_URL
    service_name: str = DEFAULT_SERVICE_NAME
    unit_dir: Path = Path(DEFAULT_UNIT_DIR)
    install_service: bool = True
    max_retries: int = Field(default=3, ge=1)
    backoff: float = Field(default=3.0, ge=0)
    request_timeout: float = Field(default=30, gt=0)
    download_timeout: float = Field(default=180, gt=0)
    required_tools: tuple[str, ...] = ()
    executables: tuple[str, ...] = ("easytier-core", "easytier-cli", "easytier-web", "easytier-web-embed")

    @field_validator("release_base", "mirror_prefix")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.strip().rstrip("/")

    @field_validator("service_name")
    @classmethod
    def _check_service_name(cls, value: str) -> str:
        value = value.strip()
        if value.endswith(".service"):
            value = value[: -len(".service")]
        if not value or "/" in value:
            raise ValueError("服务名不能为空且不能包含 '/'")
        return value

    @field_validator("required_tools", mode="before")
    @classmethod
    def _split_tools(cls, value: Any) -> Any:
        if isinstance(value, str):
            return tuple(t.strip() for t in value.split(",") if t.strip())
        return value


def load_config(env: Optional[Mapping[str, str]] = None, **overrides: Any) -> InstallerConfig:
    """
    读取环境变量与显式覆盖项，构造配置。

    :param env: 环境变量映射，默认使用 os.environ
    :param overrides: 显式覆盖项（通常来自 CLI），值为 None 的项被忽略
    :return: InstallerConfig
    :raises ConfigError: 配置项取值非法
    """
    env = os.environ if env is None else env
    values: dict[str, Any] = {}
    for env_name, field_name in ENV_FIELDS.items():
        raw = env.get(env_name)
        if raw is not None:
            values[field_name] = raw
    values.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return InstallerConfig(**values)
    except ValidationError as e:
        raise ConfigError(f"配置项非法: {e}") from e
