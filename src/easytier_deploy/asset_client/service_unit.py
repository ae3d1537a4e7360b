# -*- coding: utf-8 -*-
"""
获取 systemd 服务单元文件（下载失败时使用内置模板）
"""
from pathlib import Path

import requests
from requests.exceptions import RequestException
from loguru import logger

from ..config import DEFAULT_INSTALL_DIR
from ..workers.schemas import ServiceUnit
from .utils import parse_text_response

PRIMARY_EXECUTABLE = "easytier-core"


def default_service_unit(service_name: str, install_dir: Path) -> ServiceUnit:
    """按固定模板生成服务单元"""
    return ServiceUnit(
        name=service_name,
        exec_start=str(Path(install_dir) / PRIMARY_EXECUTABLE),
        working_directory=str(install_dir),
        source="template",
    )


def download_service_unit(url: str, service_name: str, install_dir: Path, timeout: float = 30) -> ServiceUnit:
    """
    下载服务单元文件，只尝试一次。

    请求失败、内容为空或不含 [Service] 段时返回默认模板，不抛出异常。

    :param url: 单元文件地址；为空时直接使用模板
    :param service_name: 服务名（不含 .service 后缀）
    :param install_dir: 安装目录，用于模板中的 ExecStart 与 WorkingDirectory
    :return: ServiceUnit
    """
    fallback = default_service_unit(service_name, install_dir)
    if not url:
        logger.info("未配置服务文件地址，使用默认服务文件")
        return fallback

    try:
        resp = requests.get(url, timeout=timeout)
        resp.raise_for_status()
        text = parse_text_response(resp)
    except RequestException as e:
        logger.warning(f"下载服务文件失败: {e}，创建默认服务文件")
        return fallback

    if "[Service]" not in text:
        logger.warning("下载的服务文件内容无效，创建默认服务文件")
        return fallback

    logger.info("下载服务文件成功")
    if Path(install_dir) != Path(DEFAULT_INSTALL_DIR):
        logger.warning(
            f"下载的服务文件按默认目录 {DEFAULT_INSTALL_DIR} 编写，"
            f"其 ExecStart/WorkingDirectory 可能与安装目录 {install_dir} 不一致，请手动检查"
        )
    return fallback.model_copy(update={"source": "remote", "remote_text": text})
