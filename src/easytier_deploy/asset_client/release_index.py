# -*- coding: utf-8 -*-
"""
查询发布索引，获取最新版本标签
"""
import re
from typing import Optional

import requests
from requests.exceptions import RequestException
from loguru import logger

MIRROR_TAG_PATTERN = re.compile(r"v(\d+\.\d+\.\d+)")


def fetch_latest_tag(index_url: str, timeout: float = 30) -> Optional[str]:
    """
    从主发布索引（GitHub API，JSON）读取 tag_name 字段。

    :param index_url: releases/latest 接口地址
    :return: 原始标签（可能带 v 前缀）；请求失败、JSON 非法或字段缺失时返回 None
    """
    try:
        resp = requests.get(
            index_url,
            timeout=timeout,
            headers={"Accept": "application/vnd.github+json"},
        )
        resp.raise_for_status()
        payload = resp.json()
    except RequestException as e:
        logger.warning(f"请求发布索引失败: {e}")
        return None
    except ValueError as e:
        logger.warning(f"发布索引返回的 JSON 无法解析: {e}")
        return None

    tag = payload.get("tag_name") if isinstance(payload, dict) else None
    if not isinstance(tag, str) or not tag.strip():
        logger.warning("发布索引中缺少 tag_name 字段")
        return None
    return tag.strip()


def fetch_mirror_tag(mirror_index_url: str, timeout: float = 30) -> Optional[str]:
    """
    从镜像发布页（HTML）中提取第一个 vX.Y.Z 形式的标签。

    :param mirror_index_url: 经代理访问的 releases/latest 页面
    :return: 不带 v 前缀的版本号；未找到时返回 None
    """
    try:
        resp = requests.get(mirror_index_url, timeout=timeout)
        resp.raise_for_status()
        text = resp.text
    except RequestException as e:
        logger.warning(f"请求镜像发布页失败: {e}")
        return None

    match = MIRROR_TAG_PATTERN.search(text or "")
    if match is None:
        logger.warning("镜像发布页中未找到版本标签")
        return None
    return match.group(1)
