# -*- coding: utf-8 -*-
"""
loguru 日志输出配置：替换默认 sink，输出 [LEVEL] message 格式到 stderr。
"""

import sys

from loguru import logger

LOG_FORMAT = "<level>[{level}]</level> {message}"


def configure_logging(level: str = "INFO", sink=None) -> None:
    logger.remove()
    logger.add(sink or sys.stderr, level=level.upper(), format=LOG_FORMAT)
