# -*- coding: utf-8 -*-
"""
资源下载客户端的工具函数
"""
import json
import os
import stat

import requests


def make_executable(path: str):
    """赋予文件可执行权限"""
    current = os.stat(path).st_mode
    os.chmod(path, current | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)


def parse_text_response(resp: requests.Response) -> str:
    """
    从 requests.Response 中解析文本内容，兼容 JSON 字符串包裹的纯文本。
    """
    content_type = resp.headers.get("Content-Type", "")
    text_content: str | None = None

    if "json" in content_type:
        try:
            data = resp.json()
            if isinstance(data, str):
                text_content = data
            elif isinstance(data, dict):
                for key in ("content", "data", "service"):
                    if key in data and isinstance(data[key], str):
                        text_content = data[key]
                        break
        except ValueError:
            pass

    if text_content is None:
        raw_text = resp.text
        stripped = raw_text.strip()
        if len(stripped) >= 2 and stripped[0] == stripped[-1] == '"':
            try:
                text_content = json.loads(stripped)
            except ValueError:
                text_content = raw_text
        else:
            text_content = raw_text

    return text_content.replace("\r\n", "\n").replace("\r", "\n")


def write_text(content: str, dest_path: str):
    """以 LF 换行写入文本文件"""
    os.makedirs(os.path.dirname(dest_path), exist_ok=True)
    with open(dest_path, "w", encoding="utf-8", newline="\n") as f:
        f.write(content)
