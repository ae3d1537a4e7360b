# -*- coding: utf-8 -*-
"""
测试配置加载：默认值、环境变量覆盖、显式覆盖优先级与非法取值。
"""

from pathlib import Path

import pytest

from easytier_deploy.config import DEFAULT_VERSION, InstallerConfig, load_config
from easytier_deploy.errors import ConfigError


def test_defaults_match_deploy_scripts():
    config = load_config(env={})
    assert config.install_dir == Path("/root/easytier")
    assert config.mirror_prefix == "https://gh-proxy.com"
    assert config.max_retries == 3
    assert config.backoff == 3.0
    assert config.default_version == DEFAULT_VERSION == "2.3.0"
    assert config.install_service is True


def test_env_overrides_and_explicit_overrides_win():
    env = {
        "EASYTIER_INSTALL_DIR": "/opt/easytier",
        "EASYTIER_MAX_RETRIES": "5",
        "EASYTIER_MIRROR": "",
        "EASYTIER_INSTALL_SERVICE": "false",
        "EASYTIER_REQUIRED_TOOLS": "unzip, curl,,",
    }
    config = load_config(env=env, max_retries=2, backoff=None)
    assert config.install_dir == Path("/opt/easytier")
    assert config.max_retries == 2
    assert config.backoff == 3.0
    assert config.mirror_prefix == ""
    assert config.install_service is False
    assert config.required_tools == ("unzip", "curl")


def test_service_name_suffix_is_stripped():
    assert InstallerConfig(service_name="easytier-web.service").service_name == "easytier-web"


@pytest.mark.parametrize("overrides", [
    {"max_retries": 0},
    {"backoff": -1},
    {"service_name": "../evil"},
])
def test_invalid_values_raise_config_error(overrides):
    with pytest.raises(ConfigError):
        load_config(env={}, **overrides)


def test_invalid_env_value_raises_config_error():
    with pytest.raises(ConfigError):
        load_config(env={"EASYTIER_MAX_RETRIES": "many"})
