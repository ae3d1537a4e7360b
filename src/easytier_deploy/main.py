# -*- coding: utf-8 -*-
"""
命令行入口

文件功能:
    - 解析 [version] [platform] 位置参数与可选项，加载配置并执行安装流程。
    - 任何致命错误以退出码 1 结束，成功以 0 结束。

公开接口:
    - build_parser() -> argparse.ArgumentParser
    - main(argv=None) -> int
"""

from __future__ import annotations

import argparse
from typing import Optional

from loguru import logger

from .config import load_config
from .errors import InstallerError
from .service.logging_setup import configure_logging
from .service.reporter import show_report
from .workers.install_coordinator import InstallCoordinator
from .workers.resolvers import is_platform_name
from .workers.schemas import PlatformId

EPILOG = f"""\
支持的平台:
  amd64 (x86_64)   - Intel/AMD 64位处理器
  arm64 (aarch64)  - ARM 64位处理器
  armv7            - ARM v7 处理器
  i386             - Intel/AMD 32位处理器
  mips             - MIPS 处理器

示例:
  easytier-deploy                  # 获取最新版本并自动检测平台
  easytier-deploy 2.3.0            # 下载 2.3.0 版本，自动检测平台
  easytier-deploy 2.3.0 x86_64     # 下载 2.3.0 版本的 x86_64 版本
  easytier-deploy aarch64          # 获取最新版本的 aarch64 版本

数据源: https://github.com/EasyTier/EasyTier/releases
平台列表: {", ".join(PlatformId.supported())}
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="easytier-deploy",
        description="下载指定版本的 EasyTier 并部署到系统",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("version", nargs="?", help="版本号 (如: 2.3.0)，省略时获取最新版本")
    parser.add_argument("platform", nargs="?", help="平台架构，省略时自动检测")
    parser.add_argument("--install-dir", help="安装目录 (默认 /root/easytier)")
    parser.add_argument("--mirror", help="下载代理前缀，传入空字符串表示直连")
    parser.add_argument("--service-url", help="systemd 服务文件下载地址")
    parser.add_argument("--service-name", help="systemd 服务名 (默认 easytier)")
    parser.add_argument("--no-service", action="store_true", help="只部署二进制，不注册服务")
    parser.add_argument("--max-retries", type=int, help="下载最大尝试次数 (默认 3)")
    parser.add_argument("--backoff", type=float, help="下载重试间隔秒数 (默认 3)")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="日志级别",
    )
    return parser


def split_positionals(version: Optional[str], platform: Optional[str]) -> tuple[Optional[str], Optional[str]]:
    """只有一个位置参数且它是平台名时，视为 [platform]"""
    if platform is None and is_platform_name(version):
        return None, version
    return version, platform


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)
    version, platform = split_positionals(args.version, args.platform)

    logger.info("开始 EasyTier 自动部署")
    try:
        config = load_config(
            install_dir=args.install_dir,
            mirror_prefix=args.mirror,
            service_url=args.service_url,
            service_name=args.service_name,
            install_service=False if args.no_service else None,
            max_retries=args.max_retries,
            backoff=args.backoff,
        )
        coordinator = InstallCoordinator(config, progress_callback=lambda msg: logger.info(msg))
        report = coordinator.execute_install(version=version, platform=platform)
    except InstallerError as e:
        logger.error(str(e))
        return 1

    show_report(report, coordinator.service_manager, config.service_name)
    logger.success("脚本执行完成！")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
