# -*- coding: utf-8 -*-

"""
安装协调器

文件功能:
    - 串联权限检查、平台解析、工具检查、版本解析、备份、下载、部署与服务注册，完成一次安装/更新。

公开接口:
    - 类 InstallCoordinator:
        - 方法: execute_install(version=None, platform=None) -> InstallReport

内部方法:
    - _run_step(): 执行单个安装步骤
    - _install_service(): 注册服务（失败不影响已部署的二进制）

公开接口的 pydantic 模型:
    - InstallReport（见 workers.schemas）
"""

from typing import Callable, List, Optional, TypeVar

from loguru import logger

from ..asset_client import AssetClient
from ..config import InstallerConfig
from ..errors import ServiceInstallFailed
from ..service.preflight import check_privileges, ensure_tools
from ..service.systemd import ServiceManager
from .installer import Installer
from .resolvers import resolve_platform, resolve_release, resolve_version
from .schemas import InstallReport, ResolvedRelease

T = TypeVar("T")

TOTAL_STEPS = 8


class InstallCoordinator:
    """协调一次安装流程的类"""

    def __init__(
        self,
        config: InstallerConfig,
        progress_callback: Optional[Callable[[str], None]] = None,
        asset_client: Optional[AssetClient] = None,
        service_manager: Optional[ServiceManager] = None,
        machine: Optional[str] = None,
    ):
        """
        :param config: 安装器配置
        :param progress_callback: 进度回调函数，用于报告安装进度
        :param asset_client: 资源下载客户端，默认按配置创建
        :param service_manager: systemd 管理器，默认按配置创建
        :param machine: 本机架构标识，默认读取 platform.machine()
        """
        self.config = config
        self.progress_callback = progress_callback or (lambda x: None)
        self.asset_client = asset_client or AssetClient(config)
        self.service_manager = service_manager or ServiceManager(unit_dir=config.unit_dir)
        self.machine = machine
        self.installer = Installer(config.install_dir, executables=config.executables)

    def _report_progress(self, message: str) -> None:
        self.progress_callback(message)

    def _run_step(self, index: int, step_name: str, step_func: Callable[[], T]) -> T:
        self._report_progress(f"[{index}/{TOTAL_STEPS}] {step_name}")
        return step_func()

    def _required_tools(self) -> List[str]:
        tools = list(self.config.required_tools)
        if self.config.install_service:
            tools.append(self.service_manager.systemctl)
        return tools

    def _install_service(self) -> Optional[str]:
        """返回失败信息；成功时返回 None"""
        try:
            unit = self.asset_client.download_service_unit()
            self.service_manager.install(unit)
        except ServiceInstallFailed as e:
            logger.error(f"服务注册失败: {e}")
            return str(e)
        return None

    def execute_install(self, version: Optional[str] = None, platform: Optional[str] = None) -> InstallReport:
        """
        执行完整安装流程：
            1) 检查 root 权限
            2) 解析平台（不访问网络）
            3) 检查外部工具
            4) 解析版本并生成下载链接
            5) 备份已有文件
            6) 下载发布包
            7) 解压、移动、授权、清理
            8) 注册 systemd 服务（可选，失败只告警）

        :param version: 用户指定的版本号，None 表示自动获取最新版本
        :param platform: 用户指定的平台，None 表示自动检测
        :return: InstallReport
        :raises InstallerError: 1-7 步中的任何致命错误
        """
        config = self.config

        self._run_step(1, "正在检查系统权限...", check_privileges)
        platform_id = self._run_step(
            2, "正在检测系统平台架构...",
            lambda: resolve_platform(platform, machine=self.machine),
        )
        self._run_step(3, "正在检查依赖工具...", lambda: ensure_tools(self._required_tools()))

        def release_step() -> ResolvedRelease:
            release_version = resolve_version(version, self.asset_client, config.default_version)
            return resolve_release(release_version, platform_id, config.release_base, config.mirror_prefix)

        release = self._run_step(4, "正在确定版本与下载链接...", release_step)
        archive_path = self.installer.layout.archive_path(release.asset.archive_name)

        backed_up = self._run_step(
            5, "正在备份现有文件...",
            lambda: self.installer.backup(exclude=[archive_path]),
        )
        self._run_step(
            6, f"正在下载 EasyTier {release.version.tag} ({release.platform.value})...",
            lambda: self.asset_client.download_archive(
                release.asset.download_url, archive_path, progress=self._report_progress
            ),
        )
        installed = self._run_step(
            7, "正在解压并部署...",
            lambda: self.installer.deploy(archive_path, release.asset.extract_dir_name),
        )

        service_installed = False
        service_error = None
        if config.install_service:
            service_error = self._run_step(8, "正在安装 EasyTier 服务...", self._install_service)
            service_installed = service_error is None
            if service_installed:
                self._report_progress("[SUCCESS] 服务已启用并启动")
            else:
                self._report_progress(f"[WARN] {service_error}")
        else:
            self._report_progress(f"[8/{TOTAL_STEPS}] 已跳过服务安装")

        return InstallReport(
            release=release,
            install_dir=config.install_dir,
            installed_files=installed,
            backed_up_files=backed_up,
            service_installed=service_installed,
            service_error=service_error,
        )
