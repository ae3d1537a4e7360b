# -*- coding: utf-8 -*-

"""
安装流程的异常类型

文件功能:
    - 定义安装流程中各阶段抛出的异常，调用方可按类型区分致命错误与可降级错误。

公开接口:
    - InstallerError: 所有安装异常的基类，CLI 捕获后以退出码 1 结束。
    - PrivilegeError / DependencyMissing / ConfigError: 预检与配置阶段
    - InvalidVersionFormat / VersionResolutionExhausted: 版本解析阶段
    - UnsupportedArchitecture / UnsupportedPlatform: 平台解析阶段
    - FetchExhausted / ExtractionFailed / ServiceInstallFailed: 下载与部署阶段
"""


class InstallerError(RuntimeError):
    """安装流程异常基类"""


class ConfigError(InstallerError):
    """配置项取值非法"""


class PrivilegeError(InstallerError):
    """当前进程不具备 root 权限"""


class DependencyMissing(InstallerError):
    """缺少外部工具且无法通过包管理器安装"""


class InvalidVersionFormat(InstallerError):
    """版本号不符合 x.y.z 格式"""

    def __init__(self, version: str):
        super().__init__(f"无效的版本号格式: {version}，请使用类似 2.3.0 的格式")
        self.version = version


class VersionResolutionExhausted(InstallerError):
    """主索引与镜像索引均无法给出版本号（调用方降级为默认版本，不作为致命错误抛出）"""


class UnsupportedArchitecture(InstallerError):
    """自动检测到的系统架构不在映射表内"""

    def __init__(self, machine: str, supported: list[str]):
        super().__init__(
            f"不支持的系统架构: {machine}，请手动指定平台 ({', '.join(supported)})"
        )
        self.machine = machine


class UnsupportedPlatform(InstallerError):
    """用户指定的平台不在支持列表内"""

    def __init__(self, platform: str, supported: list[str]):
        super().__init__(f"无效的平台参数: {platform}，支持的平台: {', '.join(supported)}")
        self.platform = platform


class FetchExhausted(InstallerError):
    """下载重试次数耗尽"""

    def __init__(self, url: str, attempts: int, last_error: str = ""):
        message = f"下载失败，已重试 {attempts} 次，请检查网络连接或下载链接: {url}"
        if last_error:
            message = f"{message} ({last_error})"
        super().__init__(message)
        self.url = url
        self.attempts = attempts


class ExtractionFailed(InstallerError):
    """压缩包无法读取或解压结果不符合预期"""


class ServiceInstallFailed(InstallerError):
    """服务注册失败（不回滚已部署的二进制）"""
