# -*- coding: utf-8 -*-

"""
发布包部署器（Installer）

文件功能:
    - 备份安装目录中已有的 easytier-* 文件（只保留一代备份）
    - 解压发布包并将解压目录中的文件移动到安装目录
    - 为主要可执行文件设置可执行权限，清理解压残留与压缩包
    - 解压或移动失败时同样删除压缩包；文件系统错误统一转换为 InstallerError

公开接口:
    - 类 Installer
        - 方法: prepare() -> None
        - 方法: backup(exclude=()) -> list[str]
        - 方法: extract(archive_path, extract_dir_name) -> Path
        - 方法: relocate(staging_root, extract_dir_name) -> list[str]
        - 方法: set_permissions() -> list[str]
        - 方法: cleanup(archive_path, staging_root) -> None
        - 方法: deploy(archive_path, extract_dir_name) -> list[str]
        - 方法: install(archive_path, extract_dir_name=None) -> list[str]
    - install(archive_path, target_dir, extract_dir_name=None) -> list[str]

内部方法:
    - _default_extract_dir(archive_name): 由压缩包文件名推断解压目录名
"""

from __future__ import annotations

import shutil
import tarfile
import tempfile
import zipfile
from pathlib import Path
from typing import Iterable, Optional, Sequence

from loguru import logger

from ..asset_client.utils import make_executable
from ..errors import ExtractionFailed, InstallerError
from ..service.paths import RELEASE_ARCHIVE_RE, InstallLayout

DEFAULT_EXECUTABLES = ("easytier-core", "easytier-cli", "easytier-web", "easytier-web-embed")


def _default_extract_dir(archive_name: str) -> str:
    match = RELEASE_ARCHIVE_RE.match(archive_name)
    if match is None:
        raise ExtractionFailed(f"无法从文件名推断解压目录: {archive_name}")
    return match.group("stem")


def _remove_path(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink()


class Installer:
    """负责 备份 → 解压 → 移动 → 授权 → 清理 的帮助类"""

    def __init__(self, install_dir: Path, executables: Sequence[str] = DEFAULT_EXECUTABLES):
        self.layout = InstallLayout(install_dir=Path(install_dir))
        self.executables = tuple(executables)

    @property
    def install_dir(self) -> Path:
        return self.layout.install_dir

    def prepare(self) -> None:
        logger.info(f"准备工作目录: {self.install_dir}")
        try:
            self.install_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise InstallerError(f"无法创建安装目录 {self.install_dir}: {e}") from e

    def backup(self, exclude: Iterable[Path] = ()) -> list[str]:
        """
        将 easytier-* 文件移动到 backup/ 目录。

        有文件需要备份时才清空旧备份，保证 backup/ 中始终只有一代、且是最近一次可用的安装。
        安装目录中残留的发布包不参与备份。
        """
        self.prepare()
        excluded = {Path(p).resolve() for p in exclude}
        managed = [p for p in self.layout.managed_files() if p.resolve() not in excluded]
        if not managed:
            logger.info("未发现需要备份的 easytier-* 文件")
            return []

        backup_dir = self.layout.backup_dir
        names = []
        try:
            if backup_dir.exists():
                shutil.rmtree(backup_dir)
            backup_dir.mkdir()
            for path in managed:
                shutil.move(str(path), str(backup_dir / path.name))
                names.append(path.name)
        except OSError as e:
            raise InstallerError(f"备份到 {backup_dir} 失败: {e}") from e
        logger.info(f"已备份 {len(names)} 个 easytier-* 文件到 {backup_dir}")
        return sorted(names)

    def extract(self, archive_path: Path, extract_dir_name: str) -> Path:
        """解压到安装目录下的临时目录，返回该临时目录"""
        archive_path = Path(archive_path)
        self.prepare()
        try:
            staging_root = Path(tempfile.mkdtemp(prefix=".extract-", dir=self.install_dir))
        except OSError as e:
            raise ExtractionFailed(f"无法创建解压目录: {e}") from e
        name = archive_path.name.lower()
        logger.info(f"解压 {archive_path.name} ...")
        try:
            if name.endswith(".zip"):
                with zipfile.ZipFile(archive_path) as zf:
                    zf.extractall(staging_root)
            elif name.endswith((".tar.gz", ".tgz")):
                with tarfile.open(archive_path, "r:gz") as tf:
                    tf.extractall(staging_root, filter="data")
            else:
                raise ExtractionFailed(f"不支持的压缩包格式: {archive_path.name}")
        except (zipfile.BadZipFile, tarfile.TarError, OSError) as e:
            shutil.rmtree(staging_root, ignore_errors=True)
            raise ExtractionFailed(f"解压失败: {e}") from e
        except ExtractionFailed:
            shutil.rmtree(staging_root, ignore_errors=True)
            raise

        if not (staging_root / extract_dir_name).is_dir():
            shutil.rmtree(staging_root, ignore_errors=True)
            raise ExtractionFailed(f"解压目录 {extract_dir_name} 不存在")
        return staging_root

    def relocate(self, staging_root: Path, extract_dir_name: str) -> list[str]:
        """将解压目录中的内容移动到安装目录，同名文件被替换"""
        source_dir = Path(staging_root) / extract_dir_name
        moved = []
        try:
            for item in sorted(source_dir.iterdir()):
                dest = self.install_dir / item.name
                if dest.exists() or dest.is_symlink():
                    _remove_path(dest)
                shutil.move(str(item), str(dest))
                moved.append(item.name)
        except OSError as e:
            raise ExtractionFailed(f"移动文件到 {self.install_dir} 失败: {e}") from e
        logger.info("文件已移动到工作目录")
        return moved

    def set_permissions(self) -> list[str]:
        marked = []
        for name in self.executables:
            path = self.install_dir / name
            if path.is_file():
                try:
                    make_executable(str(path))
                except OSError as e:
                    raise InstallerError(f"无法设置可执行权限 {path}: {e}") from e
                marked.append(name)
        if not marked:
            logger.warning(f"安装目录中未找到可执行文件: {', '.join(self.executables)}")
        else:
            logger.info(f"已设置可执行权限: {', '.join(marked)}")
        return marked

    def cleanup(self, archive_path: Optional[Path], staging_root: Optional[Path]) -> None:
        if staging_root is not None:
            shutil.rmtree(staging_root, ignore_errors=True)
        try:
            if archive_path is not None and Path(archive_path).exists():
                Path(archive_path).unlink()
        except OSError as e:
            raise InstallerError(f"删除压缩包 {archive_path} 失败: {e}") from e
        logger.info("清理临时文件完成")

    def _discard_archive(self, archive_path: Path) -> None:
        """部署失败后删除压缩包，避免下次运行时被当作安装内容"""
        try:
            Path(archive_path).unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"删除压缩包 {archive_path} 失败: {e}")

    def deploy(self, archive_path: Path, extract_dir_name: str) -> list[str]:
        """解压 → 移动 → 授权 → 清理，不含备份；失败时同样删除压缩包"""
        staging_root = None
        try:
            staging_root = self.extract(archive_path, extract_dir_name)
            moved = self.relocate(staging_root, extract_dir_name)
            self.set_permissions()
        except InstallerError:
            if staging_root is not None:
                shutil.rmtree(staging_root, ignore_errors=True)
            self._discard_archive(archive_path)
            raise
        self.cleanup(archive_path, staging_root)
        return moved

    def install(self, archive_path: Path, extract_dir_name: Optional[str] = None) -> list[str]:
        """完整流程：备份 → 解压 → 移动 → 授权 → 清理"""
        archive_path = Path(archive_path)
        extract_dir_name = extract_dir_name or _default_extract_dir(archive_path.name)
        self.backup(exclude=[archive_path])
        return self.deploy(archive_path, extract_dir_name)


def install(archive_path: Path, target_dir: Path, extract_dir_name: Optional[str] = None) -> list[str]:
    return Installer(target_dir).install(archive_path, extract_dir_name)
