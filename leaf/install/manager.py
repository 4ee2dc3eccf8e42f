"""
包管理器

install / remove / list / search / update / nuke 的统一入口。
每次调用只处理一个包，运行配置显式传入各组件。
"""

import shutil
from pathlib import Path
from typing import List, Optional, Tuple

import httpx

from ..config.loader import load_manifest
from ..config.remote import refresh_manifest
from ..config.schema import InstalledRecord, LeafConfig, Manifest, Package, is_valid_package_name
from ..utils.logging import get_stage_logger, info, success, LogStage
from . import linker
from .errors import AlreadyInstalled, NotInstalled, PackageIOError, PackageNotFound
from .install_context import ProgressCallback
from .install_pipeline import InstallPipeline
from .platform import resolve_platform
from .state import InstalledStateStore

remove_logger = get_stage_logger(LogStage.REMOVE)
nuke_logger = get_stage_logger(LogStage.NUKE)


class PackageManager:
    """包管理器

    Args:
        config: 运行配置
        client: 可选的 HTTP 客户端（测试时注入 MockTransport）
    """

    def __init__(self, config: LeafConfig, client: Optional[httpx.AsyncClient] = None):
        self.config = config
        self.client = client
        self.state = InstalledStateStore(config)
        self.pipeline = InstallPipeline()
        self._manifest: Optional[Manifest] = None

    # ---------- 清单 ----------

    def load_manifest(self, reload: bool = False) -> Manifest:
        """读取本地清单副本（缓存于本实例）

        Raises:
            ManifestNotFound: packages.json 不存在
            ManifestInvalid: 内容无效
        """
        if self._manifest is None or reload:
            self._manifest = load_manifest(self.config)
        return self._manifest

    async def update(self) -> Manifest:
        """刷新远程清单；失败时保留原有本地副本"""
        self._manifest = await refresh_manifest(self.config, client=self.client)
        return self._manifest

    # ---------- 安装 / 删除 ----------

    async def install(self, name: str, progress_callback: Optional[ProgressCallback] = None) -> InstalledRecord:
        """安装包

        已安装时不做任何文件系统修改。

        Raises:
            AlreadyInstalled: 已存在有效的安装记录
            PackageNotFound: 清单中没有该包
            LeafError: 安装管道中的任一错误
        """
        if self.state.is_installed(name):
            raise AlreadyInstalled(name)

        manifest = self.load_manifest()
        if not is_valid_package_name(name):
            raise PackageNotFound(name)
        package = manifest.get(name)

        context = await self.pipeline.execute(
            self.config, name, package, progress_callback=progress_callback, client=self.client
        )
        return context.record

    def remove(self, name: str) -> InstalledRecord:
        """删除已安装的包

        顺序：读取记录 → 删除记录 → 删除别名 → 删除包文件。
        崩溃在任何位置都会让包被正确地判定为未安装。

        Raises:
            NotInstalled: 没有有效的安装记录（不修改任何文件）
            PackageIOError: 删除失败
        """
        record = self.state.get(name)
        if record is None:
            raise NotInstalled(name)

        package_dir = self.config.package_dir(name)
        remove_logger.info(f"正在删除 {name}...")

        self.state.delete_record(package_dir)
        removed = linker.unlink(package_dir, record.executables, self.config.bin_dir, self.config.platform)
        for alias_path in removed:
            remove_logger.debug(f"已删除链接: {alias_path}")
        self.state.delete_files(package_dir)

        remove_logger.success(f"已删除 {name}")
        return record

    # ---------- 查询 ----------

    def list_installed(self) -> List[InstalledRecord]:
        return self.state.list()

    def list_available(self) -> List[Tuple[str, Package]]:
        """当前平台可用的清单条目"""
        platform = resolve_platform(self.config)
        return self.load_manifest().available(platform)

    def search(self, term: str) -> List[Tuple[str, Package]]:
        """在当前平台可用的条目中搜索名称、描述与标签"""
        platform = resolve_platform(self.config)
        return self.load_manifest().search(term, platform)

    def is_installed(self, name: str) -> bool:
        return self.state.is_installed(name)

    def linked_aliases(self, record: InstalledRecord) -> List[Path]:
        """bin 目录中实际指向该包的别名（不含因目标缺失而跳过的）"""
        return linker.linked_aliases(
            self.config.package_dir(record.name), record.executables, self.config.bin_dir, self.config.platform
        )

    # ---------- 卸载 Leaf 自身 ----------

    def nuke(self) -> List[Path]:
        """删除所有受管链接和整个 Leaf 根目录

        Returns:
            List[Path]: 已删除的链接

        Raises:
            PackageIOError: 删除失败
        """
        nuke_logger.warning("正在删除所有包以及 Leaf 自身...")

        removed = []
        for link_path in linker.find_managed_links(self.config.bin_dir, self.config.packages_dir):
            try:
                link_path.unlink()
            except OSError as e:
                raise PackageIOError(f"删除链接失败 {link_path}: {e}") from e
            nuke_logger.info(f"已删除链接: {link_path}")
            removed.append(link_path)

        install_dir = Path(self.config.install_dir)
        if install_dir.exists():
            try:
                shutil.rmtree(install_dir)
            except OSError as e:
                raise PackageIOError(f"删除 Leaf 目录失败 {install_dir}: {e}") from e
            nuke_logger.info(f"已删除 Leaf 目录: {install_dir}")

        self._manifest = None
        success("Leaf 及其所有包已删除", stage=LogStage.NUKE)
        info("如需彻底卸载，请删除 leaf 可执行文件本身")
        return removed
