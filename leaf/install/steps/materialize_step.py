"""
落地步骤

按包类型把缓存制品落地到私有暂存目录（解压 / 源码构建 / 原样复制），
全部成功后一次 os.replace 移入包目录。失败时暂存目录被删除。
"""

import os
import shutil
import tempfile
from pathlib import Path

from leaf.config.schema import PackageKind
from leaf.install.errors import PackageIOError
from leaf.install.extractor import extract
from leaf.install.install_context import InstallContext
from leaf.install.source_builder import SourceBuilder
from leaf.utils.logging import debug, info, warning, LogStage
from leaf.utils.paths import make_executable, remove_path, safe_path_join
from .install_step import InstallStep


class MaterializeStep(InstallStep):
    """落地步骤"""

    def __init__(self):
        super().__init__("materialize", "落地包文件")

    async def execute(self, context: InstallContext) -> None:
        assert context.variant is not None
        assert context.cached_path is not None
        assert context.package_dir is not None

        packages_dir = context.config.packages_dir
        try:
            packages_dir.mkdir(parents=True, exist_ok=True)
            # 暂存目录与包目录位于同一文件系统，保证最终移动是原子的
            staging = Path(tempfile.mkdtemp(prefix=f".{context.name}-", dir=packages_dir))
        except OSError as e:
            raise PackageIOError(f"无法创建暂存目录: {e}") from e

        try:
            await self._materialize(context, staging)
            self._commit(context, staging)
        finally:
            if staging.exists():
                shutil.rmtree(staging, ignore_errors=True)

    async def _materialize(self, context: InstallContext, staging: Path) -> None:
        variant = context.variant
        kind = variant.kind

        def on_entry(entry: str) -> None:
            context.install_stats['materialized_files'] += 1

        if kind is PackageKind.ARCHIVE:
            info(f"解压 {context.cached_path.name}", stage=LogStage.EXTRACT)
            context.report("extract", 0, 1, context.cached_path.name)
            await extract(context.cached_path, staging, on_entry)
            context.report("extract", 1, 1, context.cached_path.name)

        elif kind is PackageKind.BUILD:
            context.report("build", 0, len(variant.build_commands), "")
            builder = SourceBuilder(
                context.name,
                output_callback=lambda line: debug(line, stage=LogStage.BUILD),
            )
            copied = await builder.build(
                context.cached_path, variant.build_commands, variant.executables, staging
            )
            context.install_stats['materialized_files'] += len(copied)
            context.report("build", len(variant.build_commands), len(variant.build_commands), "")

        else:
            self._copy_binary(context, staging)

    def _copy_binary(self, context: InstallContext, staging: Path) -> None:
        """原样复制单文件制品到第一个可执行文件的位置"""
        variant = context.variant
        if variant.executables:
            relative = variant.executables[0].path
            if len(variant.executables) > 1:
                warning(
                    f"binary 类型只包含一个文件，其余 {len(variant.executables) - 1} 个可执行文件声明将被跳过",
                    stage=LogStage.COPY,
                )
        else:
            relative = context.cached_path.name

        target = safe_path_join(staging, relative)
        info(f"复制 {context.cached_path.name} → {relative}", stage=LogStage.COPY)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(context.cached_path, target)
            make_executable(target)
        except OSError as e:
            raise PackageIOError(f"复制制品失败 {relative}: {e}") from e
        context.install_stats['materialized_files'] += 1

    def _commit(self, context: InstallContext, staging: Path) -> None:
        """把暂存目录移入包目录

        包目录已存在说明是上一次失败安装遗留的孤立目录（没有有效记录），先删除。
        """
        package_dir = context.package_dir
        try:
            if os.path.lexists(package_dir):
                warning(f"删除遗留的未完成安装目录: {package_dir}", stage=LogStage.EXTRACT)
                remove_path(package_dir)
            os.replace(staging, package_dir)
        except OSError as e:
            raise PackageIOError(f"无法移动到包目录 {package_dir}: {e}") from e

        debug(f"已落地到 {package_dir}", stage=LogStage.EXTRACT)

    def get_progress_range(self) -> tuple[int, int]:
        return (50, 85)
