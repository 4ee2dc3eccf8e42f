"""
可执行文件链接器

在共享 bin 目录中以别名暴露包内可执行文件：支持无特权符号链接的平台创建符号链接，
Windows 上改为复制文件。重复执行得到相同的最终状态。
"""

import filecmp
import os
import shutil
from pathlib import Path
from typing import List, Optional

from ..config.schema import ExecutableSpec
from ..utils.logging import get_stage_logger, LogStage
from ..utils.paths import is_within, make_executable, safe_path_join
from .errors import PackageIOError
from .platform import PlatformKey

logger = get_stage_logger(LogStage.LINK)


def supports_symlinks(platform: Optional[PlatformKey]) -> bool:
    """Windows 上创建符号链接需要特权或开发者模式，统一改用复制"""
    if platform is not None:
        return not platform.is_windows
    return os.name != "nt"


def _entry_exists(path: Path) -> bool:
    # lexists 对悬空符号链接同样返回 True
    return os.path.lexists(path)


def _link_target(path: Path) -> Optional[Path]:
    if not path.is_symlink():
        return None
    target = Path(os.readlink(path))
    if not target.is_absolute():
        target = path.parent / target
    return target


def link(package_dir: Path, specs: List[ExecutableSpec], bin_dir: Path,
         platform: Optional[PlatformKey] = None) -> List[Path]:
    """为每个可执行文件在 bin 目录中创建别名

    目标不存在时给出警告并跳过；别名处已有条目时先删除。

    Returns:
        List[Path]: 已创建的别名路径

    Raises:
        PackageIOError: 删除旧条目或创建链接失败
    """
    package_dir = Path(package_dir)
    bin_dir = Path(bin_dir)
    use_symlinks = supports_symlinks(platform)
    created: List[Path] = []

    for spec in specs:
        target = safe_path_join(package_dir, spec.path).resolve()
        alias_path = bin_dir / spec.alias

        if not target.exists():
            logger.warning(f"可执行文件不存在，跳过: {spec.path}")
            continue

        try:
            bin_dir.mkdir(parents=True, exist_ok=True)
            if _entry_exists(alias_path):
                previous = _link_target(alias_path)
                if previous is not None and not is_within(previous, package_dir):
                    logger.warning(f"别名 {spec.alias} 原指向 {previous}，将被替换")
                if alias_path.is_dir() and not alias_path.is_symlink():
                    raise PackageIOError(f"别名位置是一个目录，无法替换: {alias_path}")
                alias_path.unlink()

            if use_symlinks:
                os.symlink(target, alias_path)
            else:
                shutil.copy2(target, alias_path)
                make_executable(alias_path)
        except OSError as e:
            raise PackageIOError(f"创建链接失败 {alias_path}: {e}") from e

        logger.debug(f"{spec.alias} → {target}")
        created.append(alias_path)

    return created


def owns_alias(alias_path: Path, package_dir: Path, spec: ExecutableSpec,
               platform: Optional[PlatformKey] = None) -> bool:
    """别名是否属于该包

    符号链接模式下只认指向包目录的链接；复制模式下只认与包内目标内容相同的普通文件。
    """
    target = _link_target(alias_path)
    if target is not None:
        return is_within(target, package_dir)

    if supports_symlinks(platform) or not alias_path.is_file():
        return False

    source = safe_path_join(package_dir, spec.path)
    if not source.is_file():
        return False
    return filecmp.cmp(alias_path, source, shallow=False)


def linked_aliases(package_dir: Path, specs: List[ExecutableSpec], bin_dir: Path,
                   platform: Optional[PlatformKey] = None) -> List[Path]:
    """bin 目录中当前属于该包的别名"""
    owned = []
    for spec in specs:
        alias_path = Path(bin_dir) / spec.alias
        if alias_path in owned or not _entry_exists(alias_path):
            continue
        if owns_alias(alias_path, Path(package_dir), spec, platform):
            owned.append(alias_path)
    return owned


def unlink(package_dir: Path, specs: List[ExecutableSpec], bin_dir: Path,
           platform: Optional[PlatformKey] = None) -> List[Path]:
    """删除包在 bin 目录中的别名

    不属于本包的条目（其它包的链接或副本，用户自己的文件）保持不变。
    调用时包文件必须仍然存在。

    Returns:
        List[Path]: 已删除的别名路径
    """
    removed: List[Path] = []

    for alias_path in linked_aliases(package_dir, specs, bin_dir, platform):
        try:
            alias_path.unlink()
        except OSError as e:
            raise PackageIOError(f"删除链接失败 {alias_path}: {e}") from e
        removed.append(alias_path)

    for spec in specs:
        alias_path = Path(bin_dir) / spec.alias
        if _entry_exists(alias_path) and alias_path not in removed:
            logger.warning(f"别名 {spec.alias} 不属于此包，保留")

    return removed


def find_managed_links(bin_dir: Path, packages_dir: Path) -> List[Path]:
    """bin 目录中指向包目录树的符号链接"""
    bin_dir = Path(bin_dir)
    if not bin_dir.is_dir():
        return []

    managed = []
    for entry in sorted(bin_dir.iterdir()):
        target = _link_target(entry)
        if target is not None and is_within(target, packages_dir):
            managed.append(entry)
    return managed
