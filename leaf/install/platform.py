"""
平台解析器

把运行中的操作系统和 CPU 架构规范化为固定的平台键，并从包的平台映射中选出对应变体。
本模块没有副作用。
"""

from __future__ import annotations

import platform as _platform
from enum import Enum
from typing import TYPE_CHECKING, Optional, Tuple

from .errors import PlatformUnsupported, VariantUnavailable

if TYPE_CHECKING:
    from ..config.schema import LeafConfig, Package, PlatformVariant


class PlatformKey(str, Enum):
    """支持的平台键"""
    LINUX_X86_64 = "linux-x86_64"
    LINUX_AARCH64 = "linux-aarch64"
    MACOS_X86_64 = "macos-x86_64"
    MACOS_AARCH64 = "macos-aarch64"
    WINDOWS_X86_64 = "windows-x86_64"

    @property
    def is_windows(self) -> bool:
        return self.value.startswith("windows-")

    def __str__(self) -> str:
        return self.value


_SYSTEM_ALIASES = {
    "linux": "linux",
    "darwin": "macos",
    "macos": "macos",
    "windows": "windows",
}

_MACHINE_ALIASES = {
    "x86_64": "x86_64",
    "amd64": "x86_64",
    "x64": "x86_64",
    "aarch64": "aarch64",
    "arm64": "aarch64",
}


def normalize_platform(system: str, machine: str) -> Optional[PlatformKey]:
    """把 (system, machine) 规范化为平台键，无法识别时返回 None"""
    os_name = _SYSTEM_ALIASES.get((system or "").strip().lower())
    arch = _MACHINE_ALIASES.get((machine or "").strip().lower())
    if not os_name or not arch:
        return None

    try:
        return PlatformKey(f"{os_name}-{arch}")
    except ValueError:
        # 例如 windows-aarch64：组合本身不在支持列表中
        return None


def detect_platform() -> Optional[PlatformKey]:
    """检测当前进程所在平台"""
    return normalize_platform(_platform.system(), _platform.machine())


def resolve_platform(config: LeafConfig) -> PlatformKey:
    """返回配置中的平台键

    Raises:
        PlatformUnsupported: 当前平台不在支持列表中
    """
    if config.platform is None:
        raise PlatformUnsupported(_platform.system(), _platform.machine())
    return config.platform


def resolve_variant(package: Package, name: str, config: LeafConfig) -> Tuple[PlatformKey, PlatformVariant]:
    """为当前平台选择包变体

    Args:
        package: 包定义
        name: 包名（用于错误信息）
        config: 运行配置

    Returns:
        (平台键, 平台变体)

    Raises:
        PlatformUnsupported: 当前平台不受支持
        VariantUnavailable: 包没有当前平台的条目
    """
    key = resolve_platform(config)
    variant = package.platforms.get(key.value)
    if variant is None:
        raise VariantUnavailable(name, key.value)
    return key, variant
