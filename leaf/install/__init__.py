"""安装核心模块

平台解析、下载缓存、解压、源码构建、链接与安装状态存储。

较重的组件（管理器、管道）请直接从各自子模块导入，避免与配置模块循环导入。
"""

from .errors import (
    LeafError,
    ManifestNotFound,
    ManifestInvalid,
    PackageNotFound,
    PlatformUnsupported,
    VariantUnavailable,
    AlreadyInstalled,
    NotInstalled,
    UnsupportedArchiveFormat,
    BuildCommandFailed,
    MissingExecutable,
    PackageIOError,
    NetworkError,
)
from .platform import PlatformKey, detect_platform, normalize_platform

__all__ = [
    # 错误分类
    "LeafError",
    "ManifestNotFound",
    "ManifestInvalid",
    "PackageNotFound",
    "PlatformUnsupported",
    "VariantUnavailable",
    "AlreadyInstalled",
    "NotInstalled",
    "UnsupportedArchiveFormat",
    "BuildCommandFailed",
    "MissingExecutable",
    "PackageIOError",
    "NetworkError",

    # 平台
    "PlatformKey",
    "detect_platform",
    "normalize_platform",
]
