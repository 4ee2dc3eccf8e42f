"""配置和 Schema 模块

提供包清单、安装记录和运行配置的模型，以及 config.json / packages.json 的加载与刷新。
"""

from .schema import (
    ExecutableSpec,
    InstalledRecord,
    LeafConfig,
    Manifest,
    Package,
    PackageKind,
    PlatformVariant,
)
from .loader import (
    ConfigLoader,
    ConfigError,
    ConfigValidationError,
    load_or_create_config,
    load_manifest,
    parse_manifest_text,
    config_loader,
)

__all__ = [
    # 模型
    "ExecutableSpec",
    "InstalledRecord",
    "LeafConfig",
    "Manifest",
    "Package",
    "PackageKind",
    "PlatformVariant",

    # 加载器
    "ConfigLoader",
    "ConfigError",
    "ConfigValidationError",
    "load_or_create_config",
    "load_manifest",
    "parse_manifest_text",

    # 单例
    "config_loader",
]
