"""
Leaf - 无需 sudo 的清单驱动包管理器

A simple, sudo-free package manager driven by a declarative JSON manifest.
"""

__version__ = "1.0.0"
__author__ = "Leaf Team"
__license__ = "MIT"

from .config.schema import InstalledRecord, LeafConfig, Manifest, Package, PlatformVariant
from .install.manager import PackageManager

__all__ = [
    "InstalledRecord",
    "LeafConfig",
    "Manifest",
    "Package",
    "PlatformVariant",
    "PackageManager",
    "__version__",
]
