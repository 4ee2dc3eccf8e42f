"""
配置与清单 Schema 定义

使用 Pydantic 定义包清单、安装记录和运行配置模型。
多态的 executables 字段在模型校验时一次性规范化为 ExecutableSpec 列表，下游不再解释原始形态。
"""

from __future__ import annotations

import os
import re
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from ..install.errors import ManifestInvalid, PackageNotFound
from ..install.platform import PlatformKey

DEFAULT_MANIFEST_URL = "https://raw.githubusercontent.com/ktauchathuranga/leaf/main/packages.json"
CONFIG_VERSION = "1.0.0"

# 包名同时用作目录名
_PACKAGE_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._+-]*$")


def is_valid_package_name(name: str) -> bool:
    """包名必须能安全地用作 packages/ 下的目录名"""
    return bool(name) and bool(_PACKAGE_NAME_RE.match(name))


class PackageKind(str, Enum):
    """包类型枚举"""
    ARCHIVE = "archive"
    BINARY = "binary"
    BUILD = "build"


class ExecutableSpec(BaseModel):
    """可执行文件声明"""
    path: str = Field(..., description="相对于包安装目录的路径", min_length=1)
    name: Optional[str] = Field(None, description="bin 目录中的别名")

    model_config = {"extra": "forbid"}

    @field_validator("path")
    @classmethod
    def validate_path(cls, v: str) -> str:
        """路径必须是相对路径且不能穿越出包目录"""
        v = v.strip().replace("\\", "/")
        if not v:
            raise ValueError("可执行文件路径不能为空")
        if v.startswith("/") or re.match(r"^[A-Za-z]:", v):
            raise ValueError(f"可执行文件路径必须是相对路径: {v}")
        if ".." in v.split("/"):
            raise ValueError(f"可执行文件路径不能包含 '..': {v}")
        return v

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        if not v or v in (".", "..") or "/" in v or "\\" in v:
            raise ValueError(f"别名必须是单纯的文件名: {v!r}")
        return v

    @property
    def alias(self) -> str:
        """bin 目录中的名称：显式别名或路径的最后一段"""
        if self.name:
            return self.name
        return [part for part in self.path.split("/") if part][-1]


class PlatformVariant(BaseModel):
    """包的平台变体"""
    url: str = Field(..., description="制品下载地址", min_length=1)
    kind: PackageKind = Field(PackageKind.ARCHIVE, alias="type", description="包类型")
    executables: List[ExecutableSpec] = Field(default_factory=list, description="可执行文件列表")
    build_commands: List[str] = Field(default_factory=list, description="构建命令（仅 build 类型）")

    model_config = {
        "extra": "ignore",
        "populate_by_name": True,
    }

    @field_validator("kind", mode="before")
    @classmethod
    def default_kind(cls, v: Any) -> Any:
        return PackageKind.ARCHIVE if v is None else v

    @field_validator("executables", mode="before")
    @classmethod
    def normalize_executables(cls, v: Any) -> List[Any]:
        """把 string | [string] | [{path, name?}] 规范化为统一列表"""
        if v is None:
            return []
        if isinstance(v, str):
            return [{"path": v}]
        if isinstance(v, ExecutableSpec):
            return [v]
        if not isinstance(v, list):
            raise ValueError("executables 必须是字符串、字符串列表或对象列表")

        normalized: List[Any] = []
        for item in v:
            if isinstance(item, str):
                normalized.append({"path": item})
            elif isinstance(item, (dict, ExecutableSpec)):
                normalized.append(item)
            else:
                raise ValueError(f"无法识别的 executables 条目: {item!r}")
        return normalized

    @field_validator("build_commands", mode="before")
    @classmethod
    def normalize_build_commands(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        return v


class Package(BaseModel):
    """包定义"""
    description: str = Field(..., description="包描述")
    version: str = Field(..., description="版本号", min_length=1)
    tags: List[str] = Field(default_factory=list, description="标签")
    platforms: Dict[str, PlatformVariant] = Field(..., description="平台键到变体的映射")

    model_config = {"extra": "ignore"}

    @field_validator("tags", mode="before")
    @classmethod
    def normalize_tags(cls, v: Any) -> Any:
        if v is None:
            return []
        return v

    @field_validator("tags")
    @classmethod
    def dedupe_tags(cls, v: List[str]) -> List[str]:
        """去除空白和重复项，保持顺序"""
        cleaned: List[str] = []
        for tag in v:
            tag = tag.strip()
            if tag and tag not in cleaned:
                cleaned.append(tag)
        return cleaned

    def supports(self, platform: PlatformKey | str) -> bool:
        return str(platform) in self.platforms

    def variant_for(self, platform: PlatformKey | str) -> Optional[PlatformVariant]:
        return self.platforms.get(str(platform))

    def matches(self, term: str) -> bool:
        """名称以外的匹配：描述或标签包含搜索词（不区分大小写）"""
        term = term.lower()
        if term in self.description.lower():
            return True
        return any(term in tag.lower() for tag in self.tags)


class Manifest(BaseModel):
    """包清单：包名到包定义的映射"""
    packages: Dict[str, Package] = Field(default_factory=dict)

    @classmethod
    def from_data(cls, data: Any) -> "Manifest":
        """从已解析的 JSON 数据创建清单

        逐条宽松解析：无效条目被跳过并给出警告，其余条目照常加载。

        Raises:
            ManifestInvalid: 根节点不是对象
        """
        from ..utils.logging import warning

        if not isinstance(data, dict):
            raise ManifestInvalid("清单根节点必须是 JSON 对象")

        packages: Dict[str, Package] = {}
        for name, raw in data.items():
            if not is_valid_package_name(name):
                warning(f"跳过非法包名: {name!r}")
                continue
            try:
                packages[name] = Package.model_validate(raw)
            except ValidationError as e:
                warning(f"跳过无效的包定义 '{name}': {e.error_count()} 个错误")
        return cls(packages=packages)

    def __contains__(self, name: str) -> bool:
        return name in self.packages

    def __len__(self) -> int:
        return len(self.packages)

    def get(self, name: str) -> Package:
        """按名称获取包

        Raises:
            PackageNotFound: 清单中没有该包
        """
        package = self.packages.get(name)
        if package is None:
            raise PackageNotFound(name)
        return package

    def available(self, platform: PlatformKey | str) -> List[tuple[str, Package]]:
        """当前平台可用的包（按名称排序）"""
        return sorted(
            ((name, pkg) for name, pkg in self.packages.items() if pkg.supports(platform)),
            key=lambda item: item[0],
        )

    def search(self, term: str, platform: PlatformKey | str) -> List[tuple[str, Package]]:
        """在当前平台可用的包中按名称、描述、标签搜索"""
        needle = term.strip().lower()
        return [
            (name, pkg)
            for name, pkg in self.available(platform)
            if needle in name.lower() or pkg.matches(needle)
        ]


class InstalledRecord(BaseModel):
    """安装记录

    安装成功后写入包目录；它的存在（且有效）是“已安装”的唯一依据。
    """
    name: str = Field(..., min_length=1)
    version: str
    description: str = ""
    tags: List[str] = Field(default_factory=list)
    platform: str
    variant: PlatformVariant
    installed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = {"extra": "ignore"}

    @classmethod
    def from_package(cls, name: str, package: Package, platform: PlatformKey | str,
                     variant: PlatformVariant) -> "InstalledRecord":
        return cls(
            name=name,
            version=package.version,
            description=package.description,
            tags=list(package.tags),
            platform=str(platform),
            variant=variant,
        )

    @property
    def executables(self) -> List[ExecutableSpec]:
        return self.variant.executables

    def to_json(self) -> str:
        return self.model_dump_json(indent=2, by_alias=True)


class LeafConfig(BaseModel):
    """运行配置（持久化为 config.json）

    platform 不持久化，每次加载时检测。
    """
    version: str = Field(CONFIG_VERSION, description="配置版本")
    install_dir: Path = Field(..., description="Leaf 根目录")
    bin_dir: Path = Field(..., description="可执行文件链接目录")
    packages_dir: Path = Field(..., description="包安装目录")
    cache_dir: Path = Field(..., description="下载缓存目录")
    manifest_url: str = Field(DEFAULT_MANIFEST_URL, description="远程清单地址")
    platform: Optional[PlatformKey] = Field(None, exclude=True, description="当前平台键")

    model_config = {
        "extra": "ignore",
        "validate_assignment": True,
    }

    @model_validator(mode="after")
    def validate_directories(self) -> "LeafConfig":
        if self.bin_dir == self.packages_dir:
            raise ValueError("bin_dir 与 packages_dir 不能相同")
        return self

    @classmethod
    def default(cls, home: Optional[Path] = None, bin_dir: Optional[Path] = None,
                platform: Optional[PlatformKey] = None) -> "LeafConfig":
        """默认布局：~/.local/leaf 与 ~/.local/bin

        LEAF_HOME / LEAF_BIN_DIR 环境变量可覆盖默认目录；
        自定义根目录而未指定 bin 目录时，bin 目录位于根目录下。
        """
        from ..utils.paths import expand_path

        custom_home = home is not None or bool(os.environ.get("LEAF_HOME"))
        if home is None:
            env_home = os.environ.get("LEAF_HOME")
            home = expand_path(env_home) if env_home else Path.home() / ".local" / "leaf"
        home = Path(home)

        if bin_dir is None:
            env_bin = os.environ.get("LEAF_BIN_DIR")
            if env_bin:
                bin_dir = expand_path(env_bin)
            elif custom_home:
                bin_dir = home / "bin"
            else:
                bin_dir = Path.home() / ".local" / "bin"

        return cls(
            install_dir=home,
            bin_dir=Path(bin_dir),
            packages_dir=home / "packages",
            cache_dir=home / "cache",
            platform=platform,
        )

    @property
    def config_path(self) -> Path:
        return self.install_dir / "config.json"

    @property
    def manifest_path(self) -> Path:
        return self.install_dir / "packages.json"

    def package_dir(self, name: str) -> Path:
        """包的安装目录

        Raises:
            ValueError: 包名不能安全地用作目录名
        """
        if not is_valid_package_name(name):
            raise ValueError(f"非法包名: {name!r}")
        return self.packages_dir / name

    def to_json(self) -> str:
        return self.model_dump_json(indent=2)
