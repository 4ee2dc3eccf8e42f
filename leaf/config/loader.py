"""
配置加载器

负责 config.json 的加载/创建，以及本地清单 packages.json 的读取与校验。
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError

from ..install.errors import ManifestInvalid, ManifestNotFound
from ..install.platform import PlatformKey, detect_platform
from ..utils.paths import atomic_write_text, ensure_directory
from .schema import LeafConfig, Manifest


class ConfigError(Exception):
    """配置错误基类"""
    pass


class ConfigValidationError(ConfigError):
    """配置验证错误"""

    def __init__(self, message: str, errors: List[Dict[str, Any]]):
        super().__init__(message)
        self.errors = errors

    def format_errors(self) -> str:
        """格式化错误信息为人类可读的格式"""
        formatted = []
        for error in self.errors:
            loc = " -> ".join(str(item) for item in error.get("loc", []))
            msg = error.get("msg", "未知错误")
            if loc:
                formatted.append(f"字段 '{loc}': {msg}")
            else:
                formatted.append(f"根级别: {msg}")
        return "\n".join(formatted)


def looks_like_html(content: str) -> bool:
    """判断内容是否是 HTML 页面（常见于错误的下载地址）"""
    head = content.lstrip()[:64].lower()
    return head.startswith("<!doctype html") or head.startswith("<html")


def parse_manifest_text(content: str) -> Dict[str, Any]:
    """校验并解析清单文本

    Returns:
        Dict: 解析后的 JSON 对象

    Raises:
        ManifestInvalid: 内容为空、是 HTML、不是 JSON 或根节点不是对象
    """
    if not content.strip():
        raise ManifestInvalid("清单内容为空")

    if looks_like_html(content):
        raise ManifestInvalid("清单内容是 HTML 而不是 JSON，下载地址可能不正确")

    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        preview = content[:200]
        raise ManifestInvalid(f"清单不是有效的 JSON: {e}（内容预览: {preview!r}）") from e

    if not isinstance(data, dict):
        raise ManifestInvalid("清单根节点必须是 JSON 对象")

    return data


class ConfigLoader:
    """配置加载器"""

    def load_or_create(
        self,
        home: Optional[Path] = None,
        bin_dir: Optional[Path] = None,
        platform: Optional[PlatformKey] = None,
    ) -> LeafConfig:
        """加载 config.json，不存在时按默认布局创建

        Args:
            home: Leaf 根目录（默认 ~/.local/leaf 或 LEAF_HOME）
            bin_dir: bin 目录（默认 ~/.local/bin 或 LEAF_BIN_DIR）
            platform: 平台键（默认自动检测）

        Returns:
            LeafConfig: 目录均已创建的配置

        Raises:
            ConfigError: config.json 无法读取或内容无效
        """
        detected = platform if platform is not None else detect_platform()
        defaults = LeafConfig.default(home=home, bin_dir=bin_dir, platform=detected)
        config_path = defaults.config_path

        if config_path.exists():
            config = self.load_from_file(config_path)
            config.platform = detected
        else:
            config = defaults

        for directory in (config.install_dir, config.bin_dir, config.packages_dir, config.cache_dir):
            try:
                ensure_directory(directory)
            except OSError as e:
                raise ConfigError(f"无法创建目录 {directory}: {e}") from e

        if not config_path.exists():
            self.save(config)

        return config

    def load_from_file(self, config_path: Union[str, Path]) -> LeafConfig:
        """从文件加载配置

        Raises:
            ConfigError: 配置加载或验证错误
        """
        config_path = Path(config_path)
        try:
            raw_data = json.loads(config_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ConfigError(f"配置文件 JSON 解析错误: {e}") from e
        except OSError as e:
            raise ConfigError(f"文件读取错误: {e}") from e

        if not isinstance(raw_data, dict):
            raise ConfigError("配置文件根级别必须是对象")

        try:
            return LeafConfig.model_validate(raw_data)
        except ValidationError as e:
            raise ConfigValidationError("配置验证失败", list(e.errors())) from e

    def save(self, config: LeafConfig) -> None:
        """保存配置到 config.json

        Raises:
            ConfigError: 保存错误
        """
        try:
            atomic_write_text(config.config_path, config.to_json())
        except OSError as e:
            raise ConfigError(f"保存配置文件失败: {e}") from e

    def load_manifest(self, config: LeafConfig) -> Manifest:
        """读取本地清单副本

        Raises:
            ManifestNotFound: packages.json 不存在
            ManifestInvalid: 内容无效
        """
        manifest_path = config.manifest_path
        if not manifest_path.exists():
            raise ManifestNotFound(manifest_path)

        content = manifest_path.read_text(encoding="utf-8")
        return Manifest.from_data(parse_manifest_text(content))


# 全局加载器实例
config_loader = ConfigLoader()


def load_or_create_config(home: Optional[Path] = None, bin_dir: Optional[Path] = None,
                          platform: Optional[PlatformKey] = None) -> LeafConfig:
    """便捷函数：加载或创建配置"""
    return config_loader.load_or_create(home=home, bin_dir=bin_dir, platform=platform)


def load_manifest(config: LeafConfig) -> Manifest:
    """便捷函数：读取本地清单"""
    return config_loader.load_manifest(config)
