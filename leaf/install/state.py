"""
安装状态存储

每个包目录中的 leaf-package.json 是“已安装”的唯一依据，目录存在本身不代表已安装。
安装时最后写入记录，删除时最先删除记录，因此任何中途崩溃都不会把包误判为已安装。
"""

import json
import shutil
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from ..config.schema import InstalledRecord, LeafConfig, is_valid_package_name
from ..utils.logging import get_stage_logger, LogStage
from ..utils.paths import atomic_write_text
from .errors import PackageIOError

logger = get_stage_logger(LogStage.RECORD)

RECORD_FILENAME = "leaf-package.json"


class InstalledStateStore:
    """安装状态存储"""

    def __init__(self, config: LeafConfig):
        self.config = config

    @staticmethod
    def record_path(package_dir: Path) -> Path:
        return Path(package_dir) / RECORD_FILENAME

    def write(self, package_dir: Path, record: InstalledRecord) -> Path:
        """原子写入安装记录

        Raises:
            PackageIOError: 写入失败
        """
        path = self.record_path(package_dir)
        try:
            atomic_write_text(path, record.to_json())
        except OSError as e:
            raise PackageIOError(f"写入安装记录失败 {path}: {e}") from e
        logger.debug(f"已写入安装记录: {path}")
        return path

    def read(self, package_dir: Path) -> Optional[InstalledRecord]:
        """读取安装记录；不存在或无效时返回 None"""
        path = self.record_path(package_dir)
        if not path.is_file():
            return None

        try:
            return InstalledRecord.model_validate(json.loads(path.read_text(encoding="utf-8")))
        except (json.JSONDecodeError, ValidationError, UnicodeDecodeError) as e:
            logger.warning(f"安装记录无效，视为未安装: {path} ({e.__class__.__name__})")
            return None
        except OSError as e:
            raise PackageIOError(f"读取安装记录失败 {path}: {e}") from e

    def get(self, name: str) -> Optional[InstalledRecord]:
        if not is_valid_package_name(name):
            return None
        return self.read(self.config.package_dir(name))

    def is_installed(self, name: str) -> bool:
        return self.get(name) is not None

    def list(self) -> List[InstalledRecord]:
        """所有已安装包的记录（按名称排序，忽略暂存目录）"""
        packages_dir = Path(self.config.packages_dir)
        if not packages_dir.is_dir():
            return []

        records = []
        for entry in sorted(packages_dir.iterdir()):
            if not entry.is_dir() or entry.name.startswith("."):
                continue
            record = self.read(entry)
            if record is not None:
                records.append(record)
        return records

    def delete_record(self, package_dir: Path) -> None:
        """只删除安装记录文件"""
        path = self.record_path(package_dir)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise PackageIOError(f"删除安装记录失败 {path}: {e}") from e

    def delete_files(self, package_dir: Path) -> None:
        """删除包目录树"""
        package_dir = Path(package_dir)
        if not package_dir.exists():
            return
        try:
            shutil.rmtree(package_dir)
        except OSError as e:
            raise PackageIOError(f"删除包目录失败 {package_dir}: {e}") from e

    def remove(self, package_dir: Path) -> None:
        """先删除记录，再删除其余文件"""
        self.delete_record(package_dir)
        self.delete_files(package_dir)
