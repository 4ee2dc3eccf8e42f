"""
安装上下文模块

定义安装过程中各步骤共享的数据结构。
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx

from ..config.schema import InstalledRecord, LeafConfig, Package, PlatformVariant
from .platform import PlatformKey

# 进度回调类型: (阶段, 当前值, 总量, 消息)
ProgressCallback = Callable[[str, int, int, str], None]

# 总进度事件的阶段名，当前值为 0-100 的百分比
OVERALL_STAGE = "install"


@dataclass
class InstallContext:
    """安装上下文，包含安装过程中的共享数据"""
    config: LeafConfig
    name: str
    package: Package
    progress_callback: Optional[ProgressCallback] = None
    client: Optional[httpx.AsyncClient] = None

    # 安装过程中生成的数据
    platform: Optional[PlatformKey] = None
    variant: Optional[PlatformVariant] = None
    package_dir: Optional[Path] = None
    cached_path: Optional[Path] = None
    linked: List[Path] = field(default_factory=list)
    record: Optional[InstalledRecord] = None

    # 当前步骤在总进度中的范围 (起始百分比, 结束百分比)
    progress_range: Tuple[int, int] = (0, 100)

    # 统计信息
    install_stats: Dict[str, Any] = field(default_factory=lambda: {
        'start_time': 0.0,
        'end_time': 0.0,
        'downloaded_bytes': 0,
        'materialized_files': 0,
    })

    def overall_percent(self, current: int, total: int) -> int:
        """把当前步骤内的进度换算为总进度百分比"""
        start, end = self.progress_range
        fraction = min(current / total, 1.0) if total > 0 else 0.0
        return start + int((end - start) * fraction)

    def report(self, stage: str, current: int, total: int, message: str = "") -> None:
        """向调用方报告步骤进度，并随后报告换算后的总进度"""
        if not self.progress_callback:
            return
        self.progress_callback(stage, current, total, message)
        self.progress_callback(OVERALL_STAGE, self.overall_percent(current, total), 100, message)
