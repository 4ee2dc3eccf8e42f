"""
安装管道模块

使用管道模式严格按顺序协调安装步骤：解析 → 下载 → 落地 → 链接 → 记录。
任何步骤失败时错误原样向上传播，不做重试。
"""

import time
from typing import List, Optional

import httpx

from ..config.schema import LeafConfig, Package
from ..utils.logging import debug, info, success
from .errors import LeafError
from .install_context import OVERALL_STAGE, InstallContext, ProgressCallback
from .steps.install_step import InstallStep
from .steps.resolve_step import ResolveStep
from .steps.fetch_step import FetchStep
from .steps.materialize_step import MaterializeStep
from .steps.link_step import LinkStep
from .steps.record_step import RecordStep


class InstallPipeline:
    """安装管道，负责协调安装步骤的执行"""

    def __init__(self):
        self._steps: List[InstallStep] = []
        self._init_default_steps()

    def _init_default_steps(self):
        """初始化默认的安装步骤"""
        self._steps = [
            ResolveStep(),
            FetchStep(),
            MaterializeStep(),
            LinkStep(),
            RecordStep(),
        ]

    def add_step(self, step: InstallStep, position: Optional[int] = None):
        """添加安装步骤"""
        if position is None:
            self._steps.append(step)
        else:
            self._steps.insert(position, step)

    def remove_step(self, step_name: str):
        """移除安装步骤"""
        self._steps = [step for step in self._steps if step.name != step_name]

    def get_steps(self) -> List[InstallStep]:
        """获取所有安装步骤"""
        return self._steps.copy()

    async def execute(
        self,
        config: LeafConfig,
        name: str,
        package: Package,
        progress_callback: Optional[ProgressCallback] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> InstallContext:
        """执行安装管道

        Args:
            config: 运行配置
            name: 包名
            package: 包定义
            progress_callback: 进度回调函数
            client: 可选的 HTTP 客户端

        Returns:
            InstallContext: 安装上下文，包含安装记录

        Raises:
            LeafError: 步骤进度范围无效，或任一步骤失败（原样传播）
        """
        errors = self.validate_pipeline()
        if errors:
            raise LeafError("; ".join(errors))

        context = InstallContext(
            config=config,
            name=name,
            package=package,
            progress_callback=progress_callback,
            client=client,
        )
        context.install_stats['start_time'] = time.time()

        info(f"正在安装 {name} {package.version}")
        try:
            for step in self._steps:
                debug(f"执行步骤: {step.description}")
                context.progress_range = step.get_progress_range()
                await step.execute(context)
                if progress_callback:
                    progress_callback(OVERALL_STAGE, context.progress_range[1], 100, step.description)
        except Exception as e:
            context.install_stats['end_time'] = time.time()
            debug(f"安装 {name} 失败于步骤 '{step.name}': {e}")
            raise

        context.install_stats['end_time'] = time.time()
        elapsed = context.install_stats['end_time'] - context.install_stats['start_time']
        success(f"{name} {package.version} 安装完成 ({elapsed:.1f}秒)")
        return context

    def validate_pipeline(self) -> List[str]:
        """验证安装管道的完整性

        Returns:
            List[str]: 验证错误列表，空列表表示验证通过
        """
        errors = []

        if not self._steps:
            errors.append("安装管道中没有步骤")
            return errors

        prev_end = 0
        for step in self._steps:
            start, end = step.get_progress_range()
            if start != prev_end:
                errors.append(f"步骤 '{step.name}' 的进度范围不连续: 期望起始 {prev_end}%, 实际 {start}%")
            if start >= end:
                errors.append(f"步骤 '{step.name}' 的进度范围无效: {start}% - {end}%")
            prev_end = end

        if prev_end != 100:
            errors.append(f"安装管道的总进度范围不是100%: {prev_end}%")

        return errors
