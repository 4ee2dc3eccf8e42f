"""
平台解析步骤

为当前平台选择包变体并确定包安装目录。
"""

from leaf.install.install_context import InstallContext
from leaf.install.platform import resolve_variant
from leaf.utils.logging import debug, LogStage
from .install_step import InstallStep


class ResolveStep(InstallStep):
    """平台解析步骤"""

    def __init__(self):
        super().__init__("resolve", "解析平台变体")

    async def execute(self, context: InstallContext) -> None:
        context.report("resolve", 0, 1, "解析平台变体")

        platform, variant = resolve_variant(context.package, context.name, context.config)
        context.platform = platform
        context.variant = variant
        context.package_dir = context.config.package_dir(context.name)

        debug(
            f"{context.name}: 平台={platform.value} 类型={variant.kind.value} "
            f"可执行文件={len(variant.executables)}",
            stage=LogStage.RESOLVE,
        )
        context.report("resolve", 1, 1, platform.value)

    def get_progress_range(self) -> tuple[int, int]:
        return (0, 5)
