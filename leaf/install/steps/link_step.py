"""
链接步骤

在 bin 目录中为包内可执行文件创建别名。
"""

from leaf.install import linker
from leaf.install.install_context import InstallContext
from .install_step import InstallStep


class LinkStep(InstallStep):
    """链接步骤"""

    def __init__(self):
        super().__init__("link", "链接可执行文件")

    async def execute(self, context: InstallContext) -> None:
        assert context.variant is not None and context.package_dir is not None

        specs = context.variant.executables
        context.report("link", 0, len(specs), "")
        context.linked = linker.link(
            context.package_dir, specs, context.config.bin_dir, context.platform
        )
        context.report("link", len(specs), len(specs), "")

    def get_progress_range(self) -> tuple[int, int]:
        return (85, 95)
