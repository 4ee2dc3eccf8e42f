"""
记录步骤

所有前序步骤成功后写入安装记录，此后包才算已安装。
"""

from leaf.config.schema import InstalledRecord
from leaf.install.install_context import InstallContext
from leaf.install.state import InstalledStateStore
from .install_step import InstallStep


class RecordStep(InstallStep):
    """记录步骤"""

    def __init__(self):
        super().__init__("record", "写入安装记录")

    async def execute(self, context: InstallContext) -> None:
        assert context.variant is not None and context.platform is not None
        assert context.package_dir is not None

        record = InstalledRecord.from_package(
            context.name, context.package, context.platform, context.variant
        )
        InstalledStateStore(context.config).write(context.package_dir, record)
        context.record = record
        context.report("record", 1, 1, "")

    def get_progress_range(self) -> tuple[int, int]:
        return (95, 100)
