"""
安装管道单元测试

测试步骤顺序、进度范围校验和错误传播。
"""

import pytest

from leaf.config.schema import Package
from leaf.install.errors import LeafError, PackageIOError, VariantUnavailable
from leaf.install.install_context import OVERALL_STAGE, InstallContext
from leaf.install.install_pipeline import InstallPipeline
from leaf.install.steps import InstallStep


class RecordingStep(InstallStep):
    """记录执行顺序的模拟步骤"""

    def __init__(self, name, progress_range, log, fail=False, done=1, total=1):
        super().__init__(name, f"mock {name}")
        self._progress_range = progress_range
        self.log = log
        self.fail = fail
        self.done = done
        self.total = total

    async def execute(self, context: InstallContext) -> None:
        self.log.append(self.name)
        context.report(self.name, self.done, self.total, "")
        if self.fail:
            raise PackageIOError(f"{self.name} failed")

    def get_progress_range(self):
        return self._progress_range


def _package():
    return Package.model_validate({
        "description": "d",
        "version": "1.0",
        "platforms": {"macos-aarch64": {"url": "http://x/foo.tar.gz"}},
    })


def _empty_pipeline() -> InstallPipeline:
    pipeline = InstallPipeline()
    for step in pipeline.get_steps():
        pipeline.remove_step(step.name)
    return pipeline


class TestInstallPipeline:
    """InstallPipeline 测试"""

    def test_default_steps(self):
        pipeline = InstallPipeline()
        assert [s.name for s in pipeline.get_steps()] == ["resolve", "fetch", "materialize", "link", "record"]
        assert pipeline.validate_pipeline() == []

    def test_validate_detects_gaps(self):
        pipeline = InstallPipeline()
        pipeline.remove_step("fetch")
        errors = pipeline.validate_pipeline()
        assert any("materialize" in e for e in errors)

    def test_validate_empty(self):
        assert _empty_pipeline().validate_pipeline() == ["安装管道中没有步骤"]

    @pytest.mark.asyncio
    async def test_steps_run_in_order(self, config):
        log = []
        pipeline = _empty_pipeline()
        pipeline.add_step(RecordingStep("b", (50, 100), log))
        pipeline.add_step(RecordingStep("a", (0, 50), log), position=0)
        stages = []

        context = await pipeline.execute(
            config, "foo", _package(),
            progress_callback=lambda stage, cur, total, msg: stages.append(stage),
        )

        assert log == ["a", "b"]
        assert [s for s in stages if s != OVERALL_STAGE] == ["a", "b"]
        assert context.install_stats["end_time"] >= context.install_stats["start_time"]

    @pytest.mark.asyncio
    async def test_overall_progress_follows_step_ranges(self, config):
        """步骤内进度按各自范围换算为总进度，步骤结束时推进到范围终点"""
        log = []
        pipeline = _empty_pipeline()
        pipeline.add_step(RecordingStep("a", (0, 40), log, done=1, total=2))
        pipeline.add_step(RecordingStep("b", (40, 100), log, done=0, total=0))
        overall = []

        def on_progress(stage, cur, total, msg):
            if stage == OVERALL_STAGE:
                assert total == 100
                overall.append(cur)

        await pipeline.execute(config, "foo", _package(), progress_callback=on_progress)

        assert overall == [20, 40, 40, 100]

    @pytest.mark.asyncio
    async def test_invalid_ranges_rejected_before_running(self, config):
        log = []
        pipeline = _empty_pipeline()
        pipeline.add_step(RecordingStep("a", (0, 40), log))
        pipeline.add_step(RecordingStep("b", (50, 100), log))

        with pytest.raises(LeafError, match="b"):
            await pipeline.execute(config, "foo", _package())

        assert log == []

    @pytest.mark.asyncio
    async def test_failure_stops_pipeline(self, config):
        """失败原样传播，后续步骤不执行"""
        log = []
        pipeline = _empty_pipeline()
        pipeline.add_step(RecordingStep("a", (0, 30), log))
        pipeline.add_step(RecordingStep("b", (30, 60), log, fail=True))
        pipeline.add_step(RecordingStep("c", (60, 100), log))

        with pytest.raises(PackageIOError, match="b failed"):
            await pipeline.execute(config, "foo", _package())

        assert log == ["a", "b"]

    @pytest.mark.asyncio
    async def test_variant_unavailable(self, config):
        """linux 配置下只提供 macOS 变体的包在解析步骤失败，不产生任何文件"""
        with pytest.raises(VariantUnavailable):
            await InstallPipeline().execute(config, "foo", _package())

        assert list(config.packages_dir.iterdir()) == []
        assert list(config.cache_dir.iterdir()) == []
