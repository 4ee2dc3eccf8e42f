"""
源码构建器（type = build）

解压到临时构建目录 → 确定源码根目录 → 依次执行构建命令 → 复制可执行文件到目标目录。
构建目录是作用域资源，无论成功或失败都会被删除。
"""

import asyncio
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

from ..config.schema import ExecutableSpec
from ..utils.logging import get_stage_logger, LogStage
from ..utils.paths import make_executable, safe_path_join
from .errors import BuildCommandFailed, MissingExecutable, PackageIOError
from .extractor import extract

logger = get_stage_logger(LogStage.BUILD)

# 构建输出回调: 单行文本
OutputCallback = Callable[[str], None]


@dataclass
class CommandResult:
    """单条构建命令的执行结果"""
    command: str
    exit_status: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.exit_status == 0


def find_source_root(scratch_dir: Path) -> Path:
    """确定有效的源码根目录

    构建目录中只有一个子目录且没有其它条目时，该子目录就是根目录；
    否则构建目录本身是根目录。
    """
    entries = list(scratch_dir.iterdir())
    if len(entries) == 1 and entries[0].is_dir():
        return entries[0]
    return scratch_dir


async def run_build_command(command: str, cwd: Path) -> CommandResult:
    """以单次 shell 调用执行一条构建命令并捕获输出"""
    process = await asyncio.create_subprocess_shell(
        command,
        cwd=str(cwd),
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    stdout, stderr = await process.communicate()
    return CommandResult(
        command=command,
        exit_status=process.returncode if process.returncode is not None else -1,
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace"),
    )


async def run_build_commands(commands: List[str], cwd: Path,
                             output_callback: Optional[OutputCallback] = None) -> List[CommandResult]:
    """按顺序执行构建命令，遇到第一个非零退出码即中止

    Raises:
        BuildCommandFailed: 某条命令失败；其后的命令不会执行
    """
    results: List[CommandResult] = []
    total = len(commands)

    for index, command in enumerate(commands, start=1):
        logger.info(f"[{index}/{total}] {command}")
        result = await run_build_command(command, cwd)
        results.append(result)

        if output_callback:
            for line in (result.stdout + result.stderr).splitlines():
                output_callback(line)

        if not result.ok:
            raise BuildCommandFailed(result.command, result.exit_status, result.stdout, result.stderr)

    return results


def install_executables(source_root: Path, specs: List[ExecutableSpec], dest_dir: Path,
                        package_name: Optional[str] = None) -> List[Path]:
    """校验并复制可执行文件到目标目录，设置可执行权限

    先校验全部文件存在，再开始复制。

    Raises:
        MissingExecutable: 声明的文件不存在
        PackageIOError: 复制失败
    """
    sources = []
    for spec in specs:
        src = safe_path_join(source_root, spec.path)
        if not src.is_file():
            raise MissingExecutable(spec.path, package_name)
        sources.append((spec, src))

    copied: List[Path] = []
    for spec, src in sources:
        dst = safe_path_join(dest_dir, spec.path)
        try:
            dst.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(src, dst)
            make_executable(dst)
        except OSError as e:
            raise PackageIOError(f"复制可执行文件失败 {spec.path}: {e}") from e
        copied.append(dst)
        logger.debug(f"已复制 {spec.path}")

    return copied


class SourceBuilder:
    """源码构建器"""

    def __init__(self, package_name: str, output_callback: Optional[OutputCallback] = None):
        self.package_name = package_name
        self.output_callback = output_callback

    async def build(self, archive_path: Path, commands: List[str],
                    executables: List[ExecutableSpec], dest_dir: Path) -> List[Path]:
        """构建源码包并把可执行文件复制到 dest_dir

        Returns:
            List[Path]: 复制后的可执行文件路径

        Raises:
            UnsupportedArchiveFormat: 源码归档格式不受支持
            BuildCommandFailed: 构建命令失败（不会复制任何可执行文件）
            MissingExecutable: 构建后缺少声明的可执行文件
            PackageIOError: 磁盘错误
        """
        with tempfile.TemporaryDirectory(prefix="leaf-build-") as scratch:
            scratch_dir = Path(scratch)
            logger.info(f"解压源码到临时目录: {scratch_dir}")
            await extract(archive_path, scratch_dir)

            source_root = find_source_root(scratch_dir)
            logger.debug(f"源码根目录: {source_root}")

            if commands:
                await run_build_commands(commands, source_root, self.output_callback)

            copied = install_executables(source_root, executables, dest_dir, self.package_name)

        logger.success(f"{self.package_name} 构建完成")
        return copied
