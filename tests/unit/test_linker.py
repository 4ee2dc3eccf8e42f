"""
链接器单元测试
"""

import os
import sys

import pytest

from leaf.config.schema import ExecutableSpec
from leaf.install import linker
from leaf.install.platform import PlatformKey

needs_symlinks = pytest.mark.skipif(sys.platform == "win32", reason="需要无特权符号链接")


@pytest.fixture
def package_dir(tmp_path):
    pkg = tmp_path / "packages" / "foo"
    (pkg / "bin").mkdir(parents=True)
    tool = pkg / "bin" / "foo"
    tool.write_text("#!/bin/sh\necho foo\n")
    tool.chmod(0o755)
    return pkg


@pytest.fixture
def bin_dir(tmp_path):
    return tmp_path / "bin"


@needs_symlinks
class TestLinkSymlink:
    """符号链接模式测试"""

    def test_creates_symlink(self, package_dir, bin_dir):
        created = linker.link(package_dir, [ExecutableSpec(path="bin/foo")], bin_dir, PlatformKey.LINUX_X86_64)

        alias = bin_dir / "foo"
        assert created == [alias]
        assert alias.is_symlink()
        assert alias.resolve() == (package_dir / "bin" / "foo").resolve()
        assert os.path.isabs(os.readlink(alias))

    def test_explicit_alias(self, package_dir, bin_dir):
        linker.link(package_dir, [ExecutableSpec(path="bin/foo", name="f")], bin_dir, PlatformKey.LINUX_X86_64)
        assert (bin_dir / "f").is_symlink()
        assert not (bin_dir / "foo").exists()

    def test_idempotent(self, package_dir, bin_dir):
        """重复链接得到相同的最终状态"""
        specs = [ExecutableSpec(path="bin/foo")]
        linker.link(package_dir, specs, bin_dir, PlatformKey.LINUX_X86_64)
        linker.link(package_dir, specs, bin_dir, PlatformKey.LINUX_X86_64)

        assert [p.name for p in bin_dir.iterdir()] == ["foo"]
        assert (bin_dir / "foo").resolve() == (package_dir / "bin" / "foo").resolve()

    def test_missing_target_skipped(self, package_dir, bin_dir):
        specs = [ExecutableSpec(path="bin/missing"), ExecutableSpec(path="bin/foo")]
        created = linker.link(package_dir, specs, bin_dir, PlatformKey.LINUX_X86_64)

        assert created == [bin_dir / "foo"]
        assert not os.path.lexists(bin_dir / "missing")

    def test_replaces_dangling_link(self, package_dir, bin_dir, tmp_path):
        bin_dir.mkdir()
        os.symlink(tmp_path / "gone", bin_dir / "foo")

        linker.link(package_dir, [ExecutableSpec(path="bin/foo")], bin_dir, PlatformKey.LINUX_X86_64)

        assert (bin_dir / "foo").resolve() == (package_dir / "bin" / "foo").resolve()

    def test_replaces_regular_file(self, package_dir, bin_dir):
        bin_dir.mkdir()
        (bin_dir / "foo").write_text("stale")

        linker.link(package_dir, [ExecutableSpec(path="bin/foo")], bin_dir, PlatformKey.LINUX_X86_64)

        assert (bin_dir / "foo").is_symlink()


class TestLinkCopy:
    """Windows 复制模式测试"""

    def test_copies_file(self, package_dir, bin_dir):
        created = linker.link(package_dir, [ExecutableSpec(path="bin/foo")], bin_dir, PlatformKey.WINDOWS_X86_64)

        alias = bin_dir / "foo"
        assert created == [alias]
        assert not alias.is_symlink()
        assert alias.read_text() == (package_dir / "bin" / "foo").read_text()

    def test_unlink_removes_copy(self, package_dir, bin_dir):
        specs = [ExecutableSpec(path="bin/foo")]
        linker.link(package_dir, specs, bin_dir, PlatformKey.WINDOWS_X86_64)

        removed = linker.unlink(package_dir, specs, bin_dir, PlatformKey.WINDOWS_X86_64)

        assert removed == [bin_dir / "foo"]
        assert not (bin_dir / "foo").exists()

    def test_unlink_keeps_copy_from_other_package(self, package_dir, bin_dir, tmp_path):
        """另一个包覆盖了同名副本时，删除原包不影响该副本"""
        other = tmp_path / "packages" / "other"
        (other / "bin").mkdir(parents=True)
        (other / "bin" / "foo").write_text("#!/bin/sh\necho other\n")
        specs = [ExecutableSpec(path="bin/foo")]
        linker.link(package_dir, specs, bin_dir, PlatformKey.WINDOWS_X86_64)
        linker.link(other, specs, bin_dir, PlatformKey.WINDOWS_X86_64)

        removed = linker.unlink(package_dir, specs, bin_dir, PlatformKey.WINDOWS_X86_64)

        assert removed == []
        assert (bin_dir / "foo").read_text() == "#!/bin/sh\necho other\n"


@needs_symlinks
class TestUnlink:
    """删除别名测试"""

    def test_removes_own_links(self, package_dir, bin_dir):
        specs = [ExecutableSpec(path="bin/foo")]
        linker.link(package_dir, specs, bin_dir, PlatformKey.LINUX_X86_64)

        removed = linker.unlink(package_dir, specs, bin_dir)

        assert removed == [bin_dir / "foo"]
        assert not os.path.lexists(bin_dir / "foo")

    def test_keeps_foreign_links(self, package_dir, bin_dir, tmp_path):
        """指向其它包的同名链接保持不变"""
        other = tmp_path / "packages" / "other" / "bin"
        other.mkdir(parents=True)
        (other / "foo").write_text("other")
        bin_dir.mkdir()
        os.symlink(other / "foo", bin_dir / "foo")

        removed = linker.unlink(package_dir, [ExecutableSpec(path="bin/foo")], bin_dir)

        assert removed == []
        assert (bin_dir / "foo").resolve() == (other / "foo").resolve()

    def test_keeps_user_file_in_place_of_link(self, package_dir, bin_dir):
        """用户自己的脚本替换了链接后，删除包不会删掉它"""
        specs = [ExecutableSpec(path="bin/foo")]
        linker.link(package_dir, specs, bin_dir, PlatformKey.LINUX_X86_64)
        (bin_dir / "foo").unlink()
        (bin_dir / "foo").write_text("#!/bin/sh\necho foo\n")

        removed = linker.unlink(package_dir, specs, bin_dir, PlatformKey.LINUX_X86_64)

        assert removed == []
        assert (bin_dir / "foo").is_file()
        assert not (bin_dir / "foo").is_symlink()

    def test_missing_alias_ignored(self, package_dir, bin_dir):
        assert linker.unlink(package_dir, [ExecutableSpec(path="bin/foo")], bin_dir) == []

    def test_find_managed_links(self, package_dir, bin_dir, tmp_path):
        linker.link(package_dir, [ExecutableSpec(path="bin/foo")], bin_dir, PlatformKey.LINUX_X86_64)
        outside = tmp_path / "elsewhere"
        outside.write_text("x")
        os.symlink(outside, bin_dir / "unrelated")
        (bin_dir / "plain").write_text("x")

        managed = linker.find_managed_links(bin_dir, tmp_path / "packages")

        assert managed == [bin_dir / "foo"]
