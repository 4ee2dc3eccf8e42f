"""
路径工具单元测试
"""

import os

import pytest

from leaf.utils.paths import atomic_write_text, is_within, remove_path, safe_path_join


class TestSafePathJoin:
    """safe_path_join 测试"""

    def test_relative(self, tmp_path):
        assert safe_path_join(tmp_path, "bin/tool") == tmp_path / "bin" / "tool"

    @pytest.mark.parametrize("relative", ["/etc/passwd", "../x", "a/../../x"])
    def test_rejected(self, tmp_path, relative):
        with pytest.raises(ValueError):
            safe_path_join(tmp_path, relative)


class TestPathHelpers:
    """其它路径工具测试"""

    def test_is_within(self, tmp_path):
        assert is_within(tmp_path / "a" / "b", tmp_path)
        assert not is_within(tmp_path.parent / "other", tmp_path)

    def test_atomic_write_replaces(self, tmp_path):
        target = tmp_path / "data.json"
        target.write_text("old")

        atomic_write_text(target, "new")

        assert target.read_text() == "new"
        assert [p.name for p in tmp_path.iterdir()] == ["data.json"]

    def test_remove_path(self, tmp_path):
        directory = tmp_path / "dir"
        (directory / "sub").mkdir(parents=True)
        file_path = tmp_path / "file"
        file_path.write_text("x")

        remove_path(directory)
        remove_path(file_path)

        assert list(tmp_path.iterdir()) == []

    @pytest.mark.skipif(os.name == "nt", reason="需要符号链接")
    def test_remove_dangling_symlink(self, tmp_path):
        link = tmp_path / "link"
        os.symlink(tmp_path / "missing", link)

        remove_path(link)

        assert not os.path.lexists(link)
