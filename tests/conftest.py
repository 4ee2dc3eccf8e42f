"""测试公共夹具"""

import io
import json
import tarfile
import zipfile
from pathlib import Path
from typing import Dict, Tuple, Union

import pytest

from leaf.config.loader import load_or_create_config
from leaf.config.schema import LeafConfig
from leaf.install.platform import PlatformKey

# 归档内容: 路径 → 字节内容 或 (字节内容, 权限)
ArchiveFiles = Dict[str, Union[bytes, Tuple[bytes, int]]]


def _split(content) -> Tuple[bytes, int]:
    if isinstance(content, tuple):
        return content
    return content, 0o644


def _make_tar(files: ArchiveFiles, mode: str = "w:gz") -> bytes:
    """在内存中构造 tar 归档"""
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode=mode) as tf:
        for name, content in files.items():
            data, perm = _split(content)
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = perm
            tf.addfile(info, io.BytesIO(data))
    return buffer.getvalue()


def _make_zip(files: ArchiveFiles) -> bytes:
    """在内存中构造 zip 归档"""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        for name, content in files.items():
            data, perm = _split(content)
            info = zipfile.ZipInfo(name)
            info.external_attr = (0o100000 | perm) << 16
            zf.writestr(info, data)
    return buffer.getvalue()


@pytest.fixture(autouse=True)
def clean_leaf_env(monkeypatch):
    """隔离用户环境中的 LEAF_* 变量"""
    monkeypatch.delenv("LEAF_HOME", raising=False)
    monkeypatch.delenv("LEAF_BIN_DIR", raising=False)


@pytest.fixture
def config(tmp_path: Path) -> LeafConfig:
    """linux-x86_64 平台、目录均已创建的运行配置"""
    return load_or_create_config(
        home=tmp_path / "leaf",
        bin_dir=tmp_path / "bin",
        platform=PlatformKey.LINUX_X86_64,
    )


@pytest.fixture
def write_manifest(config: LeafConfig):
    """把清单数据写入本地 packages.json"""
    def _write(data: dict) -> Path:
        config.manifest_path.write_text(json.dumps(data), encoding="utf-8")
        return config.manifest_path
    return _write


@pytest.fixture
def make_tar():
    """tar 归档构造函数"""
    return _make_tar


@pytest.fixture
def make_zip():
    """zip 归档构造函数"""
    return _make_zip
