"""
测试公共夹具
"""

import json
from pathlib import Path

import pytest


def write_module(root: Path, files: dict, metadata: dict = None) -> Path:
    """在 root 下创建模块目录结构，files 为 {相对路径: 内容}"""
    root.mkdir(parents=True, exist_ok=True)
    if metadata is not None:
        (root / "metadata.json").write_text(json.dumps(metadata))
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    return root


@pytest.fixture
def module_source(tmp_path):
    """一个带元数据和常见目录的模块"""
    return write_module(
        tmp_path / "my-module",
        {
            "manifests/init.pp": "class my_module {}\n",
            "templates/config.erb": "<%= @value %>\n",
            "lib/facter/custom.rb": "Facter.add(:custom) {}\n",
            "spec/spec_helper.rb": "require 'rspec'\n",
            "README.md": "# my-module\n",
        },
        metadata={"name": "my-module", "version": "0.1.0"},
    )


@pytest.fixture
def sink():
    """记录所有消息的日志接收器"""
    class RecordingSink:
        def __init__(self):
            self.warnings = []
            self.debugs = []

        def warning(self, message):
            self.warnings.append(message)

        def debug(self, message):
            self.debugs.append(message)

    return RecordingSink()


@pytest.fixture
def make_module(tmp_path):
    """返回创建模块目录的函数"""
    def _make(name: str, files: dict, metadata: dict = None) -> Path:
        return write_module(tmp_path / name, files, metadata)
    return _make
