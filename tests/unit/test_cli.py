"""
命令行单元测试

使用 typer 的 CliRunner 测试 build / validate / rules 命令。
"""

import json
import tarfile

import pytest
from typer.testing import CliRunner

from modpack import __version__
from modpack.cli.main import app


runner = CliRunner()


@pytest.fixture
def out_dir(tmp_path):
    return tmp_path / "out"


class TestMain:
    """主入口测试"""

    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"modpack v{__version__}" in result.stdout

    def test_help(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "build" in result.stdout


class TestBuildCommand:
    """build 命令测试"""

    def test_build(self, module_source, out_dir):
        result = runner.invoke(app, ["build", str(module_source), "-o", str(out_dir)])

        assert result.exit_code == 0, result.stdout
        package = out_dir / "my-module-0.1.0.tar.gz"
        assert package.is_file()
        # 默认清理构建目录
        assert not (out_dir / "my-module-0.1.0").exists()

    def test_keep_build_dir(self, module_source, out_dir):
        result = runner.invoke(app, ["build", str(module_source), "-o", str(out_dir), "--keep-build-dir"])
        assert result.exit_code == 0, result.stdout
        assert (out_dir / "my-module-0.1.0" / "metadata.json").is_file()

    def test_existing_package_requires_force(self, module_source, out_dir):
        args = ["build", str(module_source), "-o", str(out_dir)]
        assert runner.invoke(app, args).exit_code == 0

        result = runner.invoke(app, args)
        assert result.exit_code == 1
        assert "--force" in result.stdout

        assert runner.invoke(app, args + ["--force"]).exit_code == 0

    def test_missing_metadata(self, make_module, out_dir):
        source = make_module("broken", {"manifests/init.pp": ""})
        result = runner.invoke(app, ["build", str(source), "-o", str(out_dir)])
        assert result.exit_code == 1
        assert "构建失败" in result.stdout

    def test_config_file(self, module_source, tmp_path):
        config = tmp_path / "modpack.yaml"
        config.write_text("destination: dist\nextra_ignores:\n  - /spec/\n")

        result = runner.invoke(app, ["build", str(module_source), "-c", str(config)])

        assert result.exit_code == 0, result.stdout
        package = tmp_path / "dist" / "my-module-0.1.0.tar.gz"
        with tarfile.open(package, "r:gz") as tar:
            assert not any("/spec" in name for name in tar.getnames())

    def test_invalid_config(self, module_source, tmp_path):
        config = tmp_path / "modpack.yaml"
        config.write_text("compress_level: 20\n")

        result = runner.invoke(app, ["build", str(module_source), "-c", str(config)])

        assert result.exit_code == 1
        assert "配置验证失败" in result.stdout

    def test_log_file(self, module_source, out_dir, tmp_path):
        log_file = tmp_path / "build.log"
        result = runner.invoke(app, ["build", str(module_source), "-o", str(out_dir), "--log-file", str(log_file)])
        assert result.exit_code == 0, result.stdout
        assert "[STAGE]" in log_file.read_text(encoding="utf-8")


class TestValidateCommand:
    """validate 命令测试"""

    def test_valid(self, module_source):
        result = runner.invoke(app, ["validate", str(module_source)])
        assert result.exit_code == 0
        assert "模块校验通过" in result.stdout

    def test_invalid(self, module_source):
        (module_source / ("x" * 120)).write_text("")
        result = runner.invoke(app, ["validate", str(module_source)])
        assert result.exit_code == 1
        assert "模块校验失败" in result.stdout

    def test_json(self, module_source):
        (module_source / ("x" * 120)).write_text("")
        (module_source / "café.pp").write_text("")

        result = runner.invoke(app, ["validate", str(module_source), "--json"])

        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert data["release"] == "my-module-0.1.0"
        assert sorted(error["type"] for error in data["errors"]) == ["EncodingError", "PathTooLongError"]

    def test_does_not_write(self, module_source):
        runner.invoke(app, ["validate", str(module_source)])
        assert not (module_source / "pkg").exists()


class TestRulesCommand:
    """rules 命令测试"""

    def test_builtin_rules(self, module_source):
        result = runner.invoke(app, ["rules", str(module_source)])
        assert result.exit_code == 0
        assert "/vendor/" in result.stdout
        assert "未找到忽略文件" in result.stdout

    def test_ignore_file_rules(self, module_source):
        (module_source / ".pdkignore").write_text("/spec/\n")
        result = runner.invoke(app, ["rules", str(module_source)])
        assert result.exit_code == 0
        assert "/spec/" in result.stdout

    def test_missing_source(self, tmp_path):
        result = runner.invoke(app, ["rules", str(tmp_path / "missing")])
        assert result.exit_code == 1
