"""
暂存器单元测试

测试目录剪枝、符号链接警告、权限和时间保留、路径校验失败。
"""

import os
import stat
from pathlib import Path

import pytest

from modpack.build.ignore import IgnoreResolver
from modpack.build.stager import (
    REMEDIATION_HINT,
    EntryKind,
    StageOutcome,
    Stager,
)
from modpack.errors import EncodingError, PathTooLongError


def make_stager(source, build_dir, sink, **kwargs):
    source = Path(os.path.realpath(source))
    rule_set = IgnoreResolver().build_rule_set(source)
    return Stager(source, build_dir, rule_set, sink, **kwargs)


def staged_paths(results):
    return sorted(r.relative_path for r in results if r.outcome is StageOutcome.STAGED)


class TestStager:
    """Stager 测试"""

    def test_stage_copies_files(self, module_source, tmp_path, sink):
        build_dir = tmp_path / "build"
        results = make_stager(module_source, build_dir, sink).stage()

        assert "manifests/init.pp" in staged_paths(results)
        assert (build_dir / "manifests" / "init.pp").read_text() == "class my_module {}\n"
        assert (build_dir / "metadata.json").is_file()
        assert sink.warnings == []

    def test_ignored_directory_is_pruned(self, module_source, tmp_path, sink):
        """被忽略的目录不会被进入"""
        (module_source / ".pdkignore").write_text("/spec/\n")
        build_dir = tmp_path / "build"

        results = make_stager(module_source, build_dir, sink).stage()

        spec = [r for r in results if r.relative_path == "spec"]
        assert len(spec) == 1
        assert spec[0].outcome is StageOutcome.PRUNED
        assert not any(r.relative_path.startswith("spec/") for r in results)
        assert not (build_dir / "spec").exists()
        assert any("spec/" in message for message in sink.debugs)

    def test_ignored_file_skipped(self, module_source, tmp_path, sink):
        (module_source / ".pdkignore").write_text("README.md\n")
        results = make_stager(module_source, tmp_path / "build", sink).stage()

        readme = next(r for r in results if r.relative_path == "README.md")
        assert readme.outcome is StageOutcome.SKIPPED
        assert readme.reason == "ignored"
        assert not (tmp_path / "build" / "README.md").exists()

    def test_default_ignores(self, module_source, tmp_path, sink):
        (module_source / "vendor").mkdir()
        (module_source / "vendor" / "gem.rb").write_text("")
        (module_source / "checksums.json").write_text("{}")
        (module_source / "manifests" / "~init.pp").write_text("")

        make_stager(module_source, tmp_path / "build", sink).stage()

        assert not (tmp_path / "build" / "vendor").exists()
        assert not (tmp_path / "build" / "checksums.json").exists()
        assert not (tmp_path / "build" / "manifests" / "~init.pp").exists()

    def test_file_mode_preserved(self, module_source, tmp_path, sink):
        script = module_source / "manifests" / "init.pp"
        os.chmod(script, 0o644)
        tool = module_source / "lib" / "run.sh"
        tool.write_text("#!/bin/sh\n")
        os.chmod(tool, 0o755)

        build_dir = tmp_path / "build"
        make_stager(module_source, build_dir, sink).stage()

        assert stat.S_IMODE(os.stat(build_dir / "manifests" / "init.pp").st_mode) == 0o644
        assert stat.S_IMODE(os.stat(build_dir / "lib" / "run.sh").st_mode) == 0o755

    def test_directory_mode_and_mtime_preserved(self, module_source, tmp_path, sink):
        manifests = module_source / "manifests"
        os.chmod(manifests, 0o750)
        os.utime(manifests, (1_000_000_000, 1_000_000_000))

        build_dir = tmp_path / "build"
        make_stager(module_source, build_dir, sink).stage()

        staged = os.stat(build_dir / "manifests")
        assert stat.S_IMODE(staged.st_mode) == 0o750
        assert int(staged.st_mtime) == 1_000_000_000

    def test_file_mtime_preserved(self, module_source, tmp_path, sink):
        os.utime(module_source / "README.md", (1_500_000_000, 1_500_000_000))
        build_dir = tmp_path / "build"
        make_stager(module_source, build_dir, sink).stage()
        assert int(os.stat(build_dir / "README.md").st_mtime) == 1_500_000_000

    def test_symlink_warned_once(self, module_source, tmp_path, sink):
        """符号链接只警告一次，不进入构建目录"""
        os.symlink("manifests/init.pp", module_source / "link.pp")
        build_dir = tmp_path / "build"

        results = make_stager(module_source, build_dir, sink).stage()

        assert len(sink.warnings) == 1
        assert "Symlinks in modules are not supported" in sink.warnings[0]
        assert "link.pp -> manifests/init.pp" in sink.warnings[0]
        assert not os.path.lexists(build_dir / "link.pp")

        link = next(r for r in results if r.relative_path == "link.pp")
        assert link.kind is EntryKind.SYMLINK
        assert link.outcome is StageOutcome.SKIPPED

    def test_symlinked_directory_not_followed(self, module_source, tmp_path, sink):
        os.symlink("manifests", module_source / "alias")
        results = make_stager(module_source, tmp_path / "build", sink).stage()

        assert len(sink.warnings) == 1
        assert not any(r.relative_path.startswith("alias/") for r in results)

    def test_broken_symlink(self, module_source, tmp_path, sink):
        os.symlink("missing.pp", module_source / "broken.pp")
        make_stager(module_source, tmp_path / "build", sink).stage()
        assert len(sink.warnings) == 1
        assert "broken.pp -> missing.pp" in sink.warnings[0]

    def test_ignored_symlink_not_warned(self, module_source, tmp_path, sink):
        os.symlink("manifests/init.pp", module_source / "link.pp")
        (module_source / ".pdkignore").write_text("link.pp\n")
        make_stager(module_source, tmp_path / "build", sink).stage()
        assert sink.warnings == []

    @pytest.mark.skipif(not hasattr(os, "mkfifo"), reason="需要 mkfifo")
    def test_special_file_skipped(self, module_source, tmp_path, sink):
        os.mkfifo(module_source / "pipe")
        results = make_stager(module_source, tmp_path / "build", sink).stage()

        pipe = next(r for r in results if r.relative_path == "pipe")
        assert pipe.kind is EntryKind.OTHER
        assert pipe.outcome is StageOutcome.SKIPPED
        assert len(sink.warnings) == 1

    def test_non_ascii_name_fails(self, module_source, tmp_path, sink):
        (module_source / "manifests" / "café.pp").write_text("")
        with pytest.raises(EncodingError, match="ASCII characters"):
            make_stager(module_source, tmp_path / "build", sink).stage()

    def test_long_path_fails_with_hint(self, module_source, tmp_path, sink):
        deep = module_source / ("a" * 150) / ("b" * 10)
        deep.mkdir(parents=True)
        (deep / ("c" * 90)).write_text("")

        with pytest.raises(PathTooLongError) as excinfo:
            make_stager(module_source, tmp_path / "build", sink, archive_root="my-module-0.1.0").stage()
        assert REMEDIATION_HINT in str(excinfo.value)

    def test_archive_root_counts_towards_length(self, module_source, tmp_path, sink):
        """USTAR 校验针对归档中的完整路径"""
        name = "x" * 100
        (module_source / name).write_text("")

        make_stager(module_source, tmp_path / "plain", sink).stage()
        with pytest.raises(PathTooLongError):
            make_stager(module_source, tmp_path / "rooted", sink, archive_root="r" * 160).stage()

    def test_dry_run_reports_all_failures(self, module_source, tmp_path, sink):
        """只校验模式不写入文件，并且不在第一个失败处停止"""
        (module_source / "manifests" / "café.pp").write_text("")
        (module_source / ("z" * 120)).write_text("")
        build_dir = tmp_path / "build"

        stager = make_stager(module_source, build_dir, sink, dry_run=True)
        failures = [r for r in stager.iter_results() if r.outcome is StageOutcome.FAILED]

        assert sorted(type(r.error).__name__ for r in failures) == ["EncodingError", "PathTooLongError"]
        assert not build_dir.exists()

    def test_root_is_not_a_result(self, module_source, tmp_path, sink):
        results = make_stager(module_source, tmp_path / "build", sink).stage()
        assert "." not in [r.relative_path for r in results]
