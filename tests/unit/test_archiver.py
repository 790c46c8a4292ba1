"""
归档构建单元测试
"""

import os
import stat
import tarfile

import pytest

from modpack.build.archiver import ArchiveBuilder, build_archive
from modpack.errors import ArchiveError, BuildIOError, PathTooLongError


@pytest.fixture
def build_dir(tmp_path):
    """已暂存的构建目录"""
    root = tmp_path / "my-module-0.1.0"
    (root / "manifests").mkdir(parents=True)
    (root / "manifests" / "init.pp").write_text("class my_module {}\n")
    (root / "README.md").write_text("# my-module\n")
    (root / "metadata.json").write_text('{"name": "my-module", "version": "0.1.0"}')
    return root


class TestArchiveBuilder:
    """ArchiveBuilder 测试"""

    def test_layout(self, build_dir, tmp_path):
        """条目位于 <release>/ 之下，按路径排序，目录先于内容"""
        package = ArchiveBuilder().build(build_dir, tmp_path / "out" / "my-module-0.1.0.tar.gz")

        with tarfile.open(package, "r:gz") as tar:
            names = tar.getnames()

        assert names == [
            "my-module-0.1.0",
            "my-module-0.1.0/README.md",
            "my-module-0.1.0/manifests",
            "my-module-0.1.0/manifests/init.pp",
            "my-module-0.1.0/metadata.json",
        ]

    def test_contents_and_owner(self, build_dir, tmp_path):
        package = build_archive(build_dir, tmp_path / "pkg.tar.gz")

        with tarfile.open(package, "r:gz") as tar:
            member = tar.getmember("my-module-0.1.0/manifests/init.pp")
            assert tar.extractfile(member).read() == b"class my_module {}\n"
            for info in tar.getmembers():
                assert info.uid == 0 and info.gid == 0
                assert info.uname == "" and info.gname == ""

    def test_modes_preserved(self, build_dir, tmp_path):
        os.chmod(build_dir / "README.md", 0o600)
        os.chmod(build_dir / "manifests" / "init.pp", 0o755)
        package = ArchiveBuilder().build(build_dir, tmp_path / "pkg.tar.gz")

        with tarfile.open(package, "r:gz") as tar:
            assert stat.S_IMODE(tar.getmember("my-module-0.1.0/README.md").mode) == 0o600
            assert stat.S_IMODE(tar.getmember("my-module-0.1.0/manifests/init.pp").mode) == 0o755

    def test_normalize_permissions(self, build_dir, tmp_path, sink):
        os.chmod(build_dir / "README.md", 0o600)
        archiver = ArchiveBuilder(normalize_permissions=True, logger=sink)
        package = archiver.build(build_dir, tmp_path / "pkg.tar.gz")

        with tarfile.open(package, "r:gz") as tar:
            assert stat.S_IMODE(tar.getmember("my-module-0.1.0/README.md").mode) == 0o644
        assert any("README.md" in message for message in sink.debugs)

    def test_gzip_header_is_stable(self, build_dir, tmp_path):
        """gzip 头部不含时间戳，同一构建目录两次打包结果一致"""
        first = ArchiveBuilder().build(build_dir, tmp_path / "a.tar.gz")
        second = ArchiveBuilder().build(build_dir, tmp_path / "b.tar.gz")

        data = first.read_bytes()
        assert data[4:8] == b"\x00\x00\x00\x00"
        assert data == second.read_bytes()

    def test_overwrites_existing_package(self, build_dir, tmp_path):
        package = tmp_path / "pkg.tar.gz"
        package.write_text("stale")
        ArchiveBuilder().build(build_dir, package)
        with tarfile.open(package, "r:gz") as tar:
            assert "my-module-0.1.0/README.md" in tar.getnames()

    def test_written_entries(self, build_dir, tmp_path):
        archiver = ArchiveBuilder()
        archiver.build(build_dir, tmp_path / "pkg.tar.gz")
        assert len(archiver.written) == 5
        assert archiver.written[0] == "my-module-0.1.0"

    def test_missing_build_dir(self, tmp_path):
        with pytest.raises(ArchiveError, match="does not exist"):
            ArchiveBuilder().build(tmp_path / "missing", tmp_path / "pkg.tar.gz")

    def test_archive_error_is_io_error(self, tmp_path):
        with pytest.raises(BuildIOError):
            ArchiveBuilder().build(tmp_path / "missing", tmp_path / "pkg.tar.gz")

    def test_long_entry_discards_package(self, tmp_path):
        """条目无法写入 USTAR 头部时不留下残缺的归档"""
        root = tmp_path / ("r" * 10)
        root.mkdir()
        (root / ("x" * 250)).write_text("")
        package = tmp_path / "pkg.tar.gz"

        with pytest.raises(PathTooLongError):
            ArchiveBuilder().build(root, package)
        assert not package.exists()

    def test_compress_level_clamped(self):
        assert ArchiveBuilder(compress_level=0).compress_level == 1
        assert ArchiveBuilder(compress_level=12).compress_level == 9
