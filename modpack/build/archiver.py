"""
归档构建

把构建目录写成 gzip 压缩的 USTAR tar 包。归档中的顶层目录即构建目录本身
（<release-name>/），条目按路径排序写入，属主统一为 0，gzip 头部时间戳为 0，
同一份暂存内容多次打包得到的条目与元数据一致。
"""

import gzip
import os
import stat
import tarfile
from pathlib import Path
from typing import Any, Iterator, List, Optional, Tuple, Union

from ..errors import ArchiveError, PathTooLongError
from .validator import validate_ustar_path

MIN_DIRECTORY_MODE = 0o755
MIN_FILE_MODE = 0o644


class ArchiveBuilder:
    """归档构建器

    Args:
        compress_level: gzip 压缩级别 (1-9)
        normalize_permissions: 是否把条目权限放宽到至少 0755/0644
        logger: 日志接收器，权限调整时输出 debug 信息
    """

    def __init__(self, compress_level: int = 9, normalize_permissions: bool = False,
                 logger: Optional[Any] = None):
        self.compress_level = min(9, max(1, compress_level))
        self.normalize_permissions = normalize_permissions
        self.logger = logger
        self.written: List[str] = []

    def build(self, build_dir: Union[str, Path], package_file: Union[str, Path]) -> Path:
        """写入归档

        Args:
            build_dir: 已填充的构建目录
            package_file: 目标 .tar.gz 路径

        Returns:
            Path: 归档路径

        Raises:
            ArchiveError: 目标无法创建或写入
            PathTooLongError: 某个条目无法放入 USTAR 头部
        """
        build_dir = Path(build_dir)
        package_file = Path(package_file)
        self.written = []

        if not build_dir.is_dir():
            raise ArchiveError(f"Build directory '{build_dir}' does not exist.")

        try:
            package_file.parent.mkdir(parents=True, exist_ok=True)
            if package_file.exists():
                package_file.unlink()
        except OSError as e:
            raise ArchiveError(f"Unable to prepare '{package_file}': {e}") from e

        try:
            with open(package_file, 'wb') as raw:
                with gzip.GzipFile(filename="", mode='wb', fileobj=raw,
                                   compresslevel=self.compress_level, mtime=0) as gz:
                    with tarfile.open(fileobj=gz, mode='w', format=tarfile.USTAR_FORMAT) as tar:
                        for path, arcname in self._iter_entries(build_dir, build_dir.name):
                            self._add_entry(tar, path, arcname)
        except PathTooLongError:
            self._discard(package_file)
            raise
        except (OSError, tarfile.TarError, ValueError) as e:
            self._discard(package_file)
            raise ArchiveError(f"Unable to write archive '{package_file}': {e}") from e

        return package_file

    def _iter_entries(self, directory: Path, arcname: str) -> Iterator[Tuple[Path, str]]:
        """目录先于其内容产出，同级条目按名称排序"""
        yield directory, arcname
        with os.scandir(directory) as it:
            entries = sorted(it, key=lambda entry: entry.name)
        for entry in entries:
            child = f"{arcname}/{entry.name}"
            if entry.is_dir(follow_symlinks=False):
                yield from self._iter_entries(Path(entry.path), child)
            else:
                yield Path(entry.path), child

    def _add_entry(self, tar: tarfile.TarFile, path: Path, arcname: str) -> None:
        info = tar.gettarinfo(str(path), arcname=arcname)
        if not (info.isdir() or info.isreg()):
            raise ArchiveError(f"Unexpected entry '{arcname}' in build directory.")

        # tarfile 会给目录名追加 /
        validate_ustar_path(f"{arcname}/" if info.isdir() else arcname)

        info.uid = info.gid = 0
        info.uname = info.gname = ""
        info.mode = self._entry_mode(arcname, stat.S_IMODE(info.mode), info.isdir())

        if info.isreg():
            with open(path, 'rb') as f:
                tar.addfile(info, f)
        else:
            tar.addfile(info)
        self.written.append(arcname)

    def _entry_mode(self, arcname: str, mode: int, is_directory: bool) -> int:
        if not self.normalize_permissions:
            return mode
        widened = mode | (MIN_DIRECTORY_MODE if is_directory else MIN_FILE_MODE)
        if widened != mode and self.logger is not None:
            self.logger.debug(f"Updated permissions of packaged '{arcname}' to {widened:o}")
        return widened

    @staticmethod
    def _discard(package_file: Path) -> None:
        # 不留下残缺的归档
        try:
            package_file.unlink()
        except FileNotFoundError:
            pass


def build_archive(build_dir: Union[str, Path], package_file: Union[str, Path],
                  compress_level: int = 9) -> Path:
    """便捷函数：打包构建目录"""
    return ArchiveBuilder(compress_level=compress_level).build(build_dir, package_file)
