"""
模块暂存

深度优先遍历模块源目录，跳过被忽略的路径（被忽略的目录直接剪枝，不再进入），
校验路径后把文件复制到构建目录，保留权限位和修改时间。符号链接只发出警告，
既不跟随也不复制。

每个被访问的条目产生一个 StageResult，结果分为 STAGED / PRUNED / SKIPPED /
FAILED 四类；stage() 在遇到第一个 FAILED 时立即抛出对应的错误。
"""

import os
import shutil
import stat
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Iterator, List, Optional, Tuple, Union

from ..errors import BuildError, BuildIOError, EncodingError, PathTooLongError
from ..utils.paths import relative_posix
from .ignore import IgnoreRuleSet
from .validator import validate_encoding, validate_ustar_path

REMEDIATION_HINT = "Rename the file or exclude it from the package if it needs to be included in the module."
SPLIT_HINT = "Shortening one of its directory names may also allow the path to be split."

SYMLINK_WARNING = (
    "Symlinks in modules are not supported and will not be included in the package. "
    "Please investigate symlink {link} -> {target}."
)


class EntryKind(str, Enum):
    """条目类型"""
    FILE = "file"
    DIRECTORY = "directory"
    SYMLINK = "symlink"
    OTHER = "other"


class StageOutcome(str, Enum):
    """单个条目的暂存结果"""
    STAGED = "staged"
    PRUNED = "pruned"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class StageResult:
    """暂存结果"""
    relative_path: str
    kind: EntryKind
    outcome: StageOutcome
    mode: Optional[int] = None  # 权限位
    size: int = 0
    reason: Optional[str] = None
    error: Optional[BuildError] = None


def _entry_kind(mode: int) -> EntryKind:
    if stat.S_ISLNK(mode):
        return EntryKind.SYMLINK
    if stat.S_ISDIR(mode):
        return EntryKind.DIRECTORY
    if stat.S_ISREG(mode):
        return EntryKind.FILE
    return EntryKind.OTHER


def _with_hint(err: PathTooLongError) -> PathTooLongError:
    message = f"{err} {REMEDIATION_HINT}"
    if err.reason == PathTooLongError.UNSPLITTABLE:
        message = f"{message} {SPLIT_HINT}"
    return PathTooLongError(message, path=err.path, reason=err.reason)


class Stager:
    """模块暂存器

    Args:
        source: 模块源目录（已解析的规范路径）
        build_dir: 构建目录，文件会复制到这里
        rule_set: 忽略规则集
        logger: 日志接收器，需要 warning 和 debug 方法
        archive_root: 归档中的顶层目录名，USTAR 校验针对 <archive_root>/<相对路径>
        dry_run: 只遍历和校验，不写入任何内容
    """

    def __init__(
        self,
        source: Union[str, Path],
        build_dir: Union[str, Path],
        rule_set: IgnoreRuleSet,
        logger: Any,
        archive_root: Optional[str] = None,
        dry_run: bool = False,
    ):
        self.source = Path(source)
        self.build_dir = Path(build_dir)
        self.rule_set = rule_set
        self.logger = logger
        self.archive_root = archive_root
        self.dry_run = dry_run
        # (目标路径, 源 stat)，遍历结束后统一设置目录权限和时间
        self._staged_directories: List[Tuple[Path, os.stat_result]] = []

    def stage(self) -> List[StageResult]:
        """暂存整个模块

        Returns:
            List[StageResult]: 所有被访问条目的结果

        Raises:
            BuildError: 第一个失败条目对应的错误
        """
        self._staged_directories.clear()
        if not self.dry_run:
            try:
                self.build_dir.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise BuildIOError(f"Unable to create build directory '{self.build_dir}': {e}") from e

        results = []
        for result in self.iter_results():
            results.append(result)
            if result.outcome is StageOutcome.FAILED:
                raise result.error

        if not self.dry_run:
            self._finalize_directories()
        return results

    def iter_results(self) -> Iterator[StageResult]:
        """遍历模块源目录并逐个产生结果，失败条目不会中断遍历

        根目录本身不会被暂存；只有暂存成功的目录才会被进入。
        """
        yield from self._walk(self.source)

    def _walk(self, directory: Path) -> Iterator[StageResult]:
        try:
            with os.scandir(directory) as it:
                entries = list(it)
        except OSError as e:
            yield StageResult(
                relative_path=relative_posix(directory, self.source),
                kind=EntryKind.DIRECTORY,
                outcome=StageOutcome.FAILED,
                error=BuildIOError(f"Unable to list directory '{directory}': {e}"),
            )
            return

        for entry in entries:
            path = Path(entry.path)
            result = self.visit(path)
            yield result
            if result.outcome is StageOutcome.STAGED and result.kind is EntryKind.DIRECTORY:
                yield from self._walk(path)

    def visit(self, path: Path) -> StageResult:
        """访问单个条目并返回结果，不抛出构建错误"""
        relative = relative_posix(path, self.source)

        try:
            st = os.lstat(path)
        except OSError as e:
            return StageResult(relative, EntryKind.OTHER, StageOutcome.FAILED,
                               error=BuildIOError(f"Unable to stat '{path}': {e}"))

        kind = _entry_kind(st.st_mode)
        mode = stat.S_IMODE(st.st_mode)
        is_directory = kind is EntryKind.DIRECTORY

        if self.rule_set.is_ignored(relative, is_directory):
            if is_directory:
                self.logger.debug(f"Pruning ignored directory {relative}/")
                return StageResult(relative, kind, StageOutcome.PRUNED, mode=mode, reason="ignored")
            return StageResult(relative, kind, StageOutcome.SKIPPED, mode=mode, reason="ignored")

        try:
            validate_encoding(relative)
        except EncodingError as e:
            return StageResult(relative, kind, StageOutcome.FAILED, mode=mode, error=e)

        if kind is EntryKind.DIRECTORY:
            return self._stage_directory(path, relative, st)

        if kind is EntryKind.SYMLINK:
            self.warn_symlink(path)
            return StageResult(relative, kind, StageOutcome.SKIPPED, mode=mode, reason="symlink")

        if kind is EntryKind.OTHER:
            self.logger.warning(f"Skipping {relative}: only regular files and directories can be packaged.")
            return StageResult(relative, kind, StageOutcome.SKIPPED, mode=mode, reason="unsupported file type")

        return self._stage_file(path, relative, st)

    def warn_symlink(self, path: Path) -> None:
        """通过日志接收器报告符号链接，路径均相对于模块根目录"""
        link = relative_posix(path, self.source)
        target = relative_posix(os.path.realpath(path), self.source)
        self.logger.warning(SYMLINK_WARNING.format(link=link, target=target))

    def archive_name(self, relative: str) -> str:
        """条目在归档中的最终路径"""
        if self.archive_root:
            return f"{self.archive_root}/{relative}"
        return relative

    def _stage_directory(self, path: Path, relative: str, st: os.stat_result) -> StageResult:
        mode = stat.S_IMODE(st.st_mode)
        if not self.dry_run:
            target = self.build_dir / relative
            try:
                target.mkdir(parents=True, exist_ok=True)
                # 暂存期间保证属主可写，最终权限在遍历结束后设置
                os.chmod(target, mode | stat.S_IRWXU)
            except OSError as e:
                return StageResult(relative, EntryKind.DIRECTORY, StageOutcome.FAILED, mode=mode,
                                   error=BuildIOError(f"Unable to create directory '{target}': {e}"))
            self._staged_directories.append((target, st))
        return StageResult(relative, EntryKind.DIRECTORY, StageOutcome.STAGED, mode=mode)

    def _stage_file(self, path: Path, relative: str, st: os.stat_result) -> StageResult:
        mode = stat.S_IMODE(st.st_mode)
        try:
            validate_ustar_path(self.archive_name(relative))
        except PathTooLongError as e:
            return StageResult(relative, EntryKind.FILE, StageOutcome.FAILED, mode=mode, error=_with_hint(e))

        if not self.dry_run:
            target = self.build_dir / relative
            try:
                # copy2 同时复制权限位和修改时间
                shutil.copy2(path, target, follow_symlinks=False)
                os.chmod(target, mode)
            except OSError as e:
                return StageResult(relative, EntryKind.FILE, StageOutcome.FAILED, mode=mode,
                                   error=BuildIOError(f"Unable to copy '{path}' to '{target}': {e}"))
        return StageResult(relative, EntryKind.FILE, StageOutcome.STAGED, mode=mode, size=st.st_size)

    def _finalize_directories(self) -> None:
        # 子目录先于父目录处理
        try:
            for target, st in reversed(self._staged_directories):
                os.chmod(target, stat.S_IMODE(st.st_mode))
                os.utime(target, ns=(st.st_atime_ns, st.st_mtime_ns))
            source_stat = os.stat(self.source)
            os.utime(self.build_dir, ns=(source_stat.st_atime_ns, source_stat.st_mtime_ns))
        except OSError as e:
            raise BuildIOError(f"Unable to apply directory attributes in '{self.build_dir}': {e}") from e
