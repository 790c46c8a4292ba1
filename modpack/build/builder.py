"""
构建器主类

负责整个构建流程的协调：元数据 -> 忽略规则 -> 暂存 -> 归档，
成功时返回归档的绝对路径，失败时抛出具体类型的 BuildError。
"""

import os
from pathlib import Path
from typing import Any, List, Optional, Union

from ..config.schema import BuildSettings
from ..errors import BuildIOError, ConfigurationError
from ..utils.logging import LogStage, get_stage_logger
from ..utils.paths import expand_path, real_path, relative_posix, remove_tree
from .build_context import BuildContext, ProgressCallback
from .build_pipeline import BuildPipeline
from .ignore import IgnoreResolver, IgnoreRuleSet
from .metadata import MetadataReader, ModuleMetadata, release_paths
from .stager import StageOutcome, StageResult, Stager


class Builder:
    """模块构建器

    Args:
        source: 模块源目录，符号链接会被解析为实际目录
        destination: 输出目录，默认 <source>/pkg
        logger: 日志接收器，需要可调用的 warning 和 debug 方法
        settings: 构建设置
    """

    def __init__(
        self,
        source: Union[str, Path],
        destination: Optional[Union[str, Path]] = None,
        logger: Optional[Any] = None,
        settings: Optional[BuildSettings] = None,
    ):
        self.settings = settings or BuildSettings()
        self.source = self._resolve_source(source)

        destination = destination if destination is not None else self.settings.destination
        self.destination = expand_path(destination) if destination else self.source / "pkg"

        self.logger = self._validate_logger(logger) if logger is not None else get_stage_logger(LogStage.STAGE)
        self.pipeline = BuildPipeline()
        self.last_context: Optional[BuildContext] = None
        self._metadata: Optional[ModuleMetadata] = None

    @staticmethod
    def _resolve_source(source: Union[str, Path]) -> Path:
        path = expand_path(source)
        if not path.is_dir():
            raise ConfigurationError(f"Module source '{source}' does not exist or is not a directory.")
        if not os.access(path, os.R_OK | os.X_OK):
            raise ConfigurationError(f"Module source '{source}' is not readable.")
        return real_path(path)

    @staticmethod
    def _validate_logger(logger: Any) -> Any:
        for method in ("warning", "debug"):
            if not callable(getattr(logger, method, None)):
                raise ConfigurationError(
                    f"logger is expected to respond to 'warning' and 'debug', got {type(logger).__name__}"
                )
        return logger

    @property
    def metadata(self) -> ModuleMetadata:
        """模块元数据（首次访问时读取）"""
        if self._metadata is None:
            self._metadata = MetadataReader(self.settings.metadata_file).read(self.source)
        return self._metadata

    @property
    def release_name(self) -> str:
        return self.metadata.release_name

    @property
    def build_dir(self) -> Path:
        return release_paths(self.destination, self.metadata)[0]

    @property
    def package_file(self) -> Path:
        return release_paths(self.destination, self.metadata)[1]

    def ignore_resolver(self) -> IgnoreResolver:
        return IgnoreResolver(
            ignore_files=self.settings.ignore_files,
            default_ignores=self.settings.default_ignores,
            extra_ignores=self.settings.extra_ignores,
        )

    def ignore_file(self) -> Optional[Path]:
        """当前生效的忽略文件"""
        return self.ignore_resolver().locate_ignore_file(self.source)

    def ignored_files(self) -> IgnoreRuleSet:
        """当前生效的忽略规则集"""
        return self.ignore_resolver().build_rule_set(
            self.source,
            self.destination,
            build_dir=self.build_dir,
            package_file=self.package_file,
        )

    def is_ignored(self, path: Union[str, Path]) -> bool:
        """判断模块内的路径是否不会被打包，path 可以是绝对路径或相对于模块根目录的路径

        上级目录被忽略时返回 True，与暂存时的剪枝结果一致。
        """
        path = Path(path)
        absolute = path if path.is_absolute() else self.source / path
        is_directory = absolute.is_dir() and not absolute.is_symlink()
        return self.ignored_files().is_excluded(relative_posix(absolute, self.source), is_directory)

    def package_already_exists(self) -> bool:
        return self.package_file.exists()

    def build(self, progress_callback: Optional[ProgressCallback] = None) -> Path:
        """构建模块包

        Args:
            progress_callback: 进度回调函数

        Returns:
            Path: 归档的绝对路径

        Raises:
            BuildError: 构建失败
        """
        context = BuildContext(
            source=self.source,
            destination=self.destination,
            logger=self.logger,
            settings=self.settings,
            progress_callback=progress_callback,
        )
        self.last_context = context
        self.pipeline.execute(context)
        self._metadata = context.metadata
        return context.package_file

    def validate(self) -> List[StageResult]:
        """只遍历和校验，不写入任何文件，返回所有失败的条目

        Raises:
            MetadataError: 元数据无效
        """
        rule_set = self.ignored_files()
        stager = Stager(
            source=self.source,
            build_dir=self.build_dir,
            rule_set=rule_set,
            logger=self.logger,
            archive_root=self.release_name,
            dry_run=True,
        )
        return [result for result in stager.iter_results() if result.outcome is StageOutcome.FAILED]

    def cleanup(self) -> None:
        """删除构建目录（归档保留）"""
        try:
            remove_tree(self.build_dir)
        except OSError as e:
            raise BuildIOError(f"Unable to remove build directory '{self.build_dir}': {e}") from e
