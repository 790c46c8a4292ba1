"""构建服务模块

提供模块打包的核心功能。
"""

from ..errors import (
    BuildError,
    ConfigurationError,
    MetadataError,
    EncodingError,
    PathTooLongError,
    BuildIOError,
    ArchiveError,
)
from .builder import Builder
from .build_context import BuildContext
from .build_pipeline import BuildPipeline
from .metadata import MetadataReader, ModuleMetadata, read_metadata, release_paths
from .ignore import (
    IgnoreRule,
    IgnoreRuleSet,
    IgnoreResolver,
    build_rule_set,
    is_ignored,
    locate_ignore_file,
)
from .validator import UstarSplit, validate_encoding, validate_ustar_path
from .stager import EntryKind, StageOutcome, StageResult, Stager
from .archiver import ArchiveBuilder, build_archive

__all__ = [
    # 主构建器
    "Builder",
    "BuildContext",
    "BuildPipeline",

    # 异常
    "BuildError",
    "ConfigurationError",
    "MetadataError",
    "EncodingError",
    "PathTooLongError",
    "BuildIOError",
    "ArchiveError",

    # 元数据
    "MetadataReader",
    "ModuleMetadata",
    "read_metadata",
    "release_paths",

    # 忽略规则
    "IgnoreRule",
    "IgnoreRuleSet",
    "IgnoreResolver",
    "build_rule_set",
    "is_ignored",
    "locate_ignore_file",

    # 路径校验
    "UstarSplit",
    "validate_encoding",
    "validate_ustar_path",

    # 暂存与归档
    "EntryKind",
    "StageOutcome",
    "StageResult",
    "Stager",
    "ArchiveBuilder",
    "build_archive",
]
