"""通用工具模块"""

from .logging import (
    configure_logging,
    get_stage_logger,
    StageLogger,
    LogStage,
    OutputLevel,
)

from .paths import (
    expand_path,
    real_path,
    relative_posix,
    subpath_of,
    remove_tree,
    format_size,
)

__all__ = [
    # 日志相关
    "configure_logging",
    "get_stage_logger",
    "StageLogger",
    "LogStage",
    "OutputLevel",

    # 路径相关
    "expand_path",
    "real_path",
    "relative_posix",
    "subpath_of",
    "remove_tree",
    "format_size",
]
