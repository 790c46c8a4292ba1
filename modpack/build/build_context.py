"""
构建上下文模块

定义构建过程中各步骤共享的数据结构。
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, TYPE_CHECKING

from ..config.schema import BuildSettings
from ..errors import BuildError

if TYPE_CHECKING:
    from .ignore import IgnoreRuleSet
    from .metadata import ModuleMetadata
    from .stager import StageResult

# 进度回调类型: (阶段, 当前, 总数, 消息)
ProgressCallback = Callable[[str, int, int, str], None]


@dataclass
class BuildContext:
    """构建上下文，包含构建过程中的共享数据"""
    source: Path
    destination: Path
    logger: Any
    settings: BuildSettings = field(default_factory=BuildSettings)
    progress_callback: Optional[ProgressCallback] = None

    # 构建过程中生成的数据
    metadata: Optional['ModuleMetadata'] = None
    release_name: Optional[str] = None
    build_dir: Optional[Path] = None
    package_file: Optional[Path] = None
    rule_set: Optional['IgnoreRuleSet'] = None
    stage_results: List['StageResult'] = field(default_factory=list)

    # 统计信息
    build_stats: Dict[str, Any] = field(default_factory=lambda: {
        'start_time': 0,
        'end_time': 0,
        'total_files': 0,
        'total_directories': 0,
        'total_size': 0,
        'symlinks_skipped': 0,
        'pruned': 0,
        'ignored_files': 0,
        'archive_size': 0,
        'archive_entries': 0,
    })

    def report_progress(self, stage: str, current: int, message: str = "") -> None:
        if self.progress_callback:
            self.progress_callback(stage, current, 100, message)


__all__ = ["BuildContext", "BuildError", "ProgressCallback"]
