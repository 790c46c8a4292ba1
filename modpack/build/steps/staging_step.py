"""
暂存步骤模块

重新创建构建目录，并把未被忽略的文件暂存进去。
"""

from ...utils import format_size
from ...utils.logging import info, success, debug, LogStage
from ...utils.paths import remove_tree
from modpack.build.build_context import BuildContext
from modpack.build.stager import EntryKind, StageOutcome, Stager
from modpack.errors import BuildIOError
from .build_step import BuildStep


class StagingStep(BuildStep):
    """暂存步骤"""

    requires = ("release_name", "build_dir", "rule_set")

    def __init__(self):
        super().__init__("stage", "暂存模块文件")

    def get_progress_range(self) -> tuple[int, int]:
        return (20, 70)

    def execute(self, context: BuildContext) -> None:
        progress_start, _ = self.get_progress_range()
        context.report_progress("暂存文件", progress_start, str(context.build_dir))

        # 构建目录每次重新创建，不复用上一次残留的内容
        try:
            remove_tree(context.build_dir)
            context.build_dir.mkdir(parents=True)
        except OSError as e:
            raise BuildIOError(f"Unable to create build directory '{context.build_dir}': {e}") from e
        debug(f"构建目录: {context.build_dir}", stage=LogStage.STAGE)

        stager = Stager(
            source=context.source,
            build_dir=context.build_dir,
            rule_set=context.rule_set,
            logger=context.logger,
            archive_root=context.release_name,
        )
        context.stage_results = stager.stage()

        self._collect_stats(context)
        stats = context.build_stats
        success("文件暂存完成", stage=LogStage.STAGE)
        info(f"  文件数量: {stats['total_files']}  目录数量: {stats['total_directories']}")
        info(f"  总大小: {format_size(stats['total_size'])}")
        if stats['symlinks_skipped']:
            info(f"  跳过符号链接: {stats['symlinks_skipped']}")

        context.report_progress("暂存文件", self.get_progress_range()[1],
                                f"暂存 {stats['total_files']} 个文件")

    @staticmethod
    def _collect_stats(context: BuildContext) -> None:
        stats = context.build_stats
        for result in context.stage_results:
            if result.outcome is StageOutcome.STAGED:
                if result.kind is EntryKind.DIRECTORY:
                    stats['total_directories'] += 1
                else:
                    stats['total_files'] += 1
                    stats['total_size'] += result.size
            elif result.outcome is StageOutcome.PRUNED:
                stats['pruned'] += 1
            elif result.outcome is StageOutcome.SKIPPED:
                if result.kind is EntryKind.SYMLINK and result.reason == "symlink":
                    stats['symlinks_skipped'] += 1
                elif result.reason == "ignored":
                    stats['ignored_files'] += 1
