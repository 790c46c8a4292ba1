"""
归档步骤模块

把构建目录写成 gzip 压缩的 tar 包。
"""

from ...utils import format_size
from ...utils.logging import success, info, LogStage
from modpack.build.archiver import ArchiveBuilder
from modpack.build.build_context import BuildContext
from .build_step import BuildStep


class ArchiveStep(BuildStep):
    """归档步骤"""

    requires = ("build_dir", "package_file")

    def __init__(self):
        super().__init__("archive", "写入归档")

    def get_progress_range(self) -> tuple[int, int]:
        return (70, 100)

    def execute(self, context: BuildContext) -> None:
        progress_start, progress_end = self.get_progress_range()
        context.report_progress("写入归档", progress_start, context.package_file.name)

        archiver = ArchiveBuilder(
            compress_level=context.settings.compress_level,
            normalize_permissions=context.settings.normalize_permissions,
            logger=context.logger,
        )
        archiver.build(context.build_dir, context.package_file)

        context.build_stats['archive_entries'] = len(archiver.written)
        context.build_stats['archive_size'] = context.package_file.stat().st_size

        success(f"归档写入完成: {context.package_file}", stage=LogStage.ARCHIVE)
        info(f"  条目数: {len(archiver.written)}  大小: {format_size(context.build_stats['archive_size'])}")
        context.report_progress("写入归档", progress_end, "完成")
