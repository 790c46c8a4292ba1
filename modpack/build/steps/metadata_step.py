"""
元数据读取步骤模块

读取模块元数据，确定发布名、构建目录和归档路径。
"""

from ...utils.logging import info, debug, LogStage
from modpack.build.build_context import BuildContext
from modpack.build.metadata import MetadataReader, release_paths
from .build_step import BuildStep


class MetadataStep(BuildStep):
    """元数据读取步骤"""

    def __init__(self):
        super().__init__("metadata", "读取模块元数据")

    def get_progress_range(self) -> tuple[int, int]:
        return (0, 10)

    def execute(self, context: BuildContext) -> None:
        reader = MetadataReader(context.settings.metadata_file)
        debug(f"读取元数据: {reader.metadata_path(context.source)}", stage=LogStage.METADATA)

        context.metadata = reader.read(context.source)
        context.release_name = context.metadata.release_name
        context.build_dir, context.package_file = release_paths(context.destination, context.metadata)

        info(f"模块: {context.metadata.name} 版本: {context.metadata.version}", stage=LogStage.METADATA)
        context.report_progress("读取元数据", self.get_progress_range()[1], context.release_name)
