"""
忽略规则解析步骤模块

每次构建只解析一次忽略规则。
"""

from ...utils.logging import info, debug, LogStage
from modpack.build.build_context import BuildContext
from modpack.build.ignore import IgnoreResolver
from .build_step import BuildStep


class IgnoreRulesStep(BuildStep):
    """忽略规则解析步骤"""

    requires = ("build_dir", "package_file")

    def __init__(self):
        super().__init__("ignore", "解析忽略规则")

    def get_progress_range(self) -> tuple[int, int]:
        return (10, 20)

    def execute(self, context: BuildContext) -> None:
        settings = context.settings
        resolver = IgnoreResolver(
            ignore_files=settings.ignore_files,
            default_ignores=settings.default_ignores,
            extra_ignores=settings.extra_ignores,
        )
        context.rule_set = resolver.build_rule_set(
            context.source,
            context.destination,
            build_dir=context.build_dir,
            package_file=context.package_file,
        )

        if context.rule_set.ignore_file is not None:
            info(f"使用忽略文件: {context.rule_set.ignore_file.name}", stage=LogStage.IGNORE)
        else:
            info("未找到忽略文件，仅使用内置规则", stage=LogStage.IGNORE)
        for rule in context.rule_set:
            debug(f"规则 {rule.pattern!r} ({rule.source})", stage=LogStage.IGNORE)

        context.report_progress("解析忽略规则", self.get_progress_range()[1], f"{len(context.rule_set)} 条规则")
