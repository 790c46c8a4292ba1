"""
构建管道模块

按顺序执行构建步骤：元数据 -> 忽略规则 -> 暂存 -> 归档。
任何一步失败都会终止整个构建，后续步骤不再执行。
"""

import time
from typing import List, Optional

from ..errors import BuildIOError
from ..utils.logging import info, success, error, debug, LogStage
from .build_context import BuildContext, BuildError
from .steps.build_step import BuildStep
from .steps.metadata_step import MetadataStep
from .steps.ignore_rules_step import IgnoreRulesStep
from .steps.staging_step import StagingStep
from .steps.archive_step import ArchiveStep


class BuildPipeline:
    """构建管道，负责协调构建步骤的执行"""

    def __init__(self):
        self._steps: List[BuildStep] = []
        self._init_default_steps()

    def _init_default_steps(self):
        """初始化默认的构建步骤"""
        self._steps = [
            MetadataStep(),
            IgnoreRulesStep(),
            StagingStep(),
            ArchiveStep(),
        ]

    def add_step(self, step: BuildStep, position: Optional[int] = None):
        """添加构建步骤"""
        if position is None:
            self._steps.append(step)
        else:
            self._steps.insert(position, step)

    def remove_step(self, step_name: str):
        """移除构建步骤"""
        self._steps = [step for step in self._steps if step.name != step_name]

    def get_steps(self) -> List[BuildStep]:
        """获取所有构建步骤"""
        return self._steps.copy()

    def execute(self, context: BuildContext) -> BuildContext:
        """执行构建管道

        Args:
            context: 构建上下文

        Returns:
            BuildContext: 构建上下文，包含所有构建结果

        Raises:
            BuildError: 构建失败（保留具体的错误类型）
        """
        context.build_stats['start_time'] = time.time()

        try:
            info(f"开始构建模块: {context.source}", stage=LogStage.BUILD)
            debug(f"输出目录: {context.destination}", stage=LogStage.BUILD)

            for step in self._steps:
                info(f"执行步骤: {step.description}", stage=LogStage.BUILD)
                step.run(context)

        except BuildError as e:
            context.build_stats['end_time'] = time.time()
            error(f"构建失败: {e}", stage=LogStage.BUILD)
            raise
        except OSError as e:
            context.build_stats['end_time'] = time.time()
            error(f"构建失败: {e}", stage=LogStage.BUILD)
            raise BuildIOError(str(e)) from e

        context.build_stats['end_time'] = time.time()
        build_time = context.build_stats['end_time'] - context.build_stats['start_time']
        success(f"模块构建成功: {context.package_file}", stage=LogStage.DONE)
        info(f"构建时间: {build_time:.1f}秒")
        return context

    def validate_pipeline(self) -> List[str]:
        """验证构建管道的完整性

        Returns:
            List[str]: 验证错误列表，空列表表示验证通过
        """
        errors = []

        if not self._steps:
            errors.append("构建管道中没有步骤")
            return errors

        # 检查步骤的进度范围是否连续
        prev_end = 0
        for step in self._steps:
            start, end = step.get_progress_range()
            if start != prev_end:
                errors.append(f"步骤 '{step.name}' 的进度范围不连续: 期望起始 {prev_end}%, 实际 {start}%")
            if start >= end:
                errors.append(f"步骤 '{step.name}' 的进度范围无效: {start}% - {end}%")
            prev_end = end

        if prev_end != 100:
            errors.append(f"构建管道的总进度范围不是100%: {prev_end}%")

        return errors
