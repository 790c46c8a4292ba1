"""
构建步骤基类模块

定义构建步骤的抽象接口，以及执行前对上下文的前置检查。
"""

from abc import ABC, abstractmethod
from typing import Tuple

from modpack.build.build_context import BuildContext, BuildError


class BuildStep(ABC):
    """构建步骤抽象基类

    requires 列出执行前必须已由前序步骤填充的上下文字段。
    """

    requires: Tuple[str, ...] = ()

    def __init__(self, name: str, description: str):
        self.name = name
        self.description = description

    def check_requirements(self, context: BuildContext) -> None:
        """检查前序步骤的结果是否齐全

        Raises:
            BuildError: 缺少必需的上下文字段
        """
        missing = [field for field in self.requires if getattr(context, field, None) is None]
        if missing:
            raise BuildError(f"步骤 '{self.name}' 缺少前序步骤的结果: {', '.join(missing)}")

    def run(self, context: BuildContext) -> None:
        """检查前置条件后执行"""
        self.check_requirements(context)
        self.execute(context)

    @abstractmethod
    def execute(self, context: BuildContext) -> None:
        """执行构建步骤"""
        pass

    @abstractmethod
    def get_progress_range(self) -> tuple[int, int]:
        """获取此步骤的进度范围 (start_percent, end_percent)"""
        pass
