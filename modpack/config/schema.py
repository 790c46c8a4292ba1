"""
配置 Schema 定义

使用 Pydantic 定义构建设置模型，支持从 YAML 加载并校验。
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


# 按优先级排列的忽略文件：项目专用 > 分发专用 > 版本控制
DEFAULT_IGNORE_FILES = [".pdkignore", ".pmtignore", ".gitignore"]

# 内置忽略规则，始终追加在忽略文件的规则之后
DEFAULT_IGNORED = [
    "/pkg/",
    "~*",
    "/coverage",
    "/checksums.json",
    "/REVISION",
    "/spec/fixtures/modules/",
    "/vendor/",
]


class BuildSettings(BaseModel):
    """构建设置模型

    所有字段都有默认值，不提供配置文件时使用 BuildSettings()。
    """

    destination: Optional[str] = Field(
        None,
        description="输出目录，默认 <source>/pkg",
    )
    metadata_file: str = Field(
        "metadata.json",
        description="模块根目录下的元数据文件名",
        min_length=1,
    )
    ignore_files: List[str] = Field(
        default_factory=lambda: list(DEFAULT_IGNORE_FILES),
        description="忽略文件候选列表（优先级从高到低）",
    )
    default_ignores: List[str] = Field(
        default_factory=lambda: list(DEFAULT_IGNORED),
        description="内置忽略规则",
    )
    extra_ignores: List[str] = Field(
        default_factory=list,
        description="额外忽略规则，追加在内置规则之后",
    )
    normalize_permissions: bool = Field(
        False,
        description="归档时将权限至少放宽到目录 0755 / 文件 0644",
    )
    compress_level: int = Field(
        9,
        description="gzip 压缩级别",
        ge=1,
        le=9,
    )

    model_config = {
        "extra": "forbid",
        "validate_assignment": True,
        "str_strip_whitespace": True,
    }

    @field_validator('metadata_file')
    @classmethod
    def validate_metadata_file(cls, v: str) -> str:
        """元数据文件必须是模块根目录下的文件名"""
        if Path(v).name != v:
            raise ValueError("metadata_file 只能是文件名，不能包含目录")
        return v

    @field_validator('ignore_files')
    @classmethod
    def validate_ignore_files(cls, v: List[str]) -> List[str]:
        """去除空白和重复项，保持顺序"""
        cleaned: List[str] = []
        for name in v:
            name = name.strip()
            if name and name not in cleaned:
                cleaned.append(name)
        return cleaned

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典格式"""
        return self.model_dump(exclude_none=True)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BuildSettings':
        """从字典创建配置实例"""
        return cls.model_validate(data)
