"""
模块元数据读取

从模块根目录的 JSON 元数据文件中读取名称和版本。
"""

import json
from pathlib import Path
from typing import Tuple, Union

from pydantic import BaseModel, Field, ValidationError

from ..errors import MetadataError


class ModuleMetadata(BaseModel):
    """模块元数据，只关心 name 和 version，其余字段原样保留"""
    name: str = Field(..., description="模块名称", min_length=1)
    version: str = Field(..., description="版本号", min_length=1)

    model_config = {
        "extra": "allow",
        "frozen": True,
    }

    @property
    def release_name(self) -> str:
        """发布名 <name>-<version>；author/module 形式的名称中 / 替换为 -"""
        return f"{self.name.replace('/', '-')}-{self.version}"


class MetadataReader:
    """元数据读取器"""

    def __init__(self, filename: str = "metadata.json"):
        self.filename = filename

    def metadata_path(self, source: Union[str, Path]) -> Path:
        return Path(source) / self.filename

    def read(self, source: Union[str, Path]) -> ModuleMetadata:
        """读取并校验元数据

        Args:
            source: 模块根目录

        Returns:
            ModuleMetadata: 元数据

        Raises:
            MetadataError: 文件缺失、不可读、不是 JSON 对象或缺少 name/version
        """
        path = self.metadata_path(source)

        if not path.is_file():
            raise MetadataError(f"'{path}' does not exist or is not a file.")

        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except OSError as e:
            raise MetadataError(f"Unable to read '{path}': {e}") from e
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise MetadataError(f"Unable to parse '{path}': {e}") from e

        if not isinstance(data, dict):
            raise MetadataError(f"'{path}' must contain a JSON object.")

        try:
            return ModuleMetadata.model_validate(data)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}" for err in e.errors()
            )
            raise MetadataError(f"Invalid metadata in '{path}': {problems}") from e


def read_metadata(source: Union[str, Path], filename: str = "metadata.json") -> ModuleMetadata:
    """便捷函数：读取模块元数据"""
    return MetadataReader(filename).read(source)


def release_paths(destination: Union[str, Path], metadata: ModuleMetadata) -> Tuple[Path, Path]:
    """返回 (构建目录, 归档路径)：<destination>/<release> 与 <destination>/<release>.tar.gz"""
    destination = Path(destination)
    release = metadata.release_name
    return destination / release, destination / f"{release}.tar.gz"
