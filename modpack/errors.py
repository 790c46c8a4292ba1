"""
异常定义

构建过程中所有可预期的失败都以 BuildError 的子类抛出，
调用方可以按类型区分处理。
"""

from typing import Optional


class BuildError(Exception):
    """构建错误基类"""
    pass


class ConfigurationError(BuildError):
    """源目录、日志接收器或配置文件无效"""
    pass


class MetadataError(BuildError):
    """元数据文件缺失、不可读或结构无效"""
    pass


class EncodingError(BuildError):
    """路径包含非 ASCII 字节"""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class PathTooLongError(BuildError):
    """路径无法放入 USTAR 头部

    reason 取值为 TOO_LONG（超过 256 字节）或 UNSPLITTABLE（无法拆分）。
    """

    TOO_LONG = "too_long"
    UNSPLITTABLE = "unsplittable"

    def __init__(self, message: str, path: Optional[str] = None, reason: str = UNSPLITTABLE):
        super().__init__(message)
        self.path = path
        self.reason = reason


class BuildIOError(BuildError):
    """复制、创建目录或写归档时的文件系统错误"""
    pass


class ArchiveError(BuildIOError):
    """归档写入失败"""
    pass
