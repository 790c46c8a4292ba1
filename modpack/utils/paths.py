"""
路径工具

提供路径处理相关的工具函数。
"""

import os
import shutil
import stat
from pathlib import Path
from typing import Optional, Union


def expand_path(path: Union[str, Path]) -> Path:
    """扩展路径（处理环境变量和用户目录），返回绝对路径，不解析符号链接

    Args:
        path: 原始路径

    Returns:
        Path: 扩展后的绝对路径
    """
    if isinstance(path, str):
        path = os.path.expandvars(path)
        path = os.path.expanduser(path)

    return Path(os.path.abspath(path))


def real_path(path: Union[str, Path]) -> Path:
    """解析符号链接后的规范路径"""
    return Path(os.path.realpath(expand_path(path)))


def relative_posix(path: Union[str, Path], base: Union[str, Path]) -> str:
    """计算 path 相对于 base 的 POSIX 风格路径

    Args:
        path: 目标路径
        base: 基准目录

    Returns:
        str: 使用正斜杠分隔的相对路径
    """
    return Path(os.path.relpath(path, base)).as_posix()


def subpath_of(path: Union[str, Path], base: Union[str, Path]) -> Optional[str]:
    """如果 path 位于 base 之内，返回其 POSIX 相对路径，否则返回 None

    两个参数都会先解析为规范路径再比较。
    """
    resolved = real_path(path)
    resolved_base = real_path(base)
    try:
        relative = resolved.relative_to(resolved_base)
    except ValueError:
        return None
    return relative.as_posix()


def remove_tree(path: Union[str, Path]) -> None:
    """删除目录树，先补上目录的属主读写执行权限，只读目录也能删除"""
    path = Path(path)
    if not path.exists() and not path.is_symlink():
        return
    if path.is_symlink() or not path.is_dir():
        path.unlink()
        return

    os.chmod(path, stat.S_IMODE(path.stat().st_mode) | stat.S_IRWXU)
    for root, dirs, _files in os.walk(path):
        for name in dirs:
            child = os.path.join(root, name)
            if not os.path.islink(child):
                os.chmod(child, stat.S_IMODE(os.lstat(child).st_mode) | stat.S_IRWXU)
    shutil.rmtree(path)


def format_size(size_bytes: int) -> str:
    """格式化文件大小

    Args:
        size_bytes: 字节数

    Returns:
        str: 格式化的大小字符串
    """
    if size_bytes == 0:
        return "0 B"

    units = ["B", "KB", "MB", "GB", "TB"]
    unit_index = 0
    size = float(size_bytes)

    while size >= 1024.0 and unit_index < len(units) - 1:
        size /= 1024.0
        unit_index += 1

    if unit_index == 0:
        return f"{int(size)} {units[unit_index]}"
    else:
        return f"{size:.1f} {units[unit_index]}"
