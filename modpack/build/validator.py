"""
路径校验

归档使用 USTAR 头部格式，路径存放在两个定长字段中：
最多 155 字节的 prefix 和最多 100 字节的 name，二者之间以一个 / 连接。
这里的检查都是纯函数，不访问文件系统。
"""

import os
from dataclasses import dataclass
from typing import Union

from ..errors import EncodingError, PathTooLongError

USTAR_NAME_MAX = 100
USTAR_PREFIX_MAX = 155
USTAR_PATH_MAX = 256

PathLike = Union[str, bytes, os.PathLike]


@dataclass(frozen=True)
class UstarSplit:
    """USTAR 路径拆分结果，prefix 为空表示整个路径放在 name 字段中"""
    prefix: bytes
    name: bytes


def _to_bytes(path: PathLike) -> bytes:
    return os.fsencode(path)


def _display(raw: bytes) -> str:
    return raw.decode('ascii', errors='backslashreplace')


def validate_encoding(path: PathLike) -> None:
    """确保路径的每个字节都是 ASCII

    Raises:
        EncodingError: 路径包含非 ASCII 字节
    """
    raw = _to_bytes(path)
    if any(byte > 0x7F for byte in raw):
        shown = _display(raw)
        raise EncodingError(
            f"The path '{shown}' may only contain ASCII characters in its path or filename "
            "in order to be compatible with a wide range of hosts.",
            path=shown,
        )


def validate_ustar_path(path: PathLike) -> UstarSplit:
    """按 POSIX USTAR 规则拆分路径

    长度不超过 100 字节时直接放入 name 字段；否则在某个 / 处拆分，
    要求 / 之前不超过 155 字节、之后不超过 100 字节。存在多个可行拆分点时
    取第一个（prefix 最短），与 tarfile 的选择一致。

    Returns:
        UstarSplit: 拆分结果

    Raises:
        PathTooLongError: 超过 256 字节，或找不到可行的拆分点
    """
    raw = _to_bytes(path)
    length = len(raw)

    if length > USTAR_PATH_MAX:
        raise PathTooLongError(
            f"The path '{_display(raw)}' is longer than {USTAR_PATH_MAX} characters.",
            path=_display(raw),
            reason=PathTooLongError.TOO_LONG,
        )

    if length <= USTAR_NAME_MAX:
        return UstarSplit(prefix=b"", name=raw)

    index = raw.find(b"/")
    while index != -1:
        prefix, name = raw[:index], raw[index + 1:]
        if len(prefix) <= USTAR_PREFIX_MAX and len(name) <= USTAR_NAME_MAX:
            return UstarSplit(prefix=prefix, name=name)
        index = raw.find(b"/", index + 1)

    raise PathTooLongError(
        f"The path '{_display(raw)}' could not be split at a directory separator into two parts, "
        f"the first having a maximum length of {USTAR_PREFIX_MAX} characters and the second "
        f"having a maximum length of {USTAR_NAME_MAX} characters.",
        path=_display(raw),
        reason=PathTooLongError.UNSPLITTABLE,
    )
