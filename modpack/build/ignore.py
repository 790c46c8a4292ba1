"""
忽略规则解析

按 gitignore 语义决定哪些相对路径不进入模块包：通配符、锚定、取反、
仅目录标记。规则集是一个有序的不可变列表，由纯函数求值，后出现的规则
覆盖先前的匹配结果。单条模式的编译交给 pathspec 的 gitwildmatch 实现。
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Pattern, Sequence, Tuple, Union

from pathspec.patterns import GitWildMatchPattern
from pathspec.patterns.gitwildmatch import GitWildMatchPatternError

from ..config.schema import DEFAULT_IGNORE_FILES, DEFAULT_IGNORED
from ..errors import BuildIOError, ConfigurationError
from ..utils.paths import subpath_of

BUILTIN_SOURCE = "<builtin>"

_GLOB_SPECIAL = re.compile(r'([*?\[\]\\])')


@dataclass(frozen=True)
class IgnoreRule:
    """单条忽略规则"""
    pattern: str
    negated: bool
    directory_only: bool
    anchored: bool
    source: str = BUILTIN_SOURCE
    line_number: Optional[int] = None
    regex: Optional[Pattern] = field(default=None, compare=False, repr=False)

    @classmethod
    def parse(cls, line: str, source: str = BUILTIN_SOURCE,
              line_number: Optional[int] = None) -> Optional['IgnoreRule']:
        """解析一行模式，空行和注释返回 None

        Raises:
            ConfigurationError: 模式无法编译
        """
        text = line.rstrip('\r\n')
        if not text.strip() or text.startswith('#'):
            return None

        try:
            compiled = GitWildMatchPattern(text)
        except GitWildMatchPatternError as e:
            where = f"{source}:{line_number}" if line_number else source
            raise ConfigurationError(f"Invalid ignore pattern {text!r} ({where}): {e}") from e

        if compiled.include is None or compiled.regex is None:
            return None

        negated = text.startswith('!')
        body = (text[1:] if negated else text).rstrip()
        directory_only = body.endswith('/')
        stripped = body.rstrip('/')
        anchored = stripped.startswith('/') or ('/' in stripped and not stripped.startswith('**/'))

        return cls(
            pattern=text,
            negated=negated,
            directory_only=directory_only,
            anchored=anchored,
            source=source,
            line_number=line_number,
            regex=compiled.regex,
        )

    def matches(self, candidate: str) -> bool:
        """candidate 为规范化后的相对路径，目录以 / 结尾"""
        return self.regex is not None and self.regex.match(candidate) is not None


def _candidate(relative_path: Union[str, os.PathLike], is_directory: bool) -> str:
    path = Path(relative_path).as_posix()
    while path.startswith('./'):
        path = path[2:]
    path = path.lstrip('/')
    if is_directory and not path.endswith('/'):
        path += '/'
    return path


@dataclass(frozen=True)
class IgnoreRuleSet:
    """有序的忽略规则集"""
    rules: Tuple[IgnoreRule, ...] = ()
    ignore_file: Optional[Path] = None

    def __len__(self) -> int:
        return len(self.rules)

    def __iter__(self):
        return iter(self.rules)

    @property
    def patterns(self) -> List[str]:
        return [rule.pattern for rule in self.rules]

    def is_ignored(self, relative_path: Union[str, os.PathLike], is_directory: bool = False) -> bool:
        return is_ignored(self, relative_path, is_directory)

    def is_excluded(self, relative_path: Union[str, os.PathLike], is_directory: bool = False) -> bool:
        """判断路径是否不会进入模块包

        除了路径本身被忽略之外，任一上级目录被忽略时整棵子树在遍历中被剪枝，
        即使之后有取反规则匹配该路径也一样。
        """
        parts = _candidate(relative_path, False).rstrip('/').split('/')
        for depth in range(1, len(parts)):
            if is_ignored(self, '/'.join(parts[:depth]), True):
                return True
        return is_ignored(self, relative_path, is_directory)

    def matching_rule(self, relative_path: Union[str, os.PathLike],
                      is_directory: bool = False) -> Optional[IgnoreRule]:
        """返回决定结果的最后一条匹配规则，没有匹配返回 None"""
        candidate = _candidate(relative_path, is_directory)
        decisive = None
        for rule in self.rules:
            if rule.matches(candidate):
                decisive = rule
        return decisive


def is_ignored(rule_set: IgnoreRuleSet, relative_path: Union[str, os.PathLike],
               is_directory: bool = False) -> bool:
    """判断相对路径是否被忽略

    依次求值所有规则，最后一条匹配的规则决定结果：普通规则忽略，取反规则恢复。
    仅目录规则只在 is_directory 为真（或路径位于该目录之下）时匹配。
    """
    rule = rule_set.matching_rule(relative_path, is_directory)
    return rule is not None and not rule.negated


def parse_rules(lines: Iterable[str], source: str = BUILTIN_SOURCE) -> List[IgnoreRule]:
    """把多行模式解析为规则列表，跳过空行和注释"""
    rules = []
    for number, line in enumerate(lines, start=1):
        rule = IgnoreRule.parse(line, source=source, line_number=number)
        if rule is not None:
            rules.append(rule)
    return rules


class IgnoreResolver:
    """忽略规则解析器

    在模块根目录按优先级查找一个忽略文件，再合并内置规则。
    内置规则始终追加在忽略文件之后，所以无论是否找到忽略文件都会生效。
    """

    def __init__(
        self,
        ignore_files: Sequence[str] = DEFAULT_IGNORE_FILES,
        default_ignores: Sequence[str] = DEFAULT_IGNORED,
        extra_ignores: Sequence[str] = (),
    ):
        self.ignore_files = list(ignore_files)
        self.default_ignores = list(default_ignores)
        self.extra_ignores = list(extra_ignores)

    def locate_ignore_file(self, source: Union[str, Path]) -> Optional[Path]:
        """返回第一个存在且可读的忽略文件，都不存在时返回 None"""
        for name in self.ignore_files:
            candidate = Path(source) / name
            if candidate.is_file() and os.access(candidate, os.R_OK):
                return candidate
        return None

    def build_rule_set(self, source: Union[str, Path],
                       destination: Optional[Union[str, Path]] = None,
                       build_dir: Optional[Union[str, Path]] = None,
                       package_file: Optional[Union[str, Path]] = None) -> IgnoreRuleSet:
        """构建规则集

        顺序：忽略文件中的规则、内置规则、输出规则、额外规则。
        输出目录、构建目录和归档位于源目录内时各自生成一条锚定规则，
        输出目录就是源目录本身时仍会排除构建目录和归档。

        Raises:
            BuildIOError: 忽略文件读取失败
            ConfigurationError: 忽略文件不是 UTF-8 或包含无法编译的模式
        """
        rules: List[IgnoreRule] = []
        ignore_file = self.locate_ignore_file(source)

        if ignore_file is not None:
            try:
                content = ignore_file.read_text(encoding='utf-8')
            except UnicodeDecodeError as e:
                raise ConfigurationError(f"Ignore file '{ignore_file}' is not valid UTF-8: {e}") from e
            except OSError as e:
                raise BuildIOError(f"Unable to read ignore file '{ignore_file}': {e}") from e
            rules.extend(parse_rules(content.splitlines(), source=ignore_file.name))

        rules.extend(parse_rules(self.default_ignores))

        output_rules: List[IgnoreRule] = []
        for path, is_directory in ((destination, True), (build_dir, True), (package_file, False)):
            if path is None:
                continue
            rule = self._output_rule(source, path, is_directory)
            if rule is not None and rule not in output_rules:
                output_rules.append(rule)
        rules.extend(output_rules)

        rules.extend(parse_rules(self.extra_ignores, source="<extra>"))

        return IgnoreRuleSet(rules=tuple(rules), ignore_file=ignore_file)

    @staticmethod
    def _output_rule(source: Union[str, Path], path: Union[str, Path],
                     is_directory: bool) -> Optional[IgnoreRule]:
        relative = subpath_of(path, source)
        if not relative or relative == '.':
            return None
        escaped = _GLOB_SPECIAL.sub(r'\\\1', relative)
        return IgnoreRule.parse(f"/{escaped}/" if is_directory else f"/{escaped}")


def build_rule_set(source: Union[str, Path], destination: Optional[Union[str, Path]] = None) -> IgnoreRuleSet:
    """便捷函数：使用默认设置构建规则集"""
    return IgnoreResolver().build_rule_set(source, destination)


def locate_ignore_file(source: Union[str, Path]) -> Optional[Path]:
    """便捷函数：使用默认优先级查找忽略文件"""
    return IgnoreResolver().locate_ignore_file(source)
