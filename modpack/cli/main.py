"""
modpack CLI 主入口

提供命令行接口，支持 build/validate/rules 命令。
"""

from typing import Optional

import typer
from rich.console import Console

from .. import __version__
from ..utils import configure_logging, OutputLevel
from .commands import build, rules, validate


# 创建主应用
app = typer.Typer(
    name="modpack",
    help="modpack - 把模块源码打包为带版本号的 tar.gz 归档",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# 控制台输出
console = Console()


def version_callback(value: bool) -> None:
    """显示版本信息"""
    if value:
        console.print(f"modpack v{__version__}")
        raise typer.Exit()


def verbose_callback(verbose: bool) -> None:
    """配置详细输出"""
    configure_logging(level=OutputLevel.DEBUG if verbose else OutputLevel.INFO)


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="显示版本信息"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        callback=verbose_callback,
        help="启用详细输出"
    )
) -> None:
    """modpack - 模块打包工具

    使用 --help 查看可用命令的详细信息。
    """
    pass


# 注册子命令
app.command("build", help="构建模块包")(build.build_command)
app.command("validate", help="校验模块中的路径而不写入任何文件")(validate.validate_command)
app.command("rules", help="显示生效的忽略规则")(rules.rules_command)


if __name__ == "__main__":
    app()
