"""
Build 命令实现

构建模块包的核心命令。
"""

import traceback
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from ...config import load_config, BuildSettings, ConfigError, ConfigValidationError
from ...errors import BuildError
from ...utils import format_size
from ...utils.logging import set_log_level, set_log_file, OutputLevel


console = Console()


def load_settings(config: Optional[str]) -> BuildSettings:
    """加载 --config 指定的设置文件，未指定时使用默认设置"""
    if not config:
        return BuildSettings()
    console.print(f"[cyan]正在加载配置文件[/cyan]: {config}")
    return load_config(Path(config))


def build_command(
    source: str = typer.Argument(".", help="模块源目录"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="输出目录，默认 <source>/pkg"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="构建设置文件 (YAML)"),
    force: bool = typer.Option(False, "--force", "-f", help="强制覆盖已存在的归档"),
    keep_build_dir: bool = typer.Option(False, "--keep-build-dir/--clean", help="构建完成后保留构建目录"),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="日志输出文件"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="输出详细调试日志 (DEBUG 级别)"),
) -> None:
    """构建模块包

    示例:
        modpack build ./my-module
        modpack build ./my-module -o /tmp/out --force
    """
    from ...build.builder import Builder

    set_log_level(OutputLevel.DEBUG if verbose else OutputLevel.INFO)

    if log_file:
        try:
            set_log_file(log_file)
        except OSError:
            console.print(f"[yellow]无法写入日志文件: {log_file}[/yellow]")

    try:
        settings = load_settings(config)
        builder = Builder(source, destination=output, settings=settings)

        if builder.package_already_exists() and not force:
            console.print(f"[red]归档已存在: {builder.package_file}[/red]")
            console.print("使用 --force 参数强制覆盖")
            raise typer.Exit(1)

        def progress_callback(stage: str, current: int, total: int, message: str = "") -> None:
            """进度回调函数，显示进度"""
            if total > 0 and verbose:
                percentage = (current / total) * 100
                console.print(f"[blue]{stage}[/blue]: {message} ({percentage:.0f}%)")

        package_file = builder.build(progress_callback=progress_callback)

        if not keep_build_dir:
            builder.cleanup()

        stats = builder.last_context.build_stats
        console.print(f"[green]✓ 模块包构建完成[/green]: {package_file}")
        console.print(f"[blue]文件数量[/blue]: {stats['total_files']}")
        console.print(f"[blue]归档大小[/blue]: {format_size(stats['archive_size'])}")
        if stats['symlinks_skipped']:
            console.print(f"[yellow]跳过符号链接[/yellow]: {stats['symlinks_skipped']}")

    except ConfigValidationError as e:
        console.print("[red]配置验证失败:[/red]")
        console.print(e.format_errors())
        raise typer.Exit(1)
    except ConfigError as e:
        console.print(f"[red]配置错误[/red]: {escape(str(e))}")
        raise typer.Exit(1)
    except BuildError as e:
        console.print(f"[red]✗ 构建失败[/red]: {escape(str(e))}")
        if log_file:
            console.print(f"[yellow]详细错误信息:[/yellow]\n{traceback.format_exc()}")
        raise typer.Exit(1)
