"""
Validate 命令实现

遍历模块并校验所有路径，不写入任何文件，一次性列出全部问题。
"""

import json

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ...config import ConfigError, ConfigValidationError
from ...errors import BuildError
from .build import load_settings


console = Console()


def validate_command(
    source: str = typer.Argument(".", help="模块源目录"),
    config: str = typer.Option(None, "--config", "-c", help="构建设置文件 (YAML)"),
    json_output: bool = typer.Option(False, "--json", help="输出 JSON 格式的结果"),
) -> None:
    """校验模块

    示例:
        modpack validate ./my-module
        modpack validate ./my-module --json
    """
    from ...build.builder import Builder

    try:
        builder = Builder(source, settings=load_settings(config))
        failures = builder.validate()
    except ConfigValidationError as e:
        console.print("[red]配置验证失败:[/red]")
        console.print(e.format_errors())
        raise typer.Exit(1)
    except (ConfigError, BuildError) as e:
        if json_output:
            typer.echo(json.dumps({"source": source, "error": str(e)}, ensure_ascii=False, indent=2))
        else:
            console.print(f"[red]校验失败[/red]: {escape(str(e))}")
        raise typer.Exit(1)

    if json_output:
        data = {
            "source": str(builder.source),
            "release": builder.release_name,
            "errors": [
                {
                    "path": result.relative_path,
                    "type": type(result.error).__name__,
                    "message": str(result.error),
                }
                for result in failures
            ],
        }
        typer.echo(json.dumps(data, ensure_ascii=False, indent=2))
    elif not failures:
        console.print(f"[green]✓ 模块校验通过[/green]: {builder.release_name}")
    else:
        console.print(f"[red]模块校验失败 ({len(failures)} 个问题):[/red]")
        table = Table(title="校验错误")
        table.add_column("路径", style="cyan", overflow="fold")
        table.add_column("类型", style="yellow", no_wrap=True)
        table.add_column("错误信息", style="red")
        for result in failures:
            table.add_row(escape(result.relative_path), type(result.error).__name__, escape(str(result.error)))
        console.print(table)

    if failures:
        raise typer.Exit(1)
