"""
Rules 命令实现

显示模块使用的忽略文件和生效的规则表。
"""

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ...config import ConfigError
from ...errors import BuildError
from .build import load_settings


console = Console()


def rules_command(
    source: str = typer.Argument(".", help="模块源目录"),
    config: str = typer.Option(None, "--config", "-c", help="构建设置文件 (YAML)"),
) -> None:
    """显示生效的忽略规则"""
    from ...build.builder import Builder

    try:
        builder = Builder(source, settings=load_settings(config))
        rule_set = builder.ignored_files()
    except (ConfigError, BuildError) as e:
        console.print(f"[red]错误[/red]: {escape(str(e))}")
        raise typer.Exit(1)

    if rule_set.ignore_file is not None:
        console.print(f"忽略文件: [cyan]{rule_set.ignore_file}[/cyan]")
    else:
        console.print("[yellow]未找到忽略文件，仅使用内置规则[/yellow]")

    table = Table(title="忽略规则（按求值顺序）")
    table.add_column("#", justify="right")
    table.add_column("模式", style="cyan")
    table.add_column("来源", style="dim")
    table.add_column("取反")
    table.add_column("仅目录")
    table.add_column("锚定")

    def flag(value: bool) -> str:
        return "✓" if value else ""

    for index, rule in enumerate(rule_set, start=1):
        source_label = f"{rule.source}:{rule.line_number}" if rule.line_number else rule.source
        table.add_row(str(index), escape(rule.pattern), escape(source_label),
                      flag(rule.negated), flag(rule.directory_only), flag(rule.anchored))

    console.print(table)
