"""CLI commands for inspecting the rule registry."""

from typing import Optional
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich import box

from .commands import _create_container, _parse_category


def rules_list_command(
    category: Optional[str],
    language: Optional[str],
    enabled_only: bool,
    config_path: Optional[str],
    console: Console,
):
    """
    List registered rules.

    Args:
        category: Only rules in this category
        language: Only rules that run for this language
        enabled_only: Hide disabled rules
        config_path: Config file path
        console: Rich console
    """
    console.print(Panel.fit(
        "[bold]Review Rules[/bold]",
        border_style="blue"
    ))

    container = _create_container(config_path, False, console)
    wanted_category = _parse_category(category)

    rules = container.registry.get_all_rules()
    if wanted_category is not None:
        rules = [r for r in rules if r.category == wanted_category]
    if language:
        rules = [r for r in rules if r.applies_to(language.lower())]
    if enabled_only:
        rules = [r for r in rules if r.enabled]

    if not rules:
        console.print("\n[yellow]No rules match the given filters.[/yellow]")
        return

    table = Table(
        title=f"\n{len(rules)} Rule(s)",
        box=box.ROUNDED,
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Rule ID", style="green", no_wrap=True)
    table.add_column("Name", style="white")
    table.add_column("Category", style="cyan")
    table.add_column("Severity", style="yellow")
    table.add_column("Languages", style="magenta")
    table.add_column("Enabled", justify="center")

    for rule in rules:
        languages_str = ", ".join(rule.languages[:3]) if rule.languages else "all"
        if len(rule.languages) > 3:
            languages_str += f" +{len(rule.languages) - 3}"

        table.add_row(
            rule.id,
            rule.name,
            rule.category.value,
            rule.severity.value,
            languages_str,
            "[green]yes[/green]" if rule.enabled else "[red]no[/red]",
        )

    console.print(table)


def rules_stats_command(config_path: Optional[str], console: Console):
    """
    Show rule registry statistics.

    Args:
        config_path: Config file path
        console: Rich console
    """
    console.print(Panel.fit(
        "[bold]Rule Statistics[/bold]",
        border_style="blue"
    ))

    container = _create_container(config_path, False, console)
    stats = container.registry.get_rule_stats()

    console.print(f"\n[bold]Total:[/bold] {stats['total']}")
    console.print(f"  [green]Enabled: {stats['enabled']}[/green]")
    console.print(f"  [red]Disabled: {stats['disabled']}[/red]")

    for title, key in (("Category", "by_category"), ("Severity", "by_severity"), ("Language", "by_language")):
        table = Table(box=box.ROUNDED, show_header=True, header_style="bold cyan")
        table.add_column(title, style="white")
        table.add_column("Rules", justify="right", style="yellow")
        for name, count in sorted(stats[key].items()):
            table.add_row(name, str(count))
        console.print(table)
