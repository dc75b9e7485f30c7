"""CLI commands for team standards."""

import json
from pathlib import Path
from typing import List, Optional
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich import box

from .commands import _build_options, _cancel, _create_container, _emit, _fail


def team_init_command(
    path: Path,
    force: bool,
    config_path: Optional[str],
    console: Console,
):
    """
    Write a default team standards document into a project.

    Args:
        path: Project root
        force: Overwrite an existing document
        config_path: Config file path
        console: Rich console
    """
    console.print(Panel.fit(
        "[bold]Team Standards Setup[/bold]",
        border_style="blue"
    ))

    container = _create_container(config_path, False, console)
    try:
        created = container.standards_loader.create_team_config(path, overwrite=force)
    except Exception as e:
        _fail(e, False, console)

    console.print(f"\n[green]Team standards created: {created}[/green]")
    console.print("\nCommit this file so everyone on the team reviews with the same rules.")


def team_show_command(
    path: Path,
    config_path: Optional[str],
    console: Console,
):
    """
    Print the team standards that apply to a project.

    Args:
        path: Directory to start the search from
        config_path: Config file path
        console: Rich console
    """
    console.print(Panel.fit(
        "[bold]Team Standards[/bold]",
        border_style="blue"
    ))

    container = _create_container(config_path, False, console)
    location = container.config.team.standards_file or container.standards_loader.find_team_config(path)
    if location:
        console.print(f"\n[bold]Source:[/bold] {location}")
    else:
        console.print("\n[yellow]No team standards found, showing defaults[/yellow]")

    service = container.create_standards_service(path)
    console.print("")
    console.print_json(json.dumps(service.standards.to_json_dict()))


def team_report_command(
    path: Path,
    severity: Optional[str],
    category: Optional[str],
    exclude: Optional[List[str]],
    limit: Optional[int],
    output_format: Optional[str],
    output_file: Optional[Path],
    config_path: Optional[str],
    verbose: bool,
    console: Console,
):
    """
    Review a project under its team standards and render the team report.

    Args:
        path: Project root
        severity: Minimum severity to report
        category: Only report this category
        exclude: Extra exclude patterns
        limit: Review at most this many files
        output_format: text, markdown, json or html
        output_file: Save the report here instead of printing it
        config_path: Config file path
        verbose: Verbose output
        console: Rich console
    """
    console.print(Panel.fit(
        "[bold]Team Code Standards Report[/bold]",
        border_style="blue"
    ))

    container = _create_container(config_path, verbose, console)
    options = _build_options(container, False, severity, category, exclude, None, limit)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        task = progress.add_task(f"Reviewing {path}...", total=None)

        try:
            team_reviewer = container.create_team_reviewer(path)
            report = team_reviewer.review_directory(path, options)
            progress.update(task, description="[green]Review complete!")

        except KeyboardInterrupt:
            progress.update(task, description="[yellow]Review cancelled")
            _cancel(verbose, console)

        except Exception as e:
            progress.update(task, description="[red]Review failed!")
            _fail(e, verbose, console)

    output_format = output_format or container.config.output.default_format
    try:
        output = team_reviewer.export_team_report(report.team_report, output_format)
    except ValueError as e:
        _fail(e, verbose, console)
    _emit(output, output_file, console)


def team_validate_command(
    files: List[Path],
    project: Path,
    config_path: Optional[str],
    verbose: bool,
    console: Console,
):
    """
    Check files against the team code style.

    Exits with status 1 when any violation is found.

    Args:
        files: Files to check
        project: Project whose team standards apply
        config_path: Config file path
        verbose: Verbose output
        console: Rich console
    """
    console.print(Panel.fit(
        "[bold]Team Standards Validation[/bold]",
        border_style="blue"
    ))

    container = _create_container(config_path, verbose, console)
    service = container.create_standards_service(project)

    table = Table(
        box=box.ROUNDED,
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("File", style="green")
    table.add_column("Line", justify="right", style="yellow")
    table.add_column("Type", style="cyan")
    table.add_column("Message", style="white")

    total = 0
    for file_path in files:
        try:
            content = file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            _fail(e, verbose, console)
        for issue in service.validate_code_against_standards(str(file_path), content):
            total += 1
            table.add_row(str(file_path), str(issue.line), issue.metadata.get("type", ""), issue.message)

    if not total:
        console.print(f"\n[green]{len(files)} file(s) follow the team standards[/green]")
        return

    console.print(table)
    console.print(f"\n[red]{total} violation(s) found[/red]")
    raise SystemExit(1)
