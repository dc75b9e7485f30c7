"""Main CLI application entry point."""

import sys
from pathlib import Path
from typing import List, Optional
import typer
from rich.console import Console

from ... import __version__
from .commands import (
    review_file_command,
    review_directory_command,
    git_review_command,
    compare_command,
    config_command,
)
from .commands_rules import rules_list_command, rules_stats_command
from .commands_team import (
    team_init_command,
    team_show_command,
    team_report_command,
    team_validate_command,
)

# Create Typer app
app = typer.Typer(
    name="codereview",
    help=f"codereview v{__version__} - Pluggable static code review",
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Reports go to stdout; panels, progress and errors go to stderr
console = Console(stderr=True)


@app.command(name="file")
def file(
    path: Path = typer.Argument(
        ...,
        help="File to review",
        exists=True,
        dir_okay=False,
    ),
    ai: bool = typer.Option(
        False,
        "--ai",
        help="Also run the AI reviewer",
    ),
    severity: Optional[str] = typer.Option(
        None,
        "--severity", "-s",
        help="Minimum severity to report (critical, high, medium, low, info)",
    ),
    category: Optional[str] = typer.Option(
        None,
        "--category",
        help="Only report issues in this category",
    ),
    output_format: Optional[str] = typer.Option(
        None,
        "--format", "-f",
        help="Output format (text, markdown, json, html)",
    ),
    output_file: Optional[Path] = typer.Option(
        None,
        "--output-file", "-o",
        help="Save report to file",
    ),
    save: bool = typer.Option(
        False,
        "--save",
        help="Store a result snapshot for later comparison",
    ),
    config: Optional[str] = typer.Option(
        None,
        "--config", "-c",
        help="Path to configuration file",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Enable verbose output with technical details",
    ),
):
    """
    Review a single file.
    """
    review_file_command(
        path=path,
        use_ai=ai,
        severity=severity,
        category=category,
        output_format=output_format,
        output_file=output_file,
        save=save,
        config_path=config,
        verbose=verbose,
        console=console,
    )


def _review_tree(path: Path, project: bool, **kwargs) -> None:
    review_directory_command(path=path, project=project, console=console, **kwargs)


@app.command(name="dir")
def directory(
    path: Path = typer.Argument(
        ...,
        help="Directory to review",
        exists=True,
        file_okay=False,
    ),
    ai: bool = typer.Option(False, "--ai", help="Also run the AI reviewer"),
    severity: Optional[str] = typer.Option(
        None,
        "--severity", "-s",
        help="Minimum severity to report (critical, high, medium, low, info)",
    ),
    category: Optional[str] = typer.Option(None, "--category", help="Only report issues in this category"),
    exclude: Optional[List[str]] = typer.Option(
        None,
        "--exclude", "-e",
        help="Exclusion patterns (can specify multiple)",
    ),
    include: Optional[List[str]] = typer.Option(
        None,
        "--include", "-i",
        help="Only review paths matching these patterns (can specify multiple)",
    ),
    limit: Optional[int] = typer.Option(None, "--limit", min=1, help="Review at most this many files"),
    max_failures: Optional[int] = typer.Option(
        None,
        "--max-failures",
        min=1,
        help="Stop starting new reviews after this many failed files",
    ),
    output_format: Optional[str] = typer.Option(
        None,
        "--format", "-f",
        help="Output format (text, markdown, json, html)",
    ),
    output_file: Optional[Path] = typer.Option(None, "--output-file", "-o", help="Save report to file"),
    save: bool = typer.Option(False, "--save", help="Store a result snapshot for later comparison"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to configuration file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output with technical details"),
):
    """
    Review every source file under a directory.
    """
    _review_tree(
        path,
        project=False,
        use_ai=ai,
        severity=severity,
        category=category,
        exclude=exclude,
        include=include,
        limit=limit,
        max_failures=max_failures,
        output_format=output_format,
        output_file=output_file,
        save=save,
        config_path=config,
        verbose=verbose,
    )


@app.command(name="project")
def project(
    path: Path = typer.Argument(
        Path("."),
        help="Project root",
        exists=True,
        file_okay=False,
    ),
    ai: bool = typer.Option(False, "--ai", help="Also run the AI reviewer"),
    severity: Optional[str] = typer.Option(
        None,
        "--severity", "-s",
        help="Minimum severity to report (critical, high, medium, low, info)",
    ),
    category: Optional[str] = typer.Option(None, "--category", help="Only report issues in this category"),
    exclude: Optional[List[str]] = typer.Option(
        None,
        "--exclude", "-e",
        help="Exclusion patterns (can specify multiple)",
    ),
    include: Optional[List[str]] = typer.Option(
        None,
        "--include", "-i",
        help="Only review paths matching these patterns (can specify multiple)",
    ),
    limit: Optional[int] = typer.Option(None, "--limit", min=1, help="Review at most this many files"),
    max_failures: Optional[int] = typer.Option(
        None,
        "--max-failures",
        min=1,
        help="Stop starting new reviews after this many failed files",
    ),
    output_format: Optional[str] = typer.Option(
        None,
        "--format", "-f",
        help="Output format (text, markdown, json, html)",
    ),
    output_file: Optional[Path] = typer.Option(None, "--output-file", "-o", help="Save report to file"),
    save: bool = typer.Option(False, "--save", help="Store a result snapshot for later comparison"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to configuration file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output with technical details"),
):
    """
    Review a whole project.

    Like [bold]dir[/bold], but dependency and build folders
    (node_modules, dist, build, .venv, ...) are always skipped.
    """
    _review_tree(
        path,
        project=True,
        use_ai=ai,
        severity=severity,
        category=category,
        exclude=exclude,
        include=include,
        limit=limit,
        max_failures=max_failures,
        output_format=output_format,
        output_file=output_file,
        save=save,
        config_path=config,
        verbose=verbose,
    )


@app.command(name="pr")
def pull_request(
    path: Path = typer.Argument(
        Path("."),
        help="Directory inside the git repository",
        exists=True,
        file_okay=False,
    ),
    base: Optional[str] = typer.Option(
        None,
        "--base", "-b",
        help="Base branch (defaults to git.base_branch from config)",
    ),
    ai: bool = typer.Option(False, "--ai", help="Also run the AI reviewer"),
    severity: Optional[str] = typer.Option(
        None,
        "--severity", "-s",
        help="Minimum severity to report (critical, high, medium, low, info)",
    ),
    category: Optional[str] = typer.Option(None, "--category", help="Only report issues in this category"),
    limit: Optional[int] = typer.Option(None, "--limit", min=1, help="Review at most this many files"),
    output_format: Optional[str] = typer.Option(
        None,
        "--format", "-f",
        help="Output format (text, markdown, json, html)",
    ),
    output_file: Optional[Path] = typer.Option(None, "--output-file", "-o", help="Save report to file"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to configuration file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output with technical details"),
):
    """
    Review the files the current branch changed since it left the base branch.
    """
    git_review_command(
        path=path,
        base=base,
        commit=None,
        use_ai=ai,
        severity=severity,
        category=category,
        limit=limit,
        output_format=output_format,
        output_file=output_file,
        config_path=config,
        verbose=verbose,
        console=console,
    )


@app.command(name="commit")
def commit(
    sha: str = typer.Argument(
        "HEAD",
        help="Commit to review",
    ),
    path: Path = typer.Option(
        Path("."),
        "--path", "-p",
        help="Directory inside the git repository",
        exists=True,
        file_okay=False,
    ),
    ai: bool = typer.Option(False, "--ai", help="Also run the AI reviewer"),
    severity: Optional[str] = typer.Option(
        None,
        "--severity", "-s",
        help="Minimum severity to report (critical, high, medium, low, info)",
    ),
    category: Optional[str] = typer.Option(None, "--category", help="Only report issues in this category"),
    limit: Optional[int] = typer.Option(None, "--limit", min=1, help="Review at most this many files"),
    output_format: Optional[str] = typer.Option(
        None,
        "--format", "-f",
        help="Output format (text, markdown, json, html)",
    ),
    output_file: Optional[Path] = typer.Option(None, "--output-file", "-o", help="Save report to file"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to configuration file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output with technical details"),
):
    """
    Review the files touched by one commit.
    """
    git_review_command(
        path=path,
        base=None,
        commit=sha,
        use_ai=ai,
        severity=severity,
        category=category,
        limit=limit,
        output_format=output_format,
        output_file=output_file,
        config_path=config,
        verbose=verbose,
        console=console,
    )


@app.command(name="compare")
def compare(
    old: Path = typer.Argument(..., help="Earlier saved result", exists=True, dir_okay=False),
    new: Path = typer.Argument(..., help="Later saved result", exists=True, dir_okay=False),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to configuration file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="List new and resolved issues"),
):
    """
    Compare two saved review results.
    """
    compare_command(
        old=old,
        new=new,
        config_path=config,
        verbose=verbose,
        console=console,
    )


@app.command(name="config")
def config_cmd(
    init: bool = typer.Option(
        False,
        "--init",
        help="Create default configuration file",
    ),
    path: Optional[str] = typer.Option(
        None,
        "--path",
        help="Configuration file path",
    ),
    show: bool = typer.Option(
        False,
        "--show",
        help="Show current configuration",
    ),
):
    """
    Manage configuration.

    Create, view, or validate configuration files.
    """
    config_command(
        init=init,
        path=path,
        show=show,
        console=console,
    )


# Create rules subcommand group
rules_app = typer.Typer(
    name="rules",
    help="Inspect review rules",
    no_args_is_help=True,
)


@rules_app.command(name="list")
def rules_list(
    category: Optional[str] = typer.Option(None, "--category", help="Only rules in this category"),
    language: Optional[str] = typer.Option(None, "--language", "-l", help="Only rules for this language"),
    enabled_only: bool = typer.Option(False, "--enabled", help="Hide disabled rules"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to configuration file"),
):
    """
    List all registered rules.
    """
    rules_list_command(
        category=category,
        language=language,
        enabled_only=enabled_only,
        config_path=config,
        console=console,
    )


@rules_app.command(name="stats")
def rules_stats(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to configuration file"),
):
    """
    Show rule counts by category, severity and language.
    """
    rules_stats_command(config_path=config, console=console)


# Create team subcommand group
team_app = typer.Typer(
    name="team",
    help="Manage team code standards",
    no_args_is_help=True,
)


@team_app.command(name="init")
def team_init(
    path: Path = typer.Argument(Path("."), help="Project root", exists=True, file_okay=False),
    force: bool = typer.Option(False, "--force", help="Overwrite existing team standards"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to configuration file"),
):
    """
    Create .codereview/team-standards.json with default standards.
    """
    team_init_command(path=path, force=force, config_path=config, console=console)


@team_app.command(name="show")
def team_show(
    path: Path = typer.Argument(Path("."), help="Project directory", exists=True, file_okay=False),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to configuration file"),
):
    """
    Show the team standards that apply to a project.
    """
    team_show_command(path=path, config_path=config, console=console)


@team_app.command(name="report")
def team_report(
    path: Path = typer.Argument(Path("."), help="Project root", exists=True, file_okay=False),
    severity: Optional[str] = typer.Option(
        None,
        "--severity", "-s",
        help="Minimum severity to report (critical, high, medium, low, info)",
    ),
    category: Optional[str] = typer.Option(None, "--category", help="Only report issues in this category"),
    exclude: Optional[List[str]] = typer.Option(
        None,
        "--exclude", "-e",
        help="Exclusion patterns (can specify multiple)",
    ),
    limit: Optional[int] = typer.Option(None, "--limit", min=1, help="Review at most this many files"),
    output_format: Optional[str] = typer.Option(
        None,
        "--format", "-f",
        help="Output format (text, markdown, json, html)",
    ),
    output_file: Optional[Path] = typer.Option(None, "--output-file", "-o", help="Save report to file"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to configuration file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output with technical details"),
):
    """
    Review a project under its team standards and print the team report.
    """
    team_report_command(
        path=path,
        severity=severity,
        category=category,
        exclude=exclude,
        limit=limit,
        output_format=output_format,
        output_file=output_file,
        config_path=config,
        verbose=verbose,
        console=console,
    )


@team_app.command(name="validate")
def team_validate(
    files: List[Path] = typer.Argument(..., help="Files to check", exists=True, dir_okay=False),
    project_path: Path = typer.Option(
        Path("."),
        "--project", "-p",
        help="Project whose team standards apply",
        exists=True,
        file_okay=False,
    ),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to configuration file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output with technical details"),
):
    """
    Check files against the team line length and indentation style.
    """
    team_validate_command(
        files=files,
        project=project_path,
        config_path=config,
        verbose=verbose,
        console=console,
    )


# Add subcommand groups to main app
app.add_typer(rules_app, name="rules")
app.add_typer(team_app, name="team")


def main():
    """Main entry point."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(130)
    except Exception as e:
        console.print(f"\n[bold red]Error:[/bold red] {str(e)}")
        sys.exit(1)


if __name__ == "__main__":
    main()
