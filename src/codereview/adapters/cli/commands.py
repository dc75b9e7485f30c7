"""CLI command implementations."""

from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn

from ...domain.models.review import Category, ReviewResult, ReviewStatus, Severity
from ...domain.services.reviewer import ReviewOptions
from ...infrastructure.config.config_loader import ConfigLoader
from ...infrastructure.di.container import DIContainer
from ...infrastructure.presentation.error_presenter import ErrorPresenter
from ...application.commands.review_directory import ReviewDirectoryCommand
from ...application.commands.review_file import ReviewFileCommand
from ...application.commands.team_review import TeamReviewReport


def _parse_severity(value: Optional[str]) -> Optional[Severity]:
    if value is None:
        return None
    try:
        return Severity(value.lower())
    except ValueError:
        valid = ", ".join(s.value for s in Severity)
        raise typer.BadParameter(f"Unknown severity '{value}'. Choose from: {valid}")


def _parse_category(value: Optional[str]) -> Optional[Category]:
    if value is None:
        return None
    try:
        return Category(value.lower().replace("-", "_"))
    except ValueError:
        valid = ", ".join(c.value for c in Category)
        raise typer.BadParameter(f"Unknown category '{value}'. Choose from: {valid}")


def _build_options(
    container: DIContainer,
    use_ai: bool,
    severity: Optional[str],
    category: Optional[str],
    exclude: Optional[List[str]],
    include: Optional[List[str]],
    limit: Optional[int],
    max_failures: Optional[int] = None,
    console: Optional[Console] = None,
) -> ReviewOptions:
    """
    Merge CLI flags over the configured review defaults.

    AI review requested without an AI reviewer configured is reported on
    console and the review runs with the rules only.
    """
    options = container.review_options(
        use_ai=use_ai or None,
        limit=limit,
        max_failures=max_failures,
        min_severity=_parse_severity(severity),
        category=_parse_category(category),
    )
    if exclude:
        options.exclude_patterns = options.exclude_patterns + list(exclude)
    if include:
        options.include_patterns = list(include)
    if options.use_ai and container.reviewer.ai_reviewer is None:
        options.use_ai = False
        if console is not None:
            console.print(
                "[yellow]Warning: AI review requested but no AI reviewer is configured; "
                "running rules only[/yellow]"
            )
    return options


def _emit(
    output: str,
    output_file: Optional[Path],
    console: Console,
) -> None:
    """Write a rendered report to output_file, or to stdout."""
    if output_file:
        output_file.parent.mkdir(parents=True, exist_ok=True)
        output_file.write_text(output, encoding="utf-8")
        console.print(f"\n[green]Results saved to {output_file}[/green]")
    else:
        typer.echo(output)


def _render_result(
    container: DIContainer,
    result: ReviewResult,
    output_format: Optional[str],
    output_file: Optional[Path],
    verbose: bool,
    console: Console,
) -> None:
    output_format = output_format or container.config.output.default_format
    formatter = container.formatter_factory.create(
        output_format,
        use_color=container.config.output.color and output_file is None,
        verbose=verbose or container.config.output.verbose,
    )
    _emit(formatter.format_result(result.to_dict()), output_file, console)

    if result.status == ReviewStatus.FAILED:
        raise SystemExit(1)


def _fail(error: Exception, verbose: bool, console: Console) -> None:
    console.print(f"\n{ErrorPresenter.present(error, verbose=verbose)}")
    raise SystemExit(1)


def _cancel(verbose: bool, console: Console) -> None:
    console.print(f"\n{ErrorPresenter.present(KeyboardInterrupt(), verbose=verbose)}")
    raise SystemExit(130)


def _create_container(config_path: Optional[str], verbose: bool, console: Console) -> DIContainer:
    try:
        return DIContainer.create(config_path, log_level="INFO" if verbose else None)
    except Exception as e:
        _fail(e, verbose, console)


def review_file_command(
    path: Path,
    use_ai: bool,
    severity: Optional[str],
    category: Optional[str],
    output_format: Optional[str],
    output_file: Optional[Path],
    save: bool,
    config_path: Optional[str],
    verbose: bool,
    console: Console,
):
    """
    Execute file review command.

    Args:
        path: File to review
        use_ai: Also run the AI reviewer
        severity: Minimum severity to report
        category: Only report this category
        output_format: text, markdown, json or html
        output_file: Save the report here instead of printing it
        save: Store a result snapshot
        config_path: Config file path
        verbose: Verbose output
        console: Rich console
    """
    console.print(Panel.fit(
        "[bold]Code Review: File[/bold]",
        border_style="blue"
    ))

    container = _create_container(config_path, verbose, console)
    options = _build_options(container, use_ai, severity, category, None, None, None, console=console)
    command = ReviewFileCommand(file_path=path, options=options, save_result=save)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        task = progress.add_task(f"Reviewing {path.name}...", total=None)

        try:
            result = container.review_file_handler.handle(command)
            progress.update(task, description="[green]Review complete!")

        except KeyboardInterrupt:
            progress.update(task, description="[yellow]Review cancelled")
            _cancel(verbose, console)

        except Exception as e:
            progress.update(task, description="[red]Review failed!")
            _fail(e, verbose, console)

    _render_result(container, result, output_format, output_file, verbose, console)


def review_directory_command(
    path: Path,
    project: bool,
    use_ai: bool,
    severity: Optional[str],
    category: Optional[str],
    exclude: Optional[List[str]],
    include: Optional[List[str]],
    limit: Optional[int],
    max_failures: Optional[int],
    output_format: Optional[str],
    output_file: Optional[Path],
    save: bool,
    config_path: Optional[str],
    verbose: bool,
    console: Console,
):
    """
    Execute directory or project review command.

    Args:
        path: Directory to review
        project: Also skip dependency and build folders
        use_ai: Also run the AI reviewer
        severity: Minimum severity to report
        category: Only report this category
        exclude: Extra exclude patterns
        include: Only review paths matching these patterns
        limit: Review at most this many files
        max_failures: Stop after this many failed files
        output_format: text, markdown, json or html
        output_file: Save the report here instead of printing it
        save: Store a result snapshot
        config_path: Config file path
        verbose: Verbose output
        console: Rich console
    """
    title = "Project" if project else "Directory"
    console.print(Panel.fit(
        f"[bold]Code Review: {title}[/bold]",
        border_style="blue"
    ))

    container = _create_container(config_path, verbose, console)
    options = _build_options(
        container, use_ai, severity, category, exclude, include, limit, max_failures,
        console=console,
    )
    command = ReviewDirectoryCommand(
        directory=path,
        options=options,
        project=project,
        save_result=save,
    )

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        task = progress.add_task(f"Reviewing {path}...", total=None)

        try:
            result = container.review_directory_handler.handle(command)
            progress.update(
                task,
                description=f"[green]Reviewed {result.files_reviewed} files!",
            )

        except KeyboardInterrupt:
            progress.update(task, description="[yellow]Review cancelled")
            _cancel(verbose, console)

        except Exception as e:
            progress.update(task, description="[red]Review failed!")
            _fail(e, verbose, console)

    if result.failed_files:
        console.print(f"[yellow]Warning: {len(result.failed_files)} file(s) could not be reviewed[/yellow]")

    _render_result(container, result, output_format, output_file, verbose, console)


def git_review_command(
    path: Path,
    base: Optional[str],
    commit: Optional[str],
    use_ai: bool,
    severity: Optional[str],
    category: Optional[str],
    limit: Optional[int],
    output_format: Optional[str],
    output_file: Optional[Path],
    config_path: Optional[str],
    verbose: bool,
    console: Console,
):
    """
    Execute pull request or commit review command.

    Reviews only the files in the git scope, under the project's team
    standards. With commit set the scope is that commit, otherwise it is
    the current branch compared with base.

    Args:
        path: Directory inside the repository
        base: Base branch for pull request scope
        commit: Commit to review
        use_ai: Also run the AI reviewer
        severity: Minimum severity to report
        category: Only report this category
        limit: Review at most this many files
        output_format: text, markdown, json or html
        output_file: Save the report here instead of printing it
        config_path: Config file path
        verbose: Verbose output
        console: Rich console
    """
    console.print(Panel.fit(
        f"[bold]Code Review: {'Commit' if commit else 'Pull Request'}[/bold]",
        border_style="blue"
    ))

    container = _create_container(config_path, verbose, console)
    options = _build_options(container, use_ai, severity, category, None, None, limit, console=console)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        task = progress.add_task("Resolving changed files...", total=None)

        try:
            team_reviewer = container.create_team_reviewer(path)
            if commit:
                report = team_reviewer.review_commit(commit, repo_path=path, options=options)
            else:
                report = team_reviewer.review_pull_request(repo_path=path, base=base, options=options)
            progress.update(task, description="[green]Review complete!")

        except KeyboardInterrupt:
            progress.update(task, description="[yellow]Review cancelled")
            _cancel(verbose, console)

        except Exception as e:
            progress.update(task, description="[red]Review failed!")
            _fail(e, verbose, console)

    _print_scope(report, console)
    _render_result(container, report.result, output_format, output_file, verbose, console)


def _print_scope(report: TeamReviewReport, console: Console) -> None:
    scope = report.scope
    if scope is None:
        return
    console.print(f"\n[bold]Scope:[/bold] {scope.label}")
    console.print(f"  Changed files: {len(scope.changed_files)}")
    if report.skipped_files:
        console.print(f"  Skipped: {len(report.skipped_files)}")
    if report.total_violations:
        console.print(f"  [yellow]Team style violations: {report.total_violations}[/yellow]")


def compare_command(
    old: Path,
    new: Path,
    config_path: Optional[str],
    verbose: bool,
    console: Console,
):
    """
    Compare two saved review results.

    Args:
        old: Earlier result snapshot
        new: Later result snapshot
        config_path: Config file path
        verbose: Verbose output
        console: Rich console
    """
    console.print(Panel.fit(
        "[bold]Review Comparison[/bold]",
        border_style="blue"
    ))

    container = _create_container(config_path, verbose, console)
    try:
        comparison = container.result_store.compare(old, new)
    except Exception as e:
        _fail(e, verbose, console)

    delta = comparison["score_delta"]
    color = "green" if delta >= 0 else "red"
    console.print(f"\n[bold]Score:[/bold] {comparison['old_score']:.1f} -> {comparison['new_score']:.1f} "
                  f"([{color}]{delta:+.1f}[/{color}])")
    console.print(f"  [red]New issues: {len(comparison['new'])}[/red]")
    console.print(f"  [green]Resolved issues: {len(comparison['resolved'])}[/green]")
    console.print(f"  Unchanged issues: {len(comparison['unchanged'])}")

    if verbose:
        for marker, key in (("+", "new"), ("-", "resolved")):
            for issue in comparison[key]:
                console.print(
                    f"    {marker} {issue['file_path']}:{issue['line']} "
                    f"[{issue['rule_id']}] {issue['message']}",
                    markup=False,
                )


def config_command(
    init: bool,
    path: Optional[str],
    show: bool,
    console: Console,
):
    """
    Execute config command.

    Args:
        init: Create default config
        path: Config file path
        show: Show current config
        console: Rich console
    """
    console.print(Panel.fit(
        "[bold]codereview Configuration[/bold]",
        border_style="blue"
    ))

    if init:
        try:
            config_path = ConfigLoader.create_default_config(path)
            console.print(f"\n[green]Configuration file created: {config_path}[/green]")
        except OSError as e:
            _fail(e, False, console)

    elif show:
        try:
            config = ConfigLoader.load(path)
        except Exception as e:
            _fail(e, False, console)
        console.print("\n[bold]Current Configuration:[/bold]")
        typer.echo(config.to_yaml())

    else:
        config_info = ConfigLoader.get_config_info()

        console.print("\n[bold]Configuration Files:[/bold]")
        if config_info["existing_configs"]:
            for cfg in config_info["existing_configs"]:
                console.print(f"  [green]{cfg}[/green]")
        else:
            console.print("  No configuration files found")

        console.print("\n[bold]Environment Overrides:[/bold]")
        if config_info["env_overrides"]:
            for env_var in config_info["env_overrides"]:
                console.print(f"  {env_var}")
        else:
            console.print("  None")
        for env_var in config_info["ignored_env"]:
            console.print(f"  [yellow]{env_var} (no such setting, ignored)[/yellow]")

        console.print("\n[bold]Default Locations:[/bold]")
        for default_path in config_info["default_paths"]:
            console.print(f"  {default_path}")
