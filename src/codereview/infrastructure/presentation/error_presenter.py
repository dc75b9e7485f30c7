"""
Render review errors as short, actionable messages for the CLI.

Git scope, configuration and rule registry errors get targeted
suggestions; verbose mode appends the cause and traceback.
"""

import traceback
from typing import Tuple, List

from ...domain.exceptions import (
    ConfigError,
    DuplicateRuleIdError,
    FileAccessError,
    InvalidStateTransitionError,
    RuleNotFoundError,
    ScopeError,
)


class ErrorPresenter:
    """
    Presents errors to users with helpful messages and actions.

    Provides two modes:
    - Normal: User-friendly message with actionable suggestions
    - Verbose: Technical details including stack trace
    """

    @staticmethod
    def present(error: Exception, verbose: bool = False) -> str:
        """
        Present error with user-friendly message.

        Args:
            error: Exception to present
            verbose: Show technical details (stack trace, error type)

        Returns:
            Formatted error message
        """
        message, suggestions = ErrorPresenter._get_friendly_message(error)

        if verbose:
            return ErrorPresenter._format_verbose(error, message, suggestions)
        return ErrorPresenter._format_friendly(message, suggestions)

    @staticmethod
    def _get_friendly_message(error: Exception) -> Tuple[str, List[str]]:
        """
        Get friendly message and actionable suggestions for error.

        Args:
            error: Exception to analyze

        Returns:
            Tuple of (message, suggestions)
        """
        error_str = str(error)

        if isinstance(error, ScopeError):
            lowered = error_str.lower()
            if "not a git repository" in lowered:
                return (
                    "This directory is not inside a git repository",
                    [
                        "Run the command from inside your repository",
                        "Initialize one with `git init` if needed",
                        "Use `codereview dir <path>` to review files without git",
                    ]
                )
            if "switch to a feature branch" in lowered:
                return (
                    error_str,
                    [
                        "Check out the branch you want reviewed: `git checkout <branch>`",
                        "Or pass a different base with `--base <branch>`",
                    ]
                )
            if "git executable not found" in lowered:
                return (
                    "git is not installed or not on PATH",
                    [
                        "Install git from https://git-scm.com/downloads",
                        "Check with `git --version`",
                    ]
                )
            return (
                f"Could not resolve the git review scope: {error_str}",
                [
                    "Check that the branch or commit exists: `git log --oneline`",
                    "Fetch missing refs: `git fetch --all`",
                ]
            )

        if isinstance(error, ConfigError):
            return (
                f"Invalid configuration: {error_str}",
                [
                    "Check the YAML/JSON syntax of the file named above",
                    "Show the effective configuration: `codereview config --show`",
                    "Regenerate defaults: `codereview config --init` or `codereview team init --force`",
                ]
            )

        if isinstance(error, RuleNotFoundError):
            return (
                error_str,
                [
                    "List the available rules: `codereview rules list`",
                    "Check for typos in the rule id",
                ]
            )

        if isinstance(error, DuplicateRuleIdError):
            return (
                error_str,
                ["Give the custom rule a unique id"]
            )

        if isinstance(error, InvalidStateTransitionError):
            return (
                "A finished review result cannot be changed",
                ["Start a new review instead of reusing the result"]
            )

        if isinstance(error, FileAccessError):
            return (
                f"Could not read file: {error_str}",
                [
                    "Check the file exists and is readable",
                    "Only UTF-8 text files can be reviewed",
                ]
            )

        if isinstance(error, FileNotFoundError):
            missing = ErrorPresenter._error_path(error, "Configuration file not found: ")
            return (
                f"File not found: {missing}",
                [
                    "Paths are resolved from the current directory",
                    "Pass --config only for files that exist, or create one with `codereview config --init`",
                ]
            )

        if isinstance(error, PermissionError):
            denied = ErrorPresenter._error_path(error)
            return (
                f"Permission denied: {denied}",
                [
                    f"Make the file readable: `chmod u+r {denied}`",
                    "Or leave it out of the review with --exclude",
                ]
            )

        if isinstance(error, UnicodeDecodeError):
            return (
                f"Could not decode file as {error.encoding} (byte {error.start})",
                [
                    "Only UTF-8 text files can be reviewed",
                    "Exclude binary or generated files with --exclude",
                ]
            )

        if isinstance(error, KeyboardInterrupt):
            return ("Operation cancelled by user", [])

        return (
            f"An error occurred: {type(error).__name__}",
            [
                f"Error details: {error_str or 'No details available'}",
                "Run with --verbose for more information",
            ]
        )

    @staticmethod
    def _error_path(error: OSError, prefix: str = "") -> str:
        """Path an OSError refers to, falling back to its message."""
        if error.filename:
            return str(error.filename)
        return str(error).replace(prefix, "", 1).strip("'\"")

    @staticmethod
    def _format_friendly(message: str, suggestions: List[str]) -> str:
        """Render the message and a bulleted suggestion list."""
        lines = [f"❌ Error: {message}"]
        if suggestions:
            lines += ["", "💡 Suggestions:"]
            lines += [f"  • {suggestion}" for suggestion in suggestions]
        return "\n".join(lines)

    @staticmethod
    def _format_verbose(error: Exception, message: str, suggestions: List[str]) -> str:
        """
        Render the friendly message followed by type, cause and traceback.

        Args:
            error: Original exception
            message: User-friendly message
            suggestions: Actionable suggestions

        Returns:
            Formatted string with full details
        """
        lines = [
            ErrorPresenter._format_friendly(message, suggestions),
            "",
            "🔍 Technical Details:",
            f"  Error Type: {type(error).__name__}",
            f"  Error Message: {error}",
        ]
        cause = error.__cause__
        if cause is not None:
            lines.append(f"  Caused by: {type(cause).__name__}: {cause}")

        lines += ["", "📋 Traceback:"]
        formatted = "".join(traceback.format_exception(type(error), error, error.__traceback__))
        lines += [f"  {line}" for line in formatted.rstrip().splitlines()]
        return "\n".join(lines)
