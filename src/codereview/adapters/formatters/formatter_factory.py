"""Factory for creating output formatters."""

from typing import List

from .base_formatter import OutputFormatter
from .console_formatter import ConsoleFormatter
from .html_formatter import HTMLFormatter
from .json_formatter import JSONFormatter
from .markdown_formatter import MarkdownFormatter


class FormatterFactory:
    """
    Factory for creating output formatters.

    Provides a centralized way to create formatters based on format name.
    """

    ALIASES = {
        "console": "text",
        "md": "markdown",
    }

    @staticmethod
    def create(
        format_name: str,
        use_color: bool = True,
        verbose: bool = False,
        pretty_json: bool = True,
    ) -> OutputFormatter:
        """
        Create formatter by name.

        Args:
            format_name: Format name ("text", "markdown", "json", "html")
            use_color: Enable colors (text formatter)
            verbose: Enable verbose output (text formatter)
            pretty_json: Enable pretty printing (JSON formatter)

        Returns:
            OutputFormatter instance

        Raises:
            ValueError: If format_name is not recognized
        """
        format_name = format_name.lower()
        format_name = FormatterFactory.ALIASES.get(format_name, format_name)

        if format_name == "text":
            return ConsoleFormatter(use_color=use_color, verbose=verbose)
        elif format_name == "json":
            return JSONFormatter(pretty=pretty_json)
        elif format_name == "markdown":
            return MarkdownFormatter()
        elif format_name == "html":
            return HTMLFormatter()
        else:
            raise ValueError(
                f"Unknown format: {format_name}. "
                f"Supported formats: {', '.join(FormatterFactory.get_supported_formats())}"
            )

    @staticmethod
    def get_supported_formats() -> List[str]:
        """
        Get list of supported format names.

        Returns:
            List of format names
        """
        return ["text", "markdown", "json", "html"]
