"""JSON formatter for machine-readable output."""

import json
from typing import Dict, Any
from .base_formatter import OutputFormatter


class JSONFormatter(OutputFormatter):
    """
    Format review results as JSON.

    The result document is exactly ReviewResult.to_dict(), so it can be
    loaded back with ReviewResult.from_dict.
    """

    def __init__(self, pretty: bool = True):
        """
        Initialize JSON formatter.

        Args:
            pretty: Enable pretty-printing with indentation
        """
        self.pretty = pretty

    def _dump(self, data: Any) -> str:
        if self.pretty:
            return json.dumps(data, indent=2, default=str)
        return json.dumps(data, default=str)

    def format_result(self, report: Dict[str, Any]) -> str:
        return self._dump(report)

    def format_issue(self, issue: Dict[str, Any]) -> str:
        return self._dump(issue)

    def format_team_report(self, report: Dict[str, Any]) -> str:
        return self._dump(report)

    def get_file_extension(self) -> str:
        """Get file extension."""
        return ".json"
