"""Base formatter interface."""

from abc import ABC, abstractmethod
from typing import Any, Dict

from ...domain.models.review import Severity

# Severity values, most severe first
SEVERITY_ORDER = [s.value for s in sorted(Severity, key=lambda s: s.rank, reverse=True)]


def sort_issues(issues):
    """Issues ordered by severity, then file and line."""
    rank = {value: index for index, value in enumerate(SEVERITY_ORDER)}
    return sorted(
        issues,
        key=lambda i: (rank.get(i.get("severity"), len(rank)), i.get("file_path", ""), i.get("line", 0)),
    )


class OutputFormatter(ABC):
    """
    Base class for output formatters.

    Formatters render report dictionaries (ReviewResult.to_dict() or a
    team report) and never recompute counts or scores themselves.
    """

    @abstractmethod
    def format_result(self, report: Dict[str, Any]) -> str:
        """
        Format a complete review result.

        Args:
            report: ReviewResult.to_dict() output

        Returns:
            Formatted string
        """
        pass

    @abstractmethod
    def format_issue(self, issue: Dict[str, Any]) -> str:
        """
        Format a single issue.

        Args:
            issue: ReviewIssue.to_dict() output

        Returns:
            Formatted string
        """
        pass

    @abstractmethod
    def format_team_report(self, report: Dict[str, Any]) -> str:
        """
        Format a team standards report.

        Args:
            report: TeamStandardsService.generate_team_report() output

        Returns:
            Formatted string
        """
        pass

    @abstractmethod
    def get_file_extension(self) -> str:
        """
        Get file extension for this format.

        Returns:
            File extension (e.g., ".json", ".md")
        """
        pass
