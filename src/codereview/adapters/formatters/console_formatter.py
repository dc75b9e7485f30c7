"""Console formatter with colored text output."""

import textwrap
from typing import Any, Dict

from .base_formatter import OutputFormatter, SEVERITY_ORDER, sort_issues


class ConsoleFormatter(OutputFormatter):
    """
    Format review results for console output.

    Provides human-readable, colored output using ANSI codes.
    """

    SEVERITY_COLORS = {
        "critical": "red",
        "high": "orange",
        "medium": "yellow",
        "low": "blue",
        "info": "gray",
    }

    def __init__(self, use_color: bool = True, verbose: bool = False):
        """
        Initialize console formatter.

        Args:
            use_color: Enable colored output
            verbose: Show descriptions and code snippets
        """
        self.use_color = use_color
        self.verbose = verbose

    def format_result(self, report: Dict[str, Any]) -> str:
        """
        Format complete review result for console.

        Args:
            report: ReviewResult.to_dict() output

        Returns:
            Formatted console output
        """
        lines = [
            self._bold("=" * 70),
            self._bold("Code Review"),
            self._bold("=" * 70),
            f"Path: {report['project_path']}",
            f"Status: {report['status']}",
            "",
            self._bold("Summary:"),
            self._wrap_text(report.get("summary") or "", prefix="  "),
            "",
        ]

        for severity in SEVERITY_ORDER:
            count = report["issues_by_severity"].get(severity, 0)
            if count:
                label = self._colorize(f"{severity.capitalize()}:", self.SEVERITY_COLORS[severity])
                lines.append(f"  {label} {count}")
        total = report["total_issues"]
        lines.append(f"  {self._bold('Total:')} {total} issue{'s' if total != 1 else ''}")
        lines.append(f"  {self._bold('Score:')} {report['score']:.1f}/100")
        lines.append("")

        issues = report.get("issues", [])
        if issues:
            lines.append(self._bold("Issues:"))
            lines.append("")
            for issue in sort_issues(issues):
                lines.append(self.format_issue(issue))
        elif report["status"] == "completed":
            lines.append(self._colorize("No issues found", "green"))
            lines.append("")

        if report.get("failed_files"):
            lines.append(self._bold("Failed files:"))
            for path, error in report["failed_files"].items():
                lines.append(f"  {path}: {error}")
            lines.append("")

        if report.get("recommendations"):
            lines.append(self._bold("Recommendations:"))
            for recommendation in report["recommendations"]:
                lines.append(self._wrap_text(f"- {recommendation}", prefix="  "))
            lines.append("")

        lines.append(self._bold("=" * 70))
        lines.append(f"Duration: {report['metrics'].get('execution_time', 0)}s")
        return "\n".join(lines)

    def format_issue(self, issue: Dict[str, Any]) -> str:
        """
        Format single issue for console.

        Args:
            issue: ReviewIssue.to_dict() output

        Returns:
            Formatted issue
        """
        severity = issue["severity"]
        tag = self._colorize(severity.upper(), self.SEVERITY_COLORS.get(severity, "white"))
        lines = [
            f"[{tag}] {self._bold(issue['message'])}",
            f"  {issue['file_path']}:{issue['line']}  {self._dim(issue['rule_id'])}",
        ]
        if self.verbose and issue.get("description") and issue["description"] != issue["message"]:
            lines.append(self._wrap_text(issue["description"], prefix="  "))
        if issue.get("suggestion"):
            lines.append(self._wrap_text(f"Suggestion: {issue['suggestion']}", prefix="  "))
        if self.verbose and issue.get("code_snippet"):
            for line in issue["code_snippet"].split("\n"):
                lines.append(f"    {line}")
        lines.append("")
        return "\n".join(lines)

    def format_team_report(self, report: Dict[str, Any]) -> str:
        """
        Format team standards report for console.

        Args:
            report: Team report dictionary

        Returns:
            Formatted console output
        """
        summary = report["summary"]
        lines = [
            self._bold("Team Code Standards Report"),
            "",
            f"  Total files: {summary['total_files']}",
            f"  Files with issues: {summary['files_with_issues']}",
            f"  Total issues: {summary['total_issues']}",
            f"  Standards compliance: {report['standards_compliance']}%",
        ]
        if "standards_violations" in report:
            lines.append(f"  Style violations: {report['standards_violations']}")
        lines.append("")

        for file_entry in report["files"]:
            if file_entry["status"] == "failed":
                lines.append(f"{self._colorize('FAILED', 'red')} {file_entry['path']}: {file_entry.get('error', '')}")
                continue
            lines.append(self._bold(f"{file_entry['path']} ({file_entry['total_issues']} issues, score {file_entry['score']})"))
            for issue in file_entry["issues"]:
                tag = self._colorize(issue["severity"].upper(), self.SEVERITY_COLORS.get(issue["severity"], "white"))
                lines.append(f"  line {issue['line']}: [{tag}] {issue['message']}")
        if report["files"]:
            lines.append("")

        if report["recommendations"]:
            lines.append(self._bold("Recommendations:"))
            for rec in report["recommendations"]:
                lines.append(f"  {rec['priority'].upper()}: {rec['message']}")
        return "\n".join(lines)

    def get_file_extension(self) -> str:
        """Get file extension."""
        return ".txt"

    def _colorize(self, text: str, color: str) -> str:
        """Apply color to text."""
        if not self.use_color:
            return text

        colors = {
            "red": "\033[91m",
            "orange": "\033[93m",
            "yellow": "\033[33m",
            "green": "\033[92m",
            "blue": "\033[94m",
            "gray": "\033[90m",
            "white": "\033[97m",
            "reset": "\033[0m",
        }

        color_code = colors.get(color, colors["white"])
        reset = colors["reset"]
        return f"{color_code}{text}{reset}"

    def _bold(self, text: str) -> str:
        """Make text bold."""
        if not self.use_color:
            return text
        return f"\033[1m{text}\033[0m"

    def _dim(self, text: str) -> str:
        """Make text dimmed."""
        if not self.use_color:
            return text
        return f"\033[2m{text}\033[0m"

    def _wrap_text(self, text: str, prefix: str = "", width: int = 68) -> str:
        """Wrap text to specified width."""
        return textwrap.fill(
            text,
            width=width,
            initial_indent=prefix,
            subsequent_indent=" " * len(prefix)
        )
