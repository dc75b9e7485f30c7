"""Markdown formatter for pull request comments and wikis."""

from typing import Any, Dict, List, Optional

from .base_formatter import OutputFormatter, SEVERITY_ORDER, sort_issues


class MarkdownFormatter(OutputFormatter):
    """Format review results as GitHub-flavoured Markdown."""

    def format_result(self, report: Dict[str, Any]) -> str:
        """
        Format complete review result as Markdown.

        Args:
            report: ReviewResult.to_dict() output

        Returns:
            Markdown string
        """
        lines = [
            "# Code Review Report",
            "",
            f"**Path**: `{report['project_path']}`  ",
            f"**Status**: {report['status']}  ",
            f"**Quality Score**: {report['score']:.1f}/100",
            "",
            "## Summary",
            "",
            report.get("summary") or "No summary available.",
            "",
            f"- **Files Reviewed**: {report['files_reviewed']}",
            f"- **Total Issues**: {report['total_issues']}",
        ]
        if report.get("failed_files"):
            lines.append(f"- **Files Failed**: {len(report['failed_files'])}")
        lines.append("")

        lines.extend(self._count_table("Severity", report["issues_by_severity"], SEVERITY_ORDER))
        lines.extend(self._count_table("Category", report["issues_by_category"]))

        issues = report.get("issues", [])
        if issues:
            lines.append("## Issues")
            lines.append("")
            for issue in sort_issues(issues):
                lines.append(self.format_issue(issue))
            lines.append("")

        if report.get("failed_files"):
            lines.append("## Failed Files")
            lines.append("")
            for path, error in report["failed_files"].items():
                lines.append(f"- `{path}`: {error}")
            lines.append("")

        if report.get("recommendations"):
            lines.append("## Recommendations")
            lines.append("")
            for recommendation in report["recommendations"]:
                lines.append(f"- {recommendation}")
            lines.append("")

        return "\n".join(lines)

    def format_issue(self, issue: Dict[str, Any]) -> str:
        """
        Format single issue as a Markdown bullet.

        Args:
            issue: ReviewIssue.to_dict() output

        Returns:
            Markdown bullet (with an indented suggestion when present)
        """
        line = (
            f"- **{issue['severity'].upper()}** `{issue['file_path']}:{issue['line']}` "
            f"{issue['message']} _({issue['rule_id']})_"
        )
        if issue.get("suggestion"):
            line += f"\n  - *Suggestion*: {issue['suggestion']}"
        return line

    def format_team_report(self, report: Dict[str, Any]) -> str:
        """
        Format team standards report as Markdown.

        Args:
            report: Team report dictionary

        Returns:
            Markdown string
        """
        summary = report["summary"]
        lines = [
            "# Team Code Standards Report",
            "",
            "## Summary",
            "",
            f"- **Total Files**: {summary['total_files']}",
            f"- **Files with Issues**: {summary['files_with_issues']}",
            f"- **Total Issues**: {summary['total_issues']}",
            f"- **Standards Compliance**: {report['standards_compliance']}%",
        ]
        if "standards_violations" in report:
            lines.append(f"- **Style Violations**: {report['standards_violations']}")
        lines.append("")

        lines.extend(self._count_table("Severity", summary["issues_by_severity"], SEVERITY_ORDER))
        lines.extend(self._count_table("Category", summary["issues_by_category"]))

        files = [f for f in report["files"] if f["status"] == "issues"]
        if files:
            lines.append("## Files with Issues")
            lines.append("")
            for file_entry in files:
                lines.append(f"### {file_entry['path']}")
                lines.append("")
                lines.append(f"**Total Issues**: {file_entry['total_issues']}  ")
                lines.append(f"**Score**: {file_entry['score']}")
                lines.append("")
                for issue in file_entry["issues"]:
                    lines.append(f"- **Line {issue['line']}**: {issue['message']} ({issue['severity']})")
                    if issue.get("suggestion"):
                        lines.append(f"  - *Suggestion*: {issue['suggestion']}")
                lines.append("")

        failed = [f for f in report["files"] if f["status"] == "failed"]
        if failed:
            lines.append("## Failed Files")
            lines.append("")
            for file_entry in failed:
                lines.append(f"- `{file_entry['path']}`: {file_entry.get('error', '')}")
            lines.append("")

        if report["recommendations"]:
            lines.append("## Recommendations")
            lines.append("")
            for rec in report["recommendations"]:
                lines.append(f"- **{rec['priority'].upper()}**: {rec['message']}")
            lines.append("")

        return "\n".join(lines)

    def get_file_extension(self) -> str:
        """Get file extension."""
        return ".md"

    @staticmethod
    def _count_table(title: str, counts: Dict[str, int], order: Optional[List[str]] = None) -> List[str]:
        """Two-column count table; zero rows are left out."""
        keys = order if order is not None else sorted(counts)
        rows = [(key, counts.get(key, 0)) for key in keys if counts.get(key, 0)]
        if not rows:
            return []
        lines = [f"| {title} | Count |", "|---|---:|"]
        lines.extend(f"| {key} | {count} |" for key, count in rows)
        lines.append("")
        return lines
