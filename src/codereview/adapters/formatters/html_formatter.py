"""HTML formatter for human-readable review reports."""

from datetime import datetime
from typing import Any, Dict, List

from .base_formatter import OutputFormatter, SEVERITY_ORDER, sort_issues

_STYLE = """
        * {
            margin: 0;
            padding: 0;
            box-sizing: border-box;
        }

        body {
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, 'Helvetica Neue', Arial, sans-serif;
            line-height: 1.6;
            color: #1f2937;
            background: #f5f7fa;
        }

        .container {
            max-width: 1200px;
            margin: 0 auto;
            padding: 20px;
        }

        header {
            background: #1a2332;
            color: white;
            padding: 30px 40px;
            border-radius: 12px;
            margin-bottom: 30px;
        }

        header h1 {
            font-size: 2em;
            margin-bottom: 10px;
        }

        header .meta > div {
            color: #e0f2fe;
        }

        .summary {
            background: white;
            padding: 20px;
            border-radius: 12px;
            margin-bottom: 30px;
            box-shadow: 0 4px 6px rgba(0,0,0,0.07);
        }

        .stats-grid {
            display: grid;
            grid-template-columns: repeat(auto-fit, minmax(160px, 1fr));
            gap: 20px;
            margin-bottom: 30px;
        }

        .stat-card {
            background: white;
            padding: 20px;
            border-radius: 12px;
            box-shadow: 0 4px 6px rgba(0,0,0,0.07);
            border-left: 4px solid #00d4ff;
        }

        .stat-card .label {
            font-size: 0.85em;
            color: #666;
            text-transform: uppercase;
        }

        .stat-card .value {
            font-size: 2em;
            font-weight: bold;
        }

        .stat-card.severity-critical { border-left-color: #dc2626; }
        .stat-card.severity-high { border-left-color: #ea580c; }
        .stat-card.severity-medium { border-left-color: #f59e0b; }
        .stat-card.severity-low { border-left-color: #3b82f6; }
        .stat-card.severity-info { border-left-color: #9ca3af; }

        .severity-critical { color: #dc2626; }
        .severity-high { color: #ea580c; }
        .severity-medium { color: #b45309; }
        .severity-low { color: #2563eb; }
        .severity-info { color: #6b7280; }

        .issue {
            background: white;
            border-left: 4px solid #ddd;
            border-radius: 8px;
            padding: 15px 20px;
            margin: 12px 0;
        }

        .issue.severity-critical { border-left-color: #dc2626; }
        .issue.severity-high { border-left-color: #ea580c; }
        .issue.severity-medium { border-left-color: #f59e0b; }
        .issue.severity-low { border-left-color: #3b82f6; }
        .issue.severity-info { border-left-color: #9ca3af; }

        .issue .location {
            font-family: 'SFMono-Regular', Consolas, monospace;
            font-size: 0.9em;
            color: #4b5563;
        }

        .badge {
            display: inline-block;
            padding: 2px 10px;
            border-radius: 10px;
            font-size: 0.75em;
            font-weight: 600;
            text-transform: uppercase;
            background: #f3f4f6;
        }

        pre {
            background: #0f172a;
            color: #e2e8f0;
            padding: 10px;
            border-radius: 6px;
            overflow-x: auto;
            margin-top: 8px;
        }

        table {
            border-collapse: collapse;
            margin: 10px 0 20px;
        }

        th, td {
            padding: 6px 14px;
            border-bottom: 1px solid #e5e7eb;
            text-align: left;
        }

        .recommendation {
            background: #e7f3ff;
            padding: 10px;
            border-radius: 6px;
            margin: 10px 0;
        }

        footer {
            text-align: center;
            color: #6b7280;
            margin-top: 40px;
            font-size: 0.85em;
        }
"""


class HTMLFormatter(OutputFormatter):
    """
    Format review results as a standalone HTML page.

    Every issue and severity count carries a ``severity-<level>`` class.
    """

    def format_result(self, report: Dict[str, Any]) -> str:
        """
        Format complete review result as HTML.

        Args:
            report: ReviewResult.to_dict() output

        Returns:
            HTML string
        """
        issues = sort_issues(report.get("issues", []))
        body = [
            f"""<header>
            <h1>Code Review Report</h1>
            <div class="meta">
                <div><strong>Path:</strong> {self._escape_html(report['project_path'])}</div>
                <div><strong>Status:</strong> {self._escape_html(report['status'])}</div>
                <div><strong>Quality Score:</strong> {report['score']:.1f}/100</div>
                <div><strong>Files Reviewed:</strong> {report['files_reviewed']}</div>
            </div>
        </header>""",
            f"""<div class="summary">
            <h2>Summary</h2>
            <p>{self._escape_html(report.get('summary') or '')}</p>
        </div>""",
            self._render_stats(report["total_issues"], report["issues_by_severity"]),
            self._render_count_table("Category", report["issues_by_category"]),
        ]

        if issues:
            body.append("<h2>Issues</h2>")
            body.extend(self.format_issue(issue) for issue in issues)
        else:
            body.append('<div class="summary"><h2>No Issues Found</h2></div>')

        if report.get("failed_files"):
            items = "".join(
                f"<li><code>{self._escape_html(path)}</code>: {self._escape_html(error)}</li>"
                for path, error in report["failed_files"].items()
            )
            body.append(f"<h2>Failed Files</h2><ul>{items}</ul>")

        if report.get("recommendations"):
            body.append("<h2>Recommendations</h2>")
            body.extend(
                f'<div class="recommendation"><p>{self._escape_html(rec)}</p></div>'
                for rec in report["recommendations"]
            )

        return self._page(f"Code Review Report - {report['project_path']}", body)

    def format_issue(self, issue: Dict[str, Any]) -> str:
        """
        Format single issue as HTML.

        Args:
            issue: ReviewIssue.to_dict() output

        Returns:
            HTML fragment
        """
        severity = issue["severity"]
        location = f"{issue['file_path']}:{issue['line']}"
        parts = [
            f'<div class="issue severity-{severity}" data-severity="{severity}">',
            f'<p><span class="badge severity-{severity}">{severity}</span> '
            f'<strong>{self._escape_html(issue["message"])}</strong></p>',
            f'<p class="location">{self._escape_html(location)} &middot; {self._escape_html(issue["rule_id"])}</p>',
        ]
        if issue.get("description") and issue["description"] != issue["message"]:
            parts.append(f"<p>{self._escape_html(issue['description'])}</p>")
        if issue.get("suggestion"):
            parts.append(f"<p><em>Suggestion</em>: {self._escape_html(issue['suggestion'])}</p>")
        if issue.get("code_snippet"):
            parts.append(f"<pre>{self._escape_html(issue['code_snippet'])}</pre>")
        parts.append("</div>")
        return "\n".join(parts)

    def format_team_report(self, report: Dict[str, Any]) -> str:
        """
        Format team standards report as HTML.

        Args:
            report: Team report dictionary

        Returns:
            HTML string
        """
        summary = report["summary"]
        body = [
            """<header>
            <h1>Team Code Standards Report</h1>
        </header>""",
            f"""<div class="summary">
            <h2>Summary</h2>
            <p><strong>Total Files</strong>: {summary['total_files']}</p>
            <p><strong>Files with Issues</strong>: {summary['files_with_issues']}</p>
            <p><strong>Total Issues</strong>: {summary['total_issues']}</p>
            <p><strong>Standards Compliance</strong>: {report['standards_compliance']}%</p>
        </div>""",
            self._render_stats(summary["total_issues"], summary["issues_by_severity"]),
            self._render_count_table("Category", summary["issues_by_category"]),
        ]

        files = [f for f in report["files"] if f["status"] == "issues"]
        if files:
            body.append("<h2>Files with Issues</h2>")
            for file_entry in files:
                body.append(
                    f"<h3>{self._escape_html(file_entry['path'])}</h3>"
                    f"<p><strong>Total Issues</strong>: {file_entry['total_issues']} &middot; "
                    f"<strong>Score</strong>: {file_entry['score']}</p>"
                )
                for issue in file_entry["issues"]:
                    severity = issue["severity"]
                    suggestion = (
                        f"<p><em>Suggestion</em>: {self._escape_html(issue['suggestion'])}</p>"
                        if issue.get("suggestion") else ""
                    )
                    body.append(
                        f'<div class="issue severity-{severity}">'
                        f"<p><strong>Line {issue['line']}</strong>: {self._escape_html(issue['message'])} "
                        f'<span class="severity-{severity}">({severity})</span></p>'
                        f"{suggestion}</div>"
                    )

        if report["recommendations"]:
            body.append("<h2>Recommendations</h2>")
            body.extend(
                f'<div class="recommendation"><p><strong>{rec["priority"].upper()}</strong>: '
                f'{self._escape_html(rec["message"])}</p></div>'
                for rec in report["recommendations"]
            )

        return self._page("Team Code Standards Report", body)

    def get_file_extension(self) -> str:
        """Get file extension for HTML format."""
        return ".html"

    def _page(self, title: str, body: List[str]) -> str:
        content = "\n        ".join(body)
        return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{self._escape_html(title)}</title>
    <style>{_STYLE}    </style>
</head>
<body>
    <div class="container">
        {content}
        <footer>
            <p>Report generated on {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}</p>
        </footer>
    </div>
</body>
</html>"""

    def _render_stats(self, total: int, by_severity: Dict[str, int]) -> str:
        cards = [
            f'<div class="stat-card"><div class="label">Total Issues</div><div class="value">{total}</div></div>'
        ]
        for severity in SEVERITY_ORDER:
            cards.append(
                f'<div class="stat-card severity-{severity}"><div class="label">{severity}</div>'
                f'<div class="value">{by_severity.get(severity, 0)}</div></div>'
            )
        return f'<div class="stats-grid">{"".join(cards)}</div>'

    def _render_count_table(self, title: str, counts: Dict[str, int]) -> str:
        rows = "".join(
            f"<tr><td>{self._escape_html(key)}</td><td>{count}</td></tr>"
            for key, count in sorted(counts.items()) if count
        )
        if not rows:
            return ""
        return f"<table><tr><th>{title}</th><th>Count</th></tr>{rows}</table>"

    def _escape_html(self, text: str) -> str:
        """Escape HTML special characters."""
        if not text:
            return ""
        return (str(text)
                .replace('&', '&amp;')
                .replace('<', '&lt;')
                .replace('>', '&gt;')
                .replace('"', '&quot;')
                .replace("'", '&#39;'))
