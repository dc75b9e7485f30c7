"""
Tests for the output formatters.
"""

import json

import pytest

from codereview.adapters.formatters.console_formatter import ConsoleFormatter
from codereview.adapters.formatters.formatter_factory import FormatterFactory
from codereview.adapters.formatters.html_formatter import HTMLFormatter
from codereview.adapters.formatters.json_formatter import JSONFormatter
from codereview.adapters.formatters.markdown_formatter import MarkdownFormatter
from codereview.domain.models.review import Category, ReviewIssue, ReviewResult, Severity
from codereview.domain.services.team_standards import TeamStandardsService


@pytest.fixture
def report():
    """Completed result with one critical and one low issue."""
    result = ReviewResult.create("src", files_reviewed=2)
    result.add_issues([
        ReviewIssue.create(
            file_path="src/view.js",
            line=8,
            severity=Severity.LOW,
            category=Category.READABILITY,
            message="Line too long (140 > 100 characters)",
            rule_id="long-line",
        ),
        ReviewIssue.create(
            file_path="src/db.js",
            line=3,
            severity=Severity.CRITICAL,
            category=Category.SECURITY,
            message="Query built from <input>",
            rule_id="sql-injection",
            suggestion="Use parameterized queries",
            code_snippet='db.query("SELECT " + id)',
        ),
    ])
    result.complete(0.25)
    return result.to_dict()


@pytest.fixture
def clean_report():
    result = ReviewResult.create("src", files_reviewed=1)
    result.complete()
    return result.to_dict()


@pytest.fixture
def team_report(report):
    data = TeamStandardsService().generate_team_report([ReviewResult.from_dict(report)])
    data["standards_violations"] = 3
    return data


class TestFormatterFactory:
    """Test suite for FormatterFactory."""

    @pytest.mark.parametrize("name,cls", [
        ("text", ConsoleFormatter),
        ("console", ConsoleFormatter),
        ("JSON", JSONFormatter),
        ("markdown", MarkdownFormatter),
        ("md", MarkdownFormatter),
        ("html", HTMLFormatter),
    ])
    def test_create(self, name, cls):
        assert isinstance(FormatterFactory.create(name), cls)

    def test_unknown_format(self):
        with pytest.raises(ValueError, match="Unknown format: pdf"):
            FormatterFactory.create("pdf")

    def test_supported_formats(self):
        assert FormatterFactory.get_supported_formats() == ["text", "markdown", "json", "html"]

    def test_options_are_passed(self):
        formatter = FormatterFactory.create("text", use_color=False, verbose=True)

        assert formatter.use_color is False
        assert formatter.verbose is True
        assert FormatterFactory.create("json", pretty_json=False).pretty is False


class TestJSONFormatter:
    """Test suite for JSONFormatter."""

    def test_result_round_trip(self, report):
        output = JSONFormatter().format_result(report)

        assert json.loads(output) == report
        assert ReviewResult.from_dict(json.loads(output)).total_issues == 2

    def test_compact_output(self, report):
        output = JSONFormatter(pretty=False).format_result(report)

        assert "\n" not in output

    def test_team_report(self, team_report):
        assert json.loads(JSONFormatter().format_team_report(team_report)) == team_report


class TestMarkdownFormatter:
    """Test suite for MarkdownFormatter."""

    def test_result(self, report):
        output = MarkdownFormatter().format_result(report)

        assert output.startswith("# Code Review Report")
        assert f"**Quality Score**: {report['score']:.1f}/100" in output
        assert "## Issues" in output
        assert "| critical | 1 |" in output
        assert "## Recommendations" in output

    def test_issues_sorted_by_severity(self, report):
        output = MarkdownFormatter().format_result(report)

        assert output.index("`src/db.js:3`") < output.index("`src/view.js:8`")

    def test_issue_with_suggestion(self, report):
        critical = next(i for i in report["issues"] if i["severity"] == "critical")

        output = MarkdownFormatter().format_issue(critical)

        assert output.startswith("- **CRITICAL** `src/db.js:3`")
        assert "*Suggestion*: Use parameterized queries" in output

    def test_clean_result_has_no_issue_section(self, clean_report):
        output = MarkdownFormatter().format_result(clean_report)

        assert "## Issues" not in output
        assert "No issues found" in output

    def test_team_report(self, team_report):
        output = MarkdownFormatter().format_team_report(team_report)

        assert output.startswith("# Team Code Standards Report")
        assert "**Standards Compliance**: 0%" in output
        assert "- **Style Violations**: 3" in output
        assert "### src/db.js" in output
        assert "- **CRITICAL**: Address 1 critical issues immediately" in output


class TestHTMLFormatter:
    """Test suite for HTMLFormatter."""

    def test_result(self, report):
        output = HTMLFormatter().format_result(report)

        assert output.startswith("<!DOCTYPE html>")
        assert "<title>Code Review Report - src</title>" in output
        assert "<h1>Code Review Report</h1>" in output
        assert 'class="issue severity-critical"' in output
        assert 'class="issue severity-low"' in output

    def test_text_is_escaped(self, report):
        output = HTMLFormatter().format_result(report)

        assert "Query built from &lt;input&gt;" in output
        assert "<input>" not in output
        assert "db.query(&quot;SELECT &quot; + id)" in output

    def test_clean_result(self, clean_report):
        output = HTMLFormatter().format_result(clean_report)

        assert "No Issues Found" in output

    def test_team_report(self, team_report):
        output = HTMLFormatter().format_team_report(team_report)

        assert "<h1>Team Code Standards Report</h1>" in output
        assert "<strong>Standards Compliance</strong>: 0%" in output
        assert "<h3>src/view.js</h3>" in output


class TestConsoleFormatter:
    """Test suite for ConsoleFormatter."""

    def test_plain_result(self, report):
        output = ConsoleFormatter(use_color=False).format_result(report)

        assert "\033[" not in output
        assert f"Score: {report['score']:.1f}/100" in output
        assert "Total: 2 issues" in output
        assert "[CRITICAL] Query built from <input>" in output
        assert "Suggestion: Use parameterized queries" in output

    def test_snippet_only_when_verbose(self, report):
        quiet = ConsoleFormatter(use_color=False).format_result(report)
        verbose = ConsoleFormatter(use_color=False, verbose=True).format_result(report)

        assert 'db.query("SELECT " + id)' not in quiet
        assert '    db.query("SELECT " + id)' in verbose

    def test_colored_result(self, report):
        output = ConsoleFormatter(use_color=True).format_result(report)

        assert "\033[91mCRITICAL\033[0m" in output

    def test_clean_result(self, clean_report):
        output = ConsoleFormatter(use_color=False).format_result(clean_report)

        assert "No issues found" in output
        assert "Score: 100.0/100" in output

    def test_team_report(self, team_report):
        output = ConsoleFormatter(use_color=False).format_team_report(team_report)

        assert "Standards compliance: 0%" in output
        assert "Style violations: 3" in output
        assert "CRITICAL: Address 1 critical issues immediately" in output
