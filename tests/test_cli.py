"""
Tests for the codereview command line interface.

Reports are written with --output-file so assertions never depend on
how the runner mixes stdout and stderr.
"""

import json

import pytest
from rich.console import Console
from typer.testing import CliRunner

from codereview.adapters.cli import main as cli_main
from codereview.adapters.cli.main import app

SOURCE = 'api_key = "sk-live-1234567890abcdef"\n# TODO: rotate the key\n'


@pytest.fixture
def runner(monkeypatch):
    # Wide enough that rule tables never truncate ids
    monkeypatch.setattr(cli_main, "console", Console(stderr=True, width=200))
    return CliRunner()


def read_json(path):
    return json.loads(path.read_text(encoding="utf-8"))


class TestFileCommand:
    """Test suite for `codereview file`."""

    def test_json_report(self, runner, write_file, tmp_path):
        path = write_file("app.py", SOURCE)
        report = tmp_path / "out" / "report.json"

        result = runner.invoke(app, ["file", str(path), "-f", "json", "-o", str(report)])

        assert result.exit_code == 0, result.output
        data = read_json(report)
        assert data["status"] == "completed"
        assert "no-hardcoded-secrets" in {i["rule_id"] for i in data["issues"]}

    def test_severity_filter(self, runner, write_file, tmp_path):
        path = write_file("app.py", SOURCE)
        report = tmp_path / "report.json"

        result = runner.invoke(app, ["file", str(path), "-s", "critical", "-f", "json", "-o", str(report)])

        assert result.exit_code == 0, result.output
        assert {i["severity"] for i in read_json(report)["issues"]} == {"critical"}

    def test_unknown_severity(self, runner, write_file):
        path = write_file("app.py", SOURCE)

        result = runner.invoke(app, ["file", str(path), "-s", "urgent"])

        assert result.exit_code != 0
        assert "urgent" in result.output

    def test_missing_file_rejected(self, runner, tmp_path):
        result = runner.invoke(app, ["file", str(tmp_path / "missing.py")])

        assert result.exit_code != 0

    def test_binary_file_fails(self, runner, tmp_path):
        path = tmp_path / "blob.py"
        path.write_bytes(b"\xff\xfe\x00\x81")
        report = tmp_path / "report.json"

        result = runner.invoke(app, ["file", str(path), "-f", "json", "-o", str(report)])

        assert result.exit_code == 1
        assert read_json(report)["status"] == "failed"

    def test_ai_without_reviewer_warns(self, runner, write_file, tmp_path):
        path = write_file("app.py", SOURCE)
        report = tmp_path / "report.json"

        result = runner.invoke(app, ["file", str(path), "--ai", "-f", "json", "-o", str(report)])

        assert result.exit_code == 0, result.output
        assert "no AI reviewer is configured" in result.output
        assert "no-hardcoded-secrets" in {i["rule_id"] for i in read_json(report)["issues"]}

    def test_no_warning_without_ai(self, runner, write_file, tmp_path):
        path = write_file("app.py", SOURCE)

        result = runner.invoke(app, ["file", str(path), "-f", "json", "-o", str(tmp_path / "r.json")])

        assert "no AI reviewer is configured" not in result.output

    def test_save_snapshot(self, runner, write_file, tmp_path):
        path = write_file("app.py", SOURCE)

        result = runner.invoke(app, ["file", str(path), "--save", "-f", "json", "-o", str(tmp_path / "r.json")])

        assert result.exit_code == 0, result.output
        assert len(list((tmp_path / ".codereview" / "results").glob("*.json"))) == 1


class TestDirectoryCommands:
    """Test suite for `codereview dir` and `codereview project`."""

    @pytest.fixture
    def project(self, write_file, tmp_path):
        write_file("proj/src/app.py", SOURCE)
        write_file("proj/src/view.js", "const total = 1;\n")
        write_file("proj/dist/bundle.js", "const total = 1;\n")
        return tmp_path / "proj"

    def test_dir(self, runner, project, tmp_path):
        report = tmp_path / "report.json"

        result = runner.invoke(app, ["dir", str(project), "-f", "json", "-o", str(report)])

        assert result.exit_code == 0, result.output
        assert read_json(report)["files_reviewed"] == 3

    def test_project_skips_build_output(self, runner, project, tmp_path):
        report = tmp_path / "report.json"

        result = runner.invoke(app, ["project", str(project), "-f", "json", "-o", str(report)])

        assert result.exit_code == 0, result.output
        assert read_json(report)["files_reviewed"] == 2

    def test_exclude_and_limit(self, runner, project, tmp_path):
        report = tmp_path / "report.json"

        result = runner.invoke(
            app,
            ["dir", str(project), "-e", "dist", "--limit", "1", "-f", "json", "-o", str(report)],
        )

        assert result.exit_code == 0, result.output
        assert read_json(report)["files_reviewed"] == 1

    def test_markdown_report(self, runner, project, tmp_path):
        report = tmp_path / "report.md"

        result = runner.invoke(app, ["project", str(project), "-f", "markdown", "-o", str(report)])

        assert result.exit_code == 0, result.output
        assert report.read_text(encoding="utf-8").startswith("# Code Review Report")

    def test_unknown_category(self, runner, project):
        result = runner.invoke(app, ["dir", str(project), "--category", "vibes"])

        assert result.exit_code != 0


class TestGitCommands:
    """Test suite for `codereview pr` and `codereview commit`."""

    def test_pull_request(self, runner, git_repo, tmp_path):
        report = tmp_path / "report.json"

        result = runner.invoke(app, ["pr", str(git_repo), "-b", "main", "-f", "json", "-o", str(report)])

        assert result.exit_code == 0, result.output
        data = read_json(report)
        assert data["files_reviewed"] == 2
        assert "sql-injection" in {i["rule_id"] for i in data["issues"]}

    def test_pull_request_unknown_base(self, runner, git_repo):
        result = runner.invoke(app, ["pr", str(git_repo), "-b", "no-such-branch"])

        assert result.exit_code == 1

    def test_commit(self, runner, git_repo, tmp_path):
        report = tmp_path / "report.json"

        result = runner.invoke(app, ["commit", "HEAD", "-p", str(git_repo), "-f", "json", "-o", str(report)])

        assert result.exit_code == 0, result.output
        assert read_json(report)["files_reviewed"] == 2

    def test_not_a_repository(self, runner, tmp_path):
        plain = tmp_path / "plain"
        plain.mkdir()

        result = runner.invoke(app, ["commit", "HEAD", "-p", str(plain)])

        assert result.exit_code == 1


class TestCompareCommand:
    """Test suite for `codereview compare`."""

    def test_compare_snapshots(self, runner, write_file, tmp_path):
        path = write_file("app.py", SOURCE)
        first = tmp_path / "first.json"
        second = tmp_path / "second.json"

        runner.invoke(app, ["file", str(path), "-f", "json", "-o", str(first)])
        path.write_text("\n# TODO: rotate the key\n", encoding="utf-8")
        runner.invoke(app, ["file", str(path), "-f", "json", "-o", str(second)])

        result = runner.invoke(app, ["compare", str(first), str(second)])

        assert result.exit_code == 0, result.output
        assert "New issues: 0" in result.output
        assert "Resolved issues: 0" not in result.output

    def test_invalid_snapshot(self, runner, write_file):
        bad = write_file("bad.json", "not json")

        result = runner.invoke(app, ["compare", str(bad), str(bad)])

        assert result.exit_code == 1


class TestConfigCommand:
    """Test suite for `codereview config`."""

    def test_init(self, runner, tmp_path):
        target = tmp_path / "conf" / "codereview.yaml"

        result = runner.invoke(app, ["config", "--init", "--path", str(target)])

        assert result.exit_code == 0, result.output
        assert target.read_text(encoding="utf-8").startswith("# codereview Configuration")

    def test_show(self, runner, write_file):
        path = write_file("custom.yaml", "review:\n  max_workers: 7\n")

        result = runner.invoke(app, ["config", "--show", "--path", str(path)])

        assert result.exit_code == 0, result.output
        assert "max_workers: 7" in result.output


class TestRulesCommands:
    """Test suite for `codereview rules`."""

    def test_list(self, runner):
        result = runner.invoke(app, ["rules", "list", "--category", "security"])

        assert result.exit_code == 0, result.output
        assert "sql-injection" in result.output
        assert "long-line" not in result.output

    def test_list_unknown_category(self, runner):
        result = runner.invoke(app, ["rules", "list", "--category", "vibes"])

        assert result.exit_code != 0

    def test_stats(self, runner):
        result = runner.invoke(app, ["rules", "stats"])

        assert result.exit_code == 0, result.output
        assert "Total:" in result.output
        assert "22" in result.output


class TestTeamCommands:
    """Test suite for `codereview team`."""

    def test_init_and_show(self, runner, tmp_path):
        result = runner.invoke(app, ["team", "init", str(tmp_path)])

        assert result.exit_code == 0, result.output
        assert (tmp_path / ".codereview" / "team-standards.json").exists()

        shown = runner.invoke(app, ["team", "show", str(tmp_path)])
        assert shown.exit_code == 0, shown.output
        assert "indentSize" in shown.output

    def test_init_twice_needs_force(self, runner, tmp_path):
        runner.invoke(app, ["team", "init", str(tmp_path)])

        again = runner.invoke(app, ["team", "init", str(tmp_path)])
        forced = runner.invoke(app, ["team", "init", str(tmp_path), "--force"])

        assert again.exit_code == 1
        assert forced.exit_code == 0, forced.output

    def test_report(self, runner, write_file, tmp_path):
        write_file("proj/src/app.py", SOURCE)
        report = tmp_path / "team.json"

        result = runner.invoke(app, ["team", "report", str(tmp_path / "proj"), "-f", "json", "-o", str(report)])

        assert result.exit_code == 0, result.output
        data = read_json(report)
        assert data["summary"]["total_files"] == 1
        assert data["standards_violations"] == 0

    def test_validate_clean(self, runner, write_file, tmp_path):
        path = write_file("ok.js", "function f() {\n  return 1;\n}\n")

        result = runner.invoke(app, ["team", "validate", str(path), "-p", str(tmp_path)])

        assert result.exit_code == 0, result.output
        assert "follow the team standards" in result.output

    def test_validate_violations(self, runner, write_file, tmp_path):
        path = write_file("bad.js", "function f() {\n   return 1;\n}\n")

        result = runner.invoke(app, ["team", "validate", str(path), "-p", str(tmp_path)])

        assert result.exit_code == 1
        assert "1 violation(s) found" in result.output
