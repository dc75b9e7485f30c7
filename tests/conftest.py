"""Shared fixtures for the codereview test suite."""

import os
import shutil
import subprocess

import pytest

from codereview.infrastructure.logging import CodeReviewLogger, LogContext


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Run every test in its own directory with a fresh logger and no env overrides."""
    for key in list(os.environ):
        if key.startswith("CODEREVIEW_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)
    CodeReviewLogger.reset()
    LogContext.clear()
    yield
    CodeReviewLogger.reset()
    LogContext.clear()


@pytest.fixture
def write_file(tmp_path):
    """Write a text file below tmp_path and return its path."""
    def _write(relative: str, content: str):
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path
    return _write


def run_git(repo, *args):
    """Run git in repo and return stripped stdout."""
    process = subprocess.run(
        ["git", "-C", str(repo), *args],
        capture_output=True,
        text=True,
        check=True,
    )
    return process.stdout.strip()


@pytest.fixture
def git_repo(tmp_path):
    """
    Repository with one commit on main and a feature branch checked out.

    main holds app.py; feature adds db.js (with an injectable query)
    and edits app.py.
    """
    if shutil.which("git") is None:
        pytest.skip("git is not installed")

    repo = tmp_path / "repo"
    repo.mkdir()
    run_git(repo, "init", "-q")
    run_git(repo, "symbolic-ref", "HEAD", "refs/heads/main")
    run_git(repo, "config", "user.name", "Review Bot")
    run_git(repo, "config", "user.email", "review-bot@example.com")
    run_git(repo, "config", "commit.gpgsign", "false")

    (repo / "app.py").write_text("def main():\n    return 1\n", encoding="utf-8")
    run_git(repo, "add", ".")
    run_git(repo, "commit", "-q", "-m", "Initial commit")

    run_git(repo, "checkout", "-q", "-b", "feature")
    (repo / "app.py").write_text("def main():\n    return 2\n", encoding="utf-8")
    (repo / "db.js").write_text(
        'const query = "SELECT * FROM users WHERE id = " + req.params.id;\n',
        encoding="utf-8",
    )
    run_git(repo, "add", ".")
    run_git(repo, "commit", "-q", "-m", "Add user lookup")
    return repo
