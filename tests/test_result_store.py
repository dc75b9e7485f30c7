"""
Tests for result snapshots and result comparison.
"""

import json

import pytest

from codereview.domain.exceptions import ConfigError
from codereview.domain.models.review import Category, ReviewIssue, ReviewResult, Severity
from codereview.infrastructure.persistence.result_store import ResultStore, compare_results


def make_issue(rule_id, line, severity=Severity.MEDIUM, file_path="src/app.py"):
    return ReviewIssue.create(
        file_path=file_path,
        line=line,
        severity=severity,
        category=Category.MAINTAINABILITY,
        message=f"{rule_id} finding",
        rule_id=rule_id,
    )


def make_result(*issues, files=2):
    result = ReviewResult.create("project", files_reviewed=files)
    result.add_issues(issues)
    result.complete()
    return result


class TestResultStore:
    """Test suite for ResultStore."""

    @pytest.fixture
    def store(self, tmp_path):
        return ResultStore(tmp_path / "results")

    def test_save_and_load(self, store):
        result = make_result(make_issue("long-function", 4))

        path = store.save(result)
        loaded = store.load(path)

        assert path.parent == store.directory
        assert path.name.endswith(f"_{result.id}.json")
        assert loaded.id == result.id
        assert loaded.total_issues == 1
        assert loaded.summary == result.summary

    def test_save_to_explicit_path(self, store, tmp_path):
        path = store.save(make_result(), tmp_path / "snapshots" / "base.json")

        assert path == tmp_path / "snapshots" / "base.json"
        assert json.loads(path.read_text())["status"] == "completed"

    def test_list_results_and_latest(self, store):
        assert store.list_results() == []
        assert store.latest() is None

        first = make_result()
        second = make_result(make_issue("magic-number", 2))
        store.save(first, store.directory / "20240101T000000_a.json")
        store.save(second, store.directory / "20240102T000000_b.json")

        assert [p.name for p in store.list_results()] == [
            "20240101T000000_a.json",
            "20240102T000000_b.json",
        ]
        assert store.latest().id == second.id

    def test_load_missing_file(self, store, tmp_path):
        with pytest.raises(FileNotFoundError):
            store.load(tmp_path / "missing.json")

    def test_load_invalid_json(self, store, write_file):
        with pytest.raises(ConfigError):
            store.load(write_file("broken.json", "{oops"))

    def test_load_non_object(self, store, write_file):
        with pytest.raises(ConfigError):
            store.load(write_file("list.json", "[]"))

    def test_load_invalid_issue(self, store, write_file):
        path = write_file("bad.json", json.dumps({"issues": [{"file_path": "a.py"}]}))

        with pytest.raises(ConfigError):
            store.load(path)


class TestCompareResults:
    """Test suite for comparing two results."""

    def test_new_resolved_and_unchanged(self):
        kept = make_issue("long-function", 10)
        old = make_result(kept, make_issue("magic-number", 3, Severity.LOW))
        # Same finding from a later run gets a fresh id
        new = make_result(
            make_issue("long-function", 10),
            make_issue("sql-injection", 7, Severity.CRITICAL),
        )

        comparison = compare_results(old, new)

        assert [i["rule_id"] for i in comparison["new"]] == ["sql-injection"]
        assert [i["rule_id"] for i in comparison["resolved"]] == ["magic-number"]
        assert [i["rule_id"] for i in comparison["unchanged"]] == ["long-function"]
        assert comparison["old_score"] == 97.0
        assert comparison["new_score"] == 88.0
        assert comparison["score_delta"] == -9.0

    def test_moved_issue_counts_as_new(self):
        old = make_result(make_issue("long-function", 10))
        new = make_result(make_issue("long-function", 12))

        comparison = compare_results(old, new)

        assert len(comparison["new"]) == 1
        assert len(comparison["resolved"]) == 1
        assert comparison["unchanged"] == []

    def test_compare_files(self, tmp_path):
        store = ResultStore(tmp_path)
        old_path = store.save(make_result(make_issue("magic-number", 1)), tmp_path / "old.json")
        new_path = store.save(make_result(), tmp_path / "new.json")

        comparison = store.compare(old_path, new_path)

        assert len(comparison["resolved"]) == 1
        assert comparison["new_score"] == 100.0
