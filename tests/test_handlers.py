"""
Tests for the review file and review directory command handlers.
"""

import pytest

from codereview.application.commands import (
    ReviewDirectoryCommand,
    ReviewDirectoryHandler,
    ReviewFileCommand,
    ReviewFileHandler,
)
from codereview.domain.models.review import Category, ReviewStatus, Severity
from codereview.domain.rules import RuleRegistry
from codereview.domain.services.reviewer import CodeReviewer, ReviewOptions
from codereview.infrastructure.persistence.result_store import ResultStore

# One critical secret and a low severity TODO
SOURCE = 'api_key = "sk-live-1234567890abcdef"\n# TODO: rotate the key\n'


@pytest.fixture
def reviewer():
    return CodeReviewer(RuleRegistry.create_default(), max_workers=2)


@pytest.fixture
def store(tmp_path):
    return ResultStore(tmp_path / "results")


class TestReviewFileHandler:
    """Test suite for ReviewFileHandler."""

    def test_handle(self, reviewer, write_file):
        path = write_file("app.py", SOURCE)

        result = ReviewFileHandler(reviewer).handle(ReviewFileCommand(file_path=path))

        assert result.status == ReviewStatus.COMPLETED
        assert {"no-hardcoded-secrets", "comment-quality"} <= {i.rule_id for i in result.issues}

    def test_min_severity_filters_output(self, reviewer, write_file):
        path = write_file("app.py", SOURCE)
        command = ReviewFileCommand(file_path=path, options=ReviewOptions(min_severity=Severity.HIGH))

        result = ReviewFileHandler(reviewer).handle(command)

        assert result.issues
        assert all(i.severity.is_at_least(Severity.HIGH) for i in result.issues)

    def test_category_filters_output(self, reviewer, write_file):
        path = write_file("app.py", SOURCE)
        command = ReviewFileCommand(file_path=path, options=ReviewOptions(category=Category.READABILITY))

        result = ReviewFileHandler(reviewer).handle(command)

        assert {i.category for i in result.issues} == {Category.READABILITY}

    def test_saved_snapshot_keeps_every_issue(self, reviewer, store, write_file):
        path = write_file("app.py", SOURCE)
        command = ReviewFileCommand(
            file_path=path,
            options=ReviewOptions(min_severity=Severity.CRITICAL),
            save_result=True,
        )

        filtered = ReviewFileHandler(reviewer, store).handle(command)

        saved = store.latest()
        assert saved.id == filtered.id
        assert saved.total_issues > filtered.total_issues

    def test_failed_review_is_not_saved(self, reviewer, store, tmp_path):
        command = ReviewFileCommand(file_path=tmp_path / "missing.py", save_result=True)

        result = ReviewFileHandler(reviewer, store).handle(command)

        assert result.status == ReviewStatus.FAILED
        assert store.list_results() == []


class TestReviewDirectoryHandler:
    """Test suite for ReviewDirectoryHandler."""

    @pytest.fixture
    def project(self, write_file, tmp_path):
        write_file("proj/src/app.py", SOURCE)
        write_file("proj/src/view.js", "const total = 1;\n")
        write_file("proj/dist/bundle.js", "const total = 1;\n")
        return tmp_path / "proj"

    def test_directory(self, reviewer, project):
        result = ReviewDirectoryHandler(reviewer).handle(ReviewDirectoryCommand(directory=project))

        assert result.files_reviewed == 3

    def test_project_skips_build_folders(self, reviewer, project):
        command = ReviewDirectoryCommand(directory=project, project=True)

        result = ReviewDirectoryHandler(reviewer).handle(command)

        assert result.files_reviewed == 2
        assert not any("dist" in i.file_path for i in result.issues)

    def test_save_result(self, reviewer, store, project):
        command = ReviewDirectoryCommand(directory=project, project=True, save_result=True)

        result = ReviewDirectoryHandler(reviewer, store).handle(command)

        assert store.latest().id == result.id

    def test_missing_directory(self, reviewer, store, tmp_path):
        command = ReviewDirectoryCommand(directory=tmp_path / "nowhere", save_result=True)

        result = ReviewDirectoryHandler(reviewer, store).handle(command)

        assert result.status == ReviewStatus.FAILED
        assert store.list_results() == []
