"""
Tests for the review domain models: issues, results, scoring and derived text.
"""

import threading

import pytest

from codereview.domain.exceptions import InvalidIssueError, InvalidStateTransitionError
from codereview.domain.models.review import (
    Category,
    ReviewIssue,
    ReviewResult,
    ReviewStatus,
    Severity,
)
from codereview.domain.services.review_summary import create_review_checklist


def make_issue(
    severity=Severity.LOW,
    category=Category.STYLE,
    file_path="src/app.py",
    line=1,
    rule_id="test-rule",
    message="Something to fix",
):
    return ReviewIssue.create(
        file_path=file_path,
        line=line,
        severity=severity,
        category=category,
        message=message,
        rule_id=rule_id,
    )


class TestReviewIssue:
    """Test suite for ReviewIssue."""

    def test_create_generates_id(self):
        """Test factory assigns a unique id."""
        first = make_issue()
        second = make_issue()

        assert first.id.startswith("issue-")
        assert first.id != second.id

    def test_line_must_be_one_based(self):
        """Test line 0 is rejected."""
        with pytest.raises(InvalidIssueError):
            make_issue(line=0)

    def test_confidence_must_be_in_range(self):
        """Test confidence outside 0..1 is rejected."""
        with pytest.raises(InvalidIssueError):
            ReviewIssue.create(
                file_path="a.py",
                line=1,
                severity=Severity.LOW,
                category=Category.STYLE,
                message="x",
                rule_id="r",
                confidence=1.5,
            )

    def test_create_accepts_string_enums(self):
        """Test severity and category given as values are converted."""
        issue = make_issue(severity="high", category="security")

        assert issue.severity is Severity.HIGH
        assert issue.category is Category.SECURITY

    def test_dict_round_trip(self):
        """Test to_dict output rebuilds an equal issue."""
        issue = ReviewIssue.create(
            file_path="src/db.js",
            line=12,
            severity=Severity.CRITICAL,
            category=Category.SECURITY,
            message="Potential SQL injection vulnerability",
            rule_id="sql-injection",
            suggestion="Use parameterized queries",
            tags=["security", "sql"],
            metadata={"source": "rule"},
        )

        rebuilt = ReviewIssue.from_dict(issue.to_dict())

        assert rebuilt == issue

    def test_to_dict_copies_metadata(self):
        """Test the serialized metadata is detached from the issue."""
        issue = ReviewIssue.create(
            file_path="a.py",
            line=1,
            severity=Severity.LOW,
            category=Category.STYLE,
            message="x",
            rule_id="r",
            metadata={"length": 46},
        )

        data = issue.to_dict()
        data["metadata"]["length"] = 0
        data["tags"].append("extra")

        assert issue.metadata == {"length": 46}
        assert issue.tags == ()

    def test_from_dict_rejects_missing_fields(self):
        """Test malformed issue data raises InvalidIssueError."""
        with pytest.raises(InvalidIssueError):
            ReviewIssue.from_dict({"file_path": "a.py"})


class TestSeverity:
    """Test suite for Severity ordering."""

    def test_is_at_least(self):
        assert Severity.CRITICAL.is_at_least(Severity.HIGH)
        assert Severity.HIGH.is_at_least(Severity.HIGH)
        assert not Severity.LOW.is_at_least(Severity.MEDIUM)
        assert not Severity.INFO.is_at_least(Severity.LOW)


class TestReviewResult:
    """Test suite for ReviewResult aggregation and scoring."""

    def test_add_issue_updates_histograms(self):
        """Test both histograms and the total agree after adding issues."""
        result = ReviewResult.create("project", files_reviewed=1)
        result.add_issues([
            make_issue(Severity.HIGH, Category.SECURITY),
            make_issue(Severity.HIGH, Category.PERFORMANCE),
            make_issue(Severity.LOW, Category.SECURITY),
        ])

        assert result.total_issues == 3
        assert result.issues_by_severity["high"] == 2
        assert result.issues_by_severity["low"] == 1
        assert result.issues_by_category["security"] == 2
        assert sum(result.issues_by_severity.values()) == result.total_issues
        assert sum(result.issues_by_category.values()) == result.total_issues

    def test_score_is_100_without_files(self):
        """Test an empty review scores 100."""
        result = ReviewResult.create("project")

        assert result.calculate_score() == 100.0

    def test_score_weights_severity(self):
        """Test one critical issue in one file costs 20 points."""
        result = ReviewResult.create("project", files_reviewed=1)
        result.add_issue(make_issue(Severity.CRITICAL, Category.SECURITY))

        assert result.calculate_score() == pytest.approx(80.0)

    def test_score_is_clamped_at_zero(self):
        """Test scores never go negative."""
        result = ReviewResult.create("project", files_reviewed=1)
        for line in range(1, 8):
            result.add_issue(make_issue(Severity.CRITICAL, Category.SECURITY, line=line))

        assert result.calculate_score() == 0.0

    def test_score_never_increases_when_issues_are_added(self):
        result = ReviewResult.create("project", files_reviewed=2)
        previous = result.calculate_score()
        severities = [Severity.INFO, Severity.LOW, Severity.CRITICAL, Severity.MEDIUM, Severity.HIGH] * 4

        for line, severity in enumerate(severities, start=1):
            result.add_issue(make_issue(severity, line=line))
            score = result.calculate_score()
            assert score <= previous
            previous = score

        assert previous == pytest.approx(26.0)

    def test_concurrent_add_and_merge_keep_every_issue(self):
        """Test add_issue and merge from many threads lose nothing."""
        aggregate = ReviewResult.create("project")

        def add_directly(worker):
            for line in range(1, 51):
                aggregate.add_issue(make_issue(Severity.LOW, file_path=f"w{worker}.py", line=line))

        def merge_per_file(worker):
            for line in range(1, 51):
                single = ReviewResult.create("project", files_reviewed=1)
                single.add_issue(make_issue(Severity.HIGH, file_path=f"m{worker}.py", line=line))
                aggregate.merge(single)

        threads = [threading.Thread(target=add_directly, args=(n,)) for n in range(4)]
        threads += [threading.Thread(target=merge_per_file, args=(n,)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert aggregate.total_issues == 400
        assert aggregate.issues_by_severity["low"] == 200
        assert aggregate.issues_by_severity["high"] == 200
        assert aggregate.issues_by_category["style"] == 400
        assert aggregate.files_reviewed == 200
        assert len({issue.id for issue in aggregate.issues}) == 400

    def test_complete_without_issues(self):
        """Test summary of a clean review."""
        result = ReviewResult.create("project", files_reviewed=3)
        result.start()
        result.complete(0.5)

        assert result.status == ReviewStatus.COMPLETED
        assert result.completed_at is not None
        assert result.summary.startswith("Reviewed 3 file(s), found 0 issue(s).")
        assert "Great job! No issues found." in result.summary
        assert result.recommendations == []
        assert result.metrics["files_per_second"] == 6.0

    def test_complete_with_critical_issue(self):
        """Test summary and recommendations mention critical security issues."""
        result = ReviewResult.create("project", files_reviewed=1)
        result.add_issue(make_issue(Severity.CRITICAL, Category.SECURITY))
        result.complete()

        assert "CRITICAL: 1 critical issue(s) need immediate attention." in result.summary
        assert "Code quality needs some improvement." in result.summary
        assert result.recommendations == [
            "Fix 1 critical issue(s) immediately.",
            "Address 1 security issue(s) to prevent vulnerabilities.",
        ]

    def test_finished_result_cannot_transition(self):
        """Test completing or failing a finished result raises."""
        result = ReviewResult.create("project")
        result.complete()

        with pytest.raises(InvalidStateTransitionError):
            result.complete()
        with pytest.raises(InvalidStateTransitionError):
            result.fail("late failure")

    def test_fail_sets_summary(self):
        result = ReviewResult.create("project")
        result.fail("Review failed: boom")

        assert result.status == ReviewStatus.FAILED
        assert result.summary == "Review failed: boom"
        assert result.recommendations == []

    def test_merge_combines_results(self):
        """Test merging per-file results into an aggregate."""
        aggregate = ReviewResult.create("project")
        first = ReviewResult.create("project", files_reviewed=1)
        first.add_issue(make_issue(Severity.MEDIUM))
        second = ReviewResult.create("project", files_reviewed=0)
        second.failed_files["bad.py"] = "not UTF-8"

        aggregate.merge(first)
        aggregate.merge(second)

        assert aggregate.files_reviewed == 1
        assert aggregate.total_issues == 1
        assert aggregate.failed_files == {"bad.py": "not UTF-8"}
        assert aggregate.metrics["files_failed"] == 1

    def test_filtered_rebuilds_counts(self):
        """Test filtering by severity keeps only severe issues and leaves the original intact."""
        result = ReviewResult.create("project", files_reviewed=2)
        result.add_issues([
            make_issue(Severity.CRITICAL, Category.SECURITY),
            make_issue(Severity.HIGH, Category.PERFORMANCE),
            make_issue(Severity.LOW, Category.READABILITY),
        ])
        result.complete()

        filtered = result.filtered(min_severity=Severity.HIGH)

        assert filtered.total_issues == 2
        assert filtered.issues_by_severity["low"] == 0
        assert filtered.status == ReviewStatus.COMPLETED
        assert filtered.completed_at == result.completed_at
        assert filtered.id == result.id
        assert result.total_issues == 3

    def test_filtered_by_category(self):
        result = ReviewResult.create("project", files_reviewed=1)
        result.add_issues([
            make_issue(Severity.HIGH, Category.SECURITY),
            make_issue(Severity.HIGH, Category.PERFORMANCE),
        ])
        result.complete()

        filtered = result.filtered(category=Category.SECURITY)

        assert [i.category for i in filtered.issues] == [Category.SECURITY]
        assert filtered.issues_by_category["performance"] == 0

    def test_filtered_keeps_failed_status(self):
        result = ReviewResult.create("project")
        result.fail("Directory review failed: Not a directory: x")

        filtered = result.filtered(min_severity=Severity.HIGH)

        assert filtered.status == ReviewStatus.FAILED
        assert filtered.summary == result.summary

    def test_to_dict_includes_rounded_score(self):
        result = ReviewResult.create("project", files_reviewed=3)
        result.add_issue(make_issue(Severity.MEDIUM))

        data = result.to_dict()

        assert data["score"] == round(result.calculate_score(), 1)
        assert data["total_issues"] == 1
        assert len(data["issues"]) == 1

    def test_from_dict_recomputes_histograms(self):
        """Test stored histograms are ignored in favour of the issue list."""
        result = ReviewResult.create("project", files_reviewed=1)
        result.add_issue(make_issue(Severity.HIGH, Category.SECURITY))
        result.complete()
        data = result.to_dict()
        data["issues_by_severity"] = {"critical": 99}

        rebuilt = ReviewResult.from_dict(data)

        assert rebuilt.issues_by_severity["critical"] == 0
        assert rebuilt.issues_by_severity["high"] == 1
        assert rebuilt.status == ReviewStatus.COMPLETED
        assert rebuilt.summary == result.summary


class TestReviewChecklist:
    """Test suite for the fix checklist."""

    def test_buckets_by_severity(self):
        result = ReviewResult.create("project", files_reviewed=1)
        result.add_issues([
            make_issue(Severity.CRITICAL, Category.SECURITY),
            make_issue(Severity.HIGH, Category.SECURITY),
            make_issue(Severity.MEDIUM, Category.PERFORMANCE),
            make_issue(Severity.INFO, Category.STYLE),
        ])

        checklist = create_review_checklist(result)

        assert len(checklist["required"]) == 2
        assert len(checklist["recommended"]) == 1
        assert len(checklist["optional"]) == 1
        assert checklist["required"][0]["rule"] == "test-rule"
