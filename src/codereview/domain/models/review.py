"""Review domain models: issues, review results and scoring."""

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple
from uuid import uuid4

from ..exceptions import InvalidIssueError, InvalidStateTransitionError


class Severity(str, Enum):
    """Issue severity levels, highest first."""
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"

    @property
    def rank(self) -> int:
        """Numeric rank, larger is more severe."""
        return _SEVERITY_RANK[self]

    def is_at_least(self, other: "Severity") -> bool:
        """True if this severity is as severe as, or more severe than, other."""
        return self.rank >= other.rank


_SEVERITY_RANK = {
    Severity.CRITICAL: 4,
    Severity.HIGH: 3,
    Severity.MEDIUM: 2,
    Severity.LOW: 1,
    Severity.INFO: 0,
}

# Weights used by the quality score
SEVERITY_WEIGHTS = {
    Severity.CRITICAL: 10.0,
    Severity.HIGH: 5.0,
    Severity.MEDIUM: 2.0,
    Severity.LOW: 1.0,
    Severity.INFO: 0.5,
}

# Assumed worst case per file when normalizing the score
MAX_ISSUES_PER_FILE = 5


class Category(str, Enum):
    """Issue categories."""
    SECURITY = "security"
    PERFORMANCE = "performance"
    MAINTAINABILITY = "maintainability"
    READABILITY = "readability"
    BEST_PRACTICE = "best_practice"
    STYLE = "style"
    BUG_RISK = "bug_risk"
    COMPLEXITY = "complexity"
    TEST_COVERAGE = "test_coverage"
    DOCUMENTATION = "documentation"


class ReviewStatus(str, Enum):
    """Lifecycle of a review result."""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ReviewStatus.COMPLETED, ReviewStatus.FAILED)


def _parse_datetime(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(value)


@dataclass(frozen=True)
class ReviewIssue:
    """
    Immutable value object representing a single review finding.

    Issues are produced by rules (or the AI reviewer) and owned by the
    ReviewResult that collected them.
    """
    id: str
    file_path: str
    line: int
    severity: Severity
    category: Category
    message: str
    rule_id: str
    column: int = 0
    end_line: Optional[int] = None
    description: Optional[str] = None
    suggestion: Optional[str] = None
    code_snippet: Optional[str] = None
    confidence: float = 0.8
    tags: Tuple[str, ...] = ()
    metadata: Dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self):
        if not 0.0 <= self.confidence <= 1.0:
            raise InvalidIssueError(
                f"confidence must be between 0 and 1, got {self.confidence}"
            )
        if self.line < 1:
            raise InvalidIssueError(f"line numbers are 1-based, got {self.line}")

    @classmethod
    def create(
        cls,
        file_path: str,
        line: int,
        severity: Severity,
        category: Category,
        message: str,
        rule_id: str,
        column: int = 0,
        end_line: Optional[int] = None,
        description: Optional[str] = None,
        suggestion: Optional[str] = None,
        code_snippet: Optional[str] = None,
        confidence: float = 0.8,
        tags: Optional[Iterable[str]] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> "ReviewIssue":
        """Factory method to create a review issue with a generated id."""
        return cls(
            id=f"issue-{uuid4().hex[:16]}",
            file_path=file_path,
            line=line,
            severity=Severity(severity),
            category=Category(category),
            message=message,
            rule_id=rule_id,
            column=column,
            end_line=end_line,
            description=description,
            suggestion=suggestion,
            code_snippet=code_snippet,
            confidence=confidence,
            tags=tuple(tags or ()),
            metadata=dict(metadata or {}),
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "file_path": self.file_path,
            "line": self.line,
            "column": self.column,
            "end_line": self.end_line,
            "severity": self.severity.value,
            "category": self.category.value,
            "message": self.message,
            "description": self.description,
            "suggestion": self.suggestion,
            "code_snippet": self.code_snippet,
            "rule_id": self.rule_id,
            "confidence": self.confidence,
            "tags": list(self.tags),
            "metadata": dict(self.metadata),
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReviewIssue":
        """Rebuild an issue from its serialized form."""
        try:
            return cls(
                id=data["id"],
                file_path=data["file_path"],
                line=int(data["line"]),
                severity=Severity(data["severity"]),
                category=Category(data["category"]),
                message=data["message"],
                rule_id=data.get("rule_id", ""),
                column=int(data.get("column") or 0),
                end_line=data.get("end_line"),
                description=data.get("description"),
                suggestion=data.get("suggestion"),
                code_snippet=data.get("code_snippet"),
                confidence=float(data.get("confidence", 0.8)),
                tags=tuple(data.get("tags") or ()),
                metadata=dict(data.get("metadata") or {}),
                created_at=_parse_datetime(data.get("created_at"))
                or datetime.now(timezone.utc),
            )
        except (KeyError, ValueError) as e:
            raise InvalidIssueError(f"Malformed issue data: {e}") from e


@dataclass(frozen=True)
class ReviewContext:
    """Review-wide context handed to every rule check."""
    project_path: str = ""
    session_id: str = ""
    config: Dict[str, Any] = field(default_factory=dict)
    metadata: Dict[str, Any] = field(default_factory=dict)


def _empty_histogram(enum_type) -> Dict[str, int]:
    return {member.value: 0 for member in enum_type}


def _default_metrics() -> Dict[str, float]:
    return {"execution_time": 0.0, "files_per_second": 0.0, "files_failed": 0}


@dataclass
class ReviewResult:
    """
    Aggregate root for a review run.

    The histograms are maintained by add_issue under a lock so that
    total_issues, both histogram sums and len(issues) always agree.
    Summary and recommendations are derived when the result completes.
    """
    id: str
    session_id: str
    project_path: str
    created_at: datetime
    files_reviewed: int = 0
    issues: List[ReviewIssue] = field(default_factory=list)
    issues_by_severity: Dict[str, int] = field(
        default_factory=lambda: _empty_histogram(Severity)
    )
    issues_by_category: Dict[str, int] = field(
        default_factory=lambda: _empty_histogram(Category)
    )
    metrics: Dict[str, float] = field(default_factory=_default_metrics)
    status: ReviewStatus = ReviewStatus.PENDING
    summary: str = ""
    recommendations: List[str] = field(default_factory=list)
    completed_at: Optional[datetime] = None
    failed_files: Dict[str, str] = field(default_factory=dict)
    _lock: threading.Lock = field(
        default_factory=threading.Lock, repr=False, compare=False
    )

    @classmethod
    def create(
        cls,
        project_path: str,
        session_id: str = "",
        files_reviewed: int = 0,
    ) -> "ReviewResult":
        """Factory method to create a new pending review result."""
        return cls(
            id=f"review-{uuid4().hex[:16]}",
            session_id=session_id,
            project_path=str(project_path),
            created_at=datetime.now(timezone.utc),
            files_reviewed=files_reviewed,
        )

    @property
    def total_issues(self) -> int:
        return len(self.issues)

    def add_issue(self, issue: ReviewIssue) -> None:
        """Add an issue and update both histograms atomically."""
        with self._lock:
            self.issues.append(issue)
            self.issues_by_severity[issue.severity.value] = (
                self.issues_by_severity.get(issue.severity.value, 0) + 1
            )
            self.issues_by_category[issue.category.value] = (
                self.issues_by_category.get(issue.category.value, 0) + 1
            )

    def add_issues(self, issues: Iterable[ReviewIssue]) -> None:
        """Add several issues."""
        for issue in issues:
            self.add_issue(issue)

    def merge(self, other: "ReviewResult") -> None:
        """
        Merge another (per-file) result into this aggregate.

        Args:
            other: Result whose issues, file count and failures are absorbed
        """
        self.add_issues(other.issues)
        with self._lock:
            self.files_reviewed += other.files_reviewed
            self.failed_files.update(other.failed_files)
            self.metrics["files_failed"] = len(self.failed_files)

    def get_issues_by_severity(self, severity: Severity) -> List[ReviewIssue]:
        """Get all issues of a specific severity."""
        return [i for i in self.issues if i.severity == severity]

    def get_issues_by_category(self, category: Category) -> List[ReviewIssue]:
        """Get all issues of a specific category."""
        return [i for i in self.issues if i.category == category]

    def get_issues_by_file(self) -> Dict[str, List[ReviewIssue]]:
        """Group issues by file path, preserving discovery order."""
        grouped: Dict[str, List[ReviewIssue]] = {}
        for issue in self.issues:
            grouped.setdefault(issue.file_path, []).append(issue)
        return grouped

    def get_critical_issues(self) -> List[ReviewIssue]:
        return self.get_issues_by_severity(Severity.CRITICAL)

    def get_high_priority_issues(self) -> List[ReviewIssue]:
        """Critical and high severity issues."""
        return [
            i for i in self.issues
            if i.severity in (Severity.CRITICAL, Severity.HIGH)
        ]

    def calculate_score(self) -> float:
        """
        Calculate the 0-100 quality score.

        Each severity has a fixed weight; the weighted total is normalized
        against MAX_ISSUES_PER_FILE critical issues per reviewed file and
        clamped to [0, 100]. 100 means no issues.

        Returns:
            Quality score
        """
        total_weight = sum(
            SEVERITY_WEIGHTS.get(Severity(severity), 1.0) * count
            for severity, count in self.issues_by_severity.items()
        )

        max_weight = self.files_reviewed * MAX_ISSUES_PER_FILE * SEVERITY_WEIGHTS[Severity.CRITICAL]
        if max_weight == 0:
            return 100.0

        raw_score = 100.0 - (total_weight / max_weight) * 100.0
        return max(0.0, min(100.0, raw_score))

    def start(self) -> None:
        """Mark the review as running."""
        self._ensure_not_terminal()
        self.status = ReviewStatus.IN_PROGRESS

    def complete(self, execution_time: Optional[float] = None) -> None:
        """
        Mark the review as completed and derive summary and recommendations.

        Args:
            execution_time: Wall-clock seconds spent, if measured

        Raises:
            InvalidStateTransitionError: If the result is already finished
        """
        from ..services.review_summary import (
            generate_recommendations,
            generate_summary,
        )

        self._ensure_not_terminal()
        if execution_time is not None:
            self._record_timing(execution_time)
        self.status = ReviewStatus.COMPLETED
        self.completed_at = datetime.now(timezone.utc)
        self.recommendations = generate_recommendations(self)
        self.summary = generate_summary(self)

    def fail(self, message: str, execution_time: Optional[float] = None) -> None:
        """
        Mark the review as failed.

        Args:
            message: Failure summary shown to the user
            execution_time: Wall-clock seconds spent, if measured
        """
        self._ensure_not_terminal()
        if execution_time is not None:
            self._record_timing(execution_time)
        self.status = ReviewStatus.FAILED
        self.completed_at = datetime.now(timezone.utc)
        self.summary = message
        self.recommendations = []

    def _record_timing(self, execution_time: float) -> None:
        self.metrics["execution_time"] = round(execution_time, 4)
        if execution_time > 0:
            self.metrics["files_per_second"] = round(
                self.files_reviewed / execution_time, 2
            )

    def _ensure_not_terminal(self) -> None:
        if self.status.is_terminal:
            raise InvalidStateTransitionError(
                f"Review {self.id} is already {self.status.value}"
            )

    def filtered(
        self,
        min_severity: Optional[Severity] = None,
        category: Optional[Category] = None,
    ) -> "ReviewResult":
        """
        Return a copy keeping only issues at or above min_severity and in category.

        The copy's histograms, summary and recommendations are rebuilt from
        the kept issues.
        """
        copy = ReviewResult(
            id=self.id,
            session_id=self.session_id,
            project_path=self.project_path,
            created_at=self.created_at,
            files_reviewed=self.files_reviewed,
            metrics=dict(self.metrics),
            failed_files=dict(self.failed_files),
        )
        for issue in self.issues:
            if min_severity is not None and not issue.severity.is_at_least(min_severity):
                continue
            if category is not None and issue.category != category:
                continue
            copy.add_issue(issue)

        if self.status == ReviewStatus.COMPLETED:
            copy.complete()
            copy.completed_at = self.completed_at
        elif self.status == ReviewStatus.FAILED:
            copy.fail(self.summary)
            copy.completed_at = self.completed_at
        else:
            copy.status = self.status
        return copy

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization, including the score."""
        return {
            "id": self.id,
            "session_id": self.session_id,
            "project_path": self.project_path,
            "files_reviewed": self.files_reviewed,
            "total_issues": self.total_issues,
            "issues_by_severity": dict(self.issues_by_severity),
            "issues_by_category": dict(self.issues_by_category),
            "metrics": dict(self.metrics),
            "status": self.status.value,
            "summary": self.summary,
            "recommendations": list(self.recommendations),
            "created_at": self.created_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "failed_files": dict(self.failed_files),
            "score": round(self.calculate_score(), 1),
            "issues": [i.to_dict() for i in self.issues],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReviewResult":
        """
        Rebuild a result from its serialized form.

        Histograms are recomputed from the issue list rather than trusted.
        """
        result = cls(
            id=data.get("id") or f"review-{uuid4().hex[:16]}",
            session_id=data.get("session_id", ""),
            project_path=data.get("project_path", ""),
            created_at=_parse_datetime(data.get("created_at"))
            or datetime.now(timezone.utc),
            files_reviewed=int(data.get("files_reviewed", 0)),
        )
        for issue_data in data.get("issues", []):
            result.add_issue(ReviewIssue.from_dict(issue_data))

        metrics = _default_metrics()
        metrics.update(data.get("metrics") or {})
        result.metrics = metrics
        result.status = ReviewStatus(data.get("status", ReviewStatus.PENDING.value))
        result.summary = data.get("summary", "")
        result.recommendations = list(data.get("recommendations") or [])
        result.completed_at = _parse_datetime(data.get("completed_at"))
        result.failed_files = dict(data.get("failed_files") or {})
        return result
