"""Domain models - Entities and Value Objects."""

from .review import (
    Category,
    ReviewContext,
    ReviewIssue,
    ReviewResult,
    ReviewStatus,
    Severity,
)
from .git_scope import GitScope
from .team_standards import TeamStandards

__all__ = [
    "Category",
    "ReviewContext",
    "ReviewIssue",
    "ReviewResult",
    "ReviewStatus",
    "Severity",
    "GitScope",
    "TeamStandards",
]
