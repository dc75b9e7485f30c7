"""Rule contract shared by every analyzer."""

import copy
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ..models.review import Category, ReviewContext, ReviewIssue, Severity


@dataclass(frozen=True)
class RuleContext:
    """Per-file context passed to Rule.check."""
    language: str
    review_context: ReviewContext = field(default_factory=ReviewContext)


class Rule(ABC):
    """
    Interface for a review rule.

    Concrete rules declare their metadata as class attributes and
    implement check(). A rule instance is shared across files, so check()
    must not keep per-file state on self and must never modify
    self.config.

    Example:
        >>> class NoTabsRule(Rule):
        ...     id = "no-tabs"
        ...     name = "No Tabs"
        ...     category = Category.STYLE
        ...     severity = Severity.LOW
        ...     def check(self, file_path, content, context):
        ...         return [
        ...             self.issue(file_path, n, "Tab character")
        ...             for n, line in enumerate(content.split("\\n"), 1)
        ...             if "\\t" in line
        ...         ]
    """

    id: str = ""
    name: str = ""
    description: str = ""
    category: Category = Category.BEST_PRACTICE
    severity: Severity = Severity.MEDIUM
    # Empty tuple means the rule applies to every language
    languages: Tuple[str, ...] = ()
    default_config: Dict[str, Any] = {}

    def __init__(self, enabled: bool = True, config: Optional[Dict[str, Any]] = None):
        """
        Initialize rule.

        Args:
            enabled: Whether the rule runs by default
            config: Overrides merged over default_config
        """
        self.enabled = enabled
        self.config: Dict[str, Any] = copy.deepcopy(self.default_config)
        if config:
            self.config.update(config)

    @abstractmethod
    def check(self, file_path: str, content: str, context: RuleContext) -> List[ReviewIssue]:
        """
        Check one file.

        Args:
            file_path: Path of the file, used for issue attribution
            content: Full file text
            context: Detected language and review-wide context

        Returns:
            Issues found (empty list when nothing matches)
        """
        pass

    def applies_to(self, language: str) -> bool:
        """True if the rule should run for language."""
        return not self.languages or language in self.languages

    def issue(
        self,
        file_path: str,
        line: int,
        message: str,
        severity: Optional[Severity] = None,
        **kwargs,
    ) -> ReviewIssue:
        """Create an issue attributed to this rule."""
        return ReviewIssue.create(
            file_path=file_path,
            line=line,
            severity=severity or self.severity,
            category=self.category,
            message=message,
            rule_id=self.id,
            **kwargs,
        )

    def clone(self) -> "Rule":
        """Independent copy, used for registry snapshots."""
        return copy.deepcopy(self)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category.value,
            "severity": self.severity.value,
            "languages": list(self.languages),
            "enabled": self.enabled,
            "config": copy.deepcopy(self.config),
        }

    def __repr__(self) -> str:
        state = "enabled" if self.enabled else "disabled"
        return f"<{type(self).__name__} {self.id} ({state})>"
