"""Git review scope value object."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass(frozen=True)
class GitScope:
    """
    The set of files a diff-bounded review covers.

    Computed fresh for every review request and never persisted. Diff
    text is carried for context only; rules do not read it.
    """
    base: str
    current: str
    changed_files: List[str] = field(default_factory=list)
    diffs: Dict[str, str] = field(default_factory=dict)
    commit: Optional[str] = None

    @property
    def is_commit_scope(self) -> bool:
        return self.commit is not None

    @property
    def label(self) -> str:
        """Human readable scope name."""
        if self.commit:
            return f"commit {self.commit[:12]}"
        return f"{self.base}...{self.current}"

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "base": self.base,
            "current": self.current,
            "commit": self.commit,
            "changed_files": list(self.changed_files),
            "diffs": dict(self.diffs),
        }
