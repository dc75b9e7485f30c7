"""JSON snapshot storage for review results."""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from ...domain.exceptions import ConfigError, InvalidIssueError
from ...domain.models.review import ReviewIssue, ReviewResult
from ..logging import CodeReviewLogger

IssueKey = Tuple[str, str, int, str]


def issue_key(issue: ReviewIssue) -> IssueKey:
    """
    Identity of an issue across runs.

    Issue ids are regenerated on every review, so comparison uses the
    file, rule, line and message instead.
    """
    return (issue.file_path, issue.rule_id, issue.line, issue.message)


def compare_results(old: ReviewResult, new: ReviewResult) -> Dict[str, Any]:
    """
    Compare two review results of the same project.

    Args:
        old: Earlier result
        new: Later result

    Returns:
        Dictionary with new, resolved and unchanged issues (as dicts)
        and the score delta
    """
    old_issues = {issue_key(i): i for i in old.issues}
    new_issues = {issue_key(i): i for i in new.issues}

    old_score = old.calculate_score()
    new_score = new.calculate_score()

    return {
        "new": [new_issues[k].to_dict() for k in new_issues if k not in old_issues],
        "resolved": [old_issues[k].to_dict() for k in old_issues if k not in new_issues],
        "unchanged": [new_issues[k].to_dict() for k in new_issues if k in old_issues],
        "old_score": round(old_score, 1),
        "new_score": round(new_score, 1),
        "score_delta": round(new_score - old_score, 1),
    }


class ResultStore:
    """
    Saves review results as JSON files in one directory.

    One file per result, named ``<timestamp>_<result id>.json`` so a
    directory listing is in chronological order.
    """

    def __init__(self, directory: Union[str, Path] = "./.codereview/results"):
        self.directory = Path(directory)
        self.logger = CodeReviewLogger.get_instance()

    def save(self, result: ReviewResult, path: Optional[Union[str, Path]] = None) -> Path:
        """
        Write a result snapshot.

        Args:
            result: Result to save
            path: Explicit file path (defaults to a new file in the store)

        Returns:
            Path written
        """
        if path is None:
            stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S")
            path = self.directory / f"{stamp}_{result.id}.json"
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(result.to_dict(), indent=2), encoding="utf-8")

        self.logger.info("Saved review result", extra={"result_id": result.id, "path": str(path)})
        return path

    def load(self, path: Union[str, Path]) -> ReviewResult:
        """
        Read a result snapshot.

        Raises:
            FileNotFoundError: If path does not exist
            ConfigError: If the file is not a result snapshot
        """
        path = Path(path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid result snapshot {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Invalid result snapshot {path}: expected a JSON object")
        try:
            return ReviewResult.from_dict(data)
        except (InvalidIssueError, TypeError, ValueError) as e:
            raise ConfigError(f"Invalid result snapshot {path}: {e}") from e

    def list_results(self) -> List[Path]:
        """Snapshot files, oldest first."""
        if not self.directory.is_dir():
            return []
        return sorted(self.directory.glob("*.json"))

    def latest(self) -> Optional[ReviewResult]:
        results = self.list_results()
        return self.load(results[-1]) if results else None

    def compare(self, old_path: Union[str, Path], new_path: Union[str, Path]) -> Dict[str, Any]:
        return compare_results(self.load(old_path), self.load(new_path))
