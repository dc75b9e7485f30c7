"""Review directory and project command and handler."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from ...domain.models.review import ReviewResult, ReviewStatus
from ...domain.services.reviewer import CodeReviewer, ReviewOptions
from ...infrastructure.logging import CodeReviewLogger
from ...infrastructure.persistence.result_store import ResultStore


@dataclass
class ReviewDirectoryCommand:
    """
    Command to review a directory tree.

    With project set, dependency and build folders (node_modules, dist,
    .venv, ...) are excluded on top of options.exclude_patterns.
    """
    directory: Path
    options: ReviewOptions = field(default_factory=ReviewOptions)
    project: bool = False
    save_result: bool = False


class ReviewDirectoryHandler:
    """Handler for review directory command."""

    def __init__(self, reviewer: CodeReviewer, result_store: Optional[ResultStore] = None):
        self.reviewer = reviewer
        self.result_store = result_store
        self.logger = CodeReviewLogger.get_instance()

    def handle(self, command: ReviewDirectoryCommand) -> ReviewResult:
        """
        Execute review directory command.

        Args:
            command: Review command

        Returns:
            Aggregate ReviewResult, filtered by severity and category
        """
        self.logger.info(
            "Starting directory review",
            extra={
                "directory": str(command.directory),
                "project": command.project,
                "limit": command.options.limit,
            }
        )

        if command.project:
            result = self.reviewer.review_project(command.directory, command.options)
        else:
            result = self.reviewer.review_directory(command.directory, command.options)

        if command.save_result and self.result_store and result.status == ReviewStatus.COMPLETED:
            self.result_store.save(result)

        return result.filtered(command.options.min_severity, command.options.category)
