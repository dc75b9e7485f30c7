"""Review single file command and handler."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from ...domain.models.review import ReviewResult, ReviewStatus
from ...domain.services.reviewer import CodeReviewer, ReviewOptions
from ...infrastructure.logging import CodeReviewLogger
from ...infrastructure.persistence.result_store import ResultStore


@dataclass
class ReviewFileCommand:
    """
    Command to review a single file.

    min_severity and category in options filter the returned result;
    the saved snapshot keeps every issue.
    """
    file_path: Path
    options: ReviewOptions = field(default_factory=ReviewOptions)
    save_result: bool = False


class ReviewFileHandler:
    """
    Handler for review file command.

    Orchestrates:
    1. Rule (and optional AI) review of the file
    2. Optional snapshot to the result store
    3. Output filtering
    """

    def __init__(self, reviewer: CodeReviewer, result_store: Optional[ResultStore] = None):
        """
        Initialize handler.

        Args:
            reviewer: Review orchestrator
            result_store: Snapshot storage used when save_result is set
        """
        self.reviewer = reviewer
        self.result_store = result_store
        self.logger = CodeReviewLogger.get_instance()

    def handle(self, command: ReviewFileCommand) -> ReviewResult:
        """
        Execute review file command.

        Args:
            command: Review command

        Returns:
            ReviewResult, filtered by the command's severity and category
        """
        self.logger.info(
            "Starting file review",
            extra={
                "file_path": str(command.file_path),
                "use_ai": command.options.use_ai,
            }
        )

        result = self.reviewer.review_file(command.file_path, command.options)

        if command.save_result and self.result_store and result.status == ReviewStatus.COMPLETED:
            self.result_store.save(result)

        self.logger.info(
            "File review completed",
            extra={
                "file_path": str(command.file_path),
                "status": result.status.value,
                "issues_count": result.total_issues,
                "duration_seconds": result.metrics["execution_time"],
            }
        )

        return result.filtered(command.options.min_severity, command.options.category)
