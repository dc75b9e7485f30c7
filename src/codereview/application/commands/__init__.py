"""Command handlers for review use cases."""

from .review_file import ReviewFileCommand, ReviewFileHandler
from .review_directory import ReviewDirectoryCommand, ReviewDirectoryHandler
from .team_review import TeamReviewer, TeamReviewReport

__all__ = [
    "ReviewFileCommand",
    "ReviewFileHandler",
    "ReviewDirectoryCommand",
    "ReviewDirectoryHandler",
    "TeamReviewer",
    "TeamReviewReport",
]
