"""Domain exceptions for codereview."""


class CodeReviewError(Exception):
    """Base exception for domain errors."""
    pass


class RuleExecutionError(CodeReviewError):
    """Raised when a rule check fails on a file."""

    def __init__(self, rule_id: str, file_path: str, cause: Exception):
        self.rule_id = rule_id
        self.file_path = file_path
        self.cause = cause
        super().__init__(f"Rule '{rule_id}' failed on {file_path}: {cause}")


class FileAccessError(CodeReviewError):
    """Raised when a file cannot be read for review."""
    pass


class ConfigError(CodeReviewError):
    """Raised when a configuration or team standards document is invalid."""
    pass


class ScopeError(CodeReviewError):
    """Raised when a git review scope cannot be resolved."""
    pass


class RegistryError(CodeReviewError):
    """Base exception for rule registry errors."""
    pass


class DuplicateRuleIdError(RegistryError):
    """Raised when a rule id is registered twice."""
    pass


class RuleNotFoundError(RegistryError):
    """Raised when a registry mutation names an unknown rule id."""
    pass


class InvalidIssueError(CodeReviewError):
    """Raised when a review issue is malformed."""
    pass


class InvalidStateTransitionError(CodeReviewError):
    """Raised when a finished review result is modified."""
    pass
