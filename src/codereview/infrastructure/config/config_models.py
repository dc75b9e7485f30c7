"""Configuration data models using Pydantic."""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class ReviewConfig(BaseModel):
    """Review run configuration."""
    include_extensions: List[str] = Field(
        default_factory=lambda: [
            ".js", ".jsx", ".ts", ".tsx", ".py", ".java", ".go", ".rs",
            ".cpp", ".c", ".h", ".hpp",
        ],
        description="File extensions reviewed by directory and project reviews"
    )
    exclude_patterns: List[str] = Field(
        default_factory=list,
        description="Extra exclude patterns (substring, glob or regex)"
    )
    max_workers: Optional[int] = Field(
        default=None,
        ge=1,
        le=64,
        description="Files reviewed in parallel (defaults to CPU count)"
    )
    max_failures: Optional[int] = Field(
        default=None,
        ge=1,
        description="Stop starting new file reviews after this many failures"
    )
    use_ai: bool = Field(
        default=False,
        description="Run the AI reviewer when one is configured"
    )

    @field_validator('include_extensions')
    @classmethod
    def validate_extensions(cls, v):
        """Normalize extensions to lowercase with a leading dot."""
        return [ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in v]


class RulesConfig(BaseModel):
    """Rule registry overrides."""
    disabled: List[str] = Field(
        default_factory=list,
        description="Rule ids disabled at startup"
    )
    enabled: List[str] = Field(
        default_factory=list,
        description="Rule ids enabled at startup (disabled wins)"
    )
    overrides: Dict[str, Dict[str, Any]] = Field(
        default_factory=dict,
        description="Per-rule config overrides, keyed by rule id"
    )


class GitConfig(BaseModel):
    """Git scope configuration."""
    base_branch: str = Field(
        default="main",
        description="Branch pull request reviews are diffed against"
    )
    remote: str = Field(
        default="origin",
        description="Remote name"
    )
    timeout: int = Field(
        default=30,
        ge=1,
        le=600,
        description="Timeout in seconds for a single git command"
    )


class TeamConfig(BaseModel):
    """Team standards configuration."""
    enabled: bool = Field(
        default=True,
        description="Apply team standards when a team config is found"
    )
    standards_file: Optional[str] = Field(
        default=None,
        description="Explicit team standards file (skips discovery)"
    )


class OutputConfig(BaseModel):
    """Output configuration."""
    default_format: str = Field(
        default="text",
        description="Default output format (text, markdown, json, html)"
    )
    color: bool = Field(
        default=True,
        description="Enable colored console output"
    )
    verbose: bool = Field(
        default=False,
        description="Enable verbose output"
    )
    results_directory: str = Field(
        default="./.codereview/results",
        description="Directory for saved review results"
    )

    @field_validator('default_format')
    @classmethod
    def validate_format(cls, v):
        """Ensure format is valid."""
        valid_formats = ["text", "markdown", "json", "html"]
        v = v.lower()
        if v not in valid_formats:
            raise ValueError(f"format must be one of {valid_formats}")
        return v


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = Field(
        default="WARNING",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    file: Optional[str] = Field(
        default=None,
        description="JSON log file path (console only when unset)"
    )
    console: bool = Field(
        default=True,
        description="Enable console logging"
    )
    rotation: str = Field(
        default="daily",
        description="Log rotation strategy (daily, none)"
    )
    retention_days: int = Field(
        default=30,
        ge=1,
        le=365,
        description="Number of days to retain logs"
    )

    @field_validator('level')
    @classmethod
    def validate_level(cls, v):
        """Ensure log level is valid."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v = v.upper()
        if v not in valid_levels:
            raise ValueError(f"level must be one of {valid_levels}")
        return v

    @field_validator('rotation')
    @classmethod
    def validate_rotation(cls, v):
        """Ensure rotation strategy is valid."""
        valid_strategies = ["daily", "none"]
        v = v.lower()
        if v not in valid_strategies:
            raise ValueError(f"rotation must be one of {valid_strategies}")
        return v


class CodeReviewConfig(BaseModel):
    """Complete codereview configuration."""
    review: ReviewConfig = Field(default_factory=ReviewConfig)
    rules: RulesConfig = Field(default_factory=RulesConfig)
    git: GitConfig = Field(default_factory=GitConfig)
    team: TeamConfig = Field(default_factory=TeamConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    def to_yaml(self) -> str:
        """Convert configuration to YAML string."""
        import yaml
        return yaml.dump(self.model_dump(), default_flow_style=False, sort_keys=False)
