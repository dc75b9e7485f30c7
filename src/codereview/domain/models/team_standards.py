"""Team standards document models using Pydantic."""

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

NAMING_CONVENTIONS = ("camelCase", "snake_case", "PascalCase")


class _StandardsSection(BaseModel):
    """Shared settings: camelCase on disk, snake_case in code."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
    )


class CodeStyle(_StandardsSection):
    """Formatting limits enforced by the team."""
    max_line_length: int = Field(
        default=100,
        ge=20,
        le=1000,
        description="Maximum characters per line"
    )
    indent_size: int = Field(
        default=2,
        ge=1,
        le=16,
        description="Spaces per indentation level"
    )
    use_tabs: bool = Field(
        default=False,
        description="Indent with tabs instead of spaces"
    )
    trailing_comma: str = Field(
        default="es5",
        description="Trailing comma style (none, es5, all)"
    )
    semi: bool = Field(default=True, description="Require semicolons")
    single_quote: bool = Field(default=False, description="Prefer single quotes")


class RuleSettings(_StandardsSection):
    """Rule enablement and per-rule configuration overrides."""
    enabled: List[str] = Field(
        default_factory=lambda: [
            "no-hardcoded-secrets",
            "sql-injection",
            "xss-prevention",
            "long-function",
            "high-complexity",
            "long-line",
            "magic-number",
            "error-handling",
        ],
        description="Rule ids to enable"
    )
    disabled: List[str] = Field(
        default_factory=list,
        description="Rule ids to disable (wins over enabled)"
    )
    custom: Dict[str, Dict[str, Any]] = Field(
        default_factory=dict,
        description="Rule id -> config overrides"
    )


class Thresholds(_StandardsSection):
    """Numeric thresholds remapped onto rule configs."""
    max_cognitive_complexity: int = Field(default=15, ge=1)
    max_function_length: int = Field(default=50, ge=1)
    max_parameters: int = Field(default=5, ge=0)
    max_nesting_depth: int = Field(default=4, ge=1)
    max_method_chain_length: int = Field(default=5, ge=1)


class FilePatterns(_StandardsSection):
    """Glob patterns deciding which files are reviewed."""
    include: List[str] = Field(
        default_factory=lambda: [
            "**/*.js",
            "**/*.ts",
            "**/*.py",
            "**/*.java",
            "**/*.go",
            "**/*.rs",
        ]
    )
    exclude: List[str] = Field(
        default_factory=lambda: [
            "node_modules/**",
            "dist/**",
            "build/**",
            "*.min.js",
        ]
    )


class TeamStandards(_StandardsSection):
    """Complete team standards document."""
    naming_conventions: Dict[str, str] = Field(
        default_factory=lambda: {
            "javascript": "camelCase",
            "typescript": "camelCase",
            "python": "snake_case",
            "java": "camelCase",
            "go": "camelCase",
            "rust": "snake_case",
        }
    )
    code_style: CodeStyle = Field(default_factory=CodeStyle)
    rules: RuleSettings = Field(default_factory=RuleSettings)
    thresholds: Thresholds = Field(default_factory=Thresholds)
    file_patterns: FilePatterns = Field(default_factory=FilePatterns)

    @field_validator("naming_conventions")
    @classmethod
    def validate_conventions(cls, v):
        """Ensure every convention is one we can check."""
        for language, convention in v.items():
            if convention not in NAMING_CONVENTIONS:
                raise ValueError(
                    f"naming convention for {language} must be one of {list(NAMING_CONVENTIONS)}"
                )
        return v

    def to_json_dict(self) -> Dict[str, Any]:
        """Serialize with the on-disk camelCase keys."""
        return self.model_dump(by_alias=True)
