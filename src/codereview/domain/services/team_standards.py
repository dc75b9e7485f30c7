"""Team standards overlay domain service."""

import re
from functools import lru_cache
from pathlib import PurePath
from typing import Any, Dict, List, Optional, Sequence, Union

from pydantic.alias_generators import to_camel

from ..exceptions import ConfigError, RuleNotFoundError
from ..models.review import Category, ReviewIssue, ReviewResult, Severity
from ..models.team_standards import NAMING_CONVENTIONS, TeamStandards, Thresholds
from ..rules.registry import RuleRegistry
from ..rules.text_utils import split_lines
from ...infrastructure.logging import CodeReviewLogger

TEAM_STANDARDS_RULE_ID = "team-standards"

_GLOB_CHARS = set("*?[")

_LEADING_WHITESPACE = re.compile(r"^\s+")


@lru_cache(maxsize=256)
def _glob_to_regex(pattern: str) -> "re.Pattern":
    """
    Translate a glob into a regex.

    ``**`` matches any sequence including ``/`` (``**/`` may match
    nothing), ``*`` any sequence without ``/``, ``?`` one character.
    """
    parts = []
    index = 0
    while index < len(pattern):
        char = pattern[index]
        if pattern.startswith("**/", index):
            parts.append("(?:.*/)?")
            index += 3
            continue
        if pattern.startswith("**", index):
            parts.append(".*")
            index += 2
            continue
        if char == "*":
            parts.append("[^/]*")
        elif char == "?":
            parts.append("[^/]")
        else:
            parts.append(re.escape(char))
        index += 1
    return re.compile("".join(parts))


def matches_pattern(file_path: Union[str, PurePath], pattern: str) -> bool:
    """
    Match a path against a team file pattern.

    Glob patterns must match the whole path; glob patterns without a
    directory part also match the basename. Plain patterns match by
    substring.

    Args:
        file_path: Path, relative to the project root where possible
        pattern: Glob or plain substring

    Returns:
        True if the pattern matches
    """
    path = PurePath(file_path).as_posix()
    if path.startswith("./"):
        path = path[2:]

    if not _GLOB_CHARS.intersection(pattern):
        return pattern in path

    regex = _glob_to_regex(pattern)
    if regex.fullmatch(path):
        return True
    if "/" not in pattern:
        return bool(regex.fullmatch(PurePath(path).name))
    return False


class TeamStandardsService:
    """
    Applies a TeamStandards document to a rule registry and to files.

    The overlay is idempotent: applying the same standards twice leaves
    the registry exactly as applying them once.
    """

    # Rule id -> config overrides derived from the standards
    THRESHOLD_MAPPING = {
        "long-function": lambda s: {"maxLines": s.thresholds.max_function_length, "languages": {}},
        "high-complexity": lambda s: {"maxComplexity": s.thresholds.max_cognitive_complexity},
        "cognitive-complexity": lambda s: {"maxComplexity": s.thresholds.max_cognitive_complexity},
        "parameter-count": lambda s: {"maxParameters": s.thresholds.max_parameters, "languages": {}},
        "deep-nesting": lambda s: {"maxDepth": s.thresholds.max_nesting_depth},
        "method-chaining": lambda s: {"maxChainLength": s.thresholds.max_method_chain_length},
        "long-line": lambda s: {"maxLength": s.code_style.max_line_length},
        "inconsistent-naming": lambda s: {"languageConventions": dict(s.naming_conventions)},
    }

    def __init__(self, standards: Optional[TeamStandards] = None):
        """
        Initialize service.

        Args:
            standards: Team standards document (defaults when omitted)
        """
        self.standards = standards or TeamStandards()
        self.logger = CodeReviewLogger.get_instance()

    def apply_to_registry(self, registry: RuleRegistry) -> None:
        """
        Overlay enablement, custom configs and thresholds onto registry.

        A rule listed in both enabled and disabled ends up disabled.
        Unknown rule ids in the document are logged and skipped.
        """
        rules = self.standards.rules
        for rule_id in rules.enabled:
            registry.enable(rule_id)
        for rule_id in rules.disabled:
            registry.disable(rule_id)

        for rule_id, config in rules.custom.items():
            try:
                registry.update_rule_config(rule_id, config)
            except RuleNotFoundError:
                self.logger.warning(
                    "Team standards configure an unknown rule",
                    extra={"rule_id": rule_id},
                )

        for rule_id, values in self.THRESHOLD_MAPPING.items():
            if registry.get_rule(rule_id) is not None:
                registry.update_rule_config(rule_id, values(self.standards))

        self.logger.debug(
            "Applied team standards",
            extra={"enabled": len(rules.enabled), "disabled": len(rules.disabled)},
        )

    def should_review_file(self, file_path: Union[str, PurePath]) -> bool:
        """Exclude patterns win; otherwise a file must match an include pattern."""
        patterns = self.standards.file_patterns
        if any(matches_pattern(file_path, p) for p in patterns.exclude):
            return False
        return any(matches_pattern(file_path, p) for p in patterns.include)

    def matches_pattern(self, file_path: Union[str, PurePath], pattern: str) -> bool:
        return matches_pattern(file_path, pattern)

    def get_naming_convention(self, language: str) -> str:
        return self.standards.naming_conventions.get(language, "camelCase")

    def set_naming_convention(self, language: str, convention: str) -> None:
        """
        Set the naming convention for a language.

        Raises:
            ConfigError: If the convention is not supported
        """
        if convention not in NAMING_CONVENTIONS:
            raise ConfigError(
                f"Unsupported naming convention '{convention}'. "
                f"Use one of: {', '.join(NAMING_CONVENTIONS)}"
            )
        conventions = dict(self.standards.naming_conventions)
        conventions[language] = convention
        self.standards.naming_conventions = conventions

    def enable_rule(self, rule_id: str) -> None:
        rules = self.standards.rules
        if rule_id not in rules.enabled:
            rules.enabled = rules.enabled + [rule_id]
        rules.disabled = [r for r in rules.disabled if r != rule_id]

    def disable_rule(self, rule_id: str) -> None:
        rules = self.standards.rules
        if rule_id not in rules.disabled:
            rules.disabled = rules.disabled + [rule_id]
        rules.enabled = [r for r in rules.enabled if r != rule_id]

    def is_rule_enabled(self, rule_id: str) -> bool:
        rules = self.standards.rules
        return rule_id in rules.enabled and rule_id not in rules.disabled

    def set_custom_rule_config(self, rule_id: str, config: Dict[str, Any]) -> None:
        custom = dict(self.standards.rules.custom)
        custom[rule_id] = {**custom.get(rule_id, {}), **config}
        self.standards.rules.custom = custom

    def set_threshold(self, key: str, value: int) -> None:
        """
        Set one threshold by field name or camelCase alias.

        Raises:
            ConfigError: If the key is unknown or the value out of range
        """
        fields = Thresholds.model_fields
        name = key
        if name not in fields:
            name = next((f for f in fields if to_camel(f) == key), None)
        if name is None:
            raise ConfigError(
                f"Unknown threshold '{key}'. Known thresholds: {', '.join(fields)}"
            )
        try:
            setattr(self.standards.thresholds, name, value)
        except ValueError as e:
            raise ConfigError(f"Invalid value for threshold '{key}': {e}") from e

    def validate_code_against_standards(self, file_path: str, content: str) -> List[ReviewIssue]:
        """
        Check line length and indentation against the code style.

        Args:
            file_path: Path used for issue attribution
            content: File text

        Returns:
            Style issues with rule id "team-standards"
        """
        style = self.standards.code_style
        issues = []

        for number, line in enumerate(split_lines(content), start=1):
            if len(line) > style.max_line_length:
                issues.append(self._style_issue(
                    file_path,
                    number,
                    f"Line {number} exceeds maximum length ({len(line)} > {style.max_line_length})",
                    "line_length",
                ))

            if not line.strip():
                continue
            match = _LEADING_WHITESPACE.match(line)
            indent = match.group(0) if match else ""
            if style.use_tabs:
                if " " in indent:
                    issues.append(self._style_issue(
                        file_path, number,
                        f"Line {number} uses spaces instead of tabs for indentation",
                        "indentation",
                    ))
            elif "\t" in indent:
                issues.append(self._style_issue(
                    file_path, number,
                    f"Line {number} uses tabs instead of spaces for indentation",
                    "indentation",
                ))
            elif len(indent) % style.indent_size != 0:
                issues.append(self._style_issue(
                    file_path, number,
                    f"Line {number} has inconsistent indentation ({len(indent)} spaces)",
                    "indentation",
                ))
        return issues

    @staticmethod
    def _style_issue(file_path: str, line: int, message: str, violation: str) -> ReviewIssue:
        return ReviewIssue.create(
            file_path=file_path,
            line=line,
            end_line=line,
            severity=Severity.LOW,
            category=Category.STYLE,
            message=message,
            rule_id=TEAM_STANDARDS_RULE_ID,
            metadata={"type": violation},
        )

    def generate_team_report(self, results: Sequence[ReviewResult]) -> Dict[str, Any]:
        """
        Build the team report for one or more review results.

        Args:
            results: Review results (single-file or aggregate)

        Returns:
            Report dictionary: summary, files, standards_compliance,
            recommendations
        """
        by_severity = {s.value: 0 for s in Severity}
        by_category: Dict[str, int] = {}
        files: List[Dict[str, Any]] = []
        total_files = 0
        total_issues = 0

        for result in results:
            total_files += result.files_reviewed
            for path, issues in result.get_issues_by_file().items():
                file_result = ReviewResult.create(path, files_reviewed=1)
                file_result.add_issues(issues)
                files.append({
                    "path": path,
                    "status": "issues",
                    "total_issues": len(issues),
                    "score": round(file_result.calculate_score(), 1),
                    "issues_by_severity": {k: v for k, v in file_result.issues_by_severity.items() if v},
                    "issues_by_category": {k: v for k, v in file_result.issues_by_category.items() if v},
                    "issues": [
                        {
                            "rule_id": issue.rule_id,
                            "severity": issue.severity.value,
                            "category": issue.category.value,
                            "message": issue.message,
                            "line": issue.line,
                            "suggestion": issue.suggestion,
                        }
                        for issue in issues
                    ],
                })
                total_issues += len(issues)
                for issue in issues:
                    by_severity[issue.severity.value] += 1
                    by_category[issue.category.value] = by_category.get(issue.category.value, 0) + 1

            for path, message in result.failed_files.items():
                files.append({
                    "path": path,
                    "status": "failed",
                    "error": message,
                    "total_issues": 0,
                    "score": None,
                    "issues": [],
                })

        files_with_issues = sum(1 for f in files if f["status"] == "issues")
        compliance = 100
        if total_files > 0:
            compliance = round(max(0, total_files - files_with_issues) / total_files * 100)

        return {
            "summary": {
                "total_files": total_files,
                "files_with_issues": files_with_issues,
                "total_issues": total_issues,
                "issues_by_severity": by_severity,
                "issues_by_category": by_category,
            },
            "files": files,
            "standards_compliance": compliance,
            "recommendations": self._team_recommendations(by_severity, by_category),
        }

    @staticmethod
    def _team_recommendations(by_severity: Dict[str, int], by_category: Dict[str, int]) -> List[Dict[str, str]]:
        recommendations = []
        if by_severity[Severity.CRITICAL.value]:
            recommendations.append({
                "priority": "critical",
                "message": f"Address {by_severity[Severity.CRITICAL.value]} critical issues immediately",
            })
        if by_severity[Severity.HIGH.value]:
            recommendations.append({
                "priority": "high",
                "message": f"Fix {by_severity[Severity.HIGH.value]} high severity issues",
            })
        if by_category:
            category, count = max(by_category.items(), key=lambda item: item[1])
            recommendations.append({
                "priority": "medium",
                "message": f"Focus on {category} issues ({count} total)",
            })
        return recommendations
