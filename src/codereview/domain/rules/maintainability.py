"""Maintainability rules: long functions, cyclomatic complexity, deep nesting."""

import re
from typing import List, Sequence

from ..models.review import Category, ReviewIssue, Severity
from .base import Rule, RuleContext
from .scanners import FunctionSpan, scanner_for
from .text_utils import code_only, snippet, split_lines

BASE_LANGUAGES = ("javascript", "typescript", "python", "java", "go", "rust")

CONTROL_FLOW = re.compile(
    r"\b(?:if|elif|else|for|while|switch|case|catch|except)\b|\bdefault\s*:"
)

_LOGICAL_OPERATORS = re.compile(r"&&|\|\|")
_WORD_OPERATORS = re.compile(r"\b(?:and|or)\b")
WORD_OPERATOR_LANGUAGES = {"python", "ruby"}


def count_control_flow(code: str) -> int:
    """Number of branching keywords on a code line."""
    return len(CONTROL_FLOW.findall(code))


def count_logical_operators(code: str, language: str) -> int:
    """Number of short-circuit operators on a code line."""
    count = len(_LOGICAL_OPERATORS.findall(code))
    if language in WORD_OPERATOR_LANGUAGES:
        count += len(_WORD_OPERATORS.findall(code))
    return count


def cyclomatic_complexity(lines: Sequence[str], span: FunctionSpan, language: str) -> int:
    """Unit-weight sum of control-flow keywords and logical operators in span."""
    total = 0
    for line in span.body(lines):
        code = code_only(line, language)
        total += count_control_flow(code) + count_logical_operators(code, language)
    return total


class LongFunctionRule(Rule):
    id = "long-function"
    name = "Long Function Detection"
    description = "Detect functions that are too long and should be refactored"
    category = Category.MAINTAINABILITY
    severity = Severity.MEDIUM
    languages = BASE_LANGUAGES
    default_config = {
        "maxLines": 50,
        "languages": {
            "javascript": 50,
            "typescript": 50,
            "python": 40,
            "java": 60,
            "go": 50,
            "rust": 60,
        },
    }

    def max_lines_for(self, language: str) -> int:
        """Per-language limit, falling back to maxLines."""
        per_language = self.config.get("languages") or {}
        return per_language.get(language, self.config.get("maxLines", 50))

    def check(self, file_path: str, content: str, context: RuleContext) -> List[ReviewIssue]:
        lines = split_lines(content)
        max_lines = self.max_lines_for(context.language)
        issues = []

        for span in scanner_for(context.language).detect_function_boundaries(lines):
            if span.length <= max_lines:
                continue
            issues.append(self.issue(
                file_path,
                span.start_line,
                f'Function "{span.name}" is too long ({span.length} lines, max {max_lines}). '
                "Consider breaking it into smaller functions.",
                end_line=span.end_line,
                suggestion=(
                    "Refactor this function into smaller, more focused functions "
                    "with single responsibilities."
                ),
                code_snippet=snippet(lines, span.start, min(span.start + 5, span.end + 1)),
                metadata={"function": span.name, "length": span.length},
            ))
        return issues


class HighComplexityRule(Rule):
    """Cyclomatic complexity per function."""

    id = "high-complexity"
    name = "High Cyclomatic Complexity"
    description = "Detect functions with high cyclomatic complexity"
    category = Category.MAINTAINABILITY
    severity = Severity.MEDIUM
    languages = BASE_LANGUAGES
    default_config = {"maxComplexity": 10}

    def check(self, file_path: str, content: str, context: RuleContext) -> List[ReviewIssue]:
        lines = split_lines(content)
        max_complexity = self.config.get("maxComplexity", 10)
        issues = []

        for span in scanner_for(context.language).detect_function_boundaries(lines):
            complexity = cyclomatic_complexity(lines, span, context.language)
            if complexity <= max_complexity:
                continue
            issues.append(self.issue(
                file_path,
                span.start_line,
                f'Function "{span.name}" has high cyclomatic complexity '
                f"({complexity}, max {max_complexity}). Consider refactoring.",
                end_line=span.end_line,
                suggestion=(
                    "Simplify the control flow by extracting complex conditions "
                    "into separate functions or using early returns."
                ),
                code_snippet=snippet(lines, span.start, min(span.start + 3, span.end + 1)),
                metadata={"function": span.name, "complexity": complexity},
            ))
        return issues


class DeepNestingRule(Rule):
    """
    File-wide nesting excursions.

    A block starts when depth rises above zero and ends when it returns
    to zero; the deepest point reached in between is compared to maxDepth.
    """

    id = "deep-nesting"
    name = "Deep Nesting Detection"
    description = "Detect deeply nested code blocks"
    category = Category.MAINTAINABILITY
    severity = Severity.MEDIUM
    languages = BASE_LANGUAGES
    default_config = {"maxDepth": 4}

    def check(self, file_path: str, content: str, context: RuleContext) -> List[ReviewIssue]:
        lines = split_lines(content)
        levels = scanner_for(context.language).nesting_levels(lines)
        max_depth = self.config.get("maxDepth", 4)
        issues = []

        block_start = None
        deepest = 0
        for index in range(len(lines)):
            depth_after = levels[index + 1]
            if block_start is None:
                if depth_after > 0:
                    block_start = index
                    deepest = depth_after
                continue

            deepest = max(deepest, depth_after)
            if depth_after <= 0:
                if deepest > max_depth:
                    issues.append(self._nesting_issue(file_path, lines, block_start, index, deepest, max_depth))
                block_start = None
                deepest = 0

        if block_start is not None and deepest > max_depth:
            issues.append(
                self._nesting_issue(file_path, lines, block_start, len(lines) - 1, deepest, max_depth)
            )
        return issues

    def _nesting_issue(self, file_path, lines, start, end, depth, max_depth) -> ReviewIssue:
        return self.issue(
            file_path,
            start + 1,
            f"Deeply nested code block detected (depth: {depth}, max: {max_depth})",
            end_line=end + 1,
            suggestion=(
                "Reduce nesting by extracting deeply nested code into separate "
                "functions or using guard clauses."
            ),
            code_snippet=snippet(lines, start - 1, min(end + 1, start + 4)),
            metadata={"depth": depth},
        )
