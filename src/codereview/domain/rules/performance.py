"""Performance rules: N+1 queries, leaks, large literals, string building in loops."""

import re
from typing import Iterator, List, Sequence, Tuple

from ..models.review import Category, ReviewIssue, Severity
from .base import Rule, RuleContext
from .scanners import scanner_for
from .text_utils import is_comment_line, split_lines

LOOP_START = re.compile(
    r"^(?:for|while)\b"
    r"|\.(?:forEach|map|filter)\s*\(\s*(?:async\s*)?(?:\(|\w+\s*=>|function\b)"
)

CONCAT_LOOP_START = re.compile(r"^(?:for|while)\b|\.forEach\s*\(")

_STRING_CONCAT = re.compile(r"\+=\s*.*[\"'`]|[\"'`]\s*\+|\+\s*[\"'`]")


def iter_loops(lines: Sequence[str], language: str, pattern=LOOP_START) -> Iterator[Tuple[int, int]]:
    """
    Yield (start, end) 0-based spans of outermost loops.

    Loop entry is a keyword match on the trimmed line; the loop ends
    where the language scanner closes the block.
    """
    scanner = scanner_for(language)
    index = 0
    while index < len(lines):
        trimmed = lines[index].strip()
        if trimmed and not is_comment_line(trimmed) and pattern.search(trimmed):
            end = scanner.find_block_end(lines, index)
            yield index, end
            index = end + 1
        else:
            index += 1


class NPlusOneQueryRule(Rule):
    """Database-style calls made inside loop bodies."""

    id = "n-plus-one-query"
    name = "N+1 Query Problem"
    description = "Detect potential N+1 query problems in database access"
    category = Category.PERFORMANCE
    severity = Severity.HIGH
    languages = ("javascript", "typescript", "python", "java")
    default_config = {
        "queryMethods": [
            ".find(",
            ".findOne(",
            ".query(",
            ".select(",
            ".where(",
            ".execute(",
            ".objects.get(",
            ".objects.filter(",
        ],
    }

    def check(self, file_path: str, content: str, context: RuleContext) -> List[ReviewIssue]:
        issues = []
        lines = split_lines(content)
        methods = self.config.get("queryMethods", [])

        for start, end in iter_loops(lines, context.language):
            for index in range(start, end + 1):
                line = lines[index]
                if is_comment_line(line):
                    continue
                if any(method in line for method in methods):
                    issues.append(self.issue(
                        file_path,
                        index + 1,
                        "Potential N+1 query problem",
                        end_line=index + 1,
                        description=(
                            "Database query inside a loop can lead to performance "
                            "issues (N+1 query problem)."
                        ),
                        suggestion=(
                            "Consider using eager loading, batch queries, or JOIN "
                            "operations to reduce database round trips."
                        ),
                        code_snippet=line.strip(),
                        confidence=0.6,
                        tags=["performance", "database", "query"],
                        metadata={"loop_start": start + 1},
                    ))
        return issues


class MemoryLeakRule(Rule):
    """
    Compare listener/timer registrations with cleanup calls.

    This is a file-wide imbalance heuristic, not per-pair matching: when
    registrations outnumber cleanups by more than imbalanceRatio, every
    registration is reported.
    """

    id = "memory-leak"
    name = "Memory Leak Detection"
    description = "Detect potential memory leaks in event listeners and timers"
    category = Category.PERFORMANCE
    severity = Severity.MEDIUM
    languages = ("javascript", "typescript")
    default_config = {
        "eventMethods": [".addEventListener(", ".on(", ".once("],
        "timerMethods": ["setTimeout(", "setInterval(", "setImmediate("],
        "cleanupMethods": [
            ".removeEventListener(",
            ".off(",
            "clearTimeout(",
            "clearInterval(",
        ],
        "imbalanceRatio": 1.5,
    }

    def check(self, file_path: str, content: str, context: RuleContext) -> List[ReviewIssue]:
        registration_methods = (
            self.config.get("eventMethods", []) + self.config.get("timerMethods", [])
        )
        cleanup_methods = self.config.get("cleanupMethods", [])

        registrations = []
        cleanups = 0
        for number, line in enumerate(split_lines(content), start=1):
            if is_comment_line(line):
                continue
            for method in registration_methods:
                if method in line:
                    registrations.append((number, method.rstrip("("), line.strip()))
            cleanups += sum(1 for method in cleanup_methods if method in line)

        if len(registrations) <= cleanups * self.config.get("imbalanceRatio", 1.5):
            return []

        return [
            self.issue(
                file_path,
                number,
                "Potential memory leak",
                end_line=number,
                description=f"{method} registration without a matching cleanup",
                suggestion=(
                    "Ensure event listeners and timers are removed when no longer "
                    "needed, especially in component lifecycle methods."
                ),
                code_snippet=code,
                confidence=0.5,
                tags=["performance", "memory", "leak"],
            )
            for number, method, code in registrations
        ]


class LargeObjectRule(Rule):
    """Very large array or object literals written on one line."""

    id = "large-object"
    name = "Large Object Creation"
    description = "Detect creation of large objects in performance-critical code"
    category = Category.PERFORMANCE
    severity = Severity.LOW
    languages = ("javascript", "typescript", "python", "java", "go", "rust")
    default_config = {"maxObjectSize": 1000}

    def check(self, file_path: str, content: str, context: RuleContext) -> List[ReviewIssue]:
        issues = []
        max_size = self.config.get("maxObjectSize", 1000)

        for number, line in enumerate(split_lines(content), start=1):
            items = self._count_between(line, "[", "]")
            if items > max_size / 10:
                issues.append(self._large_literal_issue(
                    file_path, number, line, "Large array literal", "array", items
                ))
            properties = self._count_between(line, "{", "}")
            if properties > max_size / 20:
                issues.append(self._large_literal_issue(
                    file_path, number, line, "Large object literal", "object", properties
                ))
        return issues

    @staticmethod
    def _count_between(line: str, opener: str, closer: str) -> int:
        first = line.find(opener)
        last = line.rfind(closer)
        if first < 0 or last <= first:
            return 0
        return sum(1 for item in line[first + 1:last].split(",") if item.strip())

    def _large_literal_issue(self, file_path, number, line, message, kind, count):
        return self.issue(
            file_path,
            number,
            message,
            end_line=number,
            description=f"{kind.capitalize()} literal with {count} entries can impact performance and memory usage.",
            suggestion="Consider lazy loading, pagination, or moving large data sets out of source code.",
            code_snippet=line.strip()[:100] + "...",
            confidence=0.4,
            tags=["performance", "memory", kind],
        )


class StringConcatenationRule(Rule):
    id = "string-concatenation"
    name = "Inefficient String Concatenation"
    description = "Detect inefficient string concatenation in loops"
    category = Category.PERFORMANCE
    severity = Severity.MEDIUM
    languages = ("javascript", "typescript", "python", "java")

    def check(self, file_path: str, content: str, context: RuleContext) -> List[ReviewIssue]:
        issues = []
        lines = split_lines(content)

        for start, end in iter_loops(lines, context.language, CONCAT_LOOP_START):
            body = lines[start + 1:end + 1] if end > start else lines[start:start + 1]
            if any(_STRING_CONCAT.search(line) for line in body if not is_comment_line(line)):
                issues.append(self.issue(
                    file_path,
                    start + 1,
                    "Inefficient string concatenation in loop",
                    end_line=end + 1,
                    description="String concatenation in loops can be inefficient due to string immutability.",
                    suggestion="Collect the parts in a list/array and join them once, or use a string builder.",
                    code_snippet=lines[start].strip(),
                    confidence=0.7,
                    tags=["performance", "string", "loop"],
                ))
        return issues
