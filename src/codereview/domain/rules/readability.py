"""Readability rules: long lines, magic numbers, naming, comment quality."""

import re
from typing import List, Optional

from ..models.review import Category, ReviewIssue, Severity
from .base import Rule, RuleContext
from .scanners import match_function_signature
from .text_utils import is_comment_line, is_inside_string, split_lines

_IMPORT_PREFIXES = ("import ", "from ", "require(", "include ", "#include", "using ")

_NUMBER = r"(-?\d+(?:\.\d+)?)"

MAGIC_NUMBER_PATTERNS = [
    re.compile(r"(?:const|let|var)\s+\w+\s*=\s*" + _NUMBER),
    re.compile(r"\(\s*" + _NUMBER + r"\s*\)"),
    re.compile(r"[<>]=?\s*" + _NUMBER),
    re.compile(r"[+\-*/%]\s*" + _NUMBER),
]

_ARRAY_INDEX = re.compile(r"\[\s*" + _NUMBER + r"\s*\]")

_VARIABLE_DECLARATION = re.compile(r"\b(?:const|let|var)\s+(\w+)\s*(?::[^=]+)?=")
_PYTHON_ASSIGNMENT = re.compile(r"^(\w+)\s*(?::[^=]+)?=(?!=)")
_CLASS_DECLARATION = re.compile(r"\b(?:class|struct|interface)\s+(\w+)")

CAMEL_CASE = re.compile(r"^[a-z][a-zA-Z0-9]*$")
SNAKE_CASE = re.compile(r"^[a-z][a-z0-9]*(_[a-z0-9]+)*$")
PASCAL_CASE = re.compile(r"^[A-Z][a-zA-Z0-9]*$")
# Module level constants are exempt from variable conventions
SCREAMING_CASE = re.compile(r"^[A-Z][A-Z0-9]*(_[A-Z0-9]+)*$")

_LOOKS_LIKE_CODE = ("=", "(", "{", ";", "return", "if ", "for ", "while ")

_SHORT_COMMENT_ALLOWLIST = ("end", "begin", "start", "init", "close", "open")

_COMMENT_MARKER = re.compile(r"//|#|/\*")


def is_valid_name(name: str, convention: str) -> bool:
    """Check an identifier against camelCase, snake_case or PascalCase."""
    stripped = name.lstrip("_")
    if not stripped:
        return True
    if convention == "camelCase":
        return bool(CAMEL_CASE.match(stripped))
    if convention == "snake_case":
        return bool(SNAKE_CASE.match(stripped))
    if convention == "PascalCase":
        return bool(PASCAL_CASE.match(stripped))
    return True


def suggest_name(name: str, convention: str) -> str:
    """Rename an identifier to the given convention."""
    if convention == "camelCase":
        camel = re.sub(r"_([a-zA-Z0-9])", lambda m: m.group(1).upper(), name.strip("_"))
        return camel[:1].lower() + camel[1:]
    if convention == "snake_case":
        snake = re.sub(r"(?<=[a-z0-9])([A-Z])", r"_\1", name)
        return snake.lower().strip("_")
    if convention == "PascalCase":
        pascal = suggest_name(name, "camelCase")
        return pascal[:1].upper() + pascal[1:]
    return name


def comment_text(line: str) -> Optional[str]:
    """
    Text of the comment on a line, or None.

    Markers inside string literals are ignored.
    """
    for match in _COMMENT_MARKER.finditer(line):
        if not is_inside_string(line, match.start()):
            return line[match.end():].strip().rstrip("*/").strip()
    return None


class LongLineRule(Rule):
    id = "long-line"
    name = "Long Line Detection"
    description = "Detect lines that are too long and hard to read"
    category = Category.READABILITY
    severity = Severity.LOW
    default_config = {
        "maxLength": 100,
        "excludeUrls": True,
        "excludeImportStatements": False,
    }

    def check(self, file_path: str, content: str, context: RuleContext) -> List[ReviewIssue]:
        max_length = self.config.get("maxLength", 100)
        issues = []

        for number, line in enumerate(split_lines(content), start=1):
            trimmed = line.strip()
            if not trimmed or len(line) <= max_length:
                continue
            if self.config.get("excludeUrls") and ("http://" in trimmed or "https://" in trimmed):
                continue
            if self.config.get("excludeImportStatements") and trimmed.startswith(_IMPORT_PREFIXES):
                continue
            issues.append(self.issue(
                file_path,
                number,
                f"Line too long ({len(line)} characters, max {max_length})",
                end_line=number,
                suggestion="Break this line into multiple lines or extract parts into variables.",
                code_snippet=line[:120],
            ))
        return issues


class MagicNumberRule(Rule):
    """
    Unexplained numeric literals.

    Numbers whose magnitude is at most maxAllowed, or that appear in
    excludedNumbers, are accepted. Literals inside strings are skipped.
    """

    id = "magic-number"
    name = "Magic Number Detection"
    description = "Detect unexplained numeric literals in code"
    category = Category.READABILITY
    severity = Severity.LOW
    default_config = {
        "excludedNumbers": [0, 1, -1, 100, 1000, 1024, 60, 24, 12, 365],
        "maxAllowed": 5,
        "checkInArrays": True,
    }

    def check(self, file_path: str, content: str, context: RuleContext) -> List[ReviewIssue]:
        excluded = {float(n) for n in self.config.get("excludedNumbers", [])}
        max_allowed = self.config.get("maxAllowed", 5)
        patterns = list(MAGIC_NUMBER_PATTERNS)
        if self.config.get("checkInArrays", True):
            patterns.append(_ARRAY_INDEX)
        issues = []

        for number, line in enumerate(split_lines(content), start=1):
            if is_comment_line(line):
                continue
            seen = set()
            for pattern in patterns:
                for match in pattern.finditer(line):
                    offset = match.start(1)
                    if offset in seen:
                        continue
                    value = float(match.group(1))
                    if abs(value) <= max_allowed or value in excluded or abs(value) in excluded:
                        continue
                    if is_inside_string(line, offset):
                        continue
                    seen.add(offset)
                    literal = match.group(1)
                    issues.append(self.issue(
                        file_path,
                        number,
                        f"Magic number detected: {literal}",
                        end_line=number,
                        column=offset + 1,
                        suggestion="Replace this magic number with a named constant to improve readability.",
                        code_snippet=line[max(0, match.start() - 20):min(len(line), match.end() + 20)],
                        metadata={"value": value},
                    ))
        return issues


class InconsistentNamingRule(Rule):
    id = "inconsistent-naming"
    name = "Inconsistent Naming Convention"
    description = "Detect inconsistent naming conventions (camelCase vs snake_case)"
    category = Category.READABILITY
    severity = Severity.LOW
    languages = ("javascript", "typescript", "python", "java", "go", "rust")
    default_config = {
        "languageConventions": {
            "javascript": "camelCase",
            "typescript": "camelCase",
            "python": "snake_case",
            "java": "camelCase",
            "go": "camelCase",
            "rust": "snake_case",
        },
        "checkVariables": True,
        "checkFunctions": True,
        "checkClasses": True,
    }

    def check(self, file_path: str, content: str, context: RuleContext) -> List[ReviewIssue]:
        conventions = self.config.get("languageConventions") or {}
        convention = conventions.get(context.language, "camelCase")
        issues = []

        for number, line in enumerate(split_lines(content), start=1):
            trimmed = line.strip()
            if not trimmed or is_comment_line(trimmed):
                continue

            if self.config.get("checkVariables", True):
                for name in self._variable_names(trimmed, context.language):
                    if SCREAMING_CASE.match(name) or is_valid_name(name, convention):
                        continue
                    issues.append(self._naming_issue(file_path, number, line, "Variable", name, convention))

            if self.config.get("checkFunctions", True):
                name = match_function_signature(trimmed)
                if name and name != "anonymous" and not is_valid_name(name, convention):
                    # Java constructors share the class name
                    if not (context.language == "java" and PASCAL_CASE.match(name)):
                        issues.append(self._naming_issue(file_path, number, line, "Function", name, convention))

            if self.config.get("checkClasses", True):
                for match in _CLASS_DECLARATION.finditer(trimmed):
                    if is_inside_string(trimmed, match.start()):
                        continue
                    name = match.group(1)
                    if not is_valid_name(name, "PascalCase"):
                        issues.append(self._naming_issue(file_path, number, line, "Class", name, "PascalCase"))
        return issues

    @staticmethod
    def _variable_names(trimmed: str, language: str) -> List[str]:
        names = [
            m.group(1) for m in _VARIABLE_DECLARATION.finditer(trimmed)
            if not is_inside_string(trimmed, m.start())
        ]
        if language == "python" and not trimmed.startswith(("def ", "class ")):
            match = _PYTHON_ASSIGNMENT.match(trimmed)
            if match:
                names.append(match.group(1))
        return names

    def _naming_issue(self, file_path, number, line, kind, name, convention) -> ReviewIssue:
        suggested = suggest_name(name, convention)
        return self.issue(
            file_path,
            number,
            f"{kind} \"{name}\" doesn't follow {convention} convention",
            end_line=number,
            suggestion=f'Rename to "{suggested}"',
            code_snippet=line,
            metadata={"name": name, "suggested_name": suggested, "convention": convention},
        )


class CommentQualityRule(Rule):
    """TODO/FIXME markers, commented-out code and uninformative comments."""

    id = "comment-quality"
    name = "Comment Quality Check"
    description = "Check comment quality and usefulness"
    category = Category.READABILITY
    severity = Severity.LOW
    default_config = {
        "minCommentLength": 10,
        "checkTodoComments": True,
        "checkFixmeComments": True,
        "checkCommentedCode": True,
    }

    def check(self, file_path: str, content: str, context: RuleContext) -> List[ReviewIssue]:
        min_length = self.config.get("minCommentLength", 10)
        issues = []

        for number, line in enumerate(split_lines(content), start=1):
            text = comment_text(line)
            if text is None:
                continue
            lowered = text.lower()

            if self.config.get("checkTodoComments", True) and "todo" in lowered:
                issues.append(self.issue(
                    file_path, number, "TODO comment found",
                    severity=Severity.LOW, end_line=number, code_snippet=line,
                    suggestion="Track the work in an issue tracker or resolve it.",
                ))
            if self.config.get("checkFixmeComments", True) and "fixme" in lowered:
                issues.append(self.issue(
                    file_path, number, "FIXME comment found",
                    severity=Severity.MEDIUM, end_line=number, code_snippet=line,
                    suggestion="Fix the underlying problem before it ships.",
                ))

            # Only whole-line comments are judged for content
            if not is_comment_line(line) or not text:
                continue
            if len(text) >= min_length or "todo" in lowered or "fixme" in lowered:
                continue

            if self.config.get("checkCommentedCode", True) and any(t in text for t in _LOOKS_LIKE_CODE):
                issues.append(self.issue(
                    file_path, number, "Commented code detected",
                    end_line=number, code_snippet=line,
                    suggestion=(
                        "Remove commented code or uncomment it if it's still needed. "
                        "Use version control for code history."
                    ),
                ))
            elif not any(word in lowered for word in _SHORT_COMMENT_ALLOWLIST):
                issues.append(self.issue(
                    file_path, number, "Very short comment that may not be useful",
                    end_line=number, code_snippet=line,
                    suggestion="Add more context to this comment or remove it if it's not needed.",
                ))
        return issues
