"""Complexity rules: cognitive complexity, method chaining, parameter count."""

import re
from typing import List, Optional, Tuple

from ..models.review import Category, ReviewIssue, Severity
from .base import Rule, RuleContext
from .maintainability import BASE_LANGUAGES, count_control_flow, count_logical_operators
from .scanners import scanner_for
from .text_utils import code_only, is_comment_line, snippet, split_lines

# Ternary "?" but not optional chaining "?." or nullish "??"
_TERNARY = re.compile(r"(?<!\?)\?(?![.?])")

_METHOD_CALL = re.compile(r"\.(\w+)\(")

_CHAIN_BREAKERS = ";,)]}"

PARAMETER_SIGNATURES = [
    re.compile(r"^(?:export\s+)?(?:async\s+)?function\s*\*?\s*(\w+)\s*\(([^)]*)\)"),
    re.compile(
        r"^(?:export\s+)?(?:const|let|var)\s+(\w+)\s*=\s*(?:async\s+)?\(([^)]*)\)\s*=>"
    ),
    re.compile(r"^(?:async\s+)?def\s+(\w+)\s*\(([^)]*)\)"),
    re.compile(
        r"^(?:public|private|protected)\s+(?:(?:static|final|abstract|synchronized)\s+)*"
        r"(?:[\w<>\[\],.?]+\s+)?(\w+)\s*\(([^)]*)\)"
    ),
    re.compile(r"^func\s+(?:\([^)]*\)\s*)?(\w+)\s*\(([^)]*)\)"),
    re.compile(r"^(?:pub(?:\([^)]*\))?\s+)?(?:async\s+)?fn\s+(\w+)\s*(?:<[^>]*>)?\s*\(([^)]*)\)"),
]

# Receiver parameters that do not count toward the limit
_IMPLICIT_PARAMETERS = {"self", "cls", "&self", "&mut self", "mut self"}


def split_parameters(params: str) -> List[str]:
    """
    Split a parameter list on top-level commas.

    Commas inside generics or default-value brackets are ignored.
    """
    parts = []
    depth = 0
    current = []
    for char in params:
        if char in "<([{":
            depth += 1
        elif char in ">)]}":
            depth -= 1
        if char == "," and depth <= 0:
            parts.append("".join(current))
            current = []
        else:
            current.append(char)
    parts.append("".join(current))
    return [p.strip() for p in parts if p.strip()]


def match_parameters(trimmed: str) -> Optional[Tuple[str, List[str]]]:
    """Return (function name, parameters) if the line is a one-line signature."""
    for pattern in PARAMETER_SIGNATURES:
        match = pattern.match(trimmed)
        if match:
            params = [
                p for p in split_parameters(match.group(2))
                if p not in _IMPLICIT_PARAMETERS
            ]
            return match.group(1), params
    return None


class CognitiveComplexityRule(Rule):
    """
    Cognitive complexity per function.

    Like cyclomatic complexity, but every control-flow construct costs an
    extra nesting weight when it sits below the function's body level.
    """

    id = "cognitive-complexity"
    name = "Cognitive Complexity Analysis"
    description = "Analyze code for high cognitive complexity"
    category = Category.COMPLEXITY
    severity = Severity.MEDIUM
    languages = BASE_LANGUAGES
    default_config = {
        "maxComplexity": 15,
        "nestingWeight": 1,
        "deepNestingWarning": 4,
    }

    def check(self, file_path: str, content: str, context: RuleContext) -> List[ReviewIssue]:
        lines = split_lines(content)
        language = context.language
        scanner = scanner_for(language)
        levels = scanner.nesting_levels(lines)
        max_complexity = self.config.get("maxComplexity", 15)
        nesting_weight = self.config.get("nestingWeight", 1)
        nesting_warning = self.config.get("deepNestingWarning", 4)
        issues = []

        for span in scanner.detect_function_boundaries(lines):
            complexity = 0
            max_nesting = 0
            for index in range(span.start, span.end + 1):
                code = code_only(lines[index], language)
                nesting = scanner.relative_nesting(levels, span, index)
                max_nesting = max(max_nesting, nesting)

                branches = count_control_flow(code)
                complexity += branches * (1 + (nesting_weight if nesting > 0 else 0))
                complexity += count_logical_operators(code, language)
                if language != "python":
                    complexity += len(_TERNARY.findall(code))

            body_snippet = snippet(lines, span.start, min(span.start + 4, span.end + 1))
            if complexity > max_complexity:
                issues.append(self.issue(
                    file_path,
                    span.start_line,
                    f'Function "{span.name}" has high cognitive complexity '
                    f"({complexity}, max {max_complexity})",
                    end_line=span.end_line,
                    suggestion=(
                        "Simplify the logic by extracting complex parts into separate "
                        "functions, reducing nesting, or using early returns."
                    ),
                    code_snippet=body_snippet,
                    metadata={"function": span.name, "complexity": complexity},
                ))
            if max_nesting > nesting_warning:
                issues.append(self.issue(
                    file_path,
                    span.start_line,
                    f'Function "{span.name}" has deep nesting (level {max_nesting})',
                    severity=Severity.MEDIUM,
                    end_line=span.end_line,
                    suggestion=(
                        "Reduce nesting by extracting nested code into separate "
                        "functions or using guard clauses."
                    ),
                    code_snippet=body_snippet,
                    metadata={"function": span.name, "nesting": max_nesting},
                ))
        return issues


class MethodChainingRule(Rule):
    id = "method-chaining"
    name = "Excessive Method Chaining"
    description = "Detect excessive method chaining that reduces readability"
    category = Category.COMPLEXITY
    severity = Severity.MEDIUM
    languages = BASE_LANGUAGES
    default_config = {
        "maxChainLength": 5,
        # Promise continuations read fine when chained
        "excludedMethods": ["then", "catch", "finally"],
    }

    def check(self, file_path: str, content: str, context: RuleContext) -> List[ReviewIssue]:
        max_chain = self.config.get("maxChainLength", 5)
        excluded = set(self.config.get("excludedMethods", []))
        issues = []

        for number, line in enumerate(split_lines(content), start=1):
            if is_comment_line(line) or "." not in line:
                continue
            for length, start, end in self._chains(line, excluded):
                if length > max_chain:
                    issues.append(self.issue(
                        file_path,
                        number,
                        f"Excessive method chaining ({length} methods, max {max_chain})",
                        end_line=number,
                        suggestion=(
                            "Break long method chains into multiple lines or extract "
                            "into a separate function for better readability."
                        ),
                        code_snippet=line[max(0, start - 20):min(len(line), end + 20)],
                        metadata={"chain_length": length},
                    ))
        return issues

    @staticmethod
    def _chains(line: str, excluded) -> List[Tuple[int, int, int]]:
        """
        Walk the line character by character.

        Each ".name(" not in the exclusion list extends the running chain;
        a statement-terminating character outside the chain's own call
        arguments resets it. Returns (length, start offset, end offset)
        for every finished chain.
        """
        chains = []
        length = 0
        start = 0
        depth = 0
        for offset, char in enumerate(line):
            if char == ".":
                match = _METHOD_CALL.match(line, offset)
                if match and match.group(1) not in excluded:
                    if length == 0:
                        start = offset
                        depth = 0
                    length += 1
                continue
            if char in "([{":
                depth += 1
                continue
            if char not in _CHAIN_BREAKERS:
                continue
            if char in ")]}" and depth > 0:
                depth -= 1
                continue
            if char in ";," and depth > 0:
                continue
            if length:
                chains.append((length, start, offset))
            length = 0
        if length:
            chains.append((length, start, len(line)))
        return chains


class ParameterCountRule(Rule):
    id = "parameter-count"
    name = "Excessive Function Parameters"
    description = "Detect functions with too many parameters"
    category = Category.COMPLEXITY
    severity = Severity.MEDIUM
    languages = BASE_LANGUAGES
    default_config = {
        "maxParameters": 5,
        "languages": {
            "javascript": 5,
            "typescript": 5,
            "python": 5,
            "java": 5,
            "go": 5,
            "rust": 5,
        },
    }

    def check(self, file_path: str, content: str, context: RuleContext) -> List[ReviewIssue]:
        per_language = self.config.get("languages") or {}
        max_params = per_language.get(context.language, self.config.get("maxParameters", 5))
        issues = []

        for number, line in enumerate(split_lines(content), start=1):
            matched = match_parameters(line.strip())
            if matched is None:
                continue
            name, params = matched
            if len(params) > max_params:
                issues.append(self.issue(
                    file_path,
                    number,
                    f'Function "{name}" has too many parameters ({len(params)}, max {max_params})',
                    end_line=number,
                    suggestion=(
                        "Reduce the number of parameters by grouping related parameters "
                        "into an object/struct or using a builder."
                    ),
                    code_snippet=line,
                    metadata={"function": name, "parameters": len(params)},
                ))
        return issues
