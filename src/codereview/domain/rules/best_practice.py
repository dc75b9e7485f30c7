"""Best-practice rules: duplication, error handling, resources, security hygiene."""

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from ..models.review import Category, ReviewIssue, Severity
from .base import Rule, RuleContext
from .maintainability import BASE_LANGUAGES
from .scanners import scanner_for
from .text_utils import (
    HASH_COMMENT_LANGUAGES,
    code_only,
    count_tokens,
    is_comment_line,
    is_inside_string,
    leading_indent,
    snippet,
    split_lines,
    strip_code_noise,
)

_BLOCK_COMMENT = re.compile(r"/\*.*?\*/", re.DOTALL)
_LINE_COMMENT = re.compile(r"//.*$", re.MULTILINE)
_HASH_COMMENT = re.compile(r"#.*$", re.MULTILINE)
_STRING = re.compile(r"[\"'][^\"']*[\"']")
_DECLARATION = re.compile(r"\b(?:const|let|var)\s+\w+")
_NAMED_FUNCTION = re.compile(r"\bfunction\s+\w+")
_WHITESPACE = re.compile(r"\s+")


def normalize_code(code: str, language: str = "javascript") -> str:
    """
    Reduce code to a comparable form.

    Comments and string contents are removed, declared variable and
    function names are replaced by placeholders, and whitespace is
    collapsed.
    """
    code = _BLOCK_COMMENT.sub("", code)
    code = _LINE_COMMENT.sub("", code)
    if language in HASH_COMMENT_LANGUAGES:
        code = _HASH_COMMENT.sub("", code)
    code = _STRING.sub('""', code)
    code = _DECLARATION.sub("var x", code)
    code = _NAMED_FUNCTION.sub("function f", code)
    return _WHITESPACE.sub(" ", code).strip()


def jaccard_similarity(first: str, second: str) -> float:
    """
    Jaccard index of the whitespace token sets of two normalized snippets.

    Symmetric in its arguments; two empty snippets have similarity 0.
    """
    tokens_a = set(first.split())
    tokens_b = set(second.split())
    union = tokens_a | tokens_b
    if not union:
        return 0.0
    return len(tokens_a & tokens_b) / len(union)


@dataclass(frozen=True)
class CodeUnit:
    """A function or block compared for duplication (0-based inclusive)."""
    name: str
    start: int
    end: int
    normalized: str

    @property
    def size(self) -> int:
        return self.end - self.start + 1


class CodeDuplicationRule(Rule):
    """
    Similar functions and code blocks within one file.

    Every unit pair is compared, but pairs whose sizes differ by more than
    the tolerance are skipped before any similarity is computed.
    """

    id = "code-duplication"
    name = "Code Duplication Detection"
    description = "Detect duplicated code patterns"
    category = Category.BEST_PRACTICE
    severity = Severity.MEDIUM
    languages = BASE_LANGUAGES
    default_config = {
        "minDuplicateLines": 5,
        "similarityThreshold": 0.8,
        "maxSizeDifference": 3,
        "maxBlockSizeDifference": 2,
        "checkFunctions": True,
        "checkBlocks": True,
    }

    def check(self, file_path: str, content: str, context: RuleContext) -> List[ReviewIssue]:
        lines = split_lines(content)
        threshold = self.config.get("similarityThreshold", 0.8)
        min_lines = self.config.get("minDuplicateLines", 5)
        issues = []

        if self.config.get("checkFunctions", True):
            functions = self.extract_functions(lines, context.language, min_lines)
            for first, second in self._similar_pairs(
                functions, threshold, self.config.get("maxSizeDifference", 3)
            ):
                issues.append(self.issue(
                    file_path,
                    first.start + 1,
                    f'Similar functions found: "{first.name}" and "{second.name}"',
                    end_line=first.end + 1,
                    suggestion="Consider extracting common code into a shared function to reduce duplication.",
                    code_snippet=snippet(lines, first.start, min(first.start + 5, first.end + 1)),
                    metadata={"duplicate_of": second.name, "duplicate_line": second.start + 1},
                ))

        if self.config.get("checkBlocks", True):
            blocks = self.extract_blocks(lines, context.language, min_lines)
            for first, second in self._similar_pairs(
                blocks, threshold, self.config.get("maxBlockSizeDifference", 2)
            ):
                issues.append(self.issue(
                    file_path,
                    first.start + 1,
                    "Similar code blocks detected",
                    severity=Severity.LOW,
                    end_line=first.end + 1,
                    suggestion="Consider extracting this duplicated logic into a reusable function.",
                    code_snippet=snippet(lines, first.start, first.end + 1),
                    metadata={"duplicate_line": second.start + 1},
                ))
        return issues

    @staticmethod
    def extract_functions(lines: Sequence[str], language: str, min_lines: int) -> List[CodeUnit]:
        """Function spans of at least min_lines, normalized."""
        units = []
        for span in scanner_for(language).detect_function_boundaries(lines):
            if span.length < min_lines:
                continue
            # The signature line carries the name, which always differs
            body = "\n".join(lines[span.start + 1:span.end + 1])
            units.append(CodeUnit(span.name, span.start, span.end, normalize_code(body, language)))
        return units

    @staticmethod
    def extract_blocks(lines: Sequence[str], language: str, min_lines: int) -> List[CodeUnit]:
        """Runs of code lines separated by blank or comment lines."""
        units = []
        start: Optional[int] = None
        for index in range(len(lines) + 1):
            separator = index == len(lines) or not lines[index].strip() or is_comment_line(lines[index])
            if not separator:
                if start is None:
                    start = index
                continue
            if start is not None and index - start >= min_lines:
                text = "\n".join(lines[start:index])
                units.append(CodeUnit("block", start, index - 1, normalize_code(text, language)))
            start = None
        return units

    @staticmethod
    def _similar_pairs(
        units: Sequence[CodeUnit], threshold: float, max_difference: int
    ) -> List[Tuple[CodeUnit, CodeUnit]]:
        pairs = []
        for i, first in enumerate(units):
            for second in units[i + 1:]:
                if abs(first.size - second.size) > max_difference:
                    continue
                if count_tokens(first.normalized) == 0:
                    continue
                if jaccard_similarity(first.normalized, second.normalized) >= threshold:
                    pairs.append((first, second))
        return pairs


_CATCH_OPEN = re.compile(r"\bcatch\b[^{]*\{")
_EXCEPT_CLAUSE = re.compile(r"^except\b.*:\s*(#.*)?$")
_CONSOLE_ERROR = re.compile(r"console\.error\(\s*\w+\s*\)")
_AWAIT = re.compile(r"\bawait\b")
_TRY = re.compile(r"\btry\b")
_ASYNC_SIGNATURE = re.compile(r"\basync\b")


class ErrorHandlingRule(Rule):
    id = "error-handling"
    name = "Error Handling Check"
    description = "Check for proper error handling patterns"
    category = Category.BEST_PRACTICE
    severity = Severity.MEDIUM
    languages = ("javascript", "typescript", "python")
    default_config = {
        "checkEmptyCatch": True,
        "checkConsoleError": True,
        "checkAsyncFunctions": True,
    }

    def check(self, file_path: str, content: str, context: RuleContext) -> List[ReviewIssue]:
        lines = split_lines(content)
        issues = []

        if self.config.get("checkEmptyCatch", True):
            if context.language in HASH_COMMENT_LANGUAGES:
                issues.extend(self._empty_except_blocks(file_path, lines))
            else:
                issues.extend(self._empty_catch_blocks(file_path, lines))

        if self.config.get("checkConsoleError", True):
            for number, line in enumerate(lines, start=1):
                if is_comment_line(line):
                    continue
                if _CONSOLE_ERROR.search(strip_code_noise(line)):
                    issues.append(self.issue(
                        file_path,
                        number,
                        "console.error without context",
                        severity=Severity.LOW,
                        end_line=number,
                        suggestion="Include a message describing what failed alongside the error object.",
                        code_snippet=line.strip(),
                    ))

        if self.config.get("checkAsyncFunctions", True):
            issues.extend(self._unguarded_async_functions(file_path, lines, context.language))
        return issues

    def _empty_catch_blocks(self, file_path: str, lines: Sequence[str]) -> List[ReviewIssue]:
        issues = []
        code_lines = [strip_code_noise(line) for line in lines]
        for index, code in enumerate(code_lines):
            match = _CATCH_OPEN.search(code)
            if not match:
                continue
            body, end = self._brace_body(code_lines, index, match.end())
            if not _BLOCK_COMMENT.sub("", body).strip():
                issues.append(self.issue(
                    file_path,
                    index + 1,
                    "Empty catch block detected",
                    end_line=end + 1,
                    suggestion="Handle the error, log it, or rethrow it. Empty catch blocks hide failures.",
                    code_snippet=snippet(lines, index, end + 1),
                ))
        return issues

    @staticmethod
    def _brace_body(code_lines: Sequence[str], index: int, offset: int) -> Tuple[str, int]:
        """Text between an opening brace at (index, offset - 1) and its match."""
        depth = 1
        collected = []
        line_index = index
        position = offset
        while line_index < len(code_lines):
            code = code_lines[line_index]
            while position < len(code):
                char = code[position]
                if char == "{":
                    depth += 1
                elif char == "}":
                    depth -= 1
                    if depth == 0:
                        return "".join(collected), line_index
                collected.append(char)
                position += 1
            collected.append("\n")
            line_index += 1
            position = 0
        return "".join(collected), len(code_lines) - 1

    def _empty_except_blocks(self, file_path: str, lines: Sequence[str]) -> List[ReviewIssue]:
        issues = []
        for index, line in enumerate(lines):
            trimmed = line.strip()
            if not _EXCEPT_CLAUSE.match(trimmed):
                continue
            indent = leading_indent(line)
            body = []
            end = index
            for cursor in range(index + 1, len(lines)):
                candidate = lines[cursor]
                if not candidate.strip():
                    continue
                if leading_indent(candidate) <= indent:
                    break
                end = cursor
                if not is_comment_line(candidate):
                    body.append(candidate.strip())
            if body and any(statement not in ("pass", "...") for statement in body):
                continue
            issues.append(self.issue(
                file_path,
                index + 1,
                "Empty except block detected",
                end_line=end + 1,
                suggestion="Handle the exception, log it, or re-raise it. Silently passing hides failures.",
                code_snippet=snippet(lines, index, end + 1),
            ))
        return issues

    def _unguarded_async_functions(
        self, file_path: str, lines: Sequence[str], language: str
    ) -> List[ReviewIssue]:
        issues = []
        for span in scanner_for(language).detect_function_boundaries(lines):
            if not _ASYNC_SIGNATURE.search(lines[span.start]):
                continue
            body = [code_only(line, language) for line in span.body(lines)]
            has_await = any(_AWAIT.search(code) for code in body)
            has_try = any(_TRY.search(code) for code in body)
            if has_await and not has_try:
                issues.append(self.issue(
                    file_path,
                    span.start_line,
                    f'Async function "{span.name}" lacks error handling',
                    end_line=span.end_line,
                    suggestion="Wrap awaited calls in try/catch or handle the rejection explicitly.",
                    code_snippet=snippet(lines, span.start, min(span.start + 3, span.end + 1)),
                    metadata={"function": span.name},
                ))
        return issues


RESOURCE_KINDS = {
    "file": {
        "open": [
            re.compile(r"fs\.(?:createReadStream|createWriteStream|open|openSync)\b"),
            re.compile(r"(?<![\w.])open\("),
            re.compile(r"\bfopen\("),
            re.compile(r"new\s+File(?:Input|Output)Stream\("),
        ],
        "close": re.compile(r"\.(?:close|closeSync|end)\(\)"),
        "message": "File operation may not be properly closed",
        "suggestion": "Ensure file handles are closed in finally blocks or using try-with-resources pattern.",
        "severity": Severity.MEDIUM,
    },
    "database": {
        "open": [
            re.compile(r"mysql\.createConnection"),
            re.compile(r"\bpg\.connect"),
            re.compile(r"mongoose\.connect"),
            re.compile(r"\bcreatePool\("),
            re.compile(r"\bgetConnection\("),
        ],
        "close": re.compile(r"\.(?:end|close|disconnect|release)\(\)"),
        "message": "Database connection may not be properly closed",
        "suggestion": "Ensure database connections are closed after use to prevent connection leaks.",
        "severity": Severity.MEDIUM,
    },
    "http": {
        "open": [
            re.compile(r"\bhttps?\.(?:createServer|request|get)\("),
            re.compile(r"\bfetch\("),
            re.compile(r"\baxios\.(?:get|post|put|delete)\("),
        ],
        "close": re.compile(r"\.(?:end|abort|destroy|close)\(\)"),
        "message": "HTTP connection/request may need cleanup",
        "suggestion": "Ensure HTTP connections are properly terminated and responses are consumed.",
        "severity": Severity.LOW,
    },
}

# Openings managed by the language (context managers, try-with-resources)
_MANAGED_OPENING = re.compile(r"^(?:async\s+)?with\b|^try\s*\(")


class ResourceManagementRule(Rule):
    """
    Resource openings without a later close call of the same kind.

    Tracking is per file, not per scope: any close of the right kind on
    or after the opening line counts as cleanup.
    """

    id = "resource-management"
    name = "Resource Management Check"
    description = "Check for proper resource management (file handles, connections, etc.)"
    category = Category.BEST_PRACTICE
    severity = Severity.MEDIUM
    languages = ("javascript", "typescript", "python", "java")
    default_config = {
        "checkFileOperations": True,
        "checkDatabaseConnections": True,
        "checkHttpConnections": True,
    }

    _KIND_SWITCHES = {
        "file": "checkFileOperations",
        "database": "checkDatabaseConnections",
        "http": "checkHttpConnections",
    }

    def check(self, file_path: str, content: str, context: RuleContext) -> List[ReviewIssue]:
        lines = split_lines(content)
        openings: Dict[str, List[int]] = {kind: [] for kind in RESOURCE_KINDS}
        last_close: Dict[str, int] = {}

        for index, line in enumerate(lines):
            trimmed = line.strip()
            if not trimmed or is_comment_line(trimmed):
                continue
            code = code_only(line, context.language)
            for kind, resource in RESOURCE_KINDS.items():
                if not self.config.get(self._KIND_SWITCHES[kind], True):
                    continue
                if resource["close"].search(code):
                    last_close[kind] = index
                if _MANAGED_OPENING.match(trimmed):
                    continue
                if any(pattern.search(code) for pattern in resource["open"]):
                    openings[kind].append(index)

        issues = []
        for kind, indices in openings.items():
            resource = RESOURCE_KINDS[kind]
            for index in indices:
                if last_close.get(kind, -1) >= index:
                    continue
                issues.append(self.issue(
                    file_path,
                    index + 1,
                    resource["message"],
                    severity=resource["severity"],
                    end_line=index + 1,
                    suggestion=resource["suggestion"],
                    code_snippet=lines[index].strip(),
                    metadata={"resource": kind},
                ))
        issues.sort(key=lambda issue: issue.line)
        return issues


SECURITY_PATTERNS = [
    (
        re.compile(r"\beval\s*\("),
        "eval() function usage detected",
        Severity.HIGH,
        "Avoid eval() as it can execute arbitrary code. Parse data with a dedicated parser instead.",
    ),
    (
        re.compile(r"\bnew\s+Function\s*\("),
        "Function constructor usage detected",
        Severity.HIGH,
        "Avoid the Function constructor with user input. It can lead to code injection vulnerabilities.",
    ),
    (
        re.compile(r"\.innerHTML\s*=(?!=)"),
        "innerHTML assignment detected",
        Severity.MEDIUM,
        "Avoid innerHTML with user input. Use textContent or properly sanitize the input.",
    ),
    (
        re.compile(r"document\.write\s*\("),
        "document.write() usage detected",
        Severity.MEDIUM,
        "Use DOM manipulation methods instead of document.write().",
    ),
    (
        re.compile(r"<%=.*%>"),
        "Unescaped template output detected",
        Severity.MEDIUM,
        "Ensure template outputs are properly escaped to prevent XSS attacks.",
    ),
    (
        re.compile(r"\b(?:md5|sha1)\s*\(", re.IGNORECASE),
        "Weak hashing algorithm detected",
        Severity.MEDIUM,
        "Avoid MD5 and SHA-1 for security-sensitive operations. Use SHA-256 or better.",
    ),
    (
        re.compile(r"\b(?:createCipher|createDecipher)\s*\("),
        "Deprecated crypto API detected",
        Severity.MEDIUM,
        "Use createCipheriv() and createDecipheriv() instead.",
    ),
]

INPUT_SOURCES = [
    re.compile(r"\breq\.(?:body|query|params)\b"),
    re.compile(r"document\.getElementById"),
    re.compile(r"\$\(['\"]#\w+['\"]\)"),
    re.compile(r"\bprocess\.env\b"),
    re.compile(r"\brequest\.(?:args|form|json|GET|POST)\b"),
]

VALIDATION_PATTERNS = [
    re.compile(p) for p in (
        r"\.trim\(\)", r"\.strip\(\)", r"\.toLowerCase\(\)", r"\.toUpperCase\(\)",
        r"\bparseInt\(", r"\bparseFloat\(", r"\bNumber\(", r"\bString\(", r"\bint\(",
        r"Array\.isArray\(", r"\btypeof\b", r"\binstanceof\b", r"\bisinstance\(",
        r"\.test\(", r"\.match\(", r"\.replace\(", r"\.split\(", r"\.slice\(",
        r"\.substring\(", r"\.substr\(", r"\bvalidate\w*\(",
    )
]

VALIDATION_WINDOW = 5


class SecurityBestPracticeRule(Rule):
    id = "security-best-practice"
    name = "Security Best Practices"
    description = "Check for common security anti-patterns"
    category = Category.SECURITY
    severity = Severity.HIGH
    languages = ("javascript", "typescript", "python")
    default_config = {"checkInputValidation": True}

    def check(self, file_path: str, content: str, context: RuleContext) -> List[ReviewIssue]:
        lines = split_lines(content)
        issues = []

        for index, line in enumerate(lines):
            if is_comment_line(line):
                continue
            number = index + 1

            for pattern, message, severity, suggestion in SECURITY_PATTERNS:
                match = pattern.search(line)
                if match and not is_inside_string(line, match.start()):
                    issues.append(self.issue(
                        file_path,
                        number,
                        message,
                        severity=severity,
                        end_line=number,
                        suggestion=suggestion,
                        code_snippet=line.strip(),
                    ))

            if self.config.get("checkInputValidation", True) and self._unvalidated_input(lines, index):
                issues.append(self.issue(
                    file_path,
                    number,
                    "User input used without apparent validation",
                    severity=Severity.MEDIUM,
                    end_line=number,
                    suggestion="Always validate and sanitize user input before use to prevent injection attacks.",
                    code_snippet=line.strip(),
                    confidence=0.5,
                ))
        return issues

    @staticmethod
    def _unvalidated_input(lines: Sequence[str], index: int) -> bool:
        line = lines[index]
        matches = [source.search(line) for source in INPUT_SOURCES]
        if not any(m and not is_inside_string(line, m.start()) for m in matches):
            return False
        window = lines[index:index + VALIDATION_WINDOW]
        return not any(p.search(candidate) for candidate in window for p in VALIDATION_PATTERNS)
