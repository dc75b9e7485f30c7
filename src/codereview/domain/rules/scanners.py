"""
Language scanners - heuristic function boundary and nesting detection.

Rules never parse source code. Instead they ask a LanguageScanner for
the approximate spans of functions and the nesting depth of each line:

- BraceScanner: C-like languages, depth is a running count of opening
  versus closing brackets; a function ends when its braces balance.
- IndentScanner: indentation languages (Python), depth is the
  indentation level; a function ends when a line dedents to the level
  of its definition.

Both share one function-signature regex family. Unusual formatting can
fool either scanner; that tolerance is accepted.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from .text_utils import leading_indent, strip_code_noise

FUNCTION_SIGNATURES = [
    # JavaScript / TypeScript function declarations
    re.compile(
        r"^(?:export\s+)?(?:default\s+)?(?:async\s+)?function\s*\*?\s*(?P<name>\w+)?\s*\("
    ),
    # JavaScript / TypeScript arrow functions and function expressions
    re.compile(
        r"^(?:export\s+)?(?:const|let|var)\s+(?P<name>\w+)\s*(?::\s*[^=]+)?=\s*(?:async\s+)?"
        r"(?:function\b|\([^)]*\)\s*(?::\s*[^=]+)?=>|\w+\s*=>)"
    ),
    # Python
    re.compile(r"^(?:async\s+)?def\s+(?P<name>\w+)\s*\("),
    # Java / C# style methods with access modifiers
    re.compile(
        r"^(?:public|private|protected)\s+"
        r"(?:(?:static|final|abstract|synchronized|override|virtual|async)\s+)*"
        r"(?:[\w<>\[\],.?]+\s+)?(?P<name>\w+)\s*\("
    ),
    # Go (including methods with receivers)
    re.compile(r"^func\s+(?:\([^)]*\)\s*)?(?P<name>\w+)\s*\("),
    # Rust
    re.compile(r"^(?:pub(?:\([^)]*\))?\s+)?(?:async\s+)?(?:unsafe\s+)?fn\s+(?P<name>\w+)"),
]

_OPENERS = "{(["
_CLOSERS = "})]"


def match_function_signature(trimmed: str) -> Optional[str]:
    """
    Match a trimmed line against the function-signature family.

    Args:
        trimmed: Line with surrounding whitespace removed

    Returns:
        Function name ("anonymous" when unnamed) or None if no match
    """
    for pattern in FUNCTION_SIGNATURES:
        match = pattern.match(trimmed)
        if match:
            return match.group("name") or "anonymous"
    return None


@dataclass(frozen=True)
class FunctionSpan:
    """A detected function, with 0-based inclusive line indices."""
    name: str
    start: int
    end: int

    @property
    def start_line(self) -> int:
        return self.start + 1

    @property
    def end_line(self) -> int:
        return self.end + 1

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    def body(self, lines: Sequence[str]) -> List[str]:
        """Lines covered by the span."""
        return list(lines[self.start:self.end + 1])


class LanguageScanner(ABC):
    """Per-language strategy for boundary and nesting detection."""

    @abstractmethod
    def detect_function_boundaries(self, lines: Sequence[str]) -> List[FunctionSpan]:
        """
        Find top-level function spans.

        Args:
            lines: File content split into lines

        Returns:
            Function spans in file order, never overlapping
        """
        pass

    @abstractmethod
    def find_block_end(self, lines: Sequence[str], start: int) -> int:
        """Index of the last line of the block opened on line start."""
        pass

    @abstractmethod
    def nesting_levels(self, lines: Sequence[str]) -> List[int]:
        """
        Nesting depth before each line.

        Returns a list of len(lines) + 1 entries: entry i is the depth
        in effect when line i starts, the last entry the depth after
        the final line.
        """
        pass

    def relative_nesting(self, levels: Sequence[int], span: FunctionSpan, index: int) -> int:
        """Nesting of line index relative to the body of span (0 = body level)."""
        return max(0, levels[index] - levels[span.start] - 1)


class BraceScanner(LanguageScanner):
    """Scanner for brace-delimited languages."""

    def detect_function_boundaries(self, lines: Sequence[str]) -> List[FunctionSpan]:
        spans = []
        index = 0
        while index < len(lines):
            name = match_function_signature(lines[index].strip())
            if name is None:
                index += 1
                continue
            end = self.find_block_end(lines, index)
            spans.append(FunctionSpan(name=name, start=index, end=end))
            index = end + 1
        return spans

    def find_block_end(self, lines: Sequence[str], start: int) -> int:
        depth = 0
        opened = False
        for index in range(start, len(lines)):
            code = strip_code_noise(lines[index])
            opens = code.count("{")
            depth += opens - code.count("}")
            if opens:
                opened = True
            if opened and depth <= 0:
                return index
            if not opened:
                stripped = code.rstrip()
                # Expression-bodied arrows and declarations without a body
                if stripped.endswith(";"):
                    return index
                if index == start and "=>" in stripped and not stripped.endswith("=>"):
                    return index
        return len(lines) - 1

    def nesting_levels(self, lines: Sequence[str]) -> List[int]:
        levels = [0]
        depth = 0
        for line in lines:
            code = strip_code_noise(line)
            depth += sum(code.count(c) for c in _OPENERS)
            depth -= sum(code.count(c) for c in _CLOSERS)
            levels.append(depth)
        return levels


class IndentScanner(LanguageScanner):
    """Scanner for indentation-delimited languages."""

    def detect_function_boundaries(self, lines: Sequence[str]) -> List[FunctionSpan]:
        spans = []
        index = 0
        while index < len(lines):
            name = match_function_signature(lines[index].strip())
            if name is None:
                index += 1
                continue
            end = self.find_block_end(lines, index)
            spans.append(FunctionSpan(name=name, start=index, end=end))
            index = end + 1
        return spans

    def find_block_end(self, lines: Sequence[str], start: int) -> int:
        indent = leading_indent(lines[start])
        end = start
        for cursor in range(start + 1, len(lines)):
            candidate = lines[cursor]
            stripped = candidate.strip()
            if not stripped:
                continue
            # Closing paren of a wrapped signature sits at the opening indent
            if leading_indent(candidate) <= indent and not stripped.startswith(")"):
                break
            end = cursor
        return end

    def nesting_levels(self, lines: Sequence[str]) -> List[int]:
        levels = []
        stack = [0]
        for line in lines:
            if not line.strip():
                levels.append(len(stack) - 1)
                continue
            indent = leading_indent(line)
            while len(stack) > 1 and indent < stack[-1]:
                stack.pop()
            if indent > stack[-1]:
                stack.append(indent)
            levels.append(len(stack) - 1)
        levels.append(levels[-1] if levels else 0)
        return levels


INDENTATION_LANGUAGES = {"python"}

_BRACE_SCANNER = BraceScanner()
_INDENT_SCANNER = IndentScanner()

_SCANNERS: Dict[str, LanguageScanner] = {
    language: _INDENT_SCANNER for language in INDENTATION_LANGUAGES
}


def scanner_for(language: Optional[str]) -> LanguageScanner:
    """Pick the scanner for a language; brace scanning is the default."""
    return _SCANNERS.get(language or "", _BRACE_SCANNER)
