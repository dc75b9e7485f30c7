"""Line-level text helpers shared by the built-in rules."""

import re
from typing import List, Sequence

COMMENT_PREFIXES = ("//", "#", "/*")

QUOTE_CHARS = ('"', "'", "`")

HASH_COMMENT_LANGUAGES = {"python", "ruby"}

_STRING_LITERAL = re.compile(
    r'"(?:\\.|[^"\\])*"'
    r"|'(?:\\.|[^'\\])*'"
    r"|`(?:\\.|[^`\\])*`"
)

_LINE_COMMENT = re.compile(r"//.*$")


def is_comment_line(line: str) -> bool:
    """True if the trimmed line starts with a comment marker."""
    return line.strip().startswith(COMMENT_PREFIXES)


def is_inside_string(line: str, index: int) -> bool:
    """
    Quote-parity check: is position index inside a string literal?

    Counts each quote kind before the index; an odd count means an
    unterminated literal is open at that point.

    Args:
        line: Source line
        index: Character offset into line

    Returns:
        True if index falls inside a quoted string
    """
    before = line[:index]
    return any(before.count(quote) % 2 == 1 for quote in QUOTE_CHARS)


def strip_strings(line: str) -> str:
    """Replace every string literal on the line with an empty literal."""
    return _STRING_LITERAL.sub('""', line)


def strip_code_noise(line: str) -> str:
    """Remove string literal contents and trailing // comments."""
    return _LINE_COMMENT.sub("", strip_strings(line))


def code_only(line: str, language: str) -> str:
    """Strip string literals and the trailing comment for the given language."""
    if language in HASH_COMMENT_LANGUAGES:
        return strip_strings(line).split("#", 1)[0]
    return strip_code_noise(line)


def leading_indent(line: str) -> int:
    """Width of the leading whitespace (tabs count as four columns)."""
    expanded = line.expandtabs(4)
    return len(expanded) - len(expanded.lstrip())


def snippet(lines: Sequence[str], start: int, end: int) -> str:
    """
    Join lines[start:end] for an issue code snippet.

    Indices are clamped to the available lines.
    """
    start = max(0, start)
    end = min(len(lines), end)
    return "\n".join(lines[start:end])


def split_lines(content: str) -> List[str]:
    """Split content into lines the same way for every rule."""
    return content.replace("\r\n", "\n").split("\n")


def count_tokens(text: str) -> int:
    """Number of whitespace-separated tokens in text."""
    return len(text.split())
