"""Rule contract, language scanners, built-in rules and the rule registry."""

from .base import Rule, RuleContext
from .registry import RuleRegistry, RuleSet
from .scanners import BraceScanner, FunctionSpan, IndentScanner, LanguageScanner, scanner_for

__all__ = [
    "Rule",
    "RuleContext",
    "RuleRegistry",
    "RuleSet",
    "LanguageScanner",
    "BraceScanner",
    "IndentScanner",
    "FunctionSpan",
    "scanner_for",
]
