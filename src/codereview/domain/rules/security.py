"""Security rules: secrets, SQL injection, XSS and insecure randomness."""

import re
from typing import List

from ..models.review import Category, ReviewIssue, Severity
from .base import Rule, RuleContext
from .text_utils import is_comment_line, is_inside_string, split_lines

SECRET_PATTERNS = [
    re.compile(r"password\s*=\s*[\"'][^\"']+[\"']", re.IGNORECASE),
    re.compile(r"api[_-]?key\s*=\s*[\"'][^\"']+[\"']", re.IGNORECASE),
    re.compile(r"secret\s*=\s*[\"'][^\"']+[\"']", re.IGNORECASE),
    re.compile(r"token\s*=\s*[\"'][^\"']+[\"']", re.IGNORECASE),
    # Base64-like blobs
    re.compile(r"[\"'][A-Za-z0-9+/]{40,}[\"']"),
    # Hex digests and keys
    re.compile(r"[\"'][0-9a-f]{32,}[\"']", re.IGNORECASE),
]

SQL_KEYWORDS = ("SELECT", "INSERT", "UPDATE", "DELETE", "DROP", "CREATE")

_SQL_KEYWORD = re.compile(r"\b(?:%s)\b" % "|".join(SQL_KEYWORDS), re.IGNORECASE)

SQL_CONCATENATION_PATTERNS = [
    # "..." + variable
    re.compile(r"[\"'][^\"']*[\"']\s*\+\s*\w+"),
    # variable + "..."
    re.compile(r"\w+\s*\+\s*[\"'][^\"']*[\"']"),
    # JavaScript template literal interpolation
    re.compile(r"\$\{.*?\}"),
    # Python f-strings with a placeholder
    re.compile(r"\bf[\"'][^\"']*\{[^}]+\}"),
    # printf-style formatting and str.format
    re.compile(r"[\"'][^\"']*%[sd][^\"']*[\"']\s*%"),
    re.compile(r"[\"']\s*\.format\("),
]

DOM_SINKS = (
    "innerHTML",
    "outerHTML",
    "document.write",
    "document.writeln",
    "eval",
    "setTimeout",
    "setInterval",
)

USER_INPUT_SOURCES = (
    "location",
    "document.URL",
    "document.referrer",
    "window.name",
    "localStorage",
    "sessionStorage",
    "cookie",
)


class NoHardcodedSecretsRule(Rule):
    """Flag passwords, API keys and tokens assigned to string literals."""

    id = "no-hardcoded-secrets"
    name = "No Hardcoded Secrets"
    description = "Detect hardcoded passwords, API keys, and other secrets"
    category = Category.SECURITY
    severity = Severity.CRITICAL
    languages = ("javascript", "typescript", "python", "java", "go", "rust")
    default_config = {"excludeComments": True}

    def check(self, file_path: str, content: str, context: RuleContext) -> List[ReviewIssue]:
        issues = []
        for number, line in enumerate(split_lines(content), start=1):
            if self.config.get("excludeComments", True) and is_comment_line(line):
                continue
            if any(pattern.search(line) for pattern in SECRET_PATTERNS):
                issues.append(self.issue(
                    file_path,
                    number,
                    "Hardcoded secret detected",
                    end_line=number,
                    description="Avoid hardcoding passwords, API keys, or other secrets in source code.",
                    suggestion="Use environment variables, configuration files, or secret management services.",
                    code_snippet=line.strip(),
                    confidence=0.9,
                    tags=["security", "secrets", "hardcoded"],
                ))
        return issues


class SqlInjectionRule(Rule):
    """SQL keyword and string building on the same line."""

    id = "sql-injection"
    name = "SQL Injection Prevention"
    description = "Detect potential SQL injection vulnerabilities"
    category = Category.SECURITY
    severity = Severity.CRITICAL
    languages = ("javascript", "typescript", "python", "java", "php")

    def check(self, file_path: str, content: str, context: RuleContext) -> List[ReviewIssue]:
        issues = []
        for number, line in enumerate(split_lines(content), start=1):
            if is_comment_line(line) or not _SQL_KEYWORD.search(line):
                continue
            if any(pattern.search(line) for pattern in SQL_CONCATENATION_PATTERNS):
                issues.append(self.issue(
                    file_path,
                    number,
                    "Potential SQL injection vulnerability",
                    end_line=number,
                    description="String concatenation with user input in SQL queries can lead to SQL injection.",
                    suggestion="Use parameterized queries, prepared statements, or ORM with proper escaping.",
                    code_snippet=line.strip(),
                    confidence=0.8,
                    tags=["security", "sql", "injection"],
                ))
        return issues


class XssRule(Rule):
    """DOM sink fed from a user-controlled source on the same line."""

    id = "xss-prevention"
    name = "XSS Prevention"
    description = "Detect potential Cross-Site Scripting (XSS) vulnerabilities"
    category = Category.SECURITY
    severity = Severity.HIGH
    languages = ("javascript", "typescript")

    def check(self, file_path: str, content: str, context: RuleContext) -> List[ReviewIssue]:
        issues = []
        for number, line in enumerate(split_lines(content), start=1):
            if is_comment_line(line):
                continue
            if not any(sink in line for sink in DOM_SINKS):
                continue
            if any(source in line for source in USER_INPUT_SOURCES):
                issues.append(self.issue(
                    file_path,
                    number,
                    "Potential XSS vulnerability",
                    end_line=number,
                    description="Unsanitized user input used in DOM manipulation can lead to XSS attacks.",
                    suggestion=(
                        "Sanitize user input, use textContent instead of innerHTML, "
                        "or use a trusted library for DOM manipulation."
                    ),
                    code_snippet=line.strip(),
                    confidence=0.7,
                    tags=["security", "xss", "dom"],
                ))
        return issues


class InsecureRandomRule(Rule):
    id = "insecure-random"
    name = "Insecure Random Number Generation"
    description = "Detect use of insecure random number generators"
    category = Category.SECURITY
    severity = Severity.MEDIUM
    languages = ("javascript", "typescript")
    default_config = {"insecureMethods": ["Math.random()"]}

    def check(self, file_path: str, content: str, context: RuleContext) -> List[ReviewIssue]:
        issues = []
        methods = self.config.get("insecureMethods", [])
        for number, line in enumerate(split_lines(content), start=1):
            if is_comment_line(line):
                continue
            for method in methods:
                index = line.find(method)
                if index < 0 or is_inside_string(line, index):
                    continue
                issues.append(self.issue(
                    file_path,
                    number,
                    "Insecure random number generation",
                    end_line=number,
                    description=(
                        f"{method} is not cryptographically secure and should not be "
                        "used for security-sensitive operations."
                    ),
                    suggestion=(
                        "Use crypto.getRandomValues() in browsers, "
                        "or crypto.randomBytes() in Node.js."
                    ),
                    code_snippet=line.strip(),
                    confidence=0.9,
                    tags=["security", "crypto", "random"],
                ))
                break
        return issues
