"""AI reviewer interface (Port) and a prompt-driven implementation."""

import hashlib
import json
import re
from abc import ABC, abstractmethod
from collections import OrderedDict
from typing import Any, Dict, List, Optional, Sequence

from ..models.review import Category, ReviewIssue, Severity
from ...infrastructure.logging import CodeReviewLogger

AI_RULE_ID = "ai-review"

_JSON_ARRAY = re.compile(r"\[\s*\{.*\}\s*\]", re.DOTALL)


class AIReviewer(ABC):
    """
    Port for LLM-backed review.

    The orchestrator awaits review_file in its worker thread and merges
    the returned issues with rule issues. Any exception raised here is
    logged by the orchestrator and the file keeps its rule issues.
    """

    @abstractmethod
    async def review_file(
        self,
        file_path: str,
        content: str,
        language: str,
        existing_issues: Optional[Sequence[ReviewIssue]] = None,
    ) -> List[ReviewIssue]:
        """
        Review one file.

        Args:
            file_path: Path used for issue attribution
            content: Full file text
            language: Detected language
            existing_issues: Rule findings, offered to the model as context

        Returns:
            Additional issues
        """
        pass


class TextGenerator(ABC):
    """Port for a text completion backend."""

    @abstractmethod
    async def generate(self, prompt: str, max_tokens: int, temperature: float) -> str:
        """Return the model's completion for prompt."""
        pass


def normalize_severity(value: Any) -> Severity:
    """Map free-form model output onto a Severity (medium when unclear)."""
    text = str(value).lower()
    for severity in Severity:
        if severity.value in text:
            return severity
    return Severity.MEDIUM


def normalize_category(value: Any) -> Category:
    """Map free-form model output onto a Category (best_practice when unclear)."""
    text = str(value).lower().replace(" ", "_")
    keywords = (
        ("security", Category.SECURITY),
        ("performance", Category.PERFORMANCE),
        ("maintain", Category.MAINTAINABILITY),
        ("readab", Category.READABILITY),
        ("practice", Category.BEST_PRACTICE),
        ("style", Category.STYLE),
        ("bug", Category.BUG_RISK),
        ("complex", Category.COMPLEXITY),
        ("test", Category.TEST_COVERAGE),
        ("doc", Category.DOCUMENTATION),
    )
    for keyword, category in keywords:
        if keyword in text:
            return category
    return Category.BEST_PRACTICE


class PromptedAIReviewer(AIReviewer):
    """
    AIReviewer that prompts a TextGenerator for a JSON list of issues.

    Responses are cached by a hash of path and content, so re-reviewing
    an unchanged file costs nothing. The cache keeps the cache_size most
    recently used entries.
    """

    def __init__(
        self,
        generator: TextGenerator,
        max_tokens: int = 2000,
        temperature: float = 0.3,
        max_context_issues: int = 5,
        cache_size: int = 256,
    ):
        self.generator = generator
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.max_context_issues = max_context_issues
        self.cache_size = cache_size
        self._cache: "OrderedDict[str, List[ReviewIssue]]" = OrderedDict()
        self.logger = CodeReviewLogger.get_instance()

    async def review_file(
        self,
        file_path: str,
        content: str,
        language: str,
        existing_issues: Optional[Sequence[ReviewIssue]] = None,
    ) -> List[ReviewIssue]:
        key = self.cache_key(file_path, content)
        if key in self._cache:
            self._cache.move_to_end(key)
            return list(self._cache[key])

        prompt = self.build_prompt(file_path, content, language, existing_issues or [])
        response = await self.generator.generate(
            prompt, max_tokens=self.max_tokens, temperature=self.temperature
        )
        issues = self.parse_response(response, file_path, language)
        self._cache[key] = issues
        while len(self._cache) > self.cache_size:
            self._cache.popitem(last=False)
        return list(issues)

    @staticmethod
    def cache_key(file_path: str, content: str) -> str:
        return hashlib.sha256(f"{file_path}\0{content}".encode("utf-8")).hexdigest()

    def clear_cache(self) -> None:
        self._cache.clear()

    def get_cache_stats(self) -> Dict[str, int]:
        return {"size": len(self._cache)}

    def build_prompt(
        self,
        file_path: str,
        content: str,
        language: str,
        existing_issues: Sequence[ReviewIssue],
    ) -> str:
        """Assemble the review prompt."""
        parts = [
            f"Please review the following {language} code from file: {file_path}",
            "",
            f"```{language}",
            content,
            "```",
            "",
            "Review guidelines:",
            "1. Focus on security vulnerabilities, performance issues and maintainability problems",
            "2. Identify code smells, anti-patterns and potential bugs",
            "3. Suggest specific improvements",
            f"4. Consider best practices for {language} development",
            "",
        ]
        if existing_issues:
            parts.append("Issues already found by static analysis:")
            for issue in list(existing_issues)[:self.max_context_issues]:
                parts.append(f"- {issue.message} ({issue.severity.value})")
            parts.append("Report only additional findings.")
            parts.append("")
        parts.extend([
            "Respond with a JSON array. Each element has:",
            "- line: 1-based line number",
            "- message: concise description",
            '- severity: "critical", "high", "medium", "low" or "info"',
            "- category: one of " + ", ".join(f'"{c.value}"' for c in Category),
            "- suggestion: how to fix it",
            "- code_snippet: relevant code (optional)",
        ])
        return "\n".join(parts)

    def parse_response(self, response: str, file_path: str, language: str) -> List[ReviewIssue]:
        """
        Turn a model response into issues.

        Malformed responses and malformed entries are logged and skipped.
        """
        match = _JSON_ARRAY.search(response)
        try:
            data = json.loads(match.group(0) if match else response)
        except json.JSONDecodeError as e:
            self.logger.warning(
                "AI response is not valid JSON",
                extra={"file_path": file_path, "error": str(e)},
            )
            return []

        if not isinstance(data, list):
            return []

        issues = []
        for entry in data:
            if not isinstance(entry, dict):
                continue
            try:
                issues.append(ReviewIssue.create(
                    file_path=file_path,
                    line=max(1, int(entry.get("line") or 1)),
                    column=int(entry.get("column") or 0),
                    severity=normalize_severity(entry.get("severity", "medium")),
                    category=normalize_category(entry.get("category", "best_practice")),
                    message=entry.get("message") or "AI-detected issue",
                    description=entry.get("description") or entry.get("message"),
                    suggestion=entry.get("suggestion") or "",
                    code_snippet=entry.get("code_snippet") or entry.get("codeSnippet") or "",
                    rule_id=AI_RULE_ID,
                    confidence=0.7,
                    tags=["ai-generated", language],
                    metadata={"source": "ai"},
                ))
            except (TypeError, ValueError) as e:
                self.logger.warning(
                    "Skipping malformed AI finding",
                    extra={"file_path": file_path, "error": str(e)},
                )
        return issues
