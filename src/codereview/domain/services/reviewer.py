"""Review orchestrator: runs rules over files, directories and projects."""

import asyncio
import os
import re
import threading
import time
from collections import OrderedDict
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union
from uuid import uuid4

from ..exceptions import FileAccessError, RuleExecutionError
from ..models.review import Category, ReviewContext, ReviewIssue, ReviewResult, ReviewStatus, Severity
from ..rules.base import RuleContext
from ..rules.registry import RuleRegistry, RuleSet
from .ai_reviewer import AIReviewer
from .language_detector import LanguageDetector
from .team_standards import matches_pattern
from ...infrastructure.logging import CodeReviewLogger, logging_context

DEFAULT_EXTENSIONS = (
    ".js", ".jsx", ".ts", ".tsx", ".py", ".java", ".go", ".rs",
    ".cpp", ".c", ".h", ".hpp",
)

# Always skipped by review_project
PROJECT_EXCLUDES = (
    "node_modules", ".git", "dist", "build", "coverage", ".next", ".nuxt",
    "__pycache__", ".venv", "venv",
)

# Content limits for sending a file to the AI reviewer
AI_MAX_CHARS = 10000
AI_MIN_LINES = 5
AI_MAX_LINE_LENGTH = 500

# Finished results kept for get_result; the oldest are dropped first
MAX_STORED_RESULTS = 100

_REGEX_METACHARACTERS = set("^$+{}|()\\")
_GLOB_CHARACTERS = set("*?[")


@dataclass
class ReviewOptions:
    """
    Options for a review request.

    min_severity and category are output filters; the orchestrator
    always records the full issue set.
    """
    use_ai: bool = False
    include_extensions: Tuple[str, ...] = DEFAULT_EXTENSIONS
    exclude_patterns: List[str] = field(default_factory=list)
    include_patterns: List[str] = field(default_factory=list)
    limit: Optional[int] = None
    max_failures: Optional[int] = None
    min_severity: Optional[Severity] = None
    category: Optional[Category] = None
    file_filter: Optional[Callable[[str], bool]] = None


def is_excluded(relative_path: str, pattern: str) -> bool:
    """
    Check a path against one exclude pattern.

    Patterns containing regex metacharacters are treated as regular
    expressions when they compile, glob patterns are matched with
    team-pattern semantics, anything else matches by substring.
    """
    if _REGEX_METACHARACTERS.intersection(pattern) or ".*" in pattern:
        try:
            return re.search(pattern, relative_path) is not None
        except re.error:
            pass
    if _GLOB_CHARACTERS.intersection(pattern):
        return matches_pattern(relative_path, pattern)
    return pattern in relative_path


class CodeReviewer:
    """
    Domain service that reviews source files with the rule registry.

    Every review works on a RuleSet snapshot taken when it starts, so
    registry changes never affect a review in progress. Directory
    reviews run one task per file in a thread pool; each task builds its
    own ReviewResult and the results are merged in file order.
    """

    def __init__(
        self,
        registry: RuleRegistry,
        language_detector: Optional[LanguageDetector] = None,
        ai_reviewer: Optional[AIReviewer] = None,
        review_context: Optional[ReviewContext] = None,
        max_workers: Optional[int] = None,
    ):
        """
        Initialize reviewer.

        Args:
            registry: Rule registry (source of the per-review snapshot)
            language_detector: Extension to language mapping
            ai_reviewer: Optional LLM-backed reviewer
            review_context: Context handed to every rule
            max_workers: Thread pool size (defaults to the CPU count)
        """
        self.registry = registry
        self.language_detector = language_detector or LanguageDetector()
        self.ai_reviewer = ai_reviewer
        self.review_context = review_context or ReviewContext(
            session_id=f"session-{uuid4().hex[:8]}"
        )
        self.max_workers = max_workers or os.cpu_count() or 4
        self.logger = CodeReviewLogger.get_instance()

        self._results: "OrderedDict[str, ReviewResult]" = OrderedDict()
        self._stats = {
            "total_reviews": 0,
            "total_files_reviewed": 0,
            "total_issues_found": 0,
            "average_score": 0.0,
        }
        self._state_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def review_file(
        self,
        file_path: Union[str, Path],
        options: Optional[ReviewOptions] = None,
    ) -> ReviewResult:
        """
        Review a single file.

        Never raises for unreadable files: the result is returned with
        status failed and the error in its summary.

        Args:
            file_path: File to review
            options: Review options

        Returns:
            Completed or failed ReviewResult
        """
        options = options or ReviewOptions()
        with logging_context(session_id=self.review_context.session_id):
            result = self._review_single(Path(file_path), self.registry.snapshot(), options)
        if result.status == ReviewStatus.COMPLETED:
            self._record(result)
        return result

    def review_directory(
        self,
        directory: Union[str, Path],
        options: Optional[ReviewOptions] = None,
    ) -> ReviewResult:
        """
        Review every matching file below a directory.

        Args:
            directory: Root directory
            options: Review options (filters, limit, max_failures)

        Returns:
            Aggregate ReviewResult; failed when the directory cannot be walked
        """
        options = options or ReviewOptions()
        started = time.perf_counter()
        root = Path(directory)

        with logging_context(session_id=self.review_context.session_id):
            try:
                if not root.is_dir():
                    raise FileAccessError(f"Not a directory: {root}")
                files = self.collect_files(root, options)
            except (FileAccessError, OSError) as e:
                result = ReviewResult.create(str(root), self.review_context.session_id)
                result.fail(f"Directory review failed: {e}", time.perf_counter() - started)
                self.logger.error(
                    "Directory review failed",
                    extra={"directory": str(root), "error": str(e)},
                )
                return result

            return self._review_many(files, str(root), options, started)

    def review_project(
        self,
        project_path: Union[str, Path],
        options: Optional[ReviewOptions] = None,
    ) -> ReviewResult:
        """review_directory with dependency and build folders excluded."""
        options = options or ReviewOptions()
        excludes = list(PROJECT_EXCLUDES) + [
            p for p in options.exclude_patterns if p not in PROJECT_EXCLUDES
        ]
        return self.review_directory(project_path, replace(options, exclude_patterns=excludes))

    def review_files(
        self,
        file_paths: Iterable[Union[str, Path]],
        project_path: Union[str, Path],
        options: Optional[ReviewOptions] = None,
    ) -> ReviewResult:
        """
        Review an explicit list of files as one aggregate.

        Paths are taken as given (relative paths resolve against
        project_path); exclude and extension filters are not applied.
        """
        options = options or ReviewOptions()
        started = time.perf_counter()
        root = Path(project_path)
        files = [p if Path(p).is_absolute() else root / p for p in map(Path, file_paths)]
        if options.limit is not None:
            files = files[:options.limit]
        with logging_context(session_id=self.review_context.session_id):
            return self._review_many(files, str(root), options, started)

    def review_content(
        self,
        file_path: Union[str, Path],
        content: str,
        options: Optional[ReviewOptions] = None,
    ) -> ReviewResult:
        """
        Review text that does not come from the working tree.

        The language is detected from file_path, which is also the path
        recorded on every issue. Nothing is read from disk.

        Args:
            file_path: Path the content belongs to
            content: Source text to review
            options: Review options

        Returns:
            Completed ReviewResult
        """
        options = options or ReviewOptions()
        with logging_context(session_id=self.review_context.session_id):
            result = self._review_single(Path(file_path), self.registry.snapshot(), options, content)
        self._record(result)
        return result

    def review_contents(
        self,
        sources: Dict[Path, str],
        project_path: Union[str, Path],
        options: Optional[ReviewOptions] = None,
    ) -> ReviewResult:
        """
        Review in-memory sources as one aggregate, in the order given.

        Used for commit reviews, where file content comes from a revision
        rather than the working tree.
        """
        options = options or ReviewOptions()
        started = time.perf_counter()
        files = list(sources)
        if options.limit is not None:
            files = files[:options.limit]
        with logging_context(session_id=self.review_context.session_id):
            return self._review_many(files, str(project_path), options, started, sources)

    def should_use_ai_review(self, content: str) -> bool:
        """Only moderately sized files with ordinary line lengths go to the AI reviewer."""
        if len(content) >= AI_MAX_CHARS:
            return False
        lines = content.split("\n")
        if len(lines) < AI_MIN_LINES:
            return False
        return all(len(line) <= AI_MAX_LINE_LENGTH for line in lines)

    def collect_files(self, root: Path, options: ReviewOptions) -> List[Path]:
        """
        Walk root depth-first in sorted order and apply the file filters.

        Excluded directories are pruned rather than walked.
        """
        extensions = {ext.lower() for ext in options.include_extensions}
        files: List[Path] = []

        for current, dirnames, filenames in os.walk(root):
            current_path = Path(current)
            kept = []
            for name in sorted(dirnames):
                relative = (current_path / name).relative_to(root).as_posix()
                if not self._excluded(relative, options):
                    kept.append(name)
            dirnames[:] = kept

            for name in sorted(filenames):
                path = current_path / name
                relative = path.relative_to(root).as_posix()
                if path.suffix.lower() not in extensions:
                    continue
                if self._excluded(relative, options):
                    continue
                if options.include_patterns and not any(
                    matches_pattern(relative, p) for p in options.include_patterns
                ):
                    continue
                if options.file_filter is not None and not options.file_filter(relative):
                    continue
                files.append(path)

            if options.limit is not None and len(files) >= options.limit:
                return files[:options.limit]
        return files

    def get_stats(self) -> Dict[str, float]:
        with self._state_lock:
            return dict(self._stats)

    def get_result(self, review_id: str) -> Optional[ReviewResult]:
        with self._state_lock:
            return self._results.get(review_id)

    def get_all_results(self) -> List[ReviewResult]:
        with self._state_lock:
            return list(self._results.values())

    def clear_results(self) -> None:
        with self._state_lock:
            self._results.clear()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _excluded(relative: str, options: ReviewOptions) -> bool:
        return any(is_excluded(relative, pattern) for pattern in options.exclude_patterns)

    def _review_many(
        self,
        files: Sequence[Path],
        project_path: str,
        options: ReviewOptions,
        started: float,
        contents: Optional[Dict[Path, str]] = None,
    ) -> ReviewResult:
        """Review files in the pool and merge their results in file order."""
        aggregate = ReviewResult.create(project_path, self.review_context.session_id)
        aggregate.start()
        rule_set = self.registry.snapshot()

        self.logger.info(
            "Starting review",
            extra={"project_path": project_path, "files": len(files), "rules": len(rule_set)},
        )

        per_file = self._run_pool(files, rule_set, options, contents)
        for index in sorted(per_file):
            aggregate.merge(per_file[index])

        aggregate.complete(time.perf_counter() - started)
        self._record(aggregate)

        self.logger.info(
            "Review completed",
            extra={
                "project_path": project_path,
                "files_reviewed": aggregate.files_reviewed,
                "files_failed": len(aggregate.failed_files),
                "issues": aggregate.total_issues,
                "duration_seconds": aggregate.metrics["execution_time"],
            },
        )
        return aggregate

    def _run_pool(
        self,
        files: Sequence[Path],
        rule_set: RuleSet,
        options: ReviewOptions,
        contents: Optional[Dict[Path, str]] = None,
    ) -> Dict[int, ReviewResult]:
        """
        Submit file reviews lazily and collect their results by index.

        At most twice the worker count is in flight. Submission stops once
        max_failures files have failed; running reviews are allowed to finish.
        Paths found in contents are reviewed from that text instead of disk.
        """
        results: Dict[int, ReviewResult] = {}
        window = self.max_workers * 2
        session_id = self.review_context.session_id
        queue = iter(enumerate(files))
        failures = 0
        stopped = False

        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            in_flight: Dict[Future, int] = {}
            while True:
                while not stopped and len(in_flight) < window:
                    entry = next(queue, None)
                    if entry is None:
                        break
                    index, path = entry
                    future = pool.submit(
                        self._review_in_worker, path, rule_set, options, session_id,
                        contents.get(path) if contents else None,
                    )
                    in_flight[future] = index

                if not in_flight:
                    break

                done, _ = wait(list(in_flight), return_when=FIRST_COMPLETED)
                for future in done:
                    file_result = future.result()
                    results[in_flight.pop(future)] = file_result
                    if file_result.status == ReviewStatus.FAILED:
                        failures += 1

                if (
                    not stopped
                    and options.max_failures is not None
                    and failures >= options.max_failures
                ):
                    stopped = True
                    self.logger.warning(
                        "Failure limit reached, not starting further file reviews",
                        extra={"failures": failures, "max_failures": options.max_failures},
                    )
        return results

    def _review_in_worker(
        self,
        path: Path,
        rule_set: RuleSet,
        options: ReviewOptions,
        session_id: str,
        content: Optional[str] = None,
    ) -> ReviewResult:
        # Log context is thread-local, so it is set again in the worker
        with logging_context(session_id=session_id):
            return self._review_single(path, rule_set, options, content)

    def _review_single(
        self,
        path: Path,
        rule_set: RuleSet,
        options: ReviewOptions,
        content: Optional[str] = None,
    ) -> ReviewResult:
        """Review one file against a snapshot; never raises for file errors."""
        started = time.perf_counter()
        project_path = self.review_context.project_path or str(path.parent)
        result = ReviewResult.create(project_path, self.review_context.session_id, files_reviewed=1)
        result.start()

        with logging_context(file_path=str(path)):
            try:
                if content is None:
                    content = self._read(path)
            except FileAccessError as e:
                # A file that could not be read was not reviewed
                result.files_reviewed = 0
                result.failed_files[str(path)] = str(e)
                result.metrics["files_failed"] = 1
                result.fail(f"Review failed: {e}", time.perf_counter() - started)
                self.logger.warning("File review failed", extra={"error": str(e)})
                return result

            language = self.language_detector.detect_file_language(path)
            issues = self._run_rules(str(path), content, language, rule_set)
            result.add_issues(issues)

            if options.use_ai and self.ai_reviewer is not None and self.should_use_ai_review(content):
                result.add_issues(self._run_ai_review(str(path), content, language, issues))

            result.complete(time.perf_counter() - started)
            self.logger.debug(
                "File reviewed",
                extra={"language": language, "issues": result.total_issues},
            )
        return result

    @staticmethod
    def _read(path: Path) -> str:
        try:
            return path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise FileAccessError(f"{path} is not valid UTF-8 text") from e
        except OSError as e:
            raise FileAccessError(f"Cannot read {path}: {e.strerror or e}") from e

    def _run_rules(
        self,
        file_path: str,
        content: str,
        language: str,
        rule_set: RuleSet,
    ) -> List[ReviewIssue]:
        """Run applicable rules sequentially; a failing rule contributes nothing."""
        context = RuleContext(language=language, review_context=self.review_context)
        issues: List[ReviewIssue] = []
        for rule in rule_set.for_language(language):
            try:
                issues.extend(rule.check(file_path, content, context))
            except Exception as e:
                error = RuleExecutionError(rule.id, file_path, e)
                self.logger.error(
                    str(error),
                    extra={"rule_id": rule.id, "error_type": type(e).__name__},
                    exc_info=True,
                )
        return issues

    def _run_ai_review(
        self,
        file_path: str,
        content: str,
        language: str,
        existing: List[ReviewIssue],
    ) -> List[ReviewIssue]:
        try:
            return asyncio.run(
                self.ai_reviewer.review_file(file_path, content, language, existing_issues=existing)
            )
        except Exception as e:
            self.logger.warning(
                "AI review failed, keeping rule issues only",
                extra={"error": str(e), "error_type": type(e).__name__},
            )
            return []

    def _record(self, result: ReviewResult) -> None:
        """Store a finished result and fold it into the running statistics."""
        score = result.calculate_score()
        with self._state_lock:
            self._results[result.id] = result
            while len(self._results) > MAX_STORED_RESULTS:
                self._results.popitem(last=False)
            stats = self._stats
            stats["total_reviews"] += 1
            stats["total_files_reviewed"] += result.files_reviewed
            stats["total_issues_found"] += result.total_issues
            previous_total = stats["average_score"] * (stats["total_reviews"] - 1)
            stats["average_score"] = (previous_total + score) / stats["total_reviews"]
