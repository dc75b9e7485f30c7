"""Team review use cases: standards-aware directory, pull request and commit reviews."""

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from ...domain.exceptions import ScopeError
from ...domain.models.git_scope import GitScope
from ...domain.models.review import ReviewIssue, ReviewResult
from ...domain.services.reviewer import CodeReviewer, ReviewOptions
from ...domain.services.team_standards import TeamStandardsService
from ...infrastructure.git.git_scope_resolver import GitScopeResolver
from ...infrastructure.logging import CodeReviewLogger


@dataclass
class TeamReviewReport:
    """Outcome of a team review: the result, its team report and the scope it covered."""
    result: ReviewResult
    team_report: Dict[str, Any]
    scope: Optional[GitScope] = None
    standards_violations: Dict[str, List[ReviewIssue]] = field(default_factory=dict)
    skipped_files: List[str] = field(default_factory=list)

    @property
    def total_violations(self) -> int:
        return sum(len(v) for v in self.standards_violations.values())

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "scope": self.scope.to_dict() if self.scope else None,
            "result": self.result.to_dict(),
            "team_report": self.team_report,
            "standards_violations": {
                path: [issue.to_dict() for issue in issues]
                for path, issues in self.standards_violations.items()
            },
            "skipped_files": list(self.skipped_files),
        }


class TeamReviewer:
    """
    Runs reviews under a team standards document.

    The standards are applied to the reviewer's registry when the
    TeamReviewer is created. Files the standards exclude are skipped,
    and every reviewed file is also checked against the team code style.
    """

    def __init__(
        self,
        reviewer: CodeReviewer,
        standards_service: TeamStandardsService,
        resolver_factory: Callable[[Path], GitScopeResolver] = GitScopeResolver,
        formatter_factory: Optional[Any] = None,
    ):
        """
        Initialize team reviewer.

        Args:
            reviewer: Review orchestrator
            standards_service: Team standards overlay
            resolver_factory: Builds a GitScopeResolver for a repository path
            formatter_factory: FormatterFactory used by export_team_report
        """
        self.reviewer = reviewer
        self.standards_service = standards_service
        self.resolver_factory = resolver_factory
        self.formatter_factory = formatter_factory
        self.logger = CodeReviewLogger.get_instance()

        self.standards_service.apply_to_registry(self.reviewer.registry)

    def review_directory(
        self,
        directory: Union[str, Path],
        options: Optional[ReviewOptions] = None,
    ) -> TeamReviewReport:
        """
        Review a directory, keeping only files the team standards include.

        Args:
            directory: Project root
            options: Review options

        Returns:
            TeamReviewReport
        """
        options = options or ReviewOptions()
        root = Path(directory)
        team_options = replace(options, file_filter=self.standards_service.should_review_file)

        if not root.is_dir():
            # review_directory produces the failed result
            result = self.reviewer.review_directory(root, team_options)
            return self._report(result, options, root, [])

        files = self.reviewer.collect_files(root, team_options)
        result = self.reviewer.review_files(files, root, options)
        return self._report(result, options, root, files)

    def review_pull_request(
        self,
        repo_path: Union[str, Path] = ".",
        base: Optional[str] = None,
        current: Optional[str] = None,
        options: Optional[ReviewOptions] = None,
    ) -> TeamReviewReport:
        """
        Review the files changed on a branch since it left base.

        Args:
            repo_path: Any directory inside the repository
            base: Base branch (resolver default when omitted)
            current: Branch under review (checked out branch when omitted)
            options: Review options

        Returns:
            TeamReviewReport with the branch scope

        Raises:
            ScopeError: If the scope cannot be resolved
        """
        resolver = self.resolver_factory(Path(repo_path))
        scope = resolver.resolve_branch_scope(base=base, current=current)
        return self._review_scope(resolver, scope, options or ReviewOptions())

    def review_commit(
        self,
        commit: str,
        repo_path: Union[str, Path] = ".",
        options: Optional[ReviewOptions] = None,
    ) -> TeamReviewReport:
        """
        Review the files one commit touched.

        Each file is reviewed as it was at the commit; files the commit
        deleted are skipped.

        Raises:
            ScopeError: If the commit cannot be resolved
        """
        resolver = self.resolver_factory(Path(repo_path))
        scope = resolver.resolve_commit_scope(commit)
        return self._review_scope(resolver, scope, options or ReviewOptions())

    def export_team_report(self, team_report: Dict[str, Any], output_format: str = "json") -> str:
        """
        Render a team report.

        Args:
            team_report: Report from generate_team_report
            output_format: json, markdown, html or text

        Returns:
            Rendered report
        """
        if self.formatter_factory is None:
            raise ValueError("No formatter factory configured for team report export")
        formatter = self.formatter_factory.create(output_format)
        return formatter.format_team_report(team_report)

    def _review_scope(
        self,
        resolver: GitScopeResolver,
        scope: GitScope,
        options: ReviewOptions,
    ) -> TeamReviewReport:
        root = resolver.get_repository_root()
        extensions = {ext.lower() for ext in options.include_extensions}

        files: List[Path] = []
        contents: Dict[Path, str] = {}
        skipped: List[str] = []
        for relative in scope.changed_files:
            path = root / relative
            if (
                path.suffix.lower() not in extensions
                or not self.standards_service.should_review_file(relative)
            ):
                skipped.append(relative)
                continue
            if scope.is_commit_scope:
                try:
                    contents[path] = resolver.read_file_at_revision(scope.commit, relative)
                except ScopeError:
                    # Deleted by the commit, nothing to review
                    skipped.append(relative)
                    continue
            elif not path.is_file():
                skipped.append(relative)
                continue
            files.append(path)

        if options.limit is not None:
            files = files[:options.limit]

        self.logger.info(
            "Reviewing git scope",
            extra={"scope": scope.label, "files": len(files), "skipped": len(skipped)},
        )

        if not scope.changed_files:
            result = ReviewResult.create(str(root), self.reviewer.review_context.session_id)
            result.start()
            result.complete(0.0)
        elif scope.is_commit_scope:
            result = self.reviewer.review_contents({p: contents[p] for p in files}, root, options)
        else:
            result = self.reviewer.review_files(files, root, options)
        report = self._report(result, options, root, files, contents)
        if not scope.changed_files:
            # Set after filtering, which rebuilds the summary
            report.result.summary = "No files changed in this scope"
        report.scope = scope
        report.skipped_files = skipped
        return report

    def _report(
        self,
        result: ReviewResult,
        options: ReviewOptions,
        root: Path,
        files: Sequence[Path],
        contents: Optional[Dict[Path, str]] = None,
    ) -> TeamReviewReport:
        violations = self._validate_standards(root, files, result, contents or {})
        filtered = result.filtered(options.min_severity, options.category)
        team_report = self.standards_service.generate_team_report([filtered])
        team_report["standards_violations"] = sum(len(v) for v in violations.values())
        return TeamReviewReport(
            result=filtered,
            team_report=team_report,
            standards_violations=violations,
        )

    def _validate_standards(
        self,
        root: Path,
        files: Sequence[Path],
        result: ReviewResult,
        contents: Dict[Path, str],
    ) -> Dict[str, List[ReviewIssue]]:
        """Code style check for every file that was read successfully."""
        violations: Dict[str, List[ReviewIssue]] = {}
        for path in files:
            if str(path) in result.failed_files:
                continue
            content = contents.get(path)
            if content is None:
                try:
                    content = path.read_text(encoding="utf-8")
                except (OSError, UnicodeDecodeError) as e:
                    self.logger.debug(
                        "Skipping standards check for unreadable file",
                        extra={"file_path": str(path), "error": str(e)},
                    )
                    continue
            relative = path.relative_to(root).as_posix() if path.is_relative_to(root) else str(path)
            issues = self.standards_service.validate_code_against_standards(relative, content)
            if issues:
                violations[relative] = issues
        return violations
