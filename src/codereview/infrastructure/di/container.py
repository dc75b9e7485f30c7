"""Dependency injection container for codereview."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from ..config.config_loader import ConfigLoader
from ..config.config_models import CodeReviewConfig
from ..config.standards_loader import TeamStandardsLoader
from ..git.git_scope_resolver import GitScopeResolver
from ..logging import CodeReviewLogger
from ..persistence.result_store import ResultStore
from ...domain.exceptions import RuleNotFoundError
from ...domain.models.review import ReviewContext
from ...domain.rules.registry import RuleRegistry
from ...domain.services.ai_reviewer import AIReviewer
from ...domain.services.language_detector import LanguageDetector
from ...domain.services.reviewer import CodeReviewer, ReviewOptions
from ...domain.services.team_standards import TeamStandardsService
from ...application.commands.review_directory import ReviewDirectoryHandler
from ...application.commands.review_file import ReviewFileHandler
from ...application.commands.team_review import TeamReviewer
from ...adapters.formatters.formatter_factory import FormatterFactory


@dataclass
class DIContainer:
    """
    Dependency injection container for codereview.

    Assembles all components with proper dependency injection.
    This container is created once at application startup.
    """

    # Configuration
    config: CodeReviewConfig

    # Infrastructure
    logger: CodeReviewLogger
    standards_loader: TeamStandardsLoader
    result_store: ResultStore
    formatter_factory: FormatterFactory

    # Domain
    registry: RuleRegistry
    language_detector: LanguageDetector
    reviewer: CodeReviewer

    # Application Handlers
    review_file_handler: ReviewFileHandler
    review_directory_handler: ReviewDirectoryHandler

    @classmethod
    def create(
        cls,
        config_path: Optional[str] = None,
        ai_reviewer: Optional[AIReviewer] = None,
        log_level: Optional[str] = None,
    ) -> "DIContainer":
        """
        Create and wire all dependencies.

        Args:
            config_path: Optional path to configuration file
            ai_reviewer: LLM-backed reviewer used when a review asks for AI
            log_level: Console log level overriding the configuration

        Returns:
            DIContainer with all dependencies wired
        """
        config = ConfigLoader.load(config_path)

        # The first get_instance call decides the handlers
        CodeReviewLogger.reset()
        logger = CodeReviewLogger.get_instance(
            level=log_level or config.logging.level,
            log_file=Path(config.logging.file) if config.logging.file else None,
            console=config.logging.console,
            rotation=config.logging.rotation,
            retention_days=config.logging.retention_days,
        )

        registry = RuleRegistry.create_default()
        cls._apply_rule_config(registry, config, logger)

        language_detector = LanguageDetector()
        reviewer = CodeReviewer(
            registry=registry,
            language_detector=language_detector,
            ai_reviewer=ai_reviewer,
            review_context=ReviewContext(config=config.model_dump()),
            max_workers=config.review.max_workers,
        )

        result_store = ResultStore(config.output.results_directory)

        return cls(
            config=config,
            logger=logger,
            standards_loader=TeamStandardsLoader(),
            result_store=result_store,
            formatter_factory=FormatterFactory(),
            registry=registry,
            language_detector=language_detector,
            reviewer=reviewer,
            review_file_handler=ReviewFileHandler(reviewer, result_store),
            review_directory_handler=ReviewDirectoryHandler(reviewer, result_store),
        )

    @staticmethod
    def _apply_rule_config(registry: RuleRegistry, config: CodeReviewConfig, logger: CodeReviewLogger) -> None:
        """Apply rules.enabled, rules.disabled and rules.overrides from the configuration."""
        for rule_id in config.rules.enabled:
            registry.enable(rule_id)
        for rule_id in config.rules.disabled:
            registry.disable(rule_id)
        for rule_id, overrides in config.rules.overrides.items():
            try:
                registry.update_rule_config(rule_id, overrides)
            except RuleNotFoundError:
                logger.warning("Configuration overrides an unknown rule", extra={"rule_id": rule_id})

    def review_options(self, **overrides) -> ReviewOptions:
        """ReviewOptions seeded from the review section of the configuration."""
        review = self.config.review
        values = {
            "use_ai": review.use_ai,
            "include_extensions": tuple(review.include_extensions),
            "exclude_patterns": list(review.exclude_patterns),
            "max_failures": review.max_failures,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return ReviewOptions(**values)

    def create_resolver(self, repo_path: Union[str, Path] = ".") -> GitScopeResolver:
        git = self.config.git
        return GitScopeResolver(
            repo_path,
            base_branch=git.base_branch,
            remote=git.remote,
            timeout=git.timeout,
        )

    def create_standards_service(self, project_path: Union[str, Path] = ".") -> TeamStandardsService:
        """
        Team standards for a project.

        Uses team.standards_file when configured, otherwise searches upwards
        from project_path. Defaults apply when team standards are disabled.
        """
        if not self.config.team.enabled:
            return TeamStandardsService()
        standards = self.standards_loader.load_or_default(
            start=project_path,
            path=self.config.team.standards_file,
        )
        return TeamStandardsService(standards)

    def create_team_reviewer(self, project_path: Union[str, Path] = ".") -> TeamReviewer:
        """TeamReviewer with the project's standards applied to the shared registry."""
        return TeamReviewer(
            reviewer=self.reviewer,
            standards_service=self.create_standards_service(project_path),
            resolver_factory=self.create_resolver,
            formatter_factory=self.formatter_factory,
        )

    def __repr__(self) -> str:
        """String representation."""
        return f"<DIContainer: {len(self.registry)} rules>"
