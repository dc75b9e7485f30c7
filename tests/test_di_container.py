"""
Tests for DIContainer wiring.
"""

import json

import pytest

from codereview.application.commands import TeamReviewer
from codereview.domain.services.reviewer import ReviewOptions
from codereview.infrastructure.di.container import DIContainer
from codereview.infrastructure.git.git_scope_resolver import GitScopeResolver
from codereview.infrastructure.logging import CodeReviewLogger

CONFIG = """
review:
  exclude_patterns: [generated]
  max_workers: 3
  max_failures: 2
rules:
  enabled: [magic-number]
  disabled: [magic-number, comment-quality]
  overrides:
    long-line:
      maxLength: 120
    no-such-rule:
      x: 1
git:
  base_branch: develop
  timeout: 12
logging:
  level: ERROR
  console: false
output:
  results_directory: snapshots
"""


@pytest.fixture
def container(write_file):
    path = write_file("codereview-test.yaml", CONFIG)
    return DIContainer.create(config_path=str(path))


class TestDIContainer:
    """Test suite for DIContainer."""

    def test_create_with_defaults(self):
        container = DIContainer.create()

        assert len(container.registry) == 22
        assert container.reviewer.registry is container.registry
        assert container.review_file_handler.reviewer is container.reviewer
        assert repr(container) == "<DIContainer: 22 rules>"

    def test_rule_configuration(self, container):
        """Test disabled wins over enabled and overrides reach the rule config."""
        registry = container.registry

        assert registry.get_rule("magic-number").enabled is False
        assert registry.get_rule("comment-quality").enabled is False
        assert registry.get_rule("long-line").config["maxLength"] == 120

    def test_reviewer_settings(self, container):
        assert container.reviewer.max_workers == 3
        assert container.result_store.directory.name == "snapshots"

    def test_logger_uses_configured_level(self, container):
        assert container.logger is CodeReviewLogger.get_instance()
        assert container.logger.level == "ERROR"
        assert container.logger.logger.handlers == []

    def test_log_level_argument_wins(self, write_file):
        path = write_file("codereview-test.yaml", CONFIG)

        container = DIContainer.create(config_path=str(path), log_level="DEBUG")

        assert container.logger.level == "DEBUG"

    def test_review_options(self, container):
        options = container.review_options(limit=5, min_severity=None)

        assert isinstance(options, ReviewOptions)
        assert options.exclude_patterns == ["generated"]
        assert options.max_failures == 2
        assert options.limit == 5
        assert options.min_severity is None

    def test_review_options_overrides_config(self, container):
        options = container.review_options(exclude_patterns=["vendor"], use_ai=True)

        assert options.exclude_patterns == ["vendor"]
        assert options.use_ai is True

    def test_create_resolver(self, container, tmp_path):
        resolver = container.create_resolver(tmp_path)

        assert isinstance(resolver, GitScopeResolver)
        assert resolver.base_branch == "develop"
        assert resolver.timeout == 12

    def test_create_standards_service_discovers_config(self, container, write_file, tmp_path):
        write_file("proj/team-standards.json", json.dumps({"codeStyle": {"indentSize": 4}}))

        service = container.create_standards_service(tmp_path / "proj")

        assert service.standards.code_style.indent_size == 4

    def test_team_disabled_uses_defaults(self, write_file, tmp_path):
        config = write_file("off.yaml", "team:\n  enabled: false\nlogging:\n  console: false\n")
        write_file("proj/team-standards.json", json.dumps({"codeStyle": {"indentSize": 4}}))
        container = DIContainer.create(config_path=str(config))

        service = container.create_standards_service(tmp_path / "proj")

        assert service.standards.code_style.indent_size == 2

    def test_create_team_reviewer(self, container, tmp_path):
        team = container.create_team_reviewer(tmp_path)

        assert isinstance(team, TeamReviewer)
        assert team.reviewer is container.reviewer
        assert team.resolver_factory(tmp_path).base_branch == "develop"
