"""
Tests for team standards discovery, loading and saving.
"""

import json

import pytest

from codereview.domain.exceptions import ConfigError
from codereview.domain.models.team_standards import TeamStandards
from codereview.infrastructure.config.standards_loader import TeamStandardsLoader


@pytest.fixture
def loader():
    return TeamStandardsLoader()


class TestFindTeamConfig:
    """Test suite for upward discovery."""

    def test_finds_config_in_parent(self, loader, write_file, tmp_path):
        config = write_file("repo/.codereview/team-standards.json", "{}")
        nested = tmp_path / "repo" / "src" / "pkg"
        nested.mkdir(parents=True)

        assert loader.find_team_config(nested) == config.resolve()

    def test_search_order_within_directory(self, loader, write_file, tmp_path):
        write_file("repo/.team-standards.json", "{}")
        preferred = write_file("repo/team-standards.json", "{}")

        assert loader.find_team_config(tmp_path / "repo") == preferred.resolve()

    def test_start_may_be_a_file(self, loader, write_file):
        config = write_file("repo/team-standards.json", "{}")
        source = write_file("repo/app.py", "x = 1\n")

        assert loader.find_team_config(source) == config.resolve()

    def test_nothing_found(self, loader, tmp_path):
        empty = tmp_path / "empty"
        empty.mkdir()

        assert loader.find_team_config(empty) is None


class TestLoad:
    """Test suite for loading documents."""

    def test_partial_document_merges_over_defaults(self, loader, write_file):
        path = write_file("team-standards.json", json.dumps({
            "codeStyle": {"maxLineLength": 120},
            "rules": {"disabled": ["magic-number"]},
        }))

        standards = loader.load(path)

        assert standards.code_style.max_line_length == 120
        assert standards.code_style.indent_size == 2
        assert standards.rules.disabled == ["magic-number"]
        assert "sql-injection" in standards.rules.enabled

    def test_snake_case_keys_are_accepted(self, loader, write_file):
        path = write_file("team-standards.json", json.dumps({
            "code_style": {"max_line_length": 90},
            "thresholds": {"max_parameters": 3},
            "rules": {"custom": {"long-line": {"excludeUrls": False}}},
        }))

        standards = loader.load(path)

        assert standards.code_style.max_line_length == 90
        assert standards.thresholds.max_parameters == 3
        assert standards.rules.custom == {"long-line": {"excludeUrls": False}}

    def test_invalid_json(self, loader, write_file):
        path = write_file("team-standards.json", "{not json")

        with pytest.raises(ConfigError, match="Invalid JSON"):
            loader.load(path)

    def test_non_object(self, loader, write_file):
        path = write_file("team-standards.json", "[1, 2]")

        with pytest.raises(ConfigError, match="must be a JSON object"):
            loader.load(path)

    def test_schema_violation(self, loader, write_file):
        path = write_file("team-standards.json", json.dumps({"thresholds": {"maxParameters": -1}}))

        with pytest.raises(ConfigError, match="Invalid team standards"):
            loader.load(path)

    def test_missing_file(self, loader, tmp_path):
        with pytest.raises(ConfigError):
            loader.load(tmp_path / "missing.json")

    def test_load_or_default_falls_back(self, loader, write_file, tmp_path):
        write_file("repo/team-standards.json", "{broken")

        standards = loader.load_or_default(tmp_path / "repo")

        assert standards == TeamStandards()

    def test_load_or_default_with_explicit_path(self, loader, write_file):
        path = write_file("custom.json", json.dumps({"codeStyle": {"useTabs": True}}))

        standards = loader.load_or_default(path=path)

        assert standards.code_style.use_tabs is True


class TestSave:
    """Test suite for writing documents."""

    def test_save_and_reload(self, loader, tmp_path):
        standards = TeamStandards()
        standards.thresholds.max_nesting_depth = 3

        path = loader.save(standards, tmp_path / "out" / "team.json")

        assert json.loads(path.read_text())["thresholds"]["maxNestingDepth"] == 3
        assert loader.load(path) == standards

    def test_create_team_config(self, loader, tmp_path):
        path = loader.create_team_config(tmp_path)

        assert path == tmp_path / ".codereview" / "team-standards.json"
        assert loader.load(path) == TeamStandards()

    def test_create_team_config_refuses_overwrite(self, loader, tmp_path):
        loader.create_team_config(tmp_path)

        with pytest.raises(ConfigError, match="already exist"):
            loader.create_team_config(tmp_path)

        custom = TeamStandards()
        custom.code_style.indent_size = 4
        path = loader.create_team_config(tmp_path, custom, overwrite=True)
        assert loader.load(path).code_style.indent_size == 4
