"""Team standards discovery, loading and saving."""

import json
from pathlib import Path
from typing import Any, Dict, Optional, Union

from pydantic import ValidationError
from pydantic.alias_generators import to_camel

from .config_loader import ConfigLoader
from ...domain.exceptions import ConfigError
from ...domain.models.team_standards import (
    CodeStyle,
    FilePatterns,
    RuleSettings,
    TeamStandards,
    Thresholds,
)
from ..logging import CodeReviewLogger


class TeamStandardsLoader:
    """
    Find and read team standards documents.

    Documents are JSON with camelCase keys. A document only has to carry
    the settings it changes; everything else keeps its default.
    """

    # Tried in this order in every directory from the start path upwards
    SEARCH_PATHS = (
        Path(".codereview") / "team-standards.json",
        Path("team-standards.json"),
        Path(".team-standards.json"),
    )

    DEFAULT_LOCATION = Path(".codereview") / "team-standards.json"

    def __init__(self):
        self.logger = CodeReviewLogger.get_instance()

    def find_team_config(self, start: Union[str, Path] = ".") -> Optional[Path]:
        """
        Walk up from start to the filesystem root looking for a team config.

        Args:
            start: Directory (or file) to start from

        Returns:
            Path of the first document found, or None
        """
        current = Path(start).resolve()
        if current.is_file():
            current = current.parent

        for directory in (current, *current.parents):
            for candidate in self.SEARCH_PATHS:
                path = directory / candidate
                if path.is_file():
                    return path
        return None

    def load(self, path: Union[str, Path]) -> TeamStandards:
        """
        Load a team standards document merged over the defaults.

        Args:
            path: JSON document

        Returns:
            TeamStandards

        Raises:
            ConfigError: If the file cannot be read, is not JSON or violates the schema
        """
        path = Path(path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except OSError as e:
            raise ConfigError(f"Cannot read team standards {path}: {e}") from e
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Team standards in {path} must be a JSON object")

        merged = ConfigLoader._merge_dicts(TeamStandards().to_json_dict(), self._camel_keys(data))
        try:
            return TeamStandards.model_validate(merged)
        except ValidationError as e:
            raise ConfigError(f"Invalid team standards in {path}: {e}") from e

    def load_or_default(self, start: Union[str, Path] = ".", path: Optional[Union[str, Path]] = None) -> TeamStandards:
        """
        Load the team standards for a project, falling back to defaults.

        Args:
            start: Directory to search from when path is not given
            path: Explicit document path

        Returns:
            Loaded standards, or defaults when none exist or loading fails
        """
        config_path = Path(path) if path else self.find_team_config(start)
        if config_path is None:
            self.logger.debug("No team standards found, using defaults", extra={"start": str(start)})
            return TeamStandards()

        try:
            standards = self.load(config_path)
        except ConfigError as e:
            self.logger.warning(
                "Team standards could not be loaded, using defaults",
                extra={"path": str(config_path), "error": str(e)},
            )
            return TeamStandards()

        self.logger.info("Loaded team standards", extra={"path": str(config_path)})
        return standards

    def save(self, standards: TeamStandards, path: Union[str, Path]) -> Path:
        """Write standards as indented camelCase JSON, creating parent directories."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(standards.to_json_dict(), indent=2) + "\n", encoding="utf-8")
        return path

    def create_team_config(
        self,
        project_path: Union[str, Path] = ".",
        standards: Optional[TeamStandards] = None,
        overwrite: bool = False,
    ) -> Path:
        """
        Write a default team config into a project.

        Args:
            project_path: Project root
            standards: Document to write (defaults when omitted)
            overwrite: Replace an existing document

        Returns:
            Path to the written document

        Raises:
            ConfigError: If a document exists and overwrite is False
        """
        path = Path(project_path) / self.DEFAULT_LOCATION
        if path.exists() and not overwrite:
            raise ConfigError(f"Team standards already exist at {path}")
        return self.save(standards or TeamStandards(), path)

    @staticmethod
    def _camel_keys(data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Rewrite snake_case section keys to their camelCase aliases.

        Only the known model keys are rewritten; rule ids and language
        names inside maps are left alone.
        """
        aliases = {}
        for model in (TeamStandards, CodeStyle, RuleSettings, Thresholds, FilePatterns):
            for name in model.model_fields:
                aliases[name] = to_camel(name)

        def convert(value: Any, depth: int) -> Any:
            if not isinstance(value, dict) or depth > 1:
                return value
            return {aliases.get(k, k): convert(v, depth + 1) for k, v in value.items()}

        return convert(data, 0)
