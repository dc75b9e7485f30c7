"""Configuration loader with support for YAML files and environment variables."""

import os
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union, get_args, get_origin
import yaml
from pydantic import ValidationError

from .config_models import CodeReviewConfig
from ...domain.exceptions import ConfigError


class ConfigLoader:
    """
    Load and manage codereview configuration.

    Configuration is loaded in the following order (later sources override earlier):
    1. Default configuration (embedded in code)
    2. Global configuration (~/.codereview/config.yaml)
    3. Project configuration (./codereview.yaml or .codereview.yaml)
    4. User-specified configuration file
    5. Environment variables (CODEREVIEW_*)
    """

    ENV_PREFIX = "CODEREVIEW_"

    DEFAULT_CONFIG_PATHS = [
        Path.home() / ".codereview" / "config.yaml",
        Path("./codereview.yaml"),
        Path("./.codereview.yaml"),
    ]

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> CodeReviewConfig:
        """
        Load configuration from multiple sources.

        Args:
            config_path: Optional path to configuration file

        Returns:
            CodeReviewConfig instance

        Raises:
            FileNotFoundError: If config_path does not exist
            ConfigError: If a file is not valid YAML or the merged values are invalid
        """
        config_dict = {}

        for path in cls.DEFAULT_CONFIG_PATHS:
            if path.exists():
                config_dict = cls._merge_dicts(
                    config_dict,
                    cls._load_yaml_file(path)
                )

        if config_path:
            user_path = Path(config_path)
            if not user_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {config_path}")
            config_dict = cls._merge_dicts(
                config_dict,
                cls._load_yaml_file(user_path)
            )

        config_dict = cls._merge_dicts(
            config_dict,
            cls._load_from_env()
        )

        try:
            return CodeReviewConfig(**config_dict)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e

    @staticmethod
    def _load_yaml_file(path: Path) -> Dict[str, Any]:
        """
        Load YAML configuration file.

        Args:
            path: Path to YAML file

        Returns:
            Configuration dictionary
        """
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(f"Configuration in {path} must be a mapping")
        return data

    @staticmethod
    def _merge_dicts(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """
        Recursively merge two configuration layers.

        Sections and mappings such as rules.overrides merge key by key, so
        a later layer can override one rule's settings without restating
        the rest. Lists and scalars are replaced.

        Args:
            base: Earlier layer
            override: Later layer

        Returns:
            Merged dictionary
        """
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = ConfigLoader._merge_dicts(result[key], value)
            else:
                result[key] = value

        return result

    @classmethod
    def _env_field(cls, key: str) -> Optional[Tuple[str, str, Any]]:
        """
        Map CODEREVIEW_<SECTION>_<FIELD> to a configuration field.

        The section is the first segment after the prefix and the rest is
        the field name, so field names keep their underscores. Mapping
        fields cannot be set from a single variable.

        Returns:
            (section, field, annotation), or None when key names no field
        """
        if not key.startswith(cls.ENV_PREFIX):
            return None

        section, _, field_name = key[len(cls.ENV_PREFIX):].lower().partition('_')
        section_info = CodeReviewConfig.model_fields.get(section)
        if section_info is None:
            return None

        field_info = section_info.annotation.model_fields.get(field_name)
        if field_info is None or get_origin(field_info.annotation) is dict:
            return None
        return section, field_name, field_info.annotation

    @classmethod
    def _load_from_env(cls) -> Dict[str, Any]:
        """
        Load configuration overrides from environment variables.

        - CODEREVIEW_GIT_BASE_BRANCH=develop -> git.base_branch
        - CODEREVIEW_REVIEW_EXCLUDE_PATTERNS=vendor,legacy -> review.exclude_patterns
        - CODEREVIEW_TEAM_STANDARDS_FILE= -> team.standards_file cleared

        Variables that name no configuration field are ignored.

        Returns:
            Configuration dictionary from environment
        """
        config: Dict[str, Any] = {}

        for key, value in os.environ.items():
            target = cls._env_field(key)
            if target is None:
                continue
            section, field_name, annotation = target
            config.setdefault(section, {})[field_name] = cls._convert_env_value(value, annotation)

        return config

    @staticmethod
    def _convert_env_value(value: str, annotation: Any = str) -> Any:
        """
        Shape an environment string for the field it sets.

        List fields take comma-separated items and Optional fields are
        cleared by an empty value or "none". Everything else stays a
        string; pydantic converts and validates it, so "4" becomes an int
        and "yes" or "off" a bool.

        Args:
            value: String value from environment
            annotation: Type annotation of the target field

        Returns:
            Value ready for model validation
        """
        value = value.strip()
        args = [arg for arg in get_args(annotation) if arg is not type(None)]
        if get_origin(annotation) is Union and len(args) < len(get_args(annotation)):
            if value.lower() in ('', 'none'):
                return None
            annotation = args[0]

        if get_origin(annotation) is list:
            return [item.strip() for item in value.split(',') if item.strip()]

        return value

    @staticmethod
    def create_default_config(path: Optional[str] = None) -> Path:
        """
        Create a default configuration file.

        Args:
            path: Optional path for config file. If not provided, creates in ~/.codereview/

        Returns:
            Path to created configuration file
        """
        if path:
            config_path = Path(path)
            config_path.parent.mkdir(parents=True, exist_ok=True)
        else:
            config_dir = Path.home() / ".codereview"
            config_dir.mkdir(parents=True, exist_ok=True)
            config_path = config_dir / "config.yaml"

        yaml_content = CodeReviewConfig().to_yaml()

        yaml_with_comments = f"""# codereview Configuration
#
# Override these settings with environment variables (CODEREVIEW_<SECTION>_<FIELD>)
# or by passing --config at runtime. Team-wide rule settings belong in
# .codereview/team-standards.json instead.

{yaml_content}
"""

        config_path.write_text(yaml_with_comments, encoding='utf-8')

        return config_path

    @classmethod
    def get_config_info(cls) -> Dict[str, Any]:
        """
        Get information about configuration sources.

        Returns:
            Dictionary with configuration information
        """
        info = {
            "default_paths": [str(p) for p in cls.DEFAULT_CONFIG_PATHS],
            "existing_configs": [],
            "env_overrides": [],
            "ignored_env": [],
        }

        for path in cls.DEFAULT_CONFIG_PATHS:
            if path.exists():
                info["existing_configs"].append(str(path))

        for key in sorted(os.environ):
            if not key.startswith(cls.ENV_PREFIX):
                continue
            bucket = "env_overrides" if cls._env_field(key) else "ignored_env"
            info[bucket].append(key)

        return info
