"""
Settings for the order scheduler: YAML file, environment overrides, pydantic validation.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from order_scheduler.data.schemas import Config

logger = logging.getLogger(__name__)


class ConfigManager:
    """Manages configuration loading from YAML files and environment variables."""

    ENV_PREFIX = "ORDER_SCHEDULER_"

    def __init__(self, config_path: Optional[str] = None):
        """
        Create a manager for one settings file.

        Args:
            config_path: YAML settings file. Defaults to the packaged settings.yaml.
        """
        self.config_path = config_path or self._get_default_config_path()

    def _get_default_config_path(self) -> str:
        """Get the default configuration file path."""
        package_dir = Path(__file__).parent.parent
        return str(package_dir / "config" / "settings.yaml")

    def load_config(self) -> Config:
        """
        Read the settings file, apply ORDER_SCHEDULER_* overrides and validate.

        Returns:
            The validated Config.

        Raises:
            ValueError: If the file cannot be parsed or a value is out of range.
        """
        # File values first, environment wins
        config_dict = self._load_yaml()

        config_dict = self._apply_env_overrides(config_dict)

        try:
            return Config(**config_dict)
        except Exception as e:
            raise ValueError(f"Invalid configuration: {e}")

    def _load_yaml(self) -> Dict[str, Any]:
        """Load configuration from YAML file."""
        config_path = Path(self.config_path)

        if not config_path.exists():
            logger.debug(f"Config file not found: {config_path}, using defaults")
            return {}

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                config = yaml.safe_load(f)
                logger.debug(f"Loaded config from: {config_path}")
                return self._flatten_config(config) if config else {}
        except yaml.YAMLError as e:
            raise ValueError(f"Error parsing YAML config file: {e}")

    def _flatten_config(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """
        Map the store, scheduling, output, api and logging sections onto Config fields.

        Args:
            config: Parsed YAML document.

        Returns:
            Config field values found in the document.
        """
        sections = {
            "store": {"url": "database_url"},
            "scheduling": {
                "max_walk_days": "max_walk_days",
                "max_task_duration_days": "max_task_duration_days",
            },
            "output": {"format": "output_format", "directory": "output_directory"},
            "api": {"host": "api_host", "port": "api_port"},
            "logging": {"level": "log_level"},
        }

        result = {}
        for section, keys in sections.items():
            values = config.get(section) or {}
            for yaml_key, field in keys.items():
                if yaml_key in values:
                    result[field] = values[yaml_key]

        return result

    def _apply_env_overrides(self, config_dict: Dict[str, Any]) -> Dict[str, Any]:
        """
        Override settings from the environment.

        Environment variables:
        - ORDER_SCHEDULER_DATABASE_URL -> database_url
        - ORDER_SCHEDULER_MAX_WALK_DAYS -> max_walk_days
        - ORDER_SCHEDULER_MAX_TASK_DURATION_DAYS -> max_task_duration_days
        - ORDER_SCHEDULER_OUTPUT_FORMAT -> output_format
        - ORDER_SCHEDULER_OUTPUT_DIRECTORY -> output_directory
        - ORDER_SCHEDULER_API_HOST -> api_host
        - ORDER_SCHEDULER_API_PORT -> api_port
        - ORDER_SCHEDULER_LOG_LEVEL -> log_level

        Args:
            config_dict: Field values read from the settings file.

        Returns:
            The field values with overrides applied.
        """
        env_mappings = {
            "DATABASE_URL": "database_url",
            "MAX_WALK_DAYS": ("max_walk_days", int),
            "MAX_TASK_DURATION_DAYS": ("max_task_duration_days", int),
            "OUTPUT_FORMAT": "output_format",
            "OUTPUT_DIRECTORY": "output_directory",
            "API_HOST": "api_host",
            "API_PORT": ("api_port", int),
            "LOG_LEVEL": "log_level",
        }

        for suffix, mapping in env_mappings.items():
            env_var = self.ENV_PREFIX + suffix
            env_value = os.environ.get(env_var)
            if env_value is None:
                continue
            if isinstance(mapping, tuple):
                config_key, type_converter = mapping
                try:
                    config_dict[config_key] = type_converter(env_value)
                except ValueError:
                    logger.warning(f"Ignoring invalid value for {env_var}: {env_value}")
                    continue
            else:
                config_key = mapping
                config_dict[config_key] = env_value
            logger.debug(f"Override from env: {env_var} -> {config_key}")

        return config_dict

    def save_config(self, config: Config, output_path: Optional[str] = None) -> None:
        """
        Write a Config back in the sectioned YAML layout.

        Args:
            config: Settings to write.
            output_path: Target file, defaults to the managed settings file.
        """
        output_path = output_path or self.config_path

        config_dict = {
            "store": {"url": config.database_url},
            "scheduling": {
                "max_walk_days": config.max_walk_days,
                "max_task_duration_days": config.max_task_duration_days,
            },
            "output": {
                "format": config.output_format,
                "directory": config.output_directory,
            },
            "api": {
                "host": config.api_host,
                "port": config.api_port,
            },
            "logging": {"level": config.log_level},
        }

        Path(output_path).parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, "w", encoding="utf-8") as f:
            yaml.dump(config_dict, f, default_flow_style=False, sort_keys=False)
        logger.info(f"Saved configuration to: {output_path}")
