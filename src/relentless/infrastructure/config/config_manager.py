"""Configuration manager for loading and validating .relentless.yml"""

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from relentless.domain.config import AppConfig, HttpConfig, RetryConfig

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".relentless.yml"

# Values of RELENTLESS_MAX_ATTEMPTS meaning "retry forever"
_UNBOUNDED_WORDS = {"forever", "unbounded", "none", "infinite"}


class ConfigurationError(Exception):
    """Configuration validation error."""

    pass


class ConfigManager:
    """Manages configuration from .relentless.yml and environment variables

    Configuration priority:
    1. Default values (defined in Pydantic models)
    2. .relentless.yml file (searched from current directory upwards)
    3. Environment variables (RELENTLESS_*)
    4. CLI arguments (handled by CLI layer)
    """

    DEFAULT_CONFIG = {
        "retry": {
            "max_attempts": None,
            "base_delay": 0.01,
            "growth_factor": 2.0,
            "max_delay": None,
            "start_index": 1,
        },
        "http": {
            "timeout": 10.0,
            "headers": {},
        },
    }

    # env var -> (section, key)
    ENV_OVERRIDES = {
        "RELENTLESS_MAX_ATTEMPTS": ("retry", "max_attempts"),
        "RELENTLESS_BASE_DELAY": ("retry", "base_delay"),
        "RELENTLESS_GROWTH_FACTOR": ("retry", "growth_factor"),
        "RELENTLESS_MAX_DELAY": ("retry", "max_delay"),
        "RELENTLESS_HTTP_TIMEOUT": ("http", "timeout"),
    }

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize config manager

        Args:
            config_path: Path to .relentless.yml (searches from current dir if None)

        Raises:
            ConfigurationError: If configuration validation fails
        """
        if isinstance(config_path, str):
            config_path = Path(config_path)
        self.config_path = config_path or self._find_config_file()
        try:
            self.config: AppConfig = self._load_config()
        except ValidationError as e:
            errors = []
            for error in e.errors():
                field = ".".join(str(x) for x in error["loc"])
                errors.append(f"  - {field}: {error['msg']}")
            raise ConfigurationError(
                "Configuration validation failed:\n" + "\n".join(errors)
            ) from e

    def _find_config_file(self) -> Optional[Path]:
        """Find .relentless.yml starting from current directory

        Returns:
            Path to config file or None if not found
        """
        current = Path.cwd()
        for parent in [current] + list(current.parents):
            config_file = parent / CONFIG_FILENAME
            if config_file.exists():
                logger.info(f"Found config file: {config_file}")
                return config_file
        logger.debug(f"No {CONFIG_FILENAME} found, using defaults")
        return None

    def _load_config(self) -> AppConfig:
        """Load configuration from file and validate with Pydantic

        Raises:
            ValidationError: If configuration is invalid
        """
        config_dict = copy.deepcopy(self.DEFAULT_CONFIG)

        if self.config_path and self.config_path.exists():
            try:
                with open(self.config_path, "r", encoding="utf-8") as f:
                    file_config = yaml.safe_load(f) or {}
                config_dict = self._merge_config(config_dict, file_config)
                logger.info(f"Loaded configuration from {self.config_path}")
            except (OSError, yaml.YAMLError) as e:
                logger.warning(f"Failed to load config from {self.config_path}: {e}")
                logger.info("Using default configuration")

        config_dict = self._apply_env_overrides(config_dict)
        return AppConfig(**config_dict)

    def _merge_config(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge configuration dictionaries"""
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_config(result[key], value)
            else:
                result[key] = value
        return result

    def _apply_env_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Apply RELENTLESS_* environment variable overrides

        Values are passed as strings; Pydantic coerces them during validation.
        """
        for env_name, (section, key) in self.ENV_OVERRIDES.items():
            value = os.getenv(env_name)
            if not value:
                continue
            if env_name == "RELENTLESS_MAX_ATTEMPTS" and value.strip().lower() in _UNBOUNDED_WORDS:
                value = None
            logger.debug(f"Overriding {section}.{key} from {env_name}")
            config.setdefault(section, {})[key] = value
        return config

    def get_retry_config(self) -> RetryConfig:
        """Get retry configuration"""
        return self.config.retry

    def get_http_config(self) -> HttpConfig:
        """Get HTTP configuration"""
        return self.config.http
