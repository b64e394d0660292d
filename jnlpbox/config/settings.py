"""
Configuration loading for jnlpbox.

Settings come from several sources:
1. Environment variables (highest precedence)
2. Command-line provided config file
3. Config file in current directory
4. User's XDG config directory
5. Default values (lowest precedence)
"""

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from jnlpbox.config.models import JnlpboxSettings
from jnlpbox.core.errors import ConfigError
from jnlpbox.core.structlog_logger import get_struct_logger


logger = get_struct_logger(__name__)

ENV_PREFIX = "JNLPBOX_"


def _format_validation_error(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first["loc"]) or "<root>"
    return f"Invalid configuration value for '{location}': {first['msg']}"


class JnlpboxConfig:
    """Locates, loads and validates the settings for one CLI invocation.

    Only the first config file found is read; environment variables override
    its values field by field.
    """

    def __init__(self, cli_config_path: str | Path | None = None) -> None:
        self._cli_config_path = (
            Path(cli_config_path).expanduser().resolve() if cli_config_path else None
        )
        self._config_sources: dict[str, str] = {}
        self.config_path: Path | None = None
        self._config_paths = self._generate_config_paths()
        self._settings = self._load()

    @property
    def settings(self) -> JnlpboxSettings:
        return self._settings

    def _generate_config_paths(self) -> list[Path]:
        """Generate a list of config paths to search in order of precedence."""
        config_paths = []

        if self._cli_config_path is not None:
            config_paths.append(self._cli_config_path)

        config_paths.extend([Path.cwd() / "jnlpbox.yaml", Path.cwd() / ".jnlpbox.yml"])

        xdg_config_home = os.environ.get("XDG_CONFIG_HOME")
        base = Path(xdg_config_home) if xdg_config_home else Path.home() / ".config"
        config_paths.append(base / "jnlpbox" / "config.yaml")

        return config_paths

    def _read_file(self, path: Path) -> dict[str, Any]:
        try:
            with path.open(encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Error parsing configuration file {path}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Error reading configuration file {path}: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(
                f"Configuration file {path} must contain a mapping at the top level"
            )
        return data

    def _load(self) -> JnlpboxSettings:
        if self._cli_config_path is not None and not self._cli_config_path.is_file():
            raise ConfigError(f"Configuration file not found: {self._cli_config_path}")

        logger.debug(
            "config_search_paths", paths=[str(p) for p in self._config_paths]
        )

        data: dict[str, Any] = {}
        for path in self._config_paths:
            if path.is_file():
                data = self._read_file(path)
                self.config_path = path
                self._track_file_sources(data, path.name)
                logger.debug("config_file_loaded", path=str(path))
                break
        else:
            logger.debug("config_file_not_found")

        try:
            settings = JnlpboxSettings(**data)
        except ValidationError as e:
            raise ConfigError(
                _format_validation_error(e),
                {"config_path": str(self.config_path) if self.config_path else None},
            ) from e

        self._track_env_var_sources()
        if logging.getLogger().isEnabledFor(logging.DEBUG):
            logger.debug(
                "config_resolved",
                log_level=settings.log_level,
                workers=settings.workers,
                signing_skip=settings.signing.skip,
                sources=self._config_sources,
            )
        return settings

    def _track_file_sources(
        self, data: dict[str, Any], filename: str, prefix: str = ""
    ) -> None:
        for key, value in data.items():
            current_key = f"{prefix}.{key}" if prefix else str(key)
            if isinstance(value, dict):
                self._track_file_sources(value, filename, current_key)
            else:
                self._config_sources[current_key] = f"file:{filename}"

    def _track_env_var_sources(self) -> None:
        for env_name in os.environ:
            if env_name.upper().startswith(ENV_PREFIX):
                key = env_name[len(ENV_PREFIX) :].lower().replace("__", ".")
                self._config_sources[key] = "environment"

    def get_source(self, key: str) -> str:
        """Source of a dotted key: ``environment``, ``file:<name>`` or ``default``."""
        return self._config_sources.get(key, "default")


def create_jnlpbox_config(cli_config_path: str | Path | None = None) -> JnlpboxConfig:
    """Factory function to create a JnlpboxConfig instance."""
    return JnlpboxConfig(cli_config_path)


def load_settings(config_path: str | Path | None = None) -> JnlpboxSettings:
    """Load validated settings.

    Raises:
        ConfigError: If a config file cannot be read or a value is invalid
    """
    return create_jnlpbox_config(config_path).settings


__all__ = ["JnlpboxConfig", "create_jnlpbox_config", "load_settings"]
