"""Configuration management module.

Loads user defaults for ssmrun from a TOML file. Command-line options always
override file values; the file only saves typing for settings that rarely
change (region, profile, wait bounds).

Example ~/.ssmrun/config.toml:

    region = "eu-west-1"
    profile = "ops"
    max_wait_time = 900
    min_delay = 5
    max_delay = 60
    log_failed_invocations = true
    fanout_workers = 4
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

try:
    import tomli  # type: ignore[import]
except ImportError:
    # Python 3.11+ ships the same parser
    import tomllib as tomli  # type: ignore[import,no-redef]

from ssmrun.command_waiter import DEFAULT_MAX_DELAY, DEFAULT_MIN_DELAY
from ssmrun.exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_MAX_WAIT_TIME = 600


@dataclass
class SsmrunConfig:
    """ssmrun configuration data."""

    region: str | None = None
    profile: str | None = None
    max_wait_time: int = DEFAULT_MAX_WAIT_TIME
    min_delay: float = DEFAULT_MIN_DELAY
    max_delay: float = DEFAULT_MAX_DELAY
    log_failed_invocations: bool = True
    fanout_workers: int = 1

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SsmrunConfig":
        """Create from dictionary, validating value types.

        Raises:
            ConfigError: If a known key has a value of the wrong type
        """
        config = cls(
            region=data.get("region"),
            profile=data.get("profile"),
            max_wait_time=data.get("max_wait_time", DEFAULT_MAX_WAIT_TIME),
            min_delay=data.get("min_delay", DEFAULT_MIN_DELAY),
            max_delay=data.get("max_delay", DEFAULT_MAX_DELAY),
            log_failed_invocations=data.get("log_failed_invocations", True),
            fanout_workers=data.get("fanout_workers", 1),
        )
        config._validate()
        return config

    def _validate(self) -> None:
        for name in ("region", "profile"):
            value = getattr(self, name)
            if value is not None and not isinstance(value, str):
                raise ConfigError(f"{name} must be a string, got {value!r}")
        for name in ("max_wait_time", "fanout_workers"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ConfigError(f"{name} must be a positive integer, got {value!r}")
        for name in ("min_delay", "max_delay"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
                raise ConfigError(f"{name} must be a positive number, got {value!r}")
        if not isinstance(self.log_failed_invocations, bool):
            raise ConfigError(
                f"log_failed_invocations must be true or false, got {self.log_failed_invocations!r}"
            )


class ConfigManager:
    """Load the ssmrun configuration file.

    Configuration is read from ~/.ssmrun/config.toml unless a path is given.
    """

    DEFAULT_CONFIG_DIR = Path.home() / ".ssmrun"
    DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.toml"

    @classmethod
    def get_config_path(cls, custom_path: str | None = None) -> Path:
        """Get configuration file path.

        Args:
            custom_path: Custom config file path (optional)

        Returns:
            Path to config file

        Raises:
            ConfigError: If a custom path was given and does not exist
        """
        if custom_path:
            path = Path(custom_path).expanduser().resolve()
            if not path.exists():
                raise ConfigError(f"Config file not found: {path}")
            return path

        return cls.DEFAULT_CONFIG_FILE

    @classmethod
    def load_config(cls, custom_path: str | None = None) -> SsmrunConfig:
        """Load configuration from file.

        A missing default file is not an error; defaults are returned.

        Args:
            custom_path: Custom config file path (optional)

        Returns:
            SsmrunConfig object

        Raises:
            ConfigError: If the file cannot be read or is invalid
        """
        config_path = cls.get_config_path(custom_path)

        if not config_path.exists():
            logger.debug("Config file not found, using defaults")
            return SsmrunConfig()

        try:
            with open(config_path, "rb") as f:
                data = tomli.load(f)
        except (OSError, tomli.TOMLDecodeError) as e:
            raise ConfigError(f"Failed to load config: {e}") from e

        logger.debug(f"Loaded config from: {config_path}")
        return SsmrunConfig.from_dict(data)


__all__ = ["ConfigManager", "SsmrunConfig"]
