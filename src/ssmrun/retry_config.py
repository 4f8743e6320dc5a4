"""Configuration for retry logic.

This module provides configurable retry settings for read-only control-plane
calls (ListCommands, ListCommandInvocations, GetCommandInvocation).
SendCommand is never retried.

Design Philosophy:
- Ruthless simplicity: Single configuration file
- Sensible defaults: Works out of the box
- Environment-aware: Can be overridden via env vars
"""

import os
from dataclasses import dataclass


@dataclass
class RetryConfig:
    """Retry configuration settings.

    These settings control transport-level retries, not the command wait
    loop. A wait loop backs off on its own WaitConfiguration.
    """

    control_plane_max_attempts: int = 3
    control_plane_initial_delay: float = 1.0
    control_plane_max_delay: float = 30.0

    # Global settings
    jitter_enabled: bool = True

    @classmethod
    def from_environment(cls) -> "RetryConfig":
        """Load retry configuration from environment variables.

        Environment variables (all optional):
            SSMRUN_RETRY_MAX_ATTEMPTS: Max attempts per call (default: 3)
            SSMRUN_RETRY_INITIAL_DELAY: Initial delay in seconds (default: 1.0)
            SSMRUN_RETRY_MAX_DELAY: Max delay in seconds (default: 30.0)
            SSMRUN_RETRY_JITTER_ENABLED: Enable jitter (default: true)

        Returns:
            RetryConfig with values from environment or defaults
        """
        return cls(
            control_plane_max_attempts=int(os.getenv("SSMRUN_RETRY_MAX_ATTEMPTS", "3")),
            control_plane_initial_delay=float(os.getenv("SSMRUN_RETRY_INITIAL_DELAY", "1.0")),
            control_plane_max_delay=float(os.getenv("SSMRUN_RETRY_MAX_DELAY", "30.0")),
            jitter_enabled=os.getenv("SSMRUN_RETRY_JITTER_ENABLED", "true").lower() == "true",
        )


# Global configuration instance (lazily loaded)
_config: RetryConfig | None = None


def get_retry_config() -> RetryConfig:
    """Get global retry configuration.

    Returns:
        RetryConfig instance (loaded from environment on first access)
    """
    global _config
    if _config is None:
        _config = RetryConfig.from_environment()
    return _config


def reset_retry_config() -> None:
    """Reset global retry configuration.

    Forces reload from environment on next access.
    """
    global _config
    _config = None


__all__ = ["RetryConfig", "get_retry_config", "reset_retry_config"]
