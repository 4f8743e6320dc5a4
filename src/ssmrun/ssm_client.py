"""boto3 SSM client construction."""

import logging
from typing import Any

import boto3
from botocore.config import Config

from ssmrun import __version__

logger = logging.getLogger(__name__)


def create_ssm_client(region: str | None = None, profile: str | None = None) -> Any:
    """Create an SSM client.

    Credentials and region fall back to the standard AWS chain (environment,
    shared config, instance role) when not given.

    Args:
        region: AWS region name, e.g. "eu-west-1"
        profile: Named profile from the shared AWS config

    Returns:
        boto3 SSM client
    """
    session = boto3.session.Session(profile_name=profile, region_name=region)
    # One attempt per call; retry_handler owns retries of read-only calls
    config = Config(
        retries={"mode": "standard", "max_attempts": 1},
        user_agent_extra=f"ssmrun/{__version__}",
    )
    logger.debug(f"Creating SSM client (region={region or 'default'}, profile={profile or 'default'})")
    return session.client("ssm", config=config)


__all__ = ["create_ssm_client"]
