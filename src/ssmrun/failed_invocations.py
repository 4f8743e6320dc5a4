"""Collect output of failed command invocations.

Once a command wait has failed, the instances it ran on are known. This
module lists the invocations the control plane marked Failed and fetches the
full detail (stdout, stderr, status details) of each one.

Detail fetches run one at a time by default. With max_workers > 1 they run on
a bounded thread pool; results keep the order of the invocation list either
way.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ssmrun.exceptions import DetailFetchError
from ssmrun.retry_handler import call_with_retry

logger = logging.getLogger(__name__)

FAILED_STATUS_FILTER = {"key": "Status", "value": "Failed"}


class FanoutPolicy(str, Enum):
    """What to do when one detail fetch fails."""

    FAIL_FAST = "fail-fast"
    BEST_EFFORT = "best-effort"


@dataclass
class InvocationDetail:
    """GetCommandInvocation result for one instance."""

    command_id: str
    instance_id: str
    status: str | None = None
    status_details: str | None = None
    standard_output: str = ""
    standard_error: str = ""
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_response(cls, response: dict[str, Any]) -> "InvocationDetail":
        """Create from a GetCommandInvocation response."""
        return cls(
            command_id=response.get("CommandId", ""),
            instance_id=response.get("InstanceId", ""),
            status=response.get("Status"),
            status_details=response.get("StatusDetails"),
            standard_output=response.get("StandardOutputContent") or "",
            standard_error=response.get("StandardErrorContent") or "",
            raw=response,
        )


def list_failed_instance_ids(client: Any, command_id: str) -> list[str]:
    """List ids of instances whose invocation of command_id failed.

    Follows NextToken so that large fleets are listed completely. Invocations
    without an InstanceId are skipped.
    """
    instance_ids: list[str] = []
    kwargs: dict[str, Any] = {"CommandId": command_id, "Filters": [FAILED_STATUS_FILTER]}

    while True:
        response = call_with_retry(client.list_command_invocations, **kwargs)
        for invocation in response.get("CommandInvocations") or []:
            instance_id = invocation.get("InstanceId")
            if instance_id:
                instance_ids.append(instance_id)

        next_token = response.get("NextToken")
        if not next_token:
            return instance_ids
        kwargs["NextToken"] = next_token


def fetch_invocation_detail(client: Any, command_id: str, instance_id: str) -> InvocationDetail:
    """Fetch stdout/stderr and status of one invocation.

    Raises:
        DetailFetchError: If the control plane call fails
    """
    try:
        response = call_with_retry(
            client.get_command_invocation, CommandId=command_id, InstanceId=instance_id
        )
    except Exception as e:
        raise DetailFetchError(
            f"Failed to fetch invocation of {command_id} on {instance_id}: {e}",
            failed_instance_ids=[instance_id],
        ) from e
    return InvocationDetail.from_response(response)


def collect_failed_invocations(
    client: Any,
    command_id: str,
    *,
    policy: FanoutPolicy = FanoutPolicy.FAIL_FAST,
    max_workers: int = 1,
) -> list[InvocationDetail]:
    """Fetch the detail of every failed invocation of a command.

    Args:
        client: boto3 SSM client
        command_id: Command to inspect
        policy: FAIL_FAST stops at the first failed fetch; BEST_EFFORT
            fetches every target before raising
        max_workers: Number of concurrent detail fetches (1 = sequential)

    Returns:
        Details in the order the control plane listed the invocations;
        empty if nothing failed

    Raises:
        DetailFetchError: A detail fetch failed. The error carries the
            details collected so far and the instances that could not be
            fetched.
    """
    instance_ids = list_failed_instance_ids(client, command_id)
    logger.debug(f"Command {command_id} has {len(instance_ids)} failed invocations")

    if not instance_ids:
        return []

    if max_workers <= 1:
        return _collect_sequential(client, command_id, instance_ids, policy)
    return _collect_parallel(client, command_id, instance_ids, policy, max_workers)


def _collect_sequential(
    client: Any, command_id: str, instance_ids: list[str], policy: FanoutPolicy
) -> list[InvocationDetail]:
    details: list[InvocationDetail] = []
    failed: list[str] = []
    errors: list[DetailFetchError] = []

    for instance_id in instance_ids:
        try:
            details.append(fetch_invocation_detail(client, command_id, instance_id))
        except DetailFetchError as e:
            if policy == FanoutPolicy.FAIL_FAST:
                raise DetailFetchError(
                    str(e), collected=details, failed_instance_ids=[instance_id]
                ) from e
            failed.append(instance_id)
            errors.append(e)

    _raise_if_failed(details, failed, errors)
    return details


def _collect_parallel(
    client: Any,
    command_id: str,
    instance_ids: list[str],
    policy: FanoutPolicy,
    max_workers: int,
) -> list[InvocationDetail]:
    num_workers = min(max_workers, len(instance_ids))
    logger.debug(f"Fetching {len(instance_ids)} invocations with {num_workers} workers")

    with ThreadPoolExecutor(max_workers=num_workers) as executor:
        futures = [
            executor.submit(fetch_invocation_detail, client, command_id, instance_id)
            for instance_id in instance_ids
        ]

        details: list[InvocationDetail] = []
        failed: list[str] = []
        errors: list[DetailFetchError] = []

        # Walk futures in submission order to keep list order
        for instance_id, future in zip(instance_ids, futures):
            try:
                details.append(future.result())
            except DetailFetchError as e:
                if policy == FanoutPolicy.FAIL_FAST:
                    for pending in futures:
                        pending.cancel()
                    raise DetailFetchError(
                        str(e), collected=details, failed_instance_ids=[instance_id]
                    ) from e
                failed.append(instance_id)
                errors.append(e)

    _raise_if_failed(details, failed, errors)
    return details


def _raise_if_failed(
    details: list[InvocationDetail], failed: list[str], errors: list[DetailFetchError]
) -> None:
    if not failed:
        return
    raise DetailFetchError(
        f"Failed to fetch {len(failed)} of {len(failed) + len(details)} invocations: "
        + "; ".join(str(e) for e in errors),
        collected=details,
        failed_instance_ids=failed,
    ) from errors[0]


__all__ = [
    "FanoutPolicy",
    "InvocationDetail",
    "collect_failed_invocations",
    "fetch_invocation_detail",
    "list_failed_instance_ids",
]
