"""Type definitions and enums for awxclient.

Centralizes the string vocabularies shared between the CLI, the relay wire
format and the orchestration core so that comparisons never rely on magic
strings.

Usage:
    from awxclient.types import HostType, FailureKind

    # StrEnum members compare equal to their values
    if context.host_type == HostType.INTERNAL:
        ...

    HostType.is_valid("midtier")  # True
"""

from __future__ import annotations

from enum import StrEnum


class HostType(StrEnum):
    """Kind of host being built.

    Values:
        INTERNAL: Host that can reach AWX and runs the jobs itself ("internal")
        MIDTIER: Host that relays its build request ("midtier")
        EDGE: Host that relays its build request ("edge")
    """

    INTERNAL = "internal"
    MIDTIER = "midtier"
    EDGE = "edge"

    @property
    def runs_locally(self) -> bool:
        """Whether jobs for this host type are launched from the host itself."""
        return self is HostType.INTERNAL

    @classmethod
    def is_valid(cls, value: str) -> bool:
        """Check if a string value is a valid host type.

        Args:
            value: The string value to validate.

        Returns:
            True if the value matches a valid host type.
        """
        return value in cls._value2member_map_

    @classmethod
    def values(cls) -> frozenset[str]:
        """Return all valid host type values as a frozenset."""
        return frozenset(member.value for member in cls)


class Distro(StrEnum):
    """Linux distribution of the host being built."""

    CENTOS = "centos"
    ROCKY = "rocky"


class OutcomeKind(StrEnum):
    """Tag of a JobOutcome variant."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    TRANSPORT_ERROR = "transport_error"


class PollState(StrEnum):
    """States of the job status poller.

    ``SUBMITTED`` is the state before the first status query. ``PENDING`` and
    ``RUNNING`` are the non-terminal observed states; ``SUCCEEDED``,
    ``FAILED`` and ``TIMED_OUT`` are terminal.
    """

    SUBMITTED = "submitted"
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"

    @property
    def is_terminal(self) -> bool:
        """Whether polling stops in this state."""
        return self in (PollState.SUCCEEDED, PollState.FAILED, PollState.TIMED_OUT)


class BuildStatus(StrEnum):
    """Overall status of a build run."""

    SUCCESSFUL = "successful"
    FAILED = "failed"


class FailureKind(StrEnum):
    """Why a build run failed.

    Values:
        CONFIGURATION: Inventory, group or vars misconfiguration
        CREDENTIALS: AWX rejected the configured credentials
        TRANSPORT: AWX or relay could not be reached or answered with an error
        JOB_FAILURE: A launched AWX job reported failure
        TIMEOUT: A launched AWX job did not finish within the poll ceiling
        RELAY: The relay answered with something it should never answer
    """

    CONFIGURATION = "configuration"
    CREDENTIALS = "credentials"
    TRANSPORT = "transport"
    JOB_FAILURE = "job_failure"
    TIMEOUT = "timeout"
    RELAY = "relay"

    @classmethod
    def is_valid(cls, value: str) -> bool:
        """Check if a string value is a valid failure kind."""
        return value in cls._value2member_map_


# AWX job statuses that mean the job has not finished yet.
PENDING_JOB_STATUSES = frozenset({"new", "pending", "waiting"})
RUNNING_JOB_STATUS = "running"

# AWX job statuses that mean the job did not complete successfully.
FAILING_JOB_STATUSES = frozenset({"failed", "error", "canceled"})


__all__ = [
    "BuildStatus",
    "Distro",
    "FAILING_JOB_STATUSES",
    "FailureKind",
    "HostType",
    "OutcomeKind",
    "PENDING_JOB_STATUSES",
    "PollState",
    "RUNNING_JOB_STATUS",
]
