"""Data model for the build pipeline.

Holds the immutable inputs of a build (:class:`BuildContext`,
:class:`JobSpec`), the AWX records the pipeline reads
(:class:`InventoryHost`, :class:`HostSummary`), the tagged
:data:`JobOutcome` variants produced by launching a job, and the aggregate
:class:`BuildResult` handed back to the CLI or the relay.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, ClassVar

from awxclient.types import BuildStatus, FailureKind, HostType, OutcomeKind


@dataclass(frozen=True)
class BuildContext:
    """Everything both jobs of a build need, constructed once per run.

    Attributes:
        fqdn: Fully qualified name of the host being built.
        breakglass_id: AWX job template id of the breakglass job.
        breakglass_name: AWX job template name of the breakglass job.
        baseline_id: AWX job template id of the baseline job.
        baseline_name: AWX job template name of the baseline job.
        inventory_id: AWX inventory the host belongs in.
        inventory_name: Display name of that inventory.
        desired_release: OS release the baseline job converges to (e.g. "8.6").
        reboot: Whether the host reboots once the build completes.
        host_type: Whether the host runs its jobs locally or via the relay.
        facility: Datacenter name, which is also the AWX group name.
    """

    fqdn: str
    breakglass_id: int
    breakglass_name: str
    baseline_id: int
    baseline_name: str
    inventory_id: int
    inventory_name: str
    desired_release: str
    reboot: bool
    host_type: HostType
    facility: str

    def to_payload(self, mock: bool = False) -> dict[str, Any]:
        """Serialize to the relay wire format.

        Args:
            mock: Whether the relay should run the build in mock mode.

        Returns:
            JSON-serializable dict keyed by the relay's field names.
        """
        return {
            "fqdn": self.fqdn,
            "breakglassid": self.breakglass_id,
            "breakglassname": self.breakglass_name,
            "baselineid": self.baseline_id,
            "baselinename": self.baseline_name,
            "invid": self.inventory_id,
            "invname": self.inventory_name,
            "desiredrelease": self.desired_release,
            "reboot": self.reboot,
            "type": self.host_type.value,
            "facility": self.facility,
            "mock": mock,
        }


@dataclass(frozen=True)
class JobSpec:
    """A single job template launch against one host.

    The parameter mapping is frozen on construction.
    """

    template_id: int
    template_name: str
    target_host: str
    parameters: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "parameters", MappingProxyType(dict(self.parameters)))

    @classmethod
    def breakglass(cls, context: BuildContext) -> JobSpec:
        """Build the breakglass launch for a build context."""
        return cls(
            template_id=context.breakglass_id,
            template_name=context.breakglass_name,
            target_host=context.fqdn,
            parameters={"inventory": context.inventory_id, "limit": context.fqdn},
        )

    @classmethod
    def baseline(cls, context: BuildContext) -> JobSpec:
        """Build the baseline launch for a build context.

        The baseline job never reboots the host itself; rebooting is left to
        post-build cleanup.
        """
        return cls(
            template_id=context.baseline_id,
            template_name=context.baseline_name,
            target_host=context.fqdn,
            parameters={
                "inventory": context.inventory_id,
                "limit": context.fqdn,
                "extra_vars": {"desired_release": context.desired_release, "reboot": False},
            },
        )


@dataclass(frozen=True)
class InventoryHost:
    """A host as registered in an AWX inventory."""

    name: str
    inventory_id: int
    group_id: int | None = None
    exists: bool = True
    host_id: int | None = None

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> InventoryHost:
        """Create an InventoryHost from an AWX ``/hosts/`` record."""
        return cls(
            name=data.get("name", ""),
            inventory_id=int(data.get("inventory") or 0),
            host_id=data.get("id"),
        )


@dataclass(frozen=True)
class HostSummary:
    """Per-host summary of an AWX job run.

    Attributes:
        job_id: The AWX job id the summary belongs to.
        host_name: Host the summary describes.
        failed: The per-host failure flag reported by AWX.
        job_status: Status of the job as a whole (e.g. "running").
        template_name: Name of the job template that launched the job.
    """

    job_id: int
    host_name: str = ""
    failed: bool = False
    job_status: str = ""
    template_name: str = ""

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> HostSummary:
        """Create a HostSummary from an AWX ``/jobs/{id}/job_host_summaries/`` record.

        Args:
            data: Raw summary record from the AWX API.

        Returns:
            HostSummary instance.
        """
        summary_fields = data.get("summary_fields") or {}
        job = summary_fields.get("job") or {}

        host_name = data.get("host_name")
        if not host_name:
            host_name = (summary_fields.get("host") or {}).get("name", "")

        return cls(
            job_id=int(data.get("job") or job.get("id") or 0),
            host_name=host_name,
            failed=bool(data.get("failed", False)),
            job_status=job.get("status", ""),
            template_name=job.get("job_template_name", ""),
        )


@dataclass(frozen=True)
class JobSucceeded:
    """The job ran to completion, or had already done so in a prior run."""

    kind: ClassVar[OutcomeKind] = OutcomeKind.SUCCEEDED
    summary: HostSummary | None = None
    short_circuited: bool = False

    @property
    def succeeded(self) -> bool:
        return True

    def describe(self) -> str:
        if self.short_circuited:
            return "already completed in a previous run"
        status = self.summary.job_status if self.summary else "successful"
        return f"finished with status {status}"


@dataclass(frozen=True)
class JobFailed:
    """The job itself reported failure."""

    kind: ClassVar[OutcomeKind] = OutcomeKind.FAILED
    reason: str
    job_id: int
    template_name: str = ""
    failed_at: datetime | None = None

    @property
    def succeeded(self) -> bool:
        return False

    def describe(self) -> str:
        return self.reason


@dataclass(frozen=True)
class JobTimedOut:
    """The job did not reach a terminal state within the poll ceiling.

    Attributes:
        job_id: The AWX job that was being polled.
        elapsed_seconds: Seconds actually waited. Polling stops once the next
            wait would cross the ceiling, so this never exceeds it; with the
            default timing it equals the 1800 s ceiling.
    """

    kind: ClassVar[OutcomeKind] = OutcomeKind.TIMED_OUT
    job_id: int
    elapsed_seconds: float

    @property
    def succeeded(self) -> bool:
        return False

    def describe(self) -> str:
        return (
            f"job ID {self.job_id} didn't complete after {self.elapsed_seconds:.0f} seconds, "
            "something is probably wrong with AWX"
        )


@dataclass(frozen=True)
class JobTransportError:
    """The job could not be submitted or its status could not be read."""

    kind: ClassVar[OutcomeKind] = OutcomeKind.TRANSPORT_ERROR
    cause: Exception

    @property
    def succeeded(self) -> bool:
        return False

    def describe(self) -> str:
        return str(self.cause)


JobOutcome = JobSucceeded | JobFailed | JobTimedOut | JobTransportError

# Build failure kind reported for each unsuccessful outcome kind.
OUTCOME_FAILURE_KINDS: Mapping[OutcomeKind, FailureKind] = MappingProxyType(
    {
        OutcomeKind.FAILED: FailureKind.JOB_FAILURE,
        OutcomeKind.TIMED_OUT: FailureKind.TIMEOUT,
        OutcomeKind.TRANSPORT_ERROR: FailureKind.TRANSPORT,
    }
)


@dataclass(frozen=True)
class BuildResult:
    """Aggregate result of a build run.

    Attributes:
        status: SUCCESSFUL or FAILED.
        kind: Why the build failed; None when it succeeded.
        detail: Human-readable message for the operator.
    """

    status: BuildStatus
    kind: FailureKind | None = None
    detail: str = ""

    @property
    def succeeded(self) -> bool:
        return self.status is BuildStatus.SUCCESSFUL

    @classmethod
    def successful(cls, detail: str = "") -> BuildResult:
        return cls(status=BuildStatus.SUCCESSFUL, detail=detail)

    @classmethod
    def failed(cls, kind: FailureKind, detail: str) -> BuildResult:
        return cls(status=BuildStatus.FAILED, kind=kind, detail=detail)

    @classmethod
    def from_outcome(cls, outcome: JobOutcome) -> BuildResult:
        """Map a job outcome to a build result, preserving the failure kind."""
        if outcome.succeeded:
            return cls.successful(outcome.describe())
        return cls.failed(OUTCOME_FAILURE_KINDS[outcome.kind], outcome.describe())


__all__ = [
    "BuildContext",
    "BuildResult",
    "HostSummary",
    "InventoryHost",
    "JobFailed",
    "JobOutcome",
    "JobSpec",
    "JobSucceeded",
    "JobTimedOut",
    "JobTransportError",
    "OUTCOME_FAILURE_KINDS",
]
