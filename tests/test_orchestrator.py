"""Tests for build orchestration."""

from __future__ import annotations

from awxclient.awx import AwxClientError
from awxclient.errors import CleanupError, MarkerStoreError
from awxclient.inventory import InventoryRegistrar
from awxclient.launcher import JobLauncher
from awxclient.models import BuildContext, BuildResult
from awxclient.orchestrator import Orchestrator
from awxclient.poller import StatusPoller
from awxclient.types import BuildStatus, FailureKind, HostType
from tests.helpers import make_context, summary_record
from tests.mocks import (
    FakeAwxClient,
    FakeClock,
    MemoryMarkerStore,
    RecordingHook,
    RecordingRelay,
)

DC1_GROUPS = [{"id": 7, "name": "dc1", "inventory": 44}]


def _orchestrator(
    client: FakeAwxClient,
    clock: FakeClock,
    markers: MemoryMarkerStore | None = None,
    **kwargs: object,
) -> Orchestrator:
    poller = StatusPoller(client, sleep=clock.sleep, now=clock.now)
    launcher = JobLauncher(client, poller, markers or MemoryMarkerStore())
    return Orchestrator(InventoryRegistrar(client), launcher, **kwargs)  # type: ignore[arg-type]


def _succeeding_client() -> FakeAwxClient:
    return FakeAwxClient(
        groups=DC1_GROUPS,
        job_ids=[7, 8],
        summaries={
            7: [[summary_record(7, "successful")]],
            8: [[summary_record(8, "successful", template_name="Baseline")]],
        },
    )


class TestRunJobs:
    """Tests for Orchestrator.run_jobs."""

    def test_registers_then_breakglass_then_baseline(
        self, context: BuildContext, clock: FakeClock
    ) -> None:
        client = _succeeding_client()

        result = _orchestrator(client, clock).run_jobs(context)

        assert result.status is BuildStatus.SUCCESSFUL
        assert result.detail == "Breakglass and Baseline were executed successfully"
        names = [name for name, _ in client.calls]
        assert names.index("create_host") < names.index("launch_job_template")
        assert [args[0] for args in client.method_calls("launch_job_template")] == [10, 20]
        first_baseline_query = client.calls.index(("get_host_summaries", (8,)))
        last_breakglass_query = max(
            i for i, call in enumerate(client.calls) if call == ("get_host_summaries", (7,))
        )
        assert last_breakglass_query < first_baseline_query

    def test_breakglass_failure_skips_baseline(
        self, context: BuildContext, clock: FakeClock
    ) -> None:
        client = FakeAwxClient(
            groups=DC1_GROUPS,
            job_ids=[7, 8],
            summaries={7: [[summary_record(7, "failed", failed=True)]]},
        )

        result = _orchestrator(client, clock).run_jobs(context)

        assert result.status is BuildStatus.FAILED
        assert result.kind is FailureKind.JOB_FAILURE
        assert "Check job id 7 for more info" in result.detail
        assert len(client.method_calls("launch_job_template")) == 1

    def test_timeout_kind_is_preserved(self, context: BuildContext, clock: FakeClock) -> None:
        client = FakeAwxClient(
            groups=DC1_GROUPS, job_ids=[7], summaries={7: [[summary_record(7, "running")]]}
        )

        result = _orchestrator(client, clock).run_jobs(context)

        assert result.kind is FailureKind.TIMEOUT
        assert "didn't complete after 1800 seconds" in result.detail

    def test_launch_transport_failure_kind_is_preserved(
        self, context: BuildContext, clock: FakeClock
    ) -> None:
        client = FakeAwxClient(
            groups=DC1_GROUPS,
            errors={"launch_job_template": AwxClientError("connection refused")},
        )

        result = _orchestrator(client, clock).run_jobs(context)

        assert result.kind is FailureKind.TRANSPORT

    def test_registration_failure_launches_nothing(self, clock: FakeClock) -> None:
        client = FakeAwxClient(groups=[])

        result = _orchestrator(client, clock).run_jobs(make_context())

        assert result.kind is FailureKind.CONFIGURATION
        assert result.detail == "Ensure dc1 group exists in the Foreman_Hosts inventory"
        assert client.method_calls("launch_job_template") == []

    def test_marker_write_failure_is_reported(
        self, context: BuildContext, clock: FakeClock
    ) -> None:
        class BrokenMarkers(MemoryMarkerStore):
            def create(self, host: str, template_name: str) -> None:
                raise MarkerStoreError("Can't write completion marker")

        client = _succeeding_client()

        result = _orchestrator(client, clock, BrokenMarkers()).run_jobs(context)

        assert result.kind is FailureKind.CONFIGURATION
        assert len(client.method_calls("launch_job_template")) == 1

    def test_rerun_after_success_launches_nothing(
        self, context: BuildContext, clock: FakeClock
    ) -> None:
        markers = MemoryMarkerStore()
        _orchestrator(_succeeding_client(), clock, markers).run_jobs(context)

        client = FakeAwxClient(hosts=[{"id": 5, "name": context.fqdn, "inventory": 44}])
        result = _orchestrator(client, clock, markers).run_jobs(context)

        assert result.succeeded
        assert client.method_calls("launch_job_template") == []

    def test_mock_makes_no_awx_calls(self, clock: FakeClock) -> None:
        context = make_context(fqdn="test.example.com")
        client = FakeAwxClient()
        markers = MemoryMarkerStore()

        result = _orchestrator(client, clock, markers).run_jobs(context, mock=True)

        assert result.succeeded
        assert client.calls == []
        assert clock.sleeps == []
        assert markers.created == []


class TestRun:
    """Tests for Orchestrator.run."""

    def test_internal_host_runs_locally_then_cleans_up(
        self, context: BuildContext, clock: FakeClock
    ) -> None:
        hook = RecordingHook()
        relay = RecordingRelay(BuildResult.successful())
        client = _succeeding_client()

        result = _orchestrator(client, clock, relay=relay, on_success=hook).run(context)

        assert result.succeeded
        assert relay.submissions == []
        assert hook.calls == [(context, False)]

    def test_mock_internal_build_succeeds_without_awx(self, clock: FakeClock) -> None:
        context = make_context(fqdn="test.example.com")
        hook = RecordingHook()
        client = FakeAwxClient()

        result = _orchestrator(client, clock, on_success=hook).run(context, mock=True)

        assert result.status is BuildStatus.SUCCESSFUL
        assert client.calls == []
        assert hook.calls == [(context, True)]

    def test_midtier_host_is_relayed(self, clock: FakeClock) -> None:
        context = make_context(host_type=HostType.MIDTIER, inventory_id=513)
        hook = RecordingHook()
        relay = RecordingRelay(BuildResult.successful())
        client = FakeAwxClient()

        result = _orchestrator(client, clock, relay=relay, on_success=hook).run(
            context, mock=True
        )

        assert result.succeeded
        assert relay.submissions == [(context, True)]
        assert hook.calls == [(context, True)]
        assert client.calls == []

    def test_relay_failure_skips_cleanup(self, clock: FakeClock) -> None:
        context = make_context(host_type=HostType.EDGE, inventory_id=516)
        hook = RecordingHook()
        relay = RecordingRelay(BuildResult.failed(FailureKind.TIMEOUT, "timed out"))

        result = _orchestrator(FakeAwxClient(), clock, relay=relay, on_success=hook).run(context)

        assert result.kind is FailureKind.TIMEOUT
        assert hook.calls == []

    def test_relayed_host_without_relay(self, clock: FakeClock) -> None:
        context = make_context(host_type=HostType.EDGE, inventory_id=516)

        result = _orchestrator(FakeAwxClient(), clock).run(context)

        assert result.kind is FailureKind.CONFIGURATION
        assert "no relay is configured" in result.detail

    def test_cleanup_failure_fails_the_build(
        self, context: BuildContext, clock: FakeClock
    ) -> None:
        hook = RecordingHook(CleanupError("Can't find the awxclient* systemd unit"))

        result = _orchestrator(_succeeding_client(), clock, on_success=hook).run(context)

        assert result.status is BuildStatus.FAILED
        assert result.kind is FailureKind.CONFIGURATION
        assert "systemd unit" in result.detail
