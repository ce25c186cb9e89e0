"""Mock classes for awxclient tests.

This module provides reusable fake implementations of the AWX client, the
completion marker store and the clock used by the poller. The fakes record
every call so tests can assert on ordering and parameters without a real AWX.

Usage Guidelines:

    **Direct instantiation** is the preferred approach for most tests::

        from tests.mocks import FakeAwxClient, FakeClock, MemoryMarkerStore

        def test_example():
            client = FakeAwxClient(summaries={7: [[running], [successful]]})
            clock = FakeClock()
            poller = StatusPoller(client, sleep=clock.sleep)
            # ... use in test ...
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

from awxclient.awx import HOST_DESCRIPTION, AwxClient, AwxClientError
from awxclient.markers import MarkerStore
from awxclient.models import BuildContext, BuildResult


class FakeAwxClient(AwxClient):
    """In-memory AWX client.

    Args:
        hosts: Host records returned by ``list_hosts``; created hosts are appended.
        groups: Group records returned by ``list_groups``.
        job_ids: Job ids handed out by ``launch_job_template``, in order.
        summaries: Per job id, the batches of summary records returned by
            successive ``get_host_summaries`` calls. The last batch repeats.
        errors: Method name -> exception raised when that method is called.

    Attributes:
        calls: ``(method, args)`` tuples in call order.
    """

    def __init__(
        self,
        hosts: list[dict[str, Any]] | None = None,
        groups: list[dict[str, Any]] | None = None,
        job_ids: list[int] | None = None,
        summaries: dict[int, list[list[dict[str, Any]]]] | None = None,
        errors: dict[str, AwxClientError] | None = None,
    ) -> None:
        self.hosts = hosts if hosts is not None else []
        self.groups = groups if groups is not None else []
        self.job_ids = list(job_ids) if job_ids is not None else [1, 2]
        self.summaries = summaries if summaries is not None else {}
        self.errors = errors if errors is not None else {}
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self._next_host_id = 100
        self._summary_calls: dict[int, int] = {}

    def _record(self, method: str, *args: Any) -> None:
        self.calls.append((method, args))
        if method in self.errors:
            raise self.errors[method]

    def method_calls(self, method: str) -> list[tuple[Any, ...]]:
        return [args for name, args in self.calls if name == method]

    def list_hosts(self, name: str) -> list[dict[str, Any]]:
        self._record("list_hosts", name)
        return [host for host in self.hosts if name in host.get("name", "")]

    def create_host(
        self,
        name: str,
        inventory_id: int,
        description: str = HOST_DESCRIPTION,
        enabled: bool = True,
    ) -> dict[str, Any]:
        self._record("create_host", name, inventory_id, description, enabled)
        record = {"id": self._next_host_id, "name": name, "inventory": inventory_id}
        self._next_host_id += 1
        self.hosts.append(record)
        return record

    def list_groups(self, name: str) -> list[dict[str, Any]]:
        self._record("list_groups", name)
        return [group for group in self.groups if group.get("name") == name]

    def associate_group(self, host_id: int, group_id: int) -> None:
        self._record("associate_group", host_id, group_id)

    def launch_job_template(self, template_id: int, parameters: dict[str, Any]) -> int:
        self._record("launch_job_template", template_id, parameters)
        return self.job_ids.pop(0)

    def get_host_summaries(self, job_id: int) -> list[dict[str, Any]]:
        self._record("get_host_summaries", job_id)
        batches = self.summaries.get(job_id, [[]])
        index = self._summary_calls.get(job_id, 0)
        self._summary_calls[job_id] = index + 1
        return batches[min(index, len(batches) - 1)]


class FakeClock:
    """Clock whose ``sleep`` advances time instantly and records every delay."""

    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2024, 3, 1, 12, 0, 0, tzinfo=UTC)
        self.sleeps: list[float] = []

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.current += timedelta(seconds=seconds)

    def now(self) -> datetime:
        return self.current

    @property
    def total_slept(self) -> float:
        return sum(self.sleeps)


class MemoryMarkerStore(MarkerStore):
    """Completion markers kept in a set."""

    def __init__(self, existing: set[tuple[str, str]] | None = None) -> None:
        self.markers: set[tuple[str, str]] = set(existing or ())
        self.created: list[tuple[str, str]] = []

    def exists(self, host: str, template_name: str) -> bool:
        return (host, template_name) in self.markers

    def create(self, host: str, template_name: str) -> None:
        self.created.append((host, template_name))
        self.markers.add((host, template_name))


class RecordingRelay:
    """Stand-in for RelayClient that returns a canned result."""

    def __init__(self, result: BuildResult) -> None:
        self.result = result
        self.submissions: list[tuple[BuildContext, bool]] = []

    def submit(self, context: BuildContext, mock: bool = False) -> BuildResult:
        self.submissions.append((context, mock))
        return self.result


class RecordingHook:
    """Success hook that records its calls and optionally raises."""

    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.calls: list[tuple[BuildContext, bool]] = []

    def __call__(self, context: BuildContext, mock: bool) -> None:
        self.calls.append((context, mock))
        if self.error is not None:
            raise self.error
