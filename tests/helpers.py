"""Test data builders shared across awxclient tests."""

from __future__ import annotations

from dataclasses import replace
from typing import Any

from awxclient.models import BuildContext
from awxclient.types import HostType


def make_context(**overrides: Any) -> BuildContext:
    """Build context for an internal CentOS 7 host in dc1, overridable per field."""
    context = BuildContext(
        fqdn="web01.example.com",
        breakglass_id=10,
        breakglass_name="Breakglass",
        baseline_id=20,
        baseline_name="Baseline",
        inventory_id=44,
        inventory_name="Foreman_Hosts",
        desired_release="7.9",
        reboot=True,
        host_type=HostType.INTERNAL,
        facility="dc1",
    )
    return replace(context, **overrides)


def summary_record(
    job_id: int,
    status: str,
    failed: bool = False,
    template_name: str = "Breakglass",
    host_name: str = "web01.example.com",
) -> dict[str, Any]:
    """A ``/jobs/{id}/job_host_summaries/`` record as AWX returns it."""
    return {
        "job": job_id,
        "host_name": host_name,
        "failed": failed,
        "summary_fields": {
            "job": {"id": job_id, "status": status, "job_template_name": template_name},
            "host": {"name": host_name},
        },
    }
