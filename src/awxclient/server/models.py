"""Pydantic request model for the relay build endpoint."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from awxclient.models import BuildContext
from awxclient.types import HostType


class BuildRequest(BaseModel):
    """Build request relayed by a host that can't reach AWX.

    Field names follow the relay wire format produced by
    :meth:`awxclient.models.BuildContext.to_payload`.
    """

    model_config = ConfigDict(extra="ignore")

    fqdn: str = Field(min_length=1)
    breakglassid: int
    breakglassname: str
    baselineid: int
    baselinename: str
    invid: int
    invname: str
    desiredrelease: str
    reboot: bool = False
    type: HostType
    facility: str = Field(min_length=1)
    mock: bool = False

    def to_context(self) -> BuildContext:
        return BuildContext(
            fqdn=self.fqdn,
            breakglass_id=self.breakglassid,
            breakglass_name=self.breakglassname,
            baseline_id=self.baselineid,
            baseline_name=self.baselinename,
            inventory_id=self.invid,
            inventory_name=self.invname,
            desired_release=self.desiredrelease,
            reboot=self.reboot,
            host_type=self.type,
            facility=self.facility,
        )


__all__ = ["BuildRequest"]
