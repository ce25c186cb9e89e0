"""Interface to the AWX automation platform.

The build pipeline only depends on the narrow set of AWX operations declared
by :class:`AwxClient`, which allows different implementations:

- REST client (direct HTTP, :mod:`awxclient.rest_client`)
- Fake client (testing)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

# Description AWX shows for hosts this client registers.
HOST_DESCRIPTION = "Host built by Foreman"

# HTTP statuses AWX answers with when a request names something that is not there
# or is malformed, e.g. associating a host with a group id that does not exist.
CLIENT_ERROR_STATUSES = frozenset({400, 404})

# HTTP statuses AWX answers with when the configured credentials are not accepted.
AUTH_ERROR_STATUSES = frozenset({401, 403})


class AwxClientError(Exception):
    """Raised when an AWX API operation fails.

    Attributes:
        status_code: HTTP status AWX answered with, or None when the request
            never got an answer (connection refused, timeout, ...).
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code

    @property
    def is_client_error(self) -> bool:
        """Whether AWX rejected the request as malformed or naming a missing object."""
        return self.status_code in CLIENT_ERROR_STATUSES

    @property
    def is_auth_error(self) -> bool:
        """Whether AWX rejected the configured credentials."""
        return self.status_code in AUTH_ERROR_STATUSES


class AwxClient(ABC):
    """Abstract interface for the AWX operations used by the build pipeline.

    All methods are synchronous request/response calls and raise
    :class:`AwxClientError` on failure.
    """

    @abstractmethod
    def list_hosts(self, name: str) -> list[dict[str, Any]]:
        """List hosts whose name matches ``name``.

        Returns:
            Raw host records; AWX may return more than exact matches.
        """
        pass

    @abstractmethod
    def create_host(
        self,
        name: str,
        inventory_id: int,
        description: str = HOST_DESCRIPTION,
        enabled: bool = True,
    ) -> dict[str, Any]:
        """Create a host in an inventory.

        Returns:
            The raw record of the created host.
        """
        pass

    @abstractmethod
    def list_groups(self, name: str) -> list[dict[str, Any]]:
        """List groups named ``name`` across all inventories.

        Returns:
            Raw group records in the order AWX returned them.
        """
        pass

    @abstractmethod
    def associate_group(self, host_id: int, group_id: int) -> None:
        """Add an existing host to an existing group."""
        pass

    @abstractmethod
    def launch_job_template(self, template_id: int, parameters: dict[str, Any]) -> int:
        """Launch a job template.

        Args:
            template_id: AWX job template id.
            parameters: Launch-time parameters (inventory, limit, extra_vars).

        Returns:
            The id of the launched job.
        """
        pass

    @abstractmethod
    def get_host_summaries(self, job_id: int) -> list[dict[str, Any]]:
        """Fetch the per-host summaries of a job."""
        pass


__all__ = [
    "AUTH_ERROR_STATUSES",
    "HOST_DESCRIPTION",
    "AwxClient",
    "AwxClientError",
    "CLIENT_ERROR_STATUSES",
]
