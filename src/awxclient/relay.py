"""Relay client: hands a build over to the relay for hosts that can't reach AWX.

The relay answers ``200`` with the JSON string ``"successful"`` when both
jobs succeeded. Failures carry a JSON ``{"kind": ..., "detail": ...}`` body
with a status code that depends on the failure kind (see
:data:`RELAY_STATUS_CODES`); the client maps the status class back to a
:class:`~awxclient.models.BuildResult`.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

import httpx

from awxclient.logging import get_logger
from awxclient.models import BuildContext, BuildResult
from awxclient.types import BuildStatus, FailureKind

logger = get_logger(__name__)

DEFAULT_RELAY_PORT = 8080
BUILD_PATH = "/build/"

# Relay builds block until both jobs finish, which may take the better part of an hour
DEFAULT_RELAY_TIMEOUT = httpx.Timeout(10.0, read=None)

# HTTP status the relay answers with for each failure kind
RELAY_STATUS_CODES: Mapping[FailureKind, int] = MappingProxyType(
    {
        FailureKind.CONFIGURATION: 500,
        FailureKind.JOB_FAILURE: 500,
        FailureKind.RELAY: 500,
        FailureKind.TRANSPORT: 502,
        FailureKind.TIMEOUT: 504,
        FailureKind.CREDENTIALS: 401,
    }
)

RELAY_ISSUE_MESSAGE = (
    "There is an issue with the AWX Relay, please reach out to Platform Engineering."
)

CREDENTIALS_MESSAGE = (
    "Access Denied: ensure the correct credentials are in the AWX credentials file "
    "and the Foreman user has access to {inventory} in AWX"
)


def _parse_error_body(response: httpx.Response) -> tuple[FailureKind | None, str]:
    try:
        body: Any = response.json()
    except ValueError:
        return None, response.text.strip().strip('"')

    if isinstance(body, dict):
        kind_value = str(body.get("kind", ""))
        kind = FailureKind(kind_value) if FailureKind.is_valid(kind_value) else None
        return kind, str(body.get("detail", ""))
    return None, str(body)


class RelayClient:
    """Submits build requests to the relay."""

    def __init__(
        self,
        host: str,
        port: int = DEFAULT_RELAY_PORT,
        timeout: httpx.Timeout | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the relay client.

        Args:
            host: Relay host name or address.
            port: Relay port.
            timeout: Optional custom timeout configuration.
            transport: Optional httpx transport, used to stub the relay in tests.
        """
        self.host = host
        self.port = port
        self.timeout = timeout or DEFAULT_RELAY_TIMEOUT
        self._transport = transport

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}{BUILD_PATH}"

    def submit(self, context: BuildContext, mock: bool = False) -> BuildResult:
        """Ask the relay to build a host and wait for its verdict.

        Args:
            context: The build context to relay.
            mock: Whether the relay should skip the AWX calls.

        Returns:
            The build result reported by the relay. Failures to reach the
            relay are reported as TRANSPORT failures.
        """
        if not self.host:
            return BuildResult.failed(
                FailureKind.CONFIGURATION,
                f"No relay is configured for {context.host_type} host {context.fqdn}",
            )

        logger.info("Sending collected data to the AWX Relay at %s...", self.url)
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.post(self.url, json=context.to_payload(mock=mock))
        except httpx.RequestError as e:
            return BuildResult.failed(FailureKind.TRANSPORT, f"AWX Relay request failed: {e}")

        return self._result(context, response)

    def _result(self, context: BuildContext, response: httpx.Response) -> BuildResult:
        if response.status_code == 200:
            try:
                body = response.json()
            except ValueError:
                body = response.text
            if body == BuildStatus.SUCCESSFUL:
                return BuildResult.successful(
                    f"{context.breakglass_name} and {context.baseline_name} completed successfully"
                )
            return BuildResult.failed(
                FailureKind.RELAY, f"{RELAY_ISSUE_MESSAGE}\nUnknown build status {body!r}"
            )

        if response.status_code == 401:
            return BuildResult.failed(
                FailureKind.CREDENTIALS,
                f"{RELAY_ISSUE_MESSAGE}\n"
                + CREDENTIALS_MESSAGE.format(inventory=context.inventory_name),
            )

        kind, detail = _parse_error_body(response)
        if response.is_server_error:
            return BuildResult.failed(kind or FailureKind.RELAY, f"{RELAY_ISSUE_MESSAGE}\n{detail}")

        return BuildResult.failed(
            FailureKind.RELAY,
            f"{RELAY_ISSUE_MESSAGE}\nRelay rejected the build request "
            f"({response.status_code}): {detail}",
        )


__all__ = [
    "BUILD_PATH",
    "DEFAULT_RELAY_PORT",
    "RELAY_STATUS_CODES",
    "RelayClient",
]
