"""REST client implementation of the AWX interface.

Talks to the AWX ``/api/v2/`` endpoints over a pooled ``httpx.Client``.
Requests are never retried: a failing call is reported to the caller as an
:class:`~awxclient.awx.AwxClientError` carrying the HTTP status, if any.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any, Self, TypeVar

import httpx

from awxclient.awx import HOST_DESCRIPTION, AwxClient, AwxClientError
from awxclient.errors import ConfigurationError
from awxclient.host_vars import read_env_file
from awxclient.logging import get_logger

logger = get_logger(__name__)

# Default timeout for HTTP requests (connect, read, write, pool)
DEFAULT_TIMEOUT = httpx.Timeout(10.0, read=30.0)

API_PREFIX = "/api/v2"

T = TypeVar("T")


def load_credentials(path: Path) -> httpx.BasicAuth:
    """Read AWX credentials from the file Foreman leaves on the host.

    The file holds ``user=...`` and ``pass=...`` lines.

    Args:
        path: Path of the credentials file.

    Returns:
        Basic auth for the AWX API.

    Raises:
        ConfigurationError: If the file is missing or lacks either key.
    """
    try:
        values = read_env_file(path)
    except OSError as e:
        raise ConfigurationError(f"Can't read AWX credentials from {path}: {e}") from e

    username = values.get("user", "")
    password = values.get("pass", "")
    if not username or not password:
        raise ConfigurationError(
            f"AWX credentials file {path} must contain both 'user' and 'pass' entries"
        )
    return httpx.BasicAuth(username, password)


class CredentialsFileAuth(httpx.Auth):
    """Basic auth read from the credentials file on the first AWX request.

    Hosts that hand their build over to the relay never talk to AWX and may
    not have the file at all.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._auth: httpx.BasicAuth | None = None
        self._lock = threading.Lock()

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response]:
        with self._lock:
            if self._auth is None:
                self._auth = load_credentials(self.path)
            auth = self._auth
        yield from auth.auth_flow(request)


def _describe_status_error(e: httpx.HTTPStatusError) -> str:
    message = f"failed with status {e.response.status_code}"
    try:
        error_data = e.response.json()
        if isinstance(error_data, dict) and "detail" in error_data:
            message += f": {error_data['detail']}"
    except ValueError:
        # Non-JSON error body - continue with base error message
        pass
    return message


def _json_object(response: httpx.Response) -> dict[str, Any]:
    """Decode a response body that must be a JSON object.

    Raises:
        ValueError: If the body is not JSON or not an object.
    """
    data = response.json()
    if not isinstance(data, dict):
        raise ValueError(f"expected a JSON object, got {type(data).__name__}")
    return data


class AwxRestClient(AwxClient):
    """AWX client that uses direct REST API calls.

    Uses connection pooling via a reusable, lazily created ``httpx.Client``.
    The client is read-only after construction and may be shared between
    threads.
    """

    def __init__(
        self,
        base_url: str,
        auth: httpx.Auth,
        verify_tls: bool = False,
        timeout: httpx.Timeout | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the AWX REST client.

        Args:
            base_url: AWX base URL (e.g., "https://awx.example.com").
            auth: Authentication for the AWX API.
            verify_tls: Whether to verify the AWX TLS certificate.
            timeout: Optional custom timeout configuration.
            transport: Optional httpx transport, used to stub AWX in tests.
        """
        self.base_url = base_url.rstrip("/")
        self.auth = auth
        self.verify_tls = verify_tls
        self.timeout = timeout or DEFAULT_TIMEOUT
        self._transport = transport
        self._client: httpx.Client | None = None

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                auth=self.auth,
                timeout=self.timeout,
                verify=self.verify_tls,
                transport=self._transport,
            )
        return self._client

    def close(self) -> None:
        """Close the HTTP client and release resources."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def _url(self, path: str) -> str:
        return f"{self.base_url}{API_PREFIX}{path}"

    def _call(self, action: str, operation: Callable[[httpx.Client], T]) -> T:
        """Run one AWX request and translate httpx failures.

        Args:
            action: Short description used in error messages.
            operation: Callable performing the request with the pooled client.

        Returns:
            Result from the operation.

        Raises:
            AwxClientError: If the request fails for any reason.
        """
        try:
            return operation(self._get_client())
        except httpx.TimeoutException as e:
            raise AwxClientError(f"AWX {action} timed out: {e}") from e
        except httpx.HTTPStatusError as e:
            raise AwxClientError(
                f"AWX {action} {_describe_status_error(e)}",
                status_code=e.response.status_code,
            ) from e
        except httpx.RequestError as e:
            raise AwxClientError(f"AWX {action} request failed: {e}") from e
        except ValueError as e:
            # Covers non-JSON bodies such as a proxy's HTML error page
            raise AwxClientError(f"AWX {action} returned a malformed response: {e}") from e

    def _list(self, action: str, path: str, params: dict[str, Any]) -> list[dict[str, Any]]:
        """GET a paginated AWX collection and return all of its results in order."""

        def do_list(client: httpx.Client) -> list[dict[str, Any]]:
            results: list[dict[str, Any]] = []
            url: str | None = self._url(path)
            query: dict[str, Any] | None = params
            while url:
                response = client.get(url, params=query)
                response.raise_for_status()
                data = _json_object(response)
                page = data.get("results", [])
                if not isinstance(page, list) or not all(isinstance(r, dict) for r in page):
                    raise ValueError("'results' is not a list of objects")
                results.extend(page)
                next_page = data.get("next")
                # AWX returns "next" as a server-relative path including the query
                url = f"{self.base_url}{next_page}" if next_page else None
                query = None
            return results

        return self._call(action, do_list)

    def list_hosts(self, name: str) -> list[dict[str, Any]]:
        logger.debug("Listing AWX hosts named %s", name)
        return self._list("host lookup", "/hosts/", {"name": name})

    def create_host(
        self,
        name: str,
        inventory_id: int,
        description: str = HOST_DESCRIPTION,
        enabled: bool = True,
    ) -> dict[str, Any]:
        payload = {
            "name": name,
            "inventory": inventory_id,
            "description": description,
            "enabled": enabled,
        }

        def do_create(client: httpx.Client) -> dict[str, Any]:
            response = client.post(self._url("/hosts/"), json=payload)
            response.raise_for_status()
            return _json_object(response)

        return self._call("host creation", do_create)

    def list_groups(self, name: str) -> list[dict[str, Any]]:
        logger.debug("Listing AWX groups named %s", name)
        return self._list("group lookup", "/groups/", {"name": name})

    def associate_group(self, host_id: int, group_id: int) -> None:
        def do_associate(client: httpx.Client) -> None:
            response = client.post(self._url(f"/hosts/{host_id}/groups/"), json={"id": group_id})
            response.raise_for_status()

        self._call("group association", do_associate)

    def launch_job_template(self, template_id: int, parameters: dict[str, Any]) -> int:
        def do_launch(client: httpx.Client) -> int:
            response = client.post(
                self._url(f"/job_templates/{template_id}/launch/"), json=parameters
            )
            response.raise_for_status()
            data = _json_object(response)
            job_id = data.get("job") or data.get("id")
            if not job_id:
                raise AwxClientError(
                    f"AWX launch of job template {template_id} returned no job id"
                )
            return int(job_id)

        return self._call("job launch", do_launch)

    def get_host_summaries(self, job_id: int) -> list[dict[str, Any]]:
        return self._list("job status lookup", f"/jobs/{job_id}/job_host_summaries/", {})


__all__ = [
    "API_PREFIX",
    "AwxRestClient",
    "CredentialsFileAuth",
    "DEFAULT_TIMEOUT",
    "load_credentials",
]
