"""Build variables left on the host by Foreman and published on the build server.

A build needs two sources of information:

- the environment file Foreman writes to ``/etc`` after provisioning
  (``KEY=VALUE`` lines: build server, facility, host type, OS release, ...);
- an AWX vars JSON file published on the build server per distro and host
  type (job template names and ids, inventory, reboot flag).

:func:`read_build_context` combines both into a :class:`BuildContext`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError

from awxclient.errors import ConfigurationError, TransportError
from awxclient.logging import get_logger
from awxclient.models import BuildContext
from awxclient.types import Distro, HostType

logger = get_logger(__name__)

# Environment files Foreman may leave behind; later entries win when both exist
DEFAULT_ENV_FILES = (Path("/etc/dss.env"), Path("/etc/bam.env"))

ROCKY_RELEASE_FILE = Path("/etc/rocky-release")

# Path on the build server under which the AWX vars files are published
DEFAULT_VARS_PATH = "awxclient-dev/awxvars/"

_ENV_LINE = re.compile(r"(?m)^(.+?)=(.+)$")

# Keys every Foreman environment file must define
_REQUIRED_ENV_KEYS = ("build_server", "facility", "type", "buildip", "osmajor", "osminor")


def read_env_file(path: Path) -> dict[str, str]:
    """Read a ``KEY=VALUE`` file into a dict with lowercase keys.

    Lines without a ``=`` or with an empty side are ignored.

    Raises:
        OSError: If the file cannot be read.
    """
    text = path.read_text(encoding="utf-8")
    return {key.strip().lower(): value.strip() for key, value in _ENV_LINE.findall(text)}


def detect_distro(release_file: Path = ROCKY_RELEASE_FILE) -> Distro:
    """Detect whether the host runs Rocky Linux or CentOS."""
    return Distro.ROCKY if release_file.exists() else Distro.CENTOS


@dataclass(frozen=True)
class HostEnvironment:
    """Variables Foreman leaves on a freshly provisioned host."""

    build_server: str
    facility: str
    host_type: HostType
    build_ip: str
    os_major: str
    os_minor: str
    relay: str = ""

    @property
    def desired_release(self) -> str:
        return f"{self.os_major}.{self.os_minor}"


def read_host_environment(candidates: tuple[Path, ...] = DEFAULT_ENV_FILES) -> HostEnvironment:
    """Read and validate the Foreman environment file.

    Args:
        candidates: Environment files to look for; the last existing one is used.

    Returns:
        The host environment.

    Raises:
        ConfigurationError: If no file exists or a required key is missing.
    """
    existing = [path for path in candidates if path.exists()]
    if not existing:
        raise ConfigurationError("Can't find environment file containing Foreman variables")
    env_file = existing[-1]

    try:
        values = read_env_file(env_file)
    except OSError as e:
        raise ConfigurationError(f"Can't read Foreman variables from {env_file}: {e}") from e

    for key in _REQUIRED_ENV_KEYS:
        if not values.get(key):
            raise ConfigurationError(
                f"{key} key is empty. Ensure {env_file} contains the correct data"
            )

    host_type = values["type"].lower()
    if not HostType.is_valid(host_type):
        raise ConfigurationError(
            f"Unknown host type '{values['type']}' in {env_file}. "
            f"Valid values: {', '.join(sorted(HostType.values()))}"
        )

    return HostEnvironment(
        build_server=values["build_server"],
        facility=values["facility"],
        host_type=HostType(host_type),
        build_ip=values["buildip"],
        os_major=values["osmajor"],
        os_minor=values["osminor"],
        relay=values.get("mtrelay", ""),
    )


class AwxVars(BaseModel):
    """Contents of an AWX vars file published on the build server."""

    model_config = ConfigDict(extra="ignore")

    baselinename: str
    baselineid: int
    breakglassname: str
    breakglassid: int
    inventoryname: str
    inventoryid: int
    reboot: bool = False


class AwxVarsReader:
    """Fetches the AWX vars file matching a host's distro and type."""

    def __init__(
        self,
        vars_path: str = DEFAULT_VARS_PATH,
        timeout: httpx.Timeout | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the reader.

        Args:
            vars_path: Path under the build server URL where vars files live.
            timeout: Optional custom timeout for fetching vars files.
            transport: Optional httpx transport, used to stub the build server in tests.
        """
        self.vars_path = vars_path
        self.timeout = timeout or httpx.Timeout(10.0)
        self._transport = transport

    def default_location(self, env: HostEnvironment, distro: Distro) -> str:
        """URL of the vars file for a host, e.g. ``.../awxvars/rocky-internal.json``."""
        return f"{env.build_server}{self.vars_path}{distro}-{env.host_type}.json"

    def read(self, location: str) -> AwxVars:
        """Read a vars file from a URL or a local path.

        Raises:
            ConfigurationError: If the file does not exist or is malformed.
            TransportError: If the build server cannot be reached.
        """
        if location.startswith(("http://", "https://")):
            raw = self._fetch(location)
        else:
            try:
                raw = Path(location).read_text(encoding="utf-8")
            except OSError as e:
                raise ConfigurationError(f"Can't read AWX vars file {location}: {e}") from e

        try:
            return AwxVars.model_validate_json(raw)
        except ValidationError as e:
            raise ConfigurationError(f"AWX vars file {location} is malformed: {e}") from e

    def _fetch(self, url: str) -> str:
        logger.debug("Fetching AWX vars from %s", url)
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.get(url)
        except httpx.RequestError as e:
            raise TransportError(f"Fetching AWX vars from {url} failed: {e}") from e

        if response.status_code == 404:
            raise ConfigurationError(f"404: can't find {url}")
        if response.status_code != 200:
            raise TransportError(
                f"Fetching AWX vars from {url} failed with status {response.status_code}"
            )
        return response.text


def build_context(fqdn: str, env: HostEnvironment, awx_vars: AwxVars) -> BuildContext:
    """Combine the host environment and AWX vars into a build context."""
    return BuildContext(
        fqdn=fqdn,
        breakglass_id=awx_vars.breakglassid,
        breakglass_name=awx_vars.breakglassname,
        baseline_id=awx_vars.baselineid,
        baseline_name=awx_vars.baselinename,
        inventory_id=awx_vars.inventoryid,
        inventory_name=awx_vars.inventoryname,
        desired_release=env.desired_release,
        reboot=awx_vars.reboot,
        host_type=env.host_type,
        facility=env.facility,
    )


def read_build_context(
    fqdn: str,
    reader: AwxVarsReader,
    source: str | None = None,
    env_files: tuple[Path, ...] = DEFAULT_ENV_FILES,
    release_file: Path = ROCKY_RELEASE_FILE,
) -> tuple[BuildContext, HostEnvironment]:
    """Read everything a build needs for the given host.

    Args:
        fqdn: Host being built.
        reader: Reader used to fetch the AWX vars file.
        source: Alternate vars file location (URL or local path); the build
            server's default file is used when None.
        env_files: Candidate Foreman environment files.
        release_file: File whose presence marks a Rocky Linux host.

    Returns:
        The build context and the host environment it was derived from.
    """
    env = read_host_environment(env_files)
    location = source or reader.default_location(env, detect_distro(release_file))
    logger.info("Reading AWX vars from %s", location)
    awx_vars = reader.read(location)
    return build_context(fqdn, env, awx_vars), env


__all__ = [
    "AwxVars",
    "AwxVarsReader",
    "DEFAULT_ENV_FILES",
    "DEFAULT_VARS_PATH",
    "HostEnvironment",
    "ROCKY_RELEASE_FILE",
    "build_context",
    "detect_distro",
    "read_build_context",
    "read_env_file",
    "read_host_environment",
]
