"""Exception taxonomy for awxclient.

Every exception raised by the build pipeline carries an explicit
:class:`~awxclient.types.FailureKind` so callers can tell a misconfiguration
from an unreachable service without looking at message text:

- ``TransportError``: AWX or the relay could not be reached, or answered with
  an unexpected error. Never retried.
- ``ConfigurationError``: inventory, group or vars misconfiguration that the
  operator must fix. Never retried.
- ``CredentialsError``: AWX rejected the configured credentials.
- ``MarkerStoreError``: the completion marker directory is unusable.
- ``CleanupError``: the host could not be cleaned up after a successful build.

Job failures and poll timeouts are not exceptions; they are reported as
:mod:`awxclient.models` outcomes.
"""

from __future__ import annotations

from typing import ClassVar

from awxclient.types import FailureKind


class BuildError(Exception):
    """Base class for errors that abort a build run."""

    kind: ClassVar[FailureKind] = FailureKind.TRANSPORT


class TransportError(BuildError):
    """Raised when a collaborator could not be reached or failed unexpectedly."""

    kind = FailureKind.TRANSPORT


class ConfigurationError(BuildError):
    """Raised when the build context or AWX inventory is misconfigured.

    Example:
        >>> raise ConfigurationError("Ensure dc1 group exists in the Foreman_Hosts inventory")
    """

    kind = FailureKind.CONFIGURATION


class CredentialsError(ConfigurationError):
    """Raised when AWX rejects the configured credentials."""

    kind = FailureKind.CREDENTIALS


class MarkerStoreError(ConfigurationError):
    """Raised when a completion marker cannot be checked or written."""

    pass


class CleanupError(BuildError):
    """Raised when post-build cleanup of the host fails."""

    kind = FailureKind.CONFIGURATION


__all__ = [
    "BuildError",
    "CleanupError",
    "ConfigurationError",
    "CredentialsError",
    "MarkerStoreError",
    "TransportError",
]
