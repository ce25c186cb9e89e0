"""Completion markers: durable proof that a job already succeeded for a host.

A host re-runs the build program after every reboot until the build is
cleaned up, so each successful job leaves a marker behind and is never
launched a second time for the same host.
"""

from __future__ import annotations

import os
import re
from abc import ABC, abstractmethod
from pathlib import Path

from awxclient.errors import MarkerStoreError
from awxclient.logging import get_logger

logger = get_logger(__name__)

DEFAULT_MARKER_DIR = Path("/var/tmp")
MARKER_SUFFIX = ".success"

# Characters that cannot appear in a marker file name
_UNSAFE_CHARS = re.compile(r"[/\x00]")


def marker_name(host: str, template_name: str) -> str:
    """Deterministic marker identifier for a (host, template) pair."""
    return _UNSAFE_CHARS.sub("_", f"{host}-{template_name}{MARKER_SUFFIX}")


class MarkerStore(ABC):
    """Abstract interface for completion marker storage."""

    @abstractmethod
    def exists(self, host: str, template_name: str) -> bool:
        """Check whether the job already completed for the host."""
        pass

    @abstractmethod
    def create(self, host: str, template_name: str) -> None:
        """Record that the job completed for the host.

        Creating a marker that already exists is a no-op.
        """
        pass


class FileMarkerStore(MarkerStore):
    """Stores markers as empty files in a directory."""

    def __init__(self, directory: Path = DEFAULT_MARKER_DIR) -> None:
        self.directory = directory

    def path_for(self, host: str, template_name: str) -> Path:
        return self.directory / marker_name(host, template_name)

    def exists(self, host: str, template_name: str) -> bool:
        """Check for the marker file.

        Raises:
            MarkerStoreError: If the marker directory cannot be inspected.
        """
        path = self.path_for(host, template_name)
        try:
            return path.exists()
        except OSError as e:
            raise MarkerStoreError(f"Can't check completion marker {path}: {e}") from e

    def create(self, host: str, template_name: str) -> None:
        """Atomically create the marker file if it is absent.

        Raises:
            MarkerStoreError: If the marker cannot be written.
        """
        path = self.path_for(host, template_name)
        try:
            fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o644)
        except FileExistsError:
            logger.debug("Completion marker %s already exists", path)
            return
        except OSError as e:
            raise MarkerStoreError(f"Can't write completion marker {path}: {e}") from e

        try:
            os.fsync(fd)
        finally:
            os.close(fd)
        logger.debug("Wrote completion marker %s", path)


__all__ = [
    "DEFAULT_MARKER_DIR",
    "FileMarkerStore",
    "MARKER_SUFFIX",
    "MarkerStore",
    "marker_name",
]
