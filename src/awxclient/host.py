"""Changes made to the host being built, before and after the AWX jobs.

- :func:`persist_journal` keeps the systemd journal across the post-build
  reboot so the build status can be checked afterwards.
- :class:`HostCleanup` removes the AWX credentials, disables the unit that
  runs this program at boot, uninstalls the package and optionally reboots.
"""

from __future__ import annotations

import re
import subprocess
import time
from collections.abc import Callable, Sequence
from pathlib import Path

from awxclient.errors import CleanupError, ConfigurationError
from awxclient.logging import get_logger
from awxclient.models import BuildContext

logger = get_logger(__name__)

DEFAULT_JOURNALD_CONF = Path("/etc/systemd/journald.conf")
DEFAULT_UNIT_DIR = Path("/etc/systemd/system/multi-user.target.wants")
UNIT_GLOB = "awxclient*"
PACKAGE_NAME = "awxclient"

_STORAGE_LINE = re.compile(r"#Storage=[a-zA-Z]+")
_MAX_USE_LINE = re.compile(r"#SystemMaxUse=\w+")

# Runs a command, raising on a non-zero exit status
CommandRunner = Callable[[Sequence[str]], None]


def persist_journal(path: Path = DEFAULT_JOURNALD_CONF) -> bool:
    """Make the systemd journal persistent and cap its size at 500M.

    Only the commented-out defaults are rewritten; explicit settings are kept.

    Returns:
        True if the file was changed.

    Raises:
        ConfigurationError: If the file cannot be read or written.
    """
    try:
        original = path.read_text(encoding="utf-8")
        updated = _STORAGE_LINE.sub("Storage=persistent", original)
        updated = _MAX_USE_LINE.sub("SystemMaxUse=500M", updated)
        if updated == original:
            return False
        path.write_text(updated, encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Can't make the systemd journal persistent: {e}") from e

    logger.info("Made the systemd journal persistent in %s", path)
    return True


def run_command(command: Sequence[str]) -> None:
    """Run a command, raising CalledProcessError on failure."""
    subprocess.run(list(command), check=True, capture_output=True, text=True)


class HostCleanup:
    """Post-build cleanup of the host.

    Used as the orchestrator's success hook.
    """

    def __init__(
        self,
        credentials_file: Path,
        unit_dir: Path = DEFAULT_UNIT_DIR,
        reboot_delay: float = 60.0,
        runner: CommandRunner = run_command,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the cleanup.

        Args:
            credentials_file: AWX credentials file to remove.
            unit_dir: Directory holding the enabled systemd unit symlinks.
            reboot_delay: Seconds to wait before rebooting.
            runner: Function that runs external commands.
            sleep: Blocking sleep function.
        """
        self.credentials_file = credentials_file
        self.unit_dir = unit_dir
        self.reboot_delay = reboot_delay
        self._runner = runner
        self._sleep = sleep

    def __call__(self, context: BuildContext, mock: bool) -> None:
        self.run(context, mock)

    def run(self, context: BuildContext, mock: bool = False) -> None:
        """Clean up after a successful build.

        In mock mode nothing is touched so the build can be repeated.

        Raises:
            CleanupError: If any cleanup step fails.
        """
        logger.info("Cleaning up...")
        if mock:
            logger.info("Mock build completed successfully. Please manually reboot.")
            return

        try:
            self.credentials_file.unlink(missing_ok=True)
        except OSError as e:
            raise CleanupError(f"Can't remove {self.credentials_file}: {e}") from e

        units = sorted(self.unit_dir.glob(UNIT_GLOB))
        if not units:
            raise CleanupError(f"Can't find the {UNIT_GLOB} systemd unit in {self.unit_dir}")

        # Disable the unit so the jobs aren't kicked off again after a reboot
        self._run(["systemctl", "disable", units[0].name])
        self._run(["/usr/bin/yum", "-y", "remove", PACKAGE_NAME])

        if context.reboot:
            logger.info(
                "Build completed successfully. Rebooting in %.0f seconds.", self.reboot_delay
            )
            self._sleep(self.reboot_delay)
            self._run(["systemctl", "reboot"])
        else:
            logger.info("Build completed successfully. Please manually reboot.")

    def _run(self, command: list[str]) -> None:
        try:
            self._runner(command)
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or "").strip()
            raise CleanupError(
                f"'{' '.join(command)}' exited with status {e.returncode}: {stderr}"
            ) from e
        except OSError as e:
            raise CleanupError(f"Can't run '{' '.join(command)}': {e}") from e


__all__ = [
    "DEFAULT_JOURNALD_CONF",
    "DEFAULT_UNIT_DIR",
    "HostCleanup",
    "persist_journal",
    "run_command",
]
