"""awxclient - post-install AWX jobs for hosts built by Foreman."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("awxclient")
except PackageNotFoundError:
    # Package is not installed (e.g., running from source without pip install)
    __version__ = "0.0.0.dev0"

# Re-export core public API
from awxclient.app import main
from awxclient.models import BuildContext, BuildResult
from awxclient.orchestrator import Orchestrator

# NOTE: Update this list when adding new exports to this module.
__all__ = [
    "__version__",
    "BuildContext",
    "BuildResult",
    "Orchestrator",
    "main",
]
