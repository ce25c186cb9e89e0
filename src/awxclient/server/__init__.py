"""AWX relay server.

The relay accepts build requests from hosts that can't reach AWX and runs
their jobs with the same orchestrator the CLI uses.

Key components:
- create_app: FastAPI application factory serving ``POST /build/``
- BuildRequest: Pydantic model of the relay wire format
- RelayServer: Runs the application under uvicorn
"""

from awxclient.server.app import create_app
from awxclient.server.models import BuildRequest
from awxclient.server.runner import RelayServer

# NOTE: Update this list when adding new exports to this module.
__all__ = [
    "BuildRequest",
    "RelayServer",
    "create_app",
]
