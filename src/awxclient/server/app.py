"""FastAPI application factory for the AWX relay.

The relay runs on a host that can reach AWX and builds midtier and edge hosts
on their behalf. Each ``POST /build/`` blocks until both jobs of the build
finish, so the endpoint is a plain ``def`` and runs in the server's thread
pool; concurrent builds for different hosts do not wait on each other.
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from awxclient.logging import HostLogManager, get_logger
from awxclient.orchestrator import Orchestrator
from awxclient.relay import BUILD_PATH, RELAY_STATUS_CODES
from awxclient.server.models import BuildRequest
from awxclient.types import BuildStatus, FailureKind

logger = get_logger(__name__)


def create_app(orchestrator: Orchestrator, log_manager: HostLogManager) -> FastAPI:
    """Create and configure the relay application.

    Args:
        orchestrator: Orchestrator that runs the jobs against AWX.
        log_manager: Writes each build's log lines to its host's log file.

    Returns:
        A configured FastAPI application.
    """
    app = FastAPI(
        title="AWX Relay",
        description="Runs AWX build jobs on behalf of hosts that can't reach AWX",
        version="0.1.0",
    )

    @app.exception_handler(RequestValidationError)
    async def invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.warning("Rejected malformed build request: %s", exc.errors())
        return JSONResponse(
            status_code=400,
            content={
                "kind": FailureKind.CONFIGURATION.value,
                "detail": f"Malformed build request: {exc.errors()}",
            },
        )

    @app.post(BUILD_PATH)
    @app.post(BUILD_PATH.rstrip("/"), include_in_schema=False)
    def build(request: BuildRequest) -> JSONResponse:
        """Run breakglass then baseline for the requesting host.

        Returns:
            200 with ``"successful"``, or the status code of the failure kind
            with a ``{"kind", "detail"}`` body.
        """
        context = request.to_context()
        logger.info(
            "Launching AWX jobs for %s, see %s for more info",
            context.fqdn,
            log_manager.log_path(context.fqdn),
        )
        with log_manager.capture(context.fqdn):
            logger.info(
                "Received build request for %s host %s", context.host_type, context.fqdn
            )
            result = orchestrator.run_jobs(context, mock=request.mock)

            if result.succeeded:
                logger.info("Build of %s completed successfully", context.fqdn)
                return JSONResponse(content=BuildStatus.SUCCESSFUL.value)

            kind = result.kind or FailureKind.RELAY
            logger.error("Build of %s failed (%s): %s", context.fqdn, kind, result.detail)
            return JSONResponse(
                status_code=RELAY_STATUS_CODES[kind],
                content={"kind": kind.value, "detail": result.detail},
            )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Liveness check."""
        return {"status": "healthy"}

    return app


__all__ = ["create_app"]
