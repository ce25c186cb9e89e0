"""Relay server management.

This module provides the RelayServer class that runs the relay application
under uvicorn in the foreground until it is told to stop.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import uvicorn

if TYPE_CHECKING:
    from starlette.types import ASGIApp

from awxclient.logging import get_logger

logger = get_logger(__name__)


class RelayServer:
    """Foreground uvicorn server for the relay.

    Example:
        from awxclient.server import create_app, RelayServer

        app = create_app(orchestrator, log_manager)
        RelayServer(host="0.0.0.0", port=8080).run(app)
    """

    def __init__(self, host: str, port: int, debug: bool = False) -> None:
        """Initialize the relay server.

        Args:
            host: The host address to bind to (e.g., "0.0.0.0" or "127.0.0.1").
            port: The port to listen on.
            debug: Whether uvicorn logs at debug level with access logs.
        """
        self._host = host
        self._port = port
        self._debug = debug
        self._server: uvicorn.Server | None = None

    @property
    def host(self) -> str:
        return self._host

    @property
    def port(self) -> int:
        return self._port

    @property
    def is_running(self) -> bool:
        """Check if the server is currently running."""
        return self._server is not None and self._server.started

    def run(self, app: ASGIApp) -> None:
        """Serve the application, blocking until the server exits.

        uvicorn installs its own SIGINT/SIGTERM handlers and shuts down
        gracefully, letting in-flight builds finish.
        """
        config = uvicorn.Config(
            app=app,
            host=self._host,
            port=self._port,
            log_level="debug" if self._debug else "warning",
            access_log=self._debug,
        )
        self._server = uvicorn.Server(config)

        logger.info("AWX Relay listening on http://%s:%s", self._host, self._port)
        self._server.run()
        logger.info("AWX Relay shutdown complete")

    def shutdown(self) -> None:
        """Ask the server to stop after in-flight requests complete."""
        if self._server is not None:
            logger.info("Shutting down AWX Relay...")
            self._server.should_exit = True


__all__ = ["RelayServer"]
