"""Core application runner for awxclient.

This module provides the main application runner for both subcommands:
- ``foreman``: reads the build variables, prepares the host, runs the build
  locally or through the relay, then cleans the host up
- ``relay``: serves build requests for midtier and edge hosts

It acts as the orchestration layer between bootstrap, the orchestrator and
the relay server.
"""

from __future__ import annotations

import argparse
import socket

from awxclient.bootstrap import (
    BootstrapContext,
    bootstrap,
    create_cleanup,
    create_orchestrator,
    create_relay_client,
)
from awxclient.cli import RELAY_COMMAND, parse_args
from awxclient.errors import BuildError
from awxclient.host import persist_journal
from awxclient.host_vars import AwxVarsReader, read_build_context
from awxclient.logging import HostLogManager, get_logger
from awxclient.server import RelayServer, create_app

logger = get_logger(__name__)


def run_foreman(parsed: argparse.Namespace, context: BootstrapContext) -> int:
    """Build the host this runs on, or the mocked host.

    Args:
        parsed: Parsed command-line arguments.
        context: Bootstrap context with all dependencies.

    Returns:
        Exit code: 0 for success, 1 for failure.
    """
    config = context.config
    mock = parsed.mock is not None
    fqdn = parsed.mock if mock else socket.getfqdn()
    log = logger.with_context(fqdn=fqdn)

    if mock:
        log.info("Mocking a build for %s", fqdn)

    try:
        build_context, env = read_build_context(
            fqdn, AwxVarsReader(config.vars_path), source=parsed.file
        )
        persist_journal(config.journald_conf)
    except BuildError as e:
        log.error("Build failed (%s): %s", e.kind, e, extra={"kind": e.kind})
        return 1

    orchestrator = create_orchestrator(
        config,
        context.awx_client,
        relay=create_relay_client(config, env),
        on_success=create_cleanup(config),
    )

    with context.awx_client:
        result = orchestrator.run(build_context, mock=mock)

    return 0 if result.succeeded else 1


def run_relay(parsed: argparse.Namespace, context: BootstrapContext) -> int:
    """Serve build requests until the server is stopped.

    Args:
        parsed: Parsed command-line arguments.
        context: Bootstrap context with all dependencies.

    Returns:
        Exit code: 0 after a clean shutdown.
    """
    config = context.config
    orchestrator = create_orchestrator(config, context.awx_client)
    app = create_app(orchestrator, HostLogManager(config.relay_log_dir))
    server = RelayServer(host=config.relay_host, port=config.relay_port, debug=parsed.debug)

    with context.awx_client:
        server.run(app)
    return 0


def main(args: list[str] | None = None) -> int:
    """Main entry point for the application.

    This is the primary entry point that:
    1. Parses command-line arguments
    2. Bootstraps dependencies
    3. Runs the requested command

    Args:
        args: Optional list of command-line arguments.

    Returns:
        Exit code for the application.
    """
    parsed = parse_args(args)
    context = bootstrap(parsed)

    if parsed.command == RELAY_COMMAND:
        return run_relay(parsed, context)
    return run_foreman(parsed, context)


__all__ = ["main", "run_foreman", "run_relay"]
