"""Command-line interface argument parsing for awxclient.

This module provides the CLI argument parser with two subcommands:
- ``foreman``: build the host this runs on (or a mocked one)
- ``relay``: serve build requests from hosts that can't reach AWX
"""

from __future__ import annotations

import argparse
from pathlib import Path

from awxclient.config import MAX_PORT, MIN_PORT

FOREMAN_COMMAND = "foreman"
RELAY_COMMAND = "relay"


def _port(value: str) -> int:
    try:
        port = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"'{value}' is not a valid integer") from None
    if port < MIN_PORT or port > MAX_PORT:
        raise argparse.ArgumentTypeError(f"{port} is not a valid port ({MIN_PORT}-{MAX_PORT})")
    return port


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Args:
        args: Optional list of arguments to parse. If None, uses sys.argv.

    Returns:
        Parsed arguments namespace with the following attributes:
        - command: "foreman" or "relay"
        - relay_port: Relay port the foreman command talks to (foreman)
        - mock: FQDN of a host to mock a build for (foreman)
        - file: Alternate AWX vars file, local path or URL (foreman)
        - port: Port the relay listens on (relay)
        - debug: Verbose relay logging (relay)
        - log_level: Logging level
        - env_file: Path to .env file
    """
    parser = argparse.ArgumentParser(
        prog="awxclient",
        description="Launches the post-install AWX jobs of hosts built by Foreman",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Log level (overrides AWXCLIENT_LOG_LEVEL)",
    )
    common.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Path to .env file (default: ./.env)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    foreman = subparsers.add_parser(
        FOREMAN_COMMAND,
        parents=[common],
        help="Execute Foreman post-install AWX jobs",
        description="Launches the breakglass and baseline AWX jobs for this host",
    )
    foreman.add_argument(
        "--relay-port",
        type=_port,
        default=None,
        help="Port of the AWX relay (overrides AWXCLIENT_RELAY_PORT)",
    )
    foreman.add_argument(
        "--mock",
        metavar="FQDN",
        default=None,
        help="Mock a build for FQDN without launching any AWX job",
    )
    foreman.add_argument(
        "--file",
        metavar="PATH_OR_URL",
        default=None,
        help="Alternate AWX vars file (default: the build server's file for this host)",
    )

    relay = subparsers.add_parser(
        RELAY_COMMAND,
        parents=[common],
        help="Start the AWX relay webserver",
        description="Runs AWX jobs on behalf of midtier and edge hosts",
    )
    relay.add_argument(
        "--port",
        type=_port,
        default=None,
        help="Port to listen on (overrides AWXCLIENT_RELAY_PORT)",
    )
    relay.add_argument(
        "--debug",
        action="store_true",
        help="Log at debug level, including access logs",
    )

    return parser.parse_args(args)


__all__ = ["FOREMAN_COMMAND", "RELAY_COMMAND", "parse_args"]
