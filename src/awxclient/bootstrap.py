"""Bootstrap and dependency wiring for awxclient.

This module provides the startup and initialization logic, including:
- Configuration loading with CLI overrides
- AWX client initialization
- Orchestrator assembly for the foreman command and the relay

The bootstrap module acts as the composition root: the AWX client is built
here from configuration and injected into every component that needs it.
"""

from __future__ import annotations

import argparse
from dataclasses import replace
from typing import Any

from awxclient.cli import RELAY_COMMAND
from awxclient.config import Config, load_config
from awxclient.host import HostCleanup
from awxclient.host_vars import HostEnvironment
from awxclient.inventory import DEFAULT_GROUP_RULES, GroupRuleTable, InventoryRegistrar
from awxclient.launcher import JobLauncher
from awxclient.logging import get_logger, setup_logging
from awxclient.markers import FileMarkerStore
from awxclient.orchestrator import Orchestrator, SuccessHook
from awxclient.poller import StatusPoller
from awxclient.relay import RelayClient
from awxclient.rest_client import AwxRestClient, CredentialsFileAuth

logger = get_logger(__name__)


class BootstrapContext:
    """Container for the bootstrapped dependencies shared by both commands."""

    def __init__(self, config: Config, awx_client: AwxRestClient) -> None:
        """Initialize the bootstrap context.

        Args:
            config: Application configuration.
            awx_client: AWX client injected into the orchestrator.
        """
        self.config = config
        self.awx_client = awx_client


def apply_cli_overrides(config: Config, parsed: argparse.Namespace) -> Config:
    """Apply CLI argument overrides to the configuration.

    Args:
        config: Base configuration loaded from environment.
        parsed: Parsed command-line arguments.

    Returns:
        New Config instance with CLI overrides applied.
    """
    overrides: dict[str, Any] = {}

    if parsed.command == RELAY_COMMAND:
        if parsed.port:
            overrides["relay_port"] = parsed.port
        if parsed.debug:
            overrides["log_level"] = "DEBUG"
    elif parsed.relay_port:
        overrides["relay_port"] = parsed.relay_port

    if parsed.log_level:
        overrides["log_level"] = parsed.log_level

    if overrides:
        return replace(config, **overrides)
    return config


def create_awx_client(config: Config) -> AwxRestClient:
    """Create the AWX REST client.

    Credentials are read from the credentials file on the first request.
    """
    logger.debug("Using AWX at %s", config.awx_url)
    return AwxRestClient(
        base_url=config.awx_url,
        auth=CredentialsFileAuth(config.credentials_file),
        verify_tls=config.awx_verify_tls,
    )


def create_orchestrator(
    config: Config,
    awx_client: AwxRestClient,
    relay: RelayClient | None = None,
    on_success: SuccessHook | None = None,
    rules: GroupRuleTable = DEFAULT_GROUP_RULES,
) -> Orchestrator:
    """Assemble an orchestrator around an AWX client.

    Args:
        config: Application configuration.
        awx_client: AWX client shared by registration, launching and polling.
        relay: Relay client for hosts that don't run jobs locally.
        on_success: Post-build hook, e.g. host cleanup.
        rules: Inventory group rules.

    Returns:
        Configured Orchestrator.
    """
    poller = StatusPoller(awx_client, config.poll_timing)
    launcher = JobLauncher(awx_client, poller, FileMarkerStore(config.marker_dir))
    registrar = InventoryRegistrar(awx_client, rules)
    return Orchestrator(registrar, launcher, relay=relay, on_success=on_success)


def create_relay_client(config: Config, env: HostEnvironment) -> RelayClient | None:
    """Create the client for the relay named in the host environment, if any."""
    if not env.relay:
        return None
    return RelayClient(env.relay, port=config.relay_port)


def create_cleanup(config: Config) -> HostCleanup:
    return HostCleanup(
        credentials_file=config.credentials_file,
        reboot_delay=config.reboot_delay,
    )


def bootstrap(parsed: argparse.Namespace) -> BootstrapContext:
    """Bootstrap the application with all dependencies.

    This is the main entry point for application initialization. It:
    1. Loads and configures settings
    2. Sets up logging
    3. Initializes the AWX client

    Args:
        parsed: Parsed command-line arguments.

    Returns:
        BootstrapContext with all initialized dependencies.
    """
    config = load_config(parsed.env_file)
    config = apply_cli_overrides(config, parsed)

    setup_logging(config.log_level, json_format=config.log_json)

    return BootstrapContext(config=config, awx_client=create_awx_client(config))


__all__ = [
    "BootstrapContext",
    "apply_cli_overrides",
    "bootstrap",
    "create_awx_client",
    "create_cleanup",
    "create_orchestrator",
    "create_relay_client",
]
