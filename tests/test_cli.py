"""Tests for command-line parsing and CLI overrides."""

from __future__ import annotations

from pathlib import Path

import pytest

from awxclient.bootstrap import apply_cli_overrides
from awxclient.cli import parse_args
from awxclient.config import Config


class TestParseArgs:
    """Tests for parse_args."""

    def test_foreman_defaults(self) -> None:
        parsed = parse_args(["foreman"])

        assert parsed.command == "foreman"
        assert parsed.mock is None
        assert parsed.file is None
        assert parsed.relay_port is None
        assert parsed.log_level is None
        assert parsed.env_file is None

    def test_foreman_options(self) -> None:
        parsed = parse_args(
            [
                "foreman",
                "--mock",
                "web01.example.com",
                "--file",
                "https://build.example.com/vars.json",
                "--relay-port",
                "9090",
                "--env-file",
                "/etc/awxclient.env",
            ]
        )

        assert parsed.mock == "web01.example.com"
        assert parsed.file == "https://build.example.com/vars.json"
        assert parsed.relay_port == 9090
        assert parsed.env_file == Path("/etc/awxclient.env")

    def test_relay_options(self) -> None:
        parsed = parse_args(["relay", "--port", "8081", "--debug", "--log-level", "WARNING"])

        assert parsed.command == "relay"
        assert parsed.port == 8081
        assert parsed.debug is True
        assert parsed.log_level == "WARNING"

    @pytest.mark.parametrize(
        "args",
        [
            [],
            ["deploy"],
            ["relay", "--port", "0"],
            ["relay", "--port", "http"],
            ["foreman", "--relay-port", "65536"],
            ["foreman", "--log-level", "TRACE"],
            ["relay", "--mock", "web01.example.com"],
        ],
    )
    def test_invalid_arguments_exit(self, args: list[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            parse_args(args)

        assert exc_info.value.code == 2


class TestApplyCliOverrides:
    """Tests for apply_cli_overrides."""

    def test_no_overrides_returns_same_config(self) -> None:
        config = Config()

        assert apply_cli_overrides(config, parse_args(["foreman"])) is config

    def test_foreman_relay_port(self) -> None:
        config = apply_cli_overrides(Config(), parse_args(["foreman", "--relay-port", "9090"]))

        assert config.relay_port == 9090

    def test_relay_port_and_debug(self) -> None:
        config = apply_cli_overrides(Config(), parse_args(["relay", "--port", "8081", "--debug"]))

        assert config.relay_port == 8081
        assert config.log_level == "DEBUG"

    def test_explicit_log_level_wins(self) -> None:
        parsed = parse_args(["relay", "--debug", "--log-level", "ERROR"])

        assert apply_cli_overrides(Config(), parsed).log_level == "ERROR"
