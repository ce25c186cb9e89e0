"""Tests for configuration loading."""

from __future__ import annotations

import os
from dataclasses import FrozenInstanceError
from pathlib import Path
from unittest.mock import patch

import pytest

from awxclient.config import Config, load_config
from awxclient.poller import PollTiming


@pytest.fixture
def no_env_file(tmp_path: Path) -> Path:
    return tmp_path / "missing.env"


class TestConfig:
    """Tests for the Config dataclass."""

    def test_defaults(self) -> None:
        config = Config()

        assert config.awx_url == "https://awx.internaldomain.co"
        assert config.awx_verify_tls is False
        assert config.credentials_file == Path("/var/tmp/.tower_creds")
        assert config.relay_port == 8080
        assert config.reboot_delay == 60.0

    def test_poll_timing(self) -> None:
        config = Config(poll_warmup=1.0, poll_interval=2.0, poll_timeout=30.0)

        assert config.poll_timing == PollTiming(warmup=1.0, interval=2.0, ceiling=30.0)

    def test_is_frozen(self) -> None:
        with pytest.raises(FrozenInstanceError):
            Config().relay_port = 9000  # type: ignore[misc]


class TestLoadConfig:
    """Tests for load_config."""

    def test_defaults_without_environment(
        self, no_env_file: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        for name in list(os.environ):
            if name.startswith("AWXCLIENT_"):
                monkeypatch.delenv(name)

        assert load_config(no_env_file) == Config()

    def test_reads_prefixed_variables(
        self, no_env_file: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("AWXCLIENT_AWX_URL", "https://awx.example.com")
        monkeypatch.setenv("AWXCLIENT_AWX_VERIFY_TLS", "yes")
        monkeypatch.setenv("AWXCLIENT_CREDENTIALS_FILE", "/tmp/creds")
        monkeypatch.setenv("AWXCLIENT_POLL_TIMEOUT", "60")
        monkeypatch.setenv("AWXCLIENT_RELAY_PORT", "9090")
        monkeypatch.setenv("AWXCLIENT_REBOOT_DELAY", "0")
        monkeypatch.setenv("AWXCLIENT_LOG_LEVEL", "debug")
        monkeypatch.setenv("AWXCLIENT_LOG_JSON", "true")

        config = load_config(no_env_file)

        assert config.awx_url == "https://awx.example.com"
        assert config.awx_verify_tls is True
        assert config.credentials_file == Path("/tmp/creds")
        assert config.poll_timeout == 60.0
        assert config.relay_port == 9090
        assert config.reboot_delay == 0.0
        assert config.log_level == "DEBUG"
        assert config.log_json is True

    def test_reads_env_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("AWXCLIENT_RELAY_LOG_DIR", raising=False)
        env_file = tmp_path / ".env"
        env_file.write_text("AWXCLIENT_RELAY_LOG_DIR=/srv/relay-logs\n")

        with patch.dict(os.environ):
            config = load_config(env_file)

        assert config.relay_log_dir == Path("/srv/relay-logs")

    @pytest.mark.parametrize(
        ("name", "value", "field", "expected"),
        [
            ("AWXCLIENT_POLL_INTERVAL", "0", "poll_interval", 10.0),
            ("AWXCLIENT_POLL_WARMUP", "soon", "poll_warmup", 30.0),
            ("AWXCLIENT_RELAY_PORT", "70000", "relay_port", 8080),
            ("AWXCLIENT_RELAY_PORT", "http", "relay_port", 8080),
            ("AWXCLIENT_REBOOT_DELAY", "-5", "reboot_delay", 60.0),
            ("AWXCLIENT_LOG_LEVEL", "LOUD", "log_level", "INFO"),
        ],
    )
    def test_invalid_values_fall_back_to_defaults(
        self,
        no_env_file: Path,
        monkeypatch: pytest.MonkeyPatch,
        caplog: pytest.LogCaptureFixture,
        name: str,
        value: str,
        field: str,
        expected: object,
    ) -> None:
        monkeypatch.setenv(name, value)

        config = load_config(no_env_file)

        assert getattr(config, field) == expected
        assert f"Invalid {name}" in caplog.text
