"""Configuration loading from environment variables."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from awxclient.poller import PollTiming

# Valid log levels
VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})

# Port validation bounds
MIN_PORT = 1
MAX_PORT = 65535

ENV_PREFIX = "AWXCLIENT_"


@dataclass(frozen=True)
class Config:
    """Application configuration loaded from environment.

    This dataclass is frozen (immutable) to prevent accidental modification
    after creation. Command line flags override it with
    :func:`dataclasses.replace`.
    """

    # AWX
    awx_url: str = "https://awx.internaldomain.co"
    # AWX is served with an internal certificate
    awx_verify_tls: bool = False
    credentials_file: Path = Path("/var/tmp/.tower_creds")

    # Completion markers
    marker_dir: Path = Path("/var/tmp")

    # Job polling, in seconds
    poll_warmup: float = 30.0
    poll_interval: float = 10.0
    poll_timeout: float = 1800.0

    # Relay
    relay_port: int = 8080
    relay_host: str = "0.0.0.0"  # Address the relay server binds to
    relay_log_dir: Path = Path("/var/log/awx-relay")

    # Host
    vars_path: str = "awxclient-dev/awxvars/"
    journald_conf: Path = Path("/etc/systemd/journald.conf")
    reboot_delay: float = 60.0

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    @property
    def poll_timing(self) -> PollTiming:
        """Polling cadence for AWX jobs."""
        return PollTiming(
            warmup=self.poll_warmup,
            interval=self.poll_interval,
            ceiling=self.poll_timeout,
        )


def _parse_positive_float(value: str, name: str, default: float) -> float:
    """Parse a string as a positive number with validation.

    Args:
        value: The string value to parse.
        name: The name of the setting (for error messages).
        default: The default value to use if parsing fails.

    Returns:
        The parsed positive number, or the default if invalid.

    Logs a warning if the value is invalid.
    """
    try:
        parsed = float(value)
        if parsed <= 0:
            logging.warning(
                "Invalid %s: %s is not positive, using default %s",
                name,
                value,
                default,
            )
            return default
        return parsed
    except ValueError:
        logging.warning(
            "Invalid %s: '%s' is not a valid number, using default %s",
            name,
            value,
            default,
        )
        return default


def _parse_non_negative_float(value: str, name: str, default: float) -> float:
    """Parse a string as a non-negative float with validation.

    Logs a warning and returns the default if the value is invalid.
    """
    try:
        parsed = float(value)
        if parsed < 0:
            logging.warning(
                "Invalid %s: %f is negative, using default %f",
                name,
                parsed,
                default,
            )
            return default
        return parsed
    except ValueError:
        logging.warning(
            "Invalid %s: '%s' is not a valid number, using default %f",
            name,
            value,
            default,
        )
        return default


def _parse_port(value: str, name: str, default: int) -> int:
    """Parse a string as a valid TCP port number with range validation.

    Args:
        value: The string value to parse.
        name: The name of the setting (for error messages).
        default: The default value to use if parsing fails.

    Returns:
        The parsed port number (MIN_PORT-MAX_PORT), or the default if invalid.

    Logs a warning if the value is invalid or out of range.
    """
    try:
        parsed = int(value)
        if parsed < MIN_PORT or parsed > MAX_PORT:
            logging.warning(
                "Invalid %s: %d is not a valid port (must be %d-%d), using default %d",
                name,
                parsed,
                MIN_PORT,
                MAX_PORT,
                default,
            )
            return default
        return parsed
    except ValueError:
        logging.warning(
            "Invalid %s: '%s' is not a valid integer, using default %d",
            name,
            value,
            default,
        )
        return default


def _validate_log_level(value: str, default: str = "INFO") -> str:
    """Validate and normalize a log level string.

    Returns:
        The validated log level (uppercase), or the default if invalid.
    """
    normalized = value.upper()
    if normalized not in VALID_LOG_LEVELS:
        logging.warning(
            "Invalid AWXCLIENT_LOG_LEVEL: '%s' is not valid, using default '%s'. "
            "Valid values: %s",
            value,
            default,
            ", ".join(sorted(VALID_LOG_LEVELS)),
        )
        return default
    return normalized


def _parse_bool(value: str) -> bool:
    """Parse a string as a boolean.

    Returns:
        True if value is "true", "1", or "yes" (case-insensitive), False otherwise.
    """
    return value.lower() in ("true", "1", "yes")


def _getenv(name: str, default: str = "") -> str:
    return os.getenv(f"{ENV_PREFIX}{name}", default)


def load_config(env_file: Path | None = None) -> Config:
    """Load configuration from environment variables.

    Args:
        env_file: Optional path to .env file. If not provided,
                  looks for .env in current directory.

    Returns:
        Config object with loaded values.

    Values are validated and defaults are used for invalid inputs:
    - Poll timings must be positive numbers
    - Ports must be in the range 1-65535
    - LOG_LEVEL must be one of: DEBUG, INFO, WARNING, ERROR, CRITICAL
    """
    # Load .env file if it exists
    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()

    defaults = Config()

    poll_warmup = _parse_positive_float(
        _getenv("POLL_WARMUP", "30"), "AWXCLIENT_POLL_WARMUP", defaults.poll_warmup
    )
    poll_interval = _parse_positive_float(
        _getenv("POLL_INTERVAL", "10"), "AWXCLIENT_POLL_INTERVAL", defaults.poll_interval
    )
    poll_timeout = _parse_positive_float(
        _getenv("POLL_TIMEOUT", "1800"), "AWXCLIENT_POLL_TIMEOUT", defaults.poll_timeout
    )

    relay_port = _parse_port(
        _getenv("RELAY_PORT", "8080"), "AWXCLIENT_RELAY_PORT", defaults.relay_port
    )

    reboot_delay = _parse_non_negative_float(
        _getenv("REBOOT_DELAY", "60"), "AWXCLIENT_REBOOT_DELAY", defaults.reboot_delay
    )

    log_level = _validate_log_level(_getenv("LOG_LEVEL", "INFO"))
    log_json = _parse_bool(_getenv("LOG_JSON"))

    return Config(
        awx_url=_getenv("AWX_URL", defaults.awx_url),
        awx_verify_tls=_parse_bool(_getenv("AWX_VERIFY_TLS")),
        credentials_file=Path(_getenv("CREDENTIALS_FILE", str(defaults.credentials_file))),
        marker_dir=Path(_getenv("MARKER_DIR", str(defaults.marker_dir))),
        poll_warmup=poll_warmup,
        poll_interval=poll_interval,
        poll_timeout=poll_timeout,
        relay_port=relay_port,
        relay_host=_getenv("RELAY_HOST", defaults.relay_host),
        relay_log_dir=Path(_getenv("RELAY_LOG_DIR", str(defaults.relay_log_dir))),
        vars_path=_getenv("VARS_PATH", defaults.vars_path),
        journald_conf=Path(_getenv("JOURNALD_CONF", str(defaults.journald_conf))),
        reboot_delay=reboot_delay,
        log_level=log_level,
        log_json=log_json,
    )


__all__ = ["Config", "load_config"]
