"""Structured logging configuration for awxclient."""

from __future__ import annotations

import json
import logging
import sys
import threading
from collections.abc import Iterator, MutableMapping
from contextlib import contextmanager
from datetime import UTC, datetime
from email.utils import format_datetime
from pathlib import Path
from typing import Any

# Context fields rendered by the formatters when present on a record
CONTEXT_FIELDS = ("fqdn", "template", "job_id")

# Extra fields only the JSON formatter emits
JSON_ONLY_FIELDS = ("status", "kind")

# First line written to every per-host relay log file
BUILD_DATE_HEADER = "Build Date"


def _component(record: logging.LogRecord) -> str:
    """Last segment of the logger name, e.g. "awxclient.poller" -> "poller"."""
    return record.name.rpartition(".")[2]


def _record_fields(record: logging.LogRecord, keys: tuple[str, ...]) -> dict[str, Any]:
    """Extra fields attached to a record, in the order of ``keys``."""
    return {key: getattr(record, key) for key in keys if hasattr(record, key)}


class StructuredFormatter(logging.Formatter):
    """One line per record: UTC time, level, component, build context, message.

    Example::

        2024-03-01 12:00:40.123 [ERROR   ] [poller      ] [fqdn=web01 job_id=7] ...
    """

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        created = datetime.fromtimestamp(record.created, tz=UTC)
        return f"{created:%Y-%m-%d %H:%M:%S}.{int(record.msecs):03d}"

    def format(self, record: logging.LogRecord) -> str:
        parts = [
            self.formatTime(record),
            f"[{record.levelname:8}]",
            f"[{_component(record):12}]",
        ]

        context = _record_fields(record, CONTEXT_FIELDS)
        if context:
            parts.append("[" + " ".join(f"{k}={v}" for k, v in context.items()) + "]")

        parts.append(record.getMessage())
        if record.exc_info:
            parts.append(self.formatException(record.exc_info))
        return " ".join(parts)


class JSONFormatter(logging.Formatter):
    """One JSON object per record, for log shippers."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "component": _component(record),
            "message": record.getMessage(),
            **_record_fields(record, CONTEXT_FIELDS + JSON_ONLY_FIELDS),
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data, default=str)


class ContextAdapter(logging.LoggerAdapter[logging.Logger]):
    """Attaches build context (fqdn, template, job id) to every record.

    Extras passed to a single call take precedence over the bound context.
    """

    def process(
        self, msg: str, kwargs: MutableMapping[str, Any]
    ) -> tuple[str, MutableMapping[str, Any]]:
        kwargs["extra"] = {**(self.extra or {}), **kwargs.get("extra", {})}
        return msg, kwargs


class AwxLogger(logging.Logger):
    """Logger that can bind build context, see :meth:`with_context`."""

    def with_context(self, **context: Any) -> ContextAdapter:
        """Bind context fields, e.g. ``logger.with_context(fqdn=context.fqdn)``."""
        return ContextAdapter(self, context)


logging.setLoggerClass(AwxLogger)


def get_logger(name: str) -> AwxLogger:
    """Get a logger with the custom AwxLogger class."""
    return logging.getLogger(name)  # type: ignore[return-value]


def setup_logging(
    level: str = "INFO",
    json_format: bool = False,
    replace_handlers: bool = True,
) -> None:
    """Send log records to stderr, which systemd forwards to the journal.

    Args:
        level: Log level name; unknown names fall back to INFO.
        json_format: Emit JSON lines instead of structured text.
        replace_handlers: Drop handlers already installed on the root logger.
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    root_logger = logging.getLogger()
    if replace_handlers:
        for existing in root_logger.handlers[:]:
            root_logger.removeHandler(existing)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(numeric_level)
    handler.setFormatter(JSONFormatter() if json_format else StructuredFormatter())

    root_logger.setLevel(numeric_level)
    root_logger.addHandler(handler)
    logging.getLogger("awxclient").setLevel(numeric_level)


class ThreadFilter(logging.Filter):
    """Filter that only passes records emitted by one thread."""

    def __init__(self, thread_id: int) -> None:
        super().__init__()
        self.thread_id = thread_id

    def filter(self, record: logging.LogRecord) -> bool:
        return record.thread == self.thread_id


class HostLogManager:
    """Writes the log of each relayed build to its own per-host file.

    The relay serves many hosts at once; every build's log lines go to
    ``{base_dir}/{fqdn}.log`` so the operator of a host can follow its build
    without reading the whole journal. Each file starts with a single
    ``Build Date:`` line written the first time the host is built.

    Usage:
        manager = HostLogManager(Path("/var/log/awx-relay"))
        with manager.capture("web01.example.com"):
            orchestrator.run(context)
    """

    def __init__(self, base_dir: Path, logger_name: str = "awxclient") -> None:
        """Initialize the host log manager.

        Args:
            base_dir: Directory where per-host log files are created.
            logger_name: Logger whose records are captured.
        """
        self._base_dir = base_dir
        self._logger_name = logger_name
        self._lock = threading.Lock()

    def log_path(self, fqdn: str) -> Path:
        """Return the log file path for a host."""
        return self._base_dir / f"{fqdn}.log"

    def _ensure_header(self, path: Path) -> None:
        with self._lock:
            self._base_dir.mkdir(mode=0o775, parents=True, exist_ok=True)
            if path.exists() and BUILD_DATE_HEADER in path.read_text(encoding="utf-8"):
                return
            with path.open("a", encoding="utf-8") as f:
                f.write(f"{BUILD_DATE_HEADER}: {format_datetime(datetime.now(UTC), usegmt=True)}\n")

    @contextmanager
    def capture(self, fqdn: str) -> Iterator[Path]:
        """Copy records emitted by the calling thread to the host's log file.

        The build goes ahead without a log file when the file can't be
        prepared; a warning is logged instead.

        Args:
            fqdn: Host whose build is being logged.

        Yields:
            Path of the host's log file.
        """
        path = self.log_path(fqdn)
        logger = logging.getLogger(self._logger_name)
        handler: logging.FileHandler | None = None
        try:
            self._ensure_header(path)
            handler = logging.FileHandler(path, encoding="utf-8")
        except OSError as e:
            logger.warning("Can't write the build log of %s to %s: %s", fqdn, path, e)

        if handler is None:
            yield path
            return

        handler.setFormatter(StructuredFormatter())
        handler.setLevel(logging.DEBUG)
        handler.addFilter(ThreadFilter(threading.get_ident()))

        logger.addHandler(handler)
        try:
            yield path
        finally:
            logger.removeHandler(handler)
            handler.flush()
            handler.close()
