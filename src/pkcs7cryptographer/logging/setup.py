"""Logging configuration for pkcs7cryptographer.

Provides JSON and text formatters, a filter that redacts PEM bodies
from every record, and a one-call ``configure_logging`` function driven
by :class:`~pkcs7cryptographer.config.settings.LoggingSettings`.
The library itself only emits records; installing handlers is left to
applications and to the ``pkcs7crypt`` command.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from pkcs7cryptographer.logging.sanitize import sanitize_pem

if TYPE_CHECKING:
    from pkcs7cryptographer.config.settings import LoggingSettings

ROOT_LOGGER = "pkcs7cryptographer"

# Anything not set on a bare LogRecord is an "extra" from the caller.
_STANDARD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


def _extras(record: logging.LogRecord) -> dict:
    return {k: v for k, v in vars(record).items() if k not in _STANDARD_ATTRS and not k.startswith("_")}


def _json_default(value: object) -> str:
    # Digests, key identifiers and serials are logged as bytes.
    if isinstance(value, (bytes, bytearray)):
        return value.hex()
    return str(value)


# ---------------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------------


class PemRedactionFilter(logging.Filter):
    """Strip PEM bodies from the message and string extras of a record.

    Key material can reach a message through ``%s`` arguments, so the
    message is rendered here and the arguments dropped.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = sanitize_pem(record.getMessage())
        record.args = None
        for key, value in _extras(record).items():
            if isinstance(value, str):
                setattr(record, key, sanitize_pem(value))
        return True


# ---------------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------------


class StructuredFormatter(logging.Formatter):
    """JSON-lines formatter.

    Every record becomes a single JSON object on one line containing
    the standard fields plus any *extra* attributes passed by the
    caller.  Bytes extras are rendered as hex.
    """

    def format(self, record: logging.LogRecord) -> str:
        data: dict = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in _extras(record).items():
            data.setdefault(key, value)

        if record.exc_info and record.exc_info[0] is not None:
            data["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            data["stack_info"] = self.formatStack(record.stack_info)

        return json.dumps(data, default=_json_default)


class TextFormatter(logging.Formatter):
    """Human-readable formatter for console use."""

    _FMT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

    def __init__(self) -> None:
        super().__init__(fmt=self._FMT, datefmt="%Y-%m-%d %H:%M:%S")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def configure_logging(settings: LoggingSettings) -> logging.Logger:
    """Configure the ``pkcs7cryptographer`` logger hierarchy from settings.

    Replaces any previously installed handlers so repeated calls do not
    duplicate output.  Returns the package root logger.
    """
    level = getattr(logging, settings.level.upper(), logging.WARNING)

    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(level)
    root.handlers.clear()
    root.propagate = False

    formatter: logging.Formatter
    formatter = StructuredFormatter() if settings.format == "json" else TextFormatter()

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(formatter)
    console.addFilter(PemRedactionFilter())
    root.addHandler(console)

    return root
