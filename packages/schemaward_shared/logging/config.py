"""Process logging configuration for schemaward.

Command results are written to stdout, so log lines go to stderr: either one
JSON object per line or a plain line with the bound catalog context appended
as ``key=value`` pairs.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime

from . import fields
from .context import bind_context, get_context

_PLAIN_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


class CatalogContextFormatter(logging.Formatter):
    """Render a record together with the catalog context bound at emit time."""

    def __init__(self, *, json_output: bool) -> None:
        super().__init__(fmt=_PLAIN_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S%z")
        self.json_output = json_output

    def format(self, record: logging.LogRecord) -> str:
        context = get_context()
        if self.json_output:
            return self._json(record, context)
        line = super().format(record)
        if context:
            line += " " + " ".join(f"{key}={context[key]}" for key in sorted(context))
        return line

    def _json(self, record: logging.LogRecord, context: dict[str, str]) -> str:
        payload: dict[str, str] = {
            **context,
            fields.TIMESTAMP: datetime.fromtimestamp(record.created, UTC).isoformat(),
            fields.LEVEL: record.levelname,
            fields.LOGGER: record.name,
            fields.MESSAGE: record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, separators=(",", ":"))


def configure_logging(
    *,
    level: str = "INFO",
    json_output: bool = False,
    service: str | None = None,
    environment: str | None = None,
) -> None:
    """Install one stderr handler on the root logger, replacing any others."""
    handler = logging.StreamHandler(stream=sys.stderr)
    handler.setFormatter(CatalogContextFormatter(json_output=json_output))

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level.upper())
    root.addHandler(handler)

    bind_context(**{fields.SERVICE: service or None, fields.ENVIRONMENT: environment or None})


def get_logger(name: str | None = None) -> logging.Logger:
    return logging.getLogger(name)
