from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, TextIO

_TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(threadName)s] - %(message)s"


def _record_context(record: logging.LogRecord) -> dict[str, Any]:
    context = getattr(record, "context", None)
    return context if isinstance(context, dict) else {}


class SinkJsonFormatter(logging.Formatter):
    """One JSON object per line; ``extra={"context": {...}}`` fields are inlined."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "message": record.getMessage(),
        }
        payload.update(_record_context(record))
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True, default=str)


class SinkTextFormatter(logging.Formatter):
    """Plain text with ``context`` appended as sorted ``key=value`` pairs."""

    def __init__(self) -> None:
        super().__init__(fmt=_TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = _record_context(record)
        if not context:
            return line
        pairs = " ".join(f"{key}={context[key]}" for key in sorted(context))
        head, newline, tail = line.partition("\n")
        return f"{head} {pairs}{newline}{tail}"


def configure_logging(
    level: str = "INFO",
    json_logs: bool = False,
    stream: TextIO | None = None,
) -> None:
    # stdout carries no log lines: `forward` may be piped between processes.
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level.upper())

    handler = logging.StreamHandler(stream)
    handler.setFormatter(SinkJsonFormatter() if json_logs else SinkTextFormatter())
    root.addHandler(handler)
