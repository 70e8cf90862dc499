"""Console logging for cover collection runs.

Records emitted while an asset is processed carry that asset's fields
(``policy_id``, ``asset``) through ``LogContext``. The text format appends
them as ``key=value`` pairs; the JSON format nests them under ``context``.
Both formats pass every message through ``secrets.redact_*`` so Blockfrost
project ids never reach the console.
"""

from __future__ import annotations

import contextvars
import json
import logging
import time
from typing import Any, TextIO

from cover_collector.secrets import redact_string, redact_structure

_CONFIGURED = False

_asset_fields: contextvars.ContextVar[dict[str, Any]] = contextvars.ContextVar("asset_fields", default={})


def current_log_fields() -> dict[str, Any]:
    return dict(_asset_fields.get())


class LogContext:
    """Bind fields to every record logged inside the block; nesting merges."""

    def __init__(self, **fields: Any) -> None:
        self.fields = fields
        self._token: contextvars.Token | None = None

    def __enter__(self) -> LogContext:
        self._token = _asset_fields.set({**_asset_fields.get(), **self.fields})
        return self

    def __exit__(self, *exc_info: Any) -> None:
        if self._token is not None:
            _asset_fields.reset(self._token)
            self._token = None


def _render_message(record: logging.LogRecord) -> str:
    msg = redact_structure(record.msg)
    args = redact_structure(record.args)
    if args:
        try:
            return redact_string(str(msg) % args)
        except (TypeError, ValueError):
            pass
    return redact_string(str(msg))


class TextFormatter(logging.Formatter):
    def __init__(self) -> None:
        super().__init__("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
        self.converter = time.gmtime

    def formatMessage(self, record: logging.LogRecord) -> str:
        record.message = _render_message(record)
        line = super().formatMessage(record)
        fields = current_log_fields()
        if fields:
            rendered = " ".join(f"{key}={value}" for key, value in redact_structure(fields).items())
            line = f"{line} [{rendered}]"
        return line

    def formatException(self, ei: Any) -> str:
        return redact_string(super().formatException(ei))


class JsonFormatter(logging.Formatter):
    def __init__(self) -> None:
        super().__init__()
        self.converter = time.gmtime

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%SZ"),
            "level": record.levelname,
            "logger": record.name,
            "message": _render_message(record),
        }
        fields = current_log_fields()
        if fields:
            payload["context"] = redact_structure(fields)
        if record.exc_info:
            payload["exc_info"] = redact_string(self.formatException(record.exc_info))
        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging(*, level: str | int | None = None, fmt: str = "text", stream: TextIO | None = None) -> None:
    """Install one stderr handler on the root logger; later calls are no-ops."""
    global _CONFIGURED
    if _CONFIGURED:
        return

    root = logging.getLogger()
    if isinstance(level, str):
        level = logging._nameToLevel.get(level.upper(), logging.INFO)
    root.setLevel(level if level is not None else logging.INFO)

    if not root.handlers:
        handler = logging.StreamHandler(stream)
        handler.setFormatter(JsonFormatter() if fmt.lower() == "json" else TextFormatter())
        root.addHandler(handler)

    _CONFIGURED = True


def add_logging_args(parser: Any) -> None:
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--log-format",
        default="text",
        choices=["text", "json"],
        help="Logging format (default: text); json nests per-asset fields under 'context'",
    )
