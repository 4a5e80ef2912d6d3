"""
Gateway logging on top of the stdlib ``logging`` package.

Every gateway logger hangs off the "agentgate" logger, which owns a single
stderr handler. Records carry call context (operation, tool, provider,
model, exit code, timing) as ``extra`` attributes; the formatter lifts the
known ones into the output as key=value pairs, or as fields of a JSON line
when ``json_output`` is set.

    logger = get_logger("agentgate.gateway")
    logger.info("Tool invoked", extra={"tool_name": "tree_simple", "duration_ms": 12.5})

The gateway factory calls ``configure_logging`` with the level and format
from GatewaySettings.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import IO, Any

ROOT_LOGGER = "agentgate"

# Record attributes copied into the output when present
_CONTEXT_KEYS = (
    "operation",
    "tool_name",
    "provider",
    "model",
    "error_type",
    "exit_code",
    "duration_ms",
    "user",
)


class GatewayFormatter(logging.Formatter):
    """Renders a record as one text line or one JSON object."""

    def __init__(self, json_output: bool = False):
        super().__init__()
        self._json_output = json_output

    def _payload(self, record: logging.LogRecord) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(
            (key, getattr(record, key))
            for key in _CONTEXT_KEYS
            if getattr(record, key, None) is not None
        )
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return payload

    def format(self, record: logging.LogRecord) -> str:
        payload = self._payload(record)
        if self._json_output:
            return json.dumps(payload, default=str)

        context = " ".join(f"{key}={payload[key]}" for key in _CONTEXT_KEYS if key in payload)
        line = f"[{payload['timestamp']}] {record.levelname:8s} {record.name}: {payload['message']}"
        if context:
            line = f"{line} | {context}"
        if "exception" in payload:
            line = f"{line}\n{payload['exception']}"
        return line


def configure_logging(
    level: str = "INFO",
    json_output: bool = False,
    stream: IO[str] | None = None,
) -> None:
    """(Re)install the gateway's handler, replacing any earlier one.

    Unknown level names fall back to INFO. Gateway records do not reach
    the root logger, so host applications keep their own handlers.
    """
    gateway_logger = logging.getLogger(ROOT_LOGGER)
    gateway_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    gateway_logger.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(GatewayFormatter(json_output=json_output))
    gateway_logger.addHandler(handler)
    gateway_logger.propagate = False


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    return logging.getLogger(name)


configure_logging()
