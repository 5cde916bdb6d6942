"""Logging utilities for the catalog importer.

Records carry import-run context through ``extra`` keys prefixed with
``ctx_``; the JSON formatter lifts them into top-level fields.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any, MutableMapping

import orjson

_DEFAULT_LEVEL = os.environ.get("CATIMP_LOG_LEVEL", "INFO")
_CONTEXT_PREFIX = "ctx_"


class JsonFormatter(logging.Formatter):
    """One JSON object per record, with ``ctx_*`` extras as plain fields."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key.startswith(_CONTEXT_PREFIX):
                payload[key[len(_CONTEXT_PREFIX) :]] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return orjson.dumps(payload, default=str).decode("utf-8")


class RunLoggerAdapter(logging.LoggerAdapter):
    """Adds the run id and policy of one import run to every record."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


def run_logger(logger: logging.Logger, run_id: str, policy: str) -> RunLoggerAdapter:
    return RunLoggerAdapter(logger, {f"{_CONTEXT_PREFIX}run_id": run_id, f"{_CONTEXT_PREFIX}policy": policy})


def configure_logging(level: str | int = _DEFAULT_LEVEL, use_json: bool = True) -> None:
    """Configure the root logger; JSON lines by default, plain text for terminals."""
    root = logging.getLogger()
    root.setLevel(level)
    handler = logging.StreamHandler(sys.stdout)
    if use_json:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    root.handlers = [handler]


def get_logger(name: str = "catalog_import") -> logging.Logger:
    if not logging.getLogger().handlers:
        configure_logging()
    return logging.getLogger(name)


__all__ = ["JsonFormatter", "RunLoggerAdapter", "configure_logging", "get_logger", "run_logger"]
