"""Logging configuration for processes embedding the durable queue."""

from __future__ import annotations

import logging
from typing import IO, Optional

from pythonjsonlogger import json as jsonlogger

from shared.log import ROOT_LOGGER_NAME, TRACE


def _resolve_level(log_level: str) -> int:
    if log_level.lower() == "trace":
        return TRACE
    return getattr(logging, log_level.upper(), logging.INFO)


def component_of(logger_name: str) -> Optional[str]:
    """'durable_queue.store' -> 'store'; None for loggers outside the queue."""
    prefix = ROOT_LOGGER_NAME + "."
    if logger_name.startswith(prefix):
        return logger_name[len(prefix):]
    return None


class QueueJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter that splits the queue component out of the logger name."""

    def add_fields(self, log_data, record, message_dict):
        super().add_fields(log_data, record, message_dict)
        component = component_of(record.name)
        if component is not None:
            log_data["component"] = component


def configure_logging(
    log_level: str = "info",
    json_output: bool = False,
    stream: Optional[IO[str]] = None,
) -> logging.Handler:
    """Configure the root logger.

    JSON output format:
        {"ts": "...", "level": "...", "name": "...", "msg": "...", "component": "..."}
    where component is only present for durable_queue.* loggers.

    Args:
        log_level: Logging level string (e.g., "trace", "debug", "info").
            Unknown names fall back to INFO.
        json_output: Emit structured JSON lines instead of plain text.
        stream: Where to write; stderr when None.

    Returns:
        The installed handler.
    """
    level = _resolve_level(log_level)

    if json_output:
        formatter = QueueJsonFormatter(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            rename_fields={
                "asctime": "ts",
                "levelname": "level",
                "message": "msg",
            },
        )
    else:
        formatter = logging.Formatter(
            fmt="%(asctime)s %(levelname)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    handler = logging.StreamHandler(stream)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    # One handler per process; repeated calls replace it
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)
    return handler
