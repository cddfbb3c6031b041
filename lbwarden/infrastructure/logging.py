"""
Centralized Logging

Architectural Intent:
- Provides structured JSON logging for all lbwarden components
- Centralizes log configuration on the "lbwarden" logger so the embedding
  control loop keeps ownership of the root logger
- Level usually comes from ControllerConfig.log_level

Levels used by lbwarden:
- DEBUG: cache hits and expiries, every simulated remote request, batch sizes
- INFO: each remote mutation (create/delete load balancer, listener changes,
  target registration, routes) and the converged status of a pass
- WARNING: degraded but recoverable states, such as a failed remote task,
  ambiguous load balancer ownership, or nodes resolving to no instance
- ERROR: a required cloud setting is missing and loading fails closed
"""

import json
import logging
import sys
from datetime import datetime, UTC
from typing import Union


class JSONFormatter(logging.Formatter):
    """Structured JSON log formatter."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry)


def configure_logging(
    level: Union[int, str] = logging.INFO,
    json_format: bool = False,
) -> None:
    """Configure logging for lbwarden.

    Args:
        level: Logging level, as a number or a name such as "DEBUG".
        json_format: If True, use JSON structured output. Otherwise human-readable.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING

    root = logging.getLogger("lbwarden")
    root.setLevel(level)

    # Remove existing handlers
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        )

    root.addHandler(handler)
