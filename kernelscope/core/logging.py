"""Logging setup for the indexer.

Processors log with ``extra=event_extra(...)`` so every line about a log
carries its chain, transaction and log index. Staging and production get
one JSON object per line, stamped with the service name; development gets
a short coloured line prefixed with ``[chain:tx:index]``.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

# Fields attached through ``extra=`` by the processors and workers.
EVENT_FIELDS = ("chain_id", "tx_hash", "log_index", "action", "address", "attempt")

_NOISY_LOGGERS = ("httpcore", "httpx", "urllib3", "asyncio", "web3")


def event_extra(chain_id: int, tx_hash: str, log_index: int, **fields: Any) -> dict[str, Any]:
    """Build the ``extra`` mapping that identifies one on-chain log."""
    return {"chain_id": chain_id, "tx_hash": tx_hash, "log_index": log_index, **fields}


class JSONFormatter(logging.Formatter):
    def __init__(self, service: str | None = None) -> None:
        super().__init__()
        self.service = service

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if self.service:
            log_entry["service"] = self.service

        if record.pathname:
            log_entry["module"] = record.module
            log_entry["function"] = record.funcName
            log_entry["line"] = record.lineno

        for key in EVENT_FIELDS:
            if hasattr(record, key):
                log_entry[key] = getattr(record, key)

        if record.exc_info and record.exc_info[1]:
            exc_type = record.exc_info[0]
            log_entry["exception"] = {
                "type": exc_type.__name__ if exc_type else "Unknown",
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info),
            }

        return json.dumps(log_entry, default=str)


class DevFormatter(logging.Formatter):
    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    @staticmethod
    def _coordinates(record: logging.LogRecord) -> str:
        chain_id = getattr(record, "chain_id", None)
        if chain_id is None:
            return ""
        tx_hash = getattr(record, "tx_hash", None)
        if not tx_hash:
            return f"[{chain_id}] "
        return f"[{chain_id}:{tx_hash[:10]}:{getattr(record, 'log_index', '?')}] "

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        ts = datetime.now(timezone.utc).strftime("%H:%M:%S")
        line = (
            f"{color}{ts} [{record.levelname:>8s}]{self.RESET} "
            f"{record.name}: {self._coordinates(record)}{record.getMessage()}"
        )
        if record.exc_info and record.exc_info[1]:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(env: str = "development", log_level: str = "INFO", service: str | None = None) -> None:
    """Install a single stdout handler on the root logger.

    SQL statements are echoed only when developing at DEBUG level.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter(service) if env in ("staging", "production") else DevFormatter())
    root.addHandler(handler)

    for noisy in _NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if env == "development" and level == logging.DEBUG else logging.WARNING
    )
