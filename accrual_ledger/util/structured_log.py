"""
Structured JSONL logging helpers.

Each event is one JSON object per line with ``ts_ms`` and ``event`` keys.
"""

from __future__ import annotations

import json
import logging
import os
import time
from typing import Any, Dict


Json = Dict[str, Any]

LOG_LEVEL_ENV = "ACCRUAL_LEDGER_LOG_LEVEL"


def _now_ms() -> int:
    return int(time.time() * 1000)


def log_event(logger: logging.Logger, event: str, **fields: Any) -> None:
    """Emit a single JSONL log event at INFO."""
    _emit(logger, logging.INFO, event, fields)


def log_debug_event(logger: logging.Logger, event: str, **fields: Any) -> None:
    _emit(logger, logging.DEBUG, event, fields)


def _emit(logger: logging.Logger, level: int, event: str, fields: Json) -> None:
    if not logger.isEnabledFor(level):
        return
    payload: Json = {"ts_ms": _now_ms(), "event": str(event)}
    payload.update(fields)
    try:
        logger.log(level, json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False))
    except (TypeError, ValueError):
        parts = [f"event={event}"] + [f"{k}={fields.get(k)!r}" for k in sorted(fields.keys())]
        logger.log(level, " ".join(parts))


def configure_logging(level: str | None = None) -> None:
    """Configure the ``accrual_ledger`` logger for JSONL output (stderr).

    ``level`` defaults to ``$ACCRUAL_LEDGER_LOG_LEVEL`` or INFO. Idempotent.
    """
    level_name = (level or os.environ.get(LOG_LEVEL_ENV) or "INFO").upper()
    resolved = getattr(logging, level_name, logging.INFO)

    root = logging.getLogger("accrual_ledger")
    root.setLevel(resolved)
    for h in root.handlers:
        if getattr(h, "_accrual_ledger_jsonl", False):
            return

    handler = logging.StreamHandler()
    handler._accrual_ledger_jsonl = True  # type: ignore[attr-defined]
    handler.setFormatter(logging.Formatter("%(message)s"))
    root.addHandler(handler)
