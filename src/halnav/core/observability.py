from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import Any, Dict, Iterator

# attributes every LogRecord already has; extras must not overwrite them
RESERVED_LOG_KEYS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime"}

EVENT_LOGGER = "halnav.observability"


def _clean_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in fields.items() if k not in RESERVED_LOG_KEYS}


def log_event(
    event: str,
    logger: logging.Logger | None = None,
    *,
    level: int = logging.INFO,
    **fields: Any,
) -> None:
    """
    Minimal structured logging helper.
    - Uses the `extra` dict so formatters can include keys.
    - Drops reserved LogRecord attributes to avoid collisions.
    """
    log = logger or logging.getLogger(EVENT_LOGGER)
    extra = {"event": event, **_clean_fields(fields)}
    log.log(level, event, extra=extra)


@contextmanager
def timed_event(
    event: str, logger: logging.Logger | None = None, **fields: Any
) -> Iterator[Dict[str, Any]]:
    """
    Log `event` once the block finishes, with duration_ms and a status.

    The block may add fields (e.g. an HTTP status) to the yielded dict.
    On exception it is logged at warning level with status "exception" and
    error_type, and the exception propagates.
    """
    start = time.perf_counter()
    extra: Dict[str, Any] = dict(fields)
    try:
        yield extra
    except Exception as exc:
        extra["status"] = "exception"
        extra["error_type"] = type(exc).__name__
        raise
    finally:
        failed = extra.setdefault("status", "ok") == "exception"
        extra["duration_ms"] = int((time.perf_counter() - start) * 1000)
        log_event(
            event,
            logger,
            level=logging.WARNING if failed else logging.INFO,
            **extra,
        )


__all__ = ["log_event", "timed_event", "EVENT_LOGGER"]
