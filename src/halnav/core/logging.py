import logging
import os
from typing import IO, Any, Iterable, Optional

LOG_LEVEL_ENV = "HALNAV_LOG_LEVEL"

LOG_EXTRA_FIELDS = (
    "rel",
    "hop",
    "hops",
    "href",
    "result_type",
    "results",
    "status",
    "duration_ms",
    "attempt",
    "error_type",
)


class LogfmtFormatter(logging.Formatter):
    """
    Renders records as logfmt, e.g.
      level=info logger=halnav.observability event=hal_fetch href=/a status=ok
    Only the given extra fields are printed, in order; missing ones are skipped.
    """

    def __init__(self, fields: Iterable[str] = LOG_EXTRA_FIELDS):
        super().__init__()
        self.fields = tuple(fields)

    def format(self, record: logging.LogRecord) -> str:
        pairs = [("level", record.levelname.lower()), ("logger", record.name)]
        msg = record.getMessage()
        if msg:
            pairs.append(("event", msg))
        pairs.extend(
            (key, getattr(record, key))
            for key in self.fields
            if getattr(record, key, None) is not None
        )
        if record.exc_info and record.exc_info[1] is not None:
            exc = record.exc_info[1]
            pairs.append(("exc_type", type(exc).__name__))
            pairs.append(("exc", str(exc)))
        return " ".join(f"{key}={self._quote(val)}" for key, val in pairs)

    @staticmethod
    def _quote(val: Any) -> str:
        if isinstance(val, (int, float, bool)):
            return str(val)
        if isinstance(val, (list, tuple)):
            # hop chains render as a>b>c
            val = ">".join(str(v) for v in val)
        s = str(val)
        if s and not any(c in s for c in ' ="'):
            return s
        return '"' + s.replace('"', '\\"') + '"'


def setup_logging(level: Optional[str] = None, *, stream: Optional[IO[str]] = None) -> None:
    """Send root logging to `stream` (stderr) as logfmt; level defaults to $HALNAV_LOG_LEVEL."""

    level = level or os.getenv(LOG_LEVEL_ENV, "INFO")
    root = logging.getLogger()
    # replace, so repeated calls do not duplicate output
    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler(stream)
    handler.setFormatter(LogfmtFormatter())
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))


__all__ = ["setup_logging", "LogfmtFormatter", "LOG_EXTRA_FIELDS", "LOG_LEVEL_ENV"]
