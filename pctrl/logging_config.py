#  pctrl - Logging Configuration
#
#  One stderr handler on the "pctrl" logger, text or JSON, with the id of
#  the running CLI command stamped on every record. --verbose drops the
#  level to DEBUG and lets the storage libraries speak up too.
#
#  Depends on: (none)
#  Used by:    cli/main.py

import contextvars
import json
import logging
import sys
import time

# Set once per CLI invocation by the app callback
command_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar("command_id", default=None)

# Quiet unless --verbose
_LIBRARY_LOGGERS = ("aiosqlite", "alembic", "httpx", "sqlalchemy.engine")

_TEXT_FORMAT = "%(asctime)s %(command_id)s [%(name)s] %(levelname)s: %(message)s"


def set_command_id(cid: str | None):
    command_id_var.set(cid)


class CommandIdFilter(logging.Filter):
    """Copy the current command id onto the record ("-" outside a command)."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.command_id = command_id_var.get(None) or "-"
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per line; ``entity`` / ``key`` extras are kept."""

    converter = time.gmtime

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S") + f".{int(record.msecs):03d}Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        cid = command_id_var.get(None)
        if cid:
            entry["command_id"] = cid
        for extra in ("entity", "key"):
            value = getattr(record, extra, None)
            if value is not None:
                entry[extra] = value
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def _build_handler(fmt: str) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.addFilter(CommandIdFilter())
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(_TEXT_FORMAT, datefmt="%H:%M:%S"))
    handler.pctrl_handler = True
    return handler


def setup_logging(level: str = "WARNING", fmt: str = "text", verbose: bool = False):
    """Configure the "pctrl" logger.

    Output goes to stderr so stdout stays machine-readable for --json.
    Calling again replaces the handler installed by a previous call.

    Args:
        level: Log level name; unknown names fall back to WARNING.
        fmt: "json" for structured lines, anything else for text.
        verbose: Force DEBUG and stop silencing library loggers.
    """
    root = logging.getLogger("pctrl")
    if verbose:
        root.setLevel(logging.DEBUG)
    else:
        root.setLevel(getattr(logging, level.upper(), logging.WARNING))

    for handler in [h for h in root.handlers if getattr(h, "pctrl_handler", False)]:
        root.removeHandler(handler)
    root.addHandler(_build_handler(fmt))

    for name in _LIBRARY_LOGGERS:
        logging.getLogger(name).setLevel(logging.INFO if verbose else logging.WARNING)
