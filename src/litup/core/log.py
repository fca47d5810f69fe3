from __future__ import annotations

import json
import logging
import os
import sys
from typing import Any, Callable, Optional

from dotenv import load_dotenv

_configured = False

# name of the logger used by the default diagnostic sink (logger=True)
UP_LOGGER = "litup.up"


class JsonHandler(logging.StreamHandler):
    """One JSON object per line on stdout."""
    def __init__(self):
        super().__init__(stream=sys.stdout)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            obj = {
                "ts": record.created,
                "lvl": record.levelname,
                "name": record.name,
                "msg": record.getMessage(),
            }
            entry = getattr(record, "up_entry", None)
            if entry is not None:
                obj["up"] = entry
            for k in ("filename", "lineno", "funcName"):
                obj[k] = getattr(record, k, None)
            self.stream.write(json.dumps(obj, ensure_ascii=False, default=str) + "\n")
            self.flush()
        except Exception:  # pragma: no cover
            self.handleError(record)


def setup(level: Optional[str] = None, json_mode: Optional[bool] = None, *, force: bool = False) -> None:
    """Configure the root logger.
    - Reads LOG_LEVEL, LOG_JSON from env (and .env) if args are None
    - If already configured, do nothing unless force=True
    """
    global _configured
    if _configured and not force:
        return

    load_dotenv()

    lvl = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    py_level = getattr(logging, lvl, None)
    if not isinstance(py_level, int):
        py_level = logging.INFO

    json_flag = json_mode if json_mode is not None else (os.getenv("LOG_JSON", "0") == "1")

    root = logging.getLogger()
    # pytest re-runs would otherwise stack handlers
    root.handlers.clear()
    root.setLevel(py_level)

    if json_flag:
        root.addHandler(JsonHandler())
    else:
        handler = logging.StreamHandler(stream=sys.stdout)
        handler.setFormatter(logging.Formatter(fmt="[%(asctime)s] %(levelname)s %(name)s | %(message)s"))
        root.addHandler(handler)

    _configured = True


def get(name: str) -> logging.Logger:
    """Helper to get a namespaced logger."""
    return logging.getLogger(name)


def set_level(level: str) -> None:
    """Dynamically adjust root log level (e.g., during tests)."""
    py_level = getattr(logging, level.upper(), None)
    logging.getLogger().setLevel(py_level if isinstance(py_level, int) else logging.INFO)


# ---------------- Logger hook ----------------

LoggerHook = Callable[[Any], None]


def default_sink(entry: Any) -> None:
    """Diagnostic sink used when an app is started with logger=True."""
    get(UP_LOGGER).info(
        "up name=%s chained=%s data=%r event=%r",
        entry.name, entry.is_chained, entry.data, entry.event,
        extra={"up_entry": entry.as_dict()},
    )


def _noop(entry: Any) -> None:
    return None


def make_logger(config: Any) -> LoggerHook:
    """
    Normalise a logger configuration into a hook that never raises:
    - True      -> default_sink
    - callable  -> that callable
    - otherwise -> no-op
    """
    if config is True:
        hook = default_sink
    elif callable(config):
        hook = config
    else:
        return _noop

    def safe_hook(entry: Any) -> None:
        try:
            hook(entry)
        except Exception as e:
            get(UP_LOGGER).exception("logger hook failed for %s: %s", getattr(entry, "name", "?"), e)

    safe_hook.wrapped = hook  # type: ignore[attr-defined]
    return safe_hook
