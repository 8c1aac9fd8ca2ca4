"""Logging configuration: console output plus optional rotating JSON files."""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict

LOG_FILE_BASENAME = "focustrack.log"

# Marks handlers we installed so reconfiguring replaces only ours.
_HANDLER_MARK = "_focustrack_handler"


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        payload: Dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "msg": record.getMessage(),
            "logger": record.name,
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        for k, v in record.__dict__.items():
            if k.startswith("_json_"):
                payload[k[6:]] = v
        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging(level: int | str = logging.INFO, log_dir: str | Path | None = None) -> Path | None:
    """Install focustrack handlers on the root logger. Returns the log file path, if any."""
    root = logging.getLogger()
    root.setLevel(level)
    for handler in list(root.handlers):
        if getattr(handler, _HANDLER_MARK, False):
            root.removeHandler(handler)
            handler.close()

    console = logging.StreamHandler()
    console.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    setattr(console, _HANDLER_MARK, True)
    root.addHandler(console)

    logfile = None
    if log_dir:
        directory = Path(log_dir)
        directory.mkdir(parents=True, exist_ok=True)
        logfile = directory / LOG_FILE_BASENAME
        handler = RotatingFileHandler(logfile, maxBytes=512_000, backupCount=5, encoding="utf-8")
        handler.setFormatter(JsonFormatter())
        setattr(handler, _HANDLER_MARK, True)
        root.addHandler(handler)

    logging.getLogger(__name__).info("logging initialised", extra={"_json_phase": "startup"})
    return logfile


__all__ = ["JsonFormatter", "configure_logging"]
