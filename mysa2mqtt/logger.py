"""Logging setup for the bridge process."""

from __future__ import annotations

import json
import logging
import sys

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

LEVELS = {
    "fatal": logging.CRITICAL,
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
    "trace": TRACE,
}

PRETTY_FORMAT = "%(asctime)s %(levelname)s \x1b[33m[%(name)s]\x1b[39m %(message)s"


class JsonFormatter(logging.Formatter):
    """Format records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "time": self.formatTime(record),
            "level": record.levelname.lower(),
            "name": record.name,
            "msg": record.getMessage(),
        }
        device_id = getattr(record, "device_id", None)
        if device_id is not None:
            entry["deviceId"] = device_id
        if record.exc_info:
            entry["err"] = self.formatException(record.exc_info)
        return json.dumps(entry)


class DeviceLoggerAdapter(logging.LoggerAdapter):
    """Prefix messages with the device id and expose it on the record."""

    def process(self, msg, kwargs):
        extra = dict(kwargs.get("extra") or {})
        extra.update(self.extra or {})
        kwargs["extra"] = extra
        return f"[{self.extra['device_id']}] {msg}", kwargs


def configure_logging(level: str = "info", fmt: str = "pretty") -> None:
    """Install a root handler for ``level`` and ``fmt``."""
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)

    if level == "silent":
        logging.disable(logging.CRITICAL)
        return
    logging.disable(logging.NOTSET)

    handler = logging.StreamHandler(sys.stderr)
    if fmt == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(PRETTY_FORMAT))
    root.addHandler(handler)
    root.setLevel(LEVELS.get(level, logging.INFO))


def device_logger(name: str, device_id: str) -> DeviceLoggerAdapter:
    return DeviceLoggerAdapter(logging.getLogger(name), {"device_id": device_id})
