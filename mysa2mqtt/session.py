"""Persistence of the Mysa session between runs."""

from __future__ import annotations

import logging
import os

from pydantic import ValidationError

from .models import MysaSession

_LOGGER = logging.getLogger(__name__)


def load_session(filename: str) -> MysaSession | None:
    """Load a session from ``filename``, or return ``None`` if there is none."""
    _LOGGER.info("Loading Mysa session...")
    try:
        with open(filename, "r", encoding="utf-8") as f:
            return MysaSession.model_validate_json(f.read())
    except (OSError, ValidationError):
        _LOGGER.info("No valid Mysa session file found.")
        return None


def save_session(session: MysaSession | None, filename: str) -> None:
    """Write ``session`` to ``filename``; remove the file when it is ``None``."""
    if session is not None:
        _LOGGER.info("Saving Mysa session...")
        with open(filename, "w", encoding="utf-8") as f:
            f.write(session.model_dump_json())
        return

    _LOGGER.debug("Removing Mysa session file...")
    try:
        os.remove(filename)
    except FileNotFoundError:
        pass
