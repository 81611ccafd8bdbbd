"""This module contains mysa2mqtt exceptions."""

from __future__ import annotations


class MysaError(Exception):
    """Base class for mysa2mqtt errors."""


class MysaApiError(MysaError):
    """The Mysa cloud API returned an error or could not be reached."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status


class MysaAuthenticationError(MysaApiError):
    """Authentication with the Mysa cloud failed or the session expired."""
