"""Utility functions for mysa2mqtt."""

from __future__ import annotations

import math


def fahrenheit_to_celsius(fahrenheit: float) -> float:
    """Convert Fahrenheit to Celsius."""
    return (fahrenheit - 32) * 5 / 9


def snap_to_half(value: float) -> float:
    """Snap ``value`` to the nearest 0.5, rounding halves up."""
    return math.floor(value * 2 + 0.5) / 2


def clamp(value: float, minimum: float, maximum: float) -> float:
    """Clamp ``value`` into ``[minimum, maximum]``."""
    return min(maximum, max(minimum, value))


def format_decimal(value: float | None, unknown: str) -> str:
    """Format ``value`` with two decimals, or return ``unknown``."""
    return f"{value:.2f}" if value is not None else unknown
