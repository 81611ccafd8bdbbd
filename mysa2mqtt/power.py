"""Power draw estimation.

Two hardware generations report load differently:

* V1 devices report the instantaneous current, so ``watts = V * I``.
* V2 devices report a heater duty cycle in ``[0, 1]``, so the draw is
  estimated as ``V * MaxCurrent * duty``.

When neither path applies the power is unknown. Unknown is ``None`` and is
never coerced to zero.
"""

from __future__ import annotations

from .const import STATE_UNKNOWN
from .models import Device, StatusPush
from .utils import format_decimal


def estimate_power(device: Device, status: StatusPush) -> float | None:
    """Return the estimated draw in watts, or ``None`` when it is unknown."""
    if device.voltage is None:
        return None

    current, duty_cycle = status.current, status.duty_cycle

    if current is not None:
        return device.voltage * current

    if duty_cycle is not None:
        max_current = device.rated_max_current
        if max_current is not None:
            return device.voltage * max_current * duty_cycle

    return None


def format_power(watts: float | None) -> str:
    """Render a power value for the power sensor state topic."""
    return format_decimal(watts, STATE_UNKNOWN)
