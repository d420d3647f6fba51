from __future__ import annotations

from typing import Optional

from .constants import SWITCH_DEBOUNCE_S
from .state import EdgeMode, WatchedLine


def parse_value(raw: bytes) -> Optional[int]:
    """Decode the contents of a sysfs value file.

    Returns 0 or 1, or None for an empty or garbled read."""
    text = raw.strip()
    if text == b"1":
        return 1
    if text == b"0":
        return 0
    return None


def evaluate(line: WatchedLine, value: int, now: float) -> Optional[int]:
    """Decide whether a reading of ``value`` on ``line`` is an event.

    Returns the value to pass to the event script (0 or 1), or None.

    rising, falling and both are not debounced: every matching wake
    dispatches. Switch mode flips ``switch_state`` only on a real 0<->1 change
    and only once the refractory period since the last accepted change is over.
    """
    mode = line.edge

    # TODO: rising/falling/both fire on every bounce; decide whether the
    # switch refractory window should apply to them as well.

    if mode is EdgeMode.RISING:
        return 1 if value == 1 else None
    if mode is EdgeMode.FALLING:
        return 0 if value == 0 else None
    if mode is EdgeMode.BOTH:
        return value

    # Whole seconds of the monotonic clock, strict comparison.
    ts = int(now)
    if value == line.switch_state:
        return None
    if line.last_transition_at is not None and ts - line.last_transition_at <= SWITCH_DEBOUNCE_S:
        return None
    line.switch_state = value
    line.last_transition_at = ts
    return value
