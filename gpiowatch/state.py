from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import BinaryIO, Optional

from .config import ConfigError


class EdgeMode(enum.Enum):
    """Which observed values of a line count as events."""
    RISING = "rising"
    FALLING = "falling"
    BOTH = "both"
    SWITCH = "switch"

    @classmethod
    def parse(cls, text: str) -> "EdgeMode":
        # Case-sensitive, same vocabulary as the sysfs edge file plus "switch".
        for mode in cls:
            if mode.value == text:
                return mode
        raise ValueError(f"invalid edge value: {text}")

    @property
    def sysfs_edge(self) -> str:
        # Switch mode needs interrupts on both edges; filtering happens in software.
        if self is EdgeMode.SWITCH:
            return EdgeMode.BOTH.value
        return self.value


@dataclass(frozen=True)
class PinSpec:
    """A parsed ``pin[:edge]`` token."""
    pin: int
    edge: EdgeMode


@dataclass


class WatchedLine:
    """Runtime state for one watched GPIO line.

    Membership of the watch set is fixed at startup. Only ``last_value``,
    ``switch_state`` and ``last_transition_at`` change while the loop runs, and
    only from the loop itself."""
    pin: int
    edge: EdgeMode
    handle: Optional[BinaryIO] = None
    last_value: Optional[int] = None

    # switch mode only
    switch_state: int = 0
    last_transition_at: Optional[int] = None

    def fileno(self) -> int:
        return self.handle.fileno()


def parse_pin_spec(token: str, default_edge: EdgeMode) -> PinSpec:
    """Parse a command-line ``pin[:edge]`` token.

    Raises ConfigError for a bad pin number or an unknown edge name."""
    pin_text, sep, edge_text = token.partition(":")
    try:
        pin = int(pin_text)
    except ValueError:
        raise ConfigError(f"invalid pin spec: {token}") from None
    if pin < 0:
        raise ConfigError(f"invalid pin spec: {token}")

    if not sep:
        return PinSpec(pin, default_edge)
    try:
        edge = EdgeMode.parse(edge_text)
    except ValueError:
        raise ConfigError(f"unknown edge spec: {token}") from None
    return PinSpec(pin, edge)


def unique_pin_specs(specs) -> list[PinSpec]:
    """Collapse repeated pins, keeping first-seen order and the last edge given."""
    by_pin: dict[int, PinSpec] = {}
    for spec in specs:
        by_pin[spec.pin] = spec
    return list(by_pin.values())
