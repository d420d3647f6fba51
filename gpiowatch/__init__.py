"""gpiowatch package for gpio-watch."""

from .state import EdgeMode, WatchedLine
from .watcher import GpioWatcher

__all__ = ["EdgeMode", "WatchedLine", "GpioWatcher"]
