from __future__ import annotations

import os
import time
from typing import BinaryIO

from .constants import GPIO_BASE
from .state import EdgeMode


class GpioError(Exception):
    """A sysfs GPIO setup step failed."""


class SysfsGpio:
    """Line handles backed by the Linux sysfs GPIO interface.

    Setup (export, edge, direction) happens once before watching starts.
    The value files it opens signal edges as POLLPRI readiness."""
    def __init__(self, base: str = GPIO_BASE, export_timeout_s: float = 1.0):
        self.base = base
        self.export_timeout_s = export_timeout_s

    def pin_dir(self, pin: int) -> str:
        return os.path.join(self.base, f"gpio{pin}")

    def value_path(self, pin: int) -> str:
        return os.path.join(self.pin_dir(pin), "value")

    def _write(self, path: str, value: str):
        try:
            with open(path, "w") as handle:
                handle.write(value)
        except OSError as e:
            raise GpioError(f"failed to write {value!r} to {path}: {e}") from e

    def export(self, pin: int):
        path = self.pin_dir(pin)
        if os.path.isdir(path):
            return
        self._write(os.path.join(self.base, "export"), str(pin))
        # udev may take a moment to create the directory.
        deadline = time.monotonic() + self.export_timeout_s
        while not os.path.isdir(path):
            if time.monotonic() > deadline:
                raise GpioError(f"timed out waiting for {path} to appear")
            time.sleep(0.01)

    def set_edge(self, pin: int, edge: EdgeMode):
        self._write(os.path.join(self.pin_dir(pin), "edge"), edge.sysfs_edge)

    def set_direction(self, pin: int, direction: str = "in"):
        self._write(os.path.join(self.pin_dir(pin), "direction"), direction)

    def setup_input(self, pin: int, edge: EdgeMode):
        self.export(pin)
        self.set_direction(pin, "in")
        self.set_edge(pin, edge)

    def open_value(self, pin: int) -> BinaryIO:
        path = self.value_path(pin)
        try:
            return open(path, "rb", buffering=0)
        except OSError as e:
            raise GpioError(f"failed to open {path}: {e}") from e
