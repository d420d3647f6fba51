import select

import pytest

from gpiowatch.logging import DEBUG, INFO, JsonLogger


class CapturingLogger(JsonLogger):
    """Records every event regardless of level instead of printing it."""
    def __init__(self):
        super().__init__(enable_json=False, level=DEBUG)
        self.events = []

    def emit(self, event: str, level: int = INFO, **fields):
        self.events.append((event, level, fields))

    def names(self):
        return [e[0] for e in self.events]

    def find(self, name):
        return [fields for event, _, fields in self.events if event == name]


class FakePoller:
    """Stands in for select.poll(); each poll() returns the next scripted wake."""
    def __init__(self, wakes=None):
        self.registered = {}
        self.wakes = list(wakes or [])

    def register(self, fd, mask):
        self.registered[fd] = mask

    def poll(self, timeout=None):
        if not self.wakes:
            raise AssertionError("no more scripted wakes")
        wake = self.wakes.pop(0)
        if isinstance(wake, Exception):
            raise wake
        return [(fd, select.POLLPRI | select.POLLERR) for fd in wake]


@pytest.fixture
def logger():
    return CapturingLogger()


@pytest.fixture
def make_script(tmp_path):
    """Write an executable shell script named after a pin into tmp_path/scripts."""
    script_dir = tmp_path / "scripts"
    script_dir.mkdir(exist_ok=True)

    def _make(pin, body="exit 0", mode=0o755):
        path = script_dir / str(pin)
        path.write_text("#!/bin/sh\n" + body + "\n")
        path.chmod(mode)
        return path

    _make.dir = script_dir
    return _make
