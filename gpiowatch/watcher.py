from __future__ import annotations

import select
from typing import Callable, Iterable, Optional

from .debounce import evaluate, parse_value
from .dispatch import ScriptDispatcher
from .logging import JsonLogger
from .state import WatchedLine
from .util import now_s


class PollError(Exception):
    """The readiness wait itself failed; watching cannot continue."""


class GpioWatcher:
    """Wait on every watched line at once and run scripts for qualifying events.

    Single-threaded: lines that become ready together are handled in watch-set
    order, and each dispatched script runs to completion before the next line
    is looked at."""
    def __init__(
        self,
        lines: Iterable[WatchedLine],
        dispatcher: ScriptDispatcher,
        logger: JsonLogger,
        poller_factory: Callable = select.poll,
        clock: Callable[[], float] = now_s,
    ):
        self.lines = list(lines)
        self.dispatcher = dispatcher
        self.logger = logger
        self._poller_factory = poller_factory
        self._clock = clock
        self._poller = None

    def start(self):
        """Register all handles and take the initial reading of each line.

        The initial read also clears any edge that was pending before we started."""
        if self._poller is not None:
            return
        poller = self._poller_factory()
        for line in self.lines:
            line.last_value = self._read(line)
            poller.register(line.fileno(), select.POLLPRI | select.POLLERR)
        self._poller = poller
        self.logger.info("watch_started", pins=",".join(str(l.pin) for l in self.lines))

    def run(self):
        """Watch forever. Raises PollError if the readiness wait fails."""
        self.start()
        while True:
            self.poll_once()

    def poll_once(self, timeout_ms: Optional[int] = None) -> int:
        """Block until at least one line is ready (or timeout) and handle it.

        Returns the number of scripts dispatched during this wake."""
        self.start()
        try:
            ready = dict(self._poller.poll(timeout_ms))
        except OSError as e:
            raise PollError(f"poll failed: {e}") from e

        dispatched = 0
        for line in self.lines:
            if not ready.get(line.fileno(), 0) & select.POLLPRI:
                continue
            if self.handle_ready(line) is not None:
                dispatched += 1
        return dispatched

    def handle_ready(self, line: WatchedLine) -> Optional[int]:
        """Re-read a ready line, filter it and dispatch. Returns the dispatched value."""
        self.logger.debug("event", pin=line.pin)
        value = self._read(line)
        if value is None:
            return None
        line.last_value = value

        event = evaluate(line, value, self._clock())
        if event is None:
            return None
        self.dispatcher.dispatch(line.pin, event)
        return event

    def _read(self, line: WatchedLine) -> Optional[int]:
        try:
            line.handle.seek(0)
            raw = line.handle.read(2)
        except OSError as e:
            self.logger.warn("value_unreadable", pin=line.pin, error=str(e))
            return None
        value = parse_value(raw or b"")
        if value is None:
            self.logger.debug("value_unreadable", pin=line.pin, raw=raw.decode("ascii", "replace"))
        return value
