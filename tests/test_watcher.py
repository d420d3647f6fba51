import select

import pytest

from conftest import FakePoller
from gpiowatch.state import EdgeMode, WatchedLine
from gpiowatch.watcher import GpioWatcher, PollError


class RecordingDispatcher:
    def __init__(self, on_dispatch=None):
        self.calls = []
        self.on_dispatch = on_dispatch

    def dispatch(self, pin, value):
        self.calls.append((pin, value))
        if self.on_dispatch:
            self.on_dispatch(pin, value)


class FakeValueFile:
    """A sysfs value file; set() changes what the next read returns."""
    def __init__(self, path, value=b"0\n"):
        self.path = path
        self.set(value)
        self.handle = open(path, "rb", buffering=0)

    def set(self, value):
        if isinstance(value, int):
            value = f"{value}\n".encode()
        self.path.write_bytes(value)


@pytest.fixture
def make_line(tmp_path):
    files = []

    def _make(pin, edge, value=b"0\n"):
        f = FakeValueFile(tmp_path / f"gpio{pin}_value", value)
        files.append(f)
        return WatchedLine(pin, EdgeMode(edge), handle=f.handle), f

    yield _make
    for f in files:
        f.handle.close()


def _watcher(lines, dispatcher, logger, wakes, clock=None):
    poller = FakePoller(wakes)
    w = GpioWatcher(lines, dispatcher, logger, poller_factory=lambda: poller, clock=clock or (lambda: 0.0))
    return w, poller


def test_start_registers_for_urgent_data_and_reads_initial_value(make_line, logger):
    line, _ = make_line(4, "both", b"1\n")
    w, poller = _watcher([line], RecordingDispatcher(), logger, [])
    w.start()
    assert poller.registered == {line.fileno(): select.POLLPRI | select.POLLERR}
    assert line.last_value == 1
    # idempotent
    w.start()
    assert len(poller.registered) == 1


def test_both_mode_dispatches_every_wake(make_line, logger):
    line, f = make_line(7, "both")
    d = RecordingDispatcher()
    values = [0, 1, 1, 0]
    w, _ = _watcher([line], d, logger, [[line.fileno()]] * len(values))
    w.start()
    for v in values:
        f.set(v)
        assert w.poll_once() == 1
    assert d.calls == [(7, 0), (7, 1), (7, 1), (7, 0)]


def test_switch_scenario_dispatches_once(make_line, logger):
    line, f = make_line(4, "switch", b"0\n")
    d = RecordingDispatcher()
    t = {"now": 0.0}
    w, _ = _watcher([line], d, logger, [[line.fileno()]] * 4, clock=lambda: t["now"])
    w.start()
    for now, v in [(0.0, 1), (0.5, 0), (1.5, 0), (1.5, 0)]:
        t["now"] = now
        f.set(v)
        w.poll_once()
    assert d.calls == [(4, 1)]


def test_rising_and_falling_filter_by_value(make_line, logger):
    up, fu = make_line(1, "rising")
    down, fd = make_line(2, "falling")
    d = RecordingDispatcher()
    w, _ = _watcher([up, down], d, logger, [[up.fileno(), down.fileno()]] * 2)
    w.start()
    fu.set(1)
    fd.set(1)
    w.poll_once()
    fu.set(0)
    fd.set(0)
    w.poll_once()
    assert d.calls == [(1, 1), (2, 0)]


def test_only_ready_lines_are_read(make_line, logger):
    a, fa = make_line(3, "both", b"1\n")
    b, fb = make_line(9, "both", b"1\n")
    d = RecordingDispatcher()
    w, _ = _watcher([a, b], d, logger, [[b.fileno()]])
    w.start()
    w.poll_once()
    assert d.calls == [(9, 1)]


def test_ready_lines_are_handled_in_watch_set_order(make_line, logger):
    a, _ = make_line(3, "both", b"1\n")
    b, _ = make_line(9, "both", b"0\n")
    d = RecordingDispatcher()
    # poller reports b first; lines are still handled in registration order
    w, _ = _watcher([a, b], d, logger, [[b.fileno(), a.fileno()]])
    w.start()
    assert w.poll_once() == 2
    assert d.calls == [(3, 1), (9, 0)]


def test_wake_without_urgent_flag_is_ignored(make_line, logger):
    line, _ = make_line(4, "both", b"1\n")
    d = RecordingDispatcher()

    class ErrOnlyPoller(FakePoller):
        def poll(self, timeout=None):
            return [(line.fileno(), select.POLLERR)]

    poller = ErrOnlyPoller()
    w = GpioWatcher([line], d, logger, poller_factory=lambda: poller)
    assert w.poll_once() == 0
    assert d.calls == []


def test_unparsable_value_is_skipped_without_touching_state(make_line, logger):
    line, f = make_line(4, "switch", b"0\n")
    d = RecordingDispatcher()
    w, _ = _watcher([line], d, logger, [[line.fileno()]] * 2, clock=lambda: 50.0)
    w.start()
    f.set(b"")
    assert w.poll_once() == 0
    assert line.last_value == 0
    assert line.switch_state == 0
    assert line.last_transition_at is None
    assert logger.find("value_unreadable")

    f.set(b"1\n")
    assert w.poll_once() == 1
    assert d.calls == [(4, 1)]


def test_dispatch_blocks_until_done_before_next_line(make_line, logger):
    a, _ = make_line(3, "both", b"1\n")
    b, _ = make_line(9, "both", b"1\n")
    order = []

    def slow(pin, value):
        order.append(("start", pin))
        order.append(("end", pin))

    d = RecordingDispatcher(on_dispatch=slow)
    w, _ = _watcher([a, b], d, logger, [[a.fileno(), b.fileno()]])
    w.poll_once()
    assert order == [("start", 3), ("end", 3), ("start", 9), ("end", 9)]


def test_missing_script_does_not_stop_other_lines(make_line, make_script, logger):
    from gpiowatch.dispatch import ScriptDispatcher

    make_script(9)
    a, _ = make_line(3, "both", b"1\n")
    b, _ = make_line(9, "both", b"1\n")
    d = ScriptDispatcher(str(make_script.dir), logger)
    w, _ = _watcher([a, b], d, logger, [[a.fileno(), b.fileno()]] * 2)
    w.poll_once()
    w.poll_once()
    assert [f["pin"] for f in logger.find("script_missing")] == [3, 3]
    assert [f["pin"] for f in logger.find("script_run")] == [9, 9]


def test_poll_failure_raises_poll_error(make_line, logger):
    line, _ = make_line(4, "both")
    w, _ = _watcher([line], RecordingDispatcher(), logger, [OSError(9, "Bad file descriptor")])
    with pytest.raises(PollError):
        w.run()


def test_garbled_read_with_json_debug_logging_is_not_fatal(make_line):
    import io
    import json

    from gpiowatch.logging import DEBUG, JsonLogger

    out, err = io.StringIO(), io.StringIO()
    log = JsonLogger(enable_json=True, level=DEBUG, out=out, err=err)
    line, f = make_line(4, "both", b"0\n")
    d = RecordingDispatcher()
    w, _ = _watcher([line], d, log, [[line.fileno()]] * 3)
    w.start()

    f.set(b"")
    assert w.poll_once() == 0
    f.set(b"\xff\n")
    assert w.poll_once() == 0
    f.set(b"1\n")
    assert w.poll_once() == 1
    assert d.calls == [(4, 1)]

    events = [json.loads(l) for l in out.getvalue().splitlines()]
    unreadable = [e for e in events if e["event"] == "value_unreadable"]
    assert [e["raw"] for e in unreadable] == ["", "\ufffd\n"]
