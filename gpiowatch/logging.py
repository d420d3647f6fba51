from __future__ import annotations

import json
import sys
import time
from typing import Optional, TextIO

ERROR = 0
WARN = 1
INFO = 2
DEBUG = 3

LEVEL_NAMES = {ERROR: "ERROR", WARN: "WARN", INFO: "INFO", DEBUG: "DEBUG"}


class JsonLogger:
    """Minimal structured, levelled logger.

    Emits one line per event (script runs, failures, readiness errors) so logs
    are easy to grep and machine-parse. Events above the configured level are
    dropped; each -v on the command line raises the level by one."""
    def __init__(self, enable_json: bool = False, level: int = WARN,
                 out: Optional[TextIO] = None, err: Optional[TextIO] = None):
        """Create a logger.

        Args:
            enable_json: emit JSON objects instead of plain text lines.
            level: highest level that is printed (ERROR..DEBUG).
            out, err: streams for INFO/DEBUG and ERROR/WARN events. Default to
                sys.stdout / sys.stderr as they are at emit time, so a log file
                redirection done after construction is honoured.
        """
        self.enable_json = enable_json
        self.level = max(ERROR, min(DEBUG, level))
        self._out = out
        self._err = err

    @classmethod
    def from_verbosity(cls, verbose: int, enable_json: bool = False) -> "JsonLogger":
        return cls(enable_json=enable_json, level=WARN + int(verbose or 0))

    def enabled_for(self, level: int) -> bool:
        return level <= self.level

    def emit(self, event: str, level: int = INFO, **fields):
        """Emit an event with a name, level and optional key/value fields."""
        if not self.enabled_for(level):
            return
        t = time.time()
        ms = int((t - int(t)) * 1000)
        # ts: float seconds since epoch. ts_iso is a local timestamp with milliseconds.
        ts_iso = time.strftime('%Y-%m-%d %H:%M:%S', time.localtime(t)) + f'.{ms:03d}'
        name = LEVEL_NAMES[level]
        if self.enable_json:
            payload = {"ts": t, "ts_iso": ts_iso, "level": name, "event": event, **fields}
            msg = json.dumps(payload, sort_keys=True, default=str)
        else:
            msg = f"[{ts_iso}] {name} {event}"
            if fields:
                msg += " " + " ".join(f"{k}={v}" for k, v in fields.items())
        stream = self._stream_for(level)
        print(msg, file=stream, flush=True)

    def _stream_for(self, level: int) -> TextIO:
        if level <= WARN:
            return self._err if self._err is not None else sys.stderr
        return self._out if self._out is not None else sys.stdout

    def error(self, event: str, **fields):
        self.emit(event, level=ERROR, **fields)

    def warn(self, event: str, **fields):
        self.emit(event, level=WARN, **fields)

    def info(self, event: str, **fields):
        self.emit(event, level=INFO, **fields)

    def debug(self, event: str, **fields):
        self.emit(event, level=DEBUG, **fields)
