from __future__ import annotations

import os
import subprocess
from dataclasses import dataclass
from typing import Optional

from .constants import EXEC_FAILED_STATUS
from .logging import JsonLogger


@dataclass
class DispatchResult:
    """Outcome of one dispatch, for logging and tests."""
    ran: bool
    returncode: Optional[int] = None
    signal: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.ran and self.returncode == 0


class ScriptDispatcher:
    """Run ``{script_dir}/{pin} {pin} {value}`` and wait for it.

    Execution is synchronous: the watch loop is blocked until the script
    exits, and no timeout is applied. Failures are logged and never raised.
    """
    def __init__(self, script_dir: str, logger: JsonLogger, notifier=None):
        self.script_dir = script_dir
        self.logger = logger
        self.notifier = notifier

    def script_path(self, pin: int) -> str:
        return os.path.join(self.script_dir, str(pin))

    def dispatch(self, pin: int, value: int) -> DispatchResult:
        path = self.script_path(pin)
        if not os.path.isfile(path):
            self.logger.warn("script_missing", pin=pin, path=path)
            return DispatchResult(ran=False)

        self.logger.info("script_run", pin=pin, path=path, value=value)
        try:
            # argv[0] is the script path; stdout/stderr are inherited.
            proc = subprocess.run([path, str(pin), str(value)])
            rc = proc.returncode
        except OSError as e:
            self.logger.debug("script_exec_error", pin=pin, path=path, error=str(e))
            rc = EXEC_FAILED_STATUS

        if rc < 0:
            result = DispatchResult(ran=True, signal=-rc)
            self.logger.warn("script_killed", pin=pin, signal=-rc)
            self._notify_failure(pin, value, f"killed by signal {-rc}")
        else:
            result = DispatchResult(ran=True, returncode=rc)
            if rc != 0:
                self.logger.warn("script_failed", pin=pin, status=rc)
                self._notify_failure(pin, value, f"exited with status {rc}")
        return result

    def _notify_failure(self, pin: int, value: int, what: str):
        if self.notifier is None:
            return
        self.notifier.send(
            title=f"gpio-watch: pin {pin} script failed",
            message=f"{self.script_path(pin)} {pin} {value} {what}",
        )
