from __future__ import annotations

import os
import sys
import time


def now_s() -> float:
    """Monotonic clock in seconds."""
    return time.monotonic()


def redirect_output(path: str):
    """Append stdout and stderr (ours and every child's) to a log file.

    Raises OSError if the file cannot be opened."""
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_APPEND, 0o644)
    sys.stdout.flush()
    sys.stderr.flush()
    os.dup2(fd, 1)
    os.dup2(fd, 2)
    os.close(fd)


def daemonize(keep_stdio: bool = False):
    """Detach from the controlling terminal.

    The working directory is left alone so relative script paths keep working.
    Unless keep_stdio is set, stdin/stdout/stderr are pointed at /dev/null."""
    if os.fork() > 0:
        os._exit(0)
    os.setsid()
    if os.fork() > 0:
        os._exit(0)

    devnull = os.open(os.devnull, os.O_RDWR)
    os.dup2(devnull, 0)
    if not keep_stdio:
        sys.stdout.flush()
        sys.stderr.flush()
        os.dup2(devnull, 1)
        os.dup2(devnull, 2)
    if devnull > 2:
        os.close(devnull)
