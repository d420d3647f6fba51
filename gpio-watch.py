#!/usr/bin/env python3
#
# gpio-watch: run scripts in response to GPIO events
#
# Watches sysfs GPIO value files and, when a line changes in a way that
# matches its edge mode, runs {script_dir}/{pin} {pin} {value}.
#

from __future__ import annotations

from gpiowatch.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
