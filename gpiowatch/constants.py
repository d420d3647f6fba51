from __future__ import annotations

VERSION = "1.0.0"

# Scripts in this directory are named after the pin they handle
# (so, for example, /etc/gpio-scripts/4).
DEFAULT_SCRIPT_DIR = "/etc/gpio-scripts"
DEFAULT_EDGE = "both"
GPIO_BASE = "/sys/class/gpio"

# Pins scanned for a matching script when none are given on the command line.
SCAN_PIN_COUNT = 32

# Refractory period (whole seconds) after an accepted transition in switch mode.
SWITCH_DEBOUNCE_S = 1

# Status reported when the event script could not be executed at all.
EXEC_FAILED_STATUS = 255

USAGE_EXAMPLES = """\
Usage examples:
  # Watch every pin that has a script in /etc/gpio-scripts
  gpio-watch

  # Push buttons on pins 4 and 17 (debounced), a sensor on 22 (rising only)
  gpio-watch 4:switch 17:switch 22:rising

  # Custom script directory, verbose, logging to a file, detached
  gpio-watch -s /home/pi/gpio-scripts -vv -l /var/log/gpio-watch.log -d 4 17

  # Check wiring and scripts without running anything
  gpio-watch --doctor 4:switch 17

Event scripts are called as:  {script_dir}/{pin} {pin} {value}
"""
