from __future__ import annotations

import argparse
import os
from argparse import RawDescriptionHelpFormatter

from gpiozero import DigitalInputDevice
from gpiozero.exc import BadPinFactory, GPIOZeroError

from .config import config_defaults_from
from .constants import USAGE_EXAMPLES, VERSION


def _pin_factory():
    """Prefer the lgpio backend (Pi 5 / Debian Trixie+) when it is installed."""
    try:
        import lgpio
        from gpiozero.pins.lgpio import LGPIOFactory
    except ImportError:
        return None
    try:
        return LGPIOFactory()
    except lgpio.error as e:
        # no gpiochip on this host
        raise BadPinFactory(f"lgpio: {e}") from e


def _read_sysfs(path: str) -> str:
    try:
        with open(path) as f:
            return f.read().strip()
    except OSError:
        return "-"


def script_status(script_dir: str, pin: int) -> str:
    path = os.path.join(script_dir, str(pin))
    if not os.path.isfile(path):
        return "missing"
    if not os.access(path, os.X_OK):
        return "not executable"
    return "ok"


def run_doctor(args, specs) -> int:
    """Report script and line status for each pin in the watch set. Runs nothing."""
    print(f"gpio-watch {VERSION} doctor (safe, no scripts are run)")
    print(f"  script_dir={args.script_dir}")
    print(f"  gpio_base={args.gpio_base} present={os.path.isdir(args.gpio_base)}")
    if not specs:
        print("  WARN: no pins to watch (no pins given and no scripts found)")
        return 0

    factory = None
    try:
        factory = _pin_factory()
    except (GPIOZeroError, OSError) as e:
        print(f"  WARN: lgpio backend unavailable ({e}); using gpiozero default")

    for spec in specs:
        pin_dir = os.path.join(args.gpio_base, f"gpio{spec.pin}")
        exported = os.path.isdir(pin_dir)
        line = (f"  pin {spec.pin}: edge={spec.edge.value}"
                f" script={script_status(args.script_dir, spec.pin)}"
                f" exported={exported}")
        if exported:
            line += (f" sysfs_direction={_read_sysfs(os.path.join(pin_dir, 'direction'))}"
                     f" sysfs_edge={_read_sysfs(os.path.join(pin_dir, 'edge'))}"
                     f" sysfs_value={_read_sysfs(os.path.join(pin_dir, 'value'))}")
        else:
            line += f" level={_read_level(spec.pin, factory)}"
        print(line)
    return 0


def _read_level(pin: int, factory) -> str:
    # Only for pins sysfs does not hold; gpiozero cannot claim an exported line.
    try:
        dev = DigitalInputDevice(pin, pull_up=None, active_state=True, pin_factory=factory)
    except (GPIOZeroError, OSError) as e:
        return f"unavailable ({e})"
    try:
        return str(int(dev.value))
    finally:
        dev.close()


def build_arg_parser(defaults=None):
    """Construct the CLI argument parser for the daemon."""
    ap = argparse.ArgumentParser(
        prog="gpio-watch",
        description="Run scripts in response to GPIO events.",
        epilog=USAGE_EXAMPLES,
        formatter_class=RawDescriptionHelpFormatter,
    )
    # Built-in defaults, optionally overridden by a TOML config. CLI args win.
    if defaults is None:
        defaults = config_defaults_from({})
    ap.set_defaults(**defaults)
    ap.add_argument("pins", nargs="*", metavar="pin[:edge]",
                    help="Pin to watch, optionally with an edge (rising, falling, both, switch). "
                         "Without any, every pin 0-31 with a script in the script directory is watched.")
    ap.add_argument("-s", "--script-dir", help="Directory holding the event scripts (default: /etc/gpio-scripts).")
    ap.add_argument("-e", "--default-edge", help="Edge used for pins given without one (default: both).")
    ap.add_argument("-v", "--verbose", action="count", help="More log output; repeat for debug output.")
    ap.add_argument("-l", "--logfile", help="Append all output (including scripts') to this file.")
    ap.add_argument("-d", "--detach", action="store_true", help="Detach and run in the background.")
    json_group = ap.add_mutually_exclusive_group()
    json_group.add_argument("--json", dest="json", action="store_true", help="Emit JSON log events.")
    json_group.add_argument("--no-json", dest="json", action="store_false", help="Disable JSON log output.")
    ap.add_argument("--gpio-base", help="sysfs GPIO directory (default: /sys/class/gpio).")
    ap.add_argument("--doctor", action="store_true", help="Check scripts and GPIO lines for the watch set and exit.")
    ap.add_argument("--config", help="Path to a TOML config file. CLI args override config values.")
    ap.add_argument("--print-config", action="store_true", help="Print the resolved configuration and exit.")
    ap.add_argument("--version", action="store_true", help="Print version and exit.")
    return ap
