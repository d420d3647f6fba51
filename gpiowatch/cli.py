from __future__ import annotations

import argparse
import json
import os
import sys

from .config import ConfigError, config_defaults_from, get_notifier_config, load_toml_config, resolved_config_dict
from .constants import SCAN_PIN_COUNT, VERSION
from .dispatch import ScriptDispatcher
from .doctor import build_arg_parser, run_doctor
from .gpio import GpioError, SysfsGpio
from .logging import JsonLogger
from .notify import Notifier
from .state import EdgeMode, PinSpec, WatchedLine, parse_pin_spec, unique_pin_specs
from .util import daemonize, redirect_output
from .watcher import GpioWatcher, PollError


def discover_pin_specs(script_dir: str, default_edge: EdgeMode, count: int = SCAN_PIN_COUNT) -> list[PinSpec]:
    """Watch set for when no pins are given: every pin with a script file."""
    return [
        PinSpec(pin, default_edge)
        for pin in range(count)
        if os.path.isfile(os.path.join(script_dir, str(pin)))
    ]


def resolve_pin_specs(args, default_edge: EdgeMode) -> list[PinSpec]:
    if args.pins:
        return unique_pin_specs(parse_pin_spec(tok, default_edge) for tok in args.pins)
    return discover_pin_specs(args.script_dir, default_edge)


def _load_args(argv):
    # --config has to be known before the parser's defaults can be built.
    pre = argparse.ArgumentParser(add_help=False)
    pre.add_argument("--config")
    known, _ = pre.parse_known_args(argv)
    cfg = load_toml_config(known.config) if known.config else {}
    return build_arg_parser(config_defaults_from(cfg)).parse_args(argv)


def main(argv=None):
    """CLI entry point. Builds the watch set, sets up the lines and watches forever."""
    argv = sys.argv[1:] if argv is None else argv
    logger = JsonLogger()

    try:
        args = _load_args(argv)
    except ConfigError as e:
        logger.error("config_error", error=str(e))
        return 1

    if args.version:
        print(VERSION)
        return 0

    if args.print_config:
        print(json.dumps(resolved_config_dict(args), indent=2, sort_keys=True))
        return 0

    logger = JsonLogger.from_verbosity(args.verbose, enable_json=args.json)

    try:
        default_edge = EdgeMode.parse(args.default_edge)
    except ValueError as e:
        logger.error("config_error", error=str(e))
        return 1

    if args.logfile:
        try:
            redirect_output(args.logfile)
        except OSError as e:
            logger.error("logfile_error", path=args.logfile, error=str(e))
            return 1

    if not os.path.isdir(args.script_dir):
        logger.error("script_dir_missing", path=args.script_dir)
        return 1

    try:
        specs = resolve_pin_specs(args, default_edge)
    except ConfigError as e:
        logger.error("config_error", error=str(e))
        return 1

    if args.doctor:
        return run_doctor(args, specs)

    if not specs:
        logger.warn("no_pins", script_dir=args.script_dir)

    gpio = SysfsGpio(args.gpio_base)
    lines = []
    try:
        for spec in specs:
            gpio.setup_input(spec.pin, spec.edge)

        if args.detach:
            daemonize(keep_stdio=bool(args.logfile))

        for spec in specs:
            lines.append(WatchedLine(spec.pin, spec.edge, handle=gpio.open_value(spec.pin)))
    except GpioError as e:
        logger.error("setup_failed", error=str(e))
        for line in lines:
            line.handle.close()
        return 1

    notifier = Notifier.from_config(get_notifier_config())
    dispatcher = ScriptDispatcher(args.script_dir, logger, notifier=notifier)
    watcher = GpioWatcher(lines, dispatcher, logger)
    logger.info(
        "startup",
        version=VERSION,
        script_dir=args.script_dir,
        pins=",".join(f"{s.pin}:{s.edge.value}" for s in specs),
    )

    try:
        watcher.run()
    except PollError as e:
        logger.error("poll_failed", error=str(e))
        return 1
    except KeyboardInterrupt:
        return 0
    finally:
        for line in lines:
            line.handle.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
