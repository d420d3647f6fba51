from __future__ import annotations

import os

try:
    import tomllib  # py3.11+
except ModuleNotFoundError:  # pragma: no cover
    import tomli as tomllib

from .constants import DEFAULT_EDGE, DEFAULT_SCRIPT_DIR, GPIO_BASE


class ConfigError(Exception):
    """Invalid configuration file or command-line pin specification."""


def get_bool_env(name: str, default: bool = False) -> bool:
    val = os.getenv(name)
    if val is None:
        return default
    val = val.lower()
    if val in ("1", "true", "yes", "on"):
        return True
    if val in ("0", "false", "no", "off"):
        return False
    return default


def get_notifier_config():
    return {
        "enabled": get_bool_env("GPIOWATCH_NOTIFY", False),
        "pushover_token": os.getenv("PUSHOVER_TOKEN"),
        "pushover_user": os.getenv("PUSHOVER_USER"),
    }


def load_toml_config(path: str) -> dict:
    """Load TOML configuration from path."""
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except OSError as e:
        raise ConfigError(f"cannot read config file {path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"invalid config file {path}: {e}") from e


def _get_cfg(cfg: dict, section: str, key: str, default=None):
    sec = cfg.get(section, {})
    if not isinstance(sec, dict):
        return default
    return sec.get(key, default)


def config_defaults_from(cfg: dict) -> dict:
    """Map TOML config into argparse defaults."""
    pins = _get_cfg(cfg, "watch", "pins", [])
    raw_verbose = _get_cfg(cfg, "logging", "verbose", 0)
    try:
        verbose = int(raw_verbose)
    except (TypeError, ValueError):
        raise ConfigError(f"logging.verbose must be an integer, got {raw_verbose!r}") from None
    if isinstance(pins, (str, int)):
        pins = [pins]
    return {
        "script_dir": _get_cfg(cfg, "watch", "script_dir", DEFAULT_SCRIPT_DIR),
        "default_edge": _get_cfg(cfg, "watch", "default_edge", DEFAULT_EDGE),
        "pins": [str(p) for p in pins],
        "gpio_base": _get_cfg(cfg, "watch", "gpio_base", GPIO_BASE),
        "verbose": verbose,
        "json": bool(_get_cfg(cfg, "logging", "json", False)),
        "logfile": _get_cfg(cfg, "logging", "logfile", None),
        "detach": bool(_get_cfg(cfg, "daemon", "detach", False)),
    }


def resolved_config_dict(args) -> dict:
    return {
        "watch": {
            "script_dir": args.script_dir,
            "default_edge": args.default_edge,
            "pins": list(args.pins),
            "gpio_base": args.gpio_base,
        },
        "logging": {
            "verbose": args.verbose,
            "json": bool(args.json),
            "logfile": args.logfile,
        },
        "daemon": {
            "detach": bool(args.detach),
        },
        "notify": {
            "enabled": get_notifier_config()["enabled"],
        },
    }
