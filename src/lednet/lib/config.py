"""Load the optional ``config.json`` that names the device and CLI defaults."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from lednet.lib.models import Config, ConfigError

DEFAULT_CONFIG_PATH = Path("config.json")
ALARM_DEFAULT_KEYS = ("alarm-on", "alarm-off", "alarm-rgb", "alarm-effect")

log = logging.getLogger("lednet")


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    value = data.get(name) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"Config section '{name}' must be an object, got {type(value).__name__}.")
    return value


def config_from_dict(data: dict[str, Any], *, timeout: float | None = None) -> Config:
    device = _section(data, "device")
    ble = _section(data, "ble")
    defaults = _section(data, "defaults")
    alarms = defaults.get("alarms") or {}
    if not isinstance(alarms, dict):
        raise ConfigError("Config 'defaults.alarms' must be an object.")

    base = Config()
    return Config(
        device_id=device.get("id") or None,
        device_name=device.get("name") or None,
        timeout=timeout if timeout is not None else base.timeout,
        service_uuid=ble.get("service_uuid") or None,
        tx_char_uuid=ble.get("tx_char_uuid") or base.tx_char_uuid,
        rx_char_uuid=ble.get("rx_char_uuid") or base.rx_char_uuid,
        default_rgb=defaults.get("rgb") or base.default_rgb,
        default_alarms={key: str(alarms[key]) for key in ALARM_DEFAULT_KEYS if alarms.get(key)},
    )


def load_config(path: Path | None = None, *, timeout: float | None = None) -> Config:
    """Read the config file, falling back to built-in defaults when it does not exist."""
    config_path = path or DEFAULT_CONFIG_PATH
    try:
        text = config_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        if path is not None:
            raise ConfigError(f"Config file not found: {config_path}") from None
        log.debug("No config at %s, using defaults", config_path)
        return config_from_dict({}, timeout=timeout)

    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON in {config_path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config {config_path} must contain a JSON object.")

    config = config_from_dict(data, timeout=timeout)
    log.debug("Loaded config from %s: %s", config_path, config)
    return config
