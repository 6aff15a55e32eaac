"""Built-in effect table and short aliases accepted on the command line."""

from __future__ import annotations

import logging
import re

from lednet.lib.models import UnknownEffectAliasError

log = logging.getLogger("lednet")

EFFECT_NAMES: dict[int, str] = {
    0x25: "Seven color cross fade",
    0x26: "Red gradual change",
    0x27: "Green gradual change",
    0x28: "Blue gradual change",
    0x29: "Yellow gradual change",
    0x2A: "Cyan gradual change",
    0x2B: "Purple gradual change",
    0x2C: "White gradual change",
    0x2D: "Red/green cross fade",
    0x2E: "Red/blue cross fade",
    0x2F: "Green/blue cross fade",
    0x30: "Seven color strobe flash",
    0x31: "Red strobe flash",
    0x32: "Green strobe flash",
    0x33: "Blue strobe flash",
    0x34: "Yellow strobe flash",
    0x35: "Cyan strobe flash",
    0x36: "Purple strobe flash",
    0x37: "White strobe flash",
    0x38: "Seven color jumping change",
}

ALIASES: dict[str, int] = {
    "fade7": 0x25,
    "fade-red": 0x26,
    "fade-green": 0x27,
    "fade-blue": 0x28,
    "fade-yellow": 0x29,
    "fade-cyan": 0x2A,
    "fade-purple": 0x2B,
    "fade-white": 0x2C,
    "fade-rg": 0x2D,
    "fade-rb": 0x2E,
    "fade-gb": 0x2F,
    "strobe7": 0x30,
    "strobe-red": 0x31,
    "strobe-green": 0x32,
    "strobe-blue": 0x33,
    "strobe-yellow": 0x34,
    "strobe-cyan": 0x35,
    "strobe-purple": 0x36,
    "strobe-white": 0x37,
    "jump7": 0x38,
}


def _normalize(value: str) -> str:
    return re.sub(r"[^a-z0-9]", "", value.lower())


def resolve(name: str) -> int:
    """Return the effect id for an alias or a fragment of a full effect name.

    Exact alias matches win over fuzzy matches against ``EFFECT_NAMES``.
    """
    key = name.strip().lower()
    if key in ALIASES:
        return ALIASES[key]

    needle = _normalize(key)
    if needle:
        for effect_id, full_name in EFFECT_NAMES.items():
            if needle in _normalize(full_name):
                log.debug("Effect '%s' matched '%s' (0x%02x)", name, full_name, effect_id)
                return effect_id

    raise UnknownEffectAliasError(name, list(ALIASES))


def effect_name(effect_id: int) -> str:
    return EFFECT_NAMES.get(effect_id, f"effect 0x{effect_id:02x}")


def list_effects() -> list[tuple[str, int, str]]:
    return [(alias, effect_id, EFFECT_NAMES[effect_id]) for alias, effect_id in ALIASES.items()]
