"""Alarm DSL parsing and other text/notification helpers for LEDnetWF control."""

from __future__ import annotations

import json
import logging
import re

from lednet.lib import effects
from lednet.lib.models import (
    ActionType,
    AlarmKind,
    BasicAlarmEntry,
    DayMask,
    EffectAlarmEntry,
    MalformedAlarmSyntaxError,
    Notification,
)

DEFAULT_ALARM_BRIGHTNESS = 100
DEFAULT_ALARM_SPEED = 50
DAY_NAMES = ["mon", "tue", "wed", "thu", "fri", "sat", "sun"]

TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")
BINARY_DAYS_PATTERN = re.compile(r"^[01]{7}$")
MODIFIER_PATTERNS = {
    "#": re.compile(r"#(\d+)"),
    "%": re.compile(r"%(\d+)"),
}
log = logging.getLogger("lednet")

AlarmEntry = BasicAlarmEntry | EffectAlarmEntry


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def bin_to_hex(data, width=16):
    s = "\n"
    for i in range(0, len(data), width):
        chunk = data[i : i + width]
        hex_str = " ".join(f"{b:02x}" for b in chunk)
        s += f"{hex_str:48}\n"
    return s


def parse_rgb(value: str) -> tuple[int, int, int]:
    """Parse ``R,G,B``; channels outside 0..255 are clamped."""
    parts = [part.strip() for part in value.split(",")]
    if len(parts) != 3:
        raise ValueError(f"Expected 3 comma-separated values R,G,B, got {value!r}")
    try:
        r, g, b = (clamp(int(part), 0, 255) for part in parts)
    except ValueError as exc:
        raise ValueError(f"RGB values must be integers, got {value!r}") from exc
    return r, g, b


def parse_day_mask(value: str) -> int:
    """Resolve a day mask given as ``once``, 7 binary digits, decimal or 0x hex."""
    cleaned = value.strip().lower()
    if cleaned == "once":
        return DayMask.ONCE
    if BINARY_DAYS_PATTERN.match(cleaned):
        return int(cleaned, 2)
    try:
        mask = int(cleaned, 16) if cleaned.startswith("0x") else int(cleaned, 10)
    except ValueError as exc:
        raise ValueError(f"Invalid day mask: {value!r}") from exc
    if not 0 <= mask <= 0xFF:
        raise ValueError(f"Day mask must fit in one byte, got {value!r}")
    return mask


def day_mask_to_days(mask: int) -> list[str]:
    days = [name for bit, name in enumerate(DAY_NAMES) if mask & (1 << bit)]
    if mask & DayMask.ONCE:
        days.append("once")
    return days


def parse_alarms(
    text: str,
    kind: AlarmKind | str,
    *,
    default_mask: int = DayMask.EVERY_DAY,
) -> list[AlarmEntry]:
    """Parse ``;``-separated alarm entries of one kind.

    Any malformed entry aborts the whole batch.
    """
    kind = AlarmKind(kind)
    entries: list[AlarmEntry] = []
    for fragment in text.split(";"):
        fragment = fragment.strip()
        if not fragment:
            continue
        entries.append(parse_alarm_entry(fragment, kind, default_mask=default_mask))
    log.debug("Parsed %d %s alarm(s) from %r", len(entries), kind, text)
    return entries


def parse_alarm_entry(
    fragment: str,
    kind: AlarmKind,
    *,
    default_mask: int = DayMask.EVERY_DAY,
) -> AlarmEntry:
    rest = fragment
    brightness, rest = _take_modifier(rest, "#", DEFAULT_ALARM_BRIGHTNESS, fragment)
    speed, rest = _take_modifier(rest, "%", DEFAULT_ALARM_SPEED, fragment)

    body, *day_tokens = rest.split("/")
    day_mask = _parse_days(day_tokens, fragment) if day_tokens else default_mask

    time_token, _, params = body.partition(",")
    hour, minute = _parse_time(time_token.strip(), fragment)
    params = params.strip()

    if kind in (AlarmKind.on, AlarmKind.off) and params:
        raise MalformedAlarmSyntaxError(f"'{kind}' alarms take no extra parameters", fragment)

    if kind == AlarmKind.on:
        return BasicAlarmEntry(
            day_mask=day_mask,
            hour=hour,
            minute=minute,
            brightness=brightness,
            speed=speed,
        )

    if kind == AlarmKind.off:
        return EffectAlarmEntry(day_mask, hour, minute, ActionType.POWER_OFF)

    if kind == AlarmKind.rgb:
        r, g, b = _parse_alarm_rgb(params, fragment)
        return EffectAlarmEntry(day_mask, hour, minute, ActionType.RGB, (r, g, b, brightness))

    name, has_color, color = params.partition(":")
    name = name.strip()
    if not name:
        raise MalformedAlarmSyntaxError("Missing effect name", fragment)
    effect_id = effects.resolve(name)
    if has_color:
        r, g, b = _parse_alarm_rgb(color, fragment)
        return EffectAlarmEntry(day_mask, hour, minute, ActionType.RGB, (r, g, b, brightness))
    return EffectAlarmEntry(day_mask, hour, minute, effect_id, (speed, brightness))


def _take_modifier(text: str, marker: str, default: int, fragment: str) -> tuple[int, str]:
    matches = MODIFIER_PATTERNS[marker].findall(text)
    if len(matches) > 1:
        raise MalformedAlarmSyntaxError(f"Repeated '{marker}' modifier", fragment)
    stripped = MODIFIER_PATTERNS[marker].sub("", text)
    if marker in stripped:
        raise MalformedAlarmSyntaxError(f"'{marker}' must be followed by a number", fragment)
    if not matches:
        return default, stripped
    return clamp(int(matches[0]), 1, 100), stripped


def _parse_time(token: str, fragment: str) -> tuple[int, int]:
    match = TIME_PATTERN.match(token)
    if not match:
        raise MalformedAlarmSyntaxError("Alarm time must look like HH:MM", fragment)
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise MalformedAlarmSyntaxError("Alarm time out of range", fragment)
    return hour, minute


def _parse_days(tokens: list[str], fragment: str) -> int:
    mask = 0
    once = False
    for token in (t.strip() for t in tokens):
        if token.lower() == "once":
            once = True
        elif BINARY_DAYS_PATTERN.match(token):
            mask = int(token, 2)
        else:
            raise MalformedAlarmSyntaxError("Days must be 7 binary digits or 'once'", fragment)
    # once replaces any weekday bits
    return DayMask.ONCE if once else mask


def _parse_alarm_rgb(value: str, fragment: str) -> tuple[int, int, int]:
    try:
        return parse_rgb(value)
    except ValueError as exc:
        raise MalformedAlarmSyntaxError("Alarm color must be R,G,B", fragment) from exc


def parse_notification(data: bytes) -> Notification | None:
    """Extract the JSON object the controller wraps in some notifications."""
    start = data.find(b"{")
    end = data.rfind(b"}")
    if start == -1 or end <= start:
        return None
    try:
        body = json.loads(data[start : end + 1].decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        log.debug("Notification is not valid JSON (%s): %s", exc, bin_to_hex(data))
        return None
    if not isinstance(body, dict):
        return None
    payload = body.get("payload")
    return Notification(
        raw=bytes(data),
        code=body.get("code"),
        payload=payload if isinstance(payload, str) else "",
    )
