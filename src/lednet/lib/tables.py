"""Fixed-layout alarm table payloads for the basic and effect timer commands.

Basic table::

    14 | mask hour minute brightness speed 00 0F 00 | ...   (8 bytes per entry)

Effect table::

    mask hour minute action p0 p1 p2 p3 00 00 00 00 00 00 00 F0 | ...   (16 bytes per entry)

An empty list still produces one zeroed record, which clears the table on the
controller.
"""

from __future__ import annotations

from collections.abc import Sequence

from lednet.lib.models import (
    MAX_TABLE_ENTRIES,
    ActionType,
    BasicAlarmEntry,
    EffectAlarmEntry,
    TableOverflowError,
)
from lednet.lib.parsers import clamp

BASIC_TABLE_MARKER = 0x14
BASIC_RECORD_SIZE = 8
EFFECT_RECORD_SIZE = 16
EFFECT_RECORD_END = 0xF0


def validate_table(entries: Sequence[object]) -> None:
    if len(entries) > MAX_TABLE_ENTRIES:
        raise TableOverflowError(len(entries))


def encode_basic_record(entry: BasicAlarmEntry) -> bytes:
    return bytes(
        [
            entry.day_mask & 0xFF,
            clamp(entry.hour, 0, 23),
            clamp(entry.minute, 0, 59),
            clamp(entry.brightness, 0, 100),
            clamp(entry.speed, 0, 100),
            0x00,
            0x0F,
            0x00,
        ]
    )


def encode_effect_record(entry: EffectAlarmEntry) -> bytes:
    record = bytearray(EFFECT_RECORD_SIZE)
    record[0] = entry.day_mask & 0xFF
    record[1] = clamp(entry.hour, 0, 23)
    record[2] = clamp(entry.minute, 0, 59)
    record[3] = entry.action_type & 0xFF
    record[4 : 4 + len(entry.action_params)] = _action_params(entry)
    record[15] = EFFECT_RECORD_END
    return bytes(record)


def _action_params(entry: EffectAlarmEntry) -> bytes:
    params = entry.action_params
    if entry.action_type == ActionType.RGB:
        # R, G, B, brightness
        return bytes(
            clamp(p, 0, 255) if i < 3 else clamp(p, 1, 100) for i, p in enumerate(params)
        )
    if entry.action_type == ActionType.POWER_OFF:
        return bytes(clamp(p, 0, 255) for p in params)
    # effect id: speed, brightness
    return bytes(clamp(p, 1, 100) for p in params)


def encode_basic_table(entries: Sequence[BasicAlarmEntry]) -> bytes:
    if not entries:
        return bytes([BASIC_TABLE_MARKER]) + bytes(BASIC_RECORD_SIZE)
    return bytes([BASIC_TABLE_MARKER]) + b"".join(encode_basic_record(e) for e in entries)


def encode_effect_table(entries: Sequence[EffectAlarmEntry]) -> bytes:
    if not entries:
        return bytes(EFFECT_RECORD_SIZE)
    return b"".join(encode_effect_record(e) for e in entries)
