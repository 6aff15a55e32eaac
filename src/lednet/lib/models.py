"""Data models for LEDnetWF control operations and alarm tables."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum, StrEnum

MAX_TABLE_ENTRIES = 16


class LednetError(Exception):
    """Base class for errors detected before or while talking to the controller."""


class MalformedAlarmSyntaxError(LednetError, ValueError):
    def __init__(self, message: str, fragment: str) -> None:
        super().__init__(f"{message}: {fragment!r}")
        self.fragment = fragment


class UnknownEffectAliasError(LednetError, ValueError):
    def __init__(self, name: str, aliases: list[str]) -> None:
        super().__init__(f"Unknown effect '{name}'. Valid aliases: {', '.join(aliases)}")
        self.name = name
        self.aliases = aliases


class TableOverflowError(LednetError, ValueError):
    def __init__(self, count: int, limit: int = MAX_TABLE_ENTRIES) -> None:
        super().__init__(f"Alarm table holds at most {limit} entries, got {count}.")
        self.count = count
        self.limit = limit


class TransportFailureError(LednetError, RuntimeError):
    """Raised when a connect, write or subscribe on the BLE link fails."""


class ConfigError(LednetError, ValueError):
    pass


@dataclass(frozen=True)
class Config:
    device_id: str | None = None
    device_name: str | None = None
    timeout: float = 20.0
    service_uuid: str | None = None
    tx_char_uuid: str = "ff01"
    rx_char_uuid: str = "ff02"
    default_rgb: str = "255,0,0"
    default_alarms: dict[str, str] = field(default_factory=dict)


class AlarmKind(StrEnum):
    on = enum.auto()
    off = enum.auto()
    rgb = enum.auto()
    effect = enum.auto()


class ActionType(IntEnum):
    """Action codes of an effect timer record; effect ids are used as-is."""

    RGB = 0x0F
    POWER_OFF = 0xF0


class DayMask(IntEnum):
    DISABLED = 0x00
    MONDAY = 0x01
    TUESDAY = 0x02
    WEDNESDAY = 0x04
    THURSDAY = 0x08
    FRIDAY = 0x10
    SATURDAY = 0x20
    SUNDAY = 0x40
    EVERY_DAY = 0x7F
    ONCE = 0x80


@dataclass(frozen=True)
class BasicAlarmEntry:
    day_mask: int
    hour: int
    minute: int
    brightness: int = 100
    speed: int = 50


@dataclass(frozen=True)
class EffectAlarmEntry:
    day_mask: int
    hour: int
    minute: int
    action_type: int
    action_params: tuple[int, ...] = ()

    def __post_init__(self) -> None:
        if len(self.action_params) > 4:
            raise ValueError(
                f"Effect alarm takes at most 4 action bytes, got {len(self.action_params)}"
            )


@dataclass(frozen=True)
class Power:
    on: bool


@dataclass(frozen=True)
class Rgb:
    r: int
    g: int
    b: int


@dataclass(frozen=True)
class Effect:
    effect_id: int
    speed: int = 50
    brightness: int = 100


@dataclass(frozen=True)
class Candle:
    amplitude: int
    speed: int
    brightness: int
    r: int
    g: int
    b: int


@dataclass(frozen=True)
class TimeSync:
    timestamp: datetime


@dataclass(frozen=True)
class BasicAlarmTable:
    entries: tuple[BasicAlarmEntry, ...] = ()


@dataclass(frozen=True)
class EffectAlarmTable:
    entries: tuple[EffectAlarmEntry, ...] = ()


Operation = Power | Rgb | Effect | Candle | TimeSync | BasicAlarmTable | EffectAlarmTable


@dataclass(frozen=True)
class Frame:
    """One complete unit written to the controller's TX characteristic."""

    sequence: int
    header: bytes
    payload: bytes
    checksum: int

    def __bytes__(self) -> bytes:
        return bytes([0x00, self.sequence]) + self.header + self.payload + bytes([self.checksum])

    def __len__(self) -> int:
        return 3 + len(self.header) + len(self.payload)

    def hex(self, sep: str = " ") -> str:
        return bytes(self).hex(sep)


@dataclass(frozen=True)
class Notification:
    raw: bytes
    code: int | None = None
    payload: str = ""
