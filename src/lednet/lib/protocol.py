"""Frame compiler for the LEDnetWF V5 short-packet firmware.

Frame layout (at most 21 bytes for the fixed-layout commands)::

    00 | SEQ | HEADER | PAYLOAD | CHK

- SEQ: 8-bit counter, advanced once per compiled frame, wraps at 256.
- HEADER: ``80 00 00`` followed by the command family bytes.
- CHK: ``(SEQ + bias) & 0xFF``; bias is 0x26 for the power and basic timer
  families and 0x38 for everything else.

Two details are unconfirmed on hardware and are opt-in only:

- ``ChecksumMode.PAYLOAD_SUM`` sums the bytes after the 6-byte transport
  prefix. It matches one captured static color frame the sequence rule does
  not.
- ``effect_speed_marker`` inserts ``0x10`` between speed and brightness in
  effect payloads.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import assert_never

from lednet.lib import tables
from lednet.lib.models import (
    BasicAlarmTable,
    Candle,
    Effect,
    EffectAlarmTable,
    Frame,
    Operation,
    Power,
    Rgb,
    TimeSync,
)
from lednet.lib.parsers import clamp

POWER_HEADER = bytes.fromhex("800000 0D0E0B3B")
RGB_HEADER = bytes.fromhex("800000 08090B31")
EFFECT_HEADER = bytes.fromhex("800000 05060B38")
CANDLE_HEADER = bytes.fromhex("800000 090A0B39D1")
TIME_HEADER = bytes.fromhex("800000 04050A")
BASIC_TIMER_HEADER = bytes.fromhex("800000 0C0D0B")
EFFECT_TIMER_HEADER = bytes.fromhex("800000 58590B")

POWER_BIAS = 0x26
DEFAULT_BIAS = 0x38

POWER_ON = 0x23
POWER_OFF = 0x24
POWER_PADDING_SIZE = 10
RGB_TERMINATOR = bytes([0x00, 0x00, 0x0F])
EFFECT_SPEED_MARKER = 0x10
TIME_FIELD_FLAG = 0x80
TRANSPORT_PREFIX_SIZE = 6

log = logging.getLogger("lednet")


class ChecksumMode(Enum):
    SEQUENCE = "sequence"
    PAYLOAD_SUM = "payload-sum"


class SequenceCounter:
    """Monotonic 8-bit frame counter owned by whoever compiles frames for a run."""

    def __init__(self, start: int = 0) -> None:
        self.value = start & 0xFF

    def next(self) -> int:
        current = self.value
        self.value = (self.value + 1) & 0xFF
        return current

    def __repr__(self) -> str:
        return f"SequenceCounter(value=0x{self.value:02x})"


def sequence_checksum(sequence: int, bias: int) -> int:
    return (sequence + bias) & 0xFF


def payload_sum_checksum(header: bytes, payload: bytes) -> int:
    return sum(header[TRANSPORT_PREFIX_SIZE:] + payload) & 0xFF


def validate_operation(op: Operation) -> None:
    """Reject operations that must never reach the radio."""
    if isinstance(op, (BasicAlarmTable, EffectAlarmTable)):
        tables.validate_table(op.entries)


class FrameCompiler:
    def __init__(
        self,
        counter: SequenceCounter | None = None,
        *,
        checksum: ChecksumMode = ChecksumMode.SEQUENCE,
        effect_speed_marker: bool = False,
    ) -> None:
        self.counter = counter if counter is not None else SequenceCounter()
        self.checksum = checksum
        self.effect_speed_marker = effect_speed_marker

    def compile(self, op: Operation) -> Frame:
        validate_operation(op)
        header, payload, bias = self.encode(op)
        sequence = self.counter.next()
        if self.checksum is ChecksumMode.PAYLOAD_SUM:
            checksum = payload_sum_checksum(header, payload)
        else:
            checksum = sequence_checksum(sequence, bias)
        frame = Frame(sequence=sequence, header=header, payload=payload, checksum=checksum)
        log.debug("Compiled %s -> %s", op, frame.hex())
        return frame

    def encode(self, op: Operation) -> tuple[bytes, bytes, int]:
        """Return ``(header, payload, bias)`` for an operation."""
        match op:
            case Power(on=on):
                payload = bytes([POWER_ON if on else POWER_OFF]) + bytes(POWER_PADDING_SIZE)
                return POWER_HEADER, payload, POWER_BIAS
            case Rgb(r=r, g=g, b=b):
                payload = bytes(clamp(c, 0, 255) for c in (r, g, b)) + RGB_TERMINATOR
                return RGB_HEADER, payload, DEFAULT_BIAS
            case Effect(effect_id=effect_id, speed=speed, brightness=brightness):
                fields = [effect_id & 0xFF, clamp(speed, 1, 100)]
                if self.effect_speed_marker:
                    fields.append(EFFECT_SPEED_MARKER)
                fields.append(clamp(brightness, 1, 100))
                return EFFECT_HEADER, bytes(fields), DEFAULT_BIAS
            case Candle():
                payload = bytes(
                    [
                        clamp(op.r, 0, 255),
                        clamp(op.g, 0, 255),
                        clamp(op.b, 0, 255),
                        101 - clamp(op.speed, 1, 100),
                        clamp(op.brightness, 1, 100),
                        clamp(op.amplitude, 1, 3),
                    ]
                )
                return CANDLE_HEADER, payload, DEFAULT_BIAS
            case TimeSync(timestamp=ts):
                payload = bytes(
                    [
                        ts.hour | TIME_FIELD_FLAG,
                        ts.minute | TIME_FIELD_FLAG,
                        ts.second | TIME_FIELD_FLAG,
                    ]
                )
                return TIME_HEADER, payload, DEFAULT_BIAS
            case BasicAlarmTable(entries=entries):
                return BASIC_TIMER_HEADER, tables.encode_basic_table(entries), POWER_BIAS
            case EffectAlarmTable(entries=entries):
                return EFFECT_TIMER_HEADER, tables.encode_effect_table(entries), DEFAULT_BIAS
            case _:
                assert_never(op)
