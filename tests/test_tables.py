import pytest

from lednet.lib.models import (
    ActionType,
    BasicAlarmEntry,
    EffectAlarmEntry,
    TableOverflowError,
)
from lednet.lib.tables import (
    encode_basic_table,
    encode_effect_record,
    encode_effect_table,
    validate_table,
)


def test_basic_table_records():
    entries = [
        BasicAlarmEntry(0x1F, 7, 0, brightness=80, speed=50),
        BasicAlarmEntry(0x80, 21, 45, brightness=100, speed=10),
    ]

    payload = encode_basic_table(entries)

    assert payload == bytes.fromhex(
        """
        14
        1f 07 00 50 32 00 0f 00
        80 15 2d 64 0a 00 0f 00
        """
    )


def test_empty_basic_table_is_marker_and_one_zero_record():
    assert encode_basic_table([]) == bytes([0x14]) + bytes(8)


def test_empty_effect_table_is_one_zero_record():
    assert encode_effect_table([]) == bytes(16)


def test_effect_rgb_record():
    entry = EffectAlarmEntry(0x7F, 20, 0, ActionType.RGB, (255, 128, 0, 80))

    assert encode_effect_record(entry) == bytes.fromhex(
        "7f 14 00 0f ff 80 00 50 00 00 00 00 00 00 00 f0"
    )


def test_effect_table_keeps_order_and_layout():
    entries = [
        EffectAlarmEntry(0x80, 23, 30, ActionType.POWER_OFF),
        EffectAlarmEntry(0x60, 19, 5, 0x34, (70, 100)),
    ]

    payload = encode_effect_table(entries)

    assert len(payload) == 32
    assert payload[:16] == bytes([0x80, 23, 30, 0xF0]) + bytes(11) + bytes([0xF0])
    assert payload[16:20] == bytes([0x60, 19, 5, 0x34])
    assert payload[20:24] == bytes([70, 100, 0, 0])
    assert payload[31] == 0xF0


def test_encoder_does_not_truncate_overflowing_tables():
    entries = [BasicAlarmEntry(0x7F, 6, m) for m in range(20)]
    assert len(encode_basic_table(entries)) == 1 + 20 * 8


def test_validate_table_rejects_more_than_16_entries():
    validate_table([object()] * 16)
    with pytest.raises(TableOverflowError, match="at most 16"):
        validate_table([object()] * 17)


def test_basic_record_clamps_direct_entries():
    entry = BasicAlarmEntry(0x7F, 30, 75, brightness=300, speed=150)

    assert encode_basic_table([entry])[1:] == bytes([0x7F, 23, 59, 100, 100, 0x00, 0x0F, 0x00])


def test_effect_rgb_record_clamps_channels_and_brightness():
    entry = EffectAlarmEntry(0x7F, 7, 0, ActionType.RGB, (300, -5, 128, 0))

    assert encode_effect_record(entry)[4:8] == bytes([255, 0, 128, 1])


def test_effect_record_clamps_speed_and_brightness():
    entry = EffectAlarmEntry(0x7F, 7, 0, 0x30, (0, 250))

    assert encode_effect_record(entry)[4:6] == bytes([1, 100])
