"""Frame compiler tests, including frames captured from the vendor app."""

import unittest
from datetime import datetime

from lednet.lib.models import (
    BasicAlarmEntry,
    BasicAlarmTable,
    Candle,
    Effect,
    EffectAlarmEntry,
    EffectAlarmTable,
    Power,
    Rgb,
    TableOverflowError,
    TimeSync,
)
from lednet.lib.protocol import (
    ChecksumMode,
    FrameCompiler,
    SequenceCounter,
)
from lednet.lib.parsers import bin_to_hex


def compiler_at(sequence: int, **kwargs) -> FrameCompiler:
    return FrameCompiler(SequenceCounter(sequence), **kwargs)


FAMILIES = [
    (Power(on=True), 0x26),
    (Power(on=False), 0x26),
    (Rgb(1, 2, 3), 0x38),
    (Effect(0x25), 0x38),
    (Candle(2, 50, 100, 255, 120, 0), 0x38),
    (TimeSync(datetime(2025, 10, 4, 16, 55, 33)), 0x38),
    (BasicAlarmTable(), 0x26),
    (EffectAlarmTable(), 0x38),
]


class TestCapturedFrames(unittest.TestCase):
    def test_power_on_matches_capture(self):
        frame = compiler_at(0x19).compile(Power(on=True))

        self.assertEqual(
            bin_to_hex(bytes(frame)).split(),
            "00 19 80 00 00 0d 0e 0b 3b 23 00 00 00 00 00 00 00 00 00 00 3f".split(),
        )
        self.assertEqual(len(frame), 21)

    def test_power_off_payload(self):
        frame = compiler_at(0).compile(Power(on=False))
        self.assertEqual(frame.payload, bytes([0x24]) + bytes(10))
        self.assertEqual(frame.checksum, 0x26)

    def test_rgb_uses_sequence_checksum_by_default(self):
        frame = compiler_at(0x22).compile(Rgb(255, 0, 255))

        self.assertEqual(
            bytes(frame),
            bytes.fromhex("00 22 80 00 00 08 09 0B 31 FF 00 FF 00 00 0F 5A"),
        )

    def test_rgb_capture_reproduced_by_payload_sum(self):
        frame = compiler_at(0x22, checksum=ChecksumMode.PAYLOAD_SUM).compile(Rgb(255, 0, 255))

        self.assertEqual(
            bytes(frame),
            bytes.fromhex("00 22 80 00 00 08 09 0B 31 FF 00 FF 00 00 0F 3E"),
        )


class TestChecksumLaw(unittest.TestCase):
    def test_checksum_is_sequence_plus_bias_for_every_family(self):
        for op, bias in FAMILIES:
            for sequence in range(256):
                frame = compiler_at(sequence).compile(op)
                self.assertEqual(frame.sequence, sequence)
                self.assertEqual(frame.checksum, (sequence + bias) % 256, (op, sequence))
                self.assertEqual(bytes(frame)[-1], frame.checksum)

    def test_counter_wraps_after_256_frames(self):
        counter = SequenceCounter(0x7A)
        compiler = FrameCompiler(counter)
        for _ in range(256):
            compiler.compile(Power(on=True))
        self.assertEqual(counter.value, 0x7A)

    def test_consecutive_frames_never_reuse_sequence(self):
        compiler = FrameCompiler()
        sequences = [compiler.compile(Rgb(0, 0, 0)).sequence for _ in range(256)]
        self.assertEqual(sorted(sequences), list(range(256)))
        self.assertEqual(sequences[:3], [0, 1, 2])

    def test_counter_starts_at_zero_and_wraps(self):
        counter = SequenceCounter()
        self.assertEqual(counter.next(), 0)
        counter.value = 0xFF
        self.assertEqual(counter.next(), 0xFF)
        self.assertEqual(counter.next(), 0x00)


class TestPayloads(unittest.TestCase):
    def test_effect_payload(self):
        frame = compiler_at(5).compile(Effect(0x30, speed=70, brightness=40))
        self.assertEqual(frame.header, bytes.fromhex("80 00 00 05 06 0B 38"))
        self.assertEqual(frame.payload, bytes([0x30, 70, 40]))
        self.assertEqual(len(frame), 13)

    def test_effect_speed_marker_is_opt_in(self):
        frame = compiler_at(5, effect_speed_marker=True).compile(Effect(0x30, 70, 40))
        self.assertEqual(frame.payload, bytes([0x30, 70, 0x10, 40]))

    def test_candle_inverts_speed(self):
        frame = compiler_at(1).compile(
            Candle(amplitude=2, speed=30, brightness=80, r=255, g=100, b=0)
        )
        self.assertEqual(frame.header, bytes.fromhex("80 00 00 09 0A 0B 39 D1"))
        self.assertEqual(frame.payload, bytes([255, 100, 0, 71, 80, 2]))
        self.assertEqual(frame.checksum, 0x39)

    def test_time_sync_sets_top_bits(self):
        frame = compiler_at(2).compile(TimeSync(datetime(2025, 1, 1, 21, 5, 9)))
        self.assertEqual(frame.header, bytes.fromhex("80 00 00 04 05 0A"))
        self.assertEqual(frame.payload, bytes([0x95, 0x85, 0x89]))

    def test_out_of_range_values_are_clamped(self):
        compiler = FrameCompiler()
        self.assertEqual(compiler.compile(Rgb(300, -5, 128)).payload[:3], bytes([255, 0, 128]))
        self.assertEqual(compiler.compile(Effect(0x25, 0, 500)).payload, bytes([0x25, 1, 100]))
        candle = compiler.compile(Candle(7, 150, 0, 0, 0, 0)).payload
        self.assertEqual(candle[3:], bytes([1, 1, 3]))

    def test_alarm_table_values_are_clamped(self):
        compiler = FrameCompiler()
        basic = BasicAlarmTable((BasicAlarmEntry(0x7F, 7, 0, brightness=300, speed=150),))
        self.assertEqual(compiler.compile(basic).payload[4:6], bytes([100, 100]))
        rgb = EffectAlarmTable((EffectAlarmEntry(0x7F, 7, 0, 0x0F, (300, 0, 0, 100)),))
        self.assertEqual(compiler.compile(rgb).payload[4], 255)

    def test_command_frames_fit_in_21_bytes(self):
        compiler = FrameCompiler()
        for op, _ in FAMILIES[:6]:
            self.assertLessEqual(len(bytes(compiler.compile(op))), 21)

    def test_basic_table_frame(self):
        entry = BasicAlarmEntry(0x1F, 7, 30, 80, 50)
        frame = compiler_at(3).compile(BasicAlarmTable((entry,)))
        self.assertEqual(frame.header, bytes.fromhex("80 00 00 0C 0D 0B"))
        self.assertEqual(frame.payload, bytes([0x14, 0x1F, 7, 30, 80, 50, 0x00, 0x0F, 0x00]))
        self.assertEqual(frame.checksum, 0x29)

    def test_effect_table_frame(self):
        entry = EffectAlarmEntry(0x80, 23, 30, 0xF0)
        frame = compiler_at(3).compile(EffectAlarmTable((entry,)))
        self.assertEqual(frame.header, bytes.fromhex("80 00 00 58 59 0B"))
        self.assertEqual(len(frame.payload), 16)
        self.assertEqual(frame.checksum, 0x3B)


class TestValidation(unittest.TestCase):
    def test_table_overflow_does_not_advance_counter(self):
        counter = SequenceCounter(9)
        compiler = FrameCompiler(counter)
        entries = tuple(EffectAlarmEntry(0x7F, 8, i, 0xF0) for i in range(17))

        with self.assertRaises(TableOverflowError) as ctx:
            compiler.compile(EffectAlarmTable(entries))

        self.assertEqual(ctx.exception.count, 17)
        self.assertEqual(counter.value, 9)

    def test_sixteen_entries_are_accepted(self):
        entries = tuple(BasicAlarmEntry(0x7F, 8, i) for i in range(16))
        frame = FrameCompiler().compile(BasicAlarmTable(entries))
        self.assertEqual(len(frame.payload), 1 + 16 * 8)

    def test_unknown_operation_is_rejected(self):
        with self.assertRaises(AssertionError):
            FrameCompiler().compile("power on")  # type: ignore[arg-type]


if __name__ == "__main__":
    unittest.main()
