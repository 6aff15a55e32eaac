"""Command line controller for LEDnetWF Bluetooth LED strips."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from dataclasses import replace
from datetime import datetime
from pathlib import Path

from lednet.lib import effects
from lednet.lib.config import load_config
from lednet.lib.lednet import (
    DryRunTransport,
    LednetLight,
    discover_devices,
    run_operations,
)
from lednet.lib.models import (
    AlarmKind,
    BasicAlarmEntry,
    BasicAlarmTable,
    Candle,
    Config,
    DayMask,
    Effect,
    EffectAlarmEntry,
    EffectAlarmTable,
    Frame,
    LednetError,
    Operation,
    Power,
    Rgb,
    TimeSync,
)
from lednet.lib.parsers import parse_alarms, parse_day_mask, parse_rgb
from lednet.lib.protocol import ChecksumMode, FrameCompiler
from lednet.scripts.listen import listen

LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"
DEFAULT_TIMEOUT = 20.0
log = logging.getLogger("lednet")


def configure_logging(debug: bool) -> None:
    logging.basicConfig(level=logging.WARNING, format=LOG_FORMAT, force=True)
    project_level = logging.DEBUG if debug else logging.WARNING
    log.setLevel(project_level)


def print_error(message: str) -> None:
    print(message, file=sys.stderr)


def build_args() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lednet", description="Control a LEDnetWF LED strip over BLE."
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging for compiled frames, BLE writes and notifications.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to a JSON config file. Default is ./config.json when present.",
    )
    parser.add_argument("--id", help="Exact device id/address (from scan).")
    parser.add_argument("--name", help="Device name substring (case-insensitive).")
    parser.add_argument(
        "--timeout", type=float, default=DEFAULT_TIMEOUT, help="BLE scan/connect timeout."
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the frames that would be sent without connecting.",
    )
    parser.add_argument(
        "--checksum",
        choices=[mode.value for mode in ChecksumMode],
        default=ChecksumMode.SEQUENCE.value,
        help="Checksum rule. 'payload-sum' is unverified on hardware.",
    )
    parser.add_argument(
        "--effect-speed-marker",
        action="store_true",
        help="Insert 0x10 between speed and brightness in effect frames (unverified).",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    scan = subparsers.add_parser("scan", help="List advertising BLE devices.")
    scan.add_argument("--seconds", type=float, default=10.0, help="Scan duration.")

    power = subparsers.add_parser("power", help="Turn the strip on or off.")
    power.add_argument("state", choices=["on", "off"], help="Power state.")

    rgb = subparsers.add_parser(
        "rgb",
        help="Set a static color. The strip turns on when a color is set.",
    )
    rgb.add_argument(
        "color",
        nargs="?",
        help="R,G,B values 0-255. Defaults to defaults.rgb from the config.",
    )
    rgb.add_argument("--off", action="store_true", help="Turn off after setting the color.")

    effect = subparsers.add_parser("effect", help="Run a built-in effect.")
    effect.add_argument("effect_name", help="Effect alias or part of its full name.")
    effect.add_argument("--speed", type=int, default=50, help="Speed 1-100.")
    effect.add_argument("--brightness", type=int, default=100, help="Brightness 1-100.")

    subparsers.add_parser("effects", help="List effect aliases.")

    candle = subparsers.add_parser("candle", help="Candle flicker in a fixed color.")
    candle.add_argument("--rgb", dest="color", help="R,G,B values 0-255.")
    candle.add_argument("--amplitude", type=int, default=2, help="Flicker amplitude 1-3.")
    candle.add_argument("--speed", type=int, default=50, help="Speed 1-100.")
    candle.add_argument("--brightness", type=int, default=100, help="Brightness 1-100.")

    time_sync = subparsers.add_parser("time-sync", help="Set the controller clock.")
    time_sync.add_argument("--time", help="HH:MM or HH:MM:SS. Defaults to the local time.")

    alarms = subparsers.add_parser(
        "alarms",
        help="Write alarm tables. Entries: HH:MM[,params][/days|once][#brightness][%%speed]",
        description=(
            "Entries look like HH:MM[,params][/days|once][#brightness][%speed] and are "
            "separated by ';'. 'on' alarms go to the basic timer table; 'off', 'rgb' "
            "(params R,G,B) and 'effect' (params NAME[:R,G,B]) share the effect timer table."
        ),
    )
    for kind in AlarmKind:
        alarms.add_argument(
            f"--{kind}",
            nargs="?",
            const="",
            metavar="SPEC",
            help=f"'{kind}' alarms separated by ';'. Without SPEC uses defaults.alarms.alarm-{kind}.",
        )
    alarms.add_argument(
        "--days",
        help="Default day mask: 7 binary digits (Sun..Mon), decimal, 0x hex or 'once'.",
    )
    alarms.add_argument(
        "--clear",
        choices=["basic", "effect", "all"],
        help="Write an empty table to clear it.",
    )

    listen_parser = subparsers.add_parser("listen", help="Print notifications from the device.")
    listen_parser.add_argument("--seconds", type=float, default=30.0, help="How long to listen.")

    parser.set_defaults(commands=tuple(subparsers.choices))
    return parser


def parse_clock(value: str | None) -> datetime:
    now = datetime.now()
    if not value:
        return now
    for fmt in ("%H:%M:%S", "%H:%M"):
        try:
            parsed = datetime.strptime(value, fmt)
        except ValueError:
            continue
        return now.replace(hour=parsed.hour, minute=parsed.minute, second=parsed.second)
    raise SystemExit(f"Invalid time: {value}. Use HH:MM or HH:MM:SS.")


def parse_color(value: str) -> tuple[int, int, int]:
    try:
        return parse_rgb(value)
    except ValueError as exc:
        raise SystemExit(str(exc)) from exc


def alarm_spec(args: argparse.Namespace, kind: AlarmKind, config: Config) -> str | None:
    spec = getattr(args, kind.value)
    if spec is None:
        return None
    if spec:
        return spec
    key = f"alarm-{kind}"
    if key not in config.default_alarms:
        raise SystemExit(f"--{kind} given without SPEC and no defaults.alarms.{key} in config.")
    return config.default_alarms[key]


def build_alarm_operations(args: argparse.Namespace, config: Config) -> list[Operation]:
    default_mask = DayMask.EVERY_DAY
    if args.days:
        try:
            default_mask = parse_day_mask(args.days)
        except ValueError as exc:
            raise SystemExit(str(exc)) from exc

    basic: list[BasicAlarmEntry] | None = None
    effect_entries: list[EffectAlarmEntry] | None = None
    for kind in AlarmKind:
        spec = alarm_spec(args, kind, config)
        if spec is None:
            continue
        entries = parse_alarms(spec, kind, default_mask=default_mask)
        if kind == AlarmKind.on:
            basic = [e for e in entries if isinstance(e, BasicAlarmEntry)]
        else:
            effect_entries = (effect_entries or []) + [
                e for e in entries if isinstance(e, EffectAlarmEntry)
            ]

    if args.clear in ("basic", "all"):
        if basic:
            raise SystemExit("--clear basic conflicts with --on alarms.")
        basic = []
    if args.clear in ("effect", "all"):
        if effect_entries:
            raise SystemExit("--clear effect conflicts with --off/--rgb/--effect alarms.")
        effect_entries = []

    operations: list[Operation] = []
    if basic is not None:
        operations.append(BasicAlarmTable(tuple(basic)))
    if effect_entries is not None:
        operations.append(EffectAlarmTable(tuple(effect_entries)))
    if not operations:
        raise SystemExit("Nothing to write: give --on/--off/--rgb/--effect or --clear.")
    return operations


def build_operations(args: argparse.Namespace, config: Config) -> list[Operation]:
    if args.command == "power":
        return [Power(on=args.state == "on")]

    if args.command == "rgb":
        r, g, b = parse_color(args.color or config.default_rgb)
        operations: list[Operation] = [Rgb(r, g, b)]
        if args.off:
            operations.append(Power(on=False))
        return operations

    if args.command == "effect":
        effect_id = effects.resolve(args.effect_name)
        return [Effect(effect_id, speed=args.speed, brightness=args.brightness)]

    if args.command == "candle":
        r, g, b = parse_color(args.color or config.default_rgb)
        return [Candle(args.amplitude, args.speed, args.brightness, r, g, b)]

    if args.command == "time-sync":
        return [TimeSync(parse_clock(args.time))]

    if args.command == "alarms":
        return build_alarm_operations(args, config)

    raise SystemExit(f"Unknown command: {args.command}")


def describe_operation(op: Operation) -> str:
    match op:
        case Power(on=on):
            return f"POWER {'ON' if on else 'OFF'}"
        case Rgb(r=r, g=g, b=b):
            return f"RGB ({r},{g},{b})"
        case Effect(effect_id=effect_id, speed=speed, brightness=brightness):
            return f"EFFECT {effects.effect_name(effect_id)} speed={speed} brightness={brightness}"
        case Candle():
            return f"CANDLE ({op.r},{op.g},{op.b}) amplitude={op.amplitude}"
        case TimeSync(timestamp=ts):
            return f"TIME {ts:%H:%M:%S}"
        case BasicAlarmTable(entries=entries):
            return f"BASIC TIMER {len(entries)} entr{'y' if len(entries) == 1 else 'ies'}"
        case EffectAlarmTable(entries=entries):
            return f"EFFECT TIMER {len(entries)} entr{'y' if len(entries) == 1 else 'ies'}"
    return repr(op)


def print_sent(op: Operation, frame: Frame) -> None:
    print(f"Sent {describe_operation(op)} ({frame.hex()})")


def print_effects() -> None:
    print(f"{'Alias':<16}  {'Id':>4}  Name")
    print("-" * 50)
    for alias, effect_id, name in effects.list_effects():
        print(f"{alias:<16}  0x{effect_id:02x}  {name}")


async def run(args: argparse.Namespace, config: Config) -> None:
    if args.command == "effects":
        print_effects()
        return

    if args.command == "scan":
        devices = await discover_devices(args.seconds)
        for address, name in devices:
            print(f"- {name}  (id: {address})")
        print(f"Scan complete - found {len(devices)} device(s)")
        return

    if args.command == "listen":
        require_device(config)
        await listen(config, seconds=args.seconds)
        return

    operations = build_operations(args, config)
    compiler = FrameCompiler(
        checksum=ChecksumMode(args.checksum),
        effect_speed_marker=args.effect_speed_marker,
    )

    if args.dry_run:
        await run_operations(DryRunTransport(), compiler, operations)
        return

    require_device(config)
    light = await LednetLight.connect(config)
    try:
        await run_operations(light, compiler, operations, on_sent=print_sent)
    finally:
        await light.disconnect()
    print("Done")


def require_device(config: Config) -> None:
    if not config.device_id and not config.device_name:
        raise SystemExit("No device specified. Use --id/--name, a config file, or scan first.")


def main(argv: list[str] | None = None) -> None:
    parser = build_args()
    args = parser.parse_args(argv)
    configure_logging(args.debug)
    log.debug("CLI args: %s", args)

    try:
        config = load_config(args.config, timeout=args.timeout)
        config = replace(
            config,
            device_id=args.id or config.device_id,
            device_name=args.name or config.device_name,
        )
        log.debug("Using config=%s", config)
        asyncio.run(run(args, config))
    except KeyboardInterrupt:
        raise SystemExit(130) from None
    except SystemExit as exc:
        if isinstance(exc.code, str) and exc.code:
            print_error(exc.code)
            raise SystemExit(1) from None
        raise
    except LednetError as exc:
        print_error(str(exc))
        raise SystemExit(1) from None
    except Exception as exc:
        log.debug("Operation failed", exc_info=True)
        print_error(f"Operation failed: {exc}")
        raise SystemExit(1) from None


if __name__ == "__main__":
    main()
