"""LEDnetWF BLE transport and ordered command execution."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from bleak import BleakClient, BleakScanner
from bleak.backends.characteristic import BleakGATTCharacteristic
from bleak.backends.device import BLEDevice
from bleak.backends.scanner import AdvertisementData
from bleak.exc import BleakError
from bleak.uuids import normalize_uuid_str

from lednet.lib.models import Config, Frame, Operation, TransportFailureError
from lednet.lib.parsers import bin_to_hex
from lednet.lib.protocol import FrameCompiler, validate_operation

NOTIFICATION_TIMEOUT = 10.0

log = logging.getLogger("lednet")


async def discover_devices(timeout: float) -> list[tuple[str, str]]:
    """Return ``(address, name)`` for every advertising device seen during the scan."""
    found = await BleakScanner.discover(timeout=timeout, return_adv=True)
    devices = []
    for device, adv in found.values():
        devices.append((device.address, adv.local_name or device.name or "unnamed"))
    return devices


async def find_device(config: Config) -> BLEDevice:
    wanted_id = (config.device_id or "").lower()
    wanted_name = (config.device_name or "").lower()

    def matches(device: BLEDevice, adv: AdvertisementData) -> bool:
        if wanted_id and device.address.lower() == wanted_id:
            return True
        local_name = (adv.local_name or device.name or "").lower()
        return bool(wanted_name) and wanted_name in local_name

    log.debug("Scanning for id=%s name=%s...", config.device_id, config.device_name)
    device = await BleakScanner.find_device_by_filter(matches, timeout=config.timeout)
    if not device:
        target = config.device_id or config.device_name
        raise TransportFailureError(f"Device '{target}' not found.")
    return device


@dataclass
class LednetLight:
    client: BleakClient
    name: str
    address: str
    tx_char: BleakGATTCharacteristic
    rx_char: BleakGATTCharacteristic | None = None
    notification_queue: asyncio.Queue[bytes] = field(default_factory=asyncio.Queue)
    _notifications_started: bool = field(default=False, init=False, repr=False)

    @classmethod
    async def connect(cls, config: Config) -> LednetLight:
        device = await find_device(config)
        log.debug("Found device: %s (%s)", device.name, device.address)
        client = BleakClient(device, timeout=config.timeout)
        try:
            await client.connect()
        except (BleakError, TimeoutError) as exc:
            raise TransportFailureError(f"Connection to {device.address} failed: {exc}") from exc
        log.debug("Connected=%s", client.is_connected)

        tx_char = find_characteristic(client, config.tx_char_uuid, config.service_uuid)
        if tx_char is None:
            await client.disconnect()
            raise TransportFailureError(f"Characteristic {config.tx_char_uuid.upper()} not found")
        rx_char = find_characteristic(client, config.rx_char_uuid, config.service_uuid)

        ins = cls(
            client=client,
            name=device.name or config.device_name or device.address,
            address=device.address,
            tx_char=tx_char,
            rx_char=rx_char,
        )
        try:
            await ins.subscribe(ins._queue_notification)
        except TransportFailureError as exc:
            log.warning("Notifications unavailable: %s", exc)
        return ins

    async def disconnect(self) -> None:
        if not self.client.is_connected:
            return

        if self._notifications_started and self.rx_char is not None:
            await self.client.stop_notify(self.rx_char)
            self._notifications_started = False
        await self.client.disconnect()

    def _queue_notification(self, data: bytes) -> None:
        self.notification_queue.put_nowait(data)

    async def subscribe(self, on_notification: Callable[[bytes], None]) -> None:
        if self.rx_char is None:
            raise TransportFailureError("No notify characteristic on this device.")

        def handler(_: BleakGATTCharacteristic, data: bytearray) -> None:
            log.debug("NOTIFY uuid=%s data=%s", self.rx_char.uuid, bin_to_hex(data))
            on_notification(bytes(data))

        try:
            await self.client.start_notify(self.rx_char, handler)
        except BleakError as exc:
            raise TransportFailureError(f"Subscribe failed: {exc}") from exc
        self._notifications_started = True

    async def next_notification(self, timeout: float = NOTIFICATION_TIMEOUT) -> bytes:
        return await asyncio.wait_for(self.notification_queue.get(), timeout=timeout)

    async def transmit(self, frame: bytes) -> None:
        """Write one frame with response; failures are not retried."""
        log.debug("WRITE uuid=%s response=True data=0x%s", self.tx_char.uuid, frame.hex())
        try:
            await self.client.write_gatt_char(self.tx_char, frame, response=True)
        except (BleakError, TimeoutError) as exc:
            raise TransportFailureError(f"BLE write failed: {exc}") from exc
        log.debug("WRITE complete uuid=%s", self.tx_char.uuid)


def find_characteristic(
    client: BleakClient,
    uuid: str,
    service_uuid: str | None = None,
) -> BleakGATTCharacteristic | None:
    wanted = normalize_uuid_str(uuid)
    services = client.services
    if service_uuid:
        service = services.get_service(normalize_uuid_str(service_uuid))
        services = [service] if service else []
    for service in services:
        for char in service.characteristics:
            if char.uuid == wanted:
                return char
    return None


class DryRunTransport:
    """Collects frames and prints them instead of writing to a device."""

    def __init__(self) -> None:
        self.frames: list[bytes] = []

    async def transmit(self, frame: bytes) -> None:
        self.frames.append(frame)
        print(f"DRY-RUN {len(frame)}B: {frame.hex(' ')}")


async def run_operations(
    transport: LednetLight | DryRunTransport,
    compiler: FrameCompiler,
    operations: Sequence[Operation],
    on_sent: Callable[[Operation, Frame], None] | None = None,
) -> list[Frame]:
    """Compile and send operations strictly in order.

    Every operation is validated before the first write. A transport failure
    stops the batch; later operations are never sent.
    """
    for op in operations:
        validate_operation(op)

    sent: list[Frame] = []
    for op in operations:
        frame = compiler.compile(op)
        await transport.transmit(bytes(frame))
        sent.append(frame)
        if on_sent is not None:
            on_sent(op, frame)
    return sent
