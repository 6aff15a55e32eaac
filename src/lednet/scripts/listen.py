"""Connect to the strip and print every notification it sends.

Use this via the main CLI: `lednet --name LEDnetWF listen --seconds 30`.
"""

import asyncio
import logging
import time

from lednet.lib.lednet import LednetLight
from lednet.lib.models import Config
from lednet.lib.parsers import parse_notification

log = logging.getLogger("lednet")


def print_notification(data: bytes) -> None:
    notification = parse_notification(data)
    if notification is None:
        print(f"RX {len(data)}B {data.hex(' ')}")
        return
    print(f"RX JSON code={notification.code} payload={notification.payload}")


async def listen(config: Config, seconds: float = 30.0) -> int:
    """Print notifications until ``seconds`` pass; returns how many arrived."""
    light = await LednetLight.connect(config)
    log.debug("listen connected name=%s address=%s", light.name, light.address)
    received = 0
    deadline = time.monotonic() + seconds
    print(f"\nListening for {seconds:.0f}s... (Ctrl+C to stop)\n")
    try:
        while (remaining := deadline - time.monotonic()) > 0:
            try:
                data = await light.next_notification(timeout=remaining)
            except asyncio.TimeoutError:
                break
            print_notification(data)
            received += 1
    finally:
        await light.disconnect()
    return received
