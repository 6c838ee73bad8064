"""
Pytest configuration and fixtures for udp_nmea_sender tests.
"""

import asyncio
from typing import Dict, List, Optional

import pytest
import pytest_asyncio

from udp_nmea_sender.events import EventChannel
from udp_nmea_sender.logging_config import error_handler


class RecordingHost:
    """PluginHost double that records everything the relay tells it."""

    def __init__(self, fail_save: Optional[Exception] = None):
        self.nmea_channel = EventChannel("nmea")
        self.app_channel = EventChannel("app")
        self.saved: List[dict] = []
        self.statuses: List[str] = []
        self.errors: List[str] = []
        self.debug_messages: List[str] = []
        self.fail_save = fail_save

    async def save_plugin_options(self, options: dict) -> None:
        if self.fail_save is not None:
            raise self.fail_save
        self.saved.append(options)

    def set_plugin_status(self, message: str) -> None:
        self.statuses.append(message)

    def set_plugin_error(self, message: str) -> None:
        self.errors.append(message)

    def debug(self, message: str) -> None:
        self.debug_messages.append(message)

    def listeners(self) -> Dict[str, Dict[str, int]]:
        """Listener counts per channel and event."""
        return {
            channel.name: {name: channel.listener_count(name) for name in channel.event_names()}
            for channel in (self.nmea_channel, self.app_channel)
        }


class UDPReceiver(asyncio.DatagramProtocol):
    """Loopback UDP endpoint collecting datagrams into a queue."""

    def __init__(self):
        self.queue: asyncio.Queue = asyncio.Queue()
        self.port: int = 0

    def datagram_received(self, data: bytes, addr: tuple) -> None:
        self.queue.put_nowait(data)

    async def next(self, timeout: float = 2.0) -> bytes:
        return await asyncio.wait_for(self.queue.get(), timeout)

    async def is_silent(self, wait: float = 0.2) -> bool:
        """True if nothing arrives within ``wait`` seconds."""
        await asyncio.sleep(wait)
        return self.queue.empty()


@pytest.fixture
def host():
    return RecordingHost()


@pytest.fixture(autouse=True)
def reset_error_stats():
    error_handler.reset_stats()
    yield
    error_handler.reset_stats()


@pytest_asyncio.fixture
async def udp_receiver():
    loop = asyncio.get_running_loop()
    transport, protocol = await loop.create_datagram_endpoint(
        UDPReceiver,
        local_addr=("127.0.0.1", 0)
    )
    protocol.port = transport.get_extra_info("sockname")[1]
    yield protocol
    transport.close()


def destination(port: int, **overrides) -> dict:
    """Destination options aimed at the loopback receiver."""
    options = {"ipaddress": "127.0.0.1", "port": port}
    options.update(overrides)
    return options
