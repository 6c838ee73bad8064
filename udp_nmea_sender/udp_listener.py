"""Asynchronous UDP listener publishing received NMEA 0183 sentences as host events."""

import asyncio
import socket
from typing import Optional, Tuple
import structlog

from .config import Settings
from .events import EventChannel
from .fanout import NMEA0183_EVENT
from .logging_config import SENTENCES_RECEIVED, error_handler

logger = structlog.get_logger(__name__)


class SentenceProtocol(asyncio.DatagramProtocol):
    """Asyncio UDP protocol handler that splits datagrams into sentences."""

    def __init__(self, channel: EventChannel, buffer_size: int):
        """
        Initialize UDP protocol.

        Args:
            channel: Channel the sentences are emitted on
            buffer_size: Requested socket receive buffer size
        """
        self.channel = channel
        self.buffer_size = buffer_size
        self.transport: Optional[asyncio.DatagramTransport] = None
        self.datagrams_received = 0
        self.sentences_received = 0
        self.decode_errors = 0

    def connection_made(self, transport: asyncio.DatagramTransport) -> None:
        """Called when the socket is bound."""
        self.transport = transport
        sock = transport.get_extra_info('socket')
        if sock:
            try:
                sock.setsockopt(socket.SOL_SOCKET, socket.SO_RCVBUF, self.buffer_size)
            except OSError as e:
                logger.warning("Failed to set socket options", error=str(e))

        logger.info("NMEA listener bound",
                    local_addr=transport.get_extra_info('sockname'))

    def datagram_received(self, data: bytes, addr: tuple) -> None:
        """
        Emit every sentence found in a datagram.

        Args:
            data: Raw datagram data
            addr: Sender address (host, port)
        """
        self.datagrams_received += 1

        try:
            text = data.decode('utf-8')
        except UnicodeDecodeError as e:
            self.decode_errors += 1
            error_handler.handle_decode_error(data, e, addr)
            return

        for line in text.splitlines():
            sentence = line.strip()
            if not sentence:
                continue

            self.sentences_received += 1
            SENTENCES_RECEIVED.inc()

            logger.debug("Received NMEA sentence",
                         sender=addr,
                         sentence=sentence)

            self.channel.emit(NMEA0183_EVENT, sentence)

    def error_received(self, exc: Exception) -> None:
        """Handle protocol errors."""
        logger.error("UDP protocol error", error=str(exc))

    def connection_lost(self, exc: Optional[Exception]) -> None:
        """Handle connection loss."""
        if exc:
            logger.error("UDP connection lost", error=str(exc))
        else:
            logger.info("UDP connection closed")

    def get_stats(self) -> dict:
        """Get listener statistics."""
        return {
            "datagrams_received": self.datagrams_received,
            "sentences_received": self.sentences_received,
            "decode_errors": self.decode_errors,
        }


class SentenceListener:
    """UDP source of ``nmea0183`` events for the standalone host."""

    def __init__(self, settings: Settings, channel: EventChannel):
        """
        Initialize UDP listener.

        Args:
            settings: Application settings
            channel: Channel the sentences are emitted on
        """
        self.settings = settings
        self.channel = channel
        self.transport: Optional[asyncio.DatagramTransport] = None
        self.protocol: Optional[SentenceProtocol] = None
        self._running = False

    async def start(self) -> None:
        """Start the UDP listener."""
        if self._running:
            logger.warning("NMEA listener already running")
            return

        try:
            loop = asyncio.get_running_loop()
            self.transport, self.protocol = await loop.create_datagram_endpoint(
                lambda: SentenceProtocol(self.channel, self.settings.udp_buffer_size),
                local_addr=(self.settings.nmea_listen_host, self.settings.nmea_listen_port)
            )

            self._running = True

            logger.info("NMEA listener started successfully",
                        host=self.settings.nmea_listen_host,
                        port=self.local_address[1])

        except OSError as e:
            if e.errno == 98:  # Address already in use
                logger.error("UDP port already in use",
                             port=self.settings.nmea_listen_port)
            elif e.errno == 13:  # Permission denied
                logger.error("Permission denied to bind UDP port",
                             port=self.settings.nmea_listen_port,
                             hint="Try a port > 1024 or run as root")
            else:
                logger.error("Failed to start NMEA listener",
                             error=str(e))
            raise

    async def stop(self) -> None:
        """Stop the UDP listener."""
        if not self._running:
            return

        self._running = False

        if self.transport:
            self.transport.close()
            self.transport = None

        logger.info("NMEA listener stopped")

    @property
    def local_address(self) -> Optional[Tuple[str, int]]:
        """Bound (host, port), once started."""
        if self.transport is None:
            return None
        return self.transport.get_extra_info('sockname')[:2]

    def is_running(self) -> bool:
        """Check if listener is running."""
        return self._running

    def get_stats(self) -> dict:
        """Get listener statistics."""
        if self.protocol:
            return self.protocol.get_stats()
        return {
            "datagrams_received": 0,
            "sentences_received": 0,
            "decode_errors": 0,
        }
