"""Asynchronous UDP sender for one relay destination."""

import asyncio
import ipaddress
import socket
from typing import Any, Optional
import structlog

from .config import DestinationConfig
from .logging_config import DATAGRAMS_SENT, error_handler

logger = structlog.get_logger(__name__)

# Local bind for outbound sockets; the OS picks the port
BIND_ADDRESS = ("0.0.0.0", 0)


class SenderProtocol(asyncio.DatagramProtocol):
    """Asyncio UDP protocol handler for an outbound-only socket."""

    def __init__(self, sender: "DestinationSender"):
        self.sender = sender
        self.transport: Optional[asyncio.DatagramTransport] = None

    def connection_made(self, transport: asyncio.DatagramTransport) -> None:
        """Called once the socket is bound."""
        self.transport = transport
        logger.debug("UDP sender socket bound",
                     destination=self.sender.label,
                     local_addr=transport.get_extra_info('sockname'))

    def datagram_received(self, data: bytes, addr: tuple) -> None:
        # Replies to a send-only socket are not part of the relay
        logger.debug("Ignoring datagram on sender socket",
                     destination=self.sender.label,
                     sender=addr,
                     bytes=len(data))

    def error_received(self, exc: Exception) -> None:
        """Asynchronous send failures (e.g. ICMP unreachable) land here."""
        self.sender.record_error(exc)

    def connection_lost(self, exc: Optional[Exception]) -> None:
        if exc:
            logger.error("UDP sender socket lost",
                         destination=self.sender.label,
                         error=str(exc))
        else:
            logger.debug("UDP sender socket closed",
                         destination=self.sender.label)


class DestinationSender:
    """
    Owns one broadcast-capable UDP socket and sends messages to one address:port.

    ``send`` is fire-and-forget: it never blocks and never raises. Failures are
    counted and logged through the error handler.
    """

    def __init__(self, config: DestinationConfig, address: Optional[str] = None):
        """
        Initialize the sender.

        Args:
            config: Active destination configuration
            address: Resolved IPv4 address; defaults to the configured address
        """
        self.config = config
        self.address = address or config.address
        self.port = config.port
        self.delimiter = config.delimiter
        self.transport: Optional[asyncio.DatagramTransport] = None
        self.protocol: Optional[SenderProtocol] = None
        self.datagrams_sent = 0
        self.send_errors = 0

    @property
    def label(self) -> str:
        return f"{self.address}:{self.port}"

    async def open(self) -> None:
        """Bind the socket and enable broadcast. Returns once the bind has completed."""
        if self.transport is not None:
            logger.warning("UDP sender already open", destination=self.label)
            return

        loop = asyncio.get_running_loop()
        self.transport, self.protocol = await loop.create_datagram_endpoint(
            lambda: SenderProtocol(self),
            local_addr=BIND_ADDRESS,
            allow_broadcast=True
        )

        logger.info("UDP sender opened",
                    destination=self.label,
                    line_delimiter=self.config.line_delimiter.value)

    def send(self, message: Any) -> None:
        """
        Send one message as one datagram with the delimiter appended.

        Args:
            message: Event payload; non-string payloads are sent as their text form
        """
        if self.transport is None or self.transport.is_closing():
            self.record_error(ConnectionError("sender socket is closed"))
            return

        if isinstance(message, (bytes, bytearray)):
            payload = bytes(message) + self.delimiter.encode('utf-8')
        else:
            payload = f"{message}{self.delimiter}".encode('utf-8')

        try:
            self.transport.sendto(payload, (self.address, self.port))
        except (OSError, ValueError, RuntimeError) as e:
            self.record_error(e)
            return

        self.datagrams_sent += 1
        DATAGRAMS_SENT.labels(destination=self.label).inc()

    def record_error(self, error: Exception) -> None:
        """Count and log a transmission fault."""
        self.send_errors += 1
        error_handler.handle_send_error(self.label, error)

    def close(self) -> None:
        """Close the socket. Safe to call more than once."""
        if self.transport is None:
            return

        self.transport.close()
        self.transport = None

        logger.info("UDP sender closed", **self.get_stats())

    def is_open(self) -> bool:
        return self.transport is not None and not self.transport.is_closing()

    def get_stats(self) -> dict:
        """Get sender statistics."""
        return {
            "destination": self.label,
            "datagrams_sent": self.datagrams_sent,
            "send_errors": self.send_errors,
        }


async def resolve_address(address: str) -> str:
    """
    Resolve a destination address to an IPv4 literal.

    Raises:
        socket.gaierror: If the name cannot be resolved to an IPv4 address
    """
    try:
        return str(ipaddress.IPv4Address(address))
    except ValueError:
        pass

    loop = asyncio.get_running_loop()
    try:
        infos = await loop.getaddrinfo(address, None,
                                       family=socket.AF_INET,
                                       type=socket.SOCK_DGRAM)
    except (UnicodeError, ValueError) as e:
        # IDNA rejects malformed names such as empty labels before any lookup
        raise socket.gaierror(socket.EAI_NONAME, f"Invalid host name {address!r}: {e}") from e
    resolved = infos[0][4][0]

    logger.debug("Resolved destination address", address=address, resolved=resolved)
    return resolved


async def create_sender(config: DestinationConfig) -> DestinationSender:
    """
    Create and open a sender for an active destination.

    Args:
        config: Active destination configuration

    Returns:
        Open sender

    Raises:
        OSError: If the address cannot be resolved or the socket cannot be bound
    """
    address = await resolve_address(config.address)
    sender = DestinationSender(config, address)
    await sender.open()
    return sender
