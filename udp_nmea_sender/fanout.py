"""Wiring of destination senders to host events."""

from typing import Callable, List, Tuple
import structlog

from .config import DestinationConfig
from .events import EventChannel, Subscription
from .host import PluginHost

logger = structlog.get_logger(__name__)

# Inbound sentences, on the host's domain channel
NMEA0183_EVENT = "nmea0183"
# Outbound sentences, on the host's application channel
NMEA0183_OUT_EVENT = "nmea0183out"

NMEA_CHANNEL = "nmea"
APP_CHANNEL = "app"


def subscribed_events(config: DestinationConfig) -> List[Tuple[str, str]]:
    """
    Events a destination listens to.

    Args:
        config: Destination configuration

    Returns:
        List of (channel, event name) pairs in subscription order
    """
    events = []
    if config.nmea0183:
        events.append((NMEA_CHANNEL, NMEA0183_EVENT))
    if config.nmea0183out:
        events.append((APP_CHANNEL, NMEA0183_OUT_EVENT))
    for event_name in config.additional_events:
        events.append((APP_CHANNEL, event_name))
    return events


def _channel(host: PluginHost, kind: str) -> EventChannel:
    return host.nmea_channel if kind == NMEA_CHANNEL else host.app_channel


def wire(host: PluginHost, send: Callable[[str], None],
         config: DestinationConfig) -> List[Subscription]:
    """
    Register a send function for every event the destination listens to.

    Cancelling every returned subscription, in any order, leaves the host's
    channels exactly as they were.

    Args:
        host: Host providing the event channels
        send: Listener to register
        config: Destination configuration

    Returns:
        One subscription per registration
    """
    subscriptions = [
        _channel(host, kind).subscribe(event_name, send)
        for kind, event_name in subscribed_events(config)
    ]

    logger.debug("Destination wired",
                 destination=config.address,
                 events=[s.event_name for s in subscriptions])
    return subscriptions
