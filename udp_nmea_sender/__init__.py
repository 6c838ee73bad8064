"""UDP NMEA sender - relays NMEA 0183 events to UDP destinations."""

__version__ = "1.0.0"

from .config import Settings, DestinationConfig, DestinationConfigs, LineDelimiter, normalize_options
from .events import EventChannel, Subscription
from .host import PluginHost, StandaloneHost
from .interfaces import list_broadcast_addresses
from .sender import DestinationSender, create_sender
from .fanout import subscribed_events, wire
from .relay import RelayState, UdpNmeaRelay
from .schema import plugin_schema

__all__ = [
    "Settings",
    "DestinationConfig",
    "DestinationConfigs",
    "LineDelimiter",
    "normalize_options",
    "EventChannel",
    "Subscription",
    "PluginHost",
    "StandaloneHost",
    "list_broadcast_addresses",
    "DestinationSender",
    "create_sender",
    "subscribed_events",
    "wire",
    "RelayState",
    "UdpNmeaRelay",
    "plugin_schema",
]
