"""Relay lifecycle: start and stop of every configured destination."""

import json
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional
import structlog
from pydantic import ValidationError

from .config import DestinationConfigs, DestinationConfig, normalize_options
from .events import Subscription
from .fanout import wire
from .host import PluginHost
from .logging_config import ACTIVE_DESTINATIONS, ACTIVE_SUBSCRIPTIONS, error_handler
from .schema import plugin_schema
from .sender import DestinationSender, create_sender

logger = structlog.get_logger(__name__)

PLUGIN_ID = "udp-nmea-sender"
PLUGIN_NAME = "Send NMEA0183 messages over UDP"

NO_ADDRESS_MESSAGE = "No address specified"


@dataclass
class RelayState:
    """Resources acquired by one run of the relay."""

    senders: List[DestinationSender] = field(default_factory=list)
    subscriptions: List[Subscription] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.senders and not self.subscriptions

    def clear(self) -> None:
        self.senders.clear()
        self.subscriptions.clear()


class UdpNmeaRelay:
    """Relays NMEA 0183 events from the host to UDP destinations."""

    id = PLUGIN_ID
    name = PLUGIN_NAME

    def __init__(self, host: PluginHost):
        """
        Initialize the relay.

        Args:
            host: Host application providing events, persistence and status
        """
        self.host = host
        self.state = RelayState()
        self._running = False

    def schema(self) -> dict:
        """Configuration schema for the host's UI."""
        return plugin_schema()

    async def start(self, options: Optional[Mapping[str, Any]]) -> None:
        """
        Start relaying to every configured destination.

        A legacy single-destination configuration is rewritten into the
        multi-destination shape and saved back to the host first. Each
        destination that cannot start is reported on its own; the others
        start regardless.

        Args:
            options: Plugin options as stored by the host
        """
        if self._running:
            logger.warning("Relay already running - restarting")
            await self.stop()

        self.host.debug(json.dumps(options, default=str))

        configs, legacy = normalize_options(options)
        if legacy:
            await self._save_migrated_options(configs)

        logger.info("Starting UDP NMEA relay",
                    destinations=len(configs.destinations),
                    legacy_options=legacy)

        for index, raw in enumerate(configs.destinations):
            await self._start_destination(index, raw)

        self._running = True
        self._update_gauges()

        logger.info("UDP NMEA relay started",
                    active_destinations=len(self.state.senders),
                    subscriptions=len(self.state.subscriptions))

    async def stop(self) -> None:
        """Release every subscription and socket acquired by ``start``. No-op when stopped."""
        if not self._running and self.state.is_empty:
            return

        logger.info("Stopping UDP NMEA relay",
                    destinations=len(self.state.senders),
                    subscriptions=len(self.state.subscriptions))

        for subscription in self.state.subscriptions:
            subscription.cancel()

        for sender in self.state.senders:
            sender.close()

        self.state.clear()
        self._running = False
        self._update_gauges()

        logger.info("UDP NMEA relay stopped")

    async def _save_migrated_options(self, configs: DestinationConfigs) -> None:
        """Persist the canonical shape; a failure is reported but does not block start."""
        try:
            await self.host.save_plugin_options(configs.to_options())
        except Exception as e:
            error_handler.handle_persistence_error(e)
            self.host.set_plugin_error(str(e))

    async def _start_destination(self, index: int, raw: Any) -> bool:
        """
        Open and wire one destination.

        Args:
            index: Position of the destination in the options
            raw: Destination options as stored by the host

        Returns:
            True if the destination is now relaying
        """
        try:
            config = DestinationConfig.model_validate(raw)
        except ValidationError as e:
            self._report_configuration_error(
                None, f"Invalid configuration for destination {index + 1}: {_describe(e)}"
            )
            return False

        if not config.is_active:
            self._report_configuration_error(config.address, NO_ADDRESS_MESSAGE)
            return False

        try:
            sender = await create_sender(config)
        except (OSError, UnicodeError) as e:
            self._report_configuration_error(
                config.address, f"Cannot use address {config.address}: {e}"
            )
            return False

        subscriptions = wire(self.host, sender.send, config)
        self.state.senders.append(sender)
        self.state.subscriptions.extend(subscriptions)

        logger.info("Destination started",
                    index=index,
                    events=[s.event_name for s in subscriptions],
                    **config.get_summary())

        self.host.set_plugin_status(f"Using address {config.address}")
        return True

    def _report_configuration_error(self, destination: Optional[str], reason: str) -> None:
        error_handler.handle_configuration_error(destination, reason)
        self.host.set_plugin_error(reason)

    def _update_gauges(self) -> None:
        ACTIVE_DESTINATIONS.set(len(self.state.senders))
        ACTIVE_SUBSCRIPTIONS.set(len(self.state.subscriptions))

    def is_running(self) -> bool:
        """Check if the relay is running."""
        return self._running

    def get_stats(self) -> dict:
        """Get relay statistics."""
        return {
            "running": self._running,
            "destinations": [sender.get_stats() for sender in self.state.senders],
            "subscriptions": len(self.state.subscriptions),
        }


def _describe(error: ValidationError) -> str:
    """First validation problem as 'field: message'."""
    first = error.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ())) or "destination"
    return f"{location}: {first.get('msg')}"
