"""In-process publish/subscribe channels keyed by event name."""

import itertools
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple
import structlog

logger = structlog.get_logger(__name__)

Handler = Callable[[Any], None]


@dataclass(frozen=True)
class Subscription:
    """Record of one listener registration; cancelling it undoes exactly that registration."""

    channel: "EventChannel"
    event_name: str
    handler_id: int

    def cancel(self) -> bool:
        """Remove the registration. Returns False if it was already gone."""
        return self.channel.unsubscribe(self.handler_id)


class EventChannel:
    """
    Named-event channel.

    Every ``subscribe`` call is its own registration with its own handler id,
    so the same function may be registered by several owners and each owner
    removes only what it added.
    """

    def __init__(self, name: str):
        """
        Initialize the channel.

        Args:
            name: Channel name used in log messages
        """
        self.name = name
        self._ids = itertools.count(1)
        self._handlers: Dict[str, Dict[int, Handler]] = {}
        self._index: Dict[int, str] = {}

    def subscribe(self, event_name: str, handler: Handler) -> Subscription:
        """
        Register a listener.

        Args:
            event_name: Event to listen to
            handler: Callable invoked with the event payload

        Returns:
            Subscription record for this registration
        """
        handler_id = next(self._ids)
        self._handlers.setdefault(event_name, {})[handler_id] = handler
        self._index[handler_id] = event_name

        logger.debug("Listener registered",
                     channel=self.name,
                     event_name=event_name,
                     handler_id=handler_id)

        return Subscription(self, event_name, handler_id)

    def unsubscribe(self, handler_id: int) -> bool:
        """Remove a registration by id. Unknown ids are ignored."""
        event_name = self._index.pop(handler_id, None)
        if event_name is None:
            return False

        handlers = self._handlers[event_name]
        del handlers[handler_id]
        if not handlers:
            del self._handlers[event_name]

        logger.debug("Listener removed",
                     channel=self.name,
                     event_name=event_name,
                     handler_id=handler_id)
        return True

    def emit(self, event_name: str, payload: Any) -> int:
        """
        Deliver a payload to every listener of an event, in registration order.

        A failing listener is logged and does not stop delivery to the others.

        Args:
            event_name: Event to emit
            payload: Event payload

        Returns:
            Number of listeners the payload was delivered to
        """
        handlers: List[Tuple[int, Handler]] = list(self._handlers.get(event_name, {}).items())

        for handler_id, handler in handlers:
            try:
                handler(payload)
            except Exception as e:
                logger.error("Event listener failed",
                             channel=self.name,
                             event_name=event_name,
                             handler_id=handler_id,
                             error=str(e),
                             error_type=type(e).__name__)

        return len(handlers)

    def listener_count(self, event_name: Optional[str] = None) -> int:
        """Number of listeners for one event, or for all events."""
        if event_name is not None:
            return len(self._handlers.get(event_name, {}))
        return len(self._index)

    def event_names(self) -> List[str]:
        """Events that currently have at least one listener."""
        return list(self._handlers)

    def __repr__(self) -> str:
        return f"EventChannel({self.name!r}, listeners={self.listener_count()})"
