"""EventBus - synchronous in-process delivery between services.

Services never call each other; they publish a GameEvent and every
subscriber runs before ``emit`` returns. Each thread runs its own chains,
so depth and duplicate tracking never leak between concurrent requests.

Delivery is all or nothing for the publisher: a subscriber that raises,
or a chain nested deeper than MAX_DEPTH, surfaces as EventDeliveryError
from the publisher's ``emit`` call, before it commits.
"""

import threading
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Set

from lifequest.core.errors import EventDeliveryError
from lifequest.core.logging import get_logger

logger = get_logger(__name__)

MAX_DEPTH = 5


@dataclass
class GameEvent:
    """Event payload container.

    Args:
        event_type: event kind (e.g. "quest_completed", "battle_won")
        data: ids and small values, never ORM objects
        source: publishing service name
        key: identity of the event within its type (e.g. a quest id)
    """

    event_type: str
    data: Dict[str, Any]
    source: str
    key: str = ""

    # set by the bus on delivery
    depth: int = field(default=0, repr=False)

    @property
    def identity(self) -> str:
        return f"{self.source}:{self.event_type}:{self.key}"


EventHandler = Callable[[GameEvent], None]


def _name(handler: EventHandler) -> str:
    return getattr(handler, "__qualname__", repr(handler))


class _ChainState(threading.local):
    """Depth and delivered identities of the chain running on this thread."""

    def __init__(self) -> None:
        self.depth = 0
        self.delivered: Set[str] = set()


class EventBus:
    """Synchronous event bus.

    Usage:
        bus = EventBus()
        bus.subscribe(EventTypes.QUEST_COMPLETED, progression.on_quest_completed)
        bus.emit(GameEvent(EventTypes.QUEST_COMPLETED, {...}, "quest_service", quest_id))

    A chain starts with a top-level ``emit`` and ends when it returns. Within
    a chain an event with an identity already delivered is skipped.
    """

    def __init__(self) -> None:
        self._handlers: Dict[str, List[EventHandler]] = defaultdict(list)
        self._chain = _ChainState()

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        self._handlers[event_type].append(handler)
        logger.debug("EventBus subscribe: %s -> %s", event_type, _name(handler))

    def unsubscribe(self, event_type: str, handler: EventHandler) -> None:
        handlers = self._handlers.get(event_type, [])
        if handler not in handlers:
            logger.warning("Handler not registered: %s -> %s", event_type, _name(handler))
            return
        handlers.remove(handler)
        logger.debug("EventBus unsubscribe: %s -> %s", event_type, _name(handler))

    def emit(self, event: GameEvent) -> bool:
        """Deliver ``event`` to its subscribers in subscription order.

        Returns False when the event was already delivered in this chain.

        Raises:
            EventDeliveryError: a subscriber raised (later subscribers are
                not called) or the chain is already MAX_DEPTH deep.
        """
        chain = self._chain
        if chain.depth >= MAX_DEPTH:
            raise EventDeliveryError(
                f"Event chain exceeded depth {MAX_DEPTH} at {event.identity}",
                details={"event_type": event.event_type, "source": event.source},
            )
        if event.identity in chain.delivered:
            logger.debug("EventBus duplicate skipped: %s", event.identity)
            return False

        chain.delivered.add(event.identity)
        event.depth = chain.depth
        handlers = list(self._handlers.get(event.event_type, []))
        if handlers:
            logger.info(
                "EventBus dispatch: %s (source=%s, depth=%d, handlers=%d)",
                event.event_type,
                event.source,
                event.depth,
                len(handlers),
            )

        chain.depth += 1
        try:
            for handler in handlers:
                self._deliver(handler, event)
        finally:
            chain.depth -= 1
            if chain.depth == 0:
                chain.delivered.clear()
        return True

    def _deliver(self, handler: EventHandler, event: GameEvent) -> None:
        try:
            handler(event)
        except EventDeliveryError:
            raise
        except Exception as exc:
            logger.exception(
                "EventBus handler %s failed on %s", _name(handler), event.identity
            )
            raise EventDeliveryError(
                f"Handler {_name(handler)} failed on {event.event_type}: {exc}",
                details={"event_type": event.event_type, "handler": _name(handler)},
            ) from exc

    def clear(self) -> None:
        """Drop every subscription."""
        self._handlers.clear()

    @property
    def handler_count(self) -> int:
        return sum(len(h) for h in self._handlers.values())
