"""In-process domain events published after a booking change is committed"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Callable, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class JobCreated:
    job_id: int
    user_id: int
    data: dict = field(default_factory=dict)


@dataclass(frozen=True)
class JobCanceled:
    job_id: int
    status: str
    canceled_by: int


@dataclass(frozen=True)
class SessionEnded:
    job_id: int
    session_time: str
    ended_by: int
    target_user_id: Optional[int] = None


class EventBus:
    """Synchronous publish/subscribe keyed by event class"""

    def __init__(self):
        self._handlers: dict[type, list[Callable]] = defaultdict(list)

    def subscribe(self, event_type: type, handler: Callable) -> None:
        self._handlers[event_type].append(handler)

    def publish(self, event) -> None:
        for handler in self._handlers.get(type(event), []):
            try:
                handler(event)
            except Exception as e:
                logger.error(f"❌ Event handler {getattr(handler, '__name__', handler)} failed for {event}: {e}")


event_bus = EventBus()
