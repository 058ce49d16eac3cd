from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Generic, List, Optional, TypeVar
from uuid import UUID

from logger import get_logger

logger = get_logger(__name__)


class StoreEventType(Enum):
    SESSION_CREATED = "session_created"
    SESSION_SELECTED = "session_selected"
    SESSIONS_DELETED = "sessions_deleted"
    MESSAGES_REPLACED = "messages_replaced"


class SendState(Enum):
    IDLE = "idle"
    SENDING = "sending"
    STREAMING = "streaming"


@dataclass
class StoreEvent:
    type: StoreEventType
    session_id: Optional[UUID] = None
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class StateEvent:
    state: SendState
    is_loading: bool
    session_id: Optional[UUID] = None
    timestamp: datetime = field(default_factory=datetime.now)


E = TypeVar("E")


class EventEmitter(Generic[E]):
    """
    Synchronous publish/subscribe used in place of UI bindings.

    Listeners run on the owner's thread right after the mutation that
    produced the event. A failing listener is logged and does not stop
    the others or the mutation itself.
    """

    def __init__(self):
        self._listeners: List[Callable[[E], Any]] = []

    def subscribe(self, listener: Callable[[E], Any]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def emit(self, event: E) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.error("Event listener %r failed: %s", listener, e)
