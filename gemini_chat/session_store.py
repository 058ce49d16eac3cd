from datetime import datetime
from typing import Callable, Iterable, List, Optional
from uuid import UUID

from pydantic import TypeAdapter, ValidationError

from config.models import ChatConfig
from constant import SESSIONS_KEY
from gemini_chat.events import EventEmitter, StoreEvent, StoreEventType
from gemini_chat.models import Message, Role, Session, utc_now
from gemini_chat.preference_store import PreferenceStore
from logger import get_logger

logger = get_logger(__name__)

_sessions_adapter = TypeAdapter(List[Session])


class SessionStore:
    """
    Owns every conversation and the pointer to the current one.

    All message changes go through `replace_messages`, which also keeps the
    title, the last-modified ordering and the persisted copy in step.
    Callers only ever see copies of the sessions.
    """

    def __init__(
        self,
        preferences: PreferenceStore,
        chat_config: Optional[ChatConfig] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.preferences = preferences
        self.chat_config = chat_config or ChatConfig()
        self.clock = clock
        self.events: EventEmitter[StoreEvent] = EventEmitter()

        self._sessions: List[Session] = self._load()
        self._current_id: Optional[UUID] = self._sessions[0].id if self._sessions else None

    # ------------------------------------------------------------------ #
    # Read access
    # ------------------------------------------------------------------ #
    @property
    def sessions(self) -> List[Session]:
        return [session.model_copy(deep=True) for session in self._sessions]

    @property
    def current_session_id(self) -> Optional[UUID]:
        return self._current_id

    @property
    def current_session(self) -> Optional[Session]:
        return self.get_session(self._current_id) if self._current_id else None

    @property
    def current_messages(self) -> List[Message]:
        session = self.current_session
        return session.messages if session else []

    def get_session(self, session_id: UUID) -> Optional[Session]:
        session = self._find(session_id)
        return session.model_copy(deep=True) if session else None

    def subscribe(self, listener):
        return self.events.subscribe(listener)

    # ------------------------------------------------------------------ #
    # Mutations
    # ------------------------------------------------------------------ #
    def create_session(self) -> UUID:
        session = Session(title=self.chat_config.default_title, last_modified=self.clock())
        self._sessions.insert(0, session)
        self._current_id = session.id
        self._save()
        self.events.emit(StoreEvent(StoreEventType.SESSION_CREATED, session.id))
        return session.id

    def ensure_current_session(self) -> UUID:
        if not self._sessions:
            return self.create_session()
        if self._current_id is None:
            self._current_id = self._sessions[0].id
        return self._current_id

    def select_session(self, session_id: UUID) -> None:
        if self._find(session_id) is None or session_id == self._current_id:
            return
        self._current_id = session_id
        self.events.emit(StoreEvent(StoreEventType.SESSION_SELECTED, session_id))

    def delete_sessions(self, session_ids: Iterable[UUID]) -> None:
        doomed = set(session_ids)
        self._sessions = [session for session in self._sessions if session.id not in doomed]

        if self._current_id in doomed:
            if self._sessions:
                self._current_id = self._sessions[0].id
            else:
                # create_session persists and emits on its own
                self._current_id = None
                self.create_session()

        self._save()
        self.events.emit(StoreEvent(StoreEventType.SESSIONS_DELETED, self._current_id))

    def replace_messages(self, session_id: UUID, messages: List[Message]) -> bool:
        """
        Swap in a new message list for one session.
        Returns False, changing nothing, when the session no longer exists.
        """
        session = self._find(session_id)
        if session is None:
            logger.debug("Dropping message update for unknown session %s", session_id)
            return False

        session.messages = [message.model_copy() for message in messages]
        session.last_modified = self.clock()
        session.title = self._derive_title(session.title, session.messages)

        self._sessions.sort(key=lambda s: s.last_modified, reverse=True)
        self._save()
        self.events.emit(StoreEvent(StoreEventType.MESSAGES_REPLACED, session_id))
        return True

    def clear_session(self, session_id: UUID) -> bool:
        return self.replace_messages(session_id, [])

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #
    def _find(self, session_id: Optional[UUID]) -> Optional[Session]:
        return next((session for session in self._sessions if session.id == session_id), None)

    def _derive_title(self, title: str, messages: List[Message]) -> str:
        # Titles count code points, not grapheme clusters.
        limit = self.chat_config.title_length
        if len(messages) == 1 and messages[0].text:
            return messages[0].text[:limit]
        if title == self.chat_config.default_title and messages:
            first_user = next((message for message in messages if message.role == Role.USER), None)
            if first_user is not None:
                return first_user.text[:limit]
        return title

    def _save(self) -> None:
        self.preferences.set(SESSIONS_KEY, _sessions_adapter.dump_json(self._sessions).decode("utf-8"))

    def _load(self) -> List[Session]:
        raw = self.preferences.get(SESSIONS_KEY)
        if not raw:
            logger.debug("No stored sessions found.")
            return []
        try:
            sessions = _sessions_adapter.validate_json(raw)
        except ValidationError as e:
            logger.warning("Stored sessions are unreadable, starting empty: %s", e)
            return []
        return sorted(sessions, key=lambda s: s.last_modified, reverse=True)
