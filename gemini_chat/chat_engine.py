import asyncio
from dataclasses import dataclass
from typing import List, Optional
from uuid import UUID

from config.models import ChatConfig
from constant import INTERRUPTED_MARKER, NO_API_KEY_MESSAGE, REQUEST_FAILED_TEMPLATE
from gemini_chat.events import EventEmitter, SendState, StateEvent
from gemini_chat.llm_client.client import ChatClient
from gemini_chat.llm_client.schemas import ModelInfo
from gemini_chat.models import Message, Role
from gemini_chat.session_store import SessionStore
from gemini_chat.settings_store import SettingsStore
from logger import get_logger

logger = get_logger(__name__)


@dataclass
class Draft:
    """What the user is composing before pressing send."""

    text: str = ""
    image_data: Optional[bytes] = None

    def clear(self) -> None:
        self.text = ""
        self.image_data = None


class ChatOrchestrator:
    """
    Drives one send: user message in, streamed model reply out.

    The reply is written into a placeholder message as deltas arrive,
    always through `SessionStore.replace_messages`. Failures never escape
    `send_message`; they end up as text in the conversation.
    """

    def __init__(
        self,
        store: SessionStore,
        settings: SettingsStore,
        client: ChatClient,
        chat_config: Optional[ChatConfig] = None,
    ):
        self.store = store
        self.settings = settings
        self.client = client
        self.chat_config = chat_config or ChatConfig()

        self.draft = Draft()
        self.state = SendState.IDLE
        self.is_loading = False
        self.available_models: List[ModelInfo] = []
        self.events: EventEmitter[StateEvent] = EventEmitter()

        # state, loading flag and cancel event are shared, so one send runs at a time
        self._send_lock = asyncio.Lock()
        self._cancel_event = asyncio.Event()

    def subscribe(self, listener):
        return self.events.subscribe(listener)

    def cancel(self) -> None:
        """Stop the stream in flight, keeping whatever text already arrived."""
        self._cancel_event.set()

    async def send_message(self, text: Optional[str] = None, image_data: Optional[bytes] = None) -> None:
        from_draft = text is None and image_data is None
        if from_draft:
            text, image_data = self.draft.text, self.draft.image_data
        text = text or ""
        if not text and image_data is None:
            return

        session_id = self.store.current_session_id
        if session_id is None or self.store.get_session(session_id) is None:
            session_id = self.store.create_session()

        api_key = self.settings.active_api_key
        if not api_key:
            messages = self.store.get_session(session_id).messages
            messages.append(Message(role=Role.MODEL, text=NO_API_KEY_MESSAGE))
            self.store.replace_messages(session_id, messages)
            return

        if from_draft:
            self.draft.clear()

        async with self._send_lock:
            await self._send(session_id, api_key, text, image_data)

    async def _send(self, session_id: UUID, api_key: str, text: str, image_data: Optional[bytes]) -> None:
        session = self.store.get_session(session_id)
        if session is None:
            # deleted while waiting for an earlier send
            return
        messages = session.messages
        messages.append(Message(role=Role.USER, text=text, image_data=image_data))
        self.store.replace_messages(session_id, messages)

        self._cancel_event.clear()
        self._set_state(SendState.SENDING, session_id, loading=True)

        messages.append(Message(role=Role.MODEL, text=""))
        self.store.replace_messages(session_id, messages)
        reply_index = len(messages) - 1
        limit = self.chat_config.history_limit
        history = messages[:-1][-limit:] if limit > 0 else []

        response_text = ""
        stream = self.client.stream_generate(history, self.settings.selected_model_id, api_key)
        cancelled = asyncio.ensure_future(self._cancel_event.wait())
        next_chunk = None
        try:
            self._set_state(SendState.STREAMING, session_id, loading=True)
            while True:
                next_chunk = asyncio.ensure_future(anext(stream))
                await asyncio.wait({next_chunk, cancelled}, return_when=asyncio.FIRST_COMPLETED)
                if self._cancel_event.is_set():
                    logger.info("Stream for session %s cancelled by the user", session_id)
                    break
                try:
                    chunk = next_chunk.result()
                except StopAsyncIteration:
                    break
                response_text += chunk
                self._write_reply(session_id, reply_index, response_text)
        except asyncio.CancelledError:
            self._set_state(SendState.IDLE, session_id, loading=False)
            raise
        except Exception as e:
            logger.error("Streaming reply for session %s failed: %s", session_id, e)
            if response_text:
                self._write_reply(session_id, reply_index, response_text + INTERRUPTED_MARKER)
            else:
                self._write_reply(session_id, reply_index, REQUEST_FAILED_TEMPLATE.format(error=e))
        finally:
            cancelled.cancel()
            if next_chunk is not None:
                await self._discard_read(next_chunk)
            await stream.aclose()

        self._set_state(SendState.IDLE, session_id, loading=False)

    @staticmethod
    async def _discard_read(read: "asyncio.Future[str]") -> None:
        """Stop a pending stream read; the generator must be idle before it can be closed."""
        if not read.done():
            read.cancel()
            await asyncio.wait({read})
        if not read.cancelled() and read.exception() is not None:
            logger.debug("Discarded stream read ended with %r", read.exception())

    def _write_reply(self, session_id: UUID, index: int, text: str) -> None:
        session = self.store.get_session(session_id)
        if session is None or index >= len(session.messages):
            # session deleted or cleared while the reply was streaming
            return
        session.messages[index] = session.messages[index].with_text(text)
        self.store.replace_messages(session_id, session.messages)

    def _set_state(self, state: SendState, session_id: UUID, loading: bool) -> None:
        self.state = state
        self.is_loading = loading
        self.events.emit(StateEvent(state=state, is_loading=loading, session_id=session_id))

    async def refresh_models(self) -> List[ModelInfo]:
        api_key = self.settings.active_api_key
        if not api_key:
            return self.available_models
        try:
            self.available_models = await self.client.list_models(api_key)
        except Exception as e:
            logger.error("Fetch models error: %s", e)
        return self.available_models

    def clear_current_chat(self) -> None:
        if self.store.current_session_id is not None:
            self.store.clear_session(self.store.current_session_id)
