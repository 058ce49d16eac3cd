from dataclasses import dataclass
from typing import Optional

import httpx

from config.loader import load_config
from config.models import AppConfig
from gemini_chat.chat_engine import ChatOrchestrator
from gemini_chat.llm_client.client import ChatClient
from gemini_chat.models import Role
from gemini_chat.preference_store import InMemoryPreferenceStore, PreferenceStore, RedisPreferenceStore
from gemini_chat.session_store import SessionStore
from gemini_chat.settings_store import SettingsStore
from logger import get_logger

logger = get_logger(__name__)


@dataclass
class ChatApp:
    """Everything a front end needs, wired together once at start-up."""

    config: AppConfig
    preferences: PreferenceStore
    sessions: SessionStore
    settings: SettingsStore
    client: ChatClient
    orchestrator: ChatOrchestrator

    async def aclose(self) -> None:
        await self.client.aclose()


def create_preference_store(app_config: AppConfig) -> PreferenceStore:
    if app_config.storage.redis_url:
        return RedisPreferenceStore(app_config.storage.redis_url, key_prefix=app_config.storage.key_prefix)
    logger.info("No Redis URL configured, keeping sessions and settings in memory.")
    return InMemoryPreferenceStore()


def create_chat_app(
    app_config: Optional[AppConfig] = None,
    preferences: Optional[PreferenceStore] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ChatApp:
    app_config = app_config or load_config()
    preferences = preferences if preferences is not None else create_preference_store(app_config)

    settings = SettingsStore(preferences, app_config.client, app_config.chat)
    sessions = SessionStore(preferences, app_config.chat)
    sessions.ensure_current_session()

    client = ChatClient(app_config.client, host_provider=lambda: settings.host, transport=transport)
    orchestrator = ChatOrchestrator(sessions, settings, client, app_config.chat)

    return ChatApp(
        config=app_config,
        preferences=preferences,
        sessions=sessions,
        settings=settings,
        client=client,
        orchestrator=orchestrator,
    )


if __name__ == "__main__":
    import asyncio
    import os

    async def main_cli():
        app = create_chat_app()
        if os.getenv("GEMINI_API_KEY") and not app.settings.active_api_key:
            app.settings.add_key(os.environ["GEMINI_API_KEY"], "env")

        printed = 0

        def echo_reply(_event):
            nonlocal printed
            messages = app.sessions.current_messages
            if not messages or messages[-1].role != Role.MODEL:
                return
            text = messages[-1].text
            print(text[printed:], end="", flush=True)
            printed = len(text)

        try:
            while True:
                user_msg = input("You: ").strip()
                if user_msg.lower() in {"quit", "exit"}:
                    break
                if user_msg.lower() == "new":
                    app.sessions.create_session()
                    continue
                if user_msg.lower() == "models":
                    for model in await app.orchestrator.refresh_models():
                        print(model.name, "-", model.display_name or "")
                    continue

                print("Gemini: ", end="", flush=True)
                printed = 0
                unsubscribe = app.sessions.subscribe(echo_reply)
                try:
                    await app.orchestrator.send_message(user_msg)
                finally:
                    unsubscribe()
                print()
        finally:
            await app.aclose()

    asyncio.run(main_cli())
