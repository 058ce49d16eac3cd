from datetime import datetime, timedelta, timezone

import pytest

from config.models import ChatConfig, ClientConfig
from gemini_chat.preference_store import InMemoryPreferenceStore
from gemini_chat.session_store import SessionStore
from gemini_chat.settings_store import SettingsStore


class TickingClock:
    """Returns a later timestamp on every call."""

    def __init__(self):
        self.now = datetime(2026, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


@pytest.fixture
def preferences():
    return InMemoryPreferenceStore()


@pytest.fixture
def clock():
    return TickingClock()


@pytest.fixture
def chat_config():
    return ChatConfig()


@pytest.fixture
def client_config():
    return ClientConfig(default_host="https://h.example/")


@pytest.fixture
def store(preferences, chat_config, clock):
    return SessionStore(preferences, chat_config, clock=clock)


@pytest.fixture
def settings(preferences, client_config, chat_config):
    return SettingsStore(preferences, client_config, chat_config)
