import random
from datetime import datetime, timedelta, timezone
from uuid import UUID

from constant import SESSIONS_KEY
from gemini_chat.events import StoreEventType
from gemini_chat.models import Message, Role
from gemini_chat.preference_store import InMemoryPreferenceStore
from gemini_chat.session_store import SessionStore


def user(text: str) -> Message:
    return Message(role=Role.USER, text=text)


def model(text: str) -> Message:
    return Message(role=Role.MODEL, text=text)


def is_sorted(sessions) -> bool:
    stamps = [session.last_modified for session in sessions]
    return stamps == sorted(stamps, reverse=True)


class TestCreateAndSelect:
    def test_starts_empty_without_current(self, store):
        assert store.sessions == []
        assert store.current_session_id is None
        assert store.current_messages == []

    def test_create_inserts_at_front_and_selects(self, store):
        first = store.create_session()
        second = store.create_session()

        assert [session.id for session in store.sessions] == [second, first]
        assert store.current_session_id == second
        assert store.current_session.title == "New Chat"

    def test_select_unknown_is_noop(self, store):
        current = store.create_session()
        store.select_session(UUID(int=0))

        assert store.current_session_id == current

    def test_select_current_emits_nothing(self, store):
        current = store.create_session()
        events = []
        store.subscribe(events.append)

        store.select_session(current)

        assert events == []
        assert store.current_session_id == current

    def test_select_other(self, store):
        first = store.create_session()
        store.create_session()
        events = []
        store.subscribe(events.append)

        store.select_session(first)

        assert store.current_session_id == first
        assert [event.type for event in events] == [StoreEventType.SESSION_SELECTED]

    def test_ensure_current_session_creates_only_once(self, store):
        created = store.ensure_current_session()

        assert store.ensure_current_session() == created
        assert len(store.sessions) == 1


class TestDelete:
    def test_deleting_current_moves_to_first(self, store):
        older = store.create_session()
        newer = store.create_session()

        store.delete_sessions([newer])

        assert store.current_session_id == older
        assert [session.id for session in store.sessions] == [older]

    def test_deleting_everything_creates_fresh_session(self, store):
        ids = [store.create_session(), store.create_session()]

        store.delete_sessions(ids)

        assert len(store.sessions) == 1
        assert store.current_session_id == store.sessions[0].id
        assert store.current_session_id not in ids

    def test_deleting_other_keeps_current(self, store):
        other = store.create_session()
        current = store.create_session()

        store.delete_sessions([other])

        assert store.current_session_id == current

    def test_delete_is_persisted(self, store, preferences, chat_config):
        keep = store.create_session()
        gone = store.create_session()
        store.delete_sessions([gone])

        reloaded = SessionStore(preferences, chat_config)
        assert [session.id for session in reloaded.sessions] == [keep]


class TestReplaceMessages:
    def test_unknown_session_is_silent_noop(self, store, preferences):
        store.create_session()
        before = preferences.get(SESSIONS_KEY)

        assert store.replace_messages(UUID(int=1), [user("hi")]) is False
        assert preferences.get(SESSIONS_KEY) == before

    def test_single_message_sets_title(self, store):
        session_id = store.create_session()

        store.replace_messages(session_id, [user("Hello world, how are you?")])

        assert store.get_session(session_id).title == "Hello worl"

    def test_title_from_first_user_message_when_still_default(self, store):
        session_id = store.create_session()

        store.replace_messages(session_id, [model("warning"), user("abcdefghijklmnop")])

        assert store.get_session(session_id).title == "abcdefghij"

    def test_title_is_kept_once_derived(self, store):
        session_id = store.create_session()
        store.replace_messages(session_id, [user("first question")])
        store.replace_messages(session_id, [user("first question"), model("answer")])
        store.replace_messages(session_id, [user("first question"), model("answer"), user("second")])

        assert store.get_session(session_id).title == "first ques"

    def test_single_message_overrides_existing_title(self, store):
        session_id = store.create_session()
        store.replace_messages(session_id, [user("old topic here")])
        store.replace_messages(session_id, [user("brand new topic")])

        assert store.get_session(session_id).title == "brand new "

    def test_title_counts_code_points(self, store):
        session_id = store.create_session()

        store.replace_messages(session_id, [user("😀" * 12)])

        assert store.get_session(session_id).title == "😀" * 10

    def test_image_only_first_message_gives_empty_title(self, store):
        session_id = store.create_session()

        store.replace_messages(session_id, [Message(role=Role.USER, image_data=b"img")])

        assert store.get_session(session_id).title == ""

    def test_updated_session_moves_to_front(self, store):
        older = store.create_session()
        store.create_session()

        store.replace_messages(older, [user("bump")])

        assert store.sessions[0].id == older
        assert is_sorted(store.sessions)

    def test_sessions_stay_sorted_for_any_update_sequence(self, preferences, chat_config):
        rng = random.Random(7)
        base = datetime(2026, 1, 1, tzinfo=timezone.utc)
        store = SessionStore(preferences, chat_config, clock=lambda: base + timedelta(minutes=rng.randint(0, 10_000)))
        ids = [store.create_session() for _ in range(6)]

        for step in range(60):
            store.replace_messages(rng.choice(ids), [user(f"message {step}")])
            assert is_sorted(store.sessions)

    def test_returned_sessions_are_copies(self, store):
        session_id = store.create_session()
        store.replace_messages(session_id, [user("hi")])

        store.get_session(session_id).messages.append(model("sneaky"))
        store.current_messages[0].text = "changed"

        assert [message.text for message in store.get_session(session_id).messages] == ["hi"]

    def test_emits_event(self, store):
        session_id = store.create_session()
        events = []
        store.subscribe(events.append)

        store.replace_messages(session_id, [user("hi")])

        assert [(event.type, event.session_id) for event in events] == [(StoreEventType.MESSAGES_REPLACED, session_id)]

    def test_clear_session(self, store):
        session_id = store.create_session()
        store.replace_messages(session_id, [user("hi"), model("hello")])

        store.clear_session(session_id)

        assert store.get_session(session_id).messages == []


class TestPersistence:
    def test_round_trip(self, store, preferences, chat_config):
        first = store.create_session()
        store.replace_messages(first, [Message(role=Role.USER, text="look", image_data=b"\x00\xffjpeg"), model("nice")])
        second = store.create_session()
        store.replace_messages(second, [user("another")])

        reloaded = SessionStore(preferences, chat_config)

        assert reloaded.sessions == store.sessions
        assert reloaded.sessions[1].messages[0].image_data == b"\x00\xffjpeg"
        assert reloaded.current_session_id == reloaded.sessions[0].id

    def test_missing_data_loads_empty(self, chat_config):
        assert SessionStore(InMemoryPreferenceStore(), chat_config).sessions == []

    def test_corrupt_data_loads_empty(self, chat_config):
        preferences = InMemoryPreferenceStore({SESSIONS_KEY: "{not json"})

        store = SessionStore(preferences, chat_config)

        assert store.sessions == []
        assert store.current_session_id is None

    def test_wrong_shape_loads_empty(self, chat_config):
        preferences = InMemoryPreferenceStore({SESSIONS_KEY: '[{"title": 3}]'})

        assert SessionStore(preferences, chat_config).sessions == []

    def test_loaded_sessions_are_resorted(self, chat_config):
        raw = (
            '[{"id": "00000000-0000-0000-0000-000000000001", "title": "old", "messages": [],'
            ' "last_modified": "2025-01-01T00:00:00Z"},'
            ' {"id": "00000000-0000-0000-0000-000000000002", "title": "new", "messages": [],'
            ' "last_modified": "2026-01-01T00:00:00Z"}]'
        )

        store = SessionStore(InMemoryPreferenceStore({SESSIONS_KEY: raw}), chat_config)

        assert [session.title for session in store.sessions] == ["new", "old"]
        assert store.current_session.title == "new"
