from models.session_models import ChatSession
from services.conversation.session_store import InMemorySessionStore


def make_session(session_id):
    return ChatSession(session_id=session_id, handle=object(), system_instruction="be helpful")


def test_get_or_create_never_replaces_existing():
    store = InMemorySessionStore()
    calls = []

    def factory(session_id):
        calls.append(session_id)
        return make_session(session_id)

    first = store.get_or_create("s1", factory)
    second = store.get_or_create("s1", factory)

    assert first is second
    assert calls == ["s1"]
    assert len(store) == 1


def test_delete_is_idempotent():
    store = InMemorySessionStore()
    store.get_or_create("s1", make_session)

    assert store.delete("s1") is True
    assert store.delete("s1") is False
    assert store.delete("never-created") is False
    assert store.get("s1") is None


def test_contains():
    store = InMemorySessionStore()
    store.get_or_create("a", make_session)
    store.get_or_create("b", make_session)

    assert "a" in store
    assert "z" not in store
    assert 42 not in store
