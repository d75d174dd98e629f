"""Unit tests for LocalSessionCache."""

import pytest
import pytest_check as check

from persona_chat.models import ChatSession
from persona_chat.sessions import LocalSessionCache


class TestLocalSessionCache:
    """Tests for put/get/remove/list semantics."""

    def test_put_and_get(self) -> None:
        cache = LocalSessionCache()
        session = ChatSession(user_id="u1")

        cache.put(session)

        check.is_(cache.get(session.id), session)
        check.is_in(session.id, cache)
        check.equal(len(cache), 1)

    def test_put_replaces_by_id(self) -> None:
        cache = LocalSessionCache()
        first = ChatSession(id="chat_1", user_id="u1", title="First")
        second = ChatSession(id="chat_1", user_id="u1", title="Second")

        cache.put(first)
        cache.put(second)

        check.equal(len(cache), 1)
        check.equal(cache.get("chat_1").title, "Second")

    def test_put_requires_id(self) -> None:
        cache = LocalSessionCache()

        with pytest.raises(ValueError):
            cache.put(ChatSession(id="", user_id="u1"))

    def test_get_missing_returns_none(self) -> None:
        assert LocalSessionCache().get("nope") is None

    def test_remove_is_idempotent(self) -> None:
        cache = LocalSessionCache()
        session = ChatSession(user_id="u1")
        cache.put(session)

        cache.remove(session.id)
        cache.remove(session.id)
        cache.remove("never-there")

        check.equal(len(cache), 0)
        check.is_none(cache.get(session.id))

    def test_list_all_and_clear(self) -> None:
        cache = LocalSessionCache()
        sessions = [ChatSession(user_id="u1") for _ in range(3)]
        for session in sessions:
            cache.put(session)

        check.equal({s.id for s in cache.list_all()}, {s.id for s in sessions})

        cache.clear()
        check.equal(cache.list_all(), [])
