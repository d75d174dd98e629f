from persona_chat.models import ChatSession


class LocalSessionCache:
    """Sessions started locally that the remote store does not know about yet."""

    def __init__(self) -> None:
        self._sessions: dict[str, ChatSession] = {}

    def put(self, session: ChatSession) -> None:
        if not session.id:
            raise ValueError("session id is required")
        self._sessions[session.id] = session

    def get(self, chat_id: str) -> ChatSession | None:
        return self._sessions.get(chat_id)

    def remove(self, chat_id: str) -> None:
        self._sessions.pop(chat_id, None)

    def list_all(self) -> list[ChatSession]:
        return list(self._sessions.values())

    def clear(self) -> None:
        self._sessions.clear()

    def __contains__(self, chat_id: object) -> bool:
        return chat_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
