"""
Collaborators the chat service depends on.

Storage, session resolution and quota checks live outside this package; the
protocols below are the whole surface chatstream needs from them. The
in-memory implementations back the default app and the tests.
"""

import time
import uuid
from collections import defaultdict
from typing import Dict, List, Optional, Protocol

from .types import ChatMessage, Role


class ChatStore(Protocol):
    async def load_history(self, chat_id: str) -> List[ChatMessage]: ...

    async def append_message(self, chat_id: str, role: Role, content: str) -> None: ...

    async def create_chat(self, user_id: str, first_message: str) -> str: ...


class SessionResolver(Protocol):
    async def current_user_id(self) -> Optional[str]: ...


class QuotaPolicy(Protocol):
    async def within_quota(self, user_id: str) -> bool: ...


class InMemoryChatStore:
    """
    Process-local chat storage.

    `create_chat` stores the first user message; later turns are appended.
    """

    def __init__(self):
        self.chats: Dict[str, List[ChatMessage]] = {}
        self.owners: Dict[str, str] = {}
        self.created_at: Dict[str, List[float]] = defaultdict(list)

    async def load_history(self, chat_id: str) -> List[ChatMessage]:
        return [dict(m) for m in self.chats.get(chat_id, [])]

    async def append_message(self, chat_id: str, role: Role, content: str) -> None:
        self.chats.setdefault(chat_id, []).append({"role": role, "content": content})

    async def create_chat(self, user_id: str, first_message: str) -> str:
        chat_id = str(uuid.uuid4())
        self.chats[chat_id] = [{"role": "user", "content": first_message}]
        self.owners[chat_id] = user_id
        self.created_at[user_id].append(time.time())
        return chat_id

    def count_recent_chats(self, user_id: str, hours: float = 24) -> int:
        """Count chats created within the last `hours`; older timestamps are dropped."""
        cutoff = time.time() - hours * 3600
        recent = [t for t in self.created_at[user_id] if t >= cutoff]
        self.created_at[user_id] = recent
        return len(recent)


class StaticSession:
    """Resolves every request to the same user, or to nobody."""

    def __init__(self, user_id: Optional[str] = "local-user"):
        self.user_id = user_id

    async def current_user_id(self) -> Optional[str]:
        return self.user_id


class DailyMessageQuota:
    """Allows at most `limit` new chats per user in a rolling 24 hours."""

    def __init__(self, store: InMemoryChatStore, limit: int):
        self.store = store
        self.limit = limit

    async def within_quota(self, user_id: str) -> bool:
        return self.store.count_recent_chats(user_id) < self.limit
