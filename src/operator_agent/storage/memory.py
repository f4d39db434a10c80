"""In-memory conversation store."""

import uuid
from dataclasses import replace

from ..types import Conversation, MemoryFact, UnifiedMessage, utcnow
from .base import ConversationStore


class InMemoryConversationStore(ConversationStore):
    """Keeps conversations, messages and facts in process memory."""

    def __init__(self):
        self._conversations: dict[str, Conversation] = {}
        self._messages: dict[str, list[UnifiedMessage]] = {}
        self._facts: list[MemoryFact] = []

    async def create_conversation(self, user_id: str, title: str) -> Conversation:
        conversation = Conversation(id=str(uuid.uuid4()), user_id=user_id, title=title)
        self._conversations[conversation.id] = conversation
        self._messages[conversation.id] = []
        return conversation

    async def get_conversation(self, conversation_id: str, user_id: str) -> Conversation | None:
        conversation = self._conversations.get(conversation_id)
        if conversation is None or conversation.user_id != user_id:
            return None
        return conversation

    async def list_conversations(self, user_id: str) -> list[Conversation]:
        owned = [c for c in self._conversations.values() if c.user_id == user_id]
        return sorted(owned, key=lambda c: c.updated_at, reverse=True)

    async def delete_conversation(self, conversation_id: str, user_id: str) -> bool:
        if await self.get_conversation(conversation_id, user_id) is None:
            return False
        del self._conversations[conversation_id]
        self._messages.pop(conversation_id, None)
        return True

    async def append_message(self, conversation_id: str, message: UnifiedMessage) -> None:
        if conversation_id not in self._conversations:
            raise KeyError(f"Unknown conversation: {conversation_id}")
        self._messages[conversation_id].append(message)
        self._conversations[conversation_id] = replace(
            self._conversations[conversation_id], updated_at=utcnow()
        )

    async def fetch_messages(self, conversation_id: str, limit: int | None = None) -> list[UnifiedMessage]:
        messages = list(self._messages.get(conversation_id, []))
        if limit is not None:
            return messages[-limit:] if limit > 0 else []
        return messages

    async def add_fact(self, fact: MemoryFact) -> None:
        self._facts.append(fact)

    async def recent_facts(self, user_id: str, limit: int = 20) -> list[MemoryFact]:
        owned = [f for f in self._facts if f.user_id == user_id]
        return list(reversed(owned))[:limit]
