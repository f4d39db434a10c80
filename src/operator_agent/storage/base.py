"""Storage contract for conversations, messages and long-term facts.

The storage engine is an external collaborator; the agent depends only on
this read/write contract.
"""

from abc import ABC, abstractmethod

from ..types import Conversation, MemoryFact, UnifiedMessage


class ConversationStore(ABC):
    """Abstract persistence for conversations and memory facts.

    Implementations must return messages in the order they were appended
    and must never mutate a stored message.
    """

    @abstractmethod
    async def create_conversation(self, user_id: str, title: str) -> Conversation:
        """Create a conversation owned by the user."""

    @abstractmethod
    async def get_conversation(self, conversation_id: str, user_id: str) -> Conversation | None:
        """Get a conversation if it exists and belongs to the user."""

    @abstractmethod
    async def list_conversations(self, user_id: str) -> list[Conversation]:
        """List the user's conversations, most recently updated first."""

    @abstractmethod
    async def delete_conversation(self, conversation_id: str, user_id: str) -> bool:
        """Delete a conversation and its messages. Returns False if not found."""

    @abstractmethod
    async def append_message(self, conversation_id: str, message: UnifiedMessage) -> None:
        """Append a message to the end of a conversation."""

    @abstractmethod
    async def fetch_messages(self, conversation_id: str, limit: int | None = None) -> list[UnifiedMessage]:
        """Fetch messages oldest first; with a limit, only the last `limit` ones."""

    @abstractmethod
    async def add_fact(self, fact: MemoryFact) -> None:
        """Append a long-term memory fact."""

    @abstractmethod
    async def recent_facts(self, user_id: str, limit: int = 20) -> list[MemoryFact]:
        """Fetch the user's facts, newest first."""
