"""Conversation and memory persistence."""

from .base import ConversationStore
from .memory import InMemoryConversationStore

__all__ = ["ConversationStore", "InMemoryConversationStore"]
