"""Pydantic models for API requests and responses."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from ..types import Conversation, PendingAction, UnifiedMessage


class ChatRequest(BaseModel):
    """Request to send a message; omit conversation_id to start a new conversation."""

    message: str
    conversation_id: str | None = None


class CreateConversationRequest(BaseModel):
    title: str | None = Field(default=None, max_length=100)


class ConversationInfo(BaseModel):
    """A conversation without its messages."""

    id: str
    title: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_conversation(cls, conversation: Conversation) -> "ConversationInfo":
        return cls(
            id=conversation.id,
            title=conversation.title,
            created_at=conversation.created_at,
            updated_at=conversation.updated_at,
        )


class MessageInfo(BaseModel):
    role: str
    content: str | None = None
    chart: dict[str, Any] | None = None
    created_at: datetime

    @classmethod
    def from_message(cls, message: UnifiedMessage) -> "MessageInfo":
        return cls(
            role=message.role.value,
            content=message.content,
            chart=message.chart,
            created_at=message.created_at,
        )


class ConversationDetail(ConversationInfo):
    """A conversation with its messages, oldest first."""

    messages: list[MessageInfo] = Field(default_factory=list)


class PendingActionInfo(BaseModel):
    """A write action awaiting confirmation."""

    pending_id: str
    action: str
    description: str
    details: dict[str, Any]
    expires_at: float

    @classmethod
    def from_action(cls, action: PendingAction) -> "PendingActionInfo":
        return cls(
            pending_id=action.id,
            action=action.tool_name,
            description=action.description,
            details=action.params,
            expires_at=action.expires_at,
        )
