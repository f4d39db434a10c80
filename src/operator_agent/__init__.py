"""Operator Agent - a conversational operator for ad and checkout platforms.

This package provides a tool-calling agent that answers questions about a
user's ad campaigns and subscriptions, renders charts, and stages write
actions (pause, enable, budget changes, cancellations) behind an explicit
confirmation step. It supports multiple LLM providers through a unified
interface.
"""

from .agent import OperatorAgent
from .exceptions import (
    ActionNotFound,
    AgentError,
    ClientError,
    ConversationNotFound,
    OracleUnavailable,
    ToolError,
    ValidationError,
)
from .streaming import EventType, StreamChannel, StreamEvent
from .types import (
    ActionStatus,
    Conversation,
    EntityDomain,
    FinishReason,
    MessageRole,
    PendingAction,
    ToolCall,
    ToolOutcome,
    TurnResult,
    TurnState,
    UnifiedMessage,
)

__all__ = [
    # main agent
    "OperatorAgent",
    # streaming
    "EventType",
    "StreamChannel",
    "StreamEvent",
    # types
    "ActionStatus",
    "Conversation",
    "EntityDomain",
    "FinishReason",
    "MessageRole",
    "PendingAction",
    "ToolCall",
    "ToolOutcome",
    "TurnResult",
    "TurnState",
    "UnifiedMessage",
    # exceptions
    "ActionNotFound",
    "AgentError",
    "ClientError",
    "ConversationNotFound",
    "OracleUnavailable",
    "ToolError",
    "ValidationError",
]
