"""Unified types for the operator agent.

These types provide a provider-agnostic interface for oracle interactions,
plus the domain records the gateway, resolver and conversation layer share.
All oracle clients convert their provider-specific formats to/from these types.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum, auto
from typing import Any


def utcnow() -> datetime:
    """Timezone-aware current time used for message and record timestamps."""
    return datetime.now(timezone.utc)


class MessageRole(Enum):
    """Role of a message in the conversation."""
    USER = "user"
    ASSISTANT = "assistant"


class FinishReason(Enum):
    """Reason why the oracle stopped generating."""
    STOP = "stop"
    TOOL_USE = "tool_use"
    LENGTH = "length"
    ERROR = "error"


@dataclass(frozen=True)
class ToolCall:
    """A tool call requested by the oracle.

    The id is the correlation id the matching result must carry.
    """
    id: str
    name: str
    arguments: dict[str, Any]


@dataclass(frozen=True)
class ToolResultBlock:
    """The result of one tool call, tagged with its correlation id."""
    tool_call_id: str
    name: str
    content: str
    is_error: bool = False


@dataclass(frozen=True)
class UnifiedMessage:
    """A message in the conversation history.

    Messages are immutable once written. Content is either plain text or a
    bundle of tool-call blocks (assistant) / tool-result blocks (user).

    Attributes:
        role: The role of the message sender
        content: Text content of the message (optional for tool bundles)
        tool_calls: Tool calls requested by the oracle (assistant only)
        tool_results: Results for a previous round of tool calls (user only)
        chart: Optional visualization spec attached to an assistant reply
        created_at: Creation timestamp
    """
    role: MessageRole
    content: str | None = None
    tool_calls: tuple[ToolCall, ...] = ()
    tool_results: tuple[ToolResultBlock, ...] = ()
    chart: dict[str, Any] | None = None
    created_at: datetime = field(default_factory=utcnow)

    @property
    def is_tool_bundle(self) -> bool:
        """True when the message carries tool-call or tool-result blocks."""
        return bool(self.tool_calls or self.tool_results)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a dictionary representation."""
        result: dict[str, Any] = {
            "role": self.role.value,
            "created_at": self.created_at.isoformat(),
        }
        if self.content is not None:
            result["content"] = self.content
        if self.tool_calls:
            result["tool_calls"] = [
                {"id": tc.id, "name": tc.name, "arguments": tc.arguments}
                for tc in self.tool_calls
            ]
        if self.tool_results:
            result["tool_results"] = [
                {
                    "tool_call_id": tr.tool_call_id,
                    "name": tr.name,
                    "content": tr.content,
                    "is_error": tr.is_error,
                }
                for tr in self.tool_results
            ]
        if self.chart is not None:
            result["chart"] = self.chart
        return result


@dataclass
class UsageStats:
    """Token usage statistics."""
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


@dataclass
class OracleResponse:
    """Response from the reasoning oracle.

    Attributes:
        message: The assistant's response message
        finish_reason: Why the oracle stopped generating
        usage: Token usage statistics (optional)
    """
    message: UnifiedMessage
    finish_reason: FinishReason
    usage: UsageStats | None = None

    @property
    def tool_calls(self) -> tuple[ToolCall, ...]:
        return self.message.tool_calls

    @property
    def text(self) -> str:
        return self.message.content or ""


# ==================== tool & entity types ====================


class SideEffect(Enum):
    """Side-effect class of a tool."""
    READ = "read"
    WRITE = "write"


class EntityDomain(Enum):
    """Kinds of platform entities a write tool can target."""
    META_ADSET = "meta_adset"
    META_CAMPAIGN = "meta_campaign"
    TIKTOK_ADGROUP = "tiktok_adgroup"
    TIKTOK_CAMPAIGN = "tiktok_campaign"
    SUBSCRIPTION = "subscription"

    @property
    def label(self) -> str:
        """Human label used in descriptions and errors."""
        return _DOMAIN_LABELS[self]

    @property
    def platform(self) -> str:
        """Name of the platform collaborator that owns this domain."""
        return _DOMAIN_PLATFORMS[self]


_DOMAIN_LABELS = {
    EntityDomain.META_ADSET: "Meta adset",
    EntityDomain.META_CAMPAIGN: "Meta campaign",
    EntityDomain.TIKTOK_ADGROUP: "TikTok ad group",
    EntityDomain.TIKTOK_CAMPAIGN: "TikTok campaign",
    EntityDomain.SUBSCRIPTION: "Checkout Champ subscription",
}

_DOMAIN_PLATFORMS = {
    EntityDomain.META_ADSET: "meta",
    EntityDomain.META_CAMPAIGN: "meta",
    EntityDomain.TIKTOK_ADGROUP: "tiktok",
    EntityDomain.TIKTOK_CAMPAIGN: "tiktok",
    EntityDomain.SUBSCRIPTION: "checkout",
}


@dataclass(frozen=True)
class OwnedEntity:
    """An entity owned by a user, as listed by a platform collaborator.

    `metric` is the ranking metric used for disambiguation (recent spend for
    ad entities, recurring revenue for subscriptions).
    """
    id: str
    name: str
    metric: float = 0.0


@dataclass(frozen=True)
class EntityCandidate:
    """A ranked option offered when a name matches several entities."""
    option: int
    id: str
    name: str
    metric: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "option": self.option,
            "id": self.id,
            "name": self.name,
            "metric": self.metric,
        }


class ResolutionStatus(Enum):
    """Outcome of an entity resolution."""
    RESOLVED = "resolved"
    AMBIGUOUS = "ambiguous"
    NO_MATCH = "no_match"


@dataclass
class Resolution:
    """Result of resolving a free-text name or id to an owned entity."""
    status: ResolutionStatus
    entity: OwnedEntity | None = None
    candidates: list[EntityCandidate] = field(default_factory=list)

    @property
    def is_resolved(self) -> bool:
        return self.status == ResolutionStatus.RESOLVED


@dataclass
class ToolOutcome:
    """What a dispatched tool call produced.

    Attributes:
        result: Oracle-facing result (JSON-serializable)
        summary: Human-readable one-liner for status events
        chart: Optional visualization spec
        is_error: Whether the call failed
    """
    result: Any
    summary: str
    chart: dict[str, Any] | None = None
    is_error: bool = False


# ==================== confirmation types ====================


class ActionStatus(Enum):
    """Lifecycle of a pending action."""
    RESOLVING = "resolving"
    PENDING_CONFIRMATION = "pending_confirmation"
    EXECUTED = "executed"
    CANCELLED = "cancelled"
    EXPIRED = "expired"

    @property
    def is_terminal(self) -> bool:
        return self in (ActionStatus.EXECUTED, ActionStatus.CANCELLED, ActionStatus.EXPIRED)


@dataclass
class PendingAction:
    """A provisional write operation awaiting explicit confirmation.

    Attributes:
        id: Opaque action id handed to the oracle as `pending_id`
        user_id: Owner; only the owner may confirm or cancel
        tool_name: Write tool that will run on confirmation
        params: Validated tool input with the resolved entity id injected
        description: Human-readable effect naming the resolved entity
        created_at: Epoch seconds at creation
        expires_at: Epoch seconds after which the action can no longer run
        status: Current lifecycle state
    """
    id: str
    user_id: str
    tool_name: str
    params: dict[str, Any]
    description: str
    created_at: float
    expires_at: float
    status: ActionStatus = ActionStatus.PENDING_CONFIRMATION

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at

    def to_dict(self) -> dict[str, Any]:
        return {
            "pending_id": self.id,
            "action": self.tool_name,
            "description": self.description,
            "details": self.params,
            "status": self.status.value,
            "expires_at": self.expires_at,
        }


class Intent(Enum):
    """Classification of a bare reply to a pending confirmation."""
    CONFIRM = "confirm"
    CANCEL = "cancel"
    NEITHER = "neither"


# ==================== conversation types ====================


@dataclass
class Conversation:
    """A conversation owned by one user."""
    id: str
    user_id: str
    title: str
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


@dataclass(frozen=True)
class MemoryFact:
    """A durable fact remembered about a user."""
    user_id: str
    fact: str
    created_at: datetime = field(default_factory=utcnow)


# ==================== turn state types ====================


class TurnState(Enum):
    """State of the reasoning loop for one turn."""
    AWAIT_ORACLE = auto()
    DISPATCH_TOOLS = auto()
    STREAM_FINAL = auto()
    DONE = auto()
    STEP_LIMIT = auto()
    ABORTED = auto()
    FAILED = auto()


@dataclass
class TurnResult:
    """Result of one reasoning-loop turn.

    Attributes:
        state: Terminal state of the turn
        content: Final text (if the turn completed)
        charts: Chart specs produced during the turn
        rounds: Number of oracle invocations made
        error: Error message (if failed)
    """
    state: TurnState
    content: str | None = None
    charts: list[dict[str, Any]] = field(default_factory=list)
    rounds: int = 0
    error: str | None = None

    @property
    def is_completed(self) -> bool:
        """True when final text was produced (including a step-limit stop)."""
        return self.state in (TurnState.DONE, TurnState.STEP_LIMIT)

    @property
    def is_aborted(self) -> bool:
        return self.state == TurnState.ABORTED
