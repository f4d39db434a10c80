"""Custom exception hierarchy for the operator agent.

This module defines all custom exceptions used throughout the agent,
organized into logical categories: request errors, resolution and
confirmation errors, oracle client errors, and tool errors.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .types import EntityCandidate


class AgentError(Exception):
    """Base exception for all agent errors."""


# =============================================================================
# Request Errors - Rejected before any side effect
# =============================================================================

class ValidationError(AgentError):
    """Malformed request, e.g. an empty message."""


class ConversationNotFound(AgentError):
    """Conversation does not exist or belongs to another user."""

    def __init__(self, conversation_id: str):
        self.conversation_id = conversation_id
        super().__init__(f"Conversation not found: {conversation_id}")


# =============================================================================
# Resolution & Confirmation - Recoverable, the turn continues
# =============================================================================

class ResolutionAmbiguous(AgentError):
    """A name matched more than one owned entity.

    Attributes:
        name: The name that was looked up
        candidates: Ranked candidates the user can choose from
    """

    def __init__(self, name: str, candidates: list["EntityCandidate"]):
        self.name = name
        self.candidates = candidates
        super().__init__(f"'{name}' matches {len(candidates)} entities")


class ActionNotFound(AgentError):
    """Confirm/cancel on an unknown, already-terminal, expired or foreign action."""

    def __init__(self, pending_id: str):
        self.pending_id = pending_id
        super().__init__(
            f"No pending action found for '{pending_id}'. "
            "It may have expired or already been executed or cancelled."
        )


# =============================================================================
# Client Errors - Issues with the reasoning oracle, fatal to the current turn
# =============================================================================

class ClientError(AgentError):
    """Base class for oracle client errors."""


class OracleUnavailable(ClientError):
    """The reasoning oracle could not produce a response."""


class AuthenticationError(OracleUnavailable):
    """API key is invalid or missing."""


class RateLimitError(OracleUnavailable):
    """Rate limit exceeded."""

    def __init__(self, message: str = "Rate limit exceeded", retry_after: float | None = None):
        self.retry_after = retry_after
        if retry_after:
            message = f"{message}. Retry after: {retry_after}s"
        super().__init__(message)


class ProviderUnavailableError(OracleUnavailable):
    """Provider API is temporarily unavailable."""


class InvalidResponseError(OracleUnavailable):
    """Response from provider could not be parsed."""


# =============================================================================
# Tool Errors - Caught per tool call and reported as that call's result
# =============================================================================

class ToolError(AgentError):
    """Base class for tool execution errors."""


class ToolNotFoundError(ToolError):
    """Requested tool does not exist."""

    def __init__(self, tool_name: str):
        self.tool_name = tool_name
        super().__init__(f"Tool not found: {tool_name}")


class ToolValidationError(ToolError):
    """Tool arguments failed validation."""

    def __init__(self, tool_name: str, errors: list[str]):
        self.tool_name = tool_name
        self.errors = errors
        super().__init__(f"Tool '{tool_name}' validation failed: {', '.join(errors)}")


class ToolExecutionFailure(ToolError):
    """A tool handler (remote platform call) failed."""

    def __init__(self, tool_name: str, cause: Exception | str):
        self.tool_name = tool_name
        self.cause = cause
        super().__init__(f"Tool '{tool_name}' execution failed: {cause}")


# =============================================================================
# Platform Errors - Raised by platform collaborators
# =============================================================================

class PlatformError(AgentError):
    """A platform API call failed."""

    def __init__(self, platform: str, message: str):
        self.platform = platform
        super().__init__(f"{platform}: {message}")
