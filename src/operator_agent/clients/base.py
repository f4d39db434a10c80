"""Base class for oracle clients.

All oracle provider clients inherit from BaseLLMClient and implement
the normalization methods to convert between provider-specific formats
and the unified types.
"""

import asyncio
import functools
import random
from abc import ABC, abstractmethod
from collections.abc import Awaitable
from typing import Any, Callable, TypeVar

from ..exceptions import ProviderUnavailableError, RateLimitError
from ..logging import get_logger
from ..types import OracleResponse, UnifiedMessage

logger = get_logger(__name__)

T = TypeVar("T")


def with_retry(
    max_retries: int = 3,
    initial_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    jitter: bool = True,
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """Decorator for retrying async API calls with exponential backoff.

    Retries on RateLimitError and ProviderUnavailableError. Other exceptions
    are raised immediately. A RateLimitError carrying retry_after waits at
    least that long.

    Args:
        max_retries: Maximum number of retry attempts (default: 3)
        initial_delay: Initial delay in seconds between retries (default: 1.0)
        max_delay: Maximum delay in seconds (default: 60.0)
        exponential_base: Base for exponential backoff (default: 2.0)
        jitter: Whether to add random jitter to delay (default: True)

    Returns:
        Decorated coroutine function with retry logic.

    Example:
        @with_retry(max_retries=3, initial_delay=1.0)
        async def make_api_call():
            ...
    """
    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            delay = initial_delay

            for attempt in range(max_retries + 1):
                try:
                    return await func(*args, **kwargs)
                except (RateLimitError, ProviderUnavailableError) as e:
                    if attempt == max_retries:
                        logger.warning(
                            f"max retries ({max_retries}) exceeded for {func.__name__}: {e}"
                        )
                        raise

                    # calculate delay with optional jitter
                    actual_delay = min(delay, max_delay)
                    if jitter:
                        actual_delay *= (0.5 + random.random())
                    retry_after = getattr(e, "retry_after", None)
                    if retry_after:
                        actual_delay = max(actual_delay, retry_after)

                    logger.info(
                        f"retry {attempt + 1}/{max_retries} for {func.__name__} "
                        f"after {actual_delay:.1f}s: {e}"
                    )
                    await asyncio.sleep(actual_delay)
                    delay *= exponential_base

            raise RuntimeError("Unexpected retry loop exit")

        return wrapper
    return decorator


class BaseLLMClient(ABC):
    """Abstract base class for all oracle clients.

    Each client is responsible for:
    1. Converting UnifiedMessage list to provider format
    2. Converting tool schemas to provider format
    3. Making API calls
    4. Converting responses back to OracleResponse

    The loop only interacts with unified types; all provider-specific
    handling is encapsulated within each client implementation. Provider
    errors surface as OracleUnavailable subclasses.
    """

    def __init__(self, client_config: dict | None = None):
        """Initialize the client.
        Args:
            client_config: Optional dictionary of configuration parameters
                           (e.g. temperature, max_tokens, etc.)
        """
        self.client_config = client_config or {}

    @abstractmethod
    async def generate(
        self,
        system: str,
        messages: list[UnifiedMessage],
        tools: list[dict[str, Any]] | None = None,
    ) -> OracleResponse:
        """Generate a response from the oracle.

        Args:
            system: System context
            messages: Ordered conversation history in unified format
            tools: Tool schemas in function-calling format (see BaseTool.to_schema)

        Returns:
            OracleResponse carrying tool calls or final text
        """

    @abstractmethod
    async def complete(self, prompt: str, max_tokens: int = 300) -> str:
        """Run a lightweight single-prompt completion and return its text."""

    @abstractmethod
    def _convert_messages(self, messages: list[UnifiedMessage]) -> Any:
        """Convert unified messages to provider-specific format.

        Each provider has different message formats:
        - OpenAI: list of dicts with role/content/tool_calls, one "tool" message per result
        - Anthropic: content blocks for tool_use and tool_result

        Args:
            messages: List of UnifiedMessage objects

        Returns:
            Provider-specific message format
        """

    @abstractmethod
    def _convert_tools(self, tools: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Convert tool schemas to provider-specific format.

        Args:
            tools: Tool schemas in {type: "function", function: {...}} form

        Returns:
            Provider-specific tool definitions
        """

    @abstractmethod
    def _parse_response(self, response: Any) -> OracleResponse:
        """Parse provider response into unified format.

        Args:
            response: Raw response from the provider API

        Returns:
            OracleResponse with normalized message and metadata
        """
