"""Base class for OpenAI-compatible API clients.

This class provides shared implementation for providers that use the
OpenAI-compatible chat completions format.
"""

import json
from abc import abstractmethod
from contextlib import contextmanager
from typing import Any

from ..exceptions import InvalidResponseError
from ..types import (
    FinishReason,
    MessageRole,
    OracleResponse,
    ToolCall,
    UnifiedMessage,
    UsageStats,
)
from .base import BaseLLMClient, with_retry


class OpenAICompatibleClient(BaseLLMClient):
    """Base class for clients using OpenAI-compatible API format.

    Subclasses must implement:
    - _create_client(): initialize the provider's async SDK client
    - _get_supported_config_keys(): return set of supported config parameters
    - _handle_api_errors(): context manager for exception mapping
    """

    def __init__(
        self,
        api_key: str | None,
        model: str,
        client_config: dict | None = None,
    ):
        """Initialize the client.

        Args:
            api_key: API key for the provider
            model: Model name to use
            client_config: Optional configuration parameters
        """
        super().__init__(client_config)
        self.model = model
        self.client = self._create_client(api_key)

    @abstractmethod
    def _create_client(self, api_key: str | None) -> Any:
        """Create the provider's async SDK client instance."""
        pass

    @abstractmethod
    def _get_supported_config_keys(self) -> set[str]:
        """Return the set of config keys supported by this provider."""

    @abstractmethod
    @contextmanager
    def _handle_api_errors(self):
        """Context manager for handling provider-specific errors.

        Should catch provider exceptions and re-raise as our exceptions:
        - AuthenticationError
        - RateLimitError
        - ProviderUnavailableError
        """

    # ==================== shared implementations ====================

    @with_retry()
    async def generate(
        self,
        system: str,
        messages: list[UnifiedMessage],
        tools: list[dict[str, Any]] | None = None,
    ) -> OracleResponse:
        """Generate a response from the provider.

        Raises:
            AuthenticationError: If API key is invalid
            RateLimitError: If rate limit is exceeded
            ProviderUnavailableError: If API is unavailable
        """
        converted_messages = [{"role": "system", "content": system}] if system else []
        converted_messages += self._convert_messages(messages)

        api_args: dict[str, Any] = {
            "model": self.model,
            "messages": converted_messages,
        }
        if tools:
            api_args["tools"] = self._convert_tools(tools)
            api_args["tool_choice"] = "auto"

        # apply config overrides for supported keys
        supported_keys = self._get_supported_config_keys()
        for key, value in self.client_config.items():
            if key in supported_keys:
                api_args[key] = value

        with self._handle_api_errors():
            response = await self.client.chat.completions.create(**api_args)
        return self._parse_response(response)

    @with_retry()
    async def complete(self, prompt: str, max_tokens: int = 300) -> str:
        with self._handle_api_errors():
            response = await self.client.chat.completions.create(
                model=self.model,
                max_tokens=max_tokens,
                messages=[{"role": "user", "content": prompt}],
            )
        return response.choices[0].message.content or ""

    def _convert_messages(self, messages: list[UnifiedMessage]) -> list[dict[str, Any]]:
        """Convert unified messages to OpenAI-compatible format.

        A tool-result bundle becomes one "tool" message per result.
        """
        converted: list[dict[str, Any]] = []
        for msg in messages:
            if msg.role == MessageRole.USER and msg.tool_results:
                converted.extend(
                    {"role": "tool", "tool_call_id": tr.tool_call_id, "content": tr.content}
                    for tr in msg.tool_results
                )
            elif msg.role == MessageRole.USER:
                converted.append({"role": "user", "content": msg.content or ""})
            else:
                converted.append(self._convert_assistant_message(msg))
        return converted

    def _convert_assistant_message(self, message: UnifiedMessage) -> dict[str, Any]:
        """Convert assistant message handling tool calls."""
        entry: dict[str, Any] = {"role": "assistant", "content": message.content}
        if message.tool_calls:
            entry["tool_calls"] = [
                {
                    "id": tc.id,
                    "type": "function",
                    "function": {
                        "name": tc.name,
                        "arguments": json.dumps(tc.arguments),
                    },
                }
                for tc in message.tool_calls
            ]
        return entry

    def _map_finish_reason(self, reason: str | None) -> FinishReason:
        """Map OpenAI-compatible finish reason to unified FinishReason."""
        if not reason:
            return FinishReason.STOP
        mapping = {
            "stop": FinishReason.STOP,
            "tool_calls": FinishReason.TOOL_USE,
            "length": FinishReason.LENGTH,
        }
        return mapping.get(reason, FinishReason.STOP)

    def _convert_tools(self, tools: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Tool schemas are already in OpenAI function format."""
        return list(tools)

    def _parse_response(self, response: Any) -> OracleResponse:
        """Parse OpenAI-compatible response into unified format."""
        try:
            choice = response.choices[0]
            message = choice.message

            tool_calls = tuple(
                ToolCall(
                    id=tc.id,
                    name=tc.function.name,
                    arguments=json.loads(tc.function.arguments or "{}"),
                )
                for tc in (message.tool_calls or [])
            )

            usage = None
            if response.usage:
                usage = UsageStats(
                    prompt_tokens=response.usage.prompt_tokens,
                    completion_tokens=response.usage.completion_tokens,
                    total_tokens=response.usage.total_tokens,
                )

            return OracleResponse(
                message=UnifiedMessage(
                    role=MessageRole.ASSISTANT,
                    content=message.content,
                    tool_calls=tool_calls,
                ),
                finish_reason=self._map_finish_reason(choice.finish_reason),
                usage=usage,
            )
        except Exception as e:
            raise InvalidResponseError(
                f"Failed to parse {self.__class__.__name__} response: {e}"
            ) from e
