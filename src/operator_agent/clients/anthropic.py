"""Anthropic client implementation.

This client handles communication with the Anthropic API (Claude models)
and normalizes responses to the unified format.

Anthropic has unique requirements:
- System prompt is passed separately, not in messages
- Tool calls use content blocks with type "tool_use"
- Tool results go in user messages with type "tool_result"
"""

import os
from contextlib import contextmanager
from typing import Any

from anthropic import APIConnectionError, AsyncAnthropic, InternalServerError
from anthropic import AuthenticationError as AnthropicAuthError
from anthropic import RateLimitError as AnthropicRateLimitError

from ..exceptions import (
    AuthenticationError,
    InvalidResponseError,
    ProviderUnavailableError,
    RateLimitError,
)
from ..types import (
    FinishReason,
    MessageRole,
    OracleResponse,
    ToolCall,
    UnifiedMessage,
    UsageStats,
)
from .base import BaseLLMClient, with_retry

# supported configuration keys for anthropic
SUPPORTED_CONFIG_KEYS = {
    "temperature",
    "top_p",
    "top_k",
    "max_tokens",
    "stop_sequences",
    "tool_choice",
}


class AnthropicClient(BaseLLMClient):
    """Async Anthropic API client with unified response handling.

    Supports:
    - Generation parameters: temperature, top_p, top_k, stop_sequences
    - Tool choice configuration: auto, any, none, or specific tool
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "claude-sonnet-4-5-20250929",
        client_config: dict | None = None,
    ):
        """Initialize the Anthropic client.

        Args:
            api_key: Anthropic API key. Defaults to ANTHROPIC_API_KEY env var.
            model: Model to use. Defaults to Claude Sonnet 4.5.
            client_config: Optional configuration parameters:
                - temperature: float (0.0-1.0, default 1.0)
                - top_p: float (nucleus sampling)
                - top_k: int (top-k sampling)
                - max_tokens: int (default 4096)
                - stop_sequences: list[str]
                - tool_choice: dict (e.g., {"type": "auto"}, {"type": "tool", "name": "..."})
        """
        super().__init__(client_config)
        self.client = AsyncAnthropic(api_key=api_key or os.environ.get("ANTHROPIC_API_KEY"))
        self.model = model
        self._validate_config()

    def _validate_config(self) -> None:
        """Validate the client configuration."""
        unsupported = set(self.client_config.keys()) - SUPPORTED_CONFIG_KEYS
        if unsupported:
            raise ValueError(f"Unsupported config keys for Anthropic: {unsupported}")

    @contextmanager
    def _handle_api_errors(self):
        """Handle Anthropic-specific errors."""
        try:
            yield
        except AnthropicAuthError as e:
            raise AuthenticationError(f"Anthropic authentication failed: {e}") from e
        except AnthropicRateLimitError as e:
            retry_after = e.response.headers.get("retry-after") if e.response is not None else None
            raise RateLimitError(
                "Anthropic rate limit exceeded",
                retry_after=float(retry_after) if retry_after else None,
            ) from e
        except (APIConnectionError, InternalServerError) as e:
            raise ProviderUnavailableError(f"Anthropic API unavailable: {e}") from e

    @with_retry()
    async def generate(
        self,
        system: str,
        messages: list[UnifiedMessage],
        tools: list[dict[str, Any]] | None = None,
    ) -> OracleResponse:
        """Generate a response from Anthropic.

        Raises:
            AuthenticationError: If API key is invalid
            RateLimitError: If rate limit is exceeded
            ProviderUnavailableError: If API is unavailable
        """
        converted_messages = self._convert_messages(messages)
        converted_tools = self._convert_tools(tools) if tools else None
        kwargs = self._build_api_kwargs(system, converted_messages, converted_tools)

        with self._handle_api_errors():
            response = await self.client.messages.create(**kwargs)
        return self._parse_response(response)

    @with_retry()
    async def complete(self, prompt: str, max_tokens: int = 300) -> str:
        with self._handle_api_errors():
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=max_tokens,
                messages=[{"role": "user", "content": prompt}],
            )
        return "".join(b.text for b in response.content if b.type == "text")

    def _build_api_kwargs(
        self,
        system_prompt: str | None,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None,
    ) -> dict[str, Any]:
        """Build the API kwargs from configuration."""
        config = self.client_config

        kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "max_tokens": config.get("max_tokens", 4096),
        }

        if system_prompt:
            kwargs["system"] = system_prompt
        if tools:
            kwargs["tools"] = tools

        for key in ("temperature", "top_p", "top_k", "stop_sequences"):
            if key in config:
                kwargs[key] = config[key]

        # tool choice (only if tools provided)
        if tools and "tool_choice" in config:
            kwargs["tool_choice"] = config["tool_choice"]

        return kwargs

    def _convert_messages(self, messages: list[UnifiedMessage]) -> list[dict[str, Any]]:
        """Convert unified messages to Anthropic format."""
        converted = []

        for msg in messages:
            if msg.role == MessageRole.USER:
                if msg.tool_results:
                    converted.append({
                        "role": "user",
                        "content": [
                            {
                                "type": "tool_result",
                                "tool_use_id": tr.tool_call_id,
                                "content": tr.content,
                                "is_error": tr.is_error,
                            }
                            for tr in msg.tool_results
                        ],
                    })
                else:
                    converted.append({"role": "user", "content": msg.content or ""})

            elif msg.role == MessageRole.ASSISTANT:
                content: list[dict[str, Any]] = []
                if msg.content:
                    content.append({"type": "text", "text": msg.content})
                for tc in msg.tool_calls:
                    content.append({
                        "type": "tool_use",
                        "id": tc.id,
                        "name": tc.name,
                        "input": tc.arguments,
                    })
                if content:
                    converted.append({"role": "assistant", "content": content})

        return converted

    def _convert_tools(self, tools: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Convert tools to Anthropic format with input_schema."""
        return [
            {
                "name": tool["function"]["name"],
                "description": tool["function"]["description"],
                "input_schema": tool["function"]["parameters"],
            }
            for tool in tools
        ]

    def _parse_response(self, response: Any) -> OracleResponse:
        """Parse Anthropic response into unified format."""
        try:
            tool_calls = []
            text_content = ""

            for block in response.content:
                if block.type == "text":
                    text_content += block.text
                elif block.type == "tool_use":
                    tool_calls.append(ToolCall(
                        id=block.id,
                        name=block.name,
                        arguments=block.input,
                    ))

            finish_map = {
                "end_turn": FinishReason.STOP,
                "tool_use": FinishReason.TOOL_USE,
                "max_tokens": FinishReason.LENGTH,
            }

            return OracleResponse(
                message=UnifiedMessage(
                    role=MessageRole.ASSISTANT,
                    content=text_content if text_content else None,
                    tool_calls=tuple(tool_calls),
                ),
                finish_reason=finish_map.get(response.stop_reason, FinishReason.STOP),
                usage=UsageStats(
                    prompt_tokens=response.usage.input_tokens,
                    completion_tokens=response.usage.output_tokens,
                    total_tokens=response.usage.input_tokens + response.usage.output_tokens,
                ),
            )
        except Exception as e:
            raise InvalidResponseError(f"Failed to parse Anthropic response: {e}") from e
