"""Tool dispatch for the reasoning loop.

This module turns one oracle tool call into a ToolOutcome: look up the tool,
validate its input, and run it. Every failure becomes an error outcome for
that call only, so sibling calls in the same round keep going.
"""

import json
from typing import Any

from ..exceptions import AgentError
from ..logging import get_logger
from ..tools.base import ToolContext
from ..tools.registry import ToolCatalogue
from ..types import ToolCall, ToolOutcome, ToolResultBlock
from .gateway import ConfirmationGateway

logger = get_logger(__name__)


def serialize_result(result: Any) -> str:
    """Render a tool result as the text the oracle receives."""
    if isinstance(result, str):
        return result
    return json.dumps(result, default=str)


class ToolDispatcher:
    """Dispatches tool calls against the closed catalogue.

    Write tools reach the platforms only through the gateway; the
    dispatcher itself never calls a platform.
    """

    def __init__(self, catalogue: ToolCatalogue, gateway: ConfirmationGateway):
        self.catalogue = catalogue
        self.gateway = gateway

    def tool_schemas(self) -> list[dict[str, Any]]:
        return self.catalogue.schemas()

    async def dispatch(self, call: ToolCall, user_id: str) -> ToolOutcome:
        """Run one tool call.

        Args:
            call: The oracle's tool call.
            user_id: The user on whose behalf the call runs.

        Returns:
            The outcome; is_error is set for unknown tools, invalid input,
            unknown pending actions and handler failures.
        """
        context = ToolContext(user_id=user_id, gateway=self.gateway)
        try:
            tool = self.catalogue.get(call.name)
            params = tool.validate(call.arguments)
            logger.debug(f"Dispatching {call.name} ({call.id}) with {call.arguments}")
            return await tool.execute(params, context)
        except AgentError as e:
            logger.warning(f"Tool call {call.name} ({call.id}) failed: {e}")
            return ToolOutcome(result={"error": str(e)}, summary=str(e), is_error=True)
        except Exception as e:
            logger.exception(f"Unexpected error in tool {call.name} ({call.id})")
            return ToolOutcome(
                result={"error": f"Tool execution failed: {e}"},
                summary=f"Tool execution failed: {e}",
                is_error=True,
            )

    @staticmethod
    def to_result_block(call: ToolCall, outcome: ToolOutcome) -> ToolResultBlock:
        """Tag an outcome with the correlation id of the call that produced it."""
        return ToolResultBlock(
            tool_call_id=call.id,
            name=call.name,
            content=serialize_result(outcome.result),
            is_error=outcome.is_error,
        )
