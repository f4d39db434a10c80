"""Reasoning loop driver.

One turn runs the oracle, dispatches whatever tools it asks for, feeds the
results back and repeats until the oracle answers with plain text:

    AWAIT_ORACLE -> DISPATCH_TOOLS -> AWAIT_ORACLE ... -> STREAM_FINAL -> DONE

A turn can also end ABORTED (client gone), FAILED (oracle error) or
STEP_LIMIT (too many tool rounds).
"""

import asyncio

from ..clients.base import BaseLLMClient
from ..exceptions import OracleUnavailable
from ..logging import get_logger
from ..streaming import StreamChannel, ToolStatus
from ..types import MessageRole, TurnResult, TurnState, UnifiedMessage
from .dispatcher import ToolDispatcher

logger = get_logger(__name__)

DEFAULT_MAX_TOOL_ROUNDS = 10
DEFAULT_CHUNK_SIZE = 20

STEP_LIMIT_MESSAGE = (
    "I've hit the step limit for this request before finishing. "
    "Here's where things stand; ask me to continue if you need more."
)


class ReasoningLoop:
    """Drives the oracle through tool-call round trips for one turn.

    Args:
        client: The oracle client.
        dispatcher: Tool dispatcher (catalogue plus confirmation gateway).
        max_tool_rounds: Oracle invocations allowed per turn.
        chunk_size: Characters per streamed text event.
    """

    def __init__(
        self,
        client: BaseLLMClient,
        dispatcher: ToolDispatcher,
        max_tool_rounds: int = DEFAULT_MAX_TOOL_ROUNDS,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        self.client = client
        self.dispatcher = dispatcher
        self.max_tool_rounds = max_tool_rounds
        self.chunk_size = chunk_size

    async def run_turn(
        self,
        system: str,
        history: list[UnifiedMessage],
        user_id: str,
        channel: StreamChannel,
    ) -> TurnResult:
        """Run one turn to a terminal state.

        Args:
            system: System context for the oracle.
            history: Ordered conversation history ending with the user message.
            user_id: The user on whose behalf tools run.
            channel: Channel for tool_status, chart and text events.

        Returns:
            TurnResult; the caller emits the terminal done/error event.
        """
        messages = list(history)
        charts: list[dict] = []
        rounds = 0
        tools = self.dispatcher.tool_schemas()

        while True:
            # AWAIT_ORACLE
            if channel.is_cancelled:
                logger.info(f"Turn aborted before oracle call {rounds + 1}")
                return TurnResult(TurnState.ABORTED, charts=charts, rounds=rounds)

            try:
                response = await self.client.generate(system, messages, tools)
            except OracleUnavailable as e:
                logger.error(f"Oracle unavailable: {e}")
                return TurnResult(TurnState.FAILED, charts=charts, rounds=rounds, error=str(e))
            except Exception as e:
                logger.exception("Oracle call failed")
                return TurnResult(
                    TurnState.FAILED, charts=charts, rounds=rounds,
                    error=f"Oracle call failed: {e}",
                )
            rounds += 1

            if not response.tool_calls:
                return await self._stream_final(response.text, charts, rounds, channel, TurnState.DONE)

            # DISPATCH_TOOLS: request order, one result bundle per round
            messages.append(response.message)
            blocks = []
            for call in response.tool_calls:
                channel.tool_status(call.name, ToolStatus.RUNNING)
                outcome = await self.dispatcher.dispatch(call, user_id)
                if outcome.chart is not None:
                    charts.append(outcome.chart)
                    channel.chart(outcome.chart)
                status = ToolStatus.ERROR if outcome.is_error else ToolStatus.DONE
                channel.tool_status(call.name, status, outcome.summary)
                blocks.append(self.dispatcher.to_result_block(call, outcome))
            messages.append(UnifiedMessage(role=MessageRole.USER, tool_results=tuple(blocks)))

            if rounds >= self.max_tool_rounds:
                logger.warning(f"Step limit of {self.max_tool_rounds} tool rounds reached")
                return await self._stream_final(
                    STEP_LIMIT_MESSAGE, charts, rounds, channel, TurnState.STEP_LIMIT
                )

    async def stream_text(self, text: str, channel: StreamChannel) -> bool:
        """Emit text in chunks. Returns False if the channel was cancelled midway."""
        for i in range(0, len(text), self.chunk_size):
            if channel.is_cancelled:
                return False
            channel.text(text[i:i + self.chunk_size])
            # let the consumer flush between chunks
            await asyncio.sleep(0)
        return True

    async def _stream_final(
        self,
        text: str,
        charts: list[dict],
        rounds: int,
        channel: StreamChannel,
        state: TurnState,
    ) -> TurnResult:
        # STREAM_FINAL
        if not await self.stream_text(text, channel):
            logger.info("Turn aborted while streaming final text")
            return TurnResult(TurnState.ABORTED, charts=charts, rounds=rounds)
        return TurnResult(state, content=text, charts=charts, rounds=rounds)
