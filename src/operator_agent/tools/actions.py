"""Tools the oracle uses to settle pending write actions."""

from pydantic import BaseModel, Field

from ..types import ToolOutcome
from .base import BaseTool, ToolContext


class PendingActionInput(BaseModel):
    pending_id: str = Field(description="The pending_id returned by the write action")


class ConfirmActionTool(BaseTool):
    input_model = PendingActionInput

    @property
    def name(self) -> str:
        return "confirm_action"

    @property
    def description(self) -> str:
        return (
            "Execute a pending write action AFTER the user explicitly confirms. Write "
            "actions always return a pending_id instead of executing. Present the "
            "description to the user, then call this ONLY when they say 'confirm', "
            "'yes', 'go ahead' or similar."
        )

    async def execute(self, params: PendingActionInput, context: ToolContext) -> ToolOutcome:
        return await context.gateway.confirm_action(context.user_id, params.pending_id)


class CancelActionTool(BaseTool):
    input_model = PendingActionInput

    @property
    def name(self) -> str:
        return "cancel_action"

    @property
    def description(self) -> str:
        return (
            "Cancel a pending write action when the user declines ('no', 'cancel', "
            "'nevermind' or similar)."
        )

    async def execute(self, params: PendingActionInput, context: ToolContext) -> ToolOutcome:
        return await context.gateway.cancel_action(context.user_id, params.pending_id)
