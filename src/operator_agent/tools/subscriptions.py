"""Write tools for Checkout Champ subscriptions."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..platforms.base import PlatformRegistry
from ..types import EntityDomain
from .base import WriteTool

DEFAULT_CANCEL_REASON = "Cancelled via operator"


class SubscriptionTarget(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    purchase_id: str | None = Field(default=None, description="Checkout Champ purchase ID")
    name: str | None = Field(
        default=None,
        description="Subscription name or customer as the user said it; used when the ID is not known",
    )


class CancelSubscriptionInput(SubscriptionTarget):
    reason: str | None = Field(default=None, description="Cancellation reason")


class PauseSubscriptionTool(WriteTool):
    input_model = SubscriptionTarget
    ID_FIELD = "purchase_id"

    def __init__(self):
        super().__init__("pause_cc_subscription", EntityDomain.SUBSCRIPTION)

    @property
    def description(self) -> str:
        return (
            "Pause a Checkout Champ subscription. Returns a pending_id; nothing "
            "happens until the user confirms."
        )

    def describe(self, params: dict[str, Any]) -> str:
        return f"Pause {self.entity_tag(params)}"

    async def apply(self, user_id: str, params: dict[str, Any], platforms: PlatformRegistry) -> dict[str, Any]:
        client = platforms.for_domain(self.domain)
        return await client.pause(user_id, self.domain, params[self.ID_FIELD])


class CancelSubscriptionTool(WriteTool):
    input_model = CancelSubscriptionInput
    ID_FIELD = "purchase_id"

    def __init__(self):
        super().__init__("cancel_cc_subscription", EntityDomain.SUBSCRIPTION)

    @property
    def description(self) -> str:
        return (
            "Permanently cancel a Checkout Champ subscription. Returns a pending_id; "
            "nothing happens until the user confirms."
        )

    def describe(self, params: dict[str, Any]) -> str:
        reason = params.get("reason")
        suffix = f" (reason: {reason})" if reason else ""
        return f"Cancel {self.entity_tag(params)}{suffix}"

    async def apply(self, user_id: str, params: dict[str, Any], platforms: PlatformRegistry) -> dict[str, Any]:
        client = platforms.for_domain(self.domain)
        reason = params.get("reason") or DEFAULT_CANCEL_REASON
        return await client.cancel_subscription(user_id, params[self.ID_FIELD], reason)
