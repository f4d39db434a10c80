"""Write tools for Meta and TikTok ad entities."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..platforms.base import BudgetChange, PlatformRegistry
from ..types import EntityDomain
from .base import WriteTool


class _Target(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    name: str | None = Field(
        default=None,
        description="Entity name as the user said it; used when the ID is not known",
    )


class MetaAdsetTarget(_Target):
    adset_id: str | None = Field(default=None, description="Meta adset ID")


class MetaCampaignTarget(_Target):
    campaign_id: str | None = Field(default=None, description="Meta campaign ID")


class TikTokAdgroupTarget(_Target):
    adgroup_id: str | None = Field(default=None, description="TikTok ad group ID")


class TikTokCampaignTarget(_Target):
    campaign_id: str | None = Field(default=None, description="TikTok campaign ID")


class _BudgetFields(BaseModel):
    daily_budget: float | None = Field(default=None, gt=0, description="New absolute daily budget in dollars")
    increase_percent: float | None = Field(default=None, gt=0, description="Increase the daily budget by this percent")
    decrease_percent: float | None = Field(default=None, gt=0, lt=100, description="Decrease the daily budget by this percent")

    @model_validator(mode="after")
    def _exactly_one_change(self):
        given = [
            f for f in ("daily_budget", "increase_percent", "decrease_percent")
            if getattr(self, f) is not None
        ]
        if len(given) != 1:
            raise ValueError(
                "provide exactly one of daily_budget, increase_percent, decrease_percent"
            )
        return self


class MetaBudgetInput(MetaAdsetTarget, _BudgetFields):
    pass


class TikTokBudgetInput(TikTokAdgroupTarget, _BudgetFields):
    pass


def _id_field(model: type[BaseModel]) -> str:
    return next(f for f in model.model_fields if f.endswith("_id"))


class PauseEntityTool(WriteTool):
    """Pause an ad set, campaign or ad group."""

    def __init__(self, tool_name: str, domain: EntityDomain, input_model: type[BaseModel]):
        super().__init__(tool_name, domain)
        self.input_model = input_model
        self.ID_FIELD = _id_field(input_model)

    @property
    def description(self) -> str:
        return (
            f"Pause a {self.domain.label}. Pass the {self.ID_FIELD} if known, otherwise "
            f"the name. Returns a pending_id; nothing happens until the user confirms."
        )

    def describe(self, params: dict[str, Any]) -> str:
        return f"Pause {self.entity_tag(params)}"

    async def apply(self, user_id: str, params: dict[str, Any], platforms: PlatformRegistry) -> dict[str, Any]:
        client = platforms.for_domain(self.domain)
        return await client.pause(user_id, self.domain, params[self.ID_FIELD])


class EnableEntityTool(PauseEntityTool):
    """Re-enable a paused ad set, campaign or ad group."""

    @property
    def description(self) -> str:
        return (
            f"Enable a paused {self.domain.label}. Pass the {self.ID_FIELD} if known, "
            f"otherwise the name. Returns a pending_id; nothing happens until the user confirms."
        )

    def describe(self, params: dict[str, Any]) -> str:
        return f"Enable {self.entity_tag(params)}"

    async def apply(self, user_id: str, params: dict[str, Any], platforms: PlatformRegistry) -> dict[str, Any]:
        client = platforms.for_domain(self.domain)
        return await client.enable(user_id, self.domain, params[self.ID_FIELD])


class AdjustBudgetTool(PauseEntityTool):
    """Change the daily budget of an ad set or ad group."""

    @property
    def description(self) -> str:
        return (
            f"Change the daily budget of a {self.domain.label}. Give exactly one of "
            f"daily_budget (dollars), increase_percent or decrease_percent. "
            f"Returns a pending_id; nothing happens until the user confirms."
        )

    def describe(self, params: dict[str, Any]) -> str:
        tag = self.entity_tag(params)
        if params.get("increase_percent") is not None:
            return f"Increase {tag} budget by {params['increase_percent']:g}%"
        if params.get("decrease_percent") is not None:
            return f"Decrease {tag} budget by {params['decrease_percent']:g}%"
        return f"Set {tag} daily budget to ${params['daily_budget']:,.2f}"

    async def apply(self, user_id: str, params: dict[str, Any], platforms: PlatformRegistry) -> dict[str, Any]:
        change = BudgetChange(
            daily_budget=params.get("daily_budget"),
            increase_percent=params.get("increase_percent"),
            decrease_percent=params.get("decrease_percent"),
        )
        client = platforms.for_domain(self.domain)
        return await client.adjust_budget(user_id, self.domain, params[self.ID_FIELD], change)


def ad_tools() -> list[WriteTool]:
    """Build the ad-platform write tools."""
    return [
        PauseEntityTool("pause_meta_adset", EntityDomain.META_ADSET, MetaAdsetTarget),
        EnableEntityTool("enable_meta_adset", EntityDomain.META_ADSET, MetaAdsetTarget),
        AdjustBudgetTool("adjust_meta_budget", EntityDomain.META_ADSET, MetaBudgetInput),
        PauseEntityTool("pause_meta_campaign", EntityDomain.META_CAMPAIGN, MetaCampaignTarget),
        EnableEntityTool("enable_meta_campaign", EntityDomain.META_CAMPAIGN, MetaCampaignTarget),
        PauseEntityTool("pause_tiktok_adgroup", EntityDomain.TIKTOK_ADGROUP, TikTokAdgroupTarget),
        EnableEntityTool("enable_tiktok_adgroup", EntityDomain.TIKTOK_ADGROUP, TikTokAdgroupTarget),
        AdjustBudgetTool("adjust_tiktok_budget", EntityDomain.TIKTOK_ADGROUP, TikTokBudgetInput),
        PauseEntityTool("pause_tiktok_campaign", EntityDomain.TIKTOK_CAMPAIGN, TikTokCampaignTarget),
        EnableEntityTool("enable_tiktok_campaign", EntityDomain.TIKTOK_CAMPAIGN, TikTokCampaignTarget),
    ]
