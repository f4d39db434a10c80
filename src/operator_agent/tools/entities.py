from pydantic import BaseModel, Field

from ..types import EntityDomain, ToolOutcome
from .base import BaseTool, ToolContext


class ListEntitiesInput(BaseModel):
    domain: EntityDomain = Field(description="Which kind of entity to list")
    limit: int = Field(default=10, ge=1, le=50, description="Maximum entities to return")


class ListEntitiesTool(BaseTool):
    """List the user's entities of one kind, highest ranking metric first."""

    input_model = ListEntitiesInput

    @property
    def name(self) -> str:
        return "list_entities"

    @property
    def description(self) -> str:
        return (
            "List the user's ad sets, campaigns, ad groups or subscriptions, ranked "
            "by recent spend (revenue for subscriptions). Use it to find IDs before "
            "calling a write tool."
        )

    async def execute(self, params: ListEntitiesInput, context: ToolContext) -> ToolOutcome:
        ranked = await context.gateway.resolver.available(
            context.user_id, params.domain, limit=params.limit
        )
        return ToolOutcome(
            result=[c.to_dict() for c in ranked],
            summary=f"{len(ranked)} {params.domain.label}s found",
        )
