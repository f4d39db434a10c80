"""Tool implementations for the operator agent.

Read tools inherit from BaseTool and return results directly. Write tools
inherit from WriteTool and are staged through the confirmation gateway.
"""

from .actions import CancelActionTool, ConfirmActionTool
from .ads import AdjustBudgetTool, EnableEntityTool, PauseEntityTool, ad_tools
from .base import BaseTool, ToolContext, WriteTool
from .charts import MAX_CHART_POINTS, RenderChartTool
from .entities import ListEntitiesTool
from .registry import ToolCatalogue, build_catalogue
from .subscriptions import CancelSubscriptionTool, PauseSubscriptionTool

__all__ = [
    "BaseTool",
    "WriteTool",
    "ToolContext",
    "ToolCatalogue",
    "AdjustBudgetTool",
    "CancelActionTool",
    "CancelSubscriptionTool",
    "ConfirmActionTool",
    "EnableEntityTool",
    "ListEntitiesTool",
    "PauseEntityTool",
    "PauseSubscriptionTool",
    "RenderChartTool",
    "MAX_CHART_POINTS",
    "build_catalogue",
    "get_default_tools",
]


def get_default_tools() -> tuple[BaseTool, ...]:
    """Get the full operator tool set."""
    return (
        ListEntitiesTool(),
        RenderChartTool(),
        *ad_tools(),
        PauseSubscriptionTool(),
        CancelSubscriptionTool(),
        ConfirmActionTool(),
        CancelActionTool(),
    )
