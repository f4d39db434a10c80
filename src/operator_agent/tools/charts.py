import uuid
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from ..types import ToolOutcome
from .base import BaseTool, ToolContext

MAX_CHART_POINTS = 50

ValueFormat = Literal["currency", "percent", "number", "ratio"]


class SeriesSpec(BaseModel):
    key: str
    label: str | None = None
    color: str | None = None
    format: ValueFormat | None = None


class KpiSpec(BaseModel):
    label: str
    value: float | str
    format: ValueFormat | None = None
    delta: float | None = None


class ChartInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: Literal["line", "bar", "area", "kpi", "pie"] = Field(description="Chart type to render")
    title: str = Field(description="Chart title displayed above the visualization")
    data: list[dict[str, Any]] = Field(
        default_factory=list,
        description=f"Data points (max {MAX_CHART_POINTS}); keys match x_key and y_keys",
    )
    x_key: str | None = Field(default=None, alias="xKey", description="Key for the X axis, e.g. 'date'")
    y_keys: list[SeriesSpec] = Field(default_factory=list, alias="yKeys", description="Y-axis series")
    kpis: list[KpiSpec] = Field(default_factory=list, description="KPI cards (for type 'kpi' only)")


class RenderChartTool(BaseTool):
    """Produce a chart spec the client renders inline."""

    input_model = ChartInput

    @property
    def name(self) -> str:
        return "render_chart"

    @property
    def description(self) -> str:
        return (
            "Render an inline chart or KPI card for the user. Use 'kpi' for summary "
            "stats, 'line'/'area' for trends, 'bar' for comparisons and 'pie' for "
            f"breakdowns. Limit data to {MAX_CHART_POINTS} points and always add a "
            "short text summary alongside the chart."
        )

    async def execute(self, params: ChartInput, context: ToolContext) -> ToolOutcome:
        chart = {
            "id": str(uuid.uuid4()),
            "type": params.type,
            "title": params.title,
            "data": params.data[:MAX_CHART_POINTS],
            "xKey": params.x_key,
            "yKeys": [s.model_dump(exclude_none=True) for s in params.y_keys],
            "kpis": [k.model_dump(exclude_none=True) for k in params.kpis],
        }
        return ToolOutcome(
            result={"rendered": True, "chart_id": chart["id"]},
            summary=f"📊 Chart rendered: {params.title}",
            chart=chart,
        )
