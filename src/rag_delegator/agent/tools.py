"""Built-in tool implementations for the delegating agent."""

from __future__ import annotations

from pydantic import BaseModel, Field

from rag_delegator.agent.registry import ToolRegistry, ToolSpec
from rag_delegator.charts import ChartBuilder, ChartData, summarize_chart
from rag_delegator.types import ChartConfig, ChartType

CHART_TOOL = "chart_tool"


class ChartToolInput(BaseModel):
    chart_type: ChartType
    data: ChartData
    title: str = Field(default="Chart", min_length=1)


def register_builtin_tools(
    registry: ToolRegistry,
    *,
    chart_builder: ChartBuilder | None = None,
) -> None:
    """Register default tool set used by the capabilities.

    Tools:
    - `chart_tool`: builds a chart configuration (bar, line, pie, doughnut).
    """

    builder = chart_builder if chart_builder is not None else ChartBuilder()

    def _chart(input_data: ChartToolInput) -> ChartConfig:
        return builder.build(input_data.chart_type, input_data.data, input_data.title)

    registry.register(
        ToolSpec(
            name=CHART_TOOL,
            description="Generates Chart.js configurations for data visualization.",
            args_schema=ChartToolInput,
            handler=_chart,
            preview=summarize_chart,
            tags=["visualization", "chart"],
        )
    )
