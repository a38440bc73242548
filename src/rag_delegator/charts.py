"""Chart configuration building."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel, Field

from rag_delegator.types import ChartConfig, ChartType

_CATEGORICAL_PALETTE = ["#FF6384", "#36A2EB", "#FFCE56", "#4BC0C0", "#9966FF"]

PALETTES: dict[ChartType, list[str]] = {
    ChartType.BAR: _CATEGORICAL_PALETTE,
    ChartType.LINE: ["#36A2EB"],
    ChartType.PIE: _CATEGORICAL_PALETTE,
    ChartType.DOUGHNUT: _CATEGORICAL_PALETTE,
}


class ChartData(BaseModel):
    """Labels and values for a single-dataset chart."""

    labels: list[str] = Field(default_factory=lambda: ["Label 1", "Label 2", "Label 3"])
    values: list[float] = Field(default_factory=lambda: [10.0, 20.0, 30.0])
    label: str = "Dataset"


# Placeholder data until charts are bound to real query results.
SAMPLE_DATA: dict[ChartType, ChartData] = {
    ChartType.BAR: ChartData(
        labels=["January", "February", "March", "April", "May"],
        values=[65, 59, 80, 81, 56],
        label="Sales Data",
    ),
    ChartType.LINE: ChartData(
        labels=["Jan", "Feb", "Mar", "Apr", "May"],
        values=[12, 19, 3, 5, 2],
        label="Trend Data",
    ),
    ChartType.PIE: ChartData(
        labels=["Red", "Blue", "Yellow", "Green", "Purple"],
        values=[12, 19, 3, 5, 2],
        label="Distribution",
    ),
    ChartType.DOUGHNUT: ChartData(
        labels=["Red", "Blue", "Yellow", "Green"],
        values=[12, 19, 3, 5],
        label="Categories",
    ),
}


class ChartBuilder:
    """Shapes chart data into a `ChartConfig`."""

    def build(
        self,
        chart_type: ChartType | str,
        data: ChartData | dict[str, Any],
        title: str = "Chart",
    ) -> ChartConfig:
        kind = ChartType(chart_type)
        chart_data = data if isinstance(data, ChartData) else ChartData.model_validate(data)
        if len(chart_data.labels) != len(chart_data.values):
            raise ValueError(
                f"labels and values must have the same length "
                f"({len(chart_data.labels)} != {len(chart_data.values)})"
            )
        return ChartConfig(
            type=kind,
            labels=list(chart_data.labels),
            values=[float(value) for value in chart_data.values],
            title=title,
            color_palette=palette_for(kind),
            dataset_label=chart_data.label,
        )

    @staticmethod
    def sample_data(chart_type: ChartType | str) -> ChartData:
        return SAMPLE_DATA[ChartType(chart_type)].model_copy(deep=True)


def palette_for(chart_type: ChartType) -> list[str]:
    return list(PALETTES.get(chart_type, PALETTES[ChartType.BAR]))


def chart_title(query_text: str) -> str:
    return f"Chart for: {query_text}"


def summarize_chart(config: ChartConfig, *, max_points: int = 5) -> str:
    """One-line description of a chart, used in traces."""
    points: Sequence[str] = [
        f"{label}={value:g}"
        for label, value in zip(config.labels[:max_points], config.values[:max_points], strict=True)
    ]
    return f"{config.type.value} chart '{config.title}': " + ", ".join(points)
