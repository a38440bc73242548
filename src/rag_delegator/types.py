"""Shared domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

DEFAULT_TENANT = "tenant1"


class ChartType(str, Enum):
    BAR = "bar"
    LINE = "line"
    PIE = "pie"
    DOUGHNUT = "doughnut"


class Tool(str, Enum):
    """Capabilities that can contribute to a response."""

    RETRIEVAL = "Retrieval"
    VISUALIZATION = "Visualization"
    DIRECT = "Direct"
    ERROR = "Error"


@dataclass(frozen=True, slots=True)
class Query:
    """A raw user query scoped to one tenant."""

    text: str
    tenant: str = DEFAULT_TENANT


@dataclass(frozen=True, slots=True)
class RoutingDecision:
    """Which capabilities to invoke for a query."""

    use_retrieval: bool
    use_visualization: bool
    chart_type: ChartType = ChartType.BAR
    reasoning: str = ""


@dataclass(frozen=True, slots=True)
class Document:
    """A question/answer record owned by the document store."""

    id: str
    question: str
    answer: str
    tenant: str

    def as_payload(self) -> dict[str, str]:
        return {
            "fileId": self.id,
            "question": self.question,
            "answer": self.answer,
            "tenant": self.tenant,
        }


@dataclass(frozen=True, slots=True)
class ChartConfig:
    """Chart description, fully determined by chart type, data and title."""

    type: ChartType
    labels: list[str]
    values: list[float]
    title: str
    color_palette: list[str]
    dataset_label: str = "Dataset"

    def to_chartjs(self) -> dict[str, Any]:
        """Render as a Chart.js configuration object."""
        dataset: dict[str, Any] = {
            "label": self.dataset_label,
            "data": list(self.values),
            "backgroundColor": list(self.color_palette),
            "borderWidth": 1,
        }
        if self.type is ChartType.LINE:
            dataset["borderColor"] = self.color_palette[0]

        options: dict[str, Any] = {
            "responsive": True,
            "plugins": {
                "title": {"display": True, "text": self.title},
                "legend": {"display": True, "position": "top"},
            },
        }
        if self.type not in (ChartType.PIE, ChartType.DOUGHNUT):
            options["scales"] = {"y": {"beginAtZero": True}}

        return {
            "type": self.type.value,
            "data": {"labels": list(self.labels), "datasets": [dataset]},
            "options": options,
        }


@dataclass(slots=True)
class Response:
    """The merged answer returned for one query."""

    answer: str = ""
    file_ids: list[str] = field(default_factory=list)
    references: list[Document] = field(default_factory=list)
    chart_config: ChartConfig | None = None
    tools_used: list[Tool] = field(default_factory=list)

    def as_payload(self) -> dict[str, Any]:
        return {
            "answer": self.answer,
            "fileIds": list(self.file_ids),
            "references": [doc.as_payload() for doc in self.references],
            "chartConfig": self.chart_config.to_chartjs() if self.chart_config else None,
            "toolsUsed": [tool.value for tool in self.tools_used],
        }


@dataclass(frozen=True, slots=True)
class RetrievalOutcome:
    answer: str
    file_ids: list[str] = field(default_factory=list)
    references: list[Document] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class VisualizationOutcome:
    success: bool
    chart_config: ChartConfig | None = None
    error: str | None = None


CapabilityValue = Union[RetrievalOutcome, VisualizationOutcome, str]


@dataclass(frozen=True, slots=True)
class CapabilityResult:
    """Tagged result of one capability invocation.

    `reason is None` marks a genuine success. Otherwise `value` is the
    capability's documented fallback and `reason` says why it was used.
    """

    tool: Tool
    value: CapabilityValue
    reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.reason is None


@dataclass(slots=True)
class ToolTrace:
    """Trace record for an executed tool or capability call."""

    name: str
    input_payload: dict[str, Any]
    output_preview: str
    latency_ms: float
