"""Configuration models for the delegating agent."""

from __future__ import annotations

from pydantic import BaseModel, Field

from rag_delegator.types import DEFAULT_TENANT, ChartType


class RouterConfig(BaseModel):
    """Keyword tables for query routing.

    Chart keywords are checked in order and the first match wins.
    """

    retrieval_keywords: tuple[str, ...] = (
        "what",
        "how",
        "why",
        "search",
        "find",
        "machine learning",
        "neural network",
        "deep learning",
        "ai",
    )
    visualization_keywords: tuple[str, ...] = (
        "chart",
        "graph",
        "visualize",
        "plot",
        "bar",
        "pie",
        "line",
        "doughnut",
    )
    chart_type_keywords: tuple[tuple[str, ChartType], ...] = (
        ("pie", ChartType.PIE),
        ("line", ChartType.LINE),
        ("doughnut", ChartType.DOUGHNUT),
    )
    default_chart_type: ChartType = ChartType.BAR
    # Removed before keyword matching so greetings are not mistaken for questions.
    smalltalk_phrases: tuple[str, ...] = ("how are you",)


class RetrievalConfig(BaseModel):
    """Configures document retrieval for grounded answers."""

    top_k: int = Field(default=5, ge=1)
    similar_questions_k: int = Field(default=3, ge=1)
    default_tenant: str = Field(default=DEFAULT_TENANT, min_length=1)


class ComposerConfig(BaseModel):
    """Configures capability fan-out.

    `capability_timeout_seconds=None` waits for every capability without bound
    and never cancels one. With a timeout set, a capability still running at
    the deadline is cancelled and replaced by its fallback result.
    """

    capability_timeout_seconds: float | None = Field(default=None, gt=0.0)
