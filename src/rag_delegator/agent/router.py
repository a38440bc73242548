"""Keyword-based query router."""

from __future__ import annotations

from rag_delegator.config import RouterConfig
from rag_delegator.types import ChartType, Query, RoutingDecision


class KeywordRouter:
    """Selects capabilities by substring matching on the lower-cased query.

    Matching is plain substring containment, so "ai" also fires inside words
    such as "explain" and "line" inside "online". This mirrors the behavior
    existing clients rely on; replacing it with a learned classifier would
    change routing for those queries.

    Small-talk phrases such as "how are you" are blanked out first, so a
    greeting falls through to the direct reply instead of retrieval.
    """

    def __init__(self, config: RouterConfig | None = None) -> None:
        self.config = config or RouterConfig()

    def decide(self, query: Query) -> RoutingDecision:
        text = query.text.lower()
        for phrase in self.config.smalltalk_phrases:
            text = text.replace(phrase, " ")
        use_retrieval = _contains_any(text, self.config.retrieval_keywords)
        use_visualization = _contains_any(text, self.config.visualization_keywords)

        return RoutingDecision(
            use_retrieval=use_retrieval,
            use_visualization=use_visualization,
            chart_type=self._chart_type(text),
            reasoning=f"Analysis based on query content: {query.text}",
        )

    def _chart_type(self, text: str) -> ChartType:
        for keyword, chart_type in self.config.chart_type_keywords:
            if keyword in text:
                return chart_type
        return self.config.default_chart_type


def _contains_any(text: str, keywords: tuple[str, ...]) -> bool:
    return any(keyword in text for keyword in keywords)
