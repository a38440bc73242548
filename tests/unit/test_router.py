import pytest

from rag_delegator.agent.router import KeywordRouter
from rag_delegator.config import RouterConfig
from rag_delegator.types import ChartType, Query


@pytest.fixture()
def router() -> KeywordRouter:
    return KeywordRouter()


def test_retrieval_keywords_select_retrieval_only(router: KeywordRouter) -> None:
    decision = router.decide(Query("What is machine learning?"))

    assert decision.use_retrieval is True
    assert decision.use_visualization is False
    assert decision.chart_type is ChartType.BAR


def test_bar_chart_request_selects_visualization_only(router: KeywordRouter) -> None:
    decision = router.decide(Query("Create a bar chart of sales data"))

    assert decision.use_retrieval is False
    assert decision.use_visualization is True
    assert decision.chart_type is ChartType.BAR


@pytest.mark.parametrize(
    "text",
    [
        "pie graph",
        "Show a line graph and a pie chart",
        "GRAPH the doughnut vs PIE split",
        "why does the pie graph look odd?",
    ],
)
def test_pie_has_priority_over_other_chart_types(router: KeywordRouter, text: str) -> None:
    decision = router.decide(Query(text))

    assert decision.use_visualization is True
    assert decision.chart_type is ChartType.PIE


def test_line_beats_doughnut(router: KeywordRouter) -> None:
    assert router.decide(Query("plot a line and a doughnut")).chart_type is ChartType.LINE
    assert router.decide(Query("doughnut please")).chart_type is ChartType.DOUGHNUT


def test_combined_routing(router: KeywordRouter) -> None:
    decision = router.decide(Query("Find neural network papers and plot them"))

    assert decision.use_retrieval is True
    assert decision.use_visualization is True


@pytest.mark.parametrize("text", ["", "Hello there", "Tell me a joke", "weather today?", "ünïcödé ☃"])
def test_unmatched_text_routes_to_neither(router: KeywordRouter, text: str) -> None:
    decision = router.decide(Query(text))

    assert decision.use_retrieval is False
    assert decision.use_visualization is False


def test_greeting_phrase_is_not_a_question(router: KeywordRouter) -> None:
    decision = router.decide(Query("Hello, how are you?"))

    assert decision.use_retrieval is False
    assert decision.use_visualization is False


def test_substring_matching_is_preserved(router: KeywordRouter) -> None:
    # "ai" inside "explain", "line" inside "online".
    assert router.decide(Query("explain")).use_retrieval is True
    assert router.decide(Query("online")).use_visualization is True


def test_reasoning_names_the_query(router: KeywordRouter) -> None:
    decision = router.decide(Query("What is AI?"))

    assert decision.reasoning == "Analysis based on query content: What is AI?"


def test_custom_keyword_tables() -> None:
    router = KeywordRouter(
        RouterConfig(
            retrieval_keywords=("lookup",),
            visualization_keywords=("draw",),
            smalltalk_phrases=(),
        )
    )

    decision = router.decide(Query("lookup and draw"))

    assert decision.use_retrieval is True
    assert decision.use_visualization is True
    assert router.decide(Query("how are you")).use_retrieval is False
