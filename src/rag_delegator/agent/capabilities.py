"""Capability adapters invoked by the composer.

Each adapter wraps one collaborator and returns a tagged `CapabilityResult`.
Collaborator failures are converted to the adapter's fallback value so a
single failing capability never blocks the merged response.
"""

from __future__ import annotations

import logging
from typing import Any

from langchain_core.prompts import ChatPromptTemplate

from rag_delegator.agent.registry import ToolRegistry
from rag_delegator.agent.tools import CHART_TOOL, register_builtin_tools
from rag_delegator.charts import ChartBuilder, ChartData, chart_title
from rag_delegator.config import RetrievalConfig
from rag_delegator.llm import LanguageModel
from rag_delegator.retrieval.store import DocumentStore
from rag_delegator.types import (
    CapabilityResult,
    ChartType,
    Document,
    RetrievalOutcome,
    Tool,
    VisualizationOutcome,
)

logger = logging.getLogger(__name__)

NO_RESULTS_ANSWER = (
    "I couldn't find any relevant information in the knowledge base for your query."
)
RETRIEVAL_ERROR_ANSWER = (
    "I encountered an error while processing your query. Please try again."
)

_GROUNDING_SYSTEM_PROMPT = """
You are a helpful AI assistant. Use the following context to answer the user's question.
If the context doesn't contain enough information to answer the question, say so.

Context:
{context}

Answer the user's question based on the context provided.
""".strip()

GROUNDING_PROMPT = ChatPromptTemplate.from_messages(
    [
        ("system", _GROUNDING_SYSTEM_PROMPT),
        ("human", "{question}"),
    ]
)

GREETING_REPLY = "Hello! I am doing well, thank you for asking. How can I help you today?"
WEATHER_REPLY = (
    "I cannot provide real-time weather information, but I can help you with other questions!"
)
JOKE_REPLY = "Why did the AI go to therapy? Because it had too many neural issues! 😄"
ACKNOWLEDGEMENT_REPLY = (
    "I understand your query. Let me provide you with a helpful response based on my knowledge."
)

_DIRECT_REPLIES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("hello", "how are you"), GREETING_REPLY),
    (("weather",), WEATHER_REPLY),
    (("joke",), JOKE_REPLY),
)


class RetrievalCapability:
    """Answers a query from documents retrieved for the tenant."""

    tool = Tool.RETRIEVAL

    def __init__(
        self,
        store: DocumentStore,
        llm: LanguageModel,
        config: RetrievalConfig | None = None,
    ) -> None:
        self.store = store
        self.llm = llm
        self.config = config or RetrievalConfig()

    async def run(self, query_text: str, tenant: str) -> CapabilityResult:
        try:
            documents = await self.store.search(query_text, tenant, self.config.top_k)
            if not documents:
                return CapabilityResult(self.tool, RetrievalOutcome(answer=NO_RESULTS_ANSWER))

            messages = GROUNDING_PROMPT.format_messages(
                context=build_context(documents),
                question=query_text,
            )
            reply = await self.llm.generate(messages)
        except Exception as exc:
            logger.warning("Retrieval failed for tenant %s: %s", tenant, exc)
            return self.fallback(f"error: {exc}")

        return CapabilityResult(
            self.tool,
            RetrievalOutcome(
                answer=reply.content,
                file_ids=[doc.id for doc in documents],
                references=list(documents),
            ),
        )

    def fallback(self, reason: str) -> CapabilityResult:
        return CapabilityResult(self.tool, RetrievalOutcome(answer=RETRIEVAL_ERROR_ANSWER), reason)

    async def fetch_documents(self, file_ids: list[str], tenant: str) -> list[Document]:
        try:
            return await self.store.fetch_by_ids(file_ids, tenant)
        except Exception as exc:
            logger.warning("Fetching documents %s failed: %s", file_ids, exc)
            return []

    async def search_similar_questions(
        self,
        query_text: str,
        tenant: str,
        limit: int | None = None,
    ) -> list[dict[str, str]]:
        try:
            documents = await self.store.search(
                query_text, tenant, limit or self.config.similar_questions_k
            )
        except Exception as exc:
            logger.warning("Similar question search failed: %s", exc)
            return []
        return [
            {"fileId": doc.id, "question": doc.question, "answer": doc.answer}
            for doc in documents
        ]


class VisualizationCapability:
    """Builds a chart configuration through the registered chart tool."""

    tool = Tool.VISUALIZATION

    def __init__(
        self,
        registry: ToolRegistry | None = None,
        chart_builder: ChartBuilder | None = None,
    ) -> None:
        self.chart_builder = chart_builder if chart_builder is not None else ChartBuilder()
        if registry is None:
            registry = ToolRegistry()
            register_builtin_tools(registry, chart_builder=self.chart_builder)
        self.registry = registry

    def prepare_input(self, query_text: str, chart_type: ChartType) -> dict[str, Any]:
        """Chart request for a query, bound to the canned sample data."""
        return {
            "chart_type": chart_type,
            "data": self.chart_builder.sample_data(chart_type),
            "title": chart_title(query_text),
        }

    async def run(
        self,
        chart_type: ChartType | str,
        data: ChartData | dict[str, Any],
        title: str = "Chart",
    ) -> CapabilityResult:
        payload = {"chart_type": chart_type, "data": data, "title": title}
        try:
            config = self.registry.execute(CHART_TOOL, payload)
        except Exception as exc:
            logger.warning("Chart generation failed for %s: %s", chart_type, exc)
            return self.fallback(f"error: {exc}")
        return CapabilityResult(self.tool, VisualizationOutcome(success=True, chart_config=config))

    async def run_for_query(self, query_text: str, chart_type: ChartType) -> CapabilityResult:
        return await self.run(**self.prepare_input(query_text, chart_type))

    def fallback(self, reason: str) -> CapabilityResult:
        return CapabilityResult(
            self.tool, VisualizationOutcome(success=False, error=reason), reason
        )


class DirectCapability:
    """Canned conversational replies; no external calls."""

    tool = Tool.DIRECT

    def answer(self, query_text: str) -> str:
        text = query_text.lower()
        for keywords, reply in _DIRECT_REPLIES:
            if any(keyword in text for keyword in keywords):
                return reply
        return ACKNOWLEDGEMENT_REPLY

    def respond(self, query_text: str) -> CapabilityResult:
        return CapabilityResult(self.tool, self.answer(query_text))


def build_context(documents: list[Document]) -> str:
    return "\n\n".join(
        f"Question: {doc.question}\nAnswer: {doc.answer}" for doc in documents
    )
