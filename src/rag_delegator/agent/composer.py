"""Routes a query to capabilities, runs them concurrently and merges results."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from rag_delegator.agent.capabilities import (
    DirectCapability,
    RetrievalCapability,
    VisualizationCapability,
)
from rag_delegator.agent.router import KeywordRouter
from rag_delegator.charts import summarize_chart
from rag_delegator.config import ComposerConfig
from rag_delegator.obs.tracing import Timer, TraceStore
from rag_delegator.types import (
    CapabilityResult,
    Query,
    Response,
    RetrievalOutcome,
    RoutingDecision,
    Tool,
    ToolTrace,
    VisualizationOutcome,
)

logger = logging.getLogger(__name__)

ERROR_ANSWER = "I encountered an error while processing your request. Please try again."


class Composer:
    """High-level orchestrator over the router and the capability adapters.

    Collaborators are injected so independent instances can run side by side,
    for example one per test.
    """

    def __init__(
        self,
        *,
        retrieval: RetrievalCapability,
        visualization: VisualizationCapability | None = None,
        direct: DirectCapability | None = None,
        router: KeywordRouter | None = None,
        trace_store: TraceStore | None = None,
        config: ComposerConfig | None = None,
    ) -> None:
        self.retrieval = retrieval
        self.visualization = visualization if visualization is not None else VisualizationCapability()
        self.direct = direct if direct is not None else DirectCapability()
        self.router = router if router is not None else KeywordRouter()
        self.trace_store = trace_store if trace_store is not None else TraceStore()
        self.config = config if config is not None else ComposerConfig()

    async def orchestrate(self, query_text: str, tenant: str | None = None) -> Response:
        """Answer one query. Never raises.

        Any fault outside the capabilities yields a response whose
        `tools_used` is `[Error]`.
        """

        tenant = tenant or self.retrieval.config.default_tenant
        traces: list[ToolTrace] = []
        reasoning = ""
        with Timer() as timer:
            try:
                query = Query(text=query_text, tenant=tenant)
                decision = self.router.decide(query)
                reasoning = decision.reasoning
                logger.info(
                    "Routing query for tenant %s: retrieval=%s visualization=%s chart=%s",
                    tenant,
                    decision.use_retrieval,
                    decision.use_visualization,
                    decision.chart_type.value,
                )
                results = await self._dispatch(query, decision, traces)
                response = self._merge(query, results)
            except Exception:
                logger.exception("Failed to compose response for query %r", query_text)
                results = []
                response = error_response()

        self.trace_store.create_record(
            query=str(query_text),
            tenant=tenant,
            reasoning=reasoning,
            tools_used=[tool.value for tool in response.tools_used],
            capability_traces=traces,
            degraded=[result.tool.value for result in results if not result.ok],
            latency_ms=timer.elapsed_ms,
        )
        return response

    async def compose(self, query: Query, decision: RoutingDecision) -> Response:
        """Run the capabilities selected by `decision` and merge their results."""
        try:
            results = await self._dispatch(query, decision, [])
            return self._merge(query, results)
        except Exception:
            logger.exception("Failed to compose response for query %r", query.text)
            return error_response()

    async def _dispatch(
        self,
        query: Query,
        decision: RoutingDecision,
        traces: list[ToolTrace],
    ) -> list[CapabilityResult]:
        if not decision.use_retrieval and not decision.use_visualization:
            with Timer() as timer:
                result = self.direct.respond(query.text)
            traces.append(_trace(result, {"query": query.text}, timer.elapsed_ms))
            return [result]

        pending: list[Awaitable[CapabilityResult]] = []
        if decision.use_retrieval:
            pending.append(
                self._settle(
                    lambda: self.retrieval.run(query.text, query.tenant),
                    self.retrieval.fallback,
                    {"query": query.text, "tenant": query.tenant},
                    traces,
                )
            )
        if decision.use_visualization:
            pending.append(
                self._settle(
                    lambda: self.visualization.run_for_query(query.text, decision.chart_type),
                    self.visualization.fallback,
                    {"chart_type": decision.chart_type.value, "query": query.text},
                    traces,
                )
            )

        # Join on every capability; no partial responses.
        return list(await asyncio.gather(*pending))

    async def _settle(
        self,
        start: Callable[[], Awaitable[CapabilityResult]],
        fallback: Callable[[str], CapabilityResult],
        payload: dict[str, str],
        traces: list[ToolTrace],
    ) -> CapabilityResult:
        timeout = self.config.capability_timeout_seconds
        with Timer() as timer:
            if timeout is None:
                result = await start()
            else:
                try:
                    result = await asyncio.wait_for(start(), timeout=timeout)
                except asyncio.TimeoutError:
                    result = fallback("timeout")

        if not result.ok:
            logger.warning("%s degraded to fallback: %s", result.tool.value, result.reason)
        traces.append(_trace(result, payload, timer.elapsed_ms))
        return result

    def _merge(self, query: Query, results: list[CapabilityResult]) -> Response:
        response = Response()
        retrieval_answer: str | None = None

        for result in results:
            response.tools_used.append(result.tool)
            value = result.value
            if result.tool is Tool.RETRIEVAL and isinstance(value, RetrievalOutcome):
                retrieval_answer = value.answer
                response.answer = value.answer
                response.file_ids = list(value.file_ids)
                response.references = list(value.references)
            elif result.tool is Tool.VISUALIZATION and isinstance(value, VisualizationOutcome):
                if value.success:
                    response.chart_config = value.chart_config
            elif result.tool is Tool.DIRECT and isinstance(value, str):
                response.answer = value
            else:
                raise TypeError(f"Unexpected {result.tool.value} result: {value!r}")

        if len(response.tools_used) > 1:
            response.answer = narrate(query.text, response.tools_used, retrieval_answer)
        elif response.tools_used == [Tool.VISUALIZATION]:
            response.answer = chart_acknowledgement(response)
        return response


def narrate(query_text: str, tools_used: list[Tool], retrieval_answer: str | None) -> str:
    tools = " and ".join(tool.value for tool in tools_used)
    text = f'I\'ve analyzed your query: "{query_text}" and used {tools} to gather information.'
    if retrieval_answer:
        text = f"{text} {retrieval_answer}"
    return text


def chart_acknowledgement(response: Response) -> str:
    if response.chart_config is None:
        return "I wasn't able to generate a chart for your request."
    return f"I've generated a {response.chart_config.type.value} chart for your request."


def error_response() -> Response:
    return Response(answer=ERROR_ANSWER, tools_used=[Tool.ERROR])


def _trace(result: CapabilityResult, payload: dict[str, str], latency_ms: float) -> ToolTrace:
    value = result.value
    if isinstance(value, RetrievalOutcome):
        preview = f"file_ids={value.file_ids} {value.answer}"
    elif isinstance(value, VisualizationOutcome):
        preview = summarize_chart(value.chart_config) if value.chart_config else str(value.error)
    else:
        preview = str(value)
    if result.reason:
        preview = f"[fallback: {result.reason}] {preview}"
    return ToolTrace(
        name=result.tool.value,
        input_payload=payload,
        output_preview=preview[:320],
        latency_ms=latency_ms,
    )
