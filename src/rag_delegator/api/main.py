"""FastAPI entrypoint for query/search/document/chart/trace endpoints."""

from __future__ import annotations

import logging
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from rag_delegator.agent.capabilities import (
    RetrievalCapability,
    VisualizationCapability,
)
from rag_delegator.agent.composer import Composer
from rag_delegator.charts import ChartData
from rag_delegator.config import RetrievalConfig
from rag_delegator.llm import TemplateLanguageModel, create_language_model
from rag_delegator.retrieval.store import DocumentStore, InMemoryDocumentStore
from rag_delegator.types import DEFAULT_TENANT, ChartType

logger = logging.getLogger(__name__)


class QueryRequest(BaseModel):
    query: str = Field(min_length=1)
    tenant: str = Field(default=DEFAULT_TENANT, min_length=1)


class SearchRequest(BaseModel):
    query: str = Field(min_length=1)
    tenant: str = Field(default=DEFAULT_TENANT, min_length=1)
    limit: int = Field(default=5, ge=1, le=50)


class DocumentsRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    file_ids: list[str] = Field(alias="fileIds")
    tenant: str = Field(default=DEFAULT_TENANT, min_length=1)


class ChartRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    chart_type: ChartType = Field(alias="chartType")
    data: ChartData
    title: str = Field(default="Chart", min_length=1)


def create_app(
    *,
    composer: Composer | None = None,
    store: DocumentStore | None = None,
) -> FastAPI:
    """Build the HTTP app around an injected (or default local) composer.

    `store` configures the default composer; a composer brings its own store,
    so passing both is rejected.
    """

    if composer is not None and store is not None:
        raise ValueError("Pass either a composer or a store, not both")
    if composer is None:
        if store is None:
            store = InMemoryDocumentStore.with_sample_data()
        composer = Composer(
            retrieval=RetrievalCapability(store, create_language_model(), RetrievalConfig()),
        )
    retrieval = composer.retrieval
    visualization: VisualizationCapability = composer.visualization
    trace_store = composer.trace_store

    app = FastAPI(title="RAG Delegating Agent", version="0.1.0")

    @app.get("/health")
    def health() -> dict[str, Any]:
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "llm_mode": (
                "template" if isinstance(retrieval.llm, TemplateLanguageModel) else "chat_model"
            ),
            "trace_count": len(trace_store),
        }

    @app.get("/api/status")
    def status() -> dict[str, Any]:
        return {
            "status": "running",
            "components": {
                "document_store": type(retrieval.store).__name__,
                "delegating_agent": "ready",
            },
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.post("/api/query")
    async def query(request: QueryRequest) -> dict[str, Any]:
        logger.info("Processing query for tenant %s", request.tenant)
        response = await composer.orchestrate(request.query, request.tenant)
        logger.info(
            "Query processed, tools used: %s",
            ", ".join(tool.value for tool in response.tools_used),
        )
        return {"success": True, "query": request.query, "response": response.as_payload()}

    @app.post("/api/search")
    async def search(request: SearchRequest) -> dict[str, Any]:
        documents = await retrieval.store.search(request.query, request.tenant, request.limit)
        return {
            "success": True,
            "query": request.query,
            "results": [doc.as_payload() for doc in documents],
            "count": len(documents),
        }

    @app.post("/api/documents")
    async def documents(request: DocumentsRequest) -> dict[str, Any]:
        found = await retrieval.fetch_documents(request.file_ids, request.tenant)
        return {
            "success": True,
            "fileIds": request.file_ids,
            "documents": [doc.as_payload() for doc in found],
            "count": len(found),
        }

    @app.post("/api/chart")
    async def chart(request: ChartRequest) -> dict[str, Any]:
        result = await visualization.run(request.chart_type, request.data, request.title)
        outcome = result.value
        if outcome.success:
            payload = {
                "success": True,
                "chartConfig": outcome.chart_config.to_chartjs(),
                "message": f"Generated {request.chart_type.value} chart configuration successfully",
            }
        else:
            payload = {
                "success": False,
                "error": outcome.error,
                "message": "Failed to generate chart configuration",
            }
        return {"success": True, "result": payload}

    @app.get("/api/tools")
    def tools() -> dict[str, Any]:
        return {"items": visualization.registry.catalog()}

    @app.get("/traces")
    def traces(limit: int = 20) -> dict[str, Any]:
        records = [asdict(record) for record in trace_store.list_recent(limit=limit)]
        return {"items": records}

    @app.get("/traces/{trace_id}")
    def trace_detail(trace_id: str) -> dict[str, Any]:
        try:
            record = trace_store.get(trace_id)
        except KeyError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return asdict(record)

    @app.get("/metrics")
    def metrics() -> dict[str, Any]:
        return trace_store.summary()

    return app


app = create_app()
