import pytest
from fastapi.testclient import TestClient

from rag_delegator.agent.capabilities import GREETING_REPLY, NO_RESULTS_ANSWER, RetrievalCapability
from rag_delegator.agent.composer import Composer
from rag_delegator.api.main import create_app
from rag_delegator.llm import TemplateLanguageModel
from rag_delegator.retrieval.store import InMemoryDocumentStore


@pytest.fixture()
def client() -> TestClient:
    composer = Composer(
        retrieval=RetrievalCapability(
            InMemoryDocumentStore.with_sample_data(), TemplateLanguageModel()
        )
    )
    return TestClient(create_app(composer=composer))


def test_query_endpoint_routes_and_traces(client: TestClient) -> None:
    resp = client.post("/api/query", json={"query": "What is machine learning?", "tenant": "tenant1"})
    assert resp.status_code == 200
    payload = resp.json()
    assert payload["success"] is True
    assert payload["query"] == "What is machine learning?"
    response = payload["response"]
    assert response["toolsUsed"] == ["Retrieval"]
    assert response["fileIds"]
    assert response["chartConfig"] is None
    assert set(response["references"][0]) == {"fileId", "question", "answer", "tenant"}

    traces = client.get("/traces").json()["items"]
    assert traces[-1]["tools_used"] == ["Retrieval"]
    detail = client.get(f"/traces/{traces[-1]['trace_id']}")
    assert detail.status_code == 200
    assert detail.json()["capability_traces"][0]["name"] == "Retrieval"

    metrics = client.get("/metrics").json()
    assert metrics["total_requests"] == 1
    assert metrics["tool_usage"] == {"Retrieval": 1}


def test_query_endpoint_chart_and_direct(client: TestClient) -> None:
    chart = client.post("/api/query", json={"query": "Create a bar chart of sales data"}).json()
    assert chart["response"]["toolsUsed"] == ["Visualization"]
    assert chart["response"]["chartConfig"]["type"] == "bar"
    assert chart["response"]["chartConfig"]["data"]["datasets"][0]["label"] == "Sales Data"

    direct = client.post("/api/query", json={"query": "Hello, how are you?"}).json()
    assert direct["response"]["toolsUsed"] == ["Direct"]
    assert direct["response"]["answer"] == GREETING_REPLY


def test_query_endpoint_rejects_empty_query(client: TestClient) -> None:
    assert client.post("/api/query", json={"query": ""}).status_code == 422
    assert client.post("/api/query", json={}).status_code == 422


def test_search_and_documents_endpoints(client: TestClient) -> None:
    search = client.post("/api/search", json={"query": "neural network", "limit": 2})
    assert search.status_code == 200
    assert search.json()["count"] == 2

    documents = client.post(
        "/api/documents", json={"fileIds": ["doc003", "doc004"], "tenant": "tenant2"}
    )
    assert documents.status_code == 200
    body = documents.json()
    assert body["count"] == 2
    assert [doc["fileId"] for doc in body["documents"]] == ["doc003", "doc004"]

    assert client.post("/api/documents", json={"fileIds": "doc001"}).status_code == 422


def test_chart_endpoint(client: TestClient) -> None:
    ok = client.post(
        "/api/chart",
        json={"chartType": "pie", "data": {"labels": ["a", "b"], "values": [1, 2]}, "title": "Split"},
    )
    assert ok.status_code == 200
    result = ok.json()["result"]
    assert result["success"] is True
    assert result["chartConfig"]["type"] == "pie"
    assert result["chartConfig"]["options"]["plugins"]["title"]["text"] == "Split"

    mismatched = client.post(
        "/api/chart",
        json={"chartType": "bar", "data": {"labels": ["a", "b"], "values": [1]}},
    ).json()
    assert mismatched["result"]["success"] is False
    assert mismatched["result"]["error"]

    unknown = client.post("/api/chart", json={"chartType": "radar", "data": {}})
    assert unknown.status_code == 422


def test_health_status_and_missing_trace(client: TestClient) -> None:
    health = client.get("/health").json()
    assert health["status"] == "healthy"
    assert health["llm_mode"] == "template"

    status = client.get("/api/status").json()
    assert status["components"]["document_store"] == "InMemoryDocumentStore"

    assert client.get("/traces/does-not-exist").status_code == 404


def test_default_app_uses_sample_knowledge_base(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    client = TestClient(create_app())

    resp = client.post("/api/query", json={"query": "How does a neural network work?"})

    assert resp.json()["response"]["references"][0]["fileId"] == "doc002"


def test_empty_injected_store_is_not_replaced(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    client = TestClient(create_app(store=InMemoryDocumentStore()))

    response = client.post("/api/query", json={"query": "What is machine learning?"}).json()["response"]

    assert response["toolsUsed"] == ["Retrieval"]
    assert response["fileIds"] == []
    assert response["references"] == []
    assert response["answer"] == NO_RESULTS_ANSWER


def test_composer_and_store_together_are_rejected() -> None:
    store = InMemoryDocumentStore()
    composer = Composer(retrieval=RetrievalCapability(store, TemplateLanguageModel()))

    with pytest.raises(ValueError):
        create_app(composer=composer, store=store)


def test_tools_endpoint_lists_chart_tool(client: TestClient) -> None:
    items = client.get("/api/tools").json()["items"]

    assert [item["name"] for item in items] == ["chart_tool"]
    assert "chart_type" in items[0]["input_schema"]["properties"]
