"""Document store interfaces and the in-memory implementation."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from rag_delegator.retrieval.embedder import Embedder, HashingEmbedder, cosine_similarity
from rag_delegator.types import Document

logger = logging.getLogger(__name__)


class DocumentStore(Protocol):
    """Tenant-scoped question/answer store.

    Implementations should not raise: on backend failure they return an empty
    list (or cached documents), which callers treat as "no results".
    """

    async def search(self, text: str, tenant: str, limit: int) -> list[Document]:
        """Return up to `limit` documents ranked by relevance to `text`."""

    async def fetch_by_ids(self, ids: list[str], tenant: str) -> list[Document]:
        """Return the documents with the given ids, in request order."""


SAMPLE_DOCUMENTS: tuple[Document, ...] = (
    Document(
        id="doc001",
        question="What is machine learning?",
        answer=(
            "Machine learning is a subset of artificial intelligence that enables computers "
            "to learn and improve from experience without being explicitly programmed. It uses "
            "algorithms to identify patterns in data and make predictions or decisions."
        ),
        tenant="tenant1",
    ),
    Document(
        id="doc002",
        question="How does a neural network work?",
        answer=(
            "A neural network is a series of algorithms that attempts to recognize underlying "
            "relationships in a set of data through a process that mimics the way the human "
            "brain operates. It consists of layers of interconnected nodes that process and "
            "transmit information."
        ),
        tenant="tenant1",
    ),
    Document(
        id="doc003",
        question="What is the difference between supervised and unsupervised learning?",
        answer=(
            "Supervised learning uses labeled training data to learn the mapping from inputs to "
            "outputs, while unsupervised learning finds hidden patterns in unlabeled data. "
            "Supervised learning is used for classification and regression tasks, while "
            "unsupervised learning is used for clustering and dimensionality reduction."
        ),
        tenant="tenant2",
    ),
    Document(
        id="doc004",
        question="What is deep learning?",
        answer=(
            "Deep learning is a subset of machine learning that uses artificial neural networks "
            "with multiple layers to model and understand complex patterns in data. It has been "
            "particularly successful in image recognition, natural language processing, and "
            "speech recognition."
        ),
        tenant="tenant2",
    ),
    Document(
        id="doc005",
        question="How do you evaluate machine learning models?",
        answer=(
            "Machine learning models are evaluated using various metrics such as accuracy, "
            "precision, recall, F1-score, and ROC-AUC. Cross-validation techniques like k-fold "
            "cross-validation are commonly used to ensure robust evaluation. The choice of "
            "metrics depends on the specific problem and business requirements."
        ),
        tenant="tenant1",
    ),
)


@dataclass(slots=True)
class _StoredDocument:
    document: Document
    embedding: list[float]


class InMemoryDocumentStore:
    """Deterministic document store used for tests and local prototyping.

    Search ranks every document of the tenant by embedding similarity, with
    ties broken by document id, so identical queries return identical ids.
    """

    def __init__(self, embedder: Embedder | None = None) -> None:
        self.embedder = embedder if embedder is not None else HashingEmbedder()
        self._store: dict[tuple[str, str], _StoredDocument] = {}

    @classmethod
    def with_sample_data(cls, embedder: Embedder | None = None) -> "InMemoryDocumentStore":
        store = cls(embedder)
        store.upsert(list(SAMPLE_DOCUMENTS))
        return store

    def upsert(self, documents: list[Document]) -> None:
        embeddings = self.embedder.embed_documents(
            [f"{doc.question} {doc.answer}" for doc in documents]
        )
        for document, embedding in zip(documents, embeddings, strict=True):
            self._store[(document.tenant, document.id)] = _StoredDocument(
                document=document, embedding=embedding
            )
        logger.debug("Upserted %d documents", len(documents))

    def tenants(self) -> list[str]:
        return sorted({tenant for tenant, _ in self._store})

    def __len__(self) -> int:
        return len(self._store)

    async def search(self, text: str, tenant: str, limit: int) -> list[Document]:
        if limit <= 0:
            return []
        query_embedding = self.embedder.embed_query(text)
        candidates = [rec for (rec_tenant, _), rec in self._store.items() if rec_tenant == tenant]
        ranked = sorted(
            candidates,
            key=lambda rec: (-cosine_similarity(query_embedding, rec.embedding), rec.document.id),
        )
        return [rec.document for rec in ranked[:limit]]

    async def fetch_by_ids(self, ids: list[str], tenant: str) -> list[Document]:
        documents: list[Document] = []
        for doc_id in ids:
            record = self._store.get((tenant, doc_id))
            if record is not None:
                documents.append(record.document)
        return documents
