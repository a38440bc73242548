"""Request tracing and latency accounting."""

from __future__ import annotations

import time
import uuid
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from rag_delegator.types import ToolTrace


@dataclass(slots=True)
class TraceRecord:
    trace_id: str
    timestamp_utc: str
    query: str
    tenant: str
    reasoning: str
    tools_used: list[str]
    capability_traces: list[ToolTrace]
    degraded: list[str]
    latency_ms: float


class TraceStore:
    """In-memory trace storage for API-level observability."""

    def __init__(self, *, max_records: int = 1000) -> None:
        self._records: dict[str, TraceRecord] = {}
        self._max_records = max_records

    def create_record(
        self,
        *,
        query: str,
        tenant: str,
        reasoning: str,
        tools_used: list[str],
        capability_traces: list[ToolTrace],
        degraded: list[str],
        latency_ms: float,
    ) -> TraceRecord:
        trace_id = str(uuid.uuid4())
        record = TraceRecord(
            trace_id=trace_id,
            timestamp_utc=datetime.now(timezone.utc).isoformat(),
            query=query,
            tenant=tenant,
            reasoning=reasoning,
            tools_used=tools_used,
            capability_traces=capability_traces,
            degraded=degraded,
            latency_ms=latency_ms,
        )
        self._records[trace_id] = record
        while len(self._records) > self._max_records:
            del self._records[next(iter(self._records))]
        return record

    def get(self, trace_id: str) -> TraceRecord:
        record = self._records.get(trace_id)
        if record is None:
            raise KeyError(f"Trace not found: {trace_id}")
        return record

    def list_recent(self, limit: int = 20) -> list[TraceRecord]:
        if limit <= 0:
            return []
        return list(self._records.values())[-limit:]

    def __len__(self) -> int:
        return len(self._records)

    def summary(self) -> dict[str, Any]:
        """Aggregate request metrics for dashboard display."""
        records = list(self._records.values())
        total = len(records)
        if total == 0:
            return {
                "total_requests": 0,
                "avg_latency_ms": 0.0,
                "p95_latency_ms": 0.0,
                "tool_usage": {},
                "degraded_requests": 0,
                "error_requests": 0,
            }

        latencies = sorted(record.latency_ms for record in records)
        p95_index = max(0, int((len(latencies) * 0.95) - 1))
        usage = Counter(tool for record in records for tool in record.tools_used)

        return {
            "total_requests": total,
            "avg_latency_ms": sum(latencies) / total,
            "p95_latency_ms": latencies[p95_index],
            "tool_usage": dict(usage),
            "degraded_requests": sum(1 for record in records if record.degraded),
            "error_requests": sum(1 for record in records if "Error" in record.tools_used),
        }


class Timer:
    """Simple context timer used by the composer."""

    def __init__(self) -> None:
        self._start = 0.0
        self.elapsed_ms = 0.0

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.elapsed_ms = (time.perf_counter() - self._start) * 1000.0
