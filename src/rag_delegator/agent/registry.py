"""Tool registry built on Pydantic v2 models."""

from __future__ import annotations

from collections.abc import Callable
from time import perf_counter
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from rag_delegator.types import ToolTrace


class ToolSpec(BaseModel):
    """A named handler whose payload is validated against `args_schema`."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str
    description: str
    args_schema: type[BaseModel]
    handler: Callable[[BaseModel], Any]
    preview: Callable[[Any], str] = str
    tags: list[str] = Field(default_factory=list)

    def invoke(self, payload: dict[str, Any]) -> Any:
        return self.handler(self.args_schema.model_validate(payload))

    def describe(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "tags": list(self.tags),
            "input_schema": self.args_schema.model_json_schema(),
        }


class ToolRegistry:
    """Named tools with payload validation and an optional latency observer."""

    def __init__(self) -> None:
        self._tools: dict[str, ToolSpec] = {}
        self._observer: Callable[[ToolTrace], None] | None = None

    def register(self, spec: ToolSpec) -> None:
        if spec.name in self._tools:
            raise ValueError(f"Tool already registered: {spec.name}")
        self._tools[spec.name] = spec

    def set_observer(self, observer: Callable[[ToolTrace], None] | None) -> None:
        """Set an optional callback invoked after each tool execution."""
        self._observer = observer

    def execute(self, name: str, payload: dict[str, Any]) -> Any:
        spec = self._tools.get(name)
        if spec is None:
            raise KeyError(f"Unknown tool: {name}")

        start = perf_counter()
        output = spec.invoke(payload)
        if self._observer is not None:
            self._observer(
                ToolTrace(
                    name=spec.name,
                    input_payload=payload,
                    output_preview=spec.preview(output)[:320],
                    latency_ms=(perf_counter() - start) * 1000.0,
                )
            )
        return output

    def catalog(self) -> list[dict[str, Any]]:
        """Descriptions of the registered tools, in registration order."""
        return [spec.describe() for spec in self._tools.values()]
