"""Uniform tool-call result envelope.

Every tool result, success or failure, is a ``ToolResponse``. ``is_error``
is the only failure signal; an empty success is still a success.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from mcp import types


@dataclass(frozen=True)
class ToolResponse:
    texts: list[str] = field(default_factory=list)
    structured_content: dict[str, Any] | None = None
    is_error: bool = False

    @property
    def text(self) -> str:
        return "\n".join(self.texts)

    def to_dict(self) -> dict[str, Any]:
        """The wire shape: content, optional structuredContent, isError only when true."""
        result: dict[str, Any] = {
            "content": [{"type": "text", "text": t} for t in self.texts],
        }
        if self.structured_content is not None:
            result["structuredContent"] = self.structured_content
        if self.is_error:
            result["isError"] = True
        return result

    def to_call_tool_result(self) -> types.CallToolResult:
        return types.CallToolResult(
            content=[types.TextContent(type="text", text=t) for t in self.texts],
            structuredContent=self.structured_content,
            isError=self.is_error,
        )


def success_response(message: str) -> ToolResponse:
    return ToolResponse(texts=[message])


def structured_response(data: dict[str, Any], texts: list[str] | None = None) -> ToolResponse:
    """Structured result; text falls back to the JSON encoding of ``data``."""
    return ToolResponse(
        texts=list(texts) if texts else [json.dumps(data)],
        structured_content=data,
    )


def error_response(message: str) -> ToolResponse:
    return ToolResponse(texts=[f"ERROR: {message}"], is_error=True)
