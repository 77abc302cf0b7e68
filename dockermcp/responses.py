"""Formatting of tool results into the standard JSON response envelope."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from dockermcp.models import APIResponse, to_dict


@dataclass
class CallToolResult:
    """The result of one tool call: a list of text content items."""

    content: list[dict[str, str]] = field(default_factory=list)
    is_error: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Return the result in its MCP wire shape."""
        out: dict[str, Any] = {"content": [dict(item) for item in self.content]}
        if self.is_error:
            out["isError"] = True
        return out


def _text_result(text: str) -> CallToolResult:
    return CallToolResult(content=[{"type": "text", "text": text}])


def _dump(response: APIResponse) -> str:
    return json.dumps(to_dict(response), indent=2, ensure_ascii=False)


def format_response(data: Any) -> CallToolResult:
    """Wrap data in a successful envelope, adding a count for sequences."""
    response = APIResponse(success=True, data=data)
    if isinstance(data, (list, tuple)):
        response.count = len(data)
    try:
        text = _dump(response)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"failed to serialize data: {exc}") from exc
    return _text_result(text)


def format_error_response(error: BaseException | str) -> CallToolResult:
    """Wrap an error message in a failed envelope."""
    response = APIResponse(success=False, error=str(error))
    return _text_result(_dump(response))