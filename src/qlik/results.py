"""
Tool result payloads

Every tool answers with a short summary for the model and a structured
payload whose ``type`` field tells the rendering surface how to draw it.
"""

import base64
from dataclasses import dataclass
from typing import Any, Dict, Optional

from fastmcp.tools.tool import ToolResult
from mcp.types import ImageContent, TextContent


@dataclass
class ToolPayload:
    """Summary text plus a structured payload tagged by ``type``."""

    summary: str
    structured: Dict[str, Any]
    image: Optional[bytes] = None

    @property
    def type(self) -> str:
        return self.structured.get("type", "")

    def to_tool_result(self) -> ToolResult:
        content = [TextContent(type="text", text=self.summary)]
        if self.image:
            content.append(ImageContent(
                type="image",
                data=base64.b64encode(self.image).decode("utf-8"),
                mimeType="image/jpeg",
            ))
        return ToolResult(content=content, structured_content=self.structured)


def payload(summary: str, payload_type: str, /, **fields: Any) -> ToolPayload:
    """Build a ToolPayload whose structured content is ``fields`` tagged with ``payload_type``."""
    return ToolPayload(summary=summary, structured={**fields, "type": payload_type})


def error_payload(message: str, /, summary: Optional[str] = None, **fields: Any) -> ToolPayload:
    """Build the ``error`` payload shown when a tool cannot produce its normal result."""
    return payload(summary or f"Error: {message}", "error", message=message, **fields)
