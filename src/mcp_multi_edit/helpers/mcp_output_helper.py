"""MCP output formatting helpers.

Provides functions to wrap tool results with MCP audience targeting.
Separates presentation logic from tool implementations.
"""

import json
from typing import Any

from mcp.types import Annotations, CallToolResult, TextContent


def summarize_result(result: dict[str, Any]) -> str:
    """One-line human summary of a tool result dict."""
    if not result.get("success"):
        code = result.get("error_code", "UNKNOWN_ERROR")
        return f"{code}: {result.get('message', '')}"

    prefix = "Dry run: " if result.get("dry_run") else ""
    if "summary" in result:
        summary = result["summary"]
        return (
            f"{prefix}{summary['total_edits']} edit(s) across "
            f"{summary['total_files']} file(s)"
        )
    return f"{prefix}{result.get('edits_applied', 0)} edit(s) to {result.get('file_path', '')}"


def wrap_mcp_result(
    result: Any,
    user_summary: str,
    *,
    is_error: bool = False,
    tool_name: str | None = None,
) -> CallToolResult:
    """Wrap domain result with MCP audience-targeted content.

    Args:
        result: Domain object (pydantic model or dict)
        user_summary: Human-readable summary for users
        is_error: Whether this represents an error state
        tool_name: Optional tool name to prefix in user output

    Returns:
        CallToolResult with a user breadcrumb, the JSON payload for the
        assistant, and structuredContent

    """
    # Convert to structured content
    if hasattr(result, "model_dump"):
        structured_content = result.model_dump(mode="json", exclude_none=True)
    elif isinstance(result, dict):
        structured_content = result
    else:
        structured_content = {"result": str(result)}

    breadcrumb = f"[{tool_name}] {user_summary}" if tool_name else user_summary

    return CallToolResult(
        content=[
            TextContent(
                type="text",
                text=breadcrumb,
                annotations=Annotations(audience=["user"]),
            ),
            TextContent(
                type="text",
                text=json.dumps(structured_content, indent=2),
                annotations=Annotations(audience=["assistant"]),
            ),
        ],
        structuredContent=structured_content,
        isError=is_error,
    )
