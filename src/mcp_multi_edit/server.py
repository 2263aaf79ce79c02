#!/usr/bin/env python3
"""Multi-Edit MCP Server.

Exposes atomic search/replace editing to AI agents via MCP.
All tools return structured JSON; failures carry an error_code, a retryable
flag and ordered recovery_hints.

File editing tools:
- multi_edit: Apply several edits to one file atomically (single write)
- multi_edit_files: Apply edits across several files, rolling back on failure

Usage:
    mcp-multi-edit
    python -m mcp_multi_edit.server
"""

import logging
import sys
from pathlib import Path
from typing import Annotated, Any

from mcp.server.fastmcp import FastMCP
from mcp.types import CallToolResult

from .core.error_codes import ErrorCode
from .core.errors import create_error_descriptor, describe_exception
from .helpers.config_loader import ToolSettings, load_config, settings_from_config
from .helpers.mcp_output_helper import summarize_result, wrap_mcp_result

# Import tool implementations with _impl suffix to avoid name collision
# with MCP-decorated wrapper functions defined below
from .tools.multi_edit import multi_edit as multi_edit_impl
from .tools.multi_edit_files import multi_edit_files as multi_edit_files_impl

# Tool registry for programmatic access
TOOL_IMPLS: dict[str, Any] = {
    "multi_edit": multi_edit_impl,
    "multi_edit_files": multi_edit_files_impl,
}

# ──────────────────────────────────────────────────────────────────────
# Early Setup: Configure logging to stderr (NEVER stdout for MCP stdio)
# ──────────────────────────────────────────────────────────────────────
logging.basicConfig(
    level=logging.WARNING,
    format="%(name)s: %(message)s",
    stream=sys.stderr,  # Critical: MCP uses stdout for JSON-RPC
)

# Suppress noisy loggers that might write to handlers
for noisy_logger in ["asyncio", "urllib3", "httpcore", "httpx"]:
    logging.getLogger(noisy_logger).setLevel(logging.ERROR)

# Workspace root - determined from current working directory
ROOT = Path.cwd()


# ──────────────────────────────────────────────────────────────────────
# Configuration Validation
# ──────────────────────────────────────────────────────────────────────

logger = logging.getLogger(__name__)


def _validate_config_on_startup() -> ToolSettings:
    """Load configuration on startup.

    Logs warnings for an unreadable config but does not block startup, so
    the tools keep working with defaults.

    Returns:
        Settings passed to every tool call.
    """
    try:
        config = load_config(ROOT)
    except Exception as e:
        logger.warning(f"⚠ Configuration error: {type(e).__name__}: {e}")
        logger.warning("  Proceeding with default configuration")
        return ToolSettings()

    level = config["logging"]["level"].upper()
    logging.getLogger("mcp_multi_edit").setLevel(level)
    logger.info(f"✓ Configuration loaded from {ROOT}")

    settings = settings_from_config(config)
    logger.debug(
        f"  Backup suffix: {settings.backup_suffix!r}, default backup: {settings.default_backup}"
    )
    return settings


# Initialize MCP server
mcp = FastMCP(
    name="multi-edit",
    instructions=(
        "Atomic search/replace editing. Use multi_edit for several edits to one "
        "file and multi_edit_files for edits spanning files. Edits apply in order, "
        "each to the result of the previous one. Nothing is written unless every "
        "edit succeeds. Paths must be absolute. On failure, read error_code, "
        "retryable and recovery_hints; the context field shows nearby file "
        "content to build a corrected old_string. Use dry_run to preview."
    ),
)

# Settings loaded at startup and passed explicitly to the tools
_settings = _validate_config_on_startup()


def call_tool(name: str, arguments: dict[str, Any]) -> dict:
    """Dispatch a tool by name and return its result dict.

    Unknown names and unexpected exceptions become error descriptors.
    """
    impl = TOOL_IMPLS.get(name)
    if impl is None:
        return create_error_descriptor(
            ErrorCode.UNKNOWN_TOOL,
            f"Unknown tool: {name}",
            recovery_hints=[f"Available tools: {', '.join(sorted(TOOL_IMPLS))}"],
        ).model_dump(mode="json", exclude_none=True)

    try:
        return impl(**arguments, settings=_settings)
    except Exception as e:
        logger.exception(f"{name} failed unexpectedly")
        return describe_exception(e, arguments.get("file_path")).model_dump(
            mode="json", exclude_none=True
        )


def _run_tool(name: str, arguments: dict[str, Any]) -> CallToolResult:
    result = call_tool(name, arguments)
    return wrap_mcp_result(
        result,
        summarize_result(result),
        is_error=not result.get("success", False),
        tool_name=name,
    )


# ──────────────────────────────────────────────────────────────────────
# Tools
# ──────────────────────────────────────────────────────────────────────


@mcp.tool()
def multi_edit(
    file_path: Annotated[str, "Absolute path to the file to edit"],
    edits: Annotated[
        list[dict],
        (
            "List of {old_string, new_string, replace_all?, case_insensitive?} dicts. "
            "Applied in order, each on the result of the previous."
        ),
    ],
    dry_run: Annotated[bool, "Preview the changes without writing"] = False,
    backup: Annotated[
        bool | None,
        "Write <file_path>.bak before modifying (default from config: true)",
    ] = None,
    include_content: Annotated[bool, "Return the final file content"] = False,
) -> CallToolResult:
    """Apply multiple edits to one file atomically (single write).

    Each old_string must match exactly once unless replace_all is set.
    If any edit fails the file is left unchanged.
    """
    return _run_tool(
        "multi_edit",
        {
            "file_path": file_path,
            "edits": edits,
            "dry_run": dry_run,
            "backup": backup,
            "include_content": include_content,
        },
    )


@mcp.tool()
def multi_edit_files(
    files: Annotated[
        list[dict],
        "List of {file_path, edits} dicts. Each file path must appear once.",
    ],
    dry_run: Annotated[bool, "Preview the changes without writing"] = False,
    backup: Annotated[
        bool | None,
        "Keep <file_path>.bak for every edited file (default from config: true)",
    ] = None,
    include_content: Annotated[bool, "Return each file's final content"] = False,
) -> CallToolResult:
    """Apply edits across several files as one unit.

    All edits are computed before any file is written. If writing a file
    fails, files already written are restored from their original content.
    """
    return _run_tool(
        "multi_edit_files",
        {
            "files": files,
            "dry_run": dry_run,
            "backup": backup,
            "include_content": include_content,
        },
    )


def main() -> None:
    """Run the MCP server."""
    mcp.run()


if __name__ == "__main__":
    mcp.run()
