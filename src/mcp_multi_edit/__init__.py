"""MCP Multi-Edit - atomic search/replace edits for AI agents.

This package provides file editing tools exposed via MCP (Model Context Protocol).

The main entry point is the server module:
    from mcp_multi_edit.server import main, mcp, TOOL_IMPLS

Core pieces can be used without the MCP transport:
    from mcp_multi_edit.core.editor import apply_edits, simulate_edits
    from mcp_multi_edit.core.transaction import apply_all

Note: We intentionally do NOT re-export tool functions here to avoid
namespace shadowing issues (importing `from . import X` would get the
function, not the module, causing AttributeError when trying to access
`module.function`).
"""

__version__ = "0.1.0"
