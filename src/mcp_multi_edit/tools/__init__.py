"""MCP tool implementations (transport-independent)."""
