"""Shared helpers: file I/O, configuration, MCP output wrapping."""
