"""Tool Relay: MCP tool discovery chained into a two-phase Ollama generation."""

__version__ = "1.0.0"
