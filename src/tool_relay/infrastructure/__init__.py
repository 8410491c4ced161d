"""Infrastructure layer: MCP transport and LLM provider adapters."""
