"""Infrastructure adapters for tool-relay."""

from .ollama_llm_provider import OllamaError, OllamaLlmProvider

__all__ = [
    "OllamaError",
    "OllamaLlmProvider",
]
