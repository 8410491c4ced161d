"""LLM provider abstractions for tool-relay."""

from .llm_provider import (
    LlmConfig,
    LlmMessage,
    LlmMessageRole,
    LlmProvider,
    LlmProviderError,
    LlmResponse,
    LlmStreamChunk,
    LlmToolCall,
)

__all__ = [
    "LlmProvider",
    "LlmProviderError",
    "LlmConfig",
    "LlmMessage",
    "LlmMessageRole",
    "LlmResponse",
    "LlmStreamChunk",
    "LlmToolCall",
]
