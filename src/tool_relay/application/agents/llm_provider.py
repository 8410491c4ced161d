"""Chat-model contract used by the generation pipeline.

A run talks to two models through one provider: the selector gets a unary
call with function tools, the analyst a streaming call without tools. Every
call names its model, so a single HTTP client serves both.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, AsyncIterator, Optional, Sequence

from tool_relay.domain.models import FunctionToolSpec


class LlmProviderError(Exception):
    """A chat call failed.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable category (model_not_found, ollama_timeout, ...)
        provider: Backend that raised it
        is_retryable: Whether the same call may succeed later
        details: Extra context for logs
    """

    def __init__(
        self,
        message: str,
        error_code: str,
        provider: str,
        is_retryable: bool = False,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.provider = provider
        self.is_retryable = is_retryable
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "error_code": self.error_code,
            "provider": self.provider,
            "is_retryable": self.is_retryable,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.provider}:{self.error_code}: {self.message})"


class LlmMessageRole(str, Enum):
    """Roles of the turns tool-relay sends; the pipeline never replays model turns."""

    SYSTEM = "system"
    USER = "user"


@dataclass(frozen=True)
class LlmMessage:
    """One chat turn."""

    role: LlmMessageRole
    content: str

    def to_dict(self) -> dict[str, Any]:
        return {"role": self.role.value, "content": self.content}

    @classmethod
    def system(cls, content: str) -> "LlmMessage":
        return cls(role=LlmMessageRole.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> "LlmMessage":
        return cls(role=LlmMessageRole.USER, content=content)


@dataclass
class LlmToolCall:
    """A function call proposed by the selector model."""

    id: str
    name: str
    arguments: dict[str, Any]


@dataclass
class LlmResponse:
    """Result of a unary call.

    Attributes:
        content: Assistant text, often empty when tools are proposed
        tool_calls: Proposed calls in model order; empty means no tool is needed
        finish_reason: "tool_calls" when calls were proposed, else the backend's reason
        usage: Token counts when the backend reports them
    """

    content: str
    tool_calls: list[LlmToolCall] = field(default_factory=list)
    finish_reason: str = "stop"
    usage: Optional[dict[str, int]] = None


@dataclass
class LlmStreamChunk:
    """A text delta of a streaming call; the last chunk has done=True."""

    content: str = ""
    done: bool = False
    finish_reason: Optional[str] = None


@dataclass
class LlmConfig:
    """Provider settings shared by every call.

    Attributes:
        model: Model used when a call does not name one
        temperature: Sampling temperature, 0.0 for reproducible selection
        max_tokens: Generation cap, None for the model default
        timeout: HTTP timeout in seconds; bounds the whole analysis stream
        base_url: Backend URL
        extra: Backend options merged into every request, None values skipped
               (e.g. {"repeat_last_n": 2, "num_ctx": 8192} for Ollama)
    """

    model: str
    temperature: float = 0.0
    max_tokens: Optional[int] = None
    timeout: float = 120.0
    base_url: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict)


class LlmProvider(ABC):
    """Backend-neutral chat client.

    Usage:
        async with OllamaLlmProvider(config) as provider:
            response = await provider.chat(messages, tools=specs, model="qwen2.5:0.5b")
            async for chunk in provider.chat_stream(messages, model="qwen2.5-coder:3b"):
                ...
    """

    def __init__(self, config: LlmConfig) -> None:
        self._config = config

    @property
    def model(self) -> str:
        return self._config.model

    def resolve_model(self, model: Optional[str] = None) -> str:
        return model or self._config.model

    @abstractmethod
    async def chat(
        self,
        messages: Sequence[LlmMessage],
        tools: Optional[Sequence[FunctionToolSpec]] = None,
        model: Optional[str] = None,
    ) -> LlmResponse:
        """Complete the conversation in one response.

        Raises:
            LlmProviderError: The backend could not produce a response
        """

    @abstractmethod
    def chat_stream(
        self,
        messages: Sequence[LlmMessage],
        tools: Optional[Sequence[FunctionToolSpec]] = None,
        model: Optional[str] = None,
    ) -> AsyncIterator[LlmStreamChunk]:
        """Complete the conversation as a stream of chunks (an async generator).

        Raises:
            LlmProviderError: Before or during the stream
        """

    @abstractmethod
    async def close(self) -> None:
        """Release the HTTP client."""

    async def __aenter__(self) -> "LlmProvider":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
