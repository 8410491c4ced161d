"""Ollama LLM Provider implementation.

This module provides the Ollama implementation of the LlmProvider interface,
talking to the `/api/chat` endpoint of a local or remote Ollama instance.

Features:
- Unary (stream=false) and streaming (stream=true, NDJSON) chat completions
- Tool/function calling support on the unary call
- Per-call model selection (selector and analyst share one client)
- OpenTelemetry tracing and metrics
"""

import json
import logging
import time
from typing import Any, AsyncIterator, NoReturn, Optional, Sequence
from uuid import uuid4

import httpx
from opentelemetry import trace

from tool_relay.application.agents.llm_provider import (
    LlmConfig,
    LlmMessage,
    LlmProvider,
    LlmProviderError,
    LlmResponse,
    LlmStreamChunk,
    LlmToolCall,
)
from tool_relay.domain.models import FunctionToolSpec
from tool_relay.observability import llm_request_count, llm_request_time, llm_tool_calls

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

DEFAULT_OLLAMA_URL = "http://localhost:11434"


class OllamaError(LlmProviderError):
    """Ollama-specific error, a LlmProviderError with provider="ollama"."""

    def __init__(self, message: str, error_code: str, is_retryable: bool = False, details: Optional[dict] = None):
        super().__init__(
            message=message,
            error_code=error_code,
            provider="ollama",
            is_retryable=is_retryable,
            details=details,
        )


class OllamaLlmProvider(LlmProvider):
    """Ollama implementation of the LLM provider interface.

    Configuration:
        - base_url: Ollama API URL (default: http://localhost:11434)
        - model: Default model name (e.g., "qwen2.5:0.5b")
        - temperature: Sampling temperature
        - extra["repeat_last_n"]: Look-back window for repetition penalty
        - extra["num_ctx"]: Context window size (omitted when not set)

    Usage:
        config = LlmConfig(model="qwen2.5:0.5b", base_url="http://localhost:11434")
        async with OllamaLlmProvider(config) as provider:
            response = await provider.chat([LlmMessage.user("Hello!")])
    """

    def __init__(self, config: LlmConfig) -> None:
        super().__init__(config)
        self._base_url = (config.base_url or DEFAULT_OLLAMA_URL).rstrip("/")
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def base_url(self) -> str:
        return self._base_url

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._config.timeout,
            )
        return self._client

    def _build_options(self) -> dict[str, Any]:
        """Build the Ollama `options` object from the configuration."""
        options: dict[str, Any] = {"temperature": self._config.temperature}
        for key, value in self._config.extra.items():
            if value is not None:
                options[key] = value
        if self._config.max_tokens is not None:
            options["num_predict"] = self._config.max_tokens
        return options

    def _build_payload(
        self,
        model: str,
        messages: Sequence[LlmMessage],
        tools: Optional[Sequence[FunctionToolSpec]],
        stream: bool,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": model,
            "messages": [msg.to_dict() for msg in messages],
            "stream": stream,
            "options": self._build_options(),
        }
        if tools:
            payload["tools"] = [tool.to_dict() for tool in tools]
        return payload

    def _parse_tool_calls(self, ollama_tool_calls: Any) -> list[LlmToolCall]:
        """Parse tool calls from an Ollama message.

        A malformed list, entry or function object proposes nothing: such
        entries are skipped with a warning, never raised. Arguments normally
        arrive as an object; some models return them as a JSON-encoded
        string, which is decoded here. Anything that does not decode to an
        object becomes an empty argument set.
        """
        if ollama_tool_calls is None:
            return []
        if not isinstance(ollama_tool_calls, list):
            logger.warning(f"Ignoring malformed tool_calls from Ollama: {ollama_tool_calls!r}")
            return []

        tool_calls = []
        for tc in ollama_tool_calls:
            func = tc.get("function") if isinstance(tc, dict) else None
            if not isinstance(func, dict):
                logger.warning(f"Ignoring malformed tool call from Ollama: {tc!r}")
                continue
            name = func.get("name")
            if not isinstance(name, str) or not name:
                logger.warning(f"Ignoring tool call without a name: {tc!r}")
                continue

            arguments = func.get("arguments", {})
            if isinstance(arguments, str):
                try:
                    arguments = json.loads(arguments) if arguments.strip() else {}
                except json.JSONDecodeError:
                    logger.warning(f"Tool call '{name}' has undecodable arguments: {arguments[:200]!r}")
                    arguments = {}
            if not isinstance(arguments, dict):
                logger.warning(f"Tool call '{name}' arguments are not an object: {arguments!r}")
                arguments = {}

            call_id = tc.get("id")
            tool_calls.append(
                LlmToolCall(
                    id=call_id if isinstance(call_id, str) and call_id else str(uuid4()),
                    name=name,
                    arguments=arguments,
                )
            )
        return tool_calls

    def _raise_status_error(self, status_code: int, error_text: str, model: str) -> NoReturn:
        logger.error(f"Ollama HTTP error: {status_code} - {error_text}")
        if "not found" in error_text.lower() or status_code == 404:
            raise OllamaError(
                message=f"AI model '{model}' is not available",
                error_code="model_not_found",
                is_retryable=False,
                details={"model": model, "hint": f"Run: ollama pull {model}"},
            )
        raise OllamaError(
            message=f"AI model error: {error_text[:200]}",
            error_code="ollama_error",
            is_retryable=status_code >= 500,
            details={"status_code": status_code},
        )

    def _raise_transport_error(self, e: httpx.RequestError) -> NoReturn:
        if isinstance(e, httpx.ConnectError):
            logger.error(f"Cannot connect to Ollama at {self._base_url}: {e}")
            raise OllamaError(
                message="Cannot connect to AI model service",
                error_code="ollama_unavailable",
                is_retryable=True,
                details={"url": self._base_url},
            ) from e
        if isinstance(e, httpx.TimeoutException):
            logger.error(f"Ollama request timed out: {e}")
            raise OllamaError(
                message="AI model request timed out",
                error_code="ollama_timeout",
                is_retryable=True,
            ) from e
        logger.error(f"Ollama request error: {e}")
        raise OllamaError(
            message="Failed to communicate with AI model",
            error_code="ollama_request_error",
            is_retryable=True,
        ) from e

    async def chat(
        self,
        messages: Sequence[LlmMessage],
        tools: Optional[Sequence[FunctionToolSpec]] = None,
        model: Optional[str] = None,
    ) -> LlmResponse:
        """Send a unary chat completion request to Ollama.

        Raises:
            OllamaError: If Ollama is unavailable, the model is not found or
                the response cannot be decoded
        """
        client = await self._get_client()
        model = self.resolve_model(model)
        payload = self._build_payload(model, messages, tools, stream=False)
        start_time = time.time()

        llm_request_count.add(1, {"model": model, "has_tools": str(bool(tools)), "stream": "false"})

        with tracer.start_as_current_span("ollama.chat") as span:
            span.set_attribute("llm.model", model)
            span.set_attribute("llm.message_count", len(messages))
            span.set_attribute("llm.tool_count", len(tools) if tools else 0)
            span.set_attribute("llm.temperature", self._config.temperature)

            logger.debug(f"Ollama request: model={model}, messages={len(messages)}, tools={len(tools) if tools else 0}")
            try:
                response = await client.post("/api/chat", json=payload)
            except httpx.RequestError as e:
                span.set_attribute("error", True)
                span.set_attribute("error.message", str(e))
                self._raise_transport_error(e)

            if response.status_code != 200:
                span.set_attribute("error", True)
                self._raise_status_error(response.status_code, response.text, model)

            try:
                data = response.json()
            except ValueError as e:
                span.set_attribute("error", True)
                raise OllamaError(
                    message="AI model returned an invalid response",
                    error_code="ollama_invalid_response",
                    details={"body": response.text[:200]},
                ) from e
            if not isinstance(data, dict):
                span.set_attribute("error", True)
                raise OllamaError(
                    message="AI model returned an invalid response",
                    error_code="ollama_invalid_response",
                    details={"body": response.text[:200]},
                )

            message = data.get("message")
            if not isinstance(message, dict):
                if message is not None:
                    logger.warning(f"Ignoring malformed message from Ollama: {message!r}")
                message = {}
            content = message.get("content")
            if not isinstance(content, str):
                content = ""
            tool_calls = self._parse_tool_calls(message.get("tool_calls"))
            for tc in tool_calls:
                llm_tool_calls.add(1, {"model": model, "tool_name": tc.name})

            finish_reason = "tool_calls" if tool_calls else (data.get("done_reason") or "stop")

            duration_ms = (time.time() - start_time) * 1000
            llm_request_time.record(duration_ms, {"model": model})
            span.set_attribute("llm.duration_ms", duration_ms)
            span.set_attribute("llm.tool_call_count", len(tool_calls))
            span.set_attribute("llm.finish_reason", finish_reason)

            usage = None
            if "prompt_eval_count" in data or "eval_count" in data:
                usage = {
                    "prompt_tokens": data.get("prompt_eval_count", 0),
                    "completion_tokens": data.get("eval_count", 0),
                }

            return LlmResponse(
                content=content,
                tool_calls=tool_calls,
                finish_reason=finish_reason,
                usage=usage,
            )

    async def chat_stream(
        self,
        messages: Sequence[LlmMessage],
        tools: Optional[Sequence[FunctionToolSpec]] = None,
        model: Optional[str] = None,
    ) -> AsyncIterator[LlmStreamChunk]:
        """Send a streaming chat completion request to Ollama.

        Ollama answers with newline-delimited JSON objects, the last one
        carrying `done: true`.

        Yields:
            One chunk per content delta, then a final chunk with done=True

        Raises:
            OllamaError: If Ollama is unavailable or model is not found
        """
        client = await self._get_client()
        model = self.resolve_model(model)
        payload = self._build_payload(model, messages, tools, stream=True)
        start_time = time.time()

        llm_request_count.add(1, {"model": model, "has_tools": str(bool(tools)), "stream": "true"})

        with tracer.start_as_current_span("ollama.chat_stream") as span:
            span.set_attribute("llm.model", model)
            span.set_attribute("llm.message_count", len(messages))
            span.set_attribute("llm.temperature", self._config.temperature)

            logger.debug(f"Ollama stream request: model={model}, messages={len(messages)}")
            try:
                async with client.stream("POST", "/api/chat", json=payload) as response:
                    if response.status_code != 200:
                        error_content = await response.aread()
                        span.set_attribute("error", True)
                        self._raise_status_error(response.status_code, error_content.decode("utf-8", errors="replace"), model)

                    chunk_count = 0
                    async for line in response.aiter_lines():
                        if not line.strip():
                            continue

                        try:
                            chunk = json.loads(line)
                        except json.JSONDecodeError:
                            logger.warning(f"Failed to parse Ollama response line: {line[:200]}")
                            continue

                        if not isinstance(chunk, dict):
                            continue

                        if chunk.get("error"):
                            span.set_attribute("error", True)
                            raise OllamaError(
                                message=f"AI model error: {str(chunk['error'])[:200]}",
                                error_code="ollama_error",
                            )

                        chunk_count += 1
                        delta = chunk.get("message")
                        content = delta.get("content") if isinstance(delta, dict) else None
                        content = content if isinstance(content, str) else ""

                        if chunk.get("done", False):
                            duration_ms = (time.time() - start_time) * 1000
                            llm_request_time.record(duration_ms, {"model": model})
                            span.set_attribute("llm.duration_ms", duration_ms)
                            finish_reason = chunk.get("done_reason") or "stop"
                            span.set_attribute("llm.finish_reason", finish_reason)
                            logger.debug(f"Ollama stream completed: {chunk_count} chunks, finish_reason={finish_reason}")
                            yield LlmStreamChunk(content=content, done=True, finish_reason=finish_reason)
                            return

                        yield LlmStreamChunk(content=content, done=False)

                    logger.warning(f"Ollama stream ended without 'done' flag after {chunk_count} chunks")

            except httpx.RequestError as e:
                span.set_attribute("error", True)
                span.set_attribute("error.message", str(e))
                self._raise_transport_error(e)

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
        self._client = None
