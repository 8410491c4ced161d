"""Two-phase generation pipeline.

A run goes through two model phases around one round of tool execution:

1. SELECT: connect to the MCP server, list its tools, translate them into
   function tools and ask the selector model (unary call) which tools to
   call and with which arguments.
2. EXECUTE: run the proposed tool calls in order and accumulate their text.
3. ANALYZE: ask the analyst model (streaming call, no tools) to answer the
   task from the accumulated tool output, forwarding every chunk.

There is exactly one selection round: the analyst's answer is never fed
back to the selector.
"""

import asyncio
import logging
import time
from collections.abc import AsyncIterator, Callable
from contextlib import aclosing
from typing import Optional

from opentelemetry import trace

from tool_relay.application.agents.llm_provider import LlmMessage, LlmProvider, LlmProviderError
from tool_relay.domain.models import ToolInvocationRequest
from tool_relay.infrastructure.mcp import IMcpTransport, McpTransportError
from tool_relay.observability import pipeline_runs, tools_discovered

from .errors import (
    AnalysisFailure,
    DeadlineExceeded,
    DiscoveryFailure,
    PipelineError,
    SelectionFailure,
    SetupFailure,
)
from .pipeline_config import PipelineConfig
from .pipeline_run import PipelineRun, PipelineState
from .tool_execution_cycle import ToolExecutionCycle
from .tool_schema_adapter import translate

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class TwoPhaseGenerationPipeline:
    """Selector model picks tools, MCP runs them, analyst model streams the answer.

    The pipeline owns the MCP connection for the duration of one run: the
    transport is connected when the run starts and disconnected when it
    ends, whatever the outcome. The LLM provider belongs to the caller.

    Usage:
        async with OllamaLlmProvider(llm_config) as llm:
            pipeline = TwoPhaseGenerationPipeline(StdioTransport(command), llm, config)
            async for chunk in pipeline.stream("Fetch this page: ..."):
                print(chunk, end="", flush=True)
    """

    def __init__(
        self,
        transport: IMcpTransport,
        llm_provider: LlmProvider,
        config: Optional[PipelineConfig] = None,
    ):
        self._transport = transport
        self._llm = llm_provider
        self._config = config or PipelineConfig.default()

    @property
    def config(self) -> PipelineConfig:
        return self._config

    async def run(self, task: str, on_chunk: Optional[Callable[[str], None]] = None) -> PipelineRun:
        """Run the pipeline to completion.

        Args:
            task: The user task
            on_chunk: Called with every streamed chunk of the answer

        Returns:
            The run record, in state DONE or FAILED (with `error` set)
        """
        run = PipelineRun(task=task)
        try:
            async for chunk in self.stream(task, run):
                if on_chunk is not None:
                    on_chunk(chunk)
        except PipelineError as e:
            # stream() already moved the run to FAILED and logged the error
            run.error = e
        return run

    async def stream(self, task: str, run: Optional[PipelineRun] = None) -> AsyncIterator[str]:
        """Run the pipeline and yield the analyst's answer chunk by chunk.

        Args:
            task: The user task
            run: Optional record updated as the run progresses

        Yields:
            Non-empty text chunks of the final answer

        Raises:
            PipelineError: A subclass naming the failed phase
        """
        run = run if run is not None else PipelineRun(task=task)
        run.state = PipelineState.SELECT
        logger.info(f"Pipeline run started: tools_model={self._config.tools_model}, chat_model={self._config.chat_model}")

        try:
            try:
                async with asyncio.timeout(self._config.deadline_seconds):
                    await self._connect(run)
                    await self._discover(run)
                    invocations = await self._select(run)

                    self._transition(run, PipelineState.EXECUTE)
                    cycle = ToolExecutionCycle(self._transport, timeout=self._config.tool_call_timeout)
                    run.accumulator = await cycle.execute(invocations)
            except TimeoutError as e:
                logger.error(f"Pipeline deadline of {self._config.deadline_seconds}s exceeded during {run.state.value}")
                raise DeadlineExceeded(
                    message=f"Run deadline of {self._config.deadline_seconds}s exceeded",
                    phase=run.state.value,
                    is_retryable=True,
                    details={"deadline_seconds": self._config.deadline_seconds},
                ) from e

            self._transition(run, PipelineState.ANALYZE)
            async with aclosing(self._analyze(run)) as chunks:
                async for chunk in chunks:
                    yield chunk

            self._transition(run, PipelineState.DONE)
            logger.info(f"Pipeline run completed: {len(run.tool_calls)} tool calls, {len(run.answer)} characters answered")

        except PipelineError as e:
            self._fail(run, e)
            raise
        except Exception as e:
            error = PipelineError(
                message=f"Unexpected {type(e).__name__} during {run.state.value}: {e}",
                phase=run.state.value,
                details={"exception": type(e).__name__},
            )
            logger.exception(f"Unexpected error in pipeline phase {run.state.value}")
            self._fail(run, error)
            raise error from e
        finally:
            await self._transport.disconnect()
            pipeline_runs.add(1, {"state": run.state.value})

    async def _connect(self, run: PipelineRun) -> None:
        with tracer.start_as_current_span("pipeline.connect") as span:
            try:
                server_info = await self._transport.connect()
            except McpTransportError as e:
                span.set_attribute("error", True)
                raise SetupFailure(
                    message=f"Cannot start MCP server: {e}",
                    phase=run.state.value,
                    is_retryable=False,
                ) from e

            run.server_name = server_info.name
            run.server_version = server_info.version
            span.set_attribute("mcp.server_name", server_info.name)
            logger.info(f"MCP server: {server_info.name} v{server_info.version}")

    async def _discover(self, run: PipelineRun) -> None:
        with tracer.start_as_current_span("pipeline.discover") as span:
            try:
                definitions = await self._transport.list_tools()
            except McpTransportError as e:
                span.set_attribute("error", True)
                raise DiscoveryFailure(
                    message=f"Cannot list MCP tools: {e}",
                    phase=run.state.value,
                ) from e

            run.manifest = [definition.to_manifest_entry() for definition in definitions]
            run.tools = translate(run.manifest)
            tools_discovered.add(len(run.manifest))
            span.set_attribute("mcp.tool_count", len(run.manifest))

            for entry in run.manifest:
                logger.info(f"Tool available: {entry.name} - {entry.description}")

    async def _select(self, run: PipelineRun) -> list[ToolInvocationRequest]:
        messages = [
            LlmMessage.system(self._config.selection_system_prompt),
            LlmMessage.user(run.task),
        ]

        with tracer.start_as_current_span("pipeline.select") as span:
            span.set_attribute("llm.model", self._config.tools_model)
            logger.debug(f"Selection prompt: {run.task!r}")
            try:
                response = await self._llm.chat(messages, tools=run.tools, model=self._config.tools_model)
            except LlmProviderError as e:
                span.set_attribute("error", True)
                raise SelectionFailure(
                    message=f"Tool selection failed: {e.message}",
                    phase=run.state.value,
                    is_retryable=e.is_retryable,
                    details=e.to_dict(),
                ) from e

            run.tool_calls = [
                ToolInvocationRequest(tool_name=call.name, arguments=call.arguments, call_id=call.id)
                for call in (response.tool_calls or [])
            ]
            span.set_attribute("llm.tool_call_count", len(run.tool_calls))

        if not run.tool_calls:
            logger.info("Selector model proposed no tool call")
        for call in run.tool_calls:
            logger.info(f"Selector model proposed: {call.tool_name}({call.arguments})")
        return run.tool_calls

    async def _analyze(self, run: PipelineRun) -> AsyncIterator[str]:
        messages = [
            LlmMessage.system(self._config.analysis_system_prompt),
            LlmMessage.user(run.task),
            LlmMessage.user(run.accumulator),
        ]
        start_time = time.time()

        try:
            async with aclosing(self._llm.chat_stream(messages, model=self._config.chat_model)) as stream:
                async for chunk in stream:
                    if not chunk.content:
                        continue
                    run.answer += chunk.content
                    yield chunk.content
        except LlmProviderError as e:
            raise AnalysisFailure(
                message=f"Analysis failed: {e.message}",
                phase=run.state.value,
                is_retryable=e.is_retryable,
                details={**e.to_dict(), "streamed_characters": len(run.answer)},
            ) from e

        logger.debug(f"Analysis streamed in {(time.time() - start_time) * 1000:.2f}ms")

    def _fail(self, run: PipelineRun, error: PipelineError) -> None:
        run.error = error
        self._transition(run, PipelineState.FAILED)
        logger.error(f"Pipeline run failed in {error.phase}: {error.message}")

    def _transition(self, run: PipelineRun, state: PipelineState) -> None:
        logger.info(f"Pipeline state: {run.state.value} -> {state.value}")
        run.state = state
