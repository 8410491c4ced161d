"""Pipeline run state and record."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from tool_relay.domain.models import FunctionToolSpec, ToolInvocationRequest, ToolManifestEntry

from .errors import PipelineError


class PipelineState(str, Enum):
    """States of a two-phase generation run.

    SELECT -> EXECUTE -> ANALYZE -> DONE, any fatal condition -> FAILED.
    """

    SELECT = "select"
    EXECUTE = "execute"
    ANALYZE = "analyze"
    DONE = "done"
    FAILED = "failed"


@dataclass
class PipelineRun:
    """Record of one pipeline run, filled in as the run progresses.

    Attributes:
        task: The user task driving the run
        state: Current state
        server_name: MCP server name reported at initialization
        server_version: MCP server version reported at initialization
        manifest: Tools listed by the MCP server
        tools: Function tool specs handed to the selector model
        tool_calls: Tool calls proposed by the selector model
        accumulator: Concatenated text of the executed tools
        answer: Concatenated streamed answer of the analyst model
        error: The fatal error, when state is FAILED
    """

    task: str
    state: PipelineState = PipelineState.SELECT
    server_name: Optional[str] = None
    server_version: Optional[str] = None
    manifest: list[ToolManifestEntry] = field(default_factory=list)
    tools: list[FunctionToolSpec] = field(default_factory=list)
    tool_calls: list[ToolInvocationRequest] = field(default_factory=list)
    accumulator: str = ""
    answer: str = ""
    error: Optional[PipelineError] = None

    @property
    def succeeded(self) -> bool:
        return self.state is PipelineState.DONE

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logs and callers."""
        return {
            "task": self.task,
            "state": self.state.value,
            "server": {"name": self.server_name, "version": self.server_version},
            "tools": [tool.name for tool in self.tools],
            "tool_calls": [{"name": call.tool_name, "arguments": call.arguments} for call in self.tool_calls],
            "accumulator_length": len(self.accumulator),
            "answer_length": len(self.answer),
            "error": self.error.to_dict() if self.error else None,
        }
