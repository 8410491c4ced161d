"""Pipeline configuration.

Holds everything a pipeline run needs to know: which model plays which
role, the system prompts of both phases and the run deadline.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from tool_relay.application.settings import Settings

DEFAULT_TOOLS_MODEL = "qwen2.5:0.5b"
DEFAULT_CHAT_MODEL = "qwen2.5-coder:3b"
DEFAULT_DEADLINE_SECONDS = 30.0

DEFAULT_SELECTION_SYSTEM_PROMPT = (
    "You are a useful AI agent. Your job is to understand the user prompt and decide "
    "if you need to use a tool to run external commands. "
    "Ignore all things not related to the usage of a tool."
)

DEFAULT_ANALYSIS_SYSTEM_PROMPT = (
    "You are a useful AI agent. Your job is to answer the user prompt. "
    "If you detect that the user prompt is related to a tool, "
    "ignore this part and focus on the other parts."
)


@dataclass(frozen=True)
class PipelineConfig:
    """Configuration for a two-phase generation run.

    Attributes:
        tools_model: Selector model, asked (unary, with tools) which tool to call
        chat_model: Analyst model, streams the final answer from the tool output
        selection_system_prompt: System prompt of the selection phase
        analysis_system_prompt: System prompt of the analysis phase
        deadline_seconds: Bound on connect, discovery, selection and execution
        tool_call_timeout: Per tool call timeout (None = transport default)
    """

    tools_model: str = DEFAULT_TOOLS_MODEL
    chat_model: str = DEFAULT_CHAT_MODEL
    selection_system_prompt: str = DEFAULT_SELECTION_SYSTEM_PROMPT
    analysis_system_prompt: str = DEFAULT_ANALYSIS_SYSTEM_PROMPT
    deadline_seconds: float = DEFAULT_DEADLINE_SECONDS
    tool_call_timeout: Optional[float] = None

    @classmethod
    def default(cls) -> "PipelineConfig":
        """Create a default pipeline configuration."""
        return cls()

    @classmethod
    def from_settings(cls, settings: "Settings") -> "PipelineConfig":
        """Build the per-run configuration from the application settings."""
        return cls(
            tools_model=settings.tools_llm,
            chat_model=settings.chat_llm,
            selection_system_prompt=settings.selection_system_prompt,
            analysis_system_prompt=settings.analysis_system_prompt,
            deadline_seconds=settings.run_deadline_seconds,
            tool_call_timeout=settings.mcp_request_timeout,
        )
