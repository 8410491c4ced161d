"""Two-phase tool-augmented generation pipeline.

This package contains:
- The tool schema adapter (MCP manifest to function tools)
- The tool execution cycle (proposed tool calls to accumulated text)
- The two-phase generation pipeline and its run record
- The pipeline error hierarchy
"""

from .errors import (
    AnalysisFailure,
    DeadlineExceeded,
    DiscoveryFailure,
    ExecutionFailure,
    PipelineError,
    SelectionFailure,
    SetupFailure,
)
from .generation_pipeline import TwoPhaseGenerationPipeline
from .pipeline_config import PipelineConfig
from .pipeline_run import PipelineRun, PipelineState
from .tool_execution_cycle import ToolExecutionCycle
from .tool_schema_adapter import translate, translate_parameters, translate_tool

__all__ = [
    # Pipeline
    "TwoPhaseGenerationPipeline",
    "PipelineConfig",
    "PipelineRun",
    "PipelineState",
    # Components
    "ToolExecutionCycle",
    "translate",
    "translate_parameters",
    "translate_tool",
    # Errors
    "PipelineError",
    "SetupFailure",
    "DiscoveryFailure",
    "SelectionFailure",
    "ExecutionFailure",
    "AnalysisFailure",
    "DeadlineExceeded",
]
