"""Pipeline error hierarchy.

Every fatal condition of a pipeline run surfaces as a PipelineError
subclass carrying the phase it happened in. The lower-level error
(MCP transport or LLM provider) is kept as `__cause__`.
"""

from typing import Any, Optional


class PipelineError(Exception):
    """Base error class for pipeline failures.

    Attributes:
        message: Human-readable error message
        error_code: Categorized error code for programmatic handling
        phase: Pipeline state in which the failure happened
        is_retryable: Whether the run might succeed if started again
        details: Additional error context
    """

    error_code = "pipeline_error"

    def __init__(
        self,
        message: str,
        phase: str,
        is_retryable: bool = False,
        details: Optional[dict[str, Any]] = None,
        error_code: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.phase = phase
        self.is_retryable = is_retryable
        self.details = details or {}
        if error_code is not None:
            self.error_code = error_code

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logs and callers."""
        return {
            "message": self.message,
            "error_code": self.error_code,
            "phase": self.phase,
            "is_retryable": self.is_retryable,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.phase}:{self.error_code}: {self.message})"


class SetupFailure(PipelineError):
    """The MCP server could not be spawned or initialized."""

    error_code = "setup_failure"


class DiscoveryFailure(PipelineError):
    """tools/list failed."""

    error_code = "discovery_failure"


class SelectionFailure(PipelineError):
    """The unary call to the selector model failed."""

    error_code = "selection_failure"


class ExecutionFailure(PipelineError):
    """A tool call failed or returned a result without a leading text block."""

    error_code = "execution_failure"


class AnalysisFailure(PipelineError):
    """The streaming call to the analyst model failed.

    Chunks streamed before the failure have already been delivered.
    """

    error_code = "analysis_failure"


class DeadlineExceeded(PipelineError):
    """The run deadline expired before the analysis phase."""

    error_code = "deadline_exceeded"
