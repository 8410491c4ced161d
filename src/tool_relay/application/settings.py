"""Application settings configuration for tool-relay."""

from neuroglia.hosting.abstractions import ApplicationSettings
from pydantic_settings import SettingsConfigDict

from tool_relay.application.pipeline.pipeline_config import (
    DEFAULT_ANALYSIS_SYSTEM_PROMPT,
    DEFAULT_CHAT_MODEL,
    DEFAULT_DEADLINE_SECONDS,
    DEFAULT_SELECTION_SYSTEM_PROMPT,
    DEFAULT_TOOLS_MODEL,
)


class Settings(ApplicationSettings):
    """tool-relay settings, read from the environment (and .env) once at startup."""

    # Logging Configuration
    log_level: str = "INFO"
    log_file: str | None = None  # File logging is enabled when set

    # ==========================================================================
    # Ollama LLM Configuration
    # ==========================================================================
    # Env names have no prefix: OLLAMA_HOST, TOOLS_LLM, CHAT_LLM
    ollama_host: str = "http://localhost:11434"
    tools_llm: str = DEFAULT_TOOLS_MODEL  # Selector model (unary call with tools)
    chat_llm: str = DEFAULT_CHAT_MODEL  # Analyst model (streamed answer)
    ollama_timeout: float = 120.0  # HTTP timeout, the analyst can take a while to stream
    ollama_temperature: float = 0.0
    ollama_repeat_last_n: int = 2
    ollama_num_ctx: int | None = None  # Model default when unset

    # ==========================================================================
    # MCP Server Configuration
    # ==========================================================================
    # Set via MCP_SERVER_COMMAND as a JSON array, e.g. '["docker", "run", "--rm", "-i", "mcp-curl"]'
    mcp_server_command: list[str] = ["docker", "run", "--rm", "-i", "mcp-curl"]
    mcp_client_name: str = "tool-relay"
    mcp_client_version: str = "1.0.0"
    mcp_request_timeout: float = 30.0

    # ==========================================================================
    # Pipeline Configuration
    # ==========================================================================
    run_deadline_seconds: float = DEFAULT_DEADLINE_SECONDS  # Bounds everything before the analysis phase
    default_task: str = "Fetch this page: https://raw.githubusercontent.com/docker-sa/01-build-image/refs/heads/main/main.go and then analyse the source code."
    selection_system_prompt: str = DEFAULT_SELECTION_SYSTEM_PROMPT
    analysis_system_prompt: str = DEFAULT_ANALYSIS_SYSTEM_PROMPT

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")


app_settings = Settings()
