"""tool-relay command line.

Commands:
    run [TASK]                  Two-phase pipeline: select tools, execute them, stream the analysis
    tools                       List the MCP server's tools and their function-calling specs
    call NAME [--args JSON]     Call one MCP tool directly and print its text result

Configuration is read from the environment (and .env): OLLAMA_HOST,
TOOLS_LLM, CHAT_LLM, MCP_SERVER_COMMAND, LOG_LEVEL, ...
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional, Sequence

from tool_relay import __version__
from tool_relay.application.agents.llm_provider import LlmConfig
from tool_relay.application.pipeline import (
    PipelineConfig,
    PipelineError,
    ToolExecutionCycle,
    TwoPhaseGenerationPipeline,
    translate,
)
from tool_relay.application.services.logger import configure_logging
from tool_relay.application.settings import Settings
from tool_relay.domain.models import ToolInvocationRequest
from tool_relay.infrastructure.adapters import OllamaLlmProvider
from tool_relay.infrastructure.mcp import McpTransportError, StdioTransport

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2


def build_transport(settings: Settings) -> StdioTransport:
    """Create the MCP stdio transport described by the settings."""
    return StdioTransport(
        command=settings.mcp_server_command,
        timeout=settings.mcp_request_timeout,
        client_name=settings.mcp_client_name,
        client_version=settings.mcp_client_version,
    )


def build_llm_config(settings: Settings) -> LlmConfig:
    """Create the Ollama provider configuration described by the settings."""
    return LlmConfig(
        model=settings.tools_llm,
        temperature=settings.ollama_temperature,
        timeout=settings.ollama_timeout,
        base_url=settings.ollama_host,
        extra={
            "repeat_last_n": settings.ollama_repeat_last_n,
            "num_ctx": settings.ollama_num_ctx,
        },
    )


async def run_pipeline(settings: Settings, task: str) -> int:
    async with OllamaLlmProvider(build_llm_config(settings)) as llm:
        pipeline = TwoPhaseGenerationPipeline(
            transport=build_transport(settings),
            llm_provider=llm,
            config=PipelineConfig.from_settings(settings),
        )
        run = await pipeline.run(task, on_chunk=lambda chunk: print(chunk, end="", flush=True))

    if run.answer:
        print()
    if run.error is not None:
        print(f"❌ {run.error.error_code} ({run.error.phase}): {run.error.message}", file=sys.stderr)
        return EXIT_FAILED
    return EXIT_OK


async def list_tools(settings: Settings) -> int:
    transport = build_transport(settings)
    try:
        server_info = await transport.connect()
        definitions = await transport.list_tools()
    except McpTransportError as e:
        print(f"❌ MCP server error: {e}", file=sys.stderr)
        return EXIT_FAILED
    finally:
        await transport.disconnect()

    print(f"🚀 MCP server: {server_info.name} v{server_info.version}")
    manifest = [definition.to_manifest_entry() for definition in definitions]
    for definition in definitions:
        print(f"🛠️ {definition.name}: {definition.description}")
        properties = definition.get_properties()
        if isinstance(properties, dict):
            for name, prop in properties.items():
                print(f"    - {name}: {prop}")

    print(json.dumps([spec.to_dict() for spec in translate(manifest)], indent=2))
    return EXIT_OK


async def call_tool(settings: Settings, tool_name: str, arguments: dict) -> int:
    transport = build_transport(settings)
    try:
        await transport.connect()
        text = await ToolExecutionCycle(transport).execute([ToolInvocationRequest(tool_name=tool_name, arguments=arguments)])
    except McpTransportError as e:
        print(f"❌ MCP server error: {e}", file=sys.stderr)
        return EXIT_FAILED
    except PipelineError as e:
        print(f"❌ {e.error_code}: {e.message}", file=sys.stderr)
        return EXIT_FAILED
    finally:
        await transport.disconnect()

    print(f"🌍 result of {tool_name}:")
    print(text)
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tool-relay",
        description="Let a small model pick MCP tools, run them, and stream an analysis of their output.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--log-level", help="Override LOG_LEVEL (DEBUG, INFO, WARNING, ...)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run the two-phase pipeline on a task")
    run_parser.add_argument("task", nargs="?", help="User task (defaults to DEFAULT_TASK)")

    subparsers.add_parser("tools", help="List the MCP server's tools")

    call_parser = subparsers.add_parser("call", help="Call one MCP tool directly")
    call_parser.add_argument("name", help="Tool name")
    call_parser.add_argument("--args", default="{}", help="Tool arguments as a JSON object")

    return parser


def main(argv: Optional[Sequence[str]] = None, settings: Optional[Settings] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if settings is None:
        from tool_relay.application.settings import app_settings

        settings = app_settings

    configure_logging(
        log_level=args.log_level or settings.log_level,
        file=settings.log_file is not None,
        filename=settings.log_file or "",
    )

    if args.command == "run":
        return asyncio.run(run_pipeline(settings, args.task or settings.default_task))

    if args.command == "tools":
        return asyncio.run(list_tools(settings))

    try:
        arguments = json.loads(args.args)
    except json.JSONDecodeError as e:
        print(f"❌ --args is not valid JSON: {e}", file=sys.stderr)
        return EXIT_USAGE
    if not isinstance(arguments, dict):
        print("❌ --args must be a JSON object", file=sys.stderr)
        return EXIT_USAGE
    return asyncio.run(call_tool(settings, args.name, arguments))


if __name__ == "__main__":
    sys.exit(main())
