"""MCP over a child process's stdin/stdout.

Each JSON-RPC message is one line of UTF-8 JSON. The child is typically a
containerised tool server such as `docker run --rm -i mcp-curl`; anything
it writes to stderr is relayed to the log as warnings.
"""

import asyncio
import json
import logging
import os
from typing import Any

from .models import (
    PROTOCOL_VERSION,
    McpNotification,
    McpRequest,
    McpResponse,
    McpServerInfo,
    McpToolCall,
    McpToolDefinition,
    McpToolResult,
)
from .transport import IMcpTransport, McpConnectionError, McpProtocolError, McpTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0  # seconds
HANDSHAKE_TIMEOUT = 10.0  # seconds
SHUTDOWN_GRACE = 2.0  # seconds between terminate() and kill()

# A fetched web page comes back as a single JSON line
STREAM_LIMIT = 16 * 1024 * 1024

DEFAULT_CLIENT_NAME = "tool-relay"
DEFAULT_CLIENT_VERSION = "1.0.0"


class StdioTransport(IMcpTransport):
    """Runs an MCP server as a subprocess and talks JSON-RPC over its pipes.

    Requests are strictly sequential: one request is written, then stdout is
    read until the response carrying the same id shows up. Server
    notifications and stray responses seen meanwhile are dropped.

    Usage:
        transport = StdioTransport(["docker", "run", "--rm", "-i", "mcp-curl"])
        server = await transport.connect()
        try:
            result = await transport.call_tool("use_curl", {"url": url})
        finally:
            await transport.disconnect()
    """

    def __init__(
        self,
        command: list[str],
        environment: dict[str, str] | None = None,
        cwd: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        client_name: str = DEFAULT_CLIENT_NAME,
        client_version: str = DEFAULT_CLIENT_VERSION,
    ):
        """
        Args:
            command: Program and arguments of the MCP server
            environment: Extra variables layered over the current environment
            cwd: Working directory of the child process
            timeout: Default per-request timeout in seconds
            client_name: Announced as clientInfo.name during initialize
            client_version: Announced as clientInfo.version during initialize
        """
        if not command:
            raise ValueError("Command cannot be empty")

        self._command = list(command)
        self._environment = environment or {}
        self._cwd = cwd
        self._timeout = timeout
        self._client_name = client_name
        self._client_version = client_version

        self._process: asyncio.subprocess.Process | None = None
        self._stderr_task: asyncio.Task[None] | None = None
        self._next_id = 0

    @property
    def is_connected(self) -> bool:
        return self._process is not None and self._process.returncode is None

    async def connect(self) -> McpServerInfo:
        if self._process is not None:
            raise McpConnectionError("Transport already connected")

        self._process = await self._spawn()
        self._stderr_task = asyncio.create_task(self._relay_stderr(self._process))

        try:
            server_info = await self._handshake()
        except BaseException:
            await self.disconnect()
            raise

        logger.info(f"MCP transport connected to {server_info.name} v{server_info.version}")
        return server_info

    async def disconnect(self) -> None:
        await self._stop_stderr_relay()

        process, self._process = self._process, None
        if process is None:
            return
        try:
            await self._stop_process(process)
        except ProcessLookupError:
            pass
        logger.debug("MCP transport disconnected")

    async def list_tools(self) -> list[McpToolDefinition]:
        self._ensure_connected()

        result = await self._request("tools/list", {})
        entries = result.get("tools", [])
        if not isinstance(entries, list):
            raise McpProtocolError(f"Invalid tools/list payload: {type(entries).__name__}")
        return [McpToolDefinition.from_dict(entry) for entry in entries if isinstance(entry, dict)]

    async def call_tool(
        self,
        tool_name: str,
        arguments: dict[str, Any],
        timeout: float | None = None,
    ) -> McpToolResult:
        self._ensure_connected()

        params = McpToolCall(name=tool_name, arguments=arguments).to_params()
        result = await self._request("tools/call", params, timeout=timeout)
        return McpToolResult.from_dict(result)

    async def _spawn(self) -> asyncio.subprocess.Process:
        logger.debug(f"Spawning MCP server: {' '.join(self._command)}")
        try:
            return await asyncio.create_subprocess_exec(
                *self._command,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env={**os.environ, **self._environment},
                cwd=self._cwd,
                limit=STREAM_LIMIT,
            )
        except FileNotFoundError as e:
            raise McpConnectionError(f"MCP server command not found: {self._command[0]}", e) from e
        except OSError as e:
            raise McpConnectionError(f"Failed to spawn MCP server: {e}", e) from e

    async def _handshake(self) -> McpServerInfo:
        client_info = {"name": self._client_name, "version": self._client_version}
        result = await self._request(
            "initialize",
            {"protocolVersion": PROTOCOL_VERSION, "capabilities": {}, "clientInfo": client_info},
            timeout=HANDSHAKE_TIMEOUT,
        )
        await self._write(McpNotification(method="notifications/initialized").to_dict())
        return McpServerInfo.from_dict(result)

    async def _stop_stderr_relay(self) -> None:
        task, self._stderr_task = self._stderr_task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    @staticmethod
    async def _stop_process(process: asyncio.subprocess.Process) -> None:
        # Closing stdin lets well-behaved servers exit on EOF before the signal
        if process.stdin is not None and not process.stdin.is_closing():
            process.stdin.close()
        process.terminate()
        try:
            await asyncio.wait_for(process.wait(), timeout=SHUTDOWN_GRACE)
        except TimeoutError:
            process.kill()
            await process.wait()

    def _ensure_connected(self) -> None:
        if not self.is_connected:
            raise McpConnectionError("Transport not connected")

    async def _request(self, method: str, params: dict[str, Any], timeout: float | None = None) -> dict[str, Any]:
        """Send one request and return its `result` object.

        Raises:
            McpConnectionError: The pipe broke or the server exited
            McpProtocolError: JSON-RPC error, or a result that is not an object
            McpTimeoutError: No matching response within the timeout
        """
        self._next_id += 1
        request = McpRequest(id=self._next_id, method=method, params=params)
        logger.debug(f"MCP request: {method} (id={request.id})")
        await self._write(request.to_dict())

        limit = timeout or self._timeout
        try:
            response = await asyncio.wait_for(self._read_response(request.id), timeout=limit)
        except TimeoutError:
            raise McpTimeoutError(f"MCP server did not respond to {method} within {limit}s")

        if response.error is not None:
            raise McpProtocolError(f"MCP error ({response.error.code}): {response.error.message}")
        if response.result is None:
            return {}
        if not isinstance(response.result, dict):
            raise McpProtocolError(f"MCP {method} result is not an object: {type(response.result).__name__}")
        return response.result

    async def _write(self, message: dict[str, Any]) -> None:
        if self._process is None or self._process.stdin is None:
            raise McpConnectionError("Transport not connected")
        try:
            self._process.stdin.write((json.dumps(message) + "\n").encode("utf-8"))
            await self._process.stdin.drain()
        except (BrokenPipeError, ConnectionResetError) as e:
            raise McpConnectionError("MCP server connection lost", e) from e

    async def _read_response(self, request_id: int) -> McpResponse:
        assert self._process is not None and self._process.stdout is not None
        stdout = self._process.stdout

        while True:
            try:
                line = await stdout.readline()
            except ValueError as e:
                raise McpProtocolError(f"MCP message exceeds {STREAM_LIMIT} bytes", e) from e

            if not line:
                code = self._process.returncode
                if code is not None:
                    raise McpConnectionError(f"MCP server exited with code {code}")
                raise McpConnectionError("MCP server closed connection unexpectedly")

            try:
                message = json.loads(line.decode("utf-8"))
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                raise McpProtocolError(f"Invalid JSON from MCP server: {line[:100]!r}", e) from e
            if not isinstance(message, dict):
                raise McpProtocolError(f"Unexpected JSON-RPC message: {line[:100]!r}")

            if "method" in message:
                logger.debug(f"Skipping MCP server message: {message['method']}")
                continue
            response = McpResponse.from_dict(message)
            if response.id == request_id:
                return response
            logger.debug(f"Skipping MCP response with unexpected id={response.id}")

    @staticmethod
    async def _relay_stderr(process: asyncio.subprocess.Process) -> None:
        if process.stderr is None:
            return
        try:
            async for line in process.stderr:
                logger.warning(f"MCP stderr: {line.decode('utf-8', errors='replace').rstrip()}")
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.debug(f"Stopped relaying MCP stderr: {e}")

    def __repr__(self) -> str:
        state = "connected" if self.is_connected else "disconnected"
        return f"<StdioTransport({' '.join(self._command)}) [{state}]>"
