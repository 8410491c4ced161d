"""Minimal MCP server speaking JSON-RPC over stdio, used by the tests.

Tools:
    use_curl    returns "fetched: <url>" as a text block
    snapshot    returns an image block (no text)
    whoami      returns the initialize params and whether the initialized notification arrived
    broken      answers with a JSON-RPC error
    scalar      answers with a result that is a string instead of an object

FAKE_MCP_MODE selects a misbehaviour:
    exit_on_init    exit with code 3 before answering initialize
    silent_tools    never answer tools/call
    odd_server_info answer initialize with a serverInfo that is not an object
"""

import json
import os
import sys

MODE = os.environ.get("FAKE_MCP_MODE", "")

TOOLS = [
    {
        "name": "use_curl",
        "description": "fetch this webpage",
        "inputSchema": {
            "type": "object",
            "required": ["url"],
            "properties": {"url": {"type": "string", "description": "url of the webpage to fetch"}},
        },
    },
    {"name": "snapshot", "description": "take a snapshot", "inputSchema": {"type": "object", "properties": {}}},
    {"name": "whoami", "description": "describe the client", "inputSchema": {"type": "object"}},
    {"name": "broken", "description": "always fails", "inputSchema": {"type": "object"}},
    {"name": "scalar", "description": "malformed result", "inputSchema": {"type": "object"}},
]


def send(message):
    sys.stdout.write(json.dumps(message) + "\n")
    sys.stdout.flush()


def main():
    sys.stderr.write("fake-mcp starting\n")
    sys.stderr.flush()

    init_params = {}
    initialized = False

    while True:
        line = sys.stdin.readline()
        if not line:
            break
        if not line.strip():
            continue
        message = json.loads(line)
        method = message.get("method")

        if "id" not in message:
            if method == "notifications/initialized":
                initialized = True
            continue

        request_id = message["id"]
        params = message.get("params") or {}

        if method == "initialize":
            if MODE == "exit_on_init":
                sys.exit(3)
            init_params = params
            send(
                {
                    "jsonrpc": "2.0",
                    "id": request_id,
                    "result": {
                        "protocolVersion": "2024-11-05",
                        "capabilities": {"tools": {}},
                        "serverInfo": "fake-mcp" if MODE == "odd_server_info" else {"name": "fake-mcp", "version": "0.1.0"},
                    },
                }
            )
        elif method == "tools/list":
            send({"jsonrpc": "2.0", "method": "notifications/message", "params": {"level": "info", "data": "listing"}})
            send({"jsonrpc": "2.0", "id": request_id, "result": {"tools": TOOLS}})
        elif method == "tools/call":
            if MODE == "silent_tools":
                continue
            name = params.get("name")
            arguments = params.get("arguments") or {}
            if name == "use_curl":
                result = {"content": [{"type": "text", "text": f"fetched: {arguments.get('url')}"}]}
            elif name == "snapshot":
                result = {"content": [{"type": "image", "data": "iVBORw0KGgo=", "mimeType": "image/png"}]}
            elif name == "scalar":
                send({"jsonrpc": "2.0", "id": request_id, "result": "done"})
                continue
            elif name == "whoami":
                text = json.dumps({"init": init_params, "initialized": initialized})
                result = {"content": [{"type": "text", "text": text}]}
            else:
                send({"jsonrpc": "2.0", "id": request_id, "error": {"code": -32602, "message": f"Unknown tool: {name}"}})
                continue
            send({"jsonrpc": "2.0", "id": request_id, "result": result})
        else:
            send({"jsonrpc": "2.0", "id": request_id, "error": {"code": -32601, "message": f"Method not found: {method}"}})


if __name__ == "__main__":
    main()
