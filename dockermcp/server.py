"""MCP server exposing Docker management tools over JSON-RPC on stdio."""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import dataclass, field
from typing import Any, Callable, TextIO

from dockermcp.handlers import Handler
from dockermcp.responses import CallToolResult

logger = logging.getLogger(__name__)

SERVER_NAME = "docker-mcp"
SERVER_VERSION = "1.0.0"
PROTOCOL_VERSION = "2024-11-05"

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


class ToolNotFoundError(LookupError):
    """Raised when a tool call names a tool that is not registered."""


class _RpcError(Exception):
    def __init__(self, code: int, message: str) -> None:
        super().__init__(message)
        self.code = code


@dataclass
class Tool:
    """A registered tool: its schema and the handler that serves it."""

    name: str
    description: str
    handler: Callable[[dict[str, Any]], CallToolResult]
    properties: dict[str, dict[str, Any]] = field(default_factory=dict)
    required: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Return the tool description in its MCP wire shape."""
        schema: dict[str, Any] = {
            "type": "object",
            "properties": {name: dict(prop) for name, prop in self.properties.items()},
        }
        if self.required:
            schema["required"] = list(self.required)
        return {"name": self.name, "description": self.description, "inputSchema": schema}


def _param(name: str, kind: str, description: str, *, required: bool = False,
           **extra: Any) -> tuple[str, dict[str, Any], bool]:
    schema: dict[str, Any] = {"type": kind, "description": description}
    schema.update(extra)
    return name, schema, required


def _tool(name: str, description: str, handler: Callable[[dict[str, Any]], CallToolResult],
          *params: tuple[str, dict[str, Any], bool]) -> Tool:
    return Tool(
        name=name,
        description=description,
        handler=handler,
        properties={pname: schema for pname, schema, _ in params},
        required=[pname for pname, _, req in params if req],
    )


def build_tools(handler: Handler) -> list[Tool]:
    """Return every Docker tool, bound to the given handler, in registration order."""
    return [
        _tool(
            "list_containers",
            "List all running Docker containers with their IDs, names, images, and status. "
            "Returns array of container objects.",
            handler.handle_list_containers,
            _param("all", "boolean", "Show all containers (default shows just running)",
                   default=False),
        ),
        _tool(
            "exec_command",
            "Execute a shell command in a specified container. Requires container_id and "
            "command parameters. Returns command output.",
            handler.handle_exec_command,
            _param("container_id", "string", "Container ID (string)", required=True),
            _param("command", "string", "Command to execute (string)", required=True),
        ),
        _tool(
            "pull_image",
            "Pull Docker image from registry. Requires image_name parameter (format: name:tag). "
            "Returns streaming progress updates.",
            handler.handle_pull_image,
            _param("image_name", "string", "Image name with tag (string)", required=True),
        ),
        _tool(
            "list_images",
            "List all locally stored Docker images. Returns array of image objects with ID, "
            "tags, size and creation time.",
            handler.handle_list_images,
            _param("all", "boolean", "Show all images (default hides intermediate images)",
                   default=False),
        ),
        _tool(
            "search",
            "Search for Docker images on Docker Hub. Returns array of image results including "
            "name, description, official status, and star count.",
            handler.handle_search_image,
            _param("term", "string", "Search term (string)", required=True),
            _param("limit", "number",
                   "Maximum number of results to return (optional, default: 25)",
                   default=25, minimum=1, maximum=100),
        ),
        _tool(
            "create_container",
            "Create a new Docker container from an image. Requires image name and container "
            "configuration.",
            handler.handle_create_container,
            _param("image", "string", "Image name to create container from", required=True),
            _param("name", "string", "Container name", required=True),
            _param("command", "array", "Command to run in container"),
            _param("env", "array", "Environment variables (format: KEY=VALUE)"),
            _param("ports", "object",
                   'Port mappings (format: {"host_port:container_port/protocol": {}}'),
            _param("volumes", "array", "Volume mappings (format: host_path:container_path)"),
            _param("working_dir", "string", "Working directory inside container"),
            _param("network_mode", "string",
                   "Network mode (bridge, host, none, container:<name|id>)"),
            _param("restart_policy", "string",
                   "Restart policy (no, always, on-failure, unless-stopped)"),
            _param("auto_remove", "boolean", "Automatically remove container when it exits",
                   default=False),
        ),
        _tool(
            "start_container",
            "Start one or more stopped containers.",
            handler.handle_start_container,
            _param("container_id", "string", "Container ID or name to start", required=True),
        ),
        _tool(
            "stop_container",
            "Stop a running container.",
            handler.handle_stop_container,
            _param("container_id", "string", "Container ID or name to stop", required=True),
            _param("timeout", "number", "Seconds to wait before killing the container",
                   default=10),
        ),
        _tool(
            "restart_container",
            "Restart a container.",
            handler.handle_restart_container,
            _param("container_id", "string", "Container ID or name to restart", required=True),
            _param("timeout", "number", "Seconds to wait before killing the container",
                   default=10),
        ),
        _tool(
            "remove_container",
            "Remove one or more containers.",
            handler.handle_remove_container,
            _param("container_id", "string", "Container ID or name to remove", required=True),
            _param("force", "boolean", "Force remove running container", default=False),
            _param("volumes", "boolean",
                   "Remove anonymous volumes associated with the container", default=False),
        ),
        _tool(
            "remove_image",
            "Remove one or more images.",
            handler.handle_remove_image,
            _param("image", "string", "Image ID or name to remove", required=True),
            _param("force", "boolean", "Force remove image", default=False),
        ),
        _tool(
            "logs",
            "Get logs from a container.",
            handler.handle_container_logs,
            _param("container_id", "string", "Container ID or name to get logs from",
                   required=True),
            _param("follow", "boolean", "Follow log output", default=False),
            _param("timestamps", "boolean", "Show timestamps", default=False),
            _param("tail", "string", "Number of lines to show from the end of the logs",
                   default="all"),
        ),
        _tool(
            "inspect_container",
            "Return detailed information about a container.",
            handler.handle_inspect_container,
            _param("container_id", "string", "Container ID or name to inspect", required=True),
        ),
        _tool(
            "inspect_image",
            "Return detailed information about an image.",
            handler.handle_inspect_image,
            _param("image", "string", "Image ID or name to inspect", required=True),
        ),
        _tool(
            "build_image",
            "Build an image from a Dockerfile.",
            handler.handle_build_image,
            _param("context_path", "string", "Path to the build context", required=True),
            _param("dockerfile", "string", "Name of the Dockerfile", default="Dockerfile"),
            _param("tag", "string", "Tag to apply to the built image", required=True),
            _param("no_cache", "boolean", "Do not use cache when building the image",
                   default=False),
            _param("pull", "boolean",
                   "Always attempt to pull a newer version of parent images", default=False),
        ),
    ]


def _error(msg_id: Any, code: int, message: str) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "id": msg_id, "error": {"code": code, "message": message}}


class DockerMCPServer:
    """Serves the Docker tools to an MCP client."""

    def __init__(self, handler: Handler | None = None) -> None:
        self.handler = handler if handler is not None else Handler()
        logger.debug("Registering Docker MCP tools")
        self._tools = {tool.name: tool for tool in build_tools(self.handler)}
        logger.info("All tools registered successfully")
        logger.info("Docker MCP server created successfully")

    def tools(self) -> list[Tool]:
        """Return the registered tools in registration order."""
        return list(self._tools.values())

    def call_tool(self, name: str, arguments: dict[str, Any] | None = None) -> CallToolResult:
        """Run the named tool with the given arguments."""
        tool = self._tools.get(name)
        if tool is None:
            raise ToolNotFoundError(f"Tool not found: {name}")
        return tool.handler(arguments or {})

    def _dispatch(self, method: str, params: Any) -> dict[str, Any]:
        if method == "initialize":
            return {
                "protocolVersion": PROTOCOL_VERSION,
                "capabilities": {"tools": {"listChanged": True}},
                "serverInfo": {"name": SERVER_NAME, "version": SERVER_VERSION},
            }
        if method == "ping":
            return {}
        if method == "tools/list":
            return {"tools": [tool.to_dict() for tool in self._tools.values()]}
        if method == "tools/call":
            if not isinstance(params, dict) or not isinstance(params.get("name"), str):
                raise _RpcError(INVALID_PARAMS, "Invalid params")
            arguments = params.get("arguments")
            if arguments is not None and not isinstance(arguments, dict):
                raise _RpcError(INVALID_PARAMS, "Invalid params")
            try:
                return self.call_tool(params["name"], arguments).to_dict()
            except ToolNotFoundError as exc:
                raise _RpcError(INVALID_PARAMS, str(exc)) from exc
            except Exception as exc:
                raise _RpcError(INTERNAL_ERROR, str(exc)) from exc
        raise _RpcError(METHOD_NOT_FOUND, f"Method {method} not found")

    def handle_message(self, message: Any) -> dict[str, Any] | None:
        """Answer one decoded JSON-RPC message; notifications get no answer."""
        if not isinstance(message, dict):
            return _error(None, INVALID_REQUEST, "Invalid Request")
        if "method" not in message and ("result" in message or "error" in message):
            return None
        msg_id = message.get("id")
        method = message.get("method")
        if message.get("jsonrpc") != "2.0" or not isinstance(method, str):
            return _error(msg_id, INVALID_REQUEST, "Invalid Request")
        if "id" not in message:
            return None
        try:
            result = self._dispatch(method, message.get("params") or {})
        except _RpcError as exc:
            return _error(msg_id, exc.code, str(exc))
        return {"jsonrpc": "2.0", "id": msg_id, "result": result}

    def serve_stdio(self, stdin: TextIO | None = None, stdout: TextIO | None = None) -> None:
        """Read line-delimited JSON-RPC messages until end of input."""
        source = stdin if stdin is not None else sys.stdin
        sink = stdout if stdout is not None else sys.stdout
        for line in source:
            line = line.strip()
            if not line:
                continue
            try:
                message = json.loads(line)
            except ValueError:
                response: dict[str, Any] | None = _error(None, PARSE_ERROR, "Parse error")
            else:
                response = self.handle_message(message)
            if response is not None:
                sink.write(json.dumps(response) + "\n")
                sink.flush()