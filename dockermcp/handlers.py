"""Tool handlers that turn MCP tool arguments into Docker daemon calls."""

from __future__ import annotations

import http.client
import json
from collections import deque
from typing import Any, Callable

from dockermcp.container_spec import build_container_spec
from dockermcp.docker_client import DockerClient, DockerError
from dockermcp.models import (
    BuildImageResponse,
    CommandResponse,
    ContainerActionResponse,
    ContainerCreatedResponse,
    ContainerInfo,
    ImageInfo,
    ImageRemovedResponse,
    InspectResponse,
    LogsResponse,
    Port,
    ProgressEvent,
    PullProgressResponse,
    SearchResult,
)
from dockermcp.responses import CallToolResult, format_error_response, format_response

_FAILURES = (DockerError, OSError, http.client.HTTPException)
_PROGRESS_BUFFER = 100
_DEFAULT_SEARCH_LIMIT = 25
_DEFAULT_STOP_TIMEOUT = 10
_DEFAULT_TAIL = "100"
_BUILD_MARKER = "Successfully built"


class _ArgumentError(Exception):
    """A required tool argument is missing."""


def _required_str(arguments: dict[str, Any], key: str, message: str) -> str:
    value = arguments.get(key)
    if not isinstance(value, str) or not value:
        raise _ArgumentError(message)
    return value


def _flag(arguments: dict[str, Any], key: str) -> bool:
    value = arguments.get(key)
    return value if isinstance(value, bool) else False


def _number(arguments: dict[str, Any], key: str) -> float | None:
    value = arguments.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def _read_all(stream: Any) -> bytes:
    with stream:
        return stream.read()


def extract_image_id(output: str) -> str:
    """Return the image ID from a "Successfully built <id>" line, or ""."""
    index = output.find(_BUILD_MARKER + " ")
    if index <= 0:
        return ""
    rest = output[index + len(_BUILD_MARKER):]
    newline = rest.find("\n")
    if newline <= 0:
        return ""
    return rest[:newline].strip()


def _container_info(raw: dict[str, Any]) -> ContainerInfo:
    return ContainerInfo(
        id=raw.get("Id", ""),
        names=raw.get("Names"),
        image=raw.get("Image", ""),
        status=raw.get("Status", ""),
        state=raw.get("State", ""),
        created=raw.get("Created", 0),
        ports=[
            Port(
                ip=port.get("IP", ""),
                private_port=port.get("PrivatePort", 0),
                public_port=port.get("PublicPort", 0),
                type=port.get("Type", ""),
            )
            for port in raw.get("Ports") or []
        ],
    )


def _image_info(raw: dict[str, Any]) -> ImageInfo:
    return ImageInfo(
        id=raw.get("Id", ""),
        tags=raw.get("RepoTags"),
        size=raw.get("Size", 0),
        created=raw.get("Created", 0),
        containers=raw.get("Containers", 0),
    )


def _search_result(raw: dict[str, Any]) -> SearchResult:
    return SearchResult(
        name=raw.get("name", ""),
        description=raw.get("description", ""),
        official=bool(raw.get("is_official", False)),
        automated=bool(raw.get("is_automated", False)),
        stars=raw.get("star_count", 0),
    )


def _decode_events(text: str):
    decoder = json.JSONDecoder()
    position = 0
    length = len(text)
    while True:
        while position < length and text[position].isspace():
            position += 1
        if position >= length:
            return
        obj, position = decoder.raw_decode(text, position)
        yield ProgressEvent.from_dict(obj)


def _handler(method: Callable[..., CallToolResult]) -> Callable[..., CallToolResult]:
    def wrapper(self: "Handler", arguments: dict[str, Any] | None = None) -> CallToolResult:
        try:
            return method(self, arguments or {})
        except _ArgumentError as exc:
            return format_error_response(exc)

    wrapper.__name__ = method.__name__
    wrapper.__doc__ = method.__doc__
    return wrapper


class Handler:
    """Handles Docker tool calls, producing formatted tool results."""

    def __init__(self, client: Any = None) -> None:
        self.client = client if client is not None else DockerClient()
        self.progress_events: deque[ProgressEvent] = deque(maxlen=_PROGRESS_BUFFER)

    @_handler
    def handle_list_containers(self, arguments: dict[str, Any]) -> CallToolResult:
        """List containers, including stopped ones when "all" is true."""
        try:
            containers = self.client.list_containers(_flag(arguments, "all"))
        except _FAILURES as exc:
            return format_error_response(f"failed to list containers: {exc}")
        result = [_container_info(c) for c in containers]
        return format_response(result or None)

    @_handler
    def handle_exec_command(self, arguments: dict[str, Any]) -> CallToolResult:
        """Run a shell command inside a container."""
        container_id = _required_str(arguments, "container_id", "container_id is required")
        command = _required_str(arguments, "command", "command is required")
        try:
            output = self.client.exec_command(container_id, command)
        except _FAILURES as exc:
            return format_error_response(exc)
        return format_response(
            CommandResponse(container_id=container_id, command=command, output=output)
        )

    @_handler
    def handle_pull_image(self, arguments: dict[str, Any]) -> CallToolResult:
        """Pull an image, recording its progress events."""
        image_name = _required_str(arguments, "image_name", "image_name is required")
        try:
            stream = self.client.pull_image(image_name)
        except _FAILURES as exc:
            return format_error_response(f"failed to pull image: {exc}")
        try:
            text = _read_all(stream).decode("utf-8", errors="replace")
            for event in _decode_events(text):
                self.progress_events.append(event)
        except (ValueError, *_FAILURES) as exc:
            return format_error_response(f"failed to decode progress event: {exc}")
        return format_response(
            PullProgressResponse(image_name=image_name, status="success", complete=True)
        )

    @_handler
    def handle_list_images(self, arguments: dict[str, Any]) -> CallToolResult:
        """List local images."""
        try:
            images = self.client.list_images(_flag(arguments, "all"))
        except _FAILURES as exc:
            return format_error_response(f"failed to list images: {exc}")
        result = [_image_info(img) for img in images]
        return format_response(result or None)

    @_handler
    def handle_search_image(self, arguments: dict[str, Any]) -> CallToolResult:
        """Search Docker Hub for images."""
        term = _required_str(arguments, "term", "search term is required")
        limit_value = _number(arguments, "limit")
        limit = _DEFAULT_SEARCH_LIMIT if limit_value is None else int(limit_value)
        try:
            results = self.client.search_images(term, limit)
        except _FAILURES as exc:
            return format_error_response(f"failed to search images: {exc}")
        result = [_search_result(item) for item in results]
        return format_response(result or None)

    @_handler
    def handle_create_container(self, arguments: dict[str, Any]) -> CallToolResult:
        """Create a container from an image and optional settings."""
        _required_str(arguments, "image", "image is required")
        name = _required_str(arguments, "name", "name is required")
        config, host_config = build_container_spec(arguments)
        try:
            created = self.client.create_container(config, host_config, name)
        except _FAILURES as exc:
            return format_error_response(f"failed to create container: {exc}")
        return format_response(
            ContainerCreatedResponse(id=(created or {}).get("Id", ""), name=name)
        )

    @_handler
    def handle_start_container(self, arguments: dict[str, Any]) -> CallToolResult:
        """Start a container."""
        container_id = _required_str(arguments, "container_id", "container_id is required")
        try:
            self.client.start_container(container_id)
        except _FAILURES as exc:
            return format_error_response(f"failed to start container: {exc}")
        return format_response(
            ContainerActionResponse(id=container_id, action="start", status="success")
        )

    def _timeout(self, arguments: dict[str, Any]) -> int:
        value = _number(arguments, "timeout")
        return _DEFAULT_STOP_TIMEOUT if value is None else int(value)

    @_handler
    def handle_stop_container(self, arguments: dict[str, Any]) -> CallToolResult:
        """Stop a running container."""
        container_id = _required_str(arguments, "container_id", "container_id is required")
        try:
            self.client.stop_container(container_id, self._timeout(arguments))
        except _FAILURES as exc:
            return format_error_response(f"failed to stop container: {exc}")
        return format_response(
            ContainerActionResponse(id=container_id, action="stop", status="success")
        )

    @_handler
    def handle_restart_container(self, arguments: dict[str, Any]) -> CallToolResult:
        """Restart a container."""
        container_id = _required_str(arguments, "container_id", "container_id is required")
        try:
            self.client.restart_container(container_id, self._timeout(arguments))
        except _FAILURES as exc:
            return format_error_response(f"failed to restart container: {exc}")
        return format_response(
            ContainerActionResponse(id=container_id, action="restart", status="success")
        )

    @_handler
    def handle_remove_container(self, arguments: dict[str, Any]) -> CallToolResult:
        """Remove a container."""
        container_id = _required_str(arguments, "container_id", "container_id is required")
        try:
            self.client.remove_container(
                container_id, _flag(arguments, "force"), _flag(arguments, "volumes")
            )
        except _FAILURES as exc:
            return format_error_response(f"failed to remove container: {exc}")
        return format_response(
            ContainerActionResponse(id=container_id, action="remove", status="success")
        )

    @_handler
    def handle_remove_image(self, arguments: dict[str, Any]) -> CallToolResult:
        """Remove an image."""
        image_id = _required_str(arguments, "image", "image is required")
        try:
            records = self.client.remove_image(image_id, _flag(arguments, "force"))
        except _FAILURES as exc:
            return format_error_response(f"failed to remove image: {exc}")
        result = ImageRemovedResponse()
        if records:
            result.removed = True
            result.image_id = image_id
            result.untagged_ids = [r["Untagged"] for r in records if r.get("Untagged")]
        return format_response(result)

    @_handler
    def handle_container_logs(self, arguments: dict[str, Any]) -> CallToolResult:
        """Fetch a container's logs."""
        container_id = _required_str(arguments, "container_id", "container_id is required")
        tail = _DEFAULT_TAIL
        tail_value = _number(arguments, "tail")
        if tail_value is not None:
            tail = "all" if tail_value < 0 else str(int(tail_value))
        try:
            stream = self.client.container_logs(
                container_id, _flag(arguments, "follow"), _flag(arguments, "timestamps"), tail
            )
        except _FAILURES as exc:
            return format_error_response(f"failed to get container logs: {exc}")
        try:
            logs = _read_all(stream)
        except _FAILURES as exc:
            return format_error_response(f"failed to read logs: {exc}")
        return format_response(
            LogsResponse(container_id=container_id, logs=logs.decode("utf-8", errors="replace"))
        )

    @_handler
    def handle_inspect_container(self, arguments: dict[str, Any]) -> CallToolResult:
        """Return detailed container information."""
        container_id = _required_str(arguments, "container_id", "container_id is required")
        try:
            details = self.client.inspect_container(container_id)
        except _FAILURES as exc:
            return format_error_response(f"failed to inspect container: {exc}")
        return format_response(InspectResponse(id=container_id, type="container", details=details))

    @_handler
    def handle_inspect_image(self, arguments: dict[str, Any]) -> CallToolResult:
        """Return detailed image information."""
        image_id = _required_str(arguments, "image", "image is required")
        try:
            details = self.client.inspect_image(image_id)
        except _FAILURES as exc:
            return format_error_response(f"failed to inspect image: {exc}")
        return format_response(InspectResponse(id=image_id, type="image", details=details))

    @_handler
    def handle_build_image(self, arguments: dict[str, Any]) -> CallToolResult:
        """Build an image from a context directory."""
        context_path = _required_str(arguments, "context_path", "context_path is required")
        dockerfile = arguments.get("dockerfile")
        if not isinstance(dockerfile, str) or not dockerfile:
            dockerfile = "Dockerfile"
        tag = _required_str(arguments, "tag", "tag is required")
        try:
            stream = self.client.build_image(
                context_path, dockerfile, [tag],
                _flag(arguments, "no_cache"), _flag(arguments, "pull"),
            )
        except _FAILURES as exc:
            return format_error_response(f"failed to build image: {exc}")
        try:
            output = _read_all(stream).decode("utf-8", errors="replace")
        except _FAILURES as exc:
            return format_error_response(f"failed to read build output: {exc}")
        if _BUILD_MARKER not in output:
            return format_response(
                BuildImageResponse(success=False, error="build failed, please check build output")
            )
        return format_response(
            BuildImageResponse(success=True, image_id=extract_image_id(output), tags=[tag])
        )