"""Data shapes exchanged between the Docker daemon wrapper and MCP tool results."""

from __future__ import annotations

from dataclasses import dataclass, field, fields, is_dataclass
from datetime import datetime, timezone
from typing import Any


def _json(name: str, *, omitempty: bool = False, **kwargs: Any) -> Any:
    """Declare a dataclass field with its JSON name and omit-if-empty flag."""
    return field(metadata={"json": name, "omitempty": omitempty}, **kwargs)


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, datetime) or is_dataclass(value):
        return False
    return not value


def to_dict(obj: Any) -> Any:
    """Convert a model (or nested structure of models) to JSON-ready Python values."""
    if is_dataclass(obj) and not isinstance(obj, type):
        out: dict[str, Any] = {}
        for f in fields(obj):
            value = getattr(obj, f.name)
            if f.metadata.get("omitempty") and _is_empty(value):
                continue
            out[f.metadata.get("json", f.name)] = to_dict(value)
        return out
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, (list, tuple)):
        return [to_dict(item) for item in obj]
    if isinstance(obj, dict):
        return {str(key): to_dict(value) for key, value in obj.items()}
    return obj


def _now() -> datetime:
    return datetime.now(timezone.utc).astimezone()


@dataclass
class APIResponse:
    """Standard envelope for every tool response."""

    success: bool = _json("success", default=False)
    data: Any = _json("data", default=None)
    error: str = _json("error", omitempty=True, default="")
    count: int = _json("count", omitempty=True, default=0)
    timestamp: datetime = _json("timestamp", default_factory=_now)


@dataclass
class Port:
    """A container port mapping."""

    ip: str = _json("ip", omitempty=True, default="")
    private_port: int = _json("private_port", default=0)
    public_port: int = _json("public_port", omitempty=True, default=0)
    type: str = _json("type", default="")


@dataclass
class ContainerInfo:
    """Summary of a Docker container."""

    id: str = _json("id", default="")
    names: list[str] | None = _json("names", default_factory=list)
    image: str = _json("image", default="")
    status: str = _json("status", default="")
    state: str = _json("state", default="")
    created: int = _json("created", default=0)
    ports: list[Port] = _json("ports", default_factory=list)


@dataclass
class ImageInfo:
    """Summary of a local Docker image."""

    id: str = _json("id", default="")
    tags: list[str] | None = _json("tags", default_factory=list)
    size: int = _json("size", default=0)
    created: int = _json("created", default=0)
    containers: int = _json("containers", default=0)


@dataclass
class SearchResult:
    """One Docker Hub search hit."""

    name: str = _json("name", default="")
    description: str = _json("description", default="")
    official: bool = _json("official", default=False)
    automated: bool = _json("automated", default=False)
    stars: int = _json("stars", default=0)


@dataclass
class ContainerConfig:
    """Container creation settings."""

    name: str = _json("name", default="")
    image: str = _json("image", default="")
    command: list[str] = _json("command", omitempty=True, default_factory=list)
    env: list[str] = _json("env", omitempty=True, default_factory=list)
    ports: dict[str, str] = _json("ports", omitempty=True, default_factory=dict)
    volumes: list[str] = _json("volumes", omitempty=True, default_factory=list)
    working_dir: str = _json("working_dir", omitempty=True, default="")
    network_mode: str = _json("network_mode", omitempty=True, default="")
    restart_policy: str = _json("restart_policy", omitempty=True, default="")
    auto_remove: bool = _json("auto_remove", omitempty=True, default=False)


@dataclass
class ContainerCreatedResponse:
    """Result of creating a container."""

    id: str = _json("id", default="")
    name: str = _json("name", default="")


@dataclass
class ContainerActionResponse:
    """Result of a start/stop/restart/remove action."""

    id: str = _json("id", default="")
    action: str = _json("action", default="")
    status: str = _json("status", default="")


@dataclass
class ImageRemovedResponse:
    """Result of removing an image."""

    removed: bool = _json("removed", default=False)
    image_id: str = _json("image_id", default="")
    untagged_ids: list[str] = _json("untagged_ids", omitempty=True, default_factory=list)


@dataclass
class LogsResponse:
    """Container log output."""

    container_id: str = _json("container_id", default="")
    logs: str = _json("logs", default="")


@dataclass
class BuildImageResponse:
    """Result of an image build."""

    success: bool = _json("success", default=False)
    image_id: str = _json("image_id", omitempty=True, default="")
    tags: list[str] = _json("tags", omitempty=True, default_factory=list)
    error: str = _json("error", omitempty=True, default="")


@dataclass
class CommandResponse:
    """Output of a command run inside a container."""

    container_id: str = _json("container_id", default="")
    command: str = _json("command", default="")
    output: str = _json("output", default="")


@dataclass
class InspectResponse:
    """Detailed inspection data for a container or image."""

    id: str = _json("id", default="")
    type: str = _json("type", default="")
    details: Any = _json("details", default=None)


@dataclass
class PullProgressResponse:
    """Final state of an image pull."""

    image_name: str = _json("image_name", default="")
    status: str = _json("status", default="")
    complete: bool = _json("complete", default=False)


@dataclass
class ProgressDetail:
    """Byte progress of one pull layer."""

    current: int = _json("current", default=0)
    total: int = _json("total", default=0)


@dataclass
class ProgressEvent:
    """One event from the image pull progress stream."""

    status: str = _json("status", default="")
    progress_detail: ProgressDetail = _json("progressDetail", default_factory=ProgressDetail)
    id: str = _json("id", default="")

    @classmethod
    def from_dict(cls, data: Any) -> "ProgressEvent":
        """Build an event from a decoded JSON object, ignoring unknown keys."""
        if not isinstance(data, dict):
            raise ValueError("progress event must be a JSON object")
        detail = data.get("progressDetail") or {}
        if not isinstance(detail, dict):
            raise ValueError("progressDetail must be a JSON object")
        return cls(
            status=str(data.get("status") or ""),
            progress_detail=ProgressDetail(
                current=int(detail.get("current") or 0),
                total=int(detail.get("total") or 0),
            ),
            id=str(data.get("id") or ""),
        )