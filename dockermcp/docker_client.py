"""Minimal Docker Engine API client speaking HTTP over a unix socket or TCP."""

from __future__ import annotations

import http.client
import io
import json
import os
import socket
import tarfile
from typing import Any, Iterable
from urllib.parse import quote, urlencode, urlsplit

DEFAULT_API_VERSION = "1.48"
_FALLBACK_SERVER_VERSION = "1.24"
_DEFAULT_SOCKET = "/var/run/docker.sock"


class DockerError(Exception):
    """Raised when the Docker daemon cannot be reached or reports an error."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


def resolve_host(docker_socket: str = "", home: str | None = None) -> str:
    """Return the daemon host URL, auto-detecting a local socket when none is given."""
    if docker_socket:
        return docker_socket
    if home is None:
        home = os.environ.get("HOME", "")
    path = _DEFAULT_SOCKET
    for candidate in (f"{home}/.rd/docker.sock", f"{home}/.colima/docker.sock"):
        if os.path.exists(candidate):
            path = candidate
    return "unix://" + path


class _UnixHTTPConnection(http.client.HTTPConnection):
    def __init__(self, path: str) -> None:
        super().__init__("localhost")
        self._socket_path = path

    def connect(self) -> None:
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        if isinstance(self.timeout, (int, float)):
            sock.settimeout(self.timeout)
        try:
            sock.connect(self._socket_path)
        except OSError:
            sock.close()
            raise
        self.sock = sock


def _version_key(version: str) -> tuple[int, ...]:
    return tuple(int(part) for part in version.split("."))


def _error_message(payload: bytes, reason: str) -> str:
    text = payload.decode("utf-8", errors="replace").strip()
    try:
        decoded = json.loads(text)
    except ValueError:
        decoded = None
    if isinstance(decoded, dict) and decoded.get("message"):
        text = str(decoded["message"])
    return f"Error response from daemon: {text or reason}"


def _split_reference(name: str) -> tuple[str, str]:
    if "@" in name:
        repo, digest = name.split("@", 1)
        return repo, digest
    slash = name.rfind("/")
    colon = name.rfind(":")
    if colon > slash:
        return name[:colon], name[colon + 1:]
    return name, "latest"


def build_context_tar(context_path: str) -> bytes:
    """Pack a directory into an uncompressed tar archive for a build context."""
    if not os.path.exists(context_path):
        raise FileNotFoundError(f"no such file or directory: {context_path}")
    if not os.path.isdir(context_path):
        raise NotADirectoryError(f"not a directory: {context_path}")
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w") as archive:
        for root, dirnames, filenames in os.walk(context_path):
            dirnames.sort()
            for name in sorted(dirnames + filenames):
                full = os.path.join(root, name)
                arcname = os.path.relpath(full, context_path).replace(os.sep, "/")
                archive.add(full, arcname=arcname, recursive=False)
    return buffer.getvalue()


class DockerClient:
    """Talks to a Docker daemon over its HTTP API."""

    def __init__(self, docker_socket: str = "") -> None:
        self.host = resolve_host(docker_socket)
        parts = urlsplit(self.host)
        if parts.scheme == "unix":
            self._unix_path = self.host[len("unix://"):]
            if not self._unix_path:
                raise DockerError(f"unable to parse docker host `{self.host}`")
            self._tcp: tuple[str, int] | None = None
        elif parts.scheme in ("tcp", "http"):
            try:
                port = parts.port or 2375
            except ValueError as exc:
                raise DockerError(f"unable to parse docker host `{self.host}`") from exc
            if not parts.hostname:
                raise DockerError(f"unable to parse docker host `{self.host}`")
            self._unix_path = ""
            self._tcp = (parts.hostname, port)
        else:
            raise DockerError(f"unable to parse docker host `{self.host}`")
        self._version = DEFAULT_API_VERSION
        self._negotiated = False

    def _connect(self) -> http.client.HTTPConnection:
        if self._tcp is not None:
            return http.client.HTTPConnection(*self._tcp)
        return _UnixHTTPConnection(self._unix_path)

    def _negotiate(self) -> None:
        if self._negotiated:
            return
        conn = self._connect()
        try:
            conn.request("GET", "/_ping", headers={"Connection": "close"})
            resp = conn.getresponse()
            resp.read()
            server_version = resp.getheader("API-Version") or ""
        except OSError:
            return
        finally:
            conn.close()
        self._negotiated = True
        server_version = server_version or _FALLBACK_SERVER_VERSION
        try:
            if _version_key(server_version) < _version_key(self._version):
                self._version = server_version
        except ValueError:
            pass

    def _request(
        self,
        method: str,
        path: str,
        query: Iterable[tuple[str, str]] = (),
        body: bytes | None = None,
        content_type: str | None = None,
    ) -> http.client.HTTPResponse:
        self._negotiate()
        url = f"/v{self._version}{path}"
        encoded = urlencode(list(query))
        if encoded:
            url = f"{url}?{encoded}"
        headers = {"Connection": "close"}
        if content_type:
            headers["Content-Type"] = content_type
        conn = self._connect()
        try:
            conn.request(method, url, body=body, headers=headers)
            resp = conn.getresponse()
        except OSError as exc:
            conn.close()
            raise DockerError(
                f"Cannot connect to the Docker daemon at {self.host}. Is the docker daemon running?"
            ) from exc
        if resp.status >= 400:
            payload = resp.read()
            conn.close()
            raise DockerError(_error_message(payload, resp.reason), status=resp.status)
        return resp

    def _json(self, method: str, path: str, query: Iterable[tuple[str, str]] = (),
              body: Any = None) -> Any:
        data = None if body is None else json.dumps(body).encode()
        resp = self._request(method, path, query, data,
                             "application/json" if data is not None else None)
        with resp:
            payload = resp.read()
        if not payload.strip():
            return None
        return json.loads(payload)

    def list_containers(self, show_all: bool = False) -> list[dict[str, Any]]:
        """List containers; stopped ones too when show_all is set."""
        query = [("all", "1")] if show_all else []
        return self._json("GET", "/containers/json", query) or []

    def exec_command(self, container_id: str, cmd: str) -> str:
        """Run a shell command in a container and return its raw output."""
        try:
            created = self._json(
                "POST",
                f"/containers/{quote(container_id, safe='')}/exec",
                body={"Cmd": ["sh", "-c", cmd], "AttachStdout": True, "AttachStderr": True},
            )
        except DockerError as exc:
            raise DockerError(f"failed to create exec: {exc}", exc.status) from exc
        exec_id = (created or {}).get("Id", "")
        try:
            resp = self._request(
                "POST",
                f"/exec/{quote(exec_id, safe='')}/start",
                body=json.dumps({"Detach": False, "Tty": False}).encode(),
                content_type="application/json",
            )
        except DockerError as exc:
            raise DockerError(f"failed to attach to exec: {exc}", exc.status) from exc
        try:
            with resp:
                output = resp.read()
        except (OSError, http.client.HTTPException) as exc:
            raise DockerError(f"failed to read output: {exc}") from exc
        return output.decode("utf-8", errors="replace")

    def pull_image(self, image_name: str) -> http.client.HTTPResponse:
        """Start pulling an image; returns the progress stream."""
        if not image_name:
            raise DockerError("invalid reference format")
        repo, tag = _split_reference(image_name)
        return self._request("POST", "/images/create", [("fromImage", repo), ("tag", tag)])

    def list_images(self, show_all: bool = False) -> list[dict[str, Any]]:
        """List local images; intermediate ones too when show_all is set."""
        query = [("all", "1")] if show_all else []
        return self._json("GET", "/images/json", query) or []

    def search_images(self, term: str, limit: int = 0) -> list[dict[str, Any]]:
        """Search Docker Hub for images."""
        query = [("term", term)]
        if limit > 0:
            query.append(("limit", str(limit)))
        return self._json("GET", "/images/search", query) or []

    def create_container(self, config: dict[str, Any], host_config: dict[str, Any],
                         name: str) -> dict[str, Any]:
        """Create a container from API-shaped config dicts."""
        body = dict(config)
        body["HostConfig"] = host_config
        body["NetworkingConfig"] = {}
        query = [("name", name)] if name else []
        return self._json("POST", "/containers/create", query, body) or {}

    def start_container(self, container_id: str) -> None:
        """Start a container."""
        self._json("POST", f"/containers/{quote(container_id, safe='')}/start")

    def stop_container(self, container_id: str, timeout: int | None = None) -> None:
        """Stop a container, waiting up to timeout seconds before killing it."""
        query = [] if timeout is None else [("t", str(timeout))]
        self._json("POST", f"/containers/{quote(container_id, safe='')}/stop", query)

    def restart_container(self, container_id: str, timeout: int | None = None) -> None:
        """Restart a container."""
        query = [] if timeout is None else [("t", str(timeout))]
        self._json("POST", f"/containers/{quote(container_id, safe='')}/restart", query)

    def remove_container(self, container_id: str, force: bool = False,
                         remove_volumes: bool = False) -> None:
        """Remove a container."""
        query = []
        if remove_volumes:
            query.append(("v", "1"))
        if force:
            query.append(("force", "1"))
        self._json("DELETE", f"/containers/{quote(container_id, safe='')}", query)

    def remove_image(self, image_id: str, force: bool = False) -> list[dict[str, Any]]:
        """Remove an image; returns the daemon's untag/delete records."""
        query = [("force", "1")] if force else []
        query.append(("noprune", "1"))
        return self._json("DELETE", f"/images/{quote(image_id, safe='')}", query) or []

    def container_logs(self, container_id: str, follow: bool = False,
                       timestamps: bool = False, tail: str = "") -> http.client.HTTPResponse:
        """Open a container's log stream."""
        query = [("stdout", "1"), ("stderr", "1")]
        if timestamps:
            query.append(("timestamps", "1"))
        if follow:
            query.append(("follow", "1"))
        if tail:
            query.append(("tail", tail))
        return self._request("GET", f"/containers/{quote(container_id, safe='')}/logs", query)

    def inspect_container(self, container_id: str) -> dict[str, Any]:
        """Return detailed container information."""
        return self._json("GET", f"/containers/{quote(container_id, safe='')}/json") or {}

    def inspect_image(self, image_id: str) -> dict[str, Any]:
        """Return detailed image information."""
        return self._json("GET", f"/images/{quote(image_id, safe='')}/json") or {}

    def build_image(self, context_path: str, dockerfile_name: str, tags: list[str],
                    no_cache: bool = False, pull: bool = False) -> http.client.HTTPResponse:
        """Build an image from a directory; returns the build output stream."""
        try:
            os.stat(os.path.join(context_path, dockerfile_name))
        except FileNotFoundError as exc:
            raise DockerError(f"dockerfile {dockerfile_name} not found in context") from exc
        except OSError:
            pass
        try:
            archive = build_context_tar(context_path)
        except OSError as exc:
            raise DockerError(f"failed to create build context: {exc}") from exc
        query = [("t", tag) for tag in tags]
        query.append(("dockerfile", dockerfile_name))
        query.append(("rm", "1"))
        if no_cache:
            query.append(("nocache", "1"))
        if pull:
            query.append(("pull", "1"))
        return self._request("POST", "/build", query, archive, "application/x-tar")