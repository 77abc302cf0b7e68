"""Command-line entry point that configures logging and serves MCP on stdio."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from dockermcp.docker_client import DockerClient
from dockermcp.handlers import Handler
from dockermcp.server import DockerMCPServer

VERSION = "0.1.0"
BUILD_DATE = "unknown"
COMMIT = "unknown"

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}
_LEVEL_NAMES = {logging.WARNING: "WARN", logging.CRITICAL: "ERROR"}
_STANDARD_ATTRS = set(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"message", "asctime", "taskName"}

logger = logging.getLogger(__name__)


def _attrs(record: logging.LogRecord) -> dict[str, Any]:
    return {k: v for k, v in record.__dict__.items() if k not in _STANDARD_ATTRS}


def _timestamp(record: logging.LogRecord) -> str:
    moment = datetime.fromtimestamp(record.created, timezone.utc).astimezone()
    return moment.isoformat(timespec="milliseconds")


def _level_name(record: logging.LogRecord) -> str:
    return _LEVEL_NAMES.get(record.levelno, record.levelname)


def _quote(value: Any) -> str:
    text = str(value)
    if not text or any(c.isspace() or c in '"=' for c in text):
        return json.dumps(text)
    return text


class _TextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        parts = [
            f"time={_timestamp(record)}",
            f"level={_level_name(record)}",
            f"msg={_quote(record.getMessage())}",
        ]
        parts.extend(f"{key}={_quote(value)}" for key, value in _attrs(record).items())
        return " ".join(parts)


class _JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "time": _timestamp(record),
            "level": _level_name(record),
            "msg": record.getMessage(),
        }
        entry.update(_attrs(record))
        return json.dumps(entry, default=str)


def default_log_path() -> str:
    """Return the default log file path under the user's home directory."""
    try:
        home = Path.home()
    except (RuntimeError, KeyError):
        return os.path.join(tempfile.gettempdir(), "docker-mcp.log")
    return os.path.join(str(home), ".docker-mcp", "docker-mcp.log")


def build_parser() -> argparse.ArgumentParser:
    """Return the command-line parser."""
    parser = argparse.ArgumentParser(
        prog="docker-mcp",
        description="Docker Model Context Protocol (MCP) Server provides an interface for "
        "AI models to manage Docker containers, images, and networks.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--docker-socket", default="", help="Docker socket path")
    parser.add_argument("--log-format", default="text", help="Log format (text or json)")
    parser.add_argument("--log-level", default="info",
                        help="Log level (debug, info, warn, error)")
    parser.add_argument("--log-file", default=default_log_path(), help="Log file path")
    parser.add_argument(
        "-v", "--version", action="version",
        version=f"docker-mcp version {VERSION}\nBuild Date: {BUILD_DATE}\nCommit: {COMMIT}\n",
    )
    return parser


def _open_log_stream(log_file: str):
    if not log_file:
        return sys.stdout
    log_dir = os.path.dirname(log_file) or "."
    try:
        os.makedirs(log_dir, mode=0o755, exist_ok=True)
    except OSError as exc:
        print(f"Failed to create log directory '{log_dir}': {exc}", file=sys.stderr)
        print("Falling back to stdout for logging", file=sys.stderr)
        return sys.stdout
    try:
        return open(log_file, "a", encoding="utf-8")
    except OSError as exc:
        print(f"Failed to open log file '{log_file}': {exc}", file=sys.stderr)
        print("Falling back to stdout for logging", file=sys.stderr)
        return sys.stdout


def setup_logging(level: str, log_format: str, log_file: str) -> logging.Handler:
    """Install the root log handler; raises ValueError for an unknown level."""
    if level not in _LEVELS:
        raise ValueError(f"Invalid log level: {level}")
    handler = logging.StreamHandler(_open_log_stream(log_file))
    handler.setFormatter(_JSONFormatter() if log_format == "json" else _TextFormatter())
    root = logging.getLogger()
    for old in root.handlers[:]:
        root.removeHandler(old)
    root.addHandler(handler)
    root.setLevel(_LEVELS[level])
    return handler


def main(argv: list[str] | None = None) -> int:
    """Run the Docker MCP server; returns the process exit status."""
    args = build_parser().parse_args(argv)
    try:
        setup_logging(args.log_level, args.log_format, args.log_file)
    except ValueError as exc:
        print(exc, file=sys.stderr)
        return 1
    try:
        server = DockerMCPServer(Handler(DockerClient(args.docker_socket)))
    except Exception as exc:
        print(f"failed to create Docker MCP server: {exc}", file=sys.stderr)
        return 1
    logger.info(
        "Starting Docker MCP server",
        extra={
            "docker_socket": args.docker_socket,
            "log_format": args.log_format,
            "log_level": args.log_level,
            "log_file": args.log_file,
        },
    )
    try:
        server.serve_stdio()
    except Exception as exc:
        print(f"server error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())