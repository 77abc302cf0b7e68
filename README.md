# dockermcp

A Model Context Protocol (MCP) server that lets AI models manage Docker containers, images and builds. It reads JSON-RPC messages from standard input, one per line, and writes replies to standard output. It reaches the Docker Engine HTTP API over a Unix socket or a TCP address. It needs nothing outside the Python standard library.

## Installation

```
pip install dockermcp
```

## Running

```
docker-mcp
```

Point your MCP client at the `docker-mcp` command. The server answers `initialize`, `ping`, `tools/list` and `tools/call`.

Options:

| Option            | Default                          | Meaning                                  |
|-------------------|----------------------------------|------------------------------------------|
| `--docker-socket` | auto-detected                    | Docker host: `unix:///path/to/docker.sock`, `tcp://host:port` or `http://host:port` |
| `--log-format`    | `text`                           | `text` for key=value lines, otherwise JSON lines |
| `--log-level`     | `info`                           | `debug`, `info`, `warn` or `error`; any other value exits with status 1 |
| `--log-file`      | `~/.docker-mcp/docker-mcp.log`   | Where log lines go; an empty value logs to stdout |
| `-v`, `--version` |                                  | Print version, build date and commit     |

If no socket is given, the server uses `~/.colima/docker.sock` if it exists. Failing that it uses `~/.rd/docker.sock`, and otherwise `/var/run/docker.sock`. On first use the client asks the daemon which API version it supports and uses the lower of that and 1.48.

Log lines go to the log file so that stdout stays free for the protocol. If the log directory cannot be created or the file cannot be opened, a message is printed to stderr and logging falls back to stdout.

## Tools

| Tool                | Required arguments        | Optional arguments |
|---------------------|---------------------------|--------------------|
| `list_containers`   |                           | `all` |
| `exec_command`      | `container_id`, `command` | |
| `pull_image`        | `image_name`              | |
| `list_images`       |                           | `all` |
| `search`            | `term`                    | `limit` (default 25) |
| `create_container`  | `image`, `name`           | `command`, `env`, `ports`, `volumes`, `working_dir`, `network_mode`, `restart_policy`, `auto_remove` |
| `start_container`   | `container_id`            | |
| `stop_container`    | `container_id`            | `timeout` in seconds (default 10) |
| `restart_container` | `container_id`            | `timeout` in seconds (default 10) |
| `remove_container`  | `container_id`            | `force`, `volumes` |
| `remove_image`      | `image`                   | `force` |
| `logs`              | `container_id`            | `follow`, `timestamps`, `tail` |
| `inspect_container` | `container_id`            | |
| `inspect_image`     | `image`                   | |
| `build_image`       | `context_path`, `tag`     | `dockerfile` (default `Dockerfile`), `no_cache`, `pull` |

Each tool returns one text item that holds a JSON document:

```json
{
  "success": true,
  "data": [ ... ],
  "count": 2,
  "timestamp": "2024-01-01T12:00:00.000000+00:00"
}
```

`count` is present when `data` is a non-empty list. A listing with no results gives `"data": null`. If a call fails, `success` is `false`, `data` is `null`, and `error` holds the message.

Notes on specific tools:

- `exec_command` runs the command as `sh -c <command>` and returns its raw output.
- `create_container`: give port mappings as object keys in the form `"host_port:container_port/protocol"`, for example `{"8080:80/tcp": {}}`. The protocol defaults to `tcp`. Malformed keys are skipped. `restart_policy` accepts `no`, `always`, `unless-stopped` and `on-failure` (up to 3 retries). Other values are ignored.
- `logs`: `tail` is used only when it is given as a number. A negative number means all lines. Otherwise the last 100 lines are returned.
- `build_image` packs the context directory into a tar archive. It reports success only when the build output contains `Successfully built`. In that case it returns the image ID from that line.

## Using it from Python

```python
from dockermcp.docker_client import DockerClient
from dockermcp.handlers import Handler
from dockermcp.server import DockerMCPServer

server = DockerMCPServer(Handler(DockerClient("")))
result = server.call_tool("list_containers", {"all": True})
print(result.to_dict())
```

- `DockerMCPServer.tools()` lists the registered tools. `Tool.to_dict()` gives each tool's input schema.
- `DockerMCPServer.handle_message()` answers one decoded JSON-RPC message.
- `DockerMCPServer.serve_stdio()` runs the protocol loop. By default it uses the process's standard streams, and it also accepts other text streams.
- `call_tool()` raises `dockermcp.server.ToolNotFoundError` for an unknown tool name.

`DockerClient` can also be used on its own. It raises `DockerError` when the daemon cannot be reached or returns an error.

## Limits

- Only tools are offered. There are no MCP resources or prompts, and no tools for networks or volumes.
- `pull_image` does not stream progress to the client. It waits for the pull to finish. The decoded progress events are kept in `Handler.progress_events`, which holds the last 100.
- `build_image` relies on the classic builder's `Successfully built` message. Output without that line is reported as a failed build.
- Only Unix-socket and plain TCP/HTTP hosts are supported. There is no TLS and no Windows named pipes.

## Tests

```
pip install -e ".[test]"
pytest
```