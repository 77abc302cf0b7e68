import io
import json

import pytest

from dockermcp.docker_client import DockerError
from dockermcp.handlers import Handler, extract_image_id


class FakeClient:
    def __init__(self, **responses):
        self.responses = responses
        self.calls = []

    def _answer(self, name, *args):
        self.calls.append((name, args))
        value = self.responses.get(name)
        if isinstance(value, Exception):
            raise value
        if isinstance(value, bytes):
            return io.BytesIO(value)
        return value

    def __getattr__(self, name):
        return lambda *args: self._answer(name, *args)


def payload(result):
    return json.loads(result.content[0]["text"])


def test_list_containers_converts_entries():
    raw = {
        "Id": "c1", "Names": ["/web"], "Image": "nginx", "Status": "Up",
        "State": "running", "Created": 1700000000,
        "Ports": [{"IP": "0.0.0.0", "PrivatePort": 80, "PublicPort": 8080, "Type": "tcp"}],
    }
    client = FakeClient(list_containers=[raw])
    body = payload(Handler(client).handle_list_containers({"all": True}))
    assert client.calls == [("list_containers", (True,))]
    assert body["success"] is True
    assert body["count"] == 1
    entry = body["data"][0]
    assert entry["id"] == "c1"
    assert entry["names"] == ["/web"]
    assert entry["ports"] == [{"ip": "0.0.0.0", "private_port": 80, "public_port": 8080, "type": "tcp"}]


def test_list_containers_empty_gives_null_data():
    body = payload(Handler(FakeClient(list_containers=[])).handle_list_containers({}))
    assert body["data"] is None
    assert "count" not in body


def test_list_containers_error():
    client = FakeClient(list_containers=DockerError("boom"))
    body = payload(Handler(client).handle_list_containers({}))
    assert body["success"] is False
    assert body["error"] == "failed to list containers: boom"


@pytest.mark.parametrize("args, message", [
    ({}, "container_id is required"),
    ({"container_id": "c1"}, "command is required"),
    ({"container_id": "", "command": "ls"}, "container_id is required"),
])
def test_exec_command_requires_arguments(args, message):
    client = FakeClient()
    body = payload(Handler(client).handle_exec_command(args))
    assert body["error"] == message
    assert client.calls == []


def test_exec_command_success_and_error_passthrough():
    client = FakeClient(exec_command="hello\n")
    body = payload(Handler(client).handle_exec_command({"container_id": "c1", "command": "echo hello"}))
    assert body["data"] == {"container_id": "c1", "command": "echo hello", "output": "hello\n"}
    failing = FakeClient(exec_command=DockerError("failed to create exec: nope"))
    body = payload(Handler(failing).handle_exec_command({"container_id": "c1", "command": "ls"}))
    assert body["error"] == "failed to create exec: nope"


def test_pull_image_records_progress():
    stream = b'{"status":"Pulling","id":"layer1","progressDetail":{"current":5,"total":10}}\n{"status":"Done"}\n'
    handler = Handler(FakeClient(pull_image=stream))
    body = payload(handler.handle_pull_image({"image_name": "alpine:3"}))
    assert body["data"] == {"image_name": "alpine:3", "status": "success", "complete": True}
    events = list(handler.progress_events)
    assert [e.status for e in events] == ["Pulling", "Done"]
    assert events[0].progress_detail.current == 5


def test_pull_image_bad_stream():
    handler = Handler(FakeClient(pull_image=b'{"status": '))
    body = payload(handler.handle_pull_image({"image_name": "alpine"}))
    assert body["error"].startswith("failed to decode progress event")


def test_search_default_and_given_limit():
    client = FakeClient(search_images=[{"name": "redis", "description": "d", "is_official": True,
                                        "is_automated": False, "star_count": 7}])
    handler = Handler(client)
    body = payload(handler.handle_search_image({"term": "redis"}))
    handler.handle_search_image({"term": "redis", "limit": 5.0})
    assert client.calls == [("search_images", ("redis", 25)), ("search_images", ("redis", 5))]
    assert body["data"] == [{"name": "redis", "description": "d", "official": True,
                             "automated": False, "stars": 7}]
    assert payload(handler.handle_search_image({}))["error"] == "search term is required"


def test_create_container_builds_spec():
    client = FakeClient(create_container={"Id": "new1"})
    args = {"image": "nginx", "name": "web", "restart_policy": "on-failure",
            "env": ["A=1"], "auto_remove": True}
    body = payload(Handler(client).handle_create_container(args))
    assert body["data"] == {"id": "new1", "name": "web"}
    (_, (config, host_config, name)), = client.calls
    assert name == "web"
    assert config["Image"] == "nginx"
    assert config["Env"] == ["A=1"]
    assert host_config["RestartPolicy"] == {"Name": "on-failure", "MaximumRetryCount": 3}
    assert host_config["AutoRemove"] is True


def test_create_container_requires_name():
    client = FakeClient()
    body = payload(Handler(client).handle_create_container({"image": "nginx"}))
    assert body["error"] == "name is required"
    assert client.calls == []


def test_stop_and_restart_timeouts():
    client = FakeClient()
    handler = Handler(client)
    body = payload(handler.handle_stop_container({"container_id": "c1"}))
    handler.handle_restart_container({"container_id": "c1", "timeout": 3.0})
    assert client.calls == [("stop_container", ("c1", 10)), ("restart_container", ("c1", 3))]
    assert body["data"] == {"id": "c1", "action": "stop", "status": "success"}


def test_start_container_error_wrapped():
    client = FakeClient(start_container=DockerError("No such container: c9"))
    body = payload(Handler(client).handle_start_container({"container_id": "c9"}))
    assert body["error"] == "failed to start container: No such container: c9"


def test_remove_container_flags():
    client = FakeClient()
    body = payload(Handler(client).handle_remove_container({"container_id": "c1", "force": True}))
    assert client.calls == [("remove_container", ("c1", True, False))]
    assert body["data"]["action"] == "remove"


def test_remove_image_untagged():
    client = FakeClient(remove_image=[{"Untagged": "alpine:3"}, {"Deleted": "sha256:aa"}])
    body = payload(Handler(client).handle_remove_image({"image": "alpine:3"}))
    assert body["data"] == {"removed": True, "image_id": "alpine:3", "untagged_ids": ["alpine:3"]}
    empty = payload(Handler(FakeClient(remove_image=[])).handle_remove_image({"image": "x"}))
    assert empty["data"] == {"removed": False, "image_id": ""}


@pytest.mark.parametrize("args, tail", [
    ({}, "100"),
    ({"tail": -1}, "all"),
    ({"tail": 20.0}, "20"),
    ({"tail": "all"}, "100"),
])
def test_container_logs_tail(args, tail):
    client = FakeClient(container_logs=b"line\n")
    body = payload(Handler(client).handle_container_logs({"container_id": "c1", **args}))
    assert client.calls == [("container_logs", ("c1", False, False, tail))]
    assert body["data"] == {"container_id": "c1", "logs": "line\n"}


def test_inspect_container_and_image():
    client = FakeClient(inspect_container={"Id": "c1"}, inspect_image={"Id": "i1"})
    handler = Handler(client)
    container = payload(handler.handle_inspect_container({"container_id": "c1"}))
    image = payload(handler.handle_inspect_image({"image": "i1"}))
    assert container["data"] == {"id": "c1", "type": "container", "details": {"Id": "c1"}}
    assert image["data"] == {"id": "i1", "type": "image", "details": {"Id": "i1"}}


def test_build_image_success():
    output = b'Step 1/1 : FROM scratch\nSuccessfully built 0123abcd\nSuccessfully tagged app:1\n'
    client = FakeClient(build_image=output)
    body = payload(Handler(client).handle_build_image({"context_path": "/ctx", "tag": "app:1"}))
    assert client.calls == [("build_image", ("/ctx", "Dockerfile", ["app:1"], False, False))]
    assert body["data"] == {"success": True, "image_id": "0123abcd", "tags": ["app:1"]}


def test_build_image_failure_and_missing_tag():
    client = FakeClient(build_image=b'{"error":"oops"}\n')
    body = payload(Handler(client).handle_build_image({"context_path": "/ctx", "tag": "t"}))
    assert body["data"] == {"success": False, "error": "build failed, please check build output"}
    missing = payload(Handler(FakeClient()).handle_build_image({"context_path": "/ctx"}))
    assert missing["error"] == "tag is required"


def test_extract_image_id():
    assert extract_image_id("x\nSuccessfully built abc123\n") == "abc123"
    assert extract_image_id("Successfully built abc123\n") == ""
    assert extract_image_id("x Successfully built abc123") == ""