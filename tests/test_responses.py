import json
from datetime import datetime

import pytest

from dockermcp.models import ContainerActionResponse, ContainerInfo, Port, to_dict
from dockermcp.responses import CallToolResult, format_error_response, format_response


def _envelope(result: CallToolResult) -> dict:
    assert len(result.content) == 1
    assert result.content[0]["type"] == "text"
    return json.loads(result.content[0]["text"])


def test_format_response_list_has_count_and_data():
    items = [
        ContainerInfo(id="a1", names=["/web"], image="nginx", ports=[Port(private_port=80, type="tcp")]),
        ContainerInfo(id="b2", names=["/db"], image="postgres"),
    ]
    env = _envelope(format_response(items))
    assert env["success"] is True
    assert env["count"] == 2
    assert env["data"] == to_dict(items)
    assert "error" not in env


def test_format_response_empty_list_omits_count():
    env = _envelope(format_response([]))
    assert env["success"] is True
    assert env["data"] == []
    assert "count" not in env


def test_format_response_object_has_no_count():
    obj = ContainerActionResponse(id="abc", action="start", status="success")
    env = _envelope(format_response(obj))
    assert env["data"] == {"id": "abc", "action": "start", "status": "success"}
    assert "count" not in env


def test_format_response_none_data_is_null():
    env = _envelope(format_response(None))
    assert env["data"] is None
    assert env["success"] is True


def test_format_response_key_order_and_indent():
    text = format_response({"x": 1}).content[0]["text"]
    assert text.startswith('{\n  "success": true,\n  "data"')
    keys = list(json.loads(text))
    assert keys == ["success", "data", "timestamp"]


def test_timestamp_is_iso_with_timezone():
    env = _envelope(format_response({"x": 1}))
    stamp = datetime.fromisoformat(env["timestamp"])
    assert stamp.tzinfo is not None


def test_format_response_unserializable_raises():
    with pytest.raises(ValueError, match="failed to serialize data"):
        format_response({"x": object()})


def test_format_error_response():
    env = _envelope(format_error_response(RuntimeError("container_id is required")))
    assert env["success"] is False
    assert env["error"] == "container_id is required"
    assert env["data"] is None
    assert "count" not in env


def test_format_error_response_accepts_string():
    env = _envelope(format_error_response("image is required"))
    assert env["error"] == "image is required"


def test_call_tool_result_to_dict():
    result = format_response({"k": "v"})
    wire = result.to_dict()
    assert wire["content"][0]["type"] == "text"
    assert json.loads(wire["content"][0]["text"])["data"] == {"k": "v"}
    assert "isError" not in wire


def test_call_tool_result_to_dict_marks_error():
    result = CallToolResult(content=[{"type": "text", "text": "bad"}], is_error=True)
    assert result.to_dict() == {"content": [{"type": "text", "text": "bad"}], "isError": True}


def test_unicode_kept_verbatim():
    text = format_response({"msg": "héllo"}).content[0]["text"]
    assert "héllo" in text