from datetime import datetime

import pytest

from dockermcp.models import (
    APIResponse,
    BuildImageResponse,
    ContainerConfig,
    ContainerInfo,
    ImageRemovedResponse,
    InspectResponse,
    Port,
    ProgressEvent,
    to_dict,
)


def test_port_omits_empty_optional_fields():
    result = to_dict(Port(private_port=80, type="tcp"))
    assert result == {"private_port": 80, "type": "tcp"}


def test_port_keeps_filled_optional_fields():
    result = to_dict(Port(ip="0.0.0.0", private_port=80, public_port=8080, type="tcp"))
    assert result["ip"] == "0.0.0.0"
    assert result["public_port"] == 8080


def test_container_info_nests_ports():
    info = ContainerInfo(id="abc", names=["/web"], ports=[Port(private_port=22, type="tcp")])
    result = to_dict(info)
    assert result["id"] == "abc"
    assert result["names"] == ["/web"]
    assert result["ports"] == [{"private_port": 22, "type": "tcp"}]


def test_api_response_keeps_null_data_and_drops_empty_error():
    result = to_dict(APIResponse(success=True))
    assert result["data"] is None
    assert "error" not in result
    assert "count" not in result
    assert result["success"] is True


def test_api_response_timestamp_round_trips():
    response = APIResponse(success=False, error="boom")
    result = to_dict(response)
    assert datetime.fromisoformat(result["timestamp"]) == response.timestamp
    assert result["error"] == "boom"


def test_build_failure_response_keys():
    result = to_dict(BuildImageResponse(success=False, error="build failed"))
    assert set(result) == {"success", "error"}


def test_image_removed_omits_empty_untagged():
    result = to_dict(ImageRemovedResponse())
    assert set(result) == {"removed", "image_id"}


def test_container_config_defaults():
    result = to_dict(ContainerConfig(name="n", image="i"))
    assert result == {"name": "n", "image": "i"}


def test_inspect_response_passes_details_through():
    details = {"Id": "x", "Config": {"Env": ["A=1"]}}
    result = to_dict(InspectResponse(id="x", type="container", details=details))
    assert result["details"] == details


def test_progress_event_round_trip():
    data = {"status": "Downloading", "progressDetail": {"current": 10, "total": 20}, "id": "layer"}
    event = ProgressEvent.from_dict(data)
    assert event.progress_detail.current == 10
    assert to_dict(event) == data


def test_progress_event_missing_detail_defaults_to_zero():
    event = ProgressEvent.from_dict({"status": "Pulling fs layer"})
    assert event.progress_detail.total == 0
    assert event.status == "Pulling fs layer"


def test_progress_event_rejects_non_object():
    with pytest.raises(ValueError):
        ProgressEvent.from_dict(["not", "an", "object"])