"""Instance creation tests."""

import httpx
import pytest

from lparprov.contracts import RunState
from lparprov.errors import InstanceCreationError
from lparprov.instance import (
    build_request,
    create_instance,
    first_external_ip,
    lookup_public_ip,
)
from lparprov.platform.inmemory import InMemorySession
from lparprov.platform.powervs import PowerVSClient


def test_build_request_dual_homed_payload(config):
    request = build_request(config, "net-public")
    payload = request.to_payload()

    assert request.is_dual_homed
    assert payload == {
        "serverName": "clone-lpar",
        "processors": 0.25,
        "memory": 2,
        "procType": "shared",
        "sysType": "s1022",
        "imageID": "IBMI-EMPTY",
        "deploymentType": "VMNoStorage",
        "keyPairName": "murph2",
        "networks": [
            {"networkID": "net-private", "ipAddress": "192.168.0.69"},
            {"networkID": "net-public"},
        ],
    }


def test_build_request_private_only(config):
    request = build_request(config)
    assert not request.is_dual_homed
    assert request.to_payload()["networks"] == [
        {"networkID": "net-private", "ipAddress": "192.168.0.69"}
    ]


def test_create_succeeds_first_attempt(config, scripted_api, sleeper):
    api = scripted_api({"pvmInstanceID": "abc"})
    state = RunState(access_token="tok")

    instance_id = create_instance(api.client(config), build_request(config), state, sleep=sleeper)

    assert instance_id == "abc"
    assert state.instance_id == "abc"
    assert sleeper.calls == []
    request = api.requests[0]
    assert request.method == "POST"
    assert request.url.path == (
        f"/pcloud/v1/cloud-instances/{config.workspace.workspace_id}/pvm-instances"
    )
    assert request.url.params["version"] == "2024-02-28"
    assert request.headers["Authorization"] == "Bearer tok"
    assert request.headers["CRN"] == config.workspace.crn
    assert api.payloads()[0]["serverName"] == "clone-lpar"


def test_create_retries_until_id_appears(config, scripted_api, sleeper):
    api = scripted_api(
        httpx.ConnectError("connection refused"),
        {"description": "try again"},
        [{"pvmInstanceID": "from-array"}],
    )
    state = RunState(access_token="tok")

    instance_id = create_instance(
        api.client(config), build_request(config), state, backoff=5, sleep=sleeper
    )

    assert instance_id == "from-array"
    assert len(api.requests) == 3
    assert sleeper.calls == [5, 5]


def test_create_fails_after_three_attempts_with_last_response(config, scripted_api, sleeper):
    api = scripted_api({"description": "first"}, {"description": "still broken"})
    state = RunState(access_token="tok")

    with pytest.raises(InstanceCreationError) as excinfo:
        create_instance(api.client(config), build_request(config), state, sleep=sleeper)

    assert len(api.requests) == 3
    assert "still broken" in excinfo.value.response
    assert excinfo.value.step == "CREATE_LPAR"
    assert state.instance_id == ""


def test_transport_failure_on_last_attempt_is_reported(config, scripted_api, sleeper):
    api = scripted_api(
        {"description": "no id"},
        httpx.ConnectError("connection refused"),
    )
    state = RunState(access_token="tok")

    with pytest.raises(InstanceCreationError) as excinfo:
        create_instance(api.client(config), build_request(config), state, sleep=sleeper)

    assert len(api.requests) == 3
    assert excinfo.value.response == "connection refused"
    assert sleeper.calls == [5.0, 5.0]


def test_http_error_status_without_id_is_retried(config, sleeper):
    calls = []

    def handler(request):
        calls.append(request)
        if len(calls) == 1:
            return httpx.Response(500, text="internal error")
        return httpx.Response(202, json={"pvmInstance": {"pvmInstanceID": "wrapped"}})

    client = PowerVSClient(
        endpoint=config.cloud.api_endpoint,
        workspace_id="ws",
        workspace_crn="crn",
        api_version="2024-02-28",
        transport=httpx.MockTransport(handler),
    )
    assert create_instance(client, build_request(config), RunState(), sleep=sleeper) == "wrapped"
    assert len(calls) == 2


def test_first_external_ip():
    assert first_external_ip({"networks": [{"ipAddress": "10.0.0.1"}, {"externalIP": "52.1.1.1"}]}) == "52.1.1.1"
    assert first_external_ip({"networks": [{"externalIP": None}]}) is None
    assert first_external_ip({}) is None


def test_lookup_public_ip_tolerates_query_failure():
    session = InMemorySession(fail={"get_instance"})
    assert lookup_public_ip(session, "abc") is None


def test_lookup_public_ip_reads_external_ip():
    session = InMemorySession(statuses=["BUILD"], external_ips=["52.116.1.2"])
    assert lookup_public_ip(session, "abc") == "52.116.1.2"
