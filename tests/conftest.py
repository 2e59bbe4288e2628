"""Shared fixtures for lparprov tests."""

from __future__ import annotations

import json
import logging
from typing import Callable, Iterable, List, Union

import httpx
import pytest

from lparprov.config import LparprovConfig
from lparprov.platform.powervs import PowerVSClient

WORKSPACE_GUID = "973f4d55-9056-4848-8ed0-4592093161d2"
WORKSPACE_CRN = f"crn:v1:bluemix:public:power-iaas:dal10:a/acct123:{WORKSPACE_GUID}::"

# A scripted create response is a body dict/list, a raw string, or an exception
CreateScript = Union[dict, list, str, Exception]


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    """Keep host environment and CLI log handlers out of every test."""
    for name in ("IBMCLOUD_API_KEY", "RUN_ATTACH_JOB", "LPARPROV_CONFIG", "LPARPROV_SESSION"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    yield
    package_logger = logging.getLogger("lparprov")
    for handler in list(package_logger.handlers):
        if getattr(handler, "_lparprov", False):
            package_logger.removeHandler(handler)


def make_config(**sections) -> LparprovConfig:
    """Config with every required setting filled and zero waits."""
    data = {
        "cloud": {"api_key": "test-key"},
        "workspace": {"crn": WORKSPACE_CRN},
        "network": {
            "private_network_id": "net-private",
            "private_ip": "192.168.0.69",
            "settle_wait": 0,
        },
        "instance": {"name": "clone-lpar", "key_pair_name": "murph2", "create_backoff": 0},
        "polling": {"interval": 0, "max_attempts": 5, "initial_wait": 0},
    }
    for section, values in sections.items():
        data.setdefault(section, {}).update(values)
    return LparprovConfig(**data)


@pytest.fixture
def config() -> LparprovConfig:
    return make_config()


@pytest.fixture
def config_factory() -> Callable[..., LparprovConfig]:
    return make_config


class ScriptedApi:
    """PowerVSClient wired to an ``httpx.MockTransport`` replaying a script."""

    def __init__(self, responses: Iterable[CreateScript]) -> None:
        self.responses: List[CreateScript] = list(responses)
        self.requests: List[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        scripted = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(scripted, Exception):
            raise scripted
        if isinstance(scripted, str):
            return httpx.Response(200, text=scripted)
        return httpx.Response(201, json=scripted)

    def client(self, config: LparprovConfig) -> PowerVSClient:
        return PowerVSClient(
            endpoint=config.cloud.api_endpoint,
            workspace_id=config.workspace.workspace_id,
            workspace_crn=config.workspace.crn,
            api_version=config.cloud.api_version,
            transport=httpx.MockTransport(self.handler),
        )

    def payloads(self) -> List[dict]:
        return [json.loads(request.content) for request in self.requests]


@pytest.fixture
def scripted_api() -> Callable[..., ScriptedApi]:
    return lambda *responses: ScriptedApi(responses)


class FakeTokenClient:
    def __init__(self, token: str = "bearer-token") -> None:
        self.token = token
        self.calls = 0

    def fetch_token(self, api_key: str) -> str:
        self.calls += 1
        return self.token


@pytest.fixture
def token_client() -> FakeTokenClient:
    return FakeTokenClient()


class Sleeper:
    """Stand-in for ``time.sleep`` that records requested delays."""

    def __init__(self) -> None:
        self.calls: List[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def sleeper() -> Sleeper:
    return Sleeper()
