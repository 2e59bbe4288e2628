"""Chain trigger tests."""

import json

import pytest

from lparprov.config import ChainConfig
from lparprov.contracts import RunState
from lparprov.errors import ChainTriggerError
from lparprov.chain import trigger_next_job
from lparprov.platform.inmemory import InMemorySession


def _chain(**overrides):
    values = {"enabled": True, "resource_group": "cloud-techsales", "project": "usnm-project", "job": "snap-ops-2"}
    values.update(overrides)
    return ChainConfig(**values)


def test_disabled_chain_makes_no_calls():
    session = InMemorySession()
    assert trigger_next_job(session, ChainConfig(), RunState(final_status="SHUTOFF")) is None
    assert session.calls == []


def test_submits_job_in_target_project():
    session = InMemorySession()
    state = RunState()

    run_name = trigger_next_job(session, _chain(), state)

    assert run_name == "snap-ops-2-run-1"
    assert state.chained_run == "snap-ops-2-run-1"
    assert [call[0] for call in session.calls] == [
        "target_resource_group",
        "target_job_project",
        "submit_job_run",
    ]
    assert session.targets["project"] == "usnm-project"


def test_resource_group_switch_is_optional():
    session = InMemorySession()
    trigger_next_job(session, _chain(resource_group=None), RunState())
    assert session.called("target_resource_group") == 0


def test_falls_back_to_top_level_name():
    session = InMemorySession(job_run_output=json.dumps({"name": "run-b"}))
    assert trigger_next_job(session, _chain(), RunState()) == "run-b"


def test_missing_run_name_is_fatal_with_raw_output():
    session = InMemorySession(job_run_output="FAILED: job snap-ops-2 not found")
    with pytest.raises(ChainTriggerError) as excinfo:
        trigger_next_job(session, _chain(), RunState())
    assert "not found" in excinfo.value.response
    assert excinfo.value.step == "CHAIN_TRIGGER"


def test_project_target_failure_is_fatal():
    session = InMemorySession(fail={"target_job_project"})
    with pytest.raises(ChainTriggerError):
        trigger_next_job(session, _chain(), RunState())
    assert session.called("submit_job_run") == 0
