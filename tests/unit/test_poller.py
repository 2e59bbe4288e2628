"""Status polling tests."""

import pytest

from lparprov.config import PollingConfig
from lparprov.contracts import PUBLIC_IP_PENDING, PUBLIC_IP_UNRESOLVED, RunState
from lparprov.errors import CommandError, PollingTimeoutError
from lparprov.platform.inmemory import InMemorySession
from lparprov.poller import resolve_public_ip, wait_for_terminal_status


def _query_failure():
    return CommandError(["ibmcloud", "pi", "instance", "get"], 1, "timeout")


@pytest.mark.parametrize("terminal", ["SHUTOFF", "STOPPED"])
def test_returns_immediately_on_terminal_status(terminal, sleeper):
    session = InMemorySession(statuses=[terminal])
    polling = PollingConfig(interval=30, max_attempts=5, initial_wait=45)

    assert wait_for_terminal_status(session, "abc", polling, sleep=sleeper) == terminal
    assert session.called("get_instance") == 1
    assert sleeper.calls == [45]


def test_build_then_shutoff(sleeper):
    session = InMemorySession(statuses=["BUILD", "BUILD", "SHUTOFF"])
    polling = PollingConfig(interval=30, max_attempts=5, initial_wait=45)

    assert wait_for_terminal_status(session, "abc", polling, sleep=sleeper) == "SHUTOFF"
    assert sleeper.calls == [45, 30, 30]


def test_query_failures_do_not_consume_budget(sleeper):
    session = InMemorySession(
        statuses=[_query_failure(), _query_failure(), _query_failure(), "BUILD", "STOPPED"]
    )
    polling = PollingConfig(interval=1, max_attempts=2, initial_wait=0)

    assert wait_for_terminal_status(session, "abc", polling, sleep=sleeper) == "STOPPED"
    assert session.called("get_instance") == 5


def test_times_out_exactly_at_max_attempts(sleeper):
    session = InMemorySession(statuses=["BUILD"])
    polling = PollingConfig(interval=30, max_attempts=3, initial_wait=45)

    with pytest.raises(PollingTimeoutError) as excinfo:
        wait_for_terminal_status(session, "abc", polling, sleep=sleeper)

    assert session.called("get_instance") == 3
    assert sleeper.calls == [45, 30, 30]
    assert excinfo.value.step == "STATUS_POLLING"
    assert "BUILD" in str(excinfo.value)


def test_empty_status_counts_as_non_terminal(sleeper):
    session = InMemorySession(statuses=[])
    polling = PollingConfig(interval=0, max_attempts=2, initial_wait=0)
    with pytest.raises(PollingTimeoutError):
        wait_for_terminal_status(session, "abc", polling, sleep=sleeper)
    assert session.called("get_instance") == 2


def test_resolve_public_ip_found():
    session = InMemorySession(statuses=["SHUTOFF"], external_ips=["52.116.1.2"])
    state = RunState(instance_id="abc", public_ip=PUBLIC_IP_PENDING)
    assert resolve_public_ip(session, state) == "52.116.1.2"
    assert state.public_ip == "52.116.1.2"


def test_resolve_public_ip_placeholder_when_absent():
    session = InMemorySession(statuses=["SHUTOFF"])
    state = RunState(instance_id="abc", public_ip=PUBLIC_IP_PENDING)
    assert resolve_public_ip(session, state) == PUBLIC_IP_UNRESOLVED


def test_resolve_public_ip_skips_query_when_known():
    session = InMemorySession()
    state = RunState(instance_id="abc", public_ip="52.116.1.2")
    assert resolve_public_ip(session, state) == "52.116.1.2"
    assert session.called("get_instance") == 0
