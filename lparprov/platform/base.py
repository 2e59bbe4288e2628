"""Base interface for the cloud control-plane session."""

from __future__ import annotations

import abc
from typing import Any, Dict


class BaseSession(metaclass=abc.ABCMeta):
    """Abstract control-plane session.

    Every call is synchronous. Failures raise
    :class:`~lparprov.errors.CommandError`; callers decide whether a failure is
    transient or fatal.
    """

    @abc.abstractmethod
    def login(self, api_key: str, region: str) -> None:
        """Authenticate the session."""
        raise NotImplementedError

    @abc.abstractmethod
    def target_resource_group(self, group: str) -> None:
        """Set the default resource group for later calls."""
        raise NotImplementedError

    @abc.abstractmethod
    def target_workspace(self, crn: str) -> None:
        """Set the PowerVS workspace for later calls."""
        raise NotImplementedError

    @abc.abstractmethod
    def list_networks(self) -> Any:
        """Return the parsed network listing."""
        raise NotImplementedError

    @abc.abstractmethod
    def create_network(self, name: str, net_type: str = "public") -> str:
        """Create a network and return the raw response text."""
        raise NotImplementedError

    @abc.abstractmethod
    def delete_network(self, network_id: str) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    def get_instance(self, instance_id: str) -> Dict[str, Any]:
        """Return the instance document (``{}`` when unparseable)."""
        raise NotImplementedError

    @abc.abstractmethod
    def delete_instance(self, instance_id: str) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    def target_job_project(self, project: str) -> None:
        """Target a Code Engine project."""
        raise NotImplementedError

    @abc.abstractmethod
    def submit_job_run(self, job: str) -> str:
        """Submit a job run and return the raw output."""
        raise NotImplementedError

    def close(self) -> None:
        """Release session resources (no-op by default)."""
        pass
