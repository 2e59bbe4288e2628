"""In-memory control-plane session for testing."""

from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from ..errors import CommandError
from .base import BaseSession

# A scripted status is either a status string or an exception to raise
StatusScript = Union[str, BaseException]


class InMemorySession(BaseSession):
    """Scriptable session that records every call.

    ``statuses`` is consumed one entry per ``get_instance`` call; once it runs
    out the last entry repeats. ``fail`` names operations that raise
    :class:`CommandError`.
    """

    def __init__(
        self,
        *,
        networks: Optional[List[Dict[str, Any]]] = None,
        created_network_id: Optional[str] = "net-created",
        statuses: Iterable[StatusScript] = ("SHUTOFF",),
        external_ips: Iterable[Optional[str]] = (),
        job_run_output: Optional[str] = None,
        fail: Iterable[str] = (),
    ) -> None:
        self.networks = list(networks or [])
        self.created_network_id = created_network_id
        self.statuses: List[StatusScript] = list(statuses)
        self.external_ips: List[Optional[str]] = list(external_ips)
        self.job_run_output = (
            job_run_output
            if job_run_output is not None
            else json.dumps({"metadata": {"name": "snap-ops-2-run-1"}})
        )
        self.fail = set(fail)
        self.calls: List[Tuple[str, ...]] = []
        self.targets: Dict[str, str] = {}
        self.deleted_instances: List[str] = []
        self.deleted_networks: List[str] = []

    def _record(self, operation: str, *args: str) -> None:
        self.calls.append((operation, *args))
        if operation in self.fail:
            raise CommandError(["ibmcloud", operation, *args], 1, f"{operation} failed")

    def called(self, operation: str) -> int:
        """Number of times ``operation`` was invoked."""
        return sum(1 for call in self.calls if call[0] == operation)

    def login(self, api_key: str, region: str) -> None:
        self._record("login", region)

    def target_resource_group(self, group: str) -> None:
        self._record("target_resource_group", group)
        self.targets["resource_group"] = group

    def target_workspace(self, crn: str) -> None:
        self._record("target_workspace", crn)
        self.targets["workspace"] = crn

    def list_networks(self) -> Any:
        self._record("list_networks")
        return list(self.networks)

    def create_network(self, name: str, net_type: str = "public") -> str:
        self._record("create_network", name, net_type)
        if self.created_network_id is None:
            return json.dumps({"message": "quota exceeded"})
        self.networks.append({"name": name, "id": self.created_network_id, "type": net_type})
        return json.dumps({"networkID": self.created_network_id, "name": name})

    def delete_network(self, network_id: str) -> None:
        self._record("delete_network", network_id)
        self.deleted_networks.append(network_id)

    def get_instance(self, instance_id: str) -> Dict[str, Any]:
        self._record("get_instance", instance_id)
        if not self.statuses:
            return {}
        scripted = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
        if isinstance(scripted, BaseException):
            raise scripted
        external_ip = None
        if self.external_ips:
            external_ip = (
                self.external_ips.pop(0) if len(self.external_ips) > 1 else self.external_ips[0]
            )
        return {
            "pvmInstanceID": instance_id,
            "status": scripted,
            "networks": [
                {"networkID": "net-private", "ipAddress": "192.168.0.69"},
                {"networkID": "net-public", "externalIP": external_ip},
            ],
        }

    def delete_instance(self, instance_id: str) -> None:
        self._record("delete_instance", instance_id)
        self.deleted_instances.append(instance_id)

    def target_job_project(self, project: str) -> None:
        self._record("target_job_project", project)
        self.targets["project"] = project

    def submit_job_run(self, job: str) -> str:
        self._record("submit_job_run", job)
        return self.job_run_output
