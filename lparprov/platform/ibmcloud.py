"""Control-plane session backed by the ``ibmcloud`` CLI."""

from __future__ import annotations

import logging
import shlex
import subprocess
from typing import Any, Dict, List

from ..errors import CommandError
from ..utils.extract import parse_json
from .base import BaseSession

logger = logging.getLogger(__name__)

_SECRET_FLAGS = {"--apikey"}


def redact(command: List[str]) -> List[str]:
    """Hide the value following any secret-bearing flag."""
    redacted = list(command)
    for index, part in enumerate(redacted[:-1]):
        if part in _SECRET_FLAGS:
            redacted[index + 1] = "****"
    return redacted


class IBMCloudSession(BaseSession):
    """Run ``ibmcloud`` commands in a subprocess.

    The CLI keeps its login and targets in its own home directory, so the
    session state is ambient: a successful ``target_workspace`` applies to
    every later ``pi`` command.
    """

    def __init__(self, binary: str = "ibmcloud") -> None:
        self.binary = binary

    def _run(self, *args: str, merge_stderr: bool = False) -> str:
        command = [self.binary, *args]
        rendered = " ".join(shlex.quote(part) for part in redact(command))
        logger.debug(f"run: {rendered}")
        try:
            completed = subprocess.run(
                command,
                check=False,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT if merge_stderr else subprocess.PIPE,
                text=True,
            )
        except FileNotFoundError as exc:
            raise CommandError(redact(command), 127, f"command not found: {self.binary}") from exc

        output = completed.stdout or ""
        if completed.returncode != 0:
            detail = output if merge_stderr else (completed.stderr or output)
            logger.debug(f"exit {completed.returncode}: {detail.strip()}")
            raise CommandError(redact(command), completed.returncode, detail)
        return output

    def login(self, api_key: str, region: str) -> None:
        self._run("login", "--apikey", api_key, "-r", region)

    def target_resource_group(self, group: str) -> None:
        self._run("target", "-g", group)

    def target_workspace(self, crn: str) -> None:
        self._run("pi", "workspace", "target", crn)

    def list_networks(self) -> Any:
        return parse_json(self._run("pi", "subnet", "list", "--json"))

    def create_network(self, name: str, net_type: str = "public") -> str:
        return self._run(
            "pi", "subnet", "create", name, "--net-type", net_type, "--json",
            merge_stderr=True,
        )

    def delete_network(self, network_id: str) -> None:
        self._run("pi", "subnet", "delete", network_id)

    def get_instance(self, instance_id: str) -> Dict[str, Any]:
        document = parse_json(self._run("pi", "instance", "get", instance_id, "--json"))
        return document if isinstance(document, dict) else {}

    def delete_instance(self, instance_id: str) -> None:
        self._run("pi", "instance", "delete", instance_id)

    def target_job_project(self, project: str) -> None:
        self._run("ce", "project", "target", "--name", project)

    def submit_job_run(self, job: str) -> str:
        return self._run(
            "ce", "jobrun", "submit", "--job", job, "--output", "json",
            merge_stderr=True,
        )
