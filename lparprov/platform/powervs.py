"""Direct REST client for the PowerVS pvm-instances API."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)


class PowerVSClient:
    """Thin ``httpx`` wrapper around the instance create call.

    HTTP error statuses are returned like any other body; the caller decides
    success by whether an instance id can be read from it. Only transport
    failures raise (``httpx.TransportError``).
    """

    def __init__(
        self,
        endpoint: str,
        workspace_id: str,
        workspace_crn: str,
        api_version: str,
        timeout: Optional[float] = 60.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.workspace_id = workspace_id
        self.workspace_crn = workspace_crn
        self.api_version = api_version
        self._client = httpx.Client(base_url=endpoint, timeout=timeout, transport=transport)

    @property
    def instances_path(self) -> str:
        return f"/pcloud/v1/cloud-instances/{self.workspace_id}/pvm-instances"

    def create_instance(self, payload: Dict[str, Any], token: str) -> str:
        """POST the create request and return the raw response body."""
        response = self._client.post(
            self.instances_path,
            params={"version": self.api_version},
            headers={
                "Authorization": f"Bearer {token}",
                "CRN": self.workspace_crn,
                "Content-Type": "application/json",
            },
            json=payload,
        )
        logger.debug(f"create instance returned HTTP {response.status_code}")
        return response.text

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "PowerVSClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
