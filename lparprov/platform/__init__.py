"""Session factory and client construction."""

from __future__ import annotations

import os
from typing import Optional

from ..config import LparprovConfig, load_config
from ..errors import ConfigurationError
from .base import BaseSession
from .ibmcloud import IBMCloudSession
from .inmemory import InMemorySession
from .powervs import PowerVSClient


def get_session(
    backend: Optional[str] = None, config: Optional[LparprovConfig] = None
) -> BaseSession:
    """Factory function to get the control-plane session."""

    config = config or load_config()
    backend = (backend or os.getenv("LPARPROV_SESSION") or "ibmcloud").lower()

    if backend == "ibmcloud":
        return IBMCloudSession(binary=config.cloud.cli_binary)
    elif backend == "inmemory":
        return InMemorySession()
    else:
        raise ConfigurationError(f"Unsupported session backend: {backend}")


def get_api_client(config: LparprovConfig) -> PowerVSClient:
    """Build the REST client for the configured workspace."""
    return PowerVSClient(
        endpoint=config.cloud.api_endpoint,
        workspace_id=config.workspace.workspace_id,
        workspace_crn=config.workspace.crn,
        api_version=config.cloud.api_version,
        timeout=config.cloud.http_timeout,
    )


__all__ = [
    "BaseSession",
    "IBMCloudSession",
    "InMemorySession",
    "PowerVSClient",
    "get_api_client",
    "get_session",
]
