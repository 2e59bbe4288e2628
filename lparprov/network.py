"""Public network provisioning."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, List, Optional

from .config import NetworkConfig
from .contracts import RunState
from .errors import CommandError, NetworkProvisioningError
from .platform.base import BaseSession
from .utils.extract import NETWORK_ID_PATHS, extract_first, parse_json

logger = logging.getLogger(__name__)


def timestamped_name(base: str, now: Optional[datetime] = None) -> str:
    """``public-net`` -> ``public-net-20240228153000``."""
    return f"{base}-{(now or datetime.now()).strftime('%Y%m%d%H%M%S')}"


def _network_entries(listing: Any) -> List[dict]:
    if isinstance(listing, dict):
        listing = listing.get("networks")
    if not isinstance(listing, list):
        return []
    return [entry for entry in listing if isinstance(entry, dict)]


def find_network(session: BaseSession, name: str) -> Optional[str]:
    """Return the id of the first network named exactly ``name``."""
    try:
        listing = session.list_networks()
    except CommandError as exc:
        raise NetworkProvisioningError(
            "Failed to list existing networks",
            step="PUBLIC_SUBNET_SETUP",
            response=exc.output,
        ) from exc

    for entry in _network_entries(listing):
        if entry.get("name") == name:
            network_id = extract_first(entry, NETWORK_ID_PATHS)
            if network_id is not None:
                return network_id
    return None


def create_network(session: BaseSession, name: str) -> str:
    """Create a public network and return its id."""
    try:
        raw = session.create_network(name, net_type="public")
    except CommandError as exc:
        raise NetworkProvisioningError(
            f"Failed to create public subnet {name}",
            step="PUBLIC_SUBNET_SETUP",
            response=exc.output,
        ) from exc

    network_id = extract_first(parse_json(raw), NETWORK_ID_PATHS)
    if network_id is None:
        raise NetworkProvisioningError(
            f"Failed to create public subnet {name}: no id in response",
            step="PUBLIC_SUBNET_SETUP",
            response=raw,
        )
    return network_id


def ensure_public_network(
    session: BaseSession,
    settings: NetworkConfig,
    state: RunState,
    now: Optional[datetime] = None,
) -> str:
    """Make sure a public network exists and record it on ``state``.

    With the ``reuse`` policy an existing network of the configured name is
    returned without a create call. With ``create`` a fresh timestamped
    network is made on every run.
    """
    if settings.policy == "create":
        name = timestamped_name(settings.public_name, now)
    else:
        name = settings.public_name
    state.network_name = name

    if settings.policy == "reuse":
        logger.info(f"→ Checking for existing public subnet: {name}...")
        existing = find_network(session, name)
        if existing is not None:
            state.network_id = existing
            logger.info("✓ Public subnet already exists")
            logger.info(f"  Name: {name}")
            logger.info(f"  ID:   {existing}")
            return existing
        logger.info("→ Public subnet not found - creating new public subnet...")
    else:
        logger.info(f"→ Creating public subnet: {name}...")

    network_id = create_network(session, name)
    state.network_id = network_id
    state.created_network_id = network_id
    logger.info("✓ Public subnet created successfully")
    logger.info(f"  Name: {name}")
    logger.info(f"  ID:   {network_id}")
    return network_id
