"""LPAR creation through the PowerVS REST API."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, Optional

import httpx

from .config import LparprovConfig
from .contracts import (
    PUBLIC_IP_PENDING,
    NetworkAttachment,
    ProvisioningRequest,
    RunState,
)
from .errors import CommandError, InstanceCreationError
from .platform.base import BaseSession
from .platform.powervs import PowerVSClient
from .utils.extract import INSTANCE_ID_PATHS, extract_first, parse_json
from .utils.retry import RetryExhausted, retry_call

logger = logging.getLogger(__name__)


def build_request(
    config: LparprovConfig, public_network_id: Optional[str] = None
) -> ProvisioningRequest:
    """Assemble the create request: private attachment first, public second."""
    networks = [
        NetworkAttachment(
            network_id=config.network.private_network_id,
            ip_address=config.network.private_ip,
        )
    ]
    if public_network_id:
        networks.append(NetworkAttachment(network_id=public_network_id))

    instance = config.instance
    return ProvisioningRequest(
        server_name=instance.name,
        memory=instance.memory,
        processors=instance.processors,
        proc_type=instance.proc_type,
        sys_type=instance.sys_type,
        image_id=instance.image_id,
        deployment_type=instance.deployment_type,
        key_pair_name=instance.key_pair_name,
        networks=tuple(networks),
    )


def extract_instance_id(body: Optional[str]) -> Optional[str]:
    """Read the instance id from any of the known response shapes."""
    return extract_first(parse_json(body), INSTANCE_ID_PATHS)


def create_instance(
    client: PowerVSClient,
    request: ProvisioningRequest,
    state: RunState,
    *,
    attempts: int = 3,
    backoff: float = 5.0,
    sleep: Callable[[float], None] = time.sleep,
) -> str:
    """Submit the create request, retrying transient failures.

    Returns the instance id and records it on ``state``. Raises
    :class:`InstanceCreationError` with the last raw response once every
    attempt has failed.
    """
    payload = request.to_payload()
    last_body: Dict[str, Optional[str]] = {"body": None}

    def attempt_create(attempt: int) -> Optional[str]:
        logger.info(f"  Attempt {attempt}/{attempts}...")
        body = client.create_instance(payload, state.access_token)
        last_body["body"] = body
        instance_id = extract_instance_id(body)
        if instance_id is None:
            logger.warning("  ⚠ WARNING: Could not extract instance ID - retrying...")
        return instance_id

    try:
        instance_id = retry_call(
            attempt_create,
            attempts=attempts,
            backoff=backoff,
            retry_on=(httpx.TransportError,),
            sleep=sleep,
        )
    except RetryExhausted as exc:
        # a transport failure on the last attempt leaves no body to report
        response = str(exc.last_error) if exc.last_error is not None else last_body["body"]
        raise InstanceCreationError(
            f"Could not retrieve LPAR instance ID after {exc.attempts} attempts",
            step="CREATE_LPAR",
            response=response,
        ) from exc

    state.instance_id = instance_id
    return instance_id


def first_external_ip(document: Dict[str, Any]) -> Optional[str]:
    """First non-null ``networks[].externalIP`` of an instance document."""
    networks = document.get("networks") or []
    if not isinstance(networks, list):
        return None
    for network in networks:
        if isinstance(network, dict):
            external_ip = network.get("externalIP")
            if external_ip and external_ip != "null":
                return str(external_ip)
    return None


def lookup_public_ip(session: BaseSession, instance_id: str) -> Optional[str]:
    """Query the instance once for its external IP; ``None`` if not there yet."""
    try:
        document = session.get_instance(instance_id)
    except CommandError as exc:
        logger.debug(f"instance lookup failed: {exc}")
        return None
    return first_external_ip(document)


def log_instance_details(request: ProvisioningRequest, state: RunState) -> None:
    private = request.networks[0] if request.networks else None
    logger.info("  LPAR Details:")
    logger.info("  +--------------------------------------------------------------+")
    logger.info(f"  | Name:        {request.server_name}")
    logger.info(f"  | Instance ID: {state.instance_id}")
    if private is not None:
        logger.info(f"  | Private IP:  {private.ip_address or '(DHCP)'}")
        logger.info(f"  | Private Net: {private.network_id}")
    if state.network_id:
        logger.info(f"  | Public Net:  {state.network_id} ({state.network_name})")
        logger.info(f"  | Public IP:   {state.public_ip or PUBLIC_IP_PENDING}")
    logger.info(f"  | CPU Cores:   {request.processors}")
    logger.info(f"  | Memory:      {request.memory} GB")
    logger.info(f"  | Proc Type:   {request.proc_type}")
    logger.info(f"  | System Type: {request.sys_type}")
    logger.info("  +--------------------------------------------------------------+")
