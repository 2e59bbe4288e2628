"""Status polling until the LPAR settles."""

from __future__ import annotations

import logging
import time
from typing import Callable

from .config import PollingConfig
from .contracts import PUBLIC_IP_PENDING, PUBLIC_IP_UNRESOLVED, TERMINAL_STATUSES, RunState
from .errors import CommandError, PollingTimeoutError
from .instance import lookup_public_ip
from .platform.base import BaseSession

logger = logging.getLogger(__name__)


def wait_for_terminal_status(
    session: BaseSession,
    instance_id: str,
    polling: PollingConfig,
    sleep: Callable[[float], None] = time.sleep,
) -> str:
    """Block until the instance reports SHUTOFF/STOPPED.

    A failed status query is retried after ``polling.interval`` without using
    up an attempt; only an observed, non-terminal status counts.
    """
    logger.info(f"→ Waiting {polling.initial_wait:g} seconds for initial provisioning...")
    sleep(polling.initial_wait)
    logger.info(
        f"→ Beginning status polling (interval: {polling.interval:g}s, "
        f"max attempts: {polling.max_attempts})..."
    )

    attempt = 1
    while True:
        try:
            document = session.get_instance(instance_id)
        except CommandError:
            logger.warning("  ⚠ WARNING: Status retrieval failed - retrying...")
            sleep(polling.interval)
            continue

        status = str(document.get("status") or "")
        logger.info(f"  Status Check ({attempt}/{polling.max_attempts}): {status}")

        if status in TERMINAL_STATUSES:
            logger.info(f"✓ LPAR reached final state: {status}")
            return status

        if attempt >= polling.max_attempts:
            raise PollingTimeoutError(
                f"Status polling timed out after {polling.max_attempts} attempts "
                f"(last status: {status or 'unknown'})",
                step="STATUS_POLLING",
            )

        attempt += 1
        sleep(polling.interval)


def resolve_public_ip(session: BaseSession, state: RunState) -> str:
    """Re-query for the public IP when it was still pending after creation.

    Best-effort: a missing address becomes a placeholder, never an error.
    """
    if state.public_ip and state.public_ip != PUBLIC_IP_PENDING:
        return state.public_ip

    logger.info("→ Retrieving final public IP address...")
    public_ip = lookup_public_ip(session, state.instance_id)
    if public_ip:
        state.public_ip = public_ip
        logger.info(f"✓ Public IP assigned: {public_ip}")
    else:
        state.public_ip = PUBLIC_IP_UNRESOLVED
        logger.warning("⚠ Public IP not yet visible - check PowerVS console")
    return state.public_ip
