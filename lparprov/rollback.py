"""Compensating cleanup for partially provisioned resources."""

from __future__ import annotations

import logging
from types import TracebackType
from typing import Literal, Optional, Type

from .contracts import RunState
from .errors import CommandError
from .platform.base import BaseSession

logger = logging.getLogger(__name__)

BANNER = "=" * 72
RULE = "-" * 72


class RollbackGuard:
    """Delete what the run created if the guarded block fails.

    The guard is armed on entry. Call :meth:`disarm` once the last critical
    step has succeeded; later failures then propagate without cleanup.
    Cleanup is best-effort: deletion failures are logged and the original
    exception is re-raised unchanged.
    """

    def __init__(
        self,
        session: BaseSession,
        state: RunState,
        network_policy: Literal["preserve", "delete"] = "preserve",
    ) -> None:
        self._session = session
        self._state = state
        self._network_policy = network_policy
        self.armed = False
        self.triggered = False

    def __enter__(self) -> "RollbackGuard":
        self.armed = True
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> bool:
        if exc_type is not None and self.armed and issubclass(exc_type, Exception):
            self.compensate(exc)
        self.armed = False
        return False

    def disarm(self) -> None:
        self.armed = False

    def compensate(self, exc: Optional[BaseException] = None) -> None:
        """Attempt cleanup of every resource recorded on the run state."""
        self.triggered = True
        state = self._state
        logger.error("")
        logger.error(BANNER)
        logger.error(" ROLLBACK EVENT INITIATED")
        logger.error(BANNER)
        logger.error(f"Error occurred in step: {state.step.value}")
        if exc is not None:
            logger.error(f"Cause: {exc}")
        logger.error(RULE)

        if state.instance_id:
            logger.error(f"Attempting cleanup of partially created LPAR: {state.instance_id}")
            if self._delete(self._session.delete_instance, state.instance_id):
                logger.error("✓ LPAR cleanup successful")
            else:
                logger.error("✗ LPAR cleanup failed - manual intervention required")
        else:
            logger.error("No LPAR instance ID found - skipping LPAR cleanup")

        if state.created_network_id:
            if self._network_policy == "delete":
                logger.error(
                    f"Attempting cleanup of partially created public subnet: {state.network_name}"
                )
                logger.error(f"Subnet ID: {state.created_network_id}")
                if self._delete(self._session.delete_network, state.created_network_id):
                    logger.error("✓ Public subnet cleanup successful")
                else:
                    logger.error("✗ Public subnet cleanup failed - manual intervention required")
            else:
                logger.error("Note: Public subnet preserved (reusable resource)")
                logger.error(f"  Name: {state.network_name}")
                logger.error(f"  ID: {state.created_network_id}")
        elif state.network_id:
            logger.error(f"Pre-existing public subnet left untouched: {state.network_id}")
        else:
            logger.error("No public subnet ID found - skipping subnet cleanup")

        logger.error("")
        logger.error("Rollback complete. Exiting with failure status.")
        logger.error(BANNER)

    @staticmethod
    def _delete(delete, resource_id: str) -> bool:
        try:
            delete(resource_id)
        except CommandError as exc:
            logger.debug(f"cleanup of {resource_id} failed: {exc}")
            return False
        except Exception:
            logger.exception(f"Unexpected error while deleting {resource_id}")
            return False
        return True
