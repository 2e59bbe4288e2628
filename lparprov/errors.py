"""Error hierarchy for lparprov runs."""

from __future__ import annotations

from typing import Optional, Sequence


class LparprovError(Exception):
    """Base class for fatal provisioning errors.

    ``step`` names the pipeline step that failed and ``response`` keeps the raw
    body that could not be used, so operators can diagnose by hand.
    """

    def __init__(
        self,
        message: str,
        *,
        step: Optional[str] = None,
        response: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.step = step
        self.response = response


class ConfigurationError(LparprovError):
    """Configuration is missing or invalid."""


class AuthenticationError(LparprovError):
    """Login, targeting or token exchange failed."""


class NetworkProvisioningError(LparprovError):
    """The public network could not be found or created."""


class InstanceCreationError(LparprovError):
    """No instance identifier was obtained after all attempts."""


class PollingTimeoutError(LparprovError):
    """The instance did not reach a terminal status in time."""


class ChainTriggerError(LparprovError):
    """The downstream job could not be submitted."""


class CommandError(LparprovError):
    """A control-plane CLI command exited with a non-zero status."""

    def __init__(
        self, command: Sequence[str], returncode: int, output: str = ""
    ) -> None:
        super().__init__(
            f"command failed with exit code {returncode}: {' '.join(command)}",
            response=output,
        )
        self.command = list(command)
        self.returncode = returncode
        self.output = output


__all__ = [
    "LparprovError",
    "ConfigurationError",
    "AuthenticationError",
    "NetworkProvisioningError",
    "InstanceCreationError",
    "PollingTimeoutError",
    "ChainTriggerError",
    "CommandError",
]
