"""lparprov: provision snapshot-ready IBMi LPARs on IBM PowerVS."""

from .config import LparprovConfig, load_config
from .contracts import NetworkAttachment, ProvisioningRequest, RunState, Step
from .errors import LparprovError
from .execute import ProvisioningRun
from .platform import get_api_client, get_session
from .rollback import RollbackGuard

__version__ = "0.1.0"
__all__ = [
    "LparprovConfig",
    "LparprovError",
    "NetworkAttachment",
    "ProvisioningRequest",
    "ProvisioningRun",
    "RollbackGuard",
    "RunState",
    "Step",
    "get_api_client",
    "get_session",
    "load_config",
]
