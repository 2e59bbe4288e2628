"""Core data contracts for an LPAR provisioning run."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = frozenset({"SHUTOFF", "STOPPED"})

PUBLIC_IP_PENDING = "Pending - Will be assigned during provisioning"
PUBLIC_IP_UNRESOLVED = "Check PowerVS Console (may take 2-3 minutes to appear)"
PUBLIC_IP_NOT_ASSIGNED = "Not Assigned"


class Step(str, Enum):
    """Pipeline step names reported by rollback and the summary."""

    INITIALIZATION = "INITIALIZATION"
    IBM_CLOUD_LOGIN = "IBM_CLOUD_LOGIN"
    IAM_TOKEN_RETRIEVAL = "IAM_TOKEN_RETRIEVAL"
    PUBLIC_SUBNET_SETUP = "PUBLIC_SUBNET_SETUP"
    CREATE_LPAR = "CREATE_LPAR"
    STATUS_POLLING = "STATUS_POLLING"
    CHAIN_TRIGGER = "CHAIN_TRIGGER"
    COMPLETE = "COMPLETE"


class NetworkAttachment(BaseModel):
    """One network interface of the LPAR."""

    model_config = ConfigDict(frozen=True)

    network_id: str
    ip_address: Optional[str] = None

    def to_payload(self) -> Dict[str, str]:
        entry = {"networkID": self.network_id}
        if self.ip_address:
            entry["ipAddress"] = self.ip_address
        return entry


class ProvisioningRequest(BaseModel):
    """Immutable description of the LPAR to create."""

    model_config = ConfigDict(frozen=True)

    server_name: str
    memory: float
    processors: float
    proc_type: str
    sys_type: str
    image_id: str
    deployment_type: str
    key_pair_name: str
    networks: tuple[NetworkAttachment, ...] = ()

    @property
    def is_dual_homed(self) -> bool:
        return len(self.networks) > 1

    def to_payload(self) -> Dict[str, Any]:
        """Build the JSON body for the pvm-instances create call."""
        return {
            "serverName": self.server_name,
            "processors": self.processors,
            "memory": self.memory,
            "procType": self.proc_type,
            "sysType": self.sys_type,
            "imageID": self.image_id,
            "deploymentType": self.deployment_type,
            "keyPairName": self.key_pair_name,
            "networks": [network.to_payload() for network in self.networks],
        }


class RunState(BaseModel):
    """Mutable record threaded through every stage of one run."""

    step: Step = Step.INITIALIZATION
    instance_id: str = ""
    access_token: str = Field(default="", repr=False)
    network_id: str = ""
    network_name: str = ""
    created_network_id: str = ""
    public_ip: str = ""
    final_status: str = ""
    chained_run: str = ""
    success: bool = False
    history: List[Step] = Field(default_factory=list)

    def enter(self, step: Step) -> None:
        """Record that the run moved on to ``step``."""
        logger.debug(f"Entering step {step.value} (from {self.step.value})")
        self.step = step
        self.history.append(step)
