from __future__ import annotations

import os
from typing import Any, Dict, Literal, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ConfigurationError

API_KEY_ENV = "IBMCLOUD_API_KEY"
CHAIN_FLAG_ENV = "RUN_ATTACH_JOB"
CONFIG_PATH_ENV = "LPARPROV_CONFIG"
DEFAULT_CONFIG_PATH = "lparprov.yaml"

_TRUTHY = {"1", "y", "yes", "true", "on"}


def is_truthy(value: Optional[str]) -> bool:
    """Interpret a boolean-like environment value such as ``Yes`` or ``true``."""
    return (value or "").strip().lower() in _TRUTHY


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class CloudConfig(_Frozen):
    """Account, region and endpoint settings."""

    api_key: Optional[str] = Field(default=None, repr=False)
    region: str = "us-south"
    resource_group: str = "Default"
    iam_url: str = "https://iam.cloud.ibm.com/identity/token"
    api_version: str = "2024-02-28"
    cli_binary: str = "ibmcloud"
    http_timeout: Optional[float] = 60.0

    @property
    def api_endpoint(self) -> str:
        return f"https://{self.region}.power-iaas.cloud.ibm.com"


class WorkspaceConfig(_Frozen):
    """PowerVS workspace the LPAR is created in."""

    crn: str = ""
    id: Optional[str] = None

    @property
    def workspace_id(self) -> str:
        """Explicit id, else the GUID segment of the CRN."""
        if self.id:
            return self.id
        parts = self.crn.split(":")
        return parts[7] if len(parts) > 7 else ""


class NetworkConfig(_Frozen):
    """Private attachment and public network policy."""

    private_network_id: str = ""
    private_ip: Optional[str] = None
    assign_public_ip: bool = True
    public_name: str = "public-net-ibmi-backup"
    # reuse: look up by name and create only when absent
    # create: always create a new network with a timestamp suffix
    policy: Literal["reuse", "create"] = "reuse"
    on_rollback: Literal["preserve", "delete"] = "preserve"
    settle_wait: float = 10.0


class InstanceConfig(_Frozen):
    """LPAR sizing and create-call retry settings."""

    name: str = ""
    memory: float = 2
    processors: float = 0.25
    proc_type: str = "shared"
    sys_type: str = "s1022"
    image_id: str = "IBMI-EMPTY"
    deployment_type: str = "VMNoStorage"
    key_pair_name: str = ""
    create_attempts: int = Field(default=3, ge=1)
    create_backoff: float = Field(default=5.0, ge=0)


class PollingConfig(_Frozen):
    interval: float = Field(default=30.0, ge=0)
    max_attempts: int = Field(default=30, ge=1)
    initial_wait: float = Field(default=45.0, ge=0)


class ChainConfig(_Frozen):
    """Optional follow-on Code Engine job."""

    enabled: bool = False
    resource_group: Optional[str] = None
    project: str = ""
    job: str = ""


class LparprovConfig(_Frozen):
    """Top-level configuration model."""

    cloud: CloudConfig = CloudConfig()
    workspace: WorkspaceConfig = WorkspaceConfig()
    network: NetworkConfig = NetworkConfig()
    instance: InstanceConfig = InstanceConfig()
    polling: PollingConfig = PollingConfig()
    chain: ChainConfig = ChainConfig()


def _override(data: Dict[str, Any], section: str, key: str, value: Any) -> None:
    current = data.get(section) or {}
    if isinstance(current, dict):
        data[section] = {**current, key: value}


def _apply_env(data: Dict[str, Any]) -> Dict[str, Any]:
    api_key = os.getenv(API_KEY_ENV)
    if api_key:
        _override(data, "cloud", "api_key", api_key)
    chain_flag = os.getenv(CHAIN_FLAG_ENV)
    if chain_flag is not None:
        _override(data, "chain", "enabled", is_truthy(chain_flag))
    return data


def load_config(path: Optional[str] = None) -> LparprovConfig:
    """Load configuration from YAML file and environment.

    Args:
        path: Optional path to config file. Falls back to LPARPROV_CONFIG env
            variable or 'lparprov.yaml' in the current directory. A missing
            file leaves the built-in defaults in place.
    """

    config_path = path or os.getenv(CONFIG_PATH_ENV, DEFAULT_CONFIG_PATH)
    data: Dict[str, Any] = {}
    if os.path.exists(config_path):
        try:
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigurationError(f"{config_path} must contain a mapping")
        # an empty section (`cloud:` with every key commented out) parses to None
        data = {section: {} if values is None else values for section, values in data.items()}
    elif path:
        raise ConfigurationError(f"Config file not found: {path}")

    try:
        return LparprovConfig(**_apply_env(data))
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc


def require_api_key(config: LparprovConfig) -> str:
    """Return the credential or fail before any call is made."""
    api_key = (config.cloud.api_key or "").strip()
    if not api_key:
        raise ConfigurationError(
            f"{API_KEY_ENV} is not set; a credential is required", step="INITIALIZATION"
        )
    return api_key


def require_run_settings(config: LparprovConfig) -> None:
    """Check the settings a full run cannot default."""
    require_api_key(config)
    missing = [
        name
        for name, value in (
            ("workspace.crn", config.workspace.crn),
            ("workspace.id", config.workspace.workspace_id),
            ("instance.name", config.instance.name),
            ("instance.key_pair_name", config.instance.key_pair_name),
            ("network.private_network_id", config.network.private_network_id),
        )
        if not value
    ]
    if config.chain.enabled:
        missing += [
            name
            for name, value in (("chain.project", config.chain.project), ("chain.job", config.chain.job))
            if not value
        ]
    if missing:
        raise ConfigurationError(
            f"Missing required settings: {', '.join(missing)}", step="INITIALIZATION"
        )


def masked(config: LparprovConfig) -> Dict[str, Any]:
    """Dump ``config`` with the credential hidden."""
    data = config.model_dump()
    if data["cloud"].get("api_key"):
        data["cloud"]["api_key"] = "****"
    return data
