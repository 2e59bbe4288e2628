"""Provisioning run: drives the stages in order and owns the rollback guard."""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from .auth import IamTokenClient
from .chain import trigger_next_job
from .config import LparprovConfig, require_api_key, require_run_settings
from .contracts import PUBLIC_IP_NOT_ASSIGNED, PUBLIC_IP_PENDING, PUBLIC_IP_UNRESOLVED, RunState, Step
from .errors import AuthenticationError, CommandError
from .instance import build_request, create_instance, log_instance_details, lookup_public_ip
from .network import ensure_public_network
from .platform.base import BaseSession
from .platform.powervs import PowerVSClient
from .poller import resolve_public_ip, wait_for_terminal_status
from .rollback import BANNER, RULE, RollbackGuard

logger = logging.getLogger(__name__)


def _stage(title: str) -> None:
    logger.info(BANNER)
    logger.info(f" {title}")
    logger.info(BANNER)


def _stage_done(summary: str) -> None:
    logger.info(RULE)
    logger.info(f" {summary}")
    logger.info(RULE)


class ProvisioningRun:
    """One end-to-end LPAR provisioning run.

    Stages receive the immutable config and the mutable :class:`RunState`
    explicitly. Everything between authentication and polling success runs
    under a :class:`RollbackGuard`.
    """

    def __init__(
        self,
        config: LparprovConfig,
        session: BaseSession,
        api: PowerVSClient,
        token_client: Optional[IamTokenClient] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config
        self.session = session
        self.api = api
        self.token_client = token_client or IamTokenClient(
            config.cloud.iam_url, timeout=config.cloud.http_timeout
        )
        self.sleep = sleep
        self.state = RunState()

    def run(self) -> RunState:
        """Execute every stage; raises an ``LparprovError`` on fatal failure."""
        state = self.state
        logger.info(BANNER)
        logger.info(" EMPTY IBMi LPAR PROVISIONING")
        logger.info(" Purpose: Create snapshot-ready LPAR for backup operations")
        logger.info(BANNER)

        require_run_settings(self.config)
        logger.info("Configuration loaded successfully.")

        self.authenticate()

        with RollbackGuard(
            self.session, state, network_policy=self.config.network.on_rollback
        ) as guard:
            self.provision_network()
            self.provision_instance()
            self.poll_status()
            guard.disarm()

        self.log_summary()

        _stage("OPTIONAL STAGE: CHAIN TO NEXT JOB")
        state.enter(Step.CHAIN_TRIGGER)
        trigger_next_job(self.session, self.config.chain, state)

        state.enter(Step.COMPLETE)
        state.success = True
        return state

    def authenticate(self) -> None:
        """Log in, target group and workspace, then fetch a bearer token."""
        state = self.state
        cloud = self.config.cloud
        api_key = require_api_key(self.config)

        _stage("STAGE 1/3: IBM CLOUD AUTHENTICATION & WORKSPACE TARGETING")
        state.enter(Step.IBM_CLOUD_LOGIN)
        for message, action, failure in (
            (
                f"→ Authenticating to IBM Cloud (Region: {cloud.region})...",
                lambda: self.session.login(api_key, cloud.region),
                "IBM Cloud login failed",
            ),
            (
                f"→ Targeting resource group: {cloud.resource_group}...",
                lambda: self.session.target_resource_group(cloud.resource_group),
                "Failed to target resource group",
            ),
            (
                "→ Targeting PowerVS workspace...",
                lambda: self.session.target_workspace(self.config.workspace.crn),
                "Failed to target PowerVS workspace",
            ),
        ):
            logger.info(message)
            try:
                action()
            except CommandError as exc:
                raise AuthenticationError(
                    failure, step=state.step.value, response=exc.output
                ) from exc
            logger.info("✓ Done")

        state.enter(Step.IAM_TOKEN_RETRIEVAL)
        logger.info("→ Retrieving IAM access token for API authentication...")
        state.access_token = self.token_client.fetch_token(api_key)
        logger.info("✓ IAM token retrieved successfully")
        _stage_done("Stage 1 Complete: Authentication successful")

    def provision_network(self) -> None:
        state = self.state
        if not self.config.network.assign_public_ip:
            logger.info("→ Public IP disabled - skipping public subnet setup")
            return
        _stage("STAGE 1.5: PUBLIC SUBNET SETUP")
        state.enter(Step.PUBLIC_SUBNET_SETUP)
        ensure_public_network(self.session, self.config.network, state)
        _stage_done("Stage 1.5 Complete: Public subnet ready")

    def provision_instance(self) -> None:
        state = self.state
        settings = self.config.instance
        _stage("STAGE 2/3: LPAR CREATION & DEPLOYMENT")
        state.enter(Step.CREATE_LPAR)

        logger.info("→ Building LPAR configuration payload...")
        request = build_request(self.config, state.network_id or None)
        logger.info(
            "  Network Mode: "
            + ("Dual-homed (private + public)" if request.is_dual_homed else "Private only")
        )
        logger.info("→ Submitting LPAR creation request to PowerVS API...")
        create_instance(
            self.api,
            request,
            state,
            attempts=settings.create_attempts,
            backoff=settings.create_backoff,
            sleep=self.sleep,
        )
        logger.info("✓ LPAR creation request accepted")

        if request.is_dual_homed:
            settle = self.config.network.settle_wait
            logger.info(f"→ Waiting {settle:g} seconds for network interfaces to initialize...")
            self.sleep(settle)
            logger.info("→ Retrieving LPAR network configuration...")
            state.public_ip = lookup_public_ip(self.session, state.instance_id) or PUBLIC_IP_PENDING
        else:
            state.public_ip = PUBLIC_IP_NOT_ASSIGNED
        log_instance_details(request, state)

    def poll_status(self) -> None:
        state = self.state
        _stage("STAGE 3/3: PROVISIONING WAIT & STATUS POLLING")
        state.enter(Step.STATUS_POLLING)
        state.final_status = wait_for_terminal_status(
            self.session, state.instance_id, self.config.polling, sleep=self.sleep
        )
        if state.public_ip == PUBLIC_IP_PENDING:
            resolve_public_ip(self.session, state)
        _stage_done("Stage 3 Complete: LPAR provisioned and ready")

    def log_summary(self) -> None:
        state = self.state
        network = self.config.network
        _stage("COMPLETION SUMMARY")
        logger.info("  Status:          ✓ SUCCESS")
        logger.info(f"  LPAR Name:       {self.config.instance.name}")
        logger.info(f"  Instance ID:     {state.instance_id}")
        logger.info(f"  Final Status:    {state.final_status}")
        logger.info(f"  Private IP:      {network.private_ip or '(DHCP)'}")
        logger.info(f"  Private Subnet:  {network.private_network_id}")
        if state.network_id:
            logger.info(f"  Public IP:       {state.public_ip}")
            logger.info(f"  Public Subnet:   {state.network_name} ({state.network_id})")
        if state.public_ip not in (
            "",
            PUBLIC_IP_PENDING,
            PUBLIC_IP_UNRESOLVED,
            PUBLIC_IP_NOT_ASSIGNED,
        ):
            logger.info(f"  SSH Access:      {state.public_ip}")
        logger.info("  Next Steps:")
        logger.info(f"  - LPAR is in {state.final_status} state and ready for volume attachment")
        logger.info("  - Run the volume cloning job to restore OS and data")
        logger.info(BANNER)
