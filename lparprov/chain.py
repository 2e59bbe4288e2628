"""Optional hand-off to the next Code Engine job."""

from __future__ import annotations

import logging
from typing import Optional

from .config import ChainConfig
from .contracts import RunState
from .errors import ChainTriggerError, CommandError
from .platform.base import BaseSession
from .utils.extract import JOBRUN_NAME_PATHS, extract_first, parse_json

logger = logging.getLogger(__name__)


def trigger_next_job(
    session: BaseSession, chain: ChainConfig, state: RunState
) -> Optional[str]:
    """Submit the downstream job run when chaining is enabled.

    Returns the job-run name, or ``None`` when chaining is switched off.
    Failures raise :class:`ChainTriggerError`; provisioning is not undone.
    """
    if not chain.enabled:
        logger.info("→ Chained job not requested - skipping")
        logger.info(f"  The LPAR will remain in {state.final_status} state")
        logger.info("  Ready for manual volume attachment and OS startup")
        return None

    logger.info(f"→ Chained job requested - triggering {chain.job}...")
    try:
        if chain.resource_group:
            logger.info(f"  Targeting resource group: {chain.resource_group}...")
            session.target_resource_group(chain.resource_group)
        logger.info(f"  Switching to Code Engine project: {chain.project}...")
        session.target_job_project(chain.project)
    except CommandError as exc:
        raise ChainTriggerError(
            f"Unable to target Code Engine project {chain.project!r}",
            step="CHAIN_TRIGGER",
            response=exc.output,
        ) from exc

    logger.info(f"  Submitting Code Engine job: {chain.job}...")
    try:
        raw = session.submit_job_run(chain.job)
    except CommandError as exc:
        raise ChainTriggerError(
            f"Job submission failed for {chain.job!r}",
            step="CHAIN_TRIGGER",
            response=exc.output,
        ) from exc

    run_name = extract_first(parse_json(raw), JOBRUN_NAME_PATHS)
    if run_name is None:
        raise ChainTriggerError(
            "Job submission failed - no jobrun name returned",
            step="CHAIN_TRIGGER",
            response=raw,
        )

    state.chained_run = run_name
    logger.info(f"✓ {chain.job} triggered successfully")
    logger.info(f"  Jobrun instance: {run_name}")
    return run_name
