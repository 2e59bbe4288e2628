"""Command line interface for LPAR provisioning runs."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

import typer
import yaml

from lparprov.config import load_config, masked, require_api_key
from lparprov.errors import LparprovError
from lparprov.execute import ProvisioningRun
from lparprov.instance import first_external_ip
from lparprov.platform import get_api_client, get_session

app = typer.Typer(help="Provision empty IBMi LPARs on PowerVS")

config_app = typer.Typer(help="Commands for inspecting configuration")
app.add_typer(config_app, name="config")

LOG_FORMAT = "[%(asctime)s] %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

logger = logging.getLogger("lparprov")


def configure_logging(verbose: bool = False) -> None:
    """Send timestamp-prefixed package logs to stdout."""
    for handler in list(logger.handlers):
        if getattr(handler, "_lparprov", False):
            logger.removeHandler(handler)
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, LOG_DATEFMT))
    handler._lparprov = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)


def _report_failure(exc: LparprovError) -> None:
    logger.error(f"✗ ERROR: {exc}")
    if exc.step:
        logger.error(f"  Step: {exc.step}")
    if exc.response:
        logger.error("  Response:")
        for line in exc.response.strip().splitlines():
            logger.error(f"  {line}")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """lparprov CLI entry point."""
    configure_logging(verbose)


@app.command("run")
def run(
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="YAML config file (default: $LPARPROV_CONFIG or ./lparprov.yaml)"
    ),
) -> None:
    """
    Provision the configured LPAR and wait until it is stopped.

    Authenticates, ensures the public subnet, creates the LPAR, polls until it
    reaches SHUTOFF/STOPPED and optionally submits the chained job. Partially
    created resources are rolled back on failure.

    Example:
        IBMCLOUD_API_KEY=... lparprov run --config lparprov.yaml
        RUN_ATTACH_JOB=Yes lparprov run
    """
    try:
        config = load_config(str(config_path) if config_path else None)
        session = get_session(config=config)
        api = get_api_client(config)
    except LparprovError as exc:
        _report_failure(exc)
        raise typer.Exit(code=1)

    try:
        with api:
            ProvisioningRun(config, session, api).run()
    except LparprovError as exc:
        _report_failure(exc)
        raise typer.Exit(code=1)
    finally:
        session.close()


@app.command("status")
def status(
    instance_id: str,
    config_path: Optional[Path] = typer.Option(None, "--config", "-c"),
) -> None:
    """
    Show the current status and external IP of an LPAR.

    Example:
        lparprov status 7f0c9c1e-...
    """
    try:
        config = load_config(str(config_path) if config_path else None)
        api_key = require_api_key(config)
        session = get_session(config=config)
        session.login(api_key, config.cloud.region)
        session.target_resource_group(config.cloud.resource_group)
        session.target_workspace(config.workspace.crn)
        document = session.get_instance(instance_id)
    except LparprovError as exc:
        _report_failure(exc)
        raise typer.Exit(code=1)

    typer.echo(f"Instance {instance_id}: {document.get('status') or 'UNKNOWN'}")
    typer.echo(f"Public IP: {first_external_ip(document) or '(none)'}")


@config_app.command("show")
def config_show(
    config_path: Optional[Path] = typer.Option(None, "--config", "-c"),
) -> None:
    """Print the resolved configuration with the API key masked."""
    try:
        config = load_config(str(config_path) if config_path else None)
    except LparprovError as exc:
        _report_failure(exc)
        raise typer.Exit(code=1)
    typer.echo(yaml.safe_dump(masked(config), sort_keys=False).rstrip())


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    app()
