"""Bootstrap commands for LoadMaster appliances.

This module provides `lm-bootstrap run`, `status` and `plan`. All three take
an inventory YAML file; only `run` changes anything on the appliances.
"""

from __future__ import annotations

import asyncio
import json
import sys

import click

from ..bootstrap import BootstrapOrchestrator, BootstrapStep, RunReport
from ..client import LoadMasterClient
from ..config import CLIConfig
from ..errors import ValidationError
from ..formatters import print_plan, print_run_report, print_status_table
from ..inventory import Inventory, load_inventory
from ..shared.logging import get_logger
from ..shared.secrets import BootstrapSecrets, click_prompt

logger = get_logger(__name__)

EXIT_VALIDATION = 2

inventory_argument = click.argument("inventory", type=click.Path(exists=True, dir_okay=False))


def _load(config: CLIConfig, path: str, only: tuple[str, ...] = ()) -> Inventory:
    try:
        return load_inventory(path, default_port=config.port).select(only)
    except ValidationError as e:
        click.echo(f"✗ {e.message}", err=True)
        sys.exit(EXIT_VALIDATION)


def _client(config: CLIConfig) -> LoadMasterClient:
    return LoadMasterClient(timeout=config.timeout, verify_tls=config.verify_tls)


@click.command()
@inventory_argument
@click.option("--admin-password", default=None, help="Admin password to set for 'bal'")
@click.option("--kemp-id", default=None, help="KEMP ID for online activation")
@click.option("--kemp-password", default=None, help="KEMP ID password")
@click.option(
    "--on-parameter-error",
    type=click.Choice(["abort", "continue"]),
    default=None,
    help="Fail the appliance on a parameter error, or record it and continue",
)
@click.option("--only", multiple=True, help="Bootstrap only this hostname (repeatable)")
@click.option("--port", type=int, default=None, help="Default management port")
@click.option("--timeout", type=int, default=None, help="Request timeout in seconds")
@click.option("--verify-tls/--insecure", default=None, help="Verify appliance certificates")
@click.option("--non-interactive", "-y", is_flag=True, help="Never prompt for secrets")
@click.pass_context
def run(
    ctx: click.Context,
    inventory: str,
    admin_password: str | None,
    kemp_id: str | None,
    kemp_password: str | None,
    on_parameter_error: str | None,
    only: tuple[str, ...],
    port: int | None,
    timeout: int | None,
    verify_tls: bool | None,
    non_interactive: bool,
) -> None:
    """Bootstrap every appliance in INVENTORY.

    Unlicensed appliances go through EULA acceptance, online activation and
    initial password setup; licensed ones skip straight to hostname,
    parameters and interfaces.

    Examples:

        # Prompt for secrets as needed
        lm-bootstrap run fleet.yaml

        # Unattended, secrets from the environment
        LM_BOOTSTRAP_ADMIN_PASSWORD=... lm-bootstrap run fleet.yaml -y

        # Keep going when a parameter is rejected
        lm-bootstrap run fleet.yaml --on-parameter-error continue
    """
    config: CLIConfig = ctx.obj["config"]
    config.override("port", port)
    config.override("timeout", timeout)
    config.override("verify_tls", verify_tls)
    config.override("on_parameter_error", on_parameter_error)

    fleet = _load(config, inventory, only)

    secrets = BootstrapSecrets(
        admin_password=admin_password,
        kemp_id=kemp_id,
        kemp_password=kemp_password,
        prompter=None if non_interactive else click_prompt,
    )
    try:
        # Needed by every appliance; ask before the first call goes out
        secrets.admin_password
    except ValidationError as e:
        click.echo(f"✗ {e.message}", err=True)
        sys.exit(EXIT_VALIDATION)

    quiet = ctx.obj["quiet"] or ctx.obj["json_output"]
    report = asyncio.run(_run_bootstrap(config, fleet, secrets, quiet=quiet))

    if ctx.obj["json_output"]:
        click.echo(json.dumps(report.to_dict(), indent=2))
    elif not ctx.obj["quiet"]:
        print_run_report(report)

    sys.exit(report.exit_code)


async def _run_bootstrap(
    config: CLIConfig,
    fleet: Inventory,
    secrets: BootstrapSecrets,
    quiet: bool = False,
) -> RunReport:
    """Execute the bootstrap over the whole fleet."""

    def on_step(hostname: str, step: BootstrapStep) -> None:
        if not quiet:
            click.echo(f"  {hostname}: {step.value}", err=True)

    logger.info(
        "bootstrap run starting",
        appliances=len(fleet.appliances),
        parameters=len(fleet.parameters),
        policy=config.on_parameter_error,
    )
    async with _client(config) as client:
        orchestrator = BootstrapOrchestrator(
            client,
            secrets,
            parameter_policy=config.parameter_policy,
            factory_password=config.factory_password,
            detect_attempts=config.detect_attempts,
            on_step=on_step,
        )
        return await orchestrator.run(fleet)


@click.command()
@inventory_argument
@click.option("--only", multiple=True, help="Query only this hostname (repeatable)")
@click.pass_context
def status(ctx: click.Context, inventory: str, only: tuple[str, ...]) -> None:
    """Show the license state of every appliance in INVENTORY."""
    config: CLIConfig = ctx.obj["config"]
    fleet = _load(config, inventory, only)

    async def _survey():
        async with _client(config) as client:
            orchestrator = BootstrapOrchestrator(
                client,
                BootstrapSecrets(prompter=None),
                factory_password=config.factory_password,
                detect_attempts=config.detect_attempts,
            )
            return await orchestrator.survey(fleet)

    statuses = asyncio.run(_survey())

    if ctx.obj["json_output"]:
        click.echo(json.dumps([s.to_dict() for s in statuses], indent=2))
    else:
        print_status_table(statuses)

    if any(s.error for s in statuses):
        sys.exit(1)


@click.command()
@inventory_argument
@click.pass_context
def plan(ctx: click.Context, inventory: str) -> None:
    """Validate INVENTORY and show the planned steps. No appliance is contacted."""
    config: CLIConfig = ctx.obj["config"]
    fleet = _load(config, inventory)

    errors: dict[str, str] = {}
    for appliance in fleet.appliances:
        try:
            appliance.validate()
        except ValidationError as e:
            errors[appliance.hostname] = e.message

    if ctx.obj["json_output"]:
        click.echo(
            json.dumps(
                {
                    "appliances": [a.hostname for a in fleet.appliances],
                    "parameters": [p.name for p in fleet.parameters],
                    "errors": errors,
                },
                indent=2,
            )
        )
    else:
        print_plan(fleet, errors)

    if errors:
        sys.exit(EXIT_VALIDATION)
