"""CLI output formatting helpers."""

from __future__ import annotations

from typing import Any

import click
import yaml
from rich.console import Console
from rich.table import Table

from .bootstrap import ApplianceStatus, BootstrapStep, Outcome, RunReport
from .bootstrap.state import LICENSING_STEPS
from .inventory import Inventory

OUTCOME_STYLES = {
    Outcome.DONE: "green",
    Outcome.DEGRADED: "yellow",
    Outcome.FAILED: "red",
}


def print_run_report(report: RunReport) -> None:
    """Print a per-appliance summary of a bootstrap run.

    Args:
        report: Completed run report
    """
    console = Console()
    table = Table(title="Bootstrap Results")
    table.add_column("Appliance")
    table.add_column("Address")
    table.add_column("License")
    table.add_column("Outcome")
    table.add_column("Failed step")

    for result in report.results:
        address = result.address
        if result.final_address and result.final_address != result.address:
            address = f"{result.address} -> {result.final_address}"
        style = OUTCOME_STYLES[result.outcome]
        table.add_row(
            result.hostname,
            address,
            result.license_state.value if result.license_state else "-",
            f"[{style}]{result.outcome.value}[/{style}]",
            result.failed_step.value if result.failed_step else "-",
        )
    console.print(table)

    for result in report.results:
        if result.error:
            click.echo(f"  ✗ {result.hostname}: {result.error.message}", err=True)
        for failure in result.parameter_failures:
            click.echo(f"  ⚠ {result.hostname}: parameter {failure.name}: {failure.error}")

    failed = len(report.failed)
    if failed:
        click.echo(f"\n{failed} of {len(report.results)} appliance(s) failed")
    else:
        click.echo(f"\n✓ {len(report.results)} appliance(s) bootstrapped")


def print_status_table(statuses: list[ApplianceStatus]) -> None:
    """Print license state per appliance.

    Args:
        statuses: Survey results
    """
    console = Console()
    table = Table(title="License State")
    table.add_column("Appliance")
    table.add_column("Address")
    table.add_column("State")
    table.add_column("Status")
    table.add_column("Expires")

    for status in statuses:
        if status.error:
            state = "[red]error[/red]"
        elif status.license_state:
            state = status.license_state.value
        else:
            state = "-"
        table.add_row(
            status.hostname,
            status.address,
            state,
            status.license_status or (status.error.message if status.error else "-"),
            status.expiration or "-",
        )
    console.print(table)


def print_plan(inventory: Inventory, errors: dict[str, str]) -> None:
    """Print the steps each appliance would go through.

    Args:
        inventory: Loaded inventory
        errors: Validation errors by hostname
    """
    licensing = ", ".join(step.value for step in LICENSING_STEPS)
    for appliance in inventory.appliances:
        click.echo(f"{appliance.hostname} ({appliance.address}:{appliance.port})")
        if appliance.hostname in errors:
            click.echo(f"  ✗ {errors[appliance.hostname]}")
            continue
        click.echo(f"  1. {BootstrapStep.DETECT_LICENSE.value}")
        click.echo(f"  2. if unlicensed: {licensing}")
        click.echo(f"  3. {BootstrapStep.SET_HOSTNAME.value}: {appliance.hostname}")
        click.echo(f"  4. {BootstrapStep.APPLY_PARAMETERS.value}: {len(inventory.parameters)}")
        click.echo(f"  5. {BootstrapStep.APPLY_INTERFACES.value}:")
        address = appliance.address
        for assignment in appliance.interfaces:
            click.echo(f"     - {assignment.interface_id}: {assignment.cidr_address} via {address}")
            if assignment.is_management:
                address = assignment.ip_address
        if address != appliance.address:
            click.echo(f"  management address moves to {address}")


def print_config_yaml(data: dict[str, Any], sources: dict[str, str] | None = None) -> None:
    """Print config as YAML, with the source of each value when given.

    Args:
        data: Configuration values
        sources: Optional source per key
    """
    if sources is None:
        click.echo(yaml.dump(data, default_flow_style=False, sort_keys=False))
        return
    for key, value in data.items():
        click.echo(f"  {key}: {value}  ({sources.get(key, 'default')})")
