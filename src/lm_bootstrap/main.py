"""CLI main entry point."""

import json
import sys

import click

from . import __version__
from .commands.bootstrap import plan, run, status
from .config import CONFIG_KEYS, load_config, save_config, unset_config
from .formatters import print_config_yaml
from .shared.logging import configure_logging, verbosity_to_level


@click.group()
@click.option("-c", "--config", type=click.Path(), help="Config file path")
@click.option("-v", "--verbose", count=True, help="Increase verbosity")
@click.option("-q", "--quiet", is_flag=True, help="Suppress output")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.option("--log-json", is_flag=True, help="Emit log lines as JSON")
@click.option("--log-file", type=click.Path(dir_okay=False), help="Write logs to a file")
@click.pass_context
def cli(
    ctx: click.Context,
    config: str | None,
    verbose: int,
    quiet: bool,
    json_output: bool,
    log_json: bool,
    log_file: str | None,
) -> None:
    """Bootstrap LoadMaster appliances into a known state."""
    ctx.ensure_object(dict)
    cli_config = load_config(config)
    ctx.obj["config_path"] = config
    ctx.obj["config"] = cli_config
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["json_output"] = json_output

    if verbose or quiet:
        level = verbosity_to_level(verbose, quiet)
    else:
        level = cli_config.log_level
    configure_logging(level, log_file=log_file, json_output=log_json or bool(log_file))


cli.add_command(run)
cli.add_command(status)
cli.add_command(plan)


@cli.command()
def version() -> None:
    """Show version information."""
    click.echo(f"lm-bootstrap {__version__}")


@cli.group()
def config() -> None:
    """Manage CLI configuration."""


@config.command("show")
@click.pass_context
def config_show(ctx: click.Context) -> None:
    """Show current configuration and where each value came from."""
    cli_config = ctx.obj["config"]
    values = cli_config.to_dict()

    if ctx.obj["json_output"]:
        sources = {key: cli_config.get_source(key) for key in CONFIG_KEYS}
        click.echo(json.dumps({"values": values, "sources": sources}, indent=2))
        return

    click.echo("lm-bootstrap Configuration\n")
    print_config_yaml(values, sources={key: cli_config.get_source(key) for key in CONFIG_KEYS})


@config.command("set")
@click.argument("key", type=click.Choice(CONFIG_KEYS))
@click.argument("value")
@click.pass_context
def config_set(ctx: click.Context, key: str, value: str) -> None:
    """Persist a configuration value to the -c file, or the default one."""
    try:
        save_config(key, value, ctx.obj["config_path"])
    except ValueError as e:
        click.echo(f"Error: invalid value for {key}: {e}", err=True)
        sys.exit(1)
    click.echo(f"✓ {key} saved")


@config.command("unset")
@click.argument("key", type=click.Choice(CONFIG_KEYS))
@click.pass_context
def config_unset(ctx: click.Context, key: str) -> None:
    """Remove a persisted configuration value."""
    if unset_config(key, ctx.obj["config_path"]):
        click.echo(f"✓ {key} removed")
    else:
        click.echo(f"{key} was not set")


def main() -> None:
    """Main entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
