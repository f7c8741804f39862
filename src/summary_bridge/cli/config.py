"""CLI: summary-bridge config show|set"""

import json

import click
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from summary_bridge.config import CONFIG_FILE, HostConfig, read_config_file, save_config

console = Console()

SECRET_FIELDS = {"api_key"}


def _mask(value) -> str:
    text = str(value)
    if len(text) <= 8:
        return "***"
    return f"{text[:7]}...{text[-4:]}"


def _load_config():
    from summary_bridge.cli.main import _load_config
    return _load_config()


@click.group()
def config():
    """Configuration commands."""


@config.command("show")
@click.option("--json-output", "--json", is_flag=True)
def config_show(json_output: bool):
    """Show the effective configuration (file plus environment)."""
    cfg = _load_config()
    values = {
        name: (_mask(value) if name in SECRET_FIELDS and value else value)
        for name, value in cfg.model_dump(mode="json").items()
    }
    if json_output:
        click.echo(json.dumps(values, indent=2))
        return
    table = Table(title=str(CONFIG_FILE))
    table.add_column("Key", style="bold")
    table.add_column("Value")
    for name, value in values.items():
        table.add_row(name, "" if value is None else str(value))
    console.print(table)


@config.command("set")
@click.argument("key")
@click.argument("value")
def config_set(key: str, value: str):
    """Set KEY to VALUE in the config file."""
    if key not in HostConfig.model_fields:
        raise click.BadParameter(f"unknown key {key!r}; choose from {', '.join(HostConfig.model_fields)}")
    # Start from the file alone so environment overrides are never written back
    data = read_config_file()
    data[key] = value
    try:
        cfg = HostConfig.model_validate(data)
    except ValidationError as e:
        raise click.BadParameter(str(e))
    save_config(cfg)
    shown = _mask(value) if key in SECRET_FIELDS else value
    console.print(f"[green]Set {key} = {shown}[/green]")
