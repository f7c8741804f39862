"""CLI: summary-bridge auth status"""

import json

import click
from rich.console import Console

from summary_bridge.backends.cli import find_claude_command
from summary_bridge.credentials import check_auth_status, load_oauth_token

console = Console()

_DESCRIPTIONS = {
    "oauth": "[green]Claude Code OAuth token found[/green] (direct API, subscription billing)",
    "api_key": "[green]API key configured[/green] (direct API)",
    "cli": "[yellow]No API credentials; falling back to the Claude CLI[/yellow]",
    "none": "[red]No credentials and no Claude CLI found.[/red] Log in with `claude` or run "
            "`summary-bridge config set api_key <key>`.",
}


def _load_config():
    from summary_bridge.cli.main import _load_config
    return _load_config()


@click.group()
def auth():
    """Authentication commands."""


@auth.command("status")
@click.option("--json-output", "--json", is_flag=True)
def auth_status(json_output: bool):
    """Show which backend a summary request would use."""
    cfg = _load_config()
    status = check_auth_status(cfg.api_key, load_oauth_token, lambda: find_claude_command(cfg.cli_command))
    if json_output:
        click.echo(json.dumps(status))
        return
    console.print(_DESCRIPTIONS[status["method"]])
    command = find_claude_command(cfg.cli_command)
    if command:
        console.print(f"[dim]Claude CLI: {command}[/dim]")
