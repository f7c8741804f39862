"""
summary-bridge CLI — `summary-bridge` command.

Commands:
  summary-bridge host                 Run the native messaging host (browser-launched)
  summary-bridge summarize <file>     Summarize a content JSON file once
  summary-bridge auth status          Show which backend a request would use
  summary-bridge config show|set      Inspect or change ~/.summary-bridge/config.json
"""

import asyncio

import click
from rich.console import Console

from summary_bridge import __version__
from summary_bridge.config import HostConfig, load_config

console = Console(stderr=True)


def _load_config() -> HostConfig:
    return load_config()


def _run(coro):
    return asyncio.run(coro)


@click.group()
@click.version_option(__version__)
def main():
    """summary-bridge — Claude summaries for a browser extension."""


# Register subcommands from separate modules
from summary_bridge.cli.host import host_cmd  # noqa: E402
from summary_bridge.cli.summarize import summarize_cmd  # noqa: E402
from summary_bridge.cli.auth import auth  # noqa: E402
from summary_bridge.cli.config import config  # noqa: E402

main.add_command(host_cmd)
main.add_command(summarize_cmd)
main.add_command(auth)
main.add_command(config)


if __name__ == "__main__":
    main()
