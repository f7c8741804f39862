"""CLI: summary-bridge host"""

from typing import Optional

import click

from summary_bridge.bridge import run_host
from summary_bridge.log import configure_logging


def _load_config():
    from summary_bridge.cli.main import _load_config
    return _load_config()


def _run(coro):
    from summary_bridge.cli.main import _run
    return _run(coro)


@click.command("host", context_settings={"ignore_unknown_options": True})
@click.option("--log-level", default=None, help="Override the configured log level")
@click.argument("browser_args", nargs=-1, type=click.UNPROCESSED)
def host_cmd(log_level: Optional[str], browser_args: tuple[str, ...]):
    """Serve native messaging requests on stdin/stdout.

    Browsers append their own arguments (the caller's origin, a manifest path
    or a parent window handle); they are logged and otherwise ignored.
    """
    cfg = _load_config()
    logger = configure_logging(cfg.log_file, log_level or cfg.log_level)
    if browser_args:
        logger.info(f"Launched with {' '.join(browser_args)}")
    try:
        _run(run_host(cfg))
    except KeyboardInterrupt:
        logger.info("Interrupted")
