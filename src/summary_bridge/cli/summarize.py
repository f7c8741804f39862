"""CLI: summary-bridge summarize"""

import asyncio
import json
from pathlib import Path
from typing import Optional

import click
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from summary_bridge.bridge import summarize
from summary_bridge.errors import SummaryBridgeError
from summary_bridge.invoker import build_invoker
from summary_bridge.log import configure_logging
from summary_bridge.models.messages import SummaryRequest
from summary_bridge.models.template import OutputTemplate
from summary_bridge.progress import ProgressChannel

console = Console()
err_console = Console(stderr=True)


def _load_config():
    from summary_bridge.cli.main import _load_config
    return _load_config()


def _run(coro):
    from summary_bridge.cli.main import _run
    return _run(coro)


def _read_json(path: Path):
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise click.BadParameter(f"{path}: {e}")


@click.command("summarize")
@click.argument("content_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--kind", "content_type", default=None,
              help="youtube_video, video_with_captions, article, webpage or selected_text")
@click.option("--instructions", default=None, help="Custom analysis instructions")
@click.option("--template", "template_file", default=None,
              type=click.Path(exists=True, dir_okay=False, path_type=Path), help="Output template JSON")
@click.option("--model", default=None, help="Model name or alias (sonnet, opus, haiku)")
@click.option("--json-output", "--json", is_flag=True)
def summarize_cmd(content_file: Path, content_type: Optional[str], instructions: Optional[str],
                  template_file: Optional[Path], model: Optional[str], json_output: bool):
    """Summarize extracted content read from a JSON file."""
    cfg = _load_config()
    configure_logging(level="WARNING")

    data = _read_json(content_file)
    if not isinstance(data, dict):
        raise click.BadParameter(f"{content_file}: expected a JSON object")
    if content_type:
        data["contentType"] = content_type
    if instructions:
        data["customInstructions"] = instructions
    try:
        request = SummaryRequest.model_validate(data)
        if template_file:
            request.template = OutputTemplate.model_validate(_read_json(template_file))
    except ValidationError as e:
        raise click.BadParameter(str(e))

    invoker = build_invoker(cfg, model=model)

    async def _summarize():
        progress = ProgressChannel()
        with err_console.status("Preparing request...") as status:
            async def _show():
                async for event in progress:
                    status.update(event.progress.message)

            watcher = asyncio.ensure_future(_show())
            try:
                return await summarize(request, invoker, progress)
            finally:
                progress.close()
                await watcher

    try:
        result = _run(_summarize())
    except SummaryBridgeError as e:
        err_console.print(f"[red]{e.message}[/red]")
        raise SystemExit(1)

    if json_output:
        click.echo(json.dumps(result.to_wire(), indent=2, ensure_ascii=False))
        return

    console.print(f"[bold]Summary[/bold]\n{result.summary}\n")
    table = Table(title="Key Learnings", show_header=False)
    table.add_column("Learning")
    for item in result.key_learnings:
        table.add_row(item)
    console.print(table)
    if result.action_items:
        console.print("[bold]Action Items[/bold]")
        for item in result.action_items:
            console.print(f"  - {item}")
    if result.relevant_links:
        console.print("[bold]Relevant Links[/bold]")
        for link in result.relevant_links:
            console.print(f"  - {link.text or link.url} [dim]{link.url}[/dim]: {link.reason}")
    for section in result.custom_sections:
        console.print(f"[bold]{section.label}[/bold]")
        if section.items:
            for item in section.items:
                console.print(f"  - {item}")
        else:
            console.print(section.text)
