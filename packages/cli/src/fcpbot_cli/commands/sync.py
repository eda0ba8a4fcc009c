"""sync command — one full sync cycle. Schedule this (cron, systemd timer, CI)."""

from __future__ import annotations

import click
import requests
from rich.console import Console

from fcpbot_core.config import parse_targets
from fcpbot_core.feed import FeedError
from fcpbot_core.sync import run_sync
from fcpbot_core.transport import TelegramTransport

console = Console()


@click.command("sync")
@click.option(
    "--targets",
    default=None,
    help="Comma-separated channels to update (e.g. '@rust_fcp'). Overrides config file.",
)
@click.option("--delay", type=float, default=None, help="Seconds to pause after each send/edit. Overrides config file.")
@click.option(
    "--shadow",
    "-s",
    is_flag=True,
    help="Dry-run mode: show what would be sent or edited without touching Telegram or the ledger.",
)
@click.pass_context
def sync_cmd(ctx, targets: str | None, delay: float | None, shadow: bool):
    """Fetch the FCP feed and bring every channel's messages up to date.

    \b
    Required environment variables:
      TG_BOT_TOKEN    Telegram bot token (not needed with --shadow)
    """
    config = dict(ctx.obj["config"])
    store = ctx.obj["store"]

    if targets is not None:
        config["targets"] = parse_targets(targets)
    if delay is not None:
        config["send_delay"] = delay

    if not config["targets"]:
        raise click.UsageError("No targets configured. Set targets in .fcpbot.yml, FCPBOT_TARGETS, or --targets.")

    token = config.get("bot_token")
    if not token and not shadow:
        raise click.UsageError("TG_BOT_TOKEN environment variable is not set.")

    session = requests.Session()
    transport = TelegramTransport(token or "", session=session, timeout=config.get("request_timeout", 30))

    try:
        summary = run_sync(config, store, transport, session=session, dry_run=shadow)
    except FeedError as e:
        raise click.ClickException(f"Feed unavailable, nothing was updated: {e}")
    finally:
        session.close()

    if shadow:
        console.print(
            f"[bold]Shadow sync complete.[/bold] {summary.proposals} proposal(s), "
            f"{summary.planned} message(s) would be sent or edited, {summary.skipped} up to date."
        )
    else:
        color = "green" if not summary.failed and not summary.errors else "yellow"
        console.print(
            f"[{color}]Synced {summary.proposals} proposal(s): {summary.sent} sent, {summary.edited} edited, "
            f"{summary.skipped} unchanged, {summary.failed} failed.[/{color}]"
        )
    for proposal_id, error in summary.errors.items():
        console.print(f"  [red]FCP {proposal_id}: ledger error: {error}[/red]")
