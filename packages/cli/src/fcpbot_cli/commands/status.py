"""status command — display what the ledger recorded per channel."""

from __future__ import annotations

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from fcpbot_store.base import StoreError

console = Console()


@click.command("status")
@click.option("--limit", default=50, show_default=True, help="Maximum number of proposals to show.")
@click.pass_context
def status_cmd(ctx, limit: int):
    """Show delivered messages recorded in the ledger.

    Reads from the configured store. With `store: memory` the ledger only
    lives for one process, so there is never anything to show.
    """
    store = ctx.obj["store"]

    try:
        keys = store.keys()
        entries = [(key, store.get(key)) for key in keys[-limit:]]
    except StoreError as e:
        raise click.ClickException(str(e))

    if not entries:
        console.print("[yellow]The ledger is empty.[/yellow]")
        return

    table = Table(title="Delivery ledger", show_header=True, header_style="bold cyan")
    table.add_column("FCP", style="bold", width=6)
    table.add_column("Title", max_width=40)
    table.add_column("Channel")
    table.add_column("Message", justify="right")
    table.add_column("Version", width=20)
    table.add_column("Format", justify="right")

    for key, entry in entries:
        if entry is None:
            continue
        title = escape((entry.info.get("title") or "")[:40])
        if not entry.messages:
            table.add_row(key, title, "[dim]—[/dim]", "", "", "")
        for i, (channel, record) in enumerate(sorted(entry.messages.items())):
            table.add_row(
                key if i == 0 else "",
                title if i == 0 else "",
                channel,
                str(record.message_id),
                record.version.isoformat(sep=" ")[:19],
                str(record.format),
            )

    console.print(table)
