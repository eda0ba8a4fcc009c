"""preview command — render proposals locally without sending."""

from __future__ import annotations

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from fcpbot_core.feed import FeedError, fetch_proposals, project_records
from fcpbot_core.render import render

console = Console()


@click.command("preview")
@click.option("--id", "proposal_id", type=int, default=None, help="Only render the FCP with this id.")
@click.option("--limit", default=5, show_default=True, help="Maximum number of proposals to render.")
@click.option("--spans/--no-spans", default=True, show_default=True, help="Show the formatting entity table.")
@click.pass_context
def preview_cmd(ctx, proposal_id: int | None, limit: int, spans: bool):
    """Show the message each proposal would be rendered to."""
    config = ctx.obj["config"]

    try:
        raw = fetch_proposals(config["feed_url"], timeout=config.get("request_timeout", 30))
        proposals = project_records(raw)
    except FeedError as e:
        raise click.ClickException(str(e))

    if proposal_id is not None:
        proposals = [p for p in proposals if p.id == proposal_id]
        if not proposals:
            raise click.ClickException(f"FCP {proposal_id} is not in the feed.")

    for proposal in proposals[:limit]:
        message = render(proposal)
        console.rule(f"FCP {proposal.id} · {proposal.repo}#{proposal.issue_number}")
        console.print(escape(message.text), highlight=False)

        if spans and message.spans:
            table = Table(show_header=True, header_style="bold cyan")
            table.add_column("Type", width=10)
            table.add_column("Offset", justify="right")
            table.add_column("Length", justify="right")
            table.add_column("URL")
            for entity in message.entities():
                table.add_row(entity["type"], str(entity["offset"]), str(entity["length"]), entity.get("url", ""))
            console.print(table)
