"""CLI entry point for fcpbot.

Commands:
  sync     — one sync cycle: fetch the feed and update every channel (run this from cron)
  preview  — render proposals to the terminal without sending anything
  status   — show what the ledger says was delivered where
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from fcpbot_cli.commands.preview import preview_cmd
from fcpbot_cli.commands.status import status_cmd
from fcpbot_cli.commands.sync import sync_cmd

console = Console()


def _build_store(config: dict):
    """Instantiate the configured ledger backend from .fcpbot.yml settings.

    Store selection:
      store: sqlite → SQLiteStore (store_path, default .fcpbot.db)
      store: gist   → GistStore   (requires gist_id and a GitHub token)
      store: memory → MemoryStore (nothing persists; every run re-sends)

    This factory lives in cli.py so neither fcpbot_core nor fcpbot_store
    know about the config file format.
    """
    store_type = config.get("store", "sqlite")

    if store_type == "memory":
        from fcpbot_store.memory import MemoryStore

        return MemoryStore()

    if store_type == "gist":
        from fcpbot_store.gist import GistStore

        gist_id = config.get("gist_id")
        token = config.get("github_token")
        if not gist_id or not token:
            raise click.UsageError("store: gist requires gist_id in .fcpbot.yml and a GitHub token.")
        return GistStore(gist_id=gist_id, token=token)

    if store_type == "sqlite":
        from fcpbot_store.sqlite import SQLiteStore

        return SQLiteStore(db_path=config.get("store_path", ".fcpbot.db"))

    raise click.UsageError(f"Unknown store {store_type!r}. Choose 'sqlite', 'gist' or 'memory'.")


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@click.group()
@click.version_option(
    version=importlib.metadata.version("fcpbot"),
    prog_name="fcpbot",
)
@click.option(
    "--config",
    "config_path",
    default=".fcpbot.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="FCPBOT_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Log every decision at debug level.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """Mirror rfcbot's Final Comment Period proposals into Telegram channels."""
    from fcpbot_cli.auth import resolve_github_token
    from fcpbot_core.config import load_config
    from fcpbot_store.base import StoreError

    _setup_logging(verbose)
    ctx.ensure_object(dict)

    config = load_config(config_path)
    if config.get("store") == "gist" and not config.get("github_token"):
        config["github_token"] = resolve_github_token()

    try:
        store = _build_store(config)
    except StoreError as e:
        raise click.ClickException(str(e))
    ctx.obj["store"] = store
    ctx.obj["config"] = config
    ctx.call_on_close(store.close)


main.add_command(sync_cmd)
main.add_command(preview_cmd)
main.add_command(status_cmd)
