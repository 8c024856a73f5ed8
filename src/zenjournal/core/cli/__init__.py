"""ZenJournal CLI — browse, export and maintain journal entries."""

import click

from zenjournal import __version__
from zenjournal.core.cli.common import CONFIG_PATH


@click.group()
@click.version_option(version=__version__, package_name="zenjournal")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help=f"Config file (default: {CONFIG_PATH}).",
)
@click.option("-v", "--verbose", is_flag=True, help="Log at DEBUG level.")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """ZenJournal — a daily journal with optional cloud sync."""
    from zenjournal.core.cli.common import load_config
    from zenjournal.core.utils.logging import setup_logging

    config = load_config(config_path)
    setup_logging(
        level="DEBUG" if verbose else str(config.get("logging.level", "WARNING")),
        log_file=config.log_file(),
        file_level="DEBUG" if verbose else "INFO",
    )
    ctx.obj = config


# Register subcommands
from .entries_cmd import delete, export, list_entries, show, tags, write
from .settings_cmd import settings
from .sync_cmd import sync

main.add_command(list_entries)
main.add_command(show)
main.add_command(write)
main.add_command(export)
main.add_command(delete)
main.add_command(tags)
main.add_command(sync)
main.add_command(settings)
