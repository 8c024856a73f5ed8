"""zenjournal settings — show or change editor preferences."""

from __future__ import annotations

import click

from zenjournal.core.cli.common import run_with_session


@click.group()
def settings() -> None:
    """Show or change editor settings."""


@settings.command("show")
@click.pass_obj
def show_settings(config) -> None:
    """Print the stored settings."""

    async def action(session):
        return session.settings.to_dict()

    for key, value in run_with_session(config, action).items():
        click.echo(f"{key}: {value}")


@settings.command("set")
@click.argument("key")
@click.argument("value")
@click.pass_obj
def set_setting(config, key: str, value: str) -> None:
    """Set KEY to VALUE (e.g. dark_mode true, editor_font_size 18)."""

    async def action(session):
        try:
            return await session.update_setting(key, value)
        except ValueError as e:
            raise click.ClickException(str(e)) from e

    updated = run_with_session(config, action)
    click.echo(f"{key}: {updated.to_dict()[key]}")
