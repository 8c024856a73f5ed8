"""zenjournal sync — reconcile the local cache with the remote table."""

from __future__ import annotations

import click

from zenjournal.core.cli.common import run_with_session


@click.command()
@click.pass_obj
def sync(config) -> None:
    """Fetch remote entries and merge them into the local cache."""

    async def action(session):
        reconciler = session.reconciler
        return reconciler.signed_in, len(session.entries), reconciler.sync_state.get_status()

    signed_in, count, status = run_with_session(config, action)
    if not signed_in:
        click.echo("Remote sync is not configured; running local-only.")
        click.echo("Set sync.url in config.yaml and sync.api_key / sync.access_token in secrets.yaml.")
    elif status["remote_sync_disabled"]:
        click.echo(f"Remote sync disabled for this session: {status['reason']}")
    elif status["failures"]:
        click.echo("Remote unreachable; kept the local copy.")
    else:
        click.echo("Synced with remote.")
    click.echo(f"{count} entr{'y' if count == 1 else 'ies'} in local cache.")
