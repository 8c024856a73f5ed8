"""Shared setup logic for CLI commands."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

import click

ZENJOURNAL_DIR = Path.home() / ".zenjournal"
CONFIG_PATH = ZENJOURNAL_DIR / "config.yaml"
SECRETS_PATH = ZENJOURNAL_DIR / "secrets.yaml"


def load_config(path: str | None = None):
    """Load config from *path*, or ~/.zenjournal/config.yaml."""
    from zenjournal.core.config import Config

    return Config(config_file=str(path or CONFIG_PATH))


def load_secrets():
    """Secrets from ZENJOURNAL_* env vars, then ~/.zenjournal/secrets.yaml."""
    from zenjournal.core.secrets import EnvProvider, SecretsManager, YamlFileProvider

    return SecretsManager(providers=[EnvProvider(), YamlFileProvider(SECRETS_PATH)])


def build_session(config, secrets):
    """Wire storage, the optional remote and the reconciler into a JournalSession."""
    from zenjournal.core.storage import LocalStorage
    from zenjournal.journal.reconcile import Reconciler
    from zenjournal.journal.remote import build_remote_service
    from zenjournal.journal.session import JournalSession
    from zenjournal.journal.store import EntryStore

    settings = config.validated()
    store = EntryStore(
        LocalStorage(base_path=str(settings.paths.data_dir)),
        entries_key=settings.storage.entries_key,
        settings_key=settings.storage.settings_key,
    )
    reconciler = Reconciler(
        store,
        build_remote_service(config, secrets),
        sync_enabled=settings.sync.enabled,
        max_attempts=settings.sync.max_attempts,
    )
    return JournalSession(store, reconciler, autosave_delay=settings.autosave.delay_seconds)


def run_with_session(config, action: Callable[[Any], Awaitable[Any]], day: str | None = None) -> Any:
    """Start a session (opening *day*), run *action* on it, and always close it."""
    from zenjournal.core.exceptions import ConfigurationError

    try:
        session = build_session(config, load_secrets())
    except ConfigurationError as e:
        raise click.ClickException(f"Invalid configuration: {e}") from e

    async def _run() -> Any:
        await session.start(day)
        try:
            return await action(session)
        finally:
            await session.close()

    return asyncio.run(_run())
