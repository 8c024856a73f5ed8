"""Remote entry service — the hosted ``entries`` table.

The core only needs three calls (list everything, upsert one, delete one),
captured by the :class:`RemoteEntryService` protocol. :class:`PostgrestEntryService`
implements it against a PostgREST endpoint (e.g. Supabase) using bearer-token
auth and the standard library's HTTP client. Failures are raised as tagged
:class:`~zenjournal.core.exceptions.RemoteError` subclasses; callers decide
how to recover.
"""

from __future__ import annotations

import asyncio
import json
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Protocol, runtime_checkable

from loguru import logger

from zenjournal.core.exceptions import RemoteError, RemoteSchemaMissing, RemoteUnreachable
from zenjournal.core.secrets import SyncCredentials

from .models import Entry

# PostgREST / Postgres codes for "relation does not exist"
_SCHEMA_MISSING_CODES = {"42P01", "PGRST205", "PGRST106"}


@runtime_checkable
class RemoteEntryService(Protocol):
    """Contract for a remote copy of the entry set."""

    async def list_all(self) -> list[Entry]:
        """Return every entry owned by the signed-in user."""
        ...

    async def upsert(self, entry: Entry) -> None:
        """Insert or replace the entry keyed on ``entry.id``."""
        ...

    async def delete(self, entry_id: str) -> None:
        """Remove the entry with this id (no error if absent)."""
        ...


class PostgrestEntryService:
    """Small PostgREST client centred on one table.

    Args:
        url: Project base URL, e.g. ``https://xyz.supabase.co``.
        api_key: Project API key, sent as the ``apikey`` header.
        access_token: The signed-in user's JWT. Falls back to the API key.
        table: Table name.
        timeout: Per-request timeout in seconds.
    """

    def __init__(
        self,
        url: str,
        api_key: str,
        access_token: str = "",
        *,
        table: str = "entries",
        timeout: int = 20,
    ):
        if not url or not api_key:
            raise ValueError("url and api_key are required")
        self.base_url = url.rstrip("/")
        self.api_key = api_key
        self.access_token = access_token or api_key
        self.table = table
        self.timeout = timeout

    def _request(
        self,
        method: str,
        *,
        query: dict[str, Any] | None = None,
        payload: Any = None,
        prefer: str = "",
    ) -> Any:
        url = f"{self.base_url}/rest/v1/{self.table}"
        if query:
            url = f"{url}?{urllib.parse.urlencode(query)}"

        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.access_token}",
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        data = json.dumps(payload).encode("utf-8") if payload is not None else None
        req = urllib.request.Request(url=url, method=method.upper(), data=data, headers=headers)

        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                raw = resp.read()
        except urllib.error.HTTPError as e:
            body = e.read().decode("utf-8", errors="ignore") if hasattr(e, "read") else ""
            raise self._classify(e.code, body) from e
        except urllib.error.URLError as e:
            raise RemoteUnreachable(f"{self.table}: request failed: {e.reason}") from e
        except TimeoutError as e:
            raise RemoteUnreachable(f"{self.table}: request timed out after {self.timeout}s") from e

        if not raw:
            return None
        try:
            return json.loads(raw.decode("utf-8", errors="ignore"))
        except ValueError as e:
            raise RemoteError(f"{self.table}: invalid JSON response") from e

    def _classify(self, status: int, body: str) -> RemoteError:
        code = ""
        try:
            parsed = json.loads(body) if body else {}
            if isinstance(parsed, dict):
                code = str(parsed.get("code") or "")
        except ValueError:
            pass

        message = f"{self.table}: HTTP {status}: {body[:200] or 'no body'}"
        if code in _SCHEMA_MISSING_CODES or status == 404:
            return RemoteSchemaMissing(message)
        if status in (401, 403):
            return RemoteUnreachable(message)
        return RemoteError(message)

    async def list_all(self) -> list[Entry]:
        rows = await asyncio.to_thread(self._request, "GET", query={"select": "*"})
        if not isinstance(rows, list):
            raise RemoteError(f"{self.table}: expected a list of rows")
        entries = []
        for row in rows:
            try:
                entries.append(Entry.from_dict(row))
            except ValueError as e:
                logger.warning(f"Skipping malformed remote row: {e}")
        return entries

    async def upsert(self, entry: Entry) -> None:
        await asyncio.to_thread(
            self._request,
            "POST",
            query={"on_conflict": "id"},
            payload=[entry.to_row()],
            prefer="resolution=merge-duplicates,return=minimal",
        )

    async def delete(self, entry_id: str) -> None:
        await asyncio.to_thread(self._request, "DELETE", query={"id": f"eq.{entry_id}"})


def build_remote_service(config, secrets) -> PostgrestEntryService | None:
    """Create the remote client when sync is enabled and credentials exist.

    Returns None (local-only mode) otherwise.
    """
    if not config.get("sync.enabled", True):
        return None
    creds = SyncCredentials.resolve(config, secrets)
    if not creds.complete:
        logger.debug("Remote sync not configured; running local-only")
        return None
    return PostgrestEntryService(
        creds.url,
        creds.api_key,
        creds.access_token,
        table=config.get("sync.table", "entries"),
        timeout=int(config.get("sync.timeout", 20)),
    )
