"""Entry commands: list, show, write, export, delete, tags."""

from __future__ import annotations

import click

from zenjournal.core.cli.common import run_with_session


def _validate_date(ctx: click.Context, param: click.Parameter, value: str) -> str:
    from zenjournal.journal.dates import parse_date_key

    try:
        parse_date_key(value)
    except ValueError:
        raise click.BadParameter(f"expected YYYY-MM-DD, got {value!r}") from None
    return value


@click.command("list")
@click.option("-q", "--query", default="", help="Case-insensitive text or tag substring.")
@click.option("-t", "--tag", default=None, help="Only entries carrying this tag.")
@click.option("--ranked", is_flag=True, help="Order by relevance to --query (needs the search extra).")
@click.pass_obj
def list_entries(config, query: str, tag: str | None, ranked: bool) -> None:
    """List entries, newest first (or best match first with --ranked)."""
    from zenjournal.journal.dates import format_for_display
    from zenjournal.journal.models import SearchFilters
    from zenjournal.journal.search import EntrySearcher

    if ranked and not query.strip():
        raise click.UsageError("--ranked needs a --query.")

    async def action(session):
        if not ranked:
            return session.search(SearchFilters(query=query, tag=tag))
        searcher = EntrySearcher()
        try:
            searcher.refresh(session.entries)
        except ImportError as e:
            raise click.ClickException(str(e)) from e
        return [entry for entry, _ in searcher.search(query, tag=tag)]

    found = run_with_session(config, action)
    if not found:
        click.echo("No entries found.")
        return
    for entry in found:
        preview = " ".join(entry.plain_text.split())
        if len(preview) > 60:
            preview = preview[:57] + "..."
        tag_text = f"  [{', '.join(entry.tags)}]" if entry.tags else ""
        click.echo(f"{entry.date}  {format_for_display(entry.date)}{tag_text}")
        if preview:
            click.echo(f"    {preview}")


@click.command()
@click.argument("date", callback=_validate_date)
@click.pass_obj
def show(config, date: str) -> None:
    """Print the entry for DATE (YYYY-MM-DD)."""
    from zenjournal.journal.dates import format_for_display

    async def action(session):
        return session.current_entry, session.word_count

    entry, words = run_with_session(config, action, day=date)
    if entry is None:
        raise click.ClickException(f"No entry for {date}.")
    click.echo(format_for_display(date))
    if entry.tags:
        click.echo(f"Tags: {', '.join(entry.tags)}")
    click.echo("")
    click.echo(entry.plain_text)
    click.echo("")
    click.echo(f"{words} word{'' if words == 1 else 's'}")


@click.command()
@click.argument("date", callback=_validate_date)
@click.argument("text")
@click.option("--size", type=int, default=None, help="Font size (px) for the appended text.")
@click.option("--tag", "tag_list", multiple=True, help="Replace the entry's tags (repeatable).")
@click.pass_obj
def write(config, date: str, text: str, size: int | None, tag_list: tuple[str, ...]) -> None:
    """Append TEXT to the entry for DATE and save it."""
    from zenjournal.editor.selection import Selection

    async def action(session):
        end = len(session.document)
        if end and not session.document.plain_text.endswith("\n"):
            session.select(Selection.caret(end))
            session.type_text("\n")
            end += 1
        session.select(Selection.caret(end))
        session.type_text(text)
        if size is not None:
            session.select(Selection.span(end, end + len(text)))
            await session.apply_font_size(size)
        if tag_list:
            await session.set_tags(list(tag_list))
        else:
            await session.save()
        return session.word_count

    words = run_with_session(config, action, day=date)
    click.echo(f"Saved {date} ({words} words).")


@click.command()
@click.argument("date", callback=_validate_date)
@click.option("-o", "--output", type=click.Path(dir_okay=False), default=None, help="Output file.")
@click.pass_obj
def export(config, date: str, output: str | None) -> None:
    """Export the entry for DATE as plain text (default diary-DATE.txt)."""

    async def action(session):
        if session.current_entry is None:
            return None
        return session.export(output)

    path = run_with_session(config, action, day=date)
    if path is None:
        raise click.ClickException(f"No entry for {date}.")
    click.echo(f"Exported to {path}")


@click.command()
@click.argument("date", callback=_validate_date)
@click.option("-y", "--yes", is_flag=True, help="Don't ask for confirmation.")
@click.pass_obj
def delete(config, date: str, yes: bool) -> None:
    """Delete the entry for DATE from local and remote storage."""
    if not yes:
        click.confirm(f"Delete the entry for {date}?", abort=True)

    async def action(session):
        if session.current_entry is None:
            return False
        await session.delete_current()
        return True

    if not run_with_session(config, action, day=date):
        raise click.ClickException(f"No entry for {date}.")
    click.echo(f"Deleted {date}.")


@click.command()
@click.pass_obj
def tags(config) -> None:
    """List every tag in use."""

    async def action(session):
        return session.tags()

    found = run_with_session(config, action)
    if not found:
        click.echo("No tags yet.")
        return
    for tag in found:
        click.echo(tag)
