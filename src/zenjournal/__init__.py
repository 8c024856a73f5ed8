"""ZenJournal — a per-day rich-text journal with local cache and optional remote sync."""

__version__ = "0.1.0"
