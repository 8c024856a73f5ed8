"""Shared infrastructure: config, secrets, storage, events, logging, CLI."""
