"""Shared helpers: logging setup, transcripts, value inspection."""
