"""Shared parsing, formatting and logging helpers."""
