"""Shared utilities: ``.env`` parsing and logging setup."""
