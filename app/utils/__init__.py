"""Shared helpers: object storage, upload validation, encrypted columns."""
