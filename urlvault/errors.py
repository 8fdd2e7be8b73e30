"""Exception types shared across the vault modules."""

from __future__ import annotations


class VaultError(Exception):
    """Base exception for the URL vault."""


class StoreError(VaultError):
    """Raised when the store cannot list or read entries that must be surfaced."""


class ConfigError(VaultError):
    """Raised when configuration values are invalid."""


class UploadRejected(VaultError):
    """Raised when an upload form is incomplete or carries a forbidden file type."""
