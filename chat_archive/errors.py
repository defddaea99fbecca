"""Exceptions raised by chat-archive."""

from __future__ import annotations


class ArchiveError(Exception):
    """Base class for chat-archive errors."""


class TransportError(ArchiveError):
    """Raised when the remote source answers with a non-success status or is unreachable."""

    def __init__(self, message: str, status_code: int | None = None, url: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class StoreError(ArchiveError):
    """Raised when the local SQLite store fails a read or write."""


class NormalizationError(ArchiveError):
    """Raised for a payload shape the normalizer cannot decompose."""


class ConfigurationError(ArchiveError):
    """Raised for unusable configuration such as a missing export directory."""
