"""Shared exception classes for uaftriage skills."""

from __future__ import annotations


class SourceDirNotFoundError(Exception):
    """Raised when the source directory to scan does not exist."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Source directory does not exist: {path}")
        self.path = path


class RegistryError(Exception):
    """Raised when a function registry cannot be built or loaded."""


class FindingDecodeError(Exception):
    """Raised when analysis results are malformed.

    The whole batch is rejected; no record is silently skipped.
    """


class FunctionNotFoundError(Exception):
    """Raised when a function cannot be found in the registry."""

    def __init__(self, function: str) -> None:
        super().__init__(f"function not found: {function}")
        self.function = function


class EnrichmentTimeoutError(Exception):
    """Recorded when the enrichment pipeline exceeds its deadline."""


class SnippetNotFoundError(Exception):
    """Raised when a source line cannot be read."""
