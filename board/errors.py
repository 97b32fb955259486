"""
Error types raised across the board package.

Missing ids are not errors: lookups return None and updates are no-ops.
"""

from typing import Optional


class BoardError(Exception):
    """Base class for all board errors."""


class ParseError(BoardError):
    """The ingestion collaborator could not turn a file into rows/columns."""

    def __init__(self, message: str, source_name: Optional[str] = None):
        super().__init__(message)
        self.source_name = source_name


class InvalidFormat(BoardError):
    """An imported dashboard document is malformed."""


class SaveError(BoardError):
    """A persistence adapter failed to write state."""

    def __init__(self, message: str, namespace: Optional[str] = None):
        super().__init__(message)
        self.namespace = namespace
