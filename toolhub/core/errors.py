"""
Error taxonomy for registry operations.

Single-item operations (add, delete, validate, conflict checks) raise
these to the caller. Batch operations catch ``ProbeFailureError`` and
``StoreError`` per item, log them, and keep going.
"""

from __future__ import annotations


class ToolhubError(Exception):
    """Base class for every error toolhub surfaces to callers."""


class NotFoundError(ToolhubError):
    """Unknown tool ID or missing instance."""


class ConflictError(ToolhubError):
    """Duplicate path across tools, or duplicate instance ID."""


class PreconditionFailedError(ToolhubError):
    """The operation is not allowed for this instance or input."""


class ProbeFailureError(ToolhubError):
    """A command failed, or its output held no usable version."""


class BackendUnavailableError(ToolhubError):
    """A required execution backend (e.g. WSL) is missing on this host."""


class StoreError(ToolhubError):
    """The instance store could not be read or written."""
