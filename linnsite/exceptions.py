"""
Error taxonomy shared by the store, the GitHub cache and the validator.
"""

from __future__ import annotations


class StoreError(Exception):
    """The persistence medium is unavailable or failed to apply a write."""


class UpstreamError(Exception):
    """GitHub answered with a non-success status."""

    def __init__(self, status: int):
        super().__init__(f"GitHub responded with HTTP {status}")
        self.status = status


class UpstreamUnavailable(Exception):
    """GitHub could not be reached at all."""


class ValidationError(Exception):
    """A contact submission was rejected before reaching the store.

    ``kind`` is the machine-readable error code returned to the client
    (``invalid_name``, ``invalid_email`` ...), ``message`` the localized
    text shown in the form.
    """

    def __init__(self, kind: str, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message
