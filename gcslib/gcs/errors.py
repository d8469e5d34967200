from __future__ import annotations


class GCSError(Exception):
    """Base error for the storage client."""


class ConfigurationError(GCSError):
    """Raised when a call cannot be resolved from the session configuration (eg: no bucket)."""


class SigningError(GCSError):
    """Raised when a bearer credential cannot be produced from the signing key."""


class RemoteOperationError(GCSError):
    """Error raised when the storage API answers with an unexpected status."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)
