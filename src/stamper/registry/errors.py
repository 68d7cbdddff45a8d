"""Error taxonomy for the stamper registry."""

from __future__ import annotations


class RegistryError(Exception):
    """Base error; carries the HTTP status and the message shown to callers."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFoundError(RegistryError):
    status_code = 404
    default_message = "Package version not found"


class InvalidArgumentError(RegistryError):
    status_code = 400
    default_message = "Invalid argument"


class InternalError(RegistryError):
    status_code = 500
    default_message = "Internal server error"


class StorageError(InternalError):
    """Raised by storage backends when the underlying medium fails."""


class RateLimitedError(RegistryError):
    status_code = 429
    default_message = "Too many requests. Please try again later."
