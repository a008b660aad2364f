from __future__ import annotations


class ShelfServerError(Exception):
    """Base class for errors raised by the shelf server."""


class NotFoundError(ShelfServerError, FileNotFoundError):
    """Raised when a directory or file is missing or cannot be read."""


class OutsideRootError(ShelfServerError, PermissionError):
    """Raised when the requested path is outside the configured root."""


class NetworkUnavailableError(ShelfServerError, OSError):
    """Raised when no non-loopback IPv4 address can be found."""


class ConfigurationError(ShelfServerError, ValueError):
    """Raised when startup settings are missing or malformed."""
