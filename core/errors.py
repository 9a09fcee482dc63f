# core/errors.py
class WishlistError(Exception):
    """Base class for every error raised by this project."""


class NetworkError(WishlistError):
    """Transport failure or non-success status from a remote endpoint."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class StoreError(WishlistError):
    """The remote document store rejected or failed an operation."""


class AuthError(WishlistError):
    """Sign-in or registration failed."""

    def __init__(self, message: str, code: str = ""):
        super().__init__(message)
        self.code = code


class AggregationCancelled(WishlistError):
    """An aggregation run was cancelled before it could publish results."""
