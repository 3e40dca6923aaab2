"""Exceptions raised by nextar_cache."""


class NextarCacheError(Exception):
    """Base class for every error raised by this package."""


class InvalidTTLError(NextarCacheError, ValueError):
    """A cache entry was written with a non-positive time-to-live."""


class UnknownFilterError(NextarCacheError, KeyError):
    """A resource was filtered by a field it does not declare."""

    def __init__(self, resource: str, field: str) -> None:
        super().__init__(f"{resource} has no filter named {field!r}")
        self.resource = resource
        self.field = field

    def __str__(self) -> str:
        return str(self.args[0])


class FetchError(NextarCacheError):
    """The network collaborator failed or answered with a non-success status."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
