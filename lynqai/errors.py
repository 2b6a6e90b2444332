class LynqError(Exception):
    """Base class for every failure a turn can end with."""


class Unauthenticated(LynqError):
    """Missing, malformed or rejected bearer credential."""


class NotFound(LynqError):
    """Referenced conversation does not exist for the caller."""


class StorageError(LynqError):
    """The database rejected a read or write."""


class GenerationFailed(LynqError):
    """The inference provider could not produce a result."""


class UpstreamUnavailable(GenerationFailed):
    """Transport-level failure: connection refused, DNS, timeout."""


class UpstreamError(GenerationFailed):
    """The provider answered, but not with a usable success payload."""

    def __init__(self, message: str, status_code: int | None = None, body: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body

    def __str__(self) -> str:
        message = super().__str__()
        if self.status_code is not None:
            message = f"{message} (status {self.status_code})"
        if self.body:
            message = f"{message}: {self.body}"
        return message
