"""Error types raised by the search engine and its backends."""


class StacSearchError(Exception):
    """Base class for all stacsearch errors."""


class ValidationError(StacSearchError, ValueError):
    """Malformed or unsupported request shape.

    Parameters
    ----------
    field : str
        Name of the offending request field (dotted for nested fields).
    message : str
        Human readable description, safe to return to the caller.
    """

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"Invalid '{field}': {message}")


class NotFoundError(StacSearchError):
    """A scoped collection or item does not exist."""

    def __init__(self, resource: str):
        self.resource = resource
        super().__init__(f"Not found: {resource}")


class BackendError(StacSearchError):
    """The backend failed. Carries a generic message; diagnostics are only logged."""

    def __init__(self, message: str = "Search backend unavailable."):
        super().__init__(message)


class BackendTimeoutError(BackendError):
    """The backend did not answer within the configured timeout."""

    def __init__(self, message: str = "Search backend timed out."):
        super().__init__(message)


class HookError(StacSearchError):
    """A configured pre/post hook could not be loaded or failed."""

    def __init__(self, message: str = "Internal Server Error"):
        super().__init__(message)
