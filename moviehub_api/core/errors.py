"""Service-level error taxonomy.

Every error is a ``RuntimeError`` whose message starts with a text code, so
``handle_runtime_errors`` can map it to an HTTP status by substring.
"""


class ServiceError(RuntimeError):
    code = "internal_error"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.code)


class MovieNotFound(ServiceError):
    code = "movie_not_found"


class Forbidden(ServiceError):
    code = "not_authorized"


class VoteConflict(ServiceError):
    """Ballot kept changing underneath us; retries exhausted."""
    code = "vote_conflict"


class StorageUnavailable(ServiceError):
    code = "storage_unavailable"
