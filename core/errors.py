"""Error taxonomy for the blob API.

Every error a request can end in is a ``BlobApiError`` carrying its HTTP
status. Handlers raise them; ``api.errors`` turns them into responses.
"""

from __future__ import annotations


class BlobApiError(Exception):
    """Base class for errors that terminate a request."""

    status_code: int = 500

    def __init__(self, message: str, headers: dict[str, str] | None = None):
        self.message = message
        self.headers = headers
        super().__init__(message)

    def to_response_body(self) -> dict:
        return {"detail": self.message}


class BlobValidationError(BlobApiError):
    """Required query parameter missing or empty."""

    status_code = 400


class BlobNotFoundError(BlobApiError):
    """No blob matched within the scan window."""

    status_code = 404


class BlobConflictError(BlobApiError):
    """Blob value already stored."""

    status_code = 409


class MethodNotSupportedError(BlobApiError):
    status_code = 405


class PoolExhaustedError(BlobApiError):
    """No client handle available in the pool."""

    status_code = 500


class UpstreamError(BlobApiError):
    """A storage call failed or timed out."""

    status_code = 500


class PoolReleaseError(RuntimeError):
    """Handle released twice, or released to a pool that does not own it.

    This is a programming defect, not a request outcome, so it is not a
    ``BlobApiError``.
    """
