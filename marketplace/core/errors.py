"""Error taxonomy shared by the query engine, pagination and favorites."""
from __future__ import annotations

import asyncio

from pydantic import BaseModel

# Transport failures (driver timeouts, refused connections) that a backend
# call can raise without going through a repository translation.
TRANSIENT_ERRORS: tuple[type[Exception], ...] = (asyncio.TimeoutError, TimeoutError, OSError)


class ErrorInfo(BaseModel):
    """Serializable description of a failure handed to the UI layer."""

    code: str
    message: str
    retryable: bool = False


class MarketplaceError(Exception):
    """Base class for recoverable engine errors."""

    code = "error"
    retryable = False

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_info(self) -> ErrorInfo:
        return ErrorInfo(code=self.code, message=self.message, retryable=self.retryable)


class NotFound(MarketplaceError):
    """The requested property (or other record) does not exist."""

    code = "not_found"

    def __init__(self, record_id: str, kind: str = "Property") -> None:
        super().__init__(f"{kind} {record_id} not found")
        self.record_id = record_id


class QueryFailure(MarketplaceError):
    """The property repository call failed or timed out."""

    code = "query_failed"
    retryable = True


class ToggleConfirmationFailure(MarketplaceError):
    """The backing store did not confirm a favorite toggle."""

    code = "toggle_failed"
    retryable = True


class StaleResponse(MarketplaceError):
    """A response arrived for a request that has since been superseded."""

    code = "stale"

    def __init__(self, sequence: int, latest: int) -> None:
        super().__init__(f"Response {sequence} superseded by request {latest}")
        self.sequence = sequence
        self.latest = latest


class RequestRejected(MarketplaceError):
    """A tenant or buyer request violates a listing rule."""

    code = "rejected"
