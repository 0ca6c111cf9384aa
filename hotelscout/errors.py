"""Error types raised by the hotel search pipeline."""
from typing import Any, Dict, List, Optional


class HotelScoutError(Exception):
    """Base class for all hotel search errors."""

    retryable = False

    def to_dict(self) -> Dict[str, Any]:
        return {"type": type(self).__name__, "message": str(self), "retryable": self.retryable}


class GatewayError(HotelScoutError):
    """A call to the hotel inventory provider failed."""

    def __init__(self, message: str, operation: Optional[str] = None):
        super().__init__(message)
        self.operation = operation

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["operation"] = self.operation
        return data


class TransportError(GatewayError):
    """Network or HTTP-level failure: non-2xx status, connection error or timeout."""

    retryable = True

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        status_code: Optional[int] = None,
        timed_out: bool = False,
        retry_after: Optional[float] = None,
        challenge: bool = False,
    ):
        super().__init__(message, operation)
        self.status_code = status_code
        self.timed_out = timed_out
        self.retry_after = retry_after
        self.challenge = challenge

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(
            status_code=self.status_code,
            timed_out=self.timed_out,
            challenge=self.challenge,
        )
        return data


class UpstreamError(GatewayError):
    """The provider answered 2xx but reported errors in the payload."""

    def __init__(self, message: str, operation: Optional[str] = None, errors: Optional[List[Any]] = None):
        super().__init__(message, operation)
        self.errors = errors or []


class ParseError(GatewayError):
    """The provider payload did not have the expected shape."""


class ValidationError(HotelScoutError):
    """Caller input is missing or malformed; never sent to the provider."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["field"] = self.field
        return data
