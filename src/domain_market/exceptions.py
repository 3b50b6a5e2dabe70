"""
Exception classes for the domain market client.

All exceptions inherit from DomainMarketError and carry a machine-readable
code, a human-readable message and optional details. Errors raised by a single
upstream call are classified once, at the transport level, and then travel
unchanged to the awaiting caller.
"""

from typing import Optional


class DomainMarketError(Exception):
    """Base exception for all domain market errors."""

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[dict] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"

    def to_dict(self) -> dict:
        """Convert exception to dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(DomainMarketError):
    """Raised at construction time when required settings are missing."""

    def __init__(self, message: str, details: Optional[dict] = None) -> None:
        super().__init__("configuration_error", message, details)


class UpstreamAPIError(DomainMarketError):
    """
    Raised for non-2xx HTTP statuses (other than 429), in-body
    ``status: "ERROR"`` replies, malformed bodies and network failures.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[dict] = None,
    ) -> None:
        self.status_code = status_code
        super().__init__("upstream_error", message, details)


class RateLimitError(UpstreamAPIError):
    """Raised on HTTP 429. The only error kind retried internally."""

    def __init__(
        self,
        message: str,
        reset_time: float,
        limit: int,
        details: Optional[dict] = None,
    ) -> None:
        self.reset_time = reset_time
        self.limit = limit
        super().__init__(message, status_code=429, details=details)
        self.code = "rate_limited"


class ValidationError(DomainMarketError):
    """Raised when an upstream response does not match the expected schema."""

    def __init__(self, message: str, details: Optional[dict] = None) -> None:
        super().__init__("validation_error", message, details)


class QueueClearedError(DomainMarketError):
    """Delivered to every pending caller when the request queue is cleared."""

    def __init__(self, message: str = "Queue cleared") -> None:
        super().__init__("queue_cleared", message)


class InvalidDomainError(DomainMarketError):
    """Raised when a domain name or search query fails local validation."""

    def __init__(self, message: str, details: Optional[dict] = None) -> None:
        super().__init__("invalid_domain", message, details)
