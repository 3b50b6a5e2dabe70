"""
Enumeration types for the domain market client.

These enums provide type-safe constants for availability, sorting and
logging options used throughout the package.
"""

from enum import Enum


class Availability(Enum):
    """Availability of a domain as reported by the registrar."""

    AVAILABLE = "available"
    TAKEN = "taken"


class SortBy(Enum):
    """Sort keys accepted by the search engine."""

    PRICE = "price"
    LENGTH = "length"
    BRANDABILITY = "brandability"
    POPULARITY = "popularity"


class SortOrder(Enum):
    """Sort direction."""

    ASC = "asc"
    DESC = "desc"


class LogLevel(Enum):
    """Logging severity levels."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


class DomainValidationErrorCode(Enum):
    """Error codes for domain and query validation failures."""

    EMPTY_INPUT = "empty_input"
    IDNA_ERROR = "idna_error"
    INVALID_FORMAT = "invalid_format"
    TOO_LONG = "too_long"


class DNSRecordType(Enum):
    """Record types the registrar accepts when creating DNS records."""

    A = "A"
    MX = "MX"
    CNAME = "CNAME"
    ALIAS = "ALIAS"
    TXT = "TXT"
    NS = "NS"
    AAAA = "AAAA"
    SRV = "SRV"
    TLSA = "TLSA"
    CAA = "CAA"
    HTTPS = "HTTPS"
    SVCB = "SVCB"
