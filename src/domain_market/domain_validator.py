"""
Domain and search-query validation.

Domains are normalized to a canonical form (trimmed, lowercase, IDNA-encoded)
and then checked against a single-label-plus-TLD pattern, which is the only
shape the registrar's availability endpoint accepts. Search queries are the
bare label that gets combined with each TLD.
"""

import re
from dataclasses import dataclass
from typing import Optional

import idna

from .enums import DomainValidationErrorCode

DOMAIN_PATTERN = re.compile(
    r"^[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?\.(?:[a-z]{2,}|xn--[a-z0-9-]+)$"
)
QUERY_PATTERN = re.compile(r"^[a-z0-9](?:[a-z0-9-]*[a-z0-9])?$")
MAX_QUERY_LENGTH = 50


@dataclass
class DomainValidationError:
    """Structured error information for a validation failure."""

    code: DomainValidationErrorCode
    message: str
    details: dict


@dataclass
class DomainValidationResult:
    """Result of validating a domain or query."""

    valid: bool
    canonical: Optional[str]
    error: Optional[DomainValidationError]


def _failure(code: DomainValidationErrorCode, message: str, **details) -> DomainValidationResult:
    return DomainValidationResult(
        valid=False,
        canonical=None,
        error=DomainValidationError(code=code, message=message, details=details),
    )


class DomainValidator:
    """Validates and normalizes domain names and search queries."""

    def normalize(self, value: str) -> str:
        """
        Convert to canonical form (stripped, lowercase, IDNA if needed).

        Raises:
            idna.IDNAError: If international characters cannot be encoded
        """
        lowered = value.strip().lower()
        if any(ord(c) > 127 for c in lowered):
            return idna.encode(lowered, uts46=True).decode("ascii")
        return lowered

    def validate_domain(self, raw_domain: str) -> DomainValidationResult:
        """Validate a full domain such as ``example.com``."""
        if not raw_domain or not raw_domain.strip():
            return _failure(
                DomainValidationErrorCode.EMPTY_INPUT,
                "Domain input is empty",
                raw_input=raw_domain,
            )

        try:
            canonical = self.normalize(raw_domain)
        except idna.IDNAError as e:
            return _failure(
                DomainValidationErrorCode.IDNA_ERROR,
                f"IDNA encoding failed: {e}",
                raw_input=raw_domain,
            )

        if not DOMAIN_PATTERN.match(canonical):
            return _failure(
                DomainValidationErrorCode.INVALID_FORMAT,
                "Invalid domain format",
                raw_input=raw_domain,
                canonical=canonical,
            )

        return DomainValidationResult(valid=True, canonical=canonical, error=None)

    def validate_query(self, raw_query: str) -> DomainValidationResult:
        """Validate a search query: one label, 1 to 50 characters."""
        if not raw_query or not raw_query.strip():
            return _failure(
                DomainValidationErrorCode.EMPTY_INPUT,
                "Search query is empty",
                raw_input=raw_query,
            )

        try:
            canonical = self.normalize(raw_query)
        except idna.IDNAError as e:
            return _failure(
                DomainValidationErrorCode.IDNA_ERROR,
                f"IDNA encoding failed: {e}",
                raw_input=raw_query,
            )

        if len(canonical) > MAX_QUERY_LENGTH:
            return _failure(
                DomainValidationErrorCode.TOO_LONG,
                f"Query too long (max {MAX_QUERY_LENGTH} characters)",
                raw_input=raw_query,
                length=len(canonical),
            )

        if not QUERY_PATTERN.match(canonical):
            return _failure(
                DomainValidationErrorCode.INVALID_FORMAT,
                "Query must be a single label of letters, digits and inner hyphens",
                raw_input=raw_query,
                canonical=canonical,
            )

        return DomainValidationResult(valid=True, canonical=canonical, error=None)
