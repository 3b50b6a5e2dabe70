"""
Data models for domain search and client diagnostics.

Search inputs and outputs are immutable value objects: filters are fixed at
construction and candidates are built once per search.
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Optional, Union

from .enums import Availability, SortBy, SortOrder
from .tld_registry import DEFAULT_SEARCH_TLDS, normalize_tld


def _plain(value: Any) -> Any:
    """Recursively replace enums with their values for JSON output."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


@dataclass(frozen=True)
class SearchFilters:
    """Filtering and ordering options for a domain search."""

    tlds: Optional[tuple[str, ...]] = DEFAULT_SEARCH_TLDS
    max_price_usd: Optional[float] = None
    max_price_tokens: Optional[int] = None
    max_length: Optional[int] = 50
    include_premium: bool = False
    require_available: bool = True
    sort_by: SortBy = SortBy.PRICE
    sort_order: SortOrder = SortOrder.ASC

    def __post_init__(self) -> None:
        tlds = DEFAULT_SEARCH_TLDS if self.tlds is None else self.tlds
        if isinstance(tlds, str):
            tlds = (tlds,)
        seen: list[str] = []
        for tld in tlds:
            normalized = normalize_tld(tld)
            if normalized and normalized not in seen:
                seen.append(normalized)
        object.__setattr__(self, "tlds", tuple(seen))
        object.__setattr__(self, "sort_by", SortBy(self.sort_by))
        object.__setattr__(self, "sort_order", SortOrder(self.sort_order))

    @classmethod
    def from_dict(cls, data: dict) -> "SearchFilters":
        """Build filters from a dict, taking defaults for missing or None keys."""
        known = {
            key: value
            for key, value in data.items()
            if key in cls.__dataclass_fields__ and value is not None
        }
        if "tlds" in known:
            known["tlds"] = tuple(known["tlds"])
        return cls(**known)

    def to_dict(self) -> dict:
        return _plain(asdict(self))


@dataclass(frozen=True)
class CandidatePricing:
    """Price of one candidate in upstream currency and platform tokens."""

    usd: float
    tokens: int
    platform_fee: int
    is_premium: bool
    first_year_promo: bool = False
    years: int = 1


@dataclass(frozen=True)
class CandidateMetadata:
    """Heuristic properties of the candidate's name."""

    length: int
    contains_digits: bool
    contains_hyphens: bool
    readability_score: int
    brandability_score: int


@dataclass(frozen=True)
class DomainCandidate:
    """One domain considered by a search."""

    domain: str
    tld: str
    availability: Availability
    pricing: CandidatePricing
    metadata: CandidateMetadata

    @property
    def is_available(self) -> bool:
        return self.availability is Availability.AVAILABLE

    def to_dict(self) -> dict:
        return _plain(asdict(self))


@dataclass
class SearchResult:
    """Outcome of one search run."""

    query: str
    filters: SearchFilters
    candidates: list[DomainCandidate]
    total_found: int
    search_time_ms: float
    rate_limits: dict[str, dict]
    conversion_rate: float
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "query": self.query,
            "filters": self.filters.to_dict(),
            "candidates": [candidate.to_dict() for candidate in self.candidates],
            "total_found": self.total_found,
            "search_time_ms": self.search_time_ms,
            "rate_limits": self.rate_limits,
            "conversion_rate": self.conversion_rate,
            "errors": list(self.errors),
        }


@dataclass(frozen=True)
class BulkCheckItem:
    """Availability and price of one domain in a bulk check."""

    domain: str
    available: bool
    premium: bool
    price_usd: float
    token_price: Optional[int] = None


@dataclass(frozen=True)
class BulkCheckError:
    domain: str
    error: str


@dataclass
class BulkCheckResult:
    """Outcome of checking a list of domains."""

    results: list[BulkCheckItem] = field(default_factory=list)
    errors: list[BulkCheckError] = field(default_factory=list)

    @property
    def summary(self) -> dict[str, int]:
        return {
            "total_checked": len(self.results) + len(self.errors),
            "successful": len(self.results),
            "failed": len(self.errors),
            "available": sum(1 for item in self.results if item.available),
            "premium": sum(1 for item in self.results if item.premium),
        }

    def to_dict(self) -> dict:
        return {
            "results": [asdict(item) for item in self.results],
            "errors": [asdict(error) for error in self.errors],
            "summary": self.summary,
        }


@dataclass
class ClientStatus:
    """Diagnostic snapshot of a client."""

    cache: dict[str, Union[int, float]]
    queue: dict[str, Any]
    auth_configured: bool

    def to_dict(self) -> dict:
        return asdict(self)
