"""
Multi-TLD domain search built on the registrar client.

For a query label the engine checks ``<label>.<tld>`` for every requested TLD,
one after another so every lookup goes through the client's single request
queue. Candidates are priced in platform tokens, filtered, scored and sorted.

A failed lookup for one TLD is logged and skipped; it never aborts the search.
Failing to fetch the pricing table does abort it, since nothing can be priced
without it.
"""

import time
from typing import TYPE_CHECKING, Iterable, Optional

from .domain_validator import DomainValidator
from .enums import Availability, LogLevel
from .event_logger import EventLogger
from .exceptions import InvalidDomainError
from .models import (
    BulkCheckError,
    BulkCheckItem,
    BulkCheckResult,
    CandidateMetadata,
    CandidatePricing,
    DomainCandidate,
    SearchFilters,
    SearchResult,
)
from .pricing import PricingConverter
from .schemas import DomainAvailability, PricingResponse
from .scoring import (
    brandability_score,
    contains_digits,
    contains_hyphens,
    readability_score,
    sort_candidates,
)

if TYPE_CHECKING:
    from .client import RegistrarClient

MAX_BULK_DOMAINS = 50


class DomainSearchEngine:
    """Candidate generation, filtering, scoring and sorting across TLDs."""

    def __init__(
        self,
        client: "RegistrarClient",
        converter: PricingConverter,
        validator: Optional[DomainValidator] = None,
        logger: Optional[EventLogger] = None,
    ) -> None:
        self._client = client
        self._converter = converter
        self._validator = validator or DomainValidator()
        self._logger = logger

    async def search(
        self,
        query: str,
        filters: Optional[SearchFilters] = None,
    ) -> SearchResult:
        """
        Search ``query`` across the TLDs in ``filters``.

        Args:
            query: Bare label, e.g. ``example``
            filters: Search filters; defaults apply when omitted

        Returns:
            SearchResult with the sorted candidates

        Raises:
            InvalidDomainError: If the query is not a valid label
            DomainMarketError: If the pricing table cannot be fetched
        """
        start_time = time.perf_counter()
        filters = filters or SearchFilters()

        validation = self._validator.validate_query(query)
        if not validation.valid:
            raise InvalidDomainError(validation.error.message, details=validation.error.details)
        label = validation.canonical

        pricing = await self._client.get_pricing()
        conversion_rate = self._client.get_conversion_rate()

        candidates: list[DomainCandidate] = []
        errors: list[str] = []

        for tld in filters.tlds:
            domain = f"{label}.{tld}"
            try:
                check = await self._client.check_availability(domain)
            except Exception as e:
                errors.append(f"{domain}: {e}")
                self._log(LogLevel.WARN, f"Failed to check {domain}, skipping", {
                    "domain": domain,
                    "error_type": type(e).__name__,
                    "error": str(e),
                })
                continue

            candidate = self._build_candidate(
                label, tld, check.response, pricing, conversion_rate, filters
            )
            if candidate is not None:
                candidates.append(candidate)

        ordered = sort_candidates(candidates, filters.sort_by, filters.sort_order)
        elapsed_ms = (time.perf_counter() - start_time) * 1000

        self._log(LogLevel.INFO, f"Search completed for {label}", {
            "query": label,
            "tlds": list(filters.tlds),
            "found": len(ordered),
            "failed": len(errors),
            "duration_ms": elapsed_ms,
        })

        return SearchResult(
            query=label,
            filters=filters,
            candidates=ordered,
            total_found=len(ordered),
            search_time_ms=elapsed_ms,
            rate_limits=self._client.rate_limit_snapshot(),
            conversion_rate=conversion_rate,
            errors=errors,
        )

    def _build_candidate(
        self,
        label: str,
        tld: str,
        availability: DomainAvailability,
        pricing: PricingResponse,
        conversion_rate: float,
        filters: SearchFilters,
    ) -> Optional[DomainCandidate]:
        """Price and score one lookup, or return None if a filter rejects it."""
        domain = f"{label}.{tld}"

        if filters.require_available and not availability.is_available:
            return None

        if tld not in pricing.pricing:
            self._log(LogLevel.DEBUG, f"No pricing for .{tld}, skipping {domain}", {"tld": tld})
            return None

        price = self._converter.to_platform_units(
            availability.price, conversion_rate, self._converter.markup_rate
        )

        if filters.max_price_usd is not None and availability.price > filters.max_price_usd:
            return None
        if filters.max_price_tokens is not None and price.platform_amount > filters.max_price_tokens:
            return None
        if filters.max_length is not None and len(domain) > filters.max_length:
            return None
        if availability.is_premium and not filters.include_premium:
            return None

        return DomainCandidate(
            domain=domain,
            tld=tld,
            availability=Availability.AVAILABLE if availability.is_available else Availability.TAKEN,
            pricing=CandidatePricing(
                usd=availability.price,
                tokens=price.platform_amount,
                platform_fee=price.platform_fee,
                is_premium=availability.is_premium,
                first_year_promo=availability.first_year_promo == "yes",
            ),
            metadata=CandidateMetadata(
                length=len(domain),
                contains_digits=contains_digits(label),
                contains_hyphens=contains_hyphens(label),
                readability_score=readability_score(label),
                brandability_score=brandability_score(label),
            ),
        )

    async def bulk_check(
        self,
        domains: Iterable[str],
        include_pricing: bool = True,
    ) -> BulkCheckResult:
        """
        Check a list of domains one by one, collecting per-domain failures.

        Raises:
            InvalidDomainError: If the list is empty or longer than 50 entries
        """
        domains = list(domains)
        if not domains:
            raise InvalidDomainError("At least one domain is required")
        if len(domains) > MAX_BULK_DOMAINS:
            raise InvalidDomainError(
                f"At most {MAX_BULK_DOMAINS} domains per bulk check",
                details={"count": len(domains)},
            )

        result = BulkCheckResult()
        for domain in domains:
            try:
                check = await self._client.check_availability(domain)
            except Exception as e:
                result.errors.append(BulkCheckError(domain=domain, error=str(e)))
                continue

            availability = check.response
            token_price = None
            if include_pricing:
                token_price = self._converter.convert(availability.price).platform_amount
            result.results.append(BulkCheckItem(
                domain=domain,
                available=availability.is_available,
                premium=availability.is_premium,
                price_usd=availability.price,
                token_price=token_price,
            ))

        self._log(LogLevel.INFO, "Bulk check completed", result.summary)
        return result

    def _log(self, level: LogLevel, message: str, data: dict) -> None:
        if self._logger:
            self._logger.log(level, "DomainSearchEngine", message, data)
