"""
Registrar API client facade.

Every upstream call goes through one RequestQueue, so requests are serialized,
rate-limit aware and retried with backoff. Read operations are cache-aside:
a fresh cache entry is returned without touching the network, otherwise the
validated response is cached under a key whose namespace selects the TTL.
"""

from typing import Any, Iterable, Optional, Union
from urllib.parse import quote

import httpx

from .cache import ResponseCache
from .clock import Clock, SystemClock
from .config import ClientConfig, Credentials
from .domain_validator import DomainValidator
from .enums import LogLevel
from .event_logger import EventLogger
from .exceptions import InvalidDomainError
from .http_client import RegistrarTransport
from .models import BulkCheckResult, ClientStatus, SearchFilters, SearchResult
from .pricing import PricingConverter, TLDPlatformPricing, TokenQuote
from .rate_limiter import RateLimitTracker
from .request_queue import RequestQueue, Transport
from .retry_policy import RetryPolicy
from .schemas import (
    CreateDNSRecord,
    CreateDNSRecordResponse,
    DNSRecordsResponse,
    DomainCheckResponse,
    DomainListResponse,
    NameServerResponse,
    PingResponse,
    PricingResponse,
    URLForwardsResponse,
    M,
    parse_response,
)
from .search_engine import DomainSearchEngine
from .tld_registry import normalize_tld

PRICING_CACHE_KEY = "domain-pricing-all"


class RegistrarClient:
    """
    Authenticated registrar client with queueing, caching and retries.

    Example:
        credentials = Credentials.from_env()
        async with RegistrarClient(credentials) as client:
            result = await client.search_domains("example")
    """

    def __init__(
        self,
        credentials: Credentials,
        config: Optional[ClientConfig] = None,
        transport: Optional[Union[Transport, httpx.AsyncBaseTransport]] = None,
        clock: Optional[Clock] = None,
        logger: Optional[EventLogger] = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            credentials: API key pair sent with every request
            config: Client configuration; defaults apply when omitted
            transport: Either an ``httpx`` transport to send requests through,
                or an object with an async ``post(endpoint, payload)`` method
            clock: Time source for the cache, tracker and queue
            logger: Optional event logger

        Raises:
            ConfigurationError: If either credential is missing
        """
        credentials.validate()
        self._credentials = credentials
        self._config = config or ClientConfig()
        self._clock = clock or SystemClock()
        self._logger = logger

        if transport is None or isinstance(transport, httpx.AsyncBaseTransport):
            transport = RegistrarTransport(self._config.http, transport)
        self._transport = transport

        self._cache = ResponseCache(self._config.cache, self._clock)
        self._tracker = RateLimitTracker(self._clock)
        self._queue = RequestQueue(
            transport=self._transport,
            tracker=self._tracker,
            retry_policy=RetryPolicy(self._config.retry),
            config=self._config.queue,
            clock=self._clock,
            logger=logger,
        )
        self._validator = DomainValidator()
        self._converter = PricingConverter(self._config.pricing)
        self._search_engine = DomainSearchEngine(self, self._converter, self._validator, logger)

    async def __aenter__(self) -> "RegistrarClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def cache(self) -> ResponseCache:
        return self._cache

    @property
    def queue(self) -> RequestQueue:
        return self._queue

    def _auth_payload(self, **extra: Any) -> dict[str, Any]:
        payload = self._credentials.to_payload()
        payload.update(extra)
        return payload

    def _canonical_domain(self, domain: str) -> str:
        result = self._validator.validate_domain(domain)
        if not result.valid:
            raise InvalidDomainError(result.error.message, details=result.error.details)
        return result.canonical

    async def _request(
        self,
        endpoint: str,
        model: type[M],
        payload: Optional[dict[str, Any]] = None,
        priority: bool = False,
        head: bool = False,
    ) -> M:
        data = await self._queue.enqueue(endpoint, payload or self._auth_payload(), priority, head)
        return parse_response(model, data, endpoint)

    async def _cached_request(
        self,
        cache_key: str,
        endpoint: str,
        model: type[M],
        payload: Optional[dict[str, Any]] = None,
        priority: bool = False,
        ttl: Optional[float] = None,
    ) -> M:
        cached = self._cache.get(cache_key)
        if cached is not None:
            self._log(LogLevel.DEBUG, "Cache hit", {"key": cache_key})
            return cached

        # Only responses that pass validation are cached.
        result = await self._request(endpoint, model, payload, priority)
        self._cache.set(cache_key, result, ttl)
        return result

    async def get_pricing(self) -> PricingResponse:
        """Registration, renewal and transfer prices for every TLD."""
        return await self._cached_request(PRICING_CACHE_KEY, "/pricing/get", PricingResponse)

    async def check_availability(self, domain: str) -> DomainCheckResponse:
        """
        Check whether a domain can be registered.

        Availability checks are user-facing, so they jump ahead of queued
        background requests.

        Raises:
            InvalidDomainError: If the domain name is malformed
        """
        canonical = self._canonical_domain(domain)
        return await self._cached_request(
            f"domain-check-{canonical}",
            f"/domain/checkDomain/{quote(canonical)}",
            DomainCheckResponse,
            priority=True,
        )

    async def list_domains(self, start: int = 0, include_labels: bool = False) -> DomainListResponse:
        """Domains in the account, 1000 per page starting at ``start``."""
        return await self._cached_request(
            f"domain-list-{start}-{include_labels}",
            "/domain/listAll",
            DomainListResponse,
            payload=self._auth_payload(
                start=str(start),
                includeLabels="yes" if include_labels else "no",
            ),
            ttl=self._config.cache.domain_list_ttl,
        )

    async def get_dns_records(self, domain: str) -> DNSRecordsResponse:
        canonical = self._canonical_domain(domain)
        return await self._cached_request(
            f"dns-records-{canonical}",
            f"/dns/retrieve/{quote(canonical)}",
            DNSRecordsResponse,
            ttl=self._config.cache.dns_records_ttl,
        )

    async def create_dns_record(
        self,
        domain: str,
        record: Union[CreateDNSRecord, dict[str, Any]],
    ) -> str:
        """
        Create a DNS record and drop the cached record list for the domain.

        Returns:
            Identifier of the new record
        """
        canonical = self._canonical_domain(domain)
        if not isinstance(record, CreateDNSRecord):
            record = parse_response(CreateDNSRecord, record, "dns-record")

        response = await self._request(
            f"/dns/create/{quote(canonical)}",
            CreateDNSRecordResponse,
            payload=self._auth_payload(**record.to_payload()),
        )
        self._cache.delete(f"dns-records-{canonical}")
        self._log(LogLevel.INFO, f"Created DNS record for {canonical}", {
            "domain": canonical,
            "type": record.type.value,
            "record_id": str(response.id),
        })
        return str(response.id)

    async def get_url_forwards(self, domain: str) -> URLForwardsResponse:
        canonical = self._canonical_domain(domain)
        return await self._cached_request(
            f"url-forwards-{canonical}",
            f"/domain/getUrlForwarding/{quote(canonical)}",
            URLForwardsResponse,
        )

    async def get_name_servers(self, domain: str) -> NameServerResponse:
        canonical = self._canonical_domain(domain)
        return await self._cached_request(
            f"name-servers-{canonical}",
            f"/domain/getNs/{quote(canonical)}",
            NameServerResponse,
        )

    async def ping(self) -> PingResponse:
        """Authenticated connectivity check; never cached, runs ahead of queued work."""
        return await self._request("/ping", PingResponse, head=True)

    async def search_domains(
        self,
        query: str,
        filters: Optional[SearchFilters] = None,
    ) -> SearchResult:
        return await self._search_engine.search(query, filters)

    async def check_bulk(
        self,
        domains: Iterable[str],
        include_pricing: bool = True,
    ) -> BulkCheckResult:
        return await self._search_engine.bulk_check(domains, include_pricing)

    def get_conversion_rate(self) -> float:
        """Platform tokens per USD."""
        return self._converter.conversion_rate

    def quote_price(self, usd_price: float, years: int = 1) -> TokenQuote:
        return self._converter.quote(usd_price, years, self.get_conversion_rate())

    async def get_platform_pricing(
        self,
        tld: Optional[str] = None,
    ) -> Union[dict[str, TLDPlatformPricing], TLDPlatformPricing]:
        """
        Pricing table converted to platform tokens.

        Args:
            tld: Restrict to one TLD; the whole table is returned when omitted

        Returns:
            One TLDPlatformPricing, or a dict of them keyed by TLD

        Raises:
            InvalidDomainError: If ``tld`` is not in the pricing table
        """
        pricing = await self.get_pricing()
        rate = self.get_conversion_rate()

        def convert(name: str) -> TLDPlatformPricing:
            row = pricing.pricing[name]
            return self._converter.tld_pricing(
                name, row.registration, row.renewal, row.transfer, rate
            )

        if tld is not None:
            name = normalize_tld(tld)
            if name not in pricing.pricing:
                raise InvalidDomainError(f"TLD .{name} is not supported", details={"tld": name})
            return convert(name)

        return {name: convert(name) for name in pricing.pricing}

    def rate_limit_snapshot(self) -> dict[str, dict]:
        return self._tracker.snapshot()

    def get_client_status(self) -> ClientStatus:
        """Cache statistics, queue status and whether credentials are set."""
        stats = self._cache.stats()
        queue_status = self._queue.status()
        return ClientStatus(
            cache={
                "total": stats.total,
                "active": stats.active,
                "expired": stats.expired,
                "hit_potential": stats.hit_potential,
            },
            queue={
                "queue_length": queue_status.queue_length,
                "processing": queue_status.processing,
                "rate_limits": queue_status.rate_limits,
            },
            auth_configured=bool(self._credentials.api_key and self._credentials.secret_api_key),
        )

    def clear_cache(self) -> None:
        self._cache.clear()
        self._log(LogLevel.INFO, "Cache cleared", {})

    def clear_queue(self) -> int:
        """Reject every pending request; returns how many were rejected."""
        return self._queue.clear_queue()

    async def aclose(self) -> None:
        """Reject pending requests, stop the queue worker and close the HTTP transport."""
        await self._queue.close()
        close = getattr(self._transport, "close", None)
        if close is not None:
            await close()

    def _log(self, level: LogLevel, message: str, data: dict) -> None:
        if self._logger:
            self._logger.log(level, "RegistrarClient", message, data)
