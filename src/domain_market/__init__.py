"""
Domain Market - Rate-aware registrar API client and domain search engine.

This package wraps a registrar's JSON API behind a serialized request queue
with rate-limit tracking, retries and a TTL response cache, and builds a
multi-TLD domain search with token pricing and name scoring on top of it.
"""

__version__ = "0.1.0"
__author__ = "Domain Market Team"

from domain_market.exceptions import (
    DomainMarketError,
    ConfigurationError,
    UpstreamAPIError,
    RateLimitError,
    ValidationError,
    QueueClearedError,
    InvalidDomainError,
)
from domain_market.enums import (
    Availability,
    SortBy,
    SortOrder,
    LogLevel,
    DomainValidationErrorCode,
    DNSRecordType,
)
from domain_market.clock import (
    Clock,
    SystemClock,
    ManualClock,
)
from domain_market.config import (
    Credentials,
    HttpConfig,
    RetryConfig,
    QueueConfig,
    CacheConfig,
    PricingConfig,
    LoggingConfig,
    ClientConfig,
    config_from_dict,
    load_config_from_file,
    save_config_to_file,
)
from domain_market.event_logger import (
    EventLogger,
    LogEntry,
)
from domain_market.domain_validator import (
    DomainValidator,
    DomainValidationResult,
    DomainValidationError,
)
from domain_market.rate_limiter import (
    RateLimitTracker,
    RateLimitState,
)
from domain_market.cache import (
    ResponseCache,
    CacheEntry,
    CacheStats,
)
from domain_market.retry_policy import (
    RetryPolicy,
    RetryDecision,
)
from domain_market.http_client import (
    RegistrarTransport,
    UpstreamResponse,
    RateLimitHeaders,
)
from domain_market.request_queue import (
    RequestQueue,
    QueueStatus,
)
from domain_market.pricing import (
    PricingConverter,
    PlatformPrice,
    TokenQuote,
    TLDPlatformPricing,
)
from domain_market.tld_registry import (
    TLD_POPULARITY,
    DEFAULT_SEARCH_TLDS,
    popularity_rank,
)
from domain_market.models import (
    SearchFilters,
    CandidatePricing,
    CandidateMetadata,
    DomainCandidate,
    SearchResult,
    BulkCheckItem,
    BulkCheckError,
    BulkCheckResult,
    ClientStatus,
)
from domain_market.scoring import (
    readability_score,
    brandability_score,
    sort_candidates,
)
from domain_market.search_engine import (
    DomainSearchEngine,
)
from domain_market.client import (
    RegistrarClient,
)
from domain_market.cli import (
    main as cli_main,
    create_parser,
)

__all__ = [
    # Exceptions
    "DomainMarketError",
    "ConfigurationError",
    "UpstreamAPIError",
    "RateLimitError",
    "ValidationError",
    "QueueClearedError",
    "InvalidDomainError",
    # Enums
    "Availability",
    "SortBy",
    "SortOrder",
    "LogLevel",
    "DomainValidationErrorCode",
    "DNSRecordType",
    # Clock
    "Clock",
    "SystemClock",
    "ManualClock",
    # Configuration
    "Credentials",
    "HttpConfig",
    "RetryConfig",
    "QueueConfig",
    "CacheConfig",
    "PricingConfig",
    "LoggingConfig",
    "ClientConfig",
    "config_from_dict",
    "load_config_from_file",
    "save_config_to_file",
    # Logging
    "EventLogger",
    "LogEntry",
    # Domain Validator
    "DomainValidator",
    "DomainValidationResult",
    "DomainValidationError",
    # Rate limits, cache and retries
    "RateLimitTracker",
    "RateLimitState",
    "ResponseCache",
    "CacheEntry",
    "CacheStats",
    "RetryPolicy",
    "RetryDecision",
    # Transport and queue
    "RegistrarTransport",
    "UpstreamResponse",
    "RateLimitHeaders",
    "RequestQueue",
    "QueueStatus",
    # Pricing
    "PricingConverter",
    "PlatformPrice",
    "TokenQuote",
    "TLDPlatformPricing",
    "TLD_POPULARITY",
    "DEFAULT_SEARCH_TLDS",
    "popularity_rank",
    # Search
    "SearchFilters",
    "CandidatePricing",
    "CandidateMetadata",
    "DomainCandidate",
    "SearchResult",
    "BulkCheckItem",
    "BulkCheckError",
    "BulkCheckResult",
    "ClientStatus",
    "readability_score",
    "brandability_score",
    "sort_candidates",
    "DomainSearchEngine",
    # Client
    "RegistrarClient",
    # CLI
    "cli_main",
    "create_parser",
]
