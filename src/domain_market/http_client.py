"""
HTTP transport for the registrar's JSON API.

Every call is a JSON POST to ``<base_url><endpoint>`` carrying the credential
fields in the body. Failures are classified here, once:

- HTTP 429 -> RateLimitError (reset header is epoch seconds)
- any other non-2xx status -> UpstreamAPIError
- a body that is not a JSON object -> UpstreamAPIError
- ``status: "ERROR"`` inside a 200 body -> UpstreamAPIError
- timeouts and connection failures -> UpstreamAPIError
"""

import time
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from .config import HttpConfig
from .exceptions import RateLimitError, UpstreamAPIError

REMAINING_HEADER = "X-RateLimit-Remaining"
LIMIT_HEADER = "X-RateLimit-Limit"
RESET_HEADER = "X-RateLimit-Reset"


@dataclass
class RateLimitHeaders:
    """Rate-limit headers as reported by the upstream; None when absent."""

    remaining: Optional[int]
    limit: Optional[int]
    reset_time: Optional[float]  # epoch seconds


@dataclass
class UpstreamResponse:
    """A successful upstream reply."""

    data: dict[str, Any]
    status_code: int
    rate_limit: RateLimitHeaders
    response_time_ms: float = 0.0


def _int_header(headers: httpx.Headers, name: str) -> Optional[int]:
    value = headers.get(name)
    if value is None:
        return None
    try:
        return int(float(value.strip()))
    except ValueError:
        return None


def parse_rate_limit_headers(headers: httpx.Headers) -> RateLimitHeaders:
    """Extract the rate-limit headers, ignoring ones that are missing or garbled."""
    reset = _int_header(headers, RESET_HEADER)
    return RateLimitHeaders(
        remaining=_int_header(headers, REMAINING_HEADER),
        limit=_int_header(headers, LIMIT_HEADER),
        reset_time=float(reset) if reset is not None else None,
    )


class RegistrarTransport:
    """
    Async HTTP transport with TLS verification and failure classification.

    The underlying ``httpx.AsyncClient`` is created lazily; pass ``transport``
    to route requests through a custom ``httpx`` transport.
    """

    def __init__(
        self,
        config: Optional[HttpConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._config = config or HttpConfig()
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "RegistrarTransport":
        self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    @property
    def base_url(self) -> str:
        return self._config.base_url.rstrip("/")

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                verify=True,
                timeout=httpx.Timeout(self._config.timeout_seconds),
                headers={
                    "Content-Type": "application/json",
                    "User-Agent": self._config.user_agent,
                },
                transport=self._transport,
            )
        return self._client

    async def post(self, endpoint: str, payload: dict[str, Any]) -> UpstreamResponse:
        """
        POST a JSON payload to an endpoint.

        Args:
            endpoint: Path below the base URL, e.g. ``/domain/checkDomain/x.com``
            payload: Request body, credentials included

        Returns:
            UpstreamResponse with the decoded body and rate-limit headers

        Raises:
            RateLimitError: On HTTP 429
            UpstreamAPIError: On any other failure
        """
        client = self._ensure_client()
        url = f"{self.base_url}{endpoint}"
        start_time = time.perf_counter()

        try:
            response = await client.post(url, json=payload)
        except httpx.TimeoutException as e:
            raise UpstreamAPIError(
                f"Request timed out after {self._config.timeout_seconds}s",
                details={"endpoint": endpoint},
            ) from e
        except httpx.HTTPError as e:
            raise UpstreamAPIError(
                f"Request failed: {e}",
                details={"endpoint": endpoint},
            ) from e

        rate_limit = parse_rate_limit_headers(response.headers)

        if response.status_code == 429:
            raise RateLimitError(
                "Rate limit exceeded",
                reset_time=rate_limit.reset_time or 0.0,
                limit=rate_limit.limit or 0,
                details={"endpoint": endpoint},
            )

        if not response.is_success:
            raise UpstreamAPIError(
                f"HTTP {response.status_code}: {response.reason_phrase}",
                status_code=response.status_code,
                details={"endpoint": endpoint},
            )

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamAPIError(
                f"Malformed response body: {e}",
                status_code=response.status_code,
                details={"endpoint": endpoint},
            ) from e

        if not isinstance(data, dict):
            raise UpstreamAPIError(
                "Malformed response body: expected a JSON object",
                status_code=response.status_code,
                details={"endpoint": endpoint},
            )

        if data.get("status") == "ERROR":
            raise UpstreamAPIError(
                str(data.get("message") or "API Error"),
                status_code=response.status_code,
                details={"endpoint": endpoint},
            )

        return UpstreamResponse(
            data=data,
            status_code=response.status_code,
            rate_limit=rate_limit,
            response_time_ms=(time.perf_counter() - start_time) * 1000,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
