"""
Conversion of upstream USD prices into platform tokens.

``base = amount * conversion_rate``, ``fee = base * markup_rate`` and the
platform price is ``ceil(base + fee)``. Fees are reported rounded up to whole
tokens as well. Nothing here performs I/O or caches; the conversion rate is
always supplied by the caller.
"""

import math
from dataclasses import dataclass
from typing import Optional

from .config import PricingConfig
from .tld_registry import normalize_tld, popularity_rank


@dataclass(frozen=True)
class PlatformPrice:
    """A price converted into platform tokens."""

    platform_amount: int
    platform_fee: int


@dataclass(frozen=True)
class TokenQuote:
    """Full price breakdown for registering a domain for some years."""

    usd_price: float
    token_price: int
    conversion_rate: float
    markup_percentage: float
    platform_fee: int
    years: int = 1


@dataclass(frozen=True)
class TLDPlatformPricing:
    """Registration, renewal and transfer prices for one TLD in both units."""

    tld: str
    registration_usd: float
    renewal_usd: float
    transfer_usd: float
    registration_tokens: int
    renewal_tokens: int
    transfer_tokens: int
    marketplace_fee_tokens: int
    conversion_rate: float
    markup_percentage: float
    popularity_rank: int


class PricingConverter:
    """Deterministic USD to platform-token conversion with a markup."""

    def __init__(self, config: Optional[PricingConfig] = None) -> None:
        self._config = config or PricingConfig()

    @property
    def conversion_rate(self) -> float:
        return self._config.conversion_rate

    @property
    def markup_rate(self) -> float:
        return self._config.markup_rate

    @staticmethod
    def to_platform_units(
        upstream_amount: float,
        conversion_rate: float,
        markup_rate: float,
    ) -> PlatformPrice:
        """
        Convert an upstream amount into platform tokens.

        Args:
            upstream_amount: Price in upstream currency (USD)
            conversion_rate: Tokens per unit of upstream currency
            markup_rate: Marketplace fee as a fraction (0.10 for 10%)
        """
        base = upstream_amount * conversion_rate
        fee = base * markup_rate
        return PlatformPrice(
            platform_amount=math.ceil(base + fee),
            platform_fee=math.ceil(fee),
        )

    def convert(self, upstream_amount: float, conversion_rate: Optional[float] = None) -> PlatformPrice:
        """Convert using the configured markup and, unless given, the configured rate."""
        rate = self._config.conversion_rate if conversion_rate is None else conversion_rate
        return self.to_platform_units(upstream_amount, rate, self._config.markup_rate)

    def quote(
        self,
        usd_price: float,
        years: int = 1,
        conversion_rate: Optional[float] = None,
    ) -> TokenQuote:
        """Price breakdown for ``years`` of registration at ``usd_price`` per year."""
        if years < 1:
            raise ValueError(f"years must be at least 1, got {years}")
        rate = self._config.conversion_rate if conversion_rate is None else conversion_rate
        total_usd = usd_price * years
        price = self.to_platform_units(total_usd, rate, self._config.markup_rate)
        return TokenQuote(
            usd_price=total_usd,
            token_price=price.platform_amount,
            conversion_rate=rate,
            markup_percentage=self._config.markup_rate * 100,
            platform_fee=price.platform_fee,
            years=years,
        )

    def tld_pricing(
        self,
        tld: str,
        registration_usd: float,
        renewal_usd: float,
        transfer_usd: float,
        conversion_rate: Optional[float] = None,
    ) -> TLDPlatformPricing:
        """Convert one row of the upstream pricing table."""
        rate = self._config.conversion_rate if conversion_rate is None else conversion_rate
        registration = self.to_platform_units(registration_usd, rate, self._config.markup_rate)
        return TLDPlatformPricing(
            tld=normalize_tld(tld),
            registration_usd=registration_usd,
            renewal_usd=renewal_usd,
            transfer_usd=transfer_usd,
            registration_tokens=registration.platform_amount,
            renewal_tokens=self.to_platform_units(renewal_usd, rate, self._config.markup_rate).platform_amount,
            transfer_tokens=self.to_platform_units(transfer_usd, rate, self._config.markup_rate).platform_amount,
            marketplace_fee_tokens=registration.platform_fee,
            conversion_rate=rate,
            markup_percentage=self._config.markup_rate * 100,
            popularity_rank=popularity_rank(tld),
        )
