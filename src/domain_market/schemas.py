"""
Schemas for registrar API payloads.

Every upstream reply is validated against one of these models before it is
cached or returned. A reply that does not fit raises ValidationError.
"""

from typing import Literal, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from .enums import DNSRecordType
from .exceptions import ValidationError

YesNo = Literal["yes", "no"]

M = TypeVar("M", bound=BaseModel)


class UpstreamModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class RegistrarResponse(UpstreamModel):
    status: Literal["SUCCESS", "ERROR"]
    message: Optional[str] = None


class TLDPricing(UpstreamModel):
    registration: float
    renewal: float
    transfer: float


class PricingResponse(RegistrarResponse):
    pricing: dict[str, TLDPricing]


class PriceDetail(UpstreamModel):
    type: str
    price: float
    regular_price: float = Field(alias="regularPrice")


class AdditionalPricing(UpstreamModel):
    renewal: PriceDetail
    transfer: PriceDetail


class DomainAvailability(UpstreamModel):
    avail: YesNo
    type: str
    price: float
    first_year_promo: Optional[YesNo] = Field(default=None, alias="firstYearPromo")
    regular_price: float = Field(alias="regularPrice")
    premium: YesNo
    additional: Optional[AdditionalPricing] = None

    @property
    def is_available(self) -> bool:
        return self.avail == "yes"

    @property
    def is_premium(self) -> bool:
        return self.premium == "yes"


class CheckLimits(UpstreamModel):
    ttl: str = Field(alias="TTL")
    limit: str
    used: int
    natural_language: str = Field(alias="naturalLanguage")


class DomainCheckResponse(RegistrarResponse):
    response: DomainAvailability
    limits: Optional[CheckLimits] = None


class DomainLabel(UpstreamModel):
    id: str
    title: str
    color: str


class DomainInfo(UpstreamModel):
    domain: str
    status: str
    tld: str
    create_date: str = Field(alias="createDate")
    expire_date: str = Field(alias="expireDate")
    security_lock: str = Field(alias="securityLock")
    whois_privacy: str = Field(alias="whoisPrivacy")
    auto_renew: int = Field(alias="autoRenew")
    not_local: int = Field(alias="notLocal")
    labels: Optional[list[DomainLabel]] = None


class DomainListResponse(RegistrarResponse):
    domains: list[DomainInfo]


class DNSRecord(UpstreamModel):
    id: str
    name: str
    type: str
    content: str
    ttl: str
    prio: Optional[str] = None
    notes: Optional[str] = None


class DNSRecordsResponse(RegistrarResponse):
    records: list[DNSRecord]


class CreateDNSRecord(UpstreamModel):
    """Request body (minus credentials) for creating a DNS record."""

    name: Optional[str] = None
    type: DNSRecordType
    content: str
    ttl: Optional[str] = None
    prio: Optional[str] = None
    notes: Optional[str] = None

    def to_payload(self) -> dict:
        payload = self.model_dump(exclude_none=True)
        payload["type"] = self.type.value
        return payload


class CreateDNSRecordResponse(RegistrarResponse):
    id: Union[int, str]


class URLForward(UpstreamModel):
    id: str
    subdomain: str
    location: str
    type: Literal["temporary", "permanent"]
    include_path: YesNo = Field(alias="includePath")
    wildcard: YesNo


class URLForwardsResponse(RegistrarResponse):
    forwards: list[URLForward]


class NameServerResponse(RegistrarResponse):
    ns: list[str]


class PingResponse(RegistrarResponse):
    your_ip: str = Field(alias="yourIp")


def parse_response(model: type[M], data: object, endpoint: str = "") -> M:
    """
    Validate an upstream payload against a model.

    Raises:
        ValidationError: If the payload does not match the model
    """
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(
            f"Unexpected response shape for {model.__name__}",
            details={
                "endpoint": endpoint,
                "errors": [
                    {"loc": list(err["loc"]), "msg": err["msg"]}
                    for err in e.errors()
                ],
            },
        ) from e
