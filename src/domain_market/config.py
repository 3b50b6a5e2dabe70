"""
Configuration dataclasses for the domain market client.

This module defines the configuration structures used throughout the package:
registrar credentials, HTTP transport settings, queue and retry behaviour,
cache TTL classes, platform pricing and logging. Configuration can be
round-tripped through a JSON file.
"""

import json
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import find_dotenv, load_dotenv

from .exceptions import ConfigurationError

API_KEY_ENV = "PORKBUN_API_KEY"
SECRET_API_KEY_ENV = "PORKBUN_SECRET_API_KEY"


@dataclass
class Credentials:
    """Registrar API credentials, embedded in every request body."""

    api_key: str
    secret_api_key: str

    @classmethod
    def from_env(cls, load_env_file: bool = True) -> "Credentials":
        """
        Read credentials from the environment.

        Args:
            load_env_file: Also load a ``.env`` file from the working directory

        Raises:
            ConfigurationError: If either credential is missing
        """
        if load_env_file:
            load_dotenv(find_dotenv(usecwd=True))
        credentials = cls(
            api_key=os.getenv(API_KEY_ENV, "").strip(),
            secret_api_key=os.getenv(SECRET_API_KEY_ENV, "").strip(),
        )
        credentials.validate()
        return credentials

    def validate(self) -> None:
        """Raise ConfigurationError unless both credentials are non-empty."""
        missing = []
        if not self.api_key or not self.api_key.strip():
            missing.append("api_key")
        if not self.secret_api_key or not self.secret_api_key.strip():
            missing.append("secret_api_key")
        if missing:
            raise ConfigurationError(
                f"Registrar API credentials not configured. Set {API_KEY_ENV} "
                f"and {SECRET_API_KEY_ENV}.",
                details={"missing": missing},
            )

    def to_payload(self) -> dict[str, str]:
        """Credential fields in the form the upstream expects in the body."""
        return {"apikey": self.api_key, "secretapikey": self.secret_api_key}


@dataclass
class HttpConfig:
    """Upstream HTTP transport settings."""

    base_url: str = "https://api.porkbun.com/api/json/v3"
    timeout_seconds: float = 15.0
    user_agent: str = "DomainMarket/0.1 (+registrar-client)"


@dataclass
class RetryConfig:
    """Retry behaviour for rate-limited requests."""

    max_retries: int = 3
    base_delay_seconds: float = 2.0


@dataclass
class QueueConfig:
    """Request queue settings."""

    # Upper bound on a single sleep while the head request is rate limited
    max_rate_limit_wait_seconds: float = 5.0
    # Assumed when a response carries no rate-limit headers
    default_limit: int = 10
    window_seconds: float = 60.0


@dataclass
class CacheConfig:
    """TTL classes (seconds) and sweep cadence for the response cache."""

    default_ttl: float = 300.0
    pricing_ttl: float = 86400.0
    domain_check_ttl: float = 60.0
    domain_list_ttl: float = 300.0
    dns_records_ttl: float = 120.0
    sweep_interval: int = 100


@dataclass
class PricingConfig:
    """Conversion from upstream USD into platform tokens."""

    conversion_rate: float = 40.0  # tokens per USD
    markup_rate: float = 0.10  # marketplace fee as a fraction


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "info"
    output_format: str = "text"  # 'json', 'text', 'both'


@dataclass
class ClientConfig:
    """Complete client configuration combining all sub-configurations."""

    http: HttpConfig = field(default_factory=HttpConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    queue: QueueConfig = field(default_factory=QueueConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    pricing: PricingConfig = field(default_factory=PricingConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def config_from_dict(data: dict) -> ClientConfig:
    """
    Build a ClientConfig from a plain dictionary.

    Unknown keys are ignored and missing sections fall back to defaults.
    """
    def section(cls, key: str):
        values = data.get(key) or {}
        known = {k: v for k, v in values.items() if k in cls.__dataclass_fields__}
        return cls(**known)

    return ClientConfig(
        http=section(HttpConfig, "http"),
        retry=section(RetryConfig, "retry"),
        queue=section(QueueConfig, "queue"),
        cache=section(CacheConfig, "cache"),
        pricing=section(PricingConfig, "pricing"),
        logging=section(LoggingConfig, "logging"),
    )


def load_config_from_file(config_path: Path) -> Optional[ClientConfig]:
    """
    Load configuration from a JSON file.

    Args:
        config_path: Path to the configuration file

    Returns:
        ClientConfig if the file exists, None otherwise

    Raises:
        ConfigurationError: If the file exists but cannot be parsed
    """
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        return None
    except json.JSONDecodeError as e:
        raise ConfigurationError(
            f"Invalid configuration file: {e}",
            details={"path": str(config_path)},
        ) from e

    if not isinstance(data, dict):
        raise ConfigurationError(
            "Configuration file must contain a JSON object",
            details={"path": str(config_path)},
        )

    try:
        return config_from_dict(data)
    except (TypeError, AttributeError) as e:
        raise ConfigurationError(
            f"Invalid configuration values: {e}",
            details={"path": str(config_path)},
        ) from e


def save_config_to_file(config: ClientConfig, config_path: Path) -> None:
    """Write configuration as JSON, creating parent directories as needed."""
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w", encoding="utf-8") as f:
        json.dump(asdict(config), f, indent=2, ensure_ascii=False)
