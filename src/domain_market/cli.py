"""
Command-line interface for the domain market client.

Commands:
- search: Search a name across TLDs with filters and sorting
- check: Check a single domain
- bulk-check: Check several domains from arguments or a file
- pricing: Show the pricing table in USD and platform tokens
- dns: List or create DNS records
- ping: Verify credentials and connectivity
- config: Configuration management

Credentials are read from PORKBUN_API_KEY and PORKBUN_SECRET_API_KEY, with a
``.env`` file in the working directory honoured. Results are printed to stdout
as JSON; log output goes to stderr.
"""

import argparse
import asyncio
import json
import sys
from enum import Enum
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

import httpx
from pydantic import BaseModel

from . import __version__
from .client import RegistrarClient
from .config import (
    ClientConfig,
    Credentials,
    load_config_from_file,
    save_config_to_file,
)
from .enums import DNSRecordType, LogLevel, SortBy, SortOrder
from .event_logger import EventLogger
from .exceptions import DomainMarketError
from .models import SearchFilters
from .schemas import CreateDNSRecord
from .tld_registry import DEFAULT_SEARCH_TLDS, QUICK_SEARCH_TLDS

DEFAULT_CONFIG_PATH = Path.home() / ".domain_market" / "config.json"


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True, exclude_none=True)
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, dict):
        return {k: _to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_jsonable(v) for v in value]
    if hasattr(value, "__dataclass_fields__"):
        return {name: _to_jsonable(getattr(value, name)) for name in value.__dataclass_fields__}
    return value


def print_json(value: Any) -> None:
    print(json.dumps(_to_jsonable(value), indent=2, ensure_ascii=False))


def _parse_tlds(raw: Optional[str]) -> tuple[str, ...]:
    if not raw:
        return DEFAULT_SEARCH_TLDS
    return tuple(part for part in raw.replace(";", ",").split(",") if part.strip())


def _read_domains_file(path: Path) -> list[str]:
    domains = []
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith("#"):
                domains.append(line)
    return domains


def _load_config(args: argparse.Namespace) -> ClientConfig:
    config = None
    if getattr(args, "config", None):
        config = load_config_from_file(Path(args.config))
        if config is None:
            raise FileNotFoundError(f"Configuration file not found: {args.config}")
    config = config or ClientConfig()

    if getattr(args, "log_level", None):
        config.logging.level = args.log_level
    if getattr(args, "log_format", None):
        config.logging.output_format = args.log_format
    return config


def run_with_client(
    args: argparse.Namespace,
    operation: Callable[[RegistrarClient], Awaitable[Any]],
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> int:
    """
    Build a client from the environment, run ``operation`` and print its result.

    Returns:
        Exit code (0 on success, 1 on any error)
    """
    async def runner() -> Any:
        credentials = Credentials.from_env()
        config = _load_config(args)
        logger = EventLogger.from_config(config.logging, output_stream=sys.stderr)
        async with RegistrarClient(credentials, config, transport=transport, logger=logger) as client:
            return await operation(client)

    try:
        result = asyncio.run(runner())
    except DomainMarketError as e:
        print(f"{type(e).__name__}: {e.message}", file=sys.stderr)
        return 1
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print_json(result)
    return 0


def cmd_search(args: argparse.Namespace, transport: Optional[httpx.AsyncBaseTransport] = None) -> int:
    """Handle the 'search' command."""
    filters = SearchFilters(
        tlds=QUICK_SEARCH_TLDS if args.quick and not args.tlds else _parse_tlds(args.tlds),
        max_price_usd=args.max_price_usd,
        max_price_tokens=args.max_price_tokens,
        max_length=args.max_length,
        include_premium=args.include_premium,
        require_available=not args.include_taken,
        sort_by=args.sort_by,
        sort_order=args.sort_order,
    )
    return run_with_client(args, lambda client: client.search_domains(args.query, filters), transport)


def cmd_check(args: argparse.Namespace, transport: Optional[httpx.AsyncBaseTransport] = None) -> int:
    """Handle the 'check' command."""
    async def operation(client: RegistrarClient) -> dict:
        check = await client.check_availability(args.domain)
        availability = check.response
        return {
            "domain": args.domain,
            "available": availability.is_available,
            "premium": availability.is_premium,
            "price_usd": availability.price,
            "quote": client.quote_price(availability.price, args.years),
        }

    return run_with_client(args, operation, transport)


def cmd_bulk_check(args: argparse.Namespace, transport: Optional[httpx.AsyncBaseTransport] = None) -> int:
    """Handle the 'bulk-check' command."""
    domains = list(args.domains)
    if args.file:
        try:
            domains.extend(_read_domains_file(Path(args.file)))
        except OSError as e:
            print(f"Error reading file: {e}", file=sys.stderr)
            return 1
    if not domains:
        print("Error: No domains given", file=sys.stderr)
        return 1

    return run_with_client(
        args,
        lambda client: client.check_bulk(domains, include_pricing=not args.no_pricing),
        transport,
    )


def cmd_pricing(args: argparse.Namespace, transport: Optional[httpx.AsyncBaseTransport] = None) -> int:
    """Handle the 'pricing' command."""
    return run_with_client(args, lambda client: client.get_platform_pricing(args.tld), transport)


def cmd_dns(args: argparse.Namespace, transport: Optional[httpx.AsyncBaseTransport] = None) -> int:
    """Handle the 'dns' command."""
    if args.action == "list":
        return run_with_client(args, lambda client: client.get_dns_records(args.domain), transport)

    if not args.type or args.content is None:
        print("Error: 'dns create' requires --type and --content", file=sys.stderr)
        return 1

    record = CreateDNSRecord(
        name=args.name,
        type=DNSRecordType(args.type),
        content=args.content,
        ttl=str(args.ttl) if args.ttl is not None else None,
        prio=str(args.prio) if args.prio is not None else None,
    )

    async def operation(client: RegistrarClient) -> dict:
        record_id = await client.create_dns_record(args.domain, record)
        return {"domain": args.domain, "id": record_id}

    return run_with_client(args, operation, transport)


def cmd_ping(args: argparse.Namespace, transport: Optional[httpx.AsyncBaseTransport] = None) -> int:
    """Handle the 'ping' command."""
    return run_with_client(args, lambda client: client.ping(), transport)


def cmd_config(args: argparse.Namespace, transport: Optional[httpx.AsyncBaseTransport] = None) -> int:
    """Handle the 'config' command."""
    config_path = Path(args.path) if args.path else DEFAULT_CONFIG_PATH

    try:
        if args.action == "show":
            config = load_config_from_file(config_path)
            if config is None:
                print(f"No configuration found at: {config_path}", file=sys.stderr)
                print("Use 'config init' to create a default configuration.", file=sys.stderr)
                return 1
            print_json(config)
            return 0

        elif args.action == "init":
            if config_path.exists() and not args.force:
                print(f"Configuration already exists at: {config_path}", file=sys.stderr)
                print("Use --force to overwrite.", file=sys.stderr)
                return 1
            save_config_to_file(ClientConfig(), config_path)
            print(f"Configuration created at: {config_path}")
            return 0

        elif args.action == "validate":
            config = load_config_from_file(config_path)
            if config is None:
                print(f"Error: No configuration found at {config_path}", file=sys.stderr)
                return 1
            EventLogger.from_config(config.logging)
            print(f"Configuration at {config_path} is valid.")
            return 0
    except DomainMarketError as e:
        print(f"{type(e).__name__}: {e.message}", file=sys.stderr)
        return 1
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 1


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="domain-market",
        description="Registrar client and domain search for a token marketplace",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--config", "-c",
        help="Path to configuration file",
    )
    parser.add_argument(
        "--log-level",
        choices=[level.value for level in LogLevel],
        help="Minimum log level written to stderr",
    )
    parser.add_argument(
        "--log-format",
        choices=["json", "text", "both"],
        help="Log output format",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # 'search' command
    search_parser = subparsers.add_parser(
        "search",
        help="Search a name across TLDs",
    )
    search_parser.add_argument(
        "query",
        help="Name to search, without TLD (e.g., example)",
    )
    search_parser.add_argument(
        "--tlds", "-t",
        help=f"Comma-separated TLDs (default: {','.join(DEFAULT_SEARCH_TLDS)})",
    )
    search_parser.add_argument(
        "--quick", "-q",
        action="store_true",
        help=f"Search only {','.join(QUICK_SEARCH_TLDS)}",
    )
    search_parser.add_argument(
        "--max-price-usd",
        type=float,
        help="Skip candidates above this upstream price",
    )
    search_parser.add_argument(
        "--max-price-tokens",
        type=int,
        help="Skip candidates above this token price",
    )
    search_parser.add_argument(
        "--max-length",
        type=int,
        default=50,
        help="Maximum full domain length (default: 50)",
    )
    search_parser.add_argument(
        "--include-premium",
        action="store_true",
        help="Include premium domains",
    )
    search_parser.add_argument(
        "--include-taken",
        action="store_true",
        help="Include domains that are already registered",
    )
    search_parser.add_argument(
        "--sort-by",
        choices=[value.value for value in SortBy],
        default=SortBy.PRICE.value,
        help="Sort key (default: price)",
    )
    search_parser.add_argument(
        "--sort-order",
        choices=[value.value for value in SortOrder],
        default=SortOrder.ASC.value,
        help="Sort order (default: asc)",
    )
    search_parser.set_defaults(func=cmd_search)

    # 'check' command
    check_parser = subparsers.add_parser(
        "check",
        help="Check a single domain for availability",
    )
    check_parser.add_argument(
        "domain",
        help="Domain to check (e.g., example.com)",
    )
    check_parser.add_argument(
        "--years", "-y",
        type=int,
        default=1,
        help="Registration years for the token quote (default: 1)",
    )
    check_parser.set_defaults(func=cmd_check)

    # 'bulk-check' command
    bulk_parser = subparsers.add_parser(
        "bulk-check",
        help="Check up to 50 domains",
    )
    bulk_parser.add_argument(
        "domains",
        nargs="*",
        help="Domains to check",
    )
    bulk_parser.add_argument(
        "--file", "-f",
        help="Path to file containing domains (one per line)",
    )
    bulk_parser.add_argument(
        "--no-pricing",
        action="store_true",
        help="Skip token price conversion",
    )
    bulk_parser.set_defaults(func=cmd_bulk_check)

    # 'pricing' command
    pricing_parser = subparsers.add_parser(
        "pricing",
        help="Show TLD pricing in USD and platform tokens",
    )
    pricing_parser.add_argument(
        "--tld",
        help="Show a single TLD",
    )
    pricing_parser.set_defaults(func=cmd_pricing)

    # 'dns' command
    dns_parser = subparsers.add_parser(
        "dns",
        help="List or create DNS records",
    )
    dns_parser.add_argument(
        "action",
        choices=["list", "create"],
        help="DNS action",
    )
    dns_parser.add_argument(
        "domain",
        help="Domain in the account",
    )
    dns_parser.add_argument("--type", choices=[value.value for value in DNSRecordType])
    dns_parser.add_argument("--content")
    dns_parser.add_argument("--name", help="Subdomain; empty for the apex")
    dns_parser.add_argument("--ttl", type=int)
    dns_parser.add_argument("--prio", type=int)
    dns_parser.set_defaults(func=cmd_dns)

    # 'ping' command
    ping_parser = subparsers.add_parser(
        "ping",
        help="Verify credentials and connectivity",
    )
    ping_parser.set_defaults(func=cmd_ping)

    # 'config' command
    config_parser = subparsers.add_parser(
        "config",
        help="Configuration management",
    )
    config_parser.add_argument(
        "action",
        choices=["show", "init", "validate"],
        help="Configuration action",
    )
    config_parser.add_argument(
        "--path", "-p",
        help="Path to configuration file",
    )
    config_parser.add_argument(
        "--force", "-f",
        action="store_true",
        help="Force overwrite existing configuration",
    )
    config_parser.set_defaults(func=cmd_config)

    return parser


def main(
    argv: Optional[list[str]] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])
        transport: Optional ``httpx`` transport for upstream requests

    Returns:
        Exit code
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    return args.func(args, transport)


if __name__ == "__main__":
    sys.exit(main())
