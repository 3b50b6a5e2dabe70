"""
TLD popularity ranking and default TLD sets for domain search.

The ranking drives the ``popularity`` sort and is reported alongside platform
pricing. TLDs not listed rank after every listed one.
"""

UNRANKED = 999

TLD_POPULARITY = {
    "com": 1,
    "org": 2,
    "net": 3,
    "edu": 4,
    "gov": 5,
    "io": 6,
    "app": 7,
    "dev": 8,
    "tech": 9,
    "ai": 10,
    "me": 11,
    "co": 12,
    "biz": 13,
    "info": 14,
    "name": 15,
    "pro": 16,
    "mobi": 17,
    "travel": 18,
    "jobs": 19,
    "tel": 20,
}

DEFAULT_SEARCH_TLDS = ("com", "net", "org", "io", "app", "dev")

# Smaller set used for quick suggestions
QUICK_SEARCH_TLDS = ("com", "net", "org", "io", "app")


def normalize_tld(tld: str) -> str:
    """Lowercase and strip a leading dot: '.COM' -> 'com'."""
    return tld.strip().lstrip(".").lower()


def popularity_rank(tld: str) -> int:
    return TLD_POPULARITY.get(normalize_tld(tld), UNRANKED)
