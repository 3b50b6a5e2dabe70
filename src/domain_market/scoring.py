"""
Name heuristics and ordering for search candidates.

Both scores are deterministic integers in [0, 100]:

readability starts at 100 and loses 2 points per character beyond 10, 10 for
any digit, 5 for any hyphen and 5 for any of the hard-to-pronounce letters.

brandability starts at 50, gains 20 for names of at most 6 characters (10 for
at most 8), gains 15 when vowels make up 30% to 60% of the name, and loses 20
for any digit and 15 for any hyphen.
"""

import re
from typing import Callable, Iterable

from .enums import SortBy, SortOrder
from .models import DomainCandidate
from .tld_registry import popularity_rank

HARD_TO_PRONOUNCE = frozenset("qxz")
VOWELS = frozenset("aeiou")
_DIGIT = re.compile(r"\d")


def _clamp(score: int) -> int:
    return max(0, min(100, score))


def contains_digits(name: str) -> bool:
    return bool(_DIGIT.search(name))


def contains_hyphens(name: str) -> bool:
    return "-" in name


def readability_score(name: str) -> int:
    score = 100
    if len(name) > 10:
        score -= (len(name) - 10) * 2
    if contains_digits(name):
        score -= 10
    if contains_hyphens(name):
        score -= 5
    if HARD_TO_PRONOUNCE.intersection(name.lower()):
        score -= 5
    return _clamp(score)


def brandability_score(name: str) -> int:
    score = 50
    if len(name) <= 6:
        score += 20
    elif len(name) <= 8:
        score += 10

    if name:
        vowel_ratio = sum(1 for c in name.lower() if c in VOWELS) / len(name)
        if 0.3 <= vowel_ratio <= 0.6:
            score += 15

    if contains_digits(name):
        score -= 20
    if contains_hyphens(name):
        score -= 15
    return _clamp(score)


_SORT_KEYS: dict[SortBy, Callable[[DomainCandidate], int]] = {
    SortBy.PRICE: lambda c: c.pricing.tokens,
    SortBy.LENGTH: lambda c: len(c.domain),
    SortBy.BRANDABILITY: lambda c: c.metadata.brandability_score,
    SortBy.POPULARITY: lambda c: popularity_rank(c.tld),
}


def sort_candidates(
    candidates: Iterable[DomainCandidate],
    sort_by: SortBy,
    sort_order: SortOrder,
) -> list[DomainCandidate]:
    """
    Order candidates by the given key and direction.

    Ties always fall back to ascending domain name, whatever the direction.
    """
    by_name = sorted(candidates, key=lambda c: c.domain)
    # list.sort is stable with reverse=True too, so equal keys keep name order
    return sorted(
        by_name,
        key=_SORT_KEYS[SortBy(sort_by)],
        reverse=SortOrder(sort_order) is SortOrder.DESC,
    )
