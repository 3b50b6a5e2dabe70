"""
Property-based tests for name scoring and candidate ordering.
"""

from hypothesis import given, settings
from hypothesis import strategies as st

from domain_market.enums import Availability, SortBy, SortOrder
from domain_market.models import CandidateMetadata, CandidatePricing, DomainCandidate
from domain_market.scoring import (
    brandability_score,
    contains_digits,
    contains_hyphens,
    readability_score,
    sort_candidates,
)

name_strategy = st.text(alphabet="abcdefghijklmnopqrstuvwxyz0123456789-", min_size=1, max_size=63)


def candidate(domain: str, tokens: int = 100, brandability: int = 50) -> DomainCandidate:
    label, _, tld = domain.partition(".")
    return DomainCandidate(
        domain=domain,
        tld=tld,
        availability=Availability.AVAILABLE,
        pricing=CandidatePricing(usd=tokens / 44, tokens=tokens, platform_fee=tokens // 11, is_premium=False),
        metadata=CandidateMetadata(
            length=len(domain),
            contains_digits=contains_digits(label),
            contains_hyphens=contains_hyphens(label),
            readability_score=readability_score(label),
            brandability_score=brandability,
        ),
    )


class TestScoreProperty:
    """Scores are deterministic integers within 0..100."""

    @given(name=name_strategy)
    @settings(max_examples=200)
    def test_scores_are_bounded_and_deterministic(self, name: str) -> None:
        assert 0 <= readability_score(name) <= 100
        assert 0 <= brandability_score(name) <= 100
        assert readability_score(name) == readability_score(name)
        assert brandability_score(name) == brandability_score(name)

    def test_digits_and_hyphens_hurt_readability(self) -> None:
        assert readability_score("my-domain123") < readability_score("mydomain")

    def test_reference_scores(self) -> None:
        assert readability_score("mydomain") == 100
        # 12 characters, digit, hyphen
        assert readability_score("my-domain123") == 100 - 4 - 10 - 5
        assert readability_score("quiz") == 95

        # 8 characters, vowel ratio 3/8
        assert brandability_score("mydomain") == 50 + 10 + 15
        assert brandability_score("abc") == 50 + 20 + 15
        assert brandability_score("x1-y") == 50 + 20 - 20 - 15

    def test_empty_name_does_not_fail(self) -> None:
        assert brandability_score("") == 70
        assert readability_score("") == 100

    @given(name=st.text(alphabet="abcdefghijklmnopqrstuvwxyz", min_size=1, max_size=40))
    @settings(max_examples=100)
    def test_adding_a_digit_never_helps(self, name: str) -> None:
        assert readability_score(name + "1") <= readability_score(name)
        assert brandability_score(name + "1") <= brandability_score(name)


class TestSortProperty:
    """Candidates are ordered by key with name order breaking ties."""

    def test_ties_fall_back_to_name(self) -> None:
        candidates = [candidate("b.com", 100), candidate("a.com", 100), candidate("c.com", 50)]

        ordered = sort_candidates(candidates, SortBy.PRICE, SortOrder.ASC)

        assert [c.domain for c in ordered] == ["c.com", "a.com", "b.com"]

    def test_ties_fall_back_to_name_when_descending(self) -> None:
        candidates = [candidate("b.com", 100), candidate("a.com", 100), candidate("c.com", 50)]

        ordered = sort_candidates(candidates, SortBy.PRICE, SortOrder.DESC)

        assert [c.domain for c in ordered] == ["a.com", "b.com", "c.com"]

    def test_popularity_uses_tld_rank(self) -> None:
        candidates = [candidate("x.xyz"), candidate("x.io"), candidate("x.com"), candidate("x.net")]

        ordered = sort_candidates(candidates, SortBy.POPULARITY, SortOrder.ASC)

        assert [c.domain for c in ordered] == ["x.com", "x.net", "x.io", "x.xyz"]

    def test_brandability_descending(self) -> None:
        candidates = [candidate("a.com", brandability=40), candidate("b.com", brandability=90)]

        ordered = sort_candidates(candidates, SortBy.BRANDABILITY, "desc")

        assert [c.domain for c in ordered] == ["b.com", "a.com"]

    @given(
        prices=st.lists(st.integers(min_value=0, max_value=5), min_size=0, max_size=12),
        order=st.sampled_from(list(SortOrder)),
    )
    @settings(max_examples=100)
    def test_sort_is_total_and_deterministic(self, prices: list[int], order: SortOrder) -> None:
        """
        *For any* candidate list, sorting SHALL order by the key in the given
        direction and break ties by ascending domain name.
        """
        candidates = [candidate(f"name{i:02d}.com", price) for i, price in enumerate(prices)]

        ordered = sort_candidates(candidates, SortBy.PRICE, order)
        again = sort_candidates(list(reversed(candidates)), SortBy.PRICE, order)

        assert [c.domain for c in ordered] == [c.domain for c in again]
        for first, second in zip(ordered, ordered[1:]):
            if first.pricing.tokens == second.pricing.tokens:
                assert first.domain < second.domain
            elif order is SortOrder.ASC:
                assert first.pricing.tokens < second.pricing.tokens
            else:
                assert first.pricing.tokens > second.pricing.tokens
