"""Tests for the bloom membership filter."""

import math

import pytest

from src.domain.services.membership.membership_filter import MembershipFilter


class TestMembershipFilterSizing:
    def test_sizes_bits_and_hashes_from_capacity_and_rate(self):
        membership = MembershipFilter(expected_elements=1000, false_positive_rate=0.01)

        expected_bits = math.ceil(-1000 * math.log(0.01) / (math.log(2) ** 2))
        assert membership.size == expected_bits
        assert membership.hash_count == math.ceil((expected_bits / 1000) * math.log(2))
        assert membership.stats()["memory_usage_bytes"] == (expected_bits + 7) // 8

    @pytest.mark.parametrize(
        "expected_elements, rate",
        [(0, 0.01), (-5, 0.01), (100, 0.0), (100, 1.0), (100, 1.5)],
    )
    def test_rejects_invalid_parameters(self, expected_elements, rate):
        with pytest.raises(ValueError):
            MembershipFilter(expected_elements, rate)


class TestMembershipFilterQueries:
    def test_empty_filter_answers_false(self):
        membership = MembershipFilter(1000, 0.01)

        assert membership.might_exist("nobody@example.com") is False
        assert membership.false_positive_probability() == 0.0

    def test_no_false_negatives(self):
        membership = MembershipFilter(5000, 0.001)
        addresses = [f"user{i}@example.com" for i in range(5000)]
        for address in addresses:
            membership.add(address)

        assert all(membership.might_exist(address) for address in addresses)

    def test_keys_are_normalized(self):
        membership = MembershipFilter(1000, 0.01)
        membership.add("  Alice@Example.COM ")

        assert membership.might_exist("alice@example.com")
        assert membership.might_exist("ALICE@EXAMPLE.COM")

    def test_adding_twice_is_harmless(self):
        membership = MembershipFilter(1000, 0.01)
        membership.add("bob@example.com")
        membership.add("bob@example.com")

        assert membership.might_exist("bob@example.com")
        assert membership.element_count == 2

    def test_clear_resets_bits_and_count(self):
        membership = MembershipFilter(1000, 0.01)
        membership.add("carol@example.com")

        membership.clear()

        assert membership.might_exist("carol@example.com") is False
        assert membership.element_count == 0

    @pytest.mark.slow
    def test_false_positive_rate_stays_near_target(self):
        membership = MembershipFilter(expected_elements=10_000, false_positive_rate=0.01)
        for i in range(10_000):
            membership.add(f"member{i}@example.com")

        samples = 20_000
        false_positives = sum(
            membership.might_exist(f"outsider{i}@example.org") for i in range(samples)
        )

        assert false_positives / samples < 0.02
        assert membership.false_positive_probability() == pytest.approx(0.01, rel=0.5)

    def test_stats_report_current_load(self):
        membership = MembershipFilter(1000, 0.01)
        membership.add("dave@example.com")

        stats = membership.stats()

        assert stats["element_count"] == 1
        assert stats["hash_count"] == membership.hash_count
        assert stats["size"] == membership.size
        assert 0.0 < stats["false_positive_rate"] < 0.01
