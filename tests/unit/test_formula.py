"""
Unit tests for the staking APR formula.
"""

from decimal import Decimal

import pytest

from vault_apr_toolkit.apr.formula import (
    SECONDS_PER_YEAR,
    compute_staking_apr,
    per_staking_token_rate,
)


class TestPerStakingTokenRate:
    """Tests for per_staking_token_rate."""

    def test_rate_per_token(self):
        assert per_staking_token_rate(Decimal(1), Decimal(1000)) == Decimal(
            "0.001"
        )

    def test_zero_supply_is_not_trapped(self):
        """Division by zero yields Infinity instead of raising."""
        assert per_staking_token_rate(Decimal(1), Decimal(0)).is_infinite()


class TestComputeStakingApr:
    """Tests for compute_staking_apr."""

    def test_seconds_per_year(self):
        """365.2425 days."""
        assert SECONDS_PER_YEAR == Decimal(31_556_952)
        assert SECONDS_PER_YEAR == Decimal("365.2425") * 86400

    def test_reference_scenario(self):
        """1 token/s over 1000 staked, reward $2, vault $10."""
        apr = compute_staking_apr(
            Decimal("1.0"), Decimal("1000.0"), Decimal("2.0"), Decimal("10.0")
        )

        assert apr == Decimal("6311.3904")

    def test_accepts_ints_and_strings(self):
        assert compute_staking_apr(1, "1000", 2, "10") == Decimal("6311.3904")

    def test_float_prices_use_shortest_repr(self):
        """0.1 is read as 0.1, not as its binary expansion."""
        apr = compute_staking_apr(Decimal(1), Decimal(1), 0.1, 1)

        assert apr == SECONDS_PER_YEAR * Decimal("0.1")

    @pytest.mark.parametrize("factor", [2, 3, 10])
    def test_linear_in_reward_rate(self, factor):
        base = compute_staking_apr(Decimal(1), Decimal(1000), 2, 10)
        scaled = compute_staking_apr(Decimal(factor), Decimal(1000), 2, 10)

        assert scaled == base * factor

    @pytest.mark.parametrize("factor", [2, 4, 5])
    def test_inverse_in_total_supply(self, factor):
        base = compute_staking_apr(Decimal(1), Decimal(1000), 2, 10)
        scaled = compute_staking_apr(Decimal(1), Decimal(1000 * factor), 2, 10)

        assert scaled == base / factor

    def test_linear_in_rewards_price(self):
        base = compute_staking_apr(Decimal(1), Decimal(1000), 2, 10)

        assert compute_staking_apr(Decimal(1), Decimal(1000), 6, 10) == base * 3

    def test_inverse_in_vault_price(self):
        base = compute_staking_apr(Decimal(1), Decimal(1000), 2, 10)

        assert compute_staking_apr(Decimal(1), Decimal(1000), 2, 20) == base / 2

    def test_zero_rewards_price_gives_zero(self):
        assert compute_staking_apr(Decimal(1), Decimal(1000), 0, 10) == 0

    def test_zero_vault_price_is_infinite(self):
        """An unknown vault price propagates as Infinity, not as 0."""
        apr = compute_staking_apr(Decimal(1), Decimal(1000), 2, 0)

        assert apr.is_infinite()
        assert apr > 0

    def test_zero_vault_and_rewards_price_is_nan(self):
        apr = compute_staking_apr(Decimal(1), Decimal(1000), 0, 0)

        assert apr.is_nan()

    def test_large_values_keep_precision(self):
        """No float rounding with huge emissions and tiny supplies."""
        reward_rate = Decimal(10**40)
        total_supply = Decimal("1E-18")

        apr = compute_staking_apr(reward_rate, total_supply, 1, 1)

        assert apr == SECONDS_PER_YEAR * Decimal(10**58)
