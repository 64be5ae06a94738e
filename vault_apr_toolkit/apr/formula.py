"""
Staking rewards APR formula.

    per_staking_token_rate = reward_rate / total_supply
    apr = SECONDS_PER_YEAR * per_staking_token_rate * rewards_price / vault_price

All inputs are already normalized (whole tokens, humanized USD prices).
The result is a fraction: 0.05 is 5%.
"""

from decimal import Decimal, DivisionByZero, InvalidOperation, localcontext

from vault_apr_toolkit.apr.normalizer import Number, to_decimal
from vault_apr_toolkit.shared.constants import AprConstants

SECONDS_PER_YEAR = Decimal(AprConstants.SECONDS_PER_YEAR)


def per_staking_token_rate(reward_rate: Number, total_supply: Number) -> Decimal:
    """Reward tokens emitted per second for each staked vault token."""
    with localcontext() as ctx:
        ctx.prec = AprConstants.DECIMAL_PRECISION
        ctx.traps[DivisionByZero] = False
        ctx.traps[InvalidOperation] = False
        return to_decimal(reward_rate) / to_decimal(total_supply)


def compute_staking_apr(
    reward_rate: Number,
    total_supply: Number,
    rewards_price: Number,
    vault_price: Number,
) -> Decimal:
    """
    Annualize a per-second reward emission into an APR.

    Multiplications are done first and both divisions last. A zero
    ``vault_price`` is not guarded: the result is ``Decimal('Infinity')``,
    or ``Decimal('NaN')`` when the numerator is zero as well.

    Args:
        reward_rate: Reward tokens emitted per second (normalized)
        total_supply: Vault tokens staked (normalized)
        rewards_price: USD price of the reward token
        vault_price: USD price of the vault token

    Returns:
        APR as a decimal fraction

    Example:
        >>> compute_staking_apr(Decimal(1), Decimal(1000), Decimal(2), Decimal(10))
        Decimal('6311.3904')
    """
    with localcontext() as ctx:
        ctx.prec = AprConstants.DECIMAL_PRECISION
        ctx.traps[DivisionByZero] = False
        ctx.traps[InvalidOperation] = False

        numerator = (
            SECONDS_PER_YEAR
            * to_decimal(reward_rate)
            * to_decimal(rewards_price)
        )
        return numerator / to_decimal(total_supply) / to_decimal(vault_price)
