"""Conversion of raw token amounts to human-scale decimals."""

from decimal import Decimal, localcontext
from typing import Union

from vault_apr_toolkit.shared.constants import AprConstants

Number = Union[Decimal, int, float, str]


def to_decimal(value: Number) -> Decimal:
    """Decimal of a number or numeric string; floats go through ``str``."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def to_normalized_amount(raw_amount: int, decimals: int) -> Decimal:
    """
    Scale a raw integer amount down by ``10**decimals``.

    The result is exact: the integer is converted to a Decimal with enough
    precision for any uint256 and shifted by ``scaleb``, never through a
    float.

    Args:
        raw_amount: Amount in the token's smallest unit
        decimals: Token decimals

    Returns:
        Decimal amount in whole tokens

    Example:
        >>> to_normalized_amount(1_500_000, 6)
        Decimal('1.500000')
    """
    if isinstance(raw_amount, bool) or not isinstance(raw_amount, int):
        raise ValueError(f"Raw amount must be an integer, got {raw_amount!r}")
    if raw_amount < 0:
        raise ValueError(f"Raw amount must be non-negative, got {raw_amount}")
    if isinstance(decimals, bool) or not isinstance(decimals, int):
        raise ValueError(f"Decimals must be an integer, got {decimals!r}")
    if decimals < 0:
        raise ValueError(f"Decimals must be non-negative, got {decimals}")

    with localcontext() as ctx:
        ctx.prec = AprConstants.DECIMAL_PRECISION
        return Decimal(raw_amount).scaleb(-decimals)
