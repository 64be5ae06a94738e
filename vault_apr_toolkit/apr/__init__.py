"""Staking rewards APR pipeline."""

from .decimals import DecimalsResolver
from .formula import SECONDS_PER_YEAR, compute_staking_apr, per_staking_token_rate
from .guard import GuardVerdict, StopReason, check_campaign
from .normalizer import to_decimal, to_normalized_amount
from .staking import StakingAprService

__all__ = [
    "DecimalsResolver",
    "GuardVerdict",
    "SECONDS_PER_YEAR",
    "StakingAprService",
    "StopReason",
    "check_campaign",
    "compute_staking_apr",
    "per_staking_token_rate",
    "to_decimal",
    "to_normalized_amount",
]
