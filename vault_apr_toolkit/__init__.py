"""Vault APR Toolkit - staking rewards APR for yield vaults."""

__version__ = "0.3.0"

from .apr import StakingAprService, compute_staking_apr, to_normalized_amount
from .shared.types import Vault

__all__ = [
    "StakingAprService",
    "Vault",
    "compute_staking_apr",
    "to_normalized_amount",
]
