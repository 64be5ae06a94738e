"""
Shared type definitions used across the Vault APR toolkit.

Snapshots (vaults, staking campaigns, token metadata, prices) are frozen
dataclasses; the collaborators the APR pipeline consumes are Protocols so
any object with the right methods can be injected.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import (
    Any,
    Dict,
    Mapping,
    Optional,
    Protocol,
    Sequence,
    Tuple,
    TypedDict,
)

# (target address, method name) pair submitted to a batched read
CallKey = Tuple[str, str]

# =============================================================================
# SNAPSHOTS
# =============================================================================


@dataclass(frozen=True)
class Vault:
    """Caller supplied vault record. Read-only to the APR pipeline."""

    chain_id: int
    address: str
    token_decimals: Optional[int] = None


@dataclass(frozen=True)
class StakingPool:
    """Staking rewards pool registered for a vault."""

    chain_id: int
    vault_address: str
    pool_address: str


@dataclass(frozen=True)
class StakingCampaign:
    """On-chain state of a staking rewards pool.

    All raw quantities are integers in base units and may exceed 64 bits.
    """

    pool_address: str
    rewards_token: str
    period_finish: int  # Unix timestamp, seconds
    reward_rate: int  # Reward-token base units per second
    total_supply: int  # Vault-token base units staked


@dataclass(frozen=True)
class TokenMetadata:
    """Token decimals, immutable once known for an address on a chain."""

    chain_id: int
    address: str
    decimals: int


@dataclass(frozen=True)
class PriceQuote:
    """Humanized USD price of a token."""

    chain_id: int
    address: str
    price: Decimal


@dataclass(frozen=True)
class StakingAprBreakdown:
    """Every intermediate value that went into a staking APR."""

    chain_id: int
    vault: str
    pool: str
    rewards_token: str
    period_finish: int
    reward_rate_raw: int
    total_supply_raw: int
    rewards_token_decimals: int
    vault_token_decimals: int
    reward_rate: Decimal
    total_supply: Decimal
    per_staking_token_rate: Decimal
    rewards_price: Decimal
    vault_price: Decimal
    apr: Decimal


class StakingRegistryEntry(TypedDict):
    """One entry of a staking registry JSON document."""

    vault: str
    stakingPool: str


# =============================================================================
# COLLABORATORS
# =============================================================================


class StakingRegistry(Protocol):
    """Maps a vault to its staking rewards pool."""

    def lookup(self, chain_id: int, vault_address: str) -> Optional[StakingPool]:
        ...


class ChainReader(Protocol):
    """Reads contract state from a chain."""

    def batch_read(
        self, chain_id: int, calls: Sequence[CallKey]
    ) -> Mapping[CallKey, Any]:
        """Resolve many (target, method) reads in one round trip."""
        ...

    def read_decimals(self, chain_id: int, token_address: str) -> int:
        """Read ERC20 decimals, raising ChainReadError on failure."""
        ...


class MetadataStore(Protocol):
    """Cached token metadata."""

    def get_token_decimals(
        self, chain_id: int, token_address: str
    ) -> Optional[int]:
        ...


class PriceStore(Protocol):
    """Humanized USD prices."""

    def get_usd_price(
        self, chain_id: int, token_address: str
    ) -> Optional[Decimal]:
        ...


# Chain ID -> list of registry entries
StakingRegistryDocument = Dict[str, Sequence[StakingRegistryEntry]]
