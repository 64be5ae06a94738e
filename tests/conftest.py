"""
Pytest configuration and shared fixtures.

This module provides fakes for the collaborators of the APR pipeline and
the sample staking pool used across tests.
"""

from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pytest
from eth_utils import to_checksum_address

from vault_apr_toolkit.apr.staking import StakingAprService
from vault_apr_toolkit.shared.constants import AprConstants
from vault_apr_toolkit.shared.exceptions import ChainReadError
from vault_apr_toolkit.shared.types import StakingPool, Vault
from vault_apr_toolkit.stores.metadata import InMemoryMetadataStore
from vault_apr_toolkit.stores.prices import InMemoryPriceStore
from vault_apr_toolkit.stores.registry import InMemoryStakingRegistry

NOW = 1764806400
CHAIN_ID = 10

VAULT_ADDRESS = to_checksum_address(
    "0x7e1444ba99dcdffe8fbdb42c02fb0da4aaace4d5"
)
POOL_ADDRESS = to_checksum_address(
    "0x000000073d065fc33a3050c2d4a8e82ee5c5c25a"
)
REWARDS_TOKEN = to_checksum_address(
    "0xd533a949740bb3306d119cc777fa900ba034cd52"
)
OTHER_VAULT = to_checksum_address(
    "0x52f541764e6e90eebc5c21ff570de0e2d63766b6"
)


class FakeChainReader:
    """In-memory ChainReader recording every call it receives."""

    def __init__(
        self,
        state: Optional[Dict[Tuple[str, str], Any]] = None,
        decimals: Optional[Dict[str, int]] = None,
        fail_decimals: bool = False,
    ):
        self.state = state or {}
        self.decimals = decimals or {}
        self.fail_decimals = fail_decimals
        self.batch_calls: List[Sequence[Tuple[str, str]]] = []
        self.decimals_calls: List[str] = []

    def batch_read(self, chain_id, calls):
        self.batch_calls.append(list(calls))
        return {call: self.state[call] for call in calls if call in self.state}

    def read_decimals(self, chain_id, token_address):
        self.decimals_calls.append(token_address)
        if self.fail_decimals or token_address not in self.decimals:
            raise ChainReadError(
                f"decimals() reverted for {token_address}",
                chain_id=chain_id,
                target=token_address,
            )
        return self.decimals[token_address]


def pool_state(
    period_finish: int = NOW + 1_000_000,
    reward_rate: int = 10**18,
    total_supply: int = 1000 * 10**18,
    rewards_token: str = REWARDS_TOKEN,
    pool: str = POOL_ADDRESS,
) -> Dict[Tuple[str, str], Any]:
    """Batched-read response of a staking pool."""
    return {
        (pool, AprConstants.PERIOD_FINISH): period_finish,
        (pool, AprConstants.REWARD_RATE): reward_rate,
        (pool, AprConstants.TOTAL_SUPPLY): total_supply,
        (pool, AprConstants.REWARDS_TOKEN): rewards_token,
    }


@pytest.fixture
def vault() -> Vault:
    """Sample vault with an 18 decimals token."""
    return Vault(chain_id=CHAIN_ID, address=VAULT_ADDRESS, token_decimals=18)


@pytest.fixture
def registry() -> InMemoryStakingRegistry:
    return InMemoryStakingRegistry(
        [
            StakingPool(
                chain_id=CHAIN_ID,
                vault_address=VAULT_ADDRESS,
                pool_address=POOL_ADDRESS,
            )
        ]
    )


@pytest.fixture
def metadata_store() -> InMemoryMetadataStore:
    store = InMemoryMetadataStore()
    store.set_token_decimals(CHAIN_ID, VAULT_ADDRESS, 18)
    store.set_token_decimals(CHAIN_ID, REWARDS_TOKEN, 18)
    return store


@pytest.fixture
def price_store() -> InMemoryPriceStore:
    store = InMemoryPriceStore()
    store.set_price(CHAIN_ID, REWARDS_TOKEN, Decimal("2.0"))
    store.set_price(CHAIN_ID, VAULT_ADDRESS, Decimal("10.0"))
    return store


@pytest.fixture
def chain_reader() -> FakeChainReader:
    return FakeChainReader(state=pool_state())


@pytest.fixture
def service(registry, chain_reader, metadata_store, price_store):
    """StakingAprService wired to fakes with a frozen clock."""
    return StakingAprService(
        registry=registry,
        chain_reader=chain_reader,
        metadata_store=metadata_store,
        price_store=price_store,
        clock=lambda: NOW,
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test"
    )
