"""
Staking registry: which staking rewards pool belongs to which vault.

The registry document is JSON keyed by chain ID:

    {
        "10": [
            {"vault": "0x...", "stakingPool": "0x..."}
        ]
    }

It can be loaded from a local file or fetched over HTTP.
"""

import json
import threading
from pathlib import Path
from typing import Dict, Iterable, Optional, Tuple

import httpx
from eth_utils import is_address, to_checksum_address

from vault_apr_toolkit.shared.constants import GlobalConstants
from vault_apr_toolkit.shared.exceptions import ConfigurationException
from vault_apr_toolkit.shared.logging import get_logger
from vault_apr_toolkit.shared.retry import HTTP_RETRY_CONFIG
from vault_apr_toolkit.shared.services.http_client import get_client
from vault_apr_toolkit.shared.types import StakingPool, StakingRegistryDocument

logger = get_logger(__name__)


def _key(chain_id: int, address: str) -> Tuple[int, str]:
    return chain_id, to_checksum_address(address.lower())


class InMemoryStakingRegistry:
    """Vault -> staking pool lookup held in memory."""

    def __init__(self, pools: Iterable[StakingPool] = ()):
        self._lock = threading.Lock()
        self._pools: Dict[Tuple[int, str], StakingPool] = {}
        for pool in pools:
            self.register(pool)

    def register(self, pool: StakingPool) -> None:
        with self._lock:
            self._pools[_key(pool.chain_id, pool.vault_address)] = pool

    def lookup(self, chain_id: int, vault_address: str) -> Optional[StakingPool]:
        return self._pools.get(_key(chain_id, vault_address))

    def pools(self, chain_id: Optional[int] = None) -> Iterable[StakingPool]:
        """All registered pools, optionally for one chain."""
        return [
            pool
            for (pool_chain, _), pool in self._pools.items()
            if chain_id is None or pool_chain == chain_id
        ]

    def __len__(self) -> int:
        return len(self._pools)


def parse_staking_registry(
    document: StakingRegistryDocument,
) -> InMemoryStakingRegistry:
    """Build a registry from a decoded registry document."""
    if not isinstance(document, dict):
        raise ConfigurationException("Staking registry must be a JSON object")

    registry = InMemoryStakingRegistry()
    for chain_key, entries in document.items():
        try:
            chain_id = int(chain_key)
        except ValueError:
            raise ConfigurationException(
                f"Invalid chain ID in staking registry: {chain_key}"
            )

        for entry in entries:
            vault = entry.get("vault")
            pool = entry.get("stakingPool")
            if not (is_address(vault) and is_address(pool)):
                raise ConfigurationException(
                    f"Invalid staking registry entry on chain {chain_id}: {entry}"
                )
            registry.register(
                StakingPool(
                    chain_id=chain_id,
                    vault_address=to_checksum_address(vault),
                    pool_address=to_checksum_address(pool),
                )
            )

    return registry


def load_staking_registry(
    source: Optional[str] = None,
) -> InMemoryStakingRegistry:
    """
    Load the staking registry from a file path or an http(s) URL.

    Args:
        source: Path or URL; defaults to VAULT_APR_STAKING_REGISTRY_URL

    Raises:
        ConfigurationException: no source, unreadable or invalid document
    """
    source = source or GlobalConstants.STAKING_REGISTRY_URL
    if not source:
        raise ConfigurationException(
            "No staking registry source given and "
            "VAULT_APR_STAKING_REGISTRY_URL is not set"
        )

    if source.startswith(("http://", "https://")):
        try:
            response = HTTP_RETRY_CONFIG.run(get_client().get, source)
            response.raise_for_status()
            document = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise ConfigurationException(
                f"Could not fetch staking registry from {source}: {e}"
            ) from e
    else:
        path = Path(source)
        if not path.exists():
            raise ConfigurationException(f"Staking registry not found: {path}")
        try:
            with open(path, "r") as f:
                document = json.load(f)
        except ValueError as e:
            raise ConfigurationException(
                f"Invalid staking registry JSON in {path}: {e}"
            ) from e

    registry = parse_staking_registry(document)
    logger.info(f"Loaded {len(registry)} staking pools from {source}")
    return registry
