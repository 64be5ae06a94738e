"""In-memory token metadata store."""

import threading
from typing import Dict, Iterable, Optional, Tuple

from eth_utils import to_checksum_address

from vault_apr_toolkit.shared.types import TokenMetadata


class InMemoryMetadataStore:
    """
    Token decimals keyed by chain and address.

    Decimals never change for a deployed token, so registering a different
    value for a known token is refused.
    """

    def __init__(self, tokens: Iterable[TokenMetadata] = ()):
        self._lock = threading.Lock()
        self._decimals: Dict[Tuple[int, str], int] = {}
        for token in tokens:
            self.set_token_decimals(token.chain_id, token.address, token.decimals)

    def set_token_decimals(
        self, chain_id: int, token_address: str, decimals: int
    ) -> None:
        if not 0 <= decimals <= 255:
            raise ValueError(f"Decimals out of range for {token_address}: {decimals}")

        key = (chain_id, to_checksum_address(token_address.lower()))
        with self._lock:
            known = self._decimals.get(key)
            if known is not None and known != decimals:
                raise ValueError(
                    f"Decimals of {token_address} on chain {chain_id} already "
                    f"set to {known}, refusing {decimals}"
                )
            self._decimals[key] = decimals

    def get_token_decimals(
        self, chain_id: int, token_address: str
    ) -> Optional[int]:
        return self._decimals.get(
            (chain_id, to_checksum_address(token_address.lower()))
        )
