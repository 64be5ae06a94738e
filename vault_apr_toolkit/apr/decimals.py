"""
Token decimals resolution with an on-chain fallback.

Lookup order: metadata store, then ``decimals()`` read from the chain, then
the conventional 18 when that read fails. Only reward tokens go through
this path; vault-token decimals must be in the metadata store.
"""

from dataclasses import dataclass
from typing import Optional

from vault_apr_toolkit.shared.constants import AprConstants
from vault_apr_toolkit.shared.exceptions import ChainReadError
from vault_apr_toolkit.shared.logging import get_logger
from vault_apr_toolkit.shared.types import ChainReader, MetadataStore

logger = get_logger(__name__)


@dataclass(frozen=True)
class ResolvedDecimals:
    """Decimals plus where they came from."""

    decimals: int
    source: str  # "metadata", "chain" or "default"
    error: Optional[ChainReadError] = None

    @property
    def is_fallback(self) -> bool:
        return self.source == "default"


class DecimalsResolver:
    """
    Resolve a token's decimals: metadata store, then chain, then default.

    Attributes:
        metadata_store: Cached token metadata lookup
        chain_reader: Live on-chain reader used on a cache miss
        default_decimals: Value used when the live read fails
    """

    def __init__(
        self,
        metadata_store: MetadataStore,
        chain_reader: ChainReader,
        default_decimals: int = AprConstants.DEFAULT_TOKEN_DECIMALS,
    ):
        self.metadata_store = metadata_store
        self.chain_reader = chain_reader
        self.default_decimals = default_decimals

    def resolve(self, chain_id: int, token_address: str) -> int:
        """Return the decimals for ``token_address``; never raises ChainReadError."""
        return self.resolve_with_source(chain_id, token_address).decimals

    def resolve_with_source(
        self, chain_id: int, token_address: str
    ) -> ResolvedDecimals:
        cached = self.metadata_store.get_token_decimals(chain_id, token_address)
        if cached is not None:
            return ResolvedDecimals(decimals=cached, source="metadata")

        try:
            decimals = self.chain_reader.read_decimals(chain_id, token_address)
        except ChainReadError as e:
            logger.warning(
                f"Failed to retrieve decimals for {token_address} on chain "
                f"{chain_id}: {e.message}. Using {self.default_decimals}"
            )
            return ResolvedDecimals(
                decimals=self.default_decimals, source="default", error=e
            )

        return ResolvedDecimals(decimals=decimals, source="chain")
