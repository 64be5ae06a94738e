"""
USD price stores.

``InMemoryPriceStore`` holds prices set by the caller. ``DefiLlamaPriceStore``
fetches current prices from the DefiLlama coins API and caches them for a
few minutes. Both return ``None`` for an unknown price; that is a normal
answer, not an error.
"""

import threading
import time
from decimal import Decimal
from typing import Callable, Dict, Iterable, Optional, Tuple

import httpx
from eth_utils import to_checksum_address

from vault_apr_toolkit.apr.normalizer import to_decimal
from vault_apr_toolkit.shared.constants import GlobalConstants
from vault_apr_toolkit.shared.logging import get_logger
from vault_apr_toolkit.shared.retry import HTTP_RETRY_CONFIG, RetryConfig
from vault_apr_toolkit.shared.services.http_client import get_client
from vault_apr_toolkit.shared.types import PriceQuote

logger = get_logger(__name__)

DEFILLAMA_CURRENT_PRICES_URL = "https://coins.llama.fi/prices/current/"

# Keep the comma-separated coin list under typical URL limits
MAX_COINS_PER_REQUEST = 25


def _key(chain_id: int, address: str) -> Tuple[int, str]:
    return chain_id, to_checksum_address(address.lower())


class InMemoryPriceStore:
    """Prices set explicitly by the caller."""

    def __init__(self, quotes: Iterable[PriceQuote] = ()):
        self._lock = threading.Lock()
        self._prices: Dict[Tuple[int, str], Decimal] = {}
        for quote in quotes:
            self.set_price(quote.chain_id, quote.address, quote.price)

    def set_price(self, chain_id: int, token_address: str, price: Decimal) -> None:
        price = to_decimal(price)
        if price < 0:
            raise ValueError(f"Negative price for {token_address}: {price}")
        with self._lock:
            self._prices[_key(chain_id, token_address)] = price

    def get_usd_price(
        self, chain_id: int, token_address: str
    ) -> Optional[Decimal]:
        return self._prices.get(_key(chain_id, token_address))


class DefiLlamaPriceStore:
    """
    Current USD prices from DefiLlama with a TTL cache.

    Attributes:
        ttl: Seconds a fetched price stays valid
        retry_config: Backoff for transport errors
    """

    def __init__(
        self,
        ttl: int = GlobalConstants.PRICE_CACHE_TTL,
        client_factory: Callable[[], httpx.Client] = get_client,
        clock: Callable[[], float] = time.time,
        retry_config: RetryConfig = HTTP_RETRY_CONFIG,
    ):
        self.ttl = ttl
        self.retry_config = retry_config
        self._client_factory = client_factory
        self._clock = clock
        self._lock = threading.Lock()
        # key -> (price or None, fetched_at)
        self._cache: Dict[Tuple[int, str], Tuple[Optional[Decimal], float]] = {}

    def _cached(self, key: Tuple[int, str]) -> Tuple[bool, Optional[Decimal]]:
        entry = self._cache.get(key)
        if entry is None:
            return False, None
        price, fetched_at = entry
        if self._clock() - fetched_at >= self.ttl:
            return False, None
        return True, price

    def get_usd_price(
        self, chain_id: int, token_address: str
    ) -> Optional[Decimal]:
        key = _key(chain_id, token_address)
        hit, price = self._cached(key)
        if hit:
            return price

        self.prefetch(chain_id, [token_address])
        return self._cached(key)[1]

    def prefetch(self, chain_id: int, token_addresses: Iterable[str]) -> None:
        """Fetch and cache prices for many tokens in as few requests as possible."""
        network = GlobalConstants.chains_ids_to_name.get(chain_id)
        if network is None:
            logger.warning(f"No DefiLlama network for chain {chain_id}")
            return

        addresses = []
        for address in token_addresses:
            key = _key(chain_id, address)
            if not self._cached(key)[0] and key[1] not in addresses:
                addresses.append(key[1])

        for start in range(0, len(addresses), MAX_COINS_PER_REQUEST):
            batch = addresses[start : start + MAX_COINS_PER_REQUEST]
            self._fetch_batch(chain_id, network, batch)

    def _fetch_batch(self, chain_id: int, network: str, addresses: list) -> None:
        coins = ",".join(f"{network}:{address}" for address in addresses)
        fetched_at = self._clock()

        try:
            response = self.retry_config.run(
                self._client_factory().get, DEFILLAMA_CURRENT_PRICES_URL + coins
            )
            response.raise_for_status()
            payload = response.json(parse_float=Decimal)
        except (httpx.HTTPError, ValueError) as e:
            # Not cached, so the next lookup retries
            logger.warning(f"Error fetching prices from DefiLlama: {e}")
            return

        prices = {
            coin.lower(): info
            for coin, info in (payload.get("coins") or {}).items()
        }
        with self._lock:
            for address in addresses:
                price_info = prices.get(f"{network}:{address}".lower())
                price = None
                if price_info and "price" in price_info:
                    price = Decimal(price_info["price"])
                self._cache[(chain_id, address)] = (price, fetched_at)
