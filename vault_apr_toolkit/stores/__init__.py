"""Default registry, metadata and price stores."""

from .metadata import InMemoryMetadataStore
from .prices import DefiLlamaPriceStore, InMemoryPriceStore
from .registry import InMemoryStakingRegistry, load_staking_registry

__all__ = [
    "DefiLlamaPriceStore",
    "InMemoryMetadataStore",
    "InMemoryPriceStore",
    "InMemoryStakingRegistry",
    "load_staking_registry",
]
