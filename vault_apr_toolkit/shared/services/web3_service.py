"""
Web3 Service module for interacting with EVM chains.

Holds one Web3 connection per chain and caches contract instances built
from the ABIs bundled with the toolkit.
"""

import threading
from typing import Any, Dict

from web3 import Web3

from vault_apr_toolkit.shared.constants import GlobalConstants
from vault_apr_toolkit.shared.services.resource_manager import (
    resource_manager,
)


class Web3Service:
    """
    A service class for managing Web3 connections and interactions.

    One instance per chain, obtained through ``get_instance``.
    """

    _instances: Dict[int, "Web3Service"] = {}
    _lock = threading.Lock()

    def __init__(
        self,
        chain_id: int,
        rpc_url: str,
    ):
        """
        Initialize the Web3Service.

        Args:
            chain_id (int): The chain ID to use.
            rpc_url (str): The RPC URL to use.
        """
        self.chain_id = chain_id
        self.w3 = self._initialize_web3(rpc_url)
        self._contract_cache: Dict[tuple, Any] = {}
        self._contract_lock = threading.Lock()

    def _initialize_web3(self, rpc_url: str) -> Web3:
        """Initialize Web3 instance with middleware if needed"""
        w3 = Web3(Web3.HTTPProvider(rpc_url))

        # POA extraData handling for non-mainnet chains
        if self.chain_id != 1:
            from web3.middleware import ExtraDataToPOAMiddleware

            w3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)

        return w3

    @classmethod
    def get_instance(cls, chain_id: int) -> "Web3Service":
        """Get or create a Web3Service instance for a specific chain"""
        with cls._lock:
            if chain_id not in cls._instances:
                rpc_url = GlobalConstants.get_rpc_url(chain_id)
                cls._instances[chain_id] = cls(chain_id, rpc_url)

            return cls._instances[chain_id]

    def get_contract(self, address: str, abi_name: str) -> Any:
        """Get a contract instance for a given address and ABI name"""
        key = (address, abi_name)
        with self._contract_lock:
            if key not in self._contract_cache:
                abi = resource_manager.load_abi(abi_name)
                self._contract_cache[key] = self.w3.eth.contract(
                    address=Web3.to_checksum_address(address.lower()),
                    abi=abi,
                )
            return self._contract_cache[key]
