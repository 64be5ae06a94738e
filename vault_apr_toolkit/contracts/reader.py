"""
On-chain reader backing the APR pipeline.

``batch_read`` resolves any number of ``(target, method)`` getters in a
single multicall and hands back a mapping keyed by the same pairs.
``read_decimals`` is the single ERC20 read used when a token is missing
from the metadata store.
"""

from typing import Any, Callable, Dict, Sequence

from eth_utils import to_checksum_address
from w3multicall.multicall import W3Multicall

from vault_apr_toolkit.shared.constants import AprConstants
from vault_apr_toolkit.shared.exceptions import (
    ChainReadError,
    MalformedStateError,
)
from vault_apr_toolkit.shared.logging import get_logger
from vault_apr_toolkit.shared.retry import RPC_RETRY_CONFIG, RetryConfig
from vault_apr_toolkit.shared.services.web3_service import Web3Service
from vault_apr_toolkit.shared.types import CallKey

logger = get_logger(__name__)


class ContractReader:
    """
    Chain reader over Web3Service and w3multicall.

    Attributes:
        retry_config: Backoff settings applied to every RPC call
    """

    def __init__(
        self,
        web3_service_factory: Callable[
            [int], Web3Service
        ] = Web3Service.get_instance,
        retry_config: RetryConfig = RPC_RETRY_CONFIG,
        signatures: Dict[str, str] = None,
    ):
        self._web3_service_factory = web3_service_factory
        self.retry_config = retry_config
        self.signatures = signatures or AprConstants.METHOD_SIGNATURES

    def _call(self, operation: Callable[[], Any], name: str) -> Any:
        return self.retry_config.run(operation, operation_name=name)

    def batch_read(
        self, chain_id: int, calls: Sequence[CallKey]
    ) -> Dict[CallKey, Any]:
        """
        Resolve every ``(target, method)`` pair in one multicall.

        Args:
            chain_id: Chain to read from
            calls: Getter calls, ``method`` must have a known signature

        Returns:
            Dict keyed by the submitted pairs with the decoded values

        Raises:
            ChainReadError: RPC failed after retries
            MalformedStateError: the multicall returned the wrong number of results
        """
        if not calls:
            return {}

        w3 = self._web3_service_factory(chain_id).w3
        multicall = W3Multicall(w3)
        for target, method in calls:
            if method not in self.signatures:
                raise ValueError(f"No signature registered for {method}")
            multicall.add(
                W3Multicall.Call(
                    to_checksum_address(target.lower()),
                    self.signatures[method],
                    [],
                )
            )

        try:
            results = self._call(multicall.call, "batch_read")
        except self.retry_config.retryable_exceptions as e:
            raise ChainReadError(
                f"Multicall of {len(calls)} calls failed on chain {chain_id}: {e}",
                chain_id=chain_id,
            ) from e

        if len(results) != len(calls):
            raise MalformedStateError(
                f"Multicall returned {len(results)} results for {len(calls)} calls"
            )

        return {call: result for call, result in zip(calls, results)}

    def read_decimals(self, chain_id: int, token_address: str) -> int:
        """Read ``decimals()`` of an ERC20 token."""
        service = self._web3_service_factory(chain_id)
        contract = service.get_contract(token_address, "erc20")

        try:
            decimals = self._call(
                contract.functions.decimals().call, "read_decimals"
            )
        except self.retry_config.retryable_exceptions as e:
            raise ChainReadError(
                f"decimals() failed for {token_address}: {e}",
                chain_id=chain_id,
                target=token_address,
            ) from e

        logger.debug(
            f"Read {decimals} decimals for {token_address} on chain {chain_id}"
        )
        return int(decimals)
