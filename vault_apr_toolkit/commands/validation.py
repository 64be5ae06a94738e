"""Checks on CLI arguments before any RPC or HTTP call is made."""

from eth_utils import is_address, to_checksum_address

from vault_apr_toolkit.shared.constants import GlobalConstants


def validate_eth_address(address: str, param_name: str = "address") -> str:
    """Checksummed form of ``address``; ValueError when it is not one."""
    if not isinstance(address, str) or not is_address(address):
        raise ValueError(
            f"Invalid {param_name}: {address!r} is not a valid Ethereum address"
        )
    return to_checksum_address(address)


def validate_chain_id(chain_id: int) -> None:
    supported = sorted(GlobalConstants.CHAIN_ID_TO_RPC)
    if chain_id not in supported:
        raise ValueError(
            f"Invalid chain_id: {chain_id}. Supported chains: {supported}"
        )


def validate_decimals(decimals: int, param_name: str = "decimals") -> int:
    if not 0 <= decimals <= 255:
        raise ValueError(
            f"Invalid {param_name}: {decimals}. ERC20 decimals fit in a uint8"
        )
    return decimals
