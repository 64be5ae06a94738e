"""All constants for the project"""

import os

from dotenv import load_dotenv

from vault_apr_toolkit.shared.exceptions import ConfigurationException

load_dotenv()


class AprConstants:
    """Constants used by the APR pipeline"""

    # 365.2425 days, accounts for leap years
    SECONDS_PER_YEAR = 31_556_952

    # Reward tokens whose decimals cannot be read are assumed to use 18
    DEFAULT_TOKEN_DECIMALS = 18

    # Enough significant digits to hold a uint256 without rounding
    DECIMAL_PRECISION = 78

    # Staking rewards pool getters fetched in a single multicall
    PERIOD_FINISH = "periodFinish"
    REWARD_RATE = "rewardRate"
    TOTAL_SUPPLY = "totalSupply"
    REWARDS_TOKEN = "rewardsToken"
    DECIMALS = "decimals"

    STAKING_POOL_METHODS = (
        PERIOD_FINISH,
        REWARD_RATE,
        TOTAL_SUPPLY,
        REWARDS_TOKEN,
    )

    # Multicall signatures, "name(args)(returns)" as expected by w3multicall
    METHOD_SIGNATURES = {
        PERIOD_FINISH: "periodFinish()(uint256)",
        REWARD_RATE: "rewardRate()(uint256)",
        TOTAL_SUPPLY: "totalSupply()(uint256)",
        REWARDS_TOKEN: "rewardsToken()(address)",
        DECIMALS: "decimals()(uint8)",
    }


class GlobalConstants:
    """Global class constants for the project"""

    CHAIN_ID_TO_RPC = {
        1: os.getenv("ETHEREUM_MAINNET_RPC_URL") or None,
        10: os.getenv("OPTIMISM_MAINNET_RPC_URL") or None,
        42161: os.getenv("ARBITRUM_MAINNET_RPC_URL") or None,
        8453: os.getenv("BASE_MAINNET_RPC_URL") or None,
        137: os.getenv("POLYGON_MAINNET_RPC_URL") or None,
        250: os.getenv("FANTOM_MAINNET_RPC_URL") or None,
    }

    chains_ids_to_name = {
        1: "ethereum",
        10: "optimism",
        137: "polygon",
        250: "fantom",
        8453: "base",
        42161: "arbitrum",
    }

    STAKING_REGISTRY_URL = os.getenv("VAULT_APR_STAKING_REGISTRY_URL") or None

    PRICE_CACHE_TTL = int(os.getenv("VAULT_APR_PRICE_TTL", "300"))

    @staticmethod
    def get_rpc_url(chain_id: int) -> str:
        """Get RPC URL for specified chain"""

        if chain_id not in GlobalConstants.CHAIN_ID_TO_RPC:
            raise ConfigurationException(f"Chain ID {chain_id} not supported")

        rpc_url = GlobalConstants.CHAIN_ID_TO_RPC[chain_id]
        if not rpc_url:
            raise ConfigurationException(
                f"RPC URL not set for chain {chain_id}"
            )

        return rpc_url
