"""
StakingAprService - APR of the staking rewards pool attached to a vault

Pipeline, strictly forward:
1. Look up the staking pool registered for the vault
2. Read periodFinish, rewardRate, totalSupply and rewardsToken in one multicall
3. Stop early when there is no pool, rewards have ended, or nothing is staked
4. Resolve vault-token decimals (required) and reward-token decimals (fallback 18)
5. Resolve both USD prices (unknown price counts as 0)
6. Normalize the raw amounts and apply the APR formula

Expected stops and a failed pool read come back as ``(Decimal(0), False)``
from ``compute_staking_rewards_apr`` or as a failed ``Result`` from
``get_staking_apr``. Malformed on-chain data raises ``MalformedStateError``.
"""

import asyncio
import time
from decimal import Decimal
from typing import Any, Callable, Iterable, List, Mapping, Optional, Tuple

from eth_utils import is_address, to_checksum_address

from vault_apr_toolkit.apr.decimals import DecimalsResolver
from vault_apr_toolkit.apr.formula import (
    compute_staking_apr,
    per_staking_token_rate,
)
from vault_apr_toolkit.apr.guard import check_campaign
from vault_apr_toolkit.apr.normalizer import to_normalized_amount
from vault_apr_toolkit.shared.constants import AprConstants
from vault_apr_toolkit.shared.exceptions import (
    ChainReadError,
    MalformedStateError,
    NonRetryableException,
    RetryableException,
)
from vault_apr_toolkit.shared.logging import get_logger
from vault_apr_toolkit.shared.results import ErrorSeverity, Result
from vault_apr_toolkit.shared.types import (
    CallKey,
    ChainReader,
    MetadataStore,
    PriceStore,
    StakingAprBreakdown,
    StakingCampaign,
    StakingPool,
    StakingRegistry,
    Vault,
)

logger = get_logger(__name__)

DEFAULT_PARALLEL_REQUESTS = 16


def _decode_uint(response: Mapping[CallKey, Any], key: CallKey) -> int:
    if key not in response:
        raise MalformedStateError(f"Missing {key[1]} in response for {key[0]}")
    value = response[key]
    if isinstance(value, bool) or not isinstance(value, int):
        raise MalformedStateError(
            f"{key[1]} of {key[0]} is not an integer: {value!r}"
        )
    if value < 0:
        raise MalformedStateError(f"{key[1]} of {key[0]} is negative: {value}")
    return value


def _decode_address(response: Mapping[CallKey, Any], key: CallKey) -> str:
    if key not in response:
        raise MalformedStateError(f"Missing {key[1]} in response for {key[0]}")
    value = response[key]
    if not isinstance(value, str) or not is_address(value):
        raise MalformedStateError(
            f"{key[1]} of {key[0]} is not an address: {value!r}"
        )
    return to_checksum_address(value)


class StakingAprService:
    """
    Computes the staking rewards APR of vaults.

    All collaborators are injected; the service keeps no mutable state and
    can be shared across threads.

    Attributes:
        registry: Vault -> staking pool lookup
        chain_reader: Batched and single on-chain reads
        metadata_store: Cached token decimals
        price_store: Humanized USD prices
        decimals_resolver: Reward-token decimals with chain fallback
    """

    def __init__(
        self,
        registry: StakingRegistry,
        chain_reader: ChainReader,
        metadata_store: MetadataStore,
        price_store: PriceStore,
        clock: Callable[[], float] = time.time,
        decimals_resolver: Optional[DecimalsResolver] = None,
    ):
        self.registry = registry
        self.chain_reader = chain_reader
        self.metadata_store = metadata_store
        self.price_store = price_store
        self._clock = clock
        self.decimals_resolver = decimals_resolver or DecimalsResolver(
            metadata_store, chain_reader
        )

    def fetch_campaign(self, chain_id: int, pool: StakingPool) -> StakingCampaign:
        """Read the staking pool state in a single batched call."""
        target = pool.pool_address
        calls = [(target, method) for method in AprConstants.STAKING_POOL_METHODS]
        response = self.chain_reader.batch_read(chain_id, calls)

        return StakingCampaign(
            pool_address=target,
            period_finish=_decode_uint(
                response, (target, AprConstants.PERIOD_FINISH)
            ),
            reward_rate=_decode_uint(response, (target, AprConstants.REWARD_RATE)),
            total_supply=_decode_uint(
                response, (target, AprConstants.TOTAL_SUPPLY)
            ),
            rewards_token=_decode_address(
                response, (target, AprConstants.REWARDS_TOKEN)
            ),
        )

    def get_staking_apr(
        self, vault: Vault, chain_id: Optional[int] = None
    ) -> Result[StakingAprBreakdown]:
        """
        Run the APR pipeline for one vault.

        Args:
            vault: Vault record supplied by the caller
            chain_id: Chain of the staking registry; defaults to the vault's

        Returns:
            Result carrying the full breakdown on success. Failures with
            INFO severity are expected stops (no pool, ended, empty); an
            unreadable staking pool fails with ERROR severity.
        """
        chain_id = vault.chain_id if chain_id is None else chain_id
        context = {"chain_id": chain_id, "vault": vault.address}

        # 1. Staking pool for this vault
        pool = self.registry.lookup(chain_id, vault.address)
        campaign = None
        if pool is not None:
            context["pool"] = pool.pool_address
            try:
                campaign = self.fetch_campaign(chain_id, pool)
            except ChainReadError as e:
                logger.warning(
                    f"Could not read staking pool {pool.pool_address} on "
                    f"chain {chain_id}: {e.message}"
                )
                return Result.fail_with_message(
                    source="chain",
                    message=e.message,
                    severity=ErrorSeverity.ERROR,
                    context=context,
                    exception=e,
                )

        # 2. Early exits
        verdict = check_campaign(campaign, int(self._clock()))
        if not verdict.proceed:
            logger.debug(f"Skipping {vault.address}: {verdict.message}")
            return Result.fail_with_message(
                source="guard",
                message=verdict.message,
                severity=ErrorSeverity.INFO,
                context={**context, "reason": verdict.reason.value},
            )

        # 3. Vault token decimals, no fallback
        vault_decimals = self.metadata_store.get_token_decimals(
            vault.chain_id, vault.address
        )
        if vault_decimals is None:
            logger.warning(
                f"No token metadata for vault {vault.address} on chain "
                f"{vault.chain_id}"
            )
            return Result.fail_with_message(
                source="metadata",
                message="vault token metadata not found",
                severity=ErrorSeverity.WARNING,
                context=context,
            )

        warnings: List[Tuple[str, str]] = []

        # 4. Reward token decimals, degrades to the default
        resolved = self.decimals_resolver.resolve_with_source(
            chain_id, campaign.rewards_token
        )
        if resolved.is_fallback:
            warnings.append(
                (
                    "decimals",
                    f"decimals of {campaign.rewards_token} defaulted to "
                    f"{resolved.decimals}",
                )
            )

        # 5. Prices, unknown counts as zero
        vault_price = self._get_price(vault.chain_id, vault.address, warnings)
        rewards_price = self._get_price(
            vault.chain_id, campaign.rewards_token, warnings
        )

        # 6. Normalize and compute
        reward_rate = to_normalized_amount(
            campaign.reward_rate, resolved.decimals
        )
        total_supply = to_normalized_amount(campaign.total_supply, vault_decimals)
        apr = compute_staking_apr(
            reward_rate, total_supply, rewards_price, vault_price
        )

        breakdown = StakingAprBreakdown(
            chain_id=chain_id,
            vault=vault.address,
            pool=campaign.pool_address,
            rewards_token=campaign.rewards_token,
            period_finish=campaign.period_finish,
            reward_rate_raw=campaign.reward_rate,
            total_supply_raw=campaign.total_supply,
            rewards_token_decimals=resolved.decimals,
            vault_token_decimals=vault_decimals,
            reward_rate=reward_rate,
            total_supply=total_supply,
            per_staking_token_rate=per_staking_token_rate(
                reward_rate, total_supply
            ),
            rewards_price=rewards_price,
            vault_price=vault_price,
            apr=apr,
        )

        result = Result.ok(breakdown)
        for source, message in warnings:
            result.add_warning(source, message, context)
        return result

    def compute_staking_rewards_apr(
        self, vault: Vault, chain_id: Optional[int] = None
    ) -> Tuple[Decimal, bool]:
        """
        APR of the vault's staking rewards as ``(apr, valid)``.

        ``(Decimal(0), False)`` whenever the pipeline stopped early.
        """
        result = self.get_staking_apr(vault, chain_id)
        if not result.success:
            return Decimal(0), False
        return result.data.apr, True

    async def compute_many(
        self,
        vaults: Iterable[Vault],
        max_concurrency: int = DEFAULT_PARALLEL_REQUESTS,
    ) -> List[Tuple[Vault, Result[StakingAprBreakdown]]]:
        """
        Compute the APR of many vaults in parallel.

        Each vault runs in the default executor, so a blocking RPC read for
        one vault does not hold up the others. Malformed state and other
        toolkit exceptions are recorded as CRITICAL on that vault's result.
        """
        loop = asyncio.get_running_loop()
        semaphore = asyncio.Semaphore(max_concurrency)

        async def _compute(vault: Vault) -> Tuple[Vault, Result]:
            async with semaphore:
                try:
                    result = await loop.run_in_executor(
                        None, self.get_staking_apr, vault
                    )
                except (RetryableException, NonRetryableException) as e:
                    logger.error(
                        f"Staking APR failed for {vault.address} on chain "
                        f"{vault.chain_id}: {e.message}"
                    )
                    result = Result.fail_with_message(
                        source="staking_apr",
                        message=e.message,
                        severity=ErrorSeverity.CRITICAL,
                        context={
                            "chain_id": vault.chain_id,
                            "vault": vault.address,
                        },
                        exception=e,
                    )
                return vault, result

        return list(await asyncio.gather(*(_compute(v) for v in vaults)))

    def _get_price(
        self, chain_id: int, token: str, warnings: List[Tuple[str, str]]
    ) -> Decimal:
        price = self.price_store.get_usd_price(chain_id, token)
        if price is None:
            logger.debug(f"No USD price for {token} on chain {chain_id}")
            warnings.append(("price", f"no USD price for {token}, using 0"))
            return Decimal(0)
        return price
