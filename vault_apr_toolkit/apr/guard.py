"""
Stop conditions checked before any APR arithmetic.

Each stop is an expected state carrying a ``StopReason``, never an error.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from vault_apr_toolkit.shared.types import StakingCampaign


class StopReason(Enum):
    """Why the pipeline stopped before computing an APR."""

    NO_CAMPAIGN = "no_campaign"
    REWARDS_ENDED = "rewards_ended"
    NOTHING_STAKED = "nothing_staked"


@dataclass(frozen=True)
class GuardVerdict:
    """Outcome of the campaign guard."""

    proceed: bool
    reason: Optional[StopReason] = None

    @property
    def message(self) -> str:
        if self.reason is None:
            return "campaign is live"
        return _MESSAGES[self.reason]


_MESSAGES = {
    StopReason.NO_CAMPAIGN: "no staking campaign registered for vault",
    StopReason.REWARDS_ENDED: "staking rewards period has finished",
    StopReason.NOTHING_STAKED: "nothing is staked in the pool",
}

CONTINUE = GuardVerdict(proceed=True)


def check_campaign(
    campaign: Optional[StakingCampaign], now: int
) -> GuardVerdict:
    """
    Evaluate the stop conditions in order, first match wins.

    Args:
        campaign: Fetched pool state, or None when the vault has no pool
        now: Current Unix time in seconds

    Returns:
        GuardVerdict telling the caller whether to continue
    """
    if campaign is None:
        return GuardVerdict(proceed=False, reason=StopReason.NO_CAMPAIGN)

    if campaign.period_finish < now:
        return GuardVerdict(proceed=False, reason=StopReason.REWARDS_ENDED)

    if campaign.total_supply == 0:
        return GuardVerdict(proceed=False, reason=StopReason.NOTHING_STAKED)

    return CONTINUE
