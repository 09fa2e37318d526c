"""Boost calculator - derived stake from raw stake and governance power.

Formula:
    base = base_fraction * staked_amount
    boosted = boost_fraction * pool_total_staked * power / total_power
    derived = min(base + boosted, staked_amount)
"""

from ..config.schema import BPS_DENOMINATOR
from ..ledger.voting_power import VotingPowerSource


class BoostCalculator:
    """Computes derived stake; governance power is queried on every call."""

    def __init__(self, voting_power: VotingPowerSource, base_bps: int = 4000, boost_bps: int = 6000):
        self.voting_power = voting_power
        self.base_bps = base_bps
        self.boost_bps = boost_bps

    def derived_stake(self, staked_amount: int, participant: str, pool_total_staked: int) -> int:
        """
        Compute a participant's derived stake.

        Args:
            staked_amount: Participant's raw stake in the pool
            participant: Address whose governance power is used
            pool_total_staked: Pool's total staked balance after the current mutation

        Returns:
            Derived stake, never above staked_amount
        """
        base = staked_amount * self.base_bps // BPS_DENOMINATOR
        total_power = self.voting_power.total_power()
        if total_power <= 0:
            return min(base, staked_amount)

        power = self.voting_power.power_of(participant)
        pool_share = pool_total_staked * power // total_power
        boosted = pool_share * self.boost_bps // BPS_DENOMINATOR
        return min(base + boosted, staked_amount)
