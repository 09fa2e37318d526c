"""Tests for deposit, withdraw and claim settlement."""

import pytest

from conftest import ADMIN, REWARD, fund_and_start

from vegauge.errors import InvariantViolation, TransferError


@pytest.fixture
def single_pool(controller, ledger):
    """One pool with reserved weight 100, emitting 10 reward/s from t=0."""
    pool_id = controller.register_pool(ADMIN, "LP", reserved_weight=100)
    for who in ("alice", "bob"):
        ledger.mint("LP", who, 10_000)
    fund_and_start(controller, ledger, rate_per_second=10)
    return pool_id


class TestDeposit:
    """Tests for deposits."""

    def test_deposit_moves_stake_into_custody(self, controller, ledger, single_pool):
        """Deposit pulls the staked asset into the controller."""
        controller.deposit("alice", single_pool, 1000)

        assert ledger.balance_of("LP", "alice") == 9000
        assert ledger.balance_of("LP", controller.address) == 1000
        position = controller.position_of(single_pool, "alice")
        assert position.staked_amount == 1000
        assert position.derived_stake == 400

    def test_scenario_single_staker_without_power(self, controller, ledger, clock, single_pool):
        """Staker with no governance power earns on 40% of stake."""
        controller.deposit("alice", single_pool, 1000)
        clock.advance(100)

        assert controller.pending_reward(single_pool, "alice") == 400
        assert controller.claim("alice", single_pool) == 400
        assert ledger.balance_of(REWARD, "alice") == 400

    def test_second_deposit_settles_pending(self, controller, ledger, clock, single_pool):
        """A top-up pays what was pending before changing stake."""
        controller.deposit("alice", single_pool, 1000)
        clock.advance(100)

        paid = controller.deposit("alice", single_pool, 1000)
        assert paid == 400
        assert controller.pending_reward(single_pool, "alice") == 0
        assert controller.position_of(single_pool, "alice").derived_stake == 800

    def test_late_joiner_gets_no_history(self, controller, clock, single_pool):
        """A new position starts with zero pending reward."""
        controller.deposit("alice", single_pool, 1000)
        clock.advance(100)
        controller.deposit("bob", single_pool, 1000)

        assert controller.pending_reward(single_pool, "bob") == 0

    def test_non_positive_amount_rejected(self, controller, single_pool):
        with pytest.raises(InvariantViolation):
            controller.deposit("alice", single_pool, 0)
        with pytest.raises(InvariantViolation):
            controller.deposit("alice", single_pool, -5)

    def test_unknown_pool_rejected(self, controller):
        with pytest.raises(InvariantViolation) as excinfo:
            controller.deposit("alice", 7, 100)
        assert excinfo.value.code == "unknown_pool"


class TestWithdraw:
    """Tests for withdrawals."""

    def test_withdraw_returns_stake_and_pays(self, controller, ledger, clock, single_pool):
        controller.deposit("alice", single_pool, 1000)
        clock.advance(100)

        paid = controller.withdraw("alice", single_pool, 400)

        assert paid == 400
        assert ledger.balance_of("LP", "alice") == 9400
        assert controller.position_of(single_pool, "alice").staked_amount == 600

    def test_scenario_over_withdrawal_changes_nothing(self, controller, ledger, clock, single_pool):
        """Withdrawing more than staked is rejected with no state change."""
        controller.deposit("alice", single_pool, 1000)
        clock.advance(100)
        before = controller.state.positions[(single_pool, "alice")]
        pool_time = controller.state.pools[single_pool].last_distribution_time

        with pytest.raises(InvariantViolation) as excinfo:
            controller.withdraw("alice", single_pool, 1001)

        assert excinfo.value.code == "insufficient_stake"
        after = controller.state.positions[(single_pool, "alice")]
        assert after == before
        assert controller.state.pools[single_pool].last_distribution_time == pool_time
        assert ledger.balance_of("LP", "alice") == 9000
        assert ledger.balance_of(REWARD, "alice") == 0

    def test_full_withdraw_removes_position(self, controller, clock, single_pool):
        controller.deposit("alice", single_pool, 1000)
        clock.advance(10)
        controller.withdraw("alice", single_pool, 1000)

        assert (single_pool, "alice") not in controller.state.positions
        assert controller.position_of(single_pool, "alice").staked_amount == 0

    def test_pending_never_negative_after_boost_drop(self, controller, clock, power, single_pool):
        """Shrinking derived stake resets debt so pending stays at zero."""
        power.set_power("alice", 1000)
        controller.deposit("alice", single_pool, 1000)
        assert controller.position_of(single_pool, "alice").derived_stake == 1000

        clock.advance(100)
        controller.withdraw("alice", single_pool, 900)

        assert controller.pending_reward(single_pool, "alice") == 0
        assert controller.position_of(single_pool, "alice").derived_stake == 100


class TestClaim:
    """Tests for claims."""

    def test_claim_twice_pays_once(self, controller, clock, single_pool):
        controller.deposit("alice", single_pool, 1000)
        clock.advance(100)

        assert controller.claim("alice", single_pool) == 400
        assert controller.claim("alice", single_pool) == 0

    def test_claim_many_sums_pools(self, controller, ledger, clock):
        pools = [controller.register_pool(ADMIN, f"LP{i}", reserved_weight=1) for i in range(2)]
        for i in range(2):
            ledger.mint(f"LP{i}", "alice", 1000)
        fund_and_start(controller, ledger, rate_per_second=20)
        for pool_id in pools:
            controller.deposit("alice", pool_id, 1000)

        clock.advance(100)
        # Each pool emits 10/s: 1000 reward over 1000 stake, derived 400
        assert controller.claim_many("alice", pools) == 800
        assert ledger.balance_of(REWARD, "alice") == 800

    def test_claim_many_rejects_duplicates(self, controller, single_pool):
        with pytest.raises(InvariantViolation):
            controller.claim_many("alice", [single_pool, single_pool])

    def test_claim_refreshes_boost(self, controller, clock, power, single_pool):
        """Claiming recomputes derived stake from current governance power."""
        controller.deposit("alice", single_pool, 1000)
        power.set_power("alice", 500)
        controller.claim("alice", single_pool)

        assert controller.position_of(single_pool, "alice").derived_stake == 1000

    def test_claim_without_position_is_not_a_settlement(self, controller, clock, single_pool):
        """Claims on an empty position pay nothing and add no rounding allowance."""
        clock.advance(100)
        for _ in range(5):
            assert controller.claim("mallory", single_pool) == 0

        assert controller.state.settlements[single_pool] == 0
        assert (single_pool, "mallory") not in controller.state.positions

    def test_claim_on_live_position_counts_settlement(self, controller, clock, single_pool):
        controller.deposit("alice", single_pool, 1000)
        clock.advance(100)
        controller.claim("alice", single_pool)

        assert controller.state.settlements[single_pool] == 2


class TestBoostedRewards:
    """Tests for governance boost on rewards."""

    def test_scenario_boosted_staker_earns_more(self, controller, ledger, clock, power, single_pool):
        """Equal stakes, only one with power: boosted staker claims strictly more."""
        power.set_power("alice", 1000)
        controller.deposit("alice", single_pool, 1000)
        controller.deposit("bob", single_pool, 1000)

        alice = controller.position_of(single_pool, "alice")
        bob = controller.position_of(single_pool, "bob")
        assert alice.derived_stake > bob.derived_stake

        clock.advance(100)
        alice_paid = controller.claim("alice", single_pool)
        bob_paid = controller.claim("bob", single_pool)
        assert alice_paid == 500
        assert bob_paid == 200
        assert alice_paid > bob_paid


class TestAtomicity:
    """Tests that a failed transfer rolls back the whole operation."""

    def test_refused_transfer_rolls_back(self, controller, ledger, clock, single_pool):
        controller.deposit("alice", single_pool, 1000)
        clock.advance(100)
        pool_before = controller.state.pools[single_pool]
        acc_before = pool_before.reward_per_share_accumulated
        events_before = len(controller.events)

        ledger.freeze("alice")
        with pytest.raises(TransferError):
            controller.deposit("alice", single_pool, 500)

        assert controller.state.pools[single_pool].reward_per_share_accumulated == acc_before
        assert controller.state.paid_out[single_pool] == 0
        assert controller.state.positions[(single_pool, "alice")].staked_amount == 1000
        assert len(controller.events) == events_before

        ledger.unfreeze("alice")
        assert controller.deposit("alice", single_pool, 500) == 400

    def test_short_balance_rejected(self, controller, ledger, single_pool):
        """Depositing more than the participant holds fails loudly."""
        with pytest.raises(TransferError) as excinfo:
            controller.deposit("alice", single_pool, 20_000)
        assert excinfo.value.code == "insufficient_balance"
        assert (single_pool, "alice") not in controller.state.positions
