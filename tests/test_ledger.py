"""Tests for collaborator ledgers: assets, wrapper shares and voting power."""

import pytest

from vegauge.errors import InvariantViolation, TransferError
from vegauge.ledger.assets import AssetLedger
from vegauge.ledger.voting_power import StaticVotingPower
from vegauge.ledger.wrapper import ShareWrapper


class TestAssetLedger:
    """Tests for mint, burn and transfer bookkeeping."""

    def test_mint_and_burn_track_supply(self):
        ledger = AssetLedger()
        ledger.mint("TOK", "alice", 100)
        ledger.burn("TOK", "alice", 30)

        assert ledger.balance_of("TOK", "alice") == 70
        assert ledger.total_supply("TOK") == 70

    def test_short_transfer_fails(self):
        ledger = AssetLedger()
        ledger.mint("TOK", "alice", 10)
        with pytest.raises(TransferError):
            ledger.transfer("TOK", "alice", "bob", 11)
        assert ledger.balance_of("TOK", "alice") == 10
        assert ledger.balance_of("TOK", "bob") == 0

    def test_frozen_holder_refused(self):
        ledger = AssetLedger()
        ledger.mint("TOK", "alice", 10)
        ledger.freeze("bob")
        with pytest.raises(TransferError) as excinfo:
            ledger.transfer("TOK", "alice", "bob", 5)
        assert excinfo.value.code == "transfer_refused"

    def test_negative_amount_rejected(self):
        ledger = AssetLedger()
        with pytest.raises(InvariantViolation):
            ledger.mint("TOK", "alice", -1)

    def test_rollback_reverses_journaled_writes(self):
        ledger = AssetLedger()
        ledger.mint("TOK", "alice", 10)
        ledger.journal.begin()
        ledger.transfer("TOK", "alice", "bob", 10)
        ledger.mint("TOK", "carol", 5)
        ledger.freeze("alice")
        ledger.journal.rollback()

        assert ledger.balance_of("TOK", "alice") == 10
        assert ledger.balance_of("TOK", "bob") == 0
        assert ledger.total_supply("TOK") == 10
        ledger.transfer("TOK", "alice", "bob", 1)

    def test_commit_keeps_writes(self):
        ledger = AssetLedger()
        ledger.journal.begin()
        ledger.mint("TOK", "alice", 10)
        ledger.journal.commit()
        ledger.journal.rollback()

        assert ledger.balance_of("TOK", "alice") == 10


class TestShareWrapper:
    """Tests for the rebase-safe share wrapper."""

    def test_first_wrap_is_one_to_one(self):
        ledger = AssetLedger()
        ledger.mint("stETH", "alice", 100)
        wrapper = ShareWrapper(ledger, "stETH", "wstETH", "wrapper")

        assert wrapper.wrap("alice", 100) == 100
        assert ledger.balance_of("wstETH", "alice") == 100

    def test_rebase_grows_redemption(self):
        """A positive rebase is shared pro rata by existing share holders."""
        ledger = AssetLedger()
        ledger.mint("stETH", "alice", 100)
        ledger.mint("stETH", "bob", 100)
        wrapper = ShareWrapper(ledger, "stETH", "wstETH", "wrapper")
        wrapper.wrap("alice", 100)

        ledger.mint("stETH", "wrapper", 100)  # rebase doubles the reserve
        assert wrapper.wrap("bob", 100) == 50

        assert wrapper.unwrap("alice", 100) == 200
        assert wrapper.unwrap("bob", 50) == 100
        assert ledger.total_supply("wstETH") == 0

    def test_unwrap_more_than_held_rejected(self):
        ledger = AssetLedger()
        ledger.mint("stETH", "alice", 10)
        wrapper = ShareWrapper(ledger, "stETH", "wstETH", "wrapper")
        wrapper.wrap("alice", 10)

        with pytest.raises(InvariantViolation):
            wrapper.unwrap("alice", 11)
        assert ledger.balance_of("stETH", "wrapper") == 10

    def test_wrapper_shares_stake_in_pool(self, controller, ledger, clock):
        """Wrapper shares work as a pool's staked asset."""
        ledger.mint("stETH", "alice", 1000)
        wrapper = ShareWrapper(ledger, "stETH", "wstETH", "wrapper")
        shares = wrapper.wrap("alice", 1000)
        pool_id = controller.register_pool("admin", "wstETH", reserved_weight=1)

        controller.deposit("alice", pool_id, shares)
        assert controller.staked_balance_of(pool_id) == 1000


class TestStaticVotingPower:
    """Tests for the table-backed power source."""

    def test_total_tracks_updates(self):
        power = StaticVotingPower({"alice": 5, "bob": 7})
        power.set_power("alice", 0)

        assert power.power_of("alice") == 0
        assert power.total_power() == 7

    def test_negative_power_rejected(self):
        with pytest.raises(ValueError):
            StaticVotingPower({"alice": -1})
