"""Rebase-safe share wrapper.

Wraps an underlying asset whose balances may change without transfers
(rebasing). Holders receive wrapper shares proportional to the wrapper's
underlying balance, so a pool can stake a stable share count instead.

Key Concepts:
- shares_out = amount * share_supply / underlying_balance (1:1 when empty)
- amount_out = shares * underlying_balance / share_supply
"""

from ..errors import InvariantViolation
from .assets import AssetLedger


class ShareWrapper:
    """Mints and burns `share_asset` against deposits of `underlying`."""

    def __init__(self, ledger: AssetLedger, underlying: str, share_asset: str, address: str):
        """
        Args:
            ledger: Ledger holding both the underlying and the share asset
            underlying: Asset being wrapped
            share_asset: Name of the wrapper share asset
            address: Holder address of the wrapper's underlying reserve
        """
        self.ledger = ledger
        self.underlying = underlying
        self.share_asset = share_asset
        self.address = address

    @property
    def underlying_balance(self) -> int:
        return self.ledger.balance_of(self.underlying, self.address)

    def shares_for(self, amount: int) -> int:
        supply = self.ledger.total_supply(self.share_asset)
        balance = self.underlying_balance
        if supply == 0 or balance == 0:
            return amount
        return amount * supply // balance

    def amount_for(self, shares: int) -> int:
        supply = self.ledger.total_supply(self.share_asset)
        if supply == 0:
            return 0
        return shares * self.underlying_balance // supply

    def wrap(self, holder: str, amount: int) -> int:
        """Pull `amount` of the underlying from `holder` and mint shares."""
        shares = self.shares_for(amount)
        if shares == 0:
            raise InvariantViolation("zero_shares", f"wrapping {amount} mints no shares")
        self.ledger.transfer(self.underlying, holder, self.address, amount)
        self.ledger.mint(self.share_asset, holder, shares)
        return shares

    def unwrap(self, holder: str, shares: int) -> int:
        """Burn `shares` and return the proportional underlying to `holder`."""
        held = self.ledger.balance_of(self.share_asset, holder)
        if shares > held:
            raise InvariantViolation("insufficient_shares", f"{holder} holds {held} shares, unwrapping {shares}")
        amount = self.amount_for(shares)
        self.ledger.transfer(self.underlying, self.address, holder, amount)
        self.ledger.burn(self.share_asset, holder, shares)
        return amount
