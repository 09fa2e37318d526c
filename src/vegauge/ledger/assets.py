"""Fungible asset ledger - mint, burn and transfer bookkeeping for named assets.

Used as the value-transfer primitive for the engine: the reward asset, the
staked assets and wrapper shares all live here. Transfers fail loudly.
Writes go through an undo journal, so a transaction only remembers the
(asset, holder) entries it actually changed.
"""

import logging
from typing import Dict, Set, Tuple

from ..errors import InvariantViolation, TransferError
from ..journal import UndoJournal

logger = logging.getLogger(__name__)


class AssetLedger:
    """In-process balances keyed by (asset, holder)."""

    def __init__(self):
        self._balances: Dict[Tuple[str, str], int] = {}
        self._supply: Dict[str, int] = {}
        self._frozen: Set[str] = set()
        self.journal = UndoJournal()

    def balance_of(self, asset: str, holder: str) -> int:
        return self._balances.get((asset, holder), 0)

    def total_supply(self, asset: str) -> int:
        return self._supply.get(asset, 0)

    def mint(self, asset: str, holder: str, amount: int) -> None:
        """Create `amount` units of `asset` for `holder`."""
        _require_amount(amount)
        self.journal.add_item(self._balances, (asset, holder), amount)
        self.journal.add_item(self._supply, asset, amount)

    def burn(self, asset: str, holder: str, amount: int) -> None:
        """Destroy `amount` units held by `holder`."""
        _require_amount(amount)
        if self.balance_of(asset, holder) < amount:
            raise TransferError(
                "insufficient_balance",
                f"cannot burn {amount} {asset} from {holder}",
                {"balance": self.balance_of(asset, holder)},
            )
        self.journal.add_item(self._balances, (asset, holder), -amount)
        self.journal.add_item(self._supply, asset, -amount)

    def transfer(self, asset: str, sender: str, recipient: str, amount: int) -> None:
        """
        Move `amount` of `asset` from `sender` to `recipient`.

        Raises:
            TransferError: If the sender is short or either party is frozen
        """
        _require_amount(amount)
        if amount == 0:
            return
        for party in (sender, recipient):
            if party in self._frozen:
                raise TransferError("transfer_refused", f"holder {party} is frozen")
        balance = self.balance_of(asset, sender)
        if balance < amount:
            raise TransferError(
                "insufficient_balance",
                f"{sender} holds {balance} {asset}, needs {amount}",
            )
        self.journal.add_item(self._balances, (asset, sender), -amount)
        self.journal.add_item(self._balances, (asset, recipient), amount)
        logger.debug("transfer %s %s: %s -> %s", amount, asset, sender, recipient)

    def freeze(self, holder: str) -> None:
        """Refuse every transfer to or from `holder` until unfrozen."""
        self.journal.add_member(self._frozen, holder)

    def unfreeze(self, holder: str) -> None:
        self.journal.discard_member(self._frozen, holder)


def _require_amount(amount: int) -> None:
    if not isinstance(amount, int) or isinstance(amount, bool) or amount < 0:
        raise InvariantViolation("invalid_amount", f"amount must be a non-negative int, got {amount!r}")
