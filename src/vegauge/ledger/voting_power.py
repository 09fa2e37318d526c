"""Governance-power source.

The engine treats governance power as an opaque oracle: it only ever asks for a
holder's current power and the total outstanding power. Lock and decay
mechanics live outside this package.
"""

from typing import Dict, Protocol


class VotingPowerSource(Protocol):
    """Read-only query capability for governance power."""

    def power_of(self, address: str) -> int:
        ...

    def total_power(self) -> int:
        ...


class StaticVotingPower:
    """Table-backed power source; values change only when set explicitly."""

    def __init__(self, powers: Dict[str, int] = None):
        self._powers: Dict[str, int] = {}
        for address, power in (powers or {}).items():
            self.set_power(address, power)

    def set_power(self, address: str, power: int) -> None:
        if power < 0:
            raise ValueError(f"Voting power must be non-negative, got {power}")
        if power == 0:
            self._powers.pop(address, None)
        else:
            self._powers[address] = power

    def power_of(self, address: str) -> int:
        return self._powers.get(address, 0)

    def total_power(self) -> int:
        return sum(self._powers.values())
