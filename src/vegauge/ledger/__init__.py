"""Collaborator ledgers: assets, wrapper shares and governance power."""

from .assets import AssetLedger
from .voting_power import StaticVotingPower, VotingPowerSource
from .wrapper import ShareWrapper

__all__ = [
    "AssetLedger",
    "ShareWrapper",
    "StaticVotingPower",
    "VotingPowerSource",
]
