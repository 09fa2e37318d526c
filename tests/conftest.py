"""Shared fixtures for engine tests."""

import os
import sys

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from vegauge.clock import ManualClock
from vegauge.config.schema import EngineConfig, SECONDS_PER_YEAR
from vegauge.controller import RewardController
from vegauge.ledger.assets import AssetLedger
from vegauge.ledger.voting_power import StaticVotingPower

ADMIN = "admin"
REWARD = "REWARD"


@pytest.fixture
def clock():
    return ManualClock(start=0)


@pytest.fixture
def ledger():
    return AssetLedger()


@pytest.fixture
def power():
    return StaticVotingPower()


@pytest.fixture
def controller(clock, ledger, power):
    return RewardController(config=EngineConfig(), ledger=ledger, voting_power=power, clock=clock)


def fund_and_start(controller, ledger, rate_per_second, window=SECONDS_PER_YEAR):
    """Mint the admin enough reward to emit `rate_per_second` and start emissions."""
    supply = rate_per_second * window
    ledger.mint(REWARD, ADMIN, supply)
    controller.start_emissions(ADMIN, supply)
    return supply
