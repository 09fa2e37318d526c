"""Pydantic schema for configuration validation."""

import hashlib
import json
from typing import Any, Dict

from pydantic import BaseModel, Field, field_validator, model_validator

SECONDS_PER_YEAR = 365 * 24 * 60 * 60
BPS_DENOMINATOR = 10_000


class Accounting(BaseModel):
    """Fixed-point accounting parameters."""
    scale: int = Field(default=10**12, gt=0, description="Fixed-point scale of reward-per-share")

    @field_validator('scale')
    @classmethod
    def validate_scale_power_of_ten(cls, v):
        """Keep the scale a power of ten so reported values stay readable."""
        if str(v).rstrip('0') != '1':
            raise ValueError(f"scale must be a power of ten, got {v}")
        return v


class Boost(BaseModel):
    """Derived-stake blend: base share of own stake plus governance-weighted pool share."""
    base_bps: int = Field(default=4000, ge=0, le=BPS_DENOMINATOR, description="Weight of raw stake (0.40)")
    boost_bps: int = Field(default=6000, ge=0, le=BPS_DENOMINATOR, description="Weight of governance share (0.60)")

    @model_validator(mode='after')
    def validate_blend(self):
        """Ensure the two weights blend to exactly 100%."""
        if self.base_bps + self.boost_bps != BPS_DENOMINATOR:
            raise ValueError(
                f"base_bps + boost_bps must equal {BPS_DENOMINATOR}, "
                f"got {self.base_bps} + {self.boost_bps}"
            )
        return self


class Emissions(BaseModel):
    """Reward emission parameters."""
    reward_asset: str = Field(default="REWARD", min_length=1, description="Asset streamed to stakers")
    distribution_window_seconds: int = Field(
        default=SECONDS_PER_YEAR, gt=0,
        description="Length of the emission window fixed by start_emissions"
    )


class Access(BaseModel):
    """Addresses used by the controller."""
    admin: str = Field(default="admin", min_length=1, description="Caller allowed to run privileged operations")
    controller_address: str = Field(
        default="controller", min_length=1,
        description="Holder address of staked assets and undistributed rewards"
    )

    @model_validator(mode='after')
    def validate_distinct(self):
        if self.admin == self.controller_address:
            raise ValueError("admin and controller_address must differ")
        return self


class Events(BaseModel):
    """Event history kept by the controller."""
    history_size: int = Field(
        default=10_000, ge=0,
        description="Most recent committed events kept in memory; observers see every event"
    )


class Simulation(BaseModel):
    """Parameters for the randomized invariant simulation."""
    num_pools: int = Field(default=3, gt=0, description="Pools registered at start")
    num_participants: int = Field(default=5, gt=0, description="Participants acting each run")
    steps: int = Field(default=200, gt=0, description="Operations per run")
    step_seconds_max: int = Field(default=3600, gt=0, description="Upper bound of clock advance per step")
    emission_supply: int = Field(default=10**15, gt=0, description="Reward supply passed to start_emissions")
    initial_balance: int = Field(default=10**9, gt=0, description="Staked-asset balance minted per participant")
    max_voting_power: int = Field(default=10**6, ge=0, description="Upper bound of sampled governance power")
    reserved_weight: int = Field(default=100, ge=0, description="Bootstrap weight of each simulated pool")
    random_seed: int = Field(default=42, description="Random seed for reproducibility")


class EngineConfig(BaseModel):
    """Complete configuration for the reward engine."""
    accounting: Accounting = Field(default_factory=Accounting)
    boost: Boost = Field(default_factory=Boost)
    emissions: Emissions = Field(default_factory=Emissions)
    access: Access = Field(default_factory=Access)
    events: Events = Field(default_factory=Events)
    simulation: Simulation = Field(default_factory=Simulation)

    def compute_hash(self) -> str:
        """Compute config hash for reproducibility."""
        config_dict = self.model_dump()
        config_str = json.dumps(config_dict, sort_keys=True)
        return hashlib.sha256(config_str.encode()).hexdigest()[:16]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EngineConfig':
        """Create config from dictionary."""
        return cls(**(data or {}))

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return self.model_dump()
