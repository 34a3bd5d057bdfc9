"""
Configuration constants for the stake-backed Rock-Paper-Scissors engine.

Defaults live here and can be overridden through environment variables.
``EngineConfig`` bundles the values a ``GameEngine`` instance runs with.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum

# =============================================================================
# Reveal Window
# =============================================================================

# Seconds a player has to reveal after the opponent's first reveal before the
# revealer may force-resolve the round in their favour.
MAX_REVEAL_TIME = float(os.environ.get("RPS_MAX_REVEAL_TIME", "600"))

# Who may trigger forced resolution through GameEngine.claim_timeout:
# "revealer", "participant" or "anyone"
TIMEOUT_CLAIM_POLICY = os.environ.get("RPS_TIMEOUT_CLAIM_POLICY", "revealer").strip().lower()

# =============================================================================
# Stakes
# =============================================================================

# Smallest stake the first joiner may open a round with
MIN_STAKE = int(os.environ.get("RPS_MIN_STAKE", "1"))


class TimeoutClaimPolicy(str, Enum):
    REVEALER = "revealer"
    PARTICIPANT = "participant"
    ANYONE = "anyone"


@dataclass(frozen=True)
class EngineConfig:
    max_reveal_time: float = MAX_REVEAL_TIME
    min_stake: int = MIN_STAKE
    timeout_claim_policy: TimeoutClaimPolicy = TimeoutClaimPolicy(TIMEOUT_CLAIM_POLICY)

    def __post_init__(self) -> None:
        if self.max_reveal_time < 0:
            raise ValueError("max_reveal_time must be >= 0")
        if self.min_stake < 1:
            raise ValueError("min_stake must be >= 1")

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "EngineConfig":
        """Build a config from ``environ`` (defaults to ``os.environ``)."""
        env = os.environ if environ is None else environ
        return cls(
            max_reveal_time=float(env.get("RPS_MAX_REVEAL_TIME", str(MAX_REVEAL_TIME))),
            min_stake=int(env.get("RPS_MIN_STAKE", str(MIN_STAKE))),
            timeout_claim_policy=TimeoutClaimPolicy(
                env.get("RPS_TIMEOUT_CLAIM_POLICY", TIMEOUT_CLAIM_POLICY).strip().lower()
            ),
        )
