"""
Pytest configuration and shared fixtures.

Puts ``src/app`` on ``sys.path`` so tests import the flat modules directly.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
APP_DIR = ROOT / "src" / "app"
sys.path.insert(0, str(APP_DIR))

from custody import InMemoryLedger  # type: ignore[import-not-found]  # noqa: E402
from game_config import EngineConfig, TimeoutClaimPolicy  # type: ignore[import-not-found]  # noqa: E402
from game_engine import GameEngine  # type: ignore[import-not-found]  # noqa: E402


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def ledger() -> InMemoryLedger:
    return InMemoryLedger(balances={"alice": 1_000, "bob": 1_000, "carol": 1_000})


@pytest.fixture
def config() -> EngineConfig:
    # Explicit values so RPS_* environment overrides never leak into tests.
    return EngineConfig(max_reveal_time=600, min_stake=1, timeout_claim_policy=TimeoutClaimPolicy.REVEALER)


@pytest.fixture
def engine(ledger: InMemoryLedger, config: EngineConfig, clock: FakeClock) -> GameEngine:
    return GameEngine(ledger, config=config, clock=clock)


@pytest.fixture
def joined(engine: GameEngine) -> GameEngine:
    engine.join("alice", 100)
    engine.join("bob", 100)
    return engine
