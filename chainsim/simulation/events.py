"""
Simulation events.

The simulation is driven by discrete events from a host (a test, an
example script, a UI). Each event is a small immutable record; the
transition function ``chainsim.simulation.model.advance`` interprets it.

The host owns every source of non-determinism: round seeds and address
names arrive through events, never from inside the core.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class AdvanceRound:
    """Run one mining round. ``seed`` replaces the round seed when given."""
    seed: Optional[int] = None


@dataclass(frozen=True)
class SubmitTransaction:
    """
    Queue a payment.

    ``sender`` and ``receiver`` are address hashes or, failing that,
    address names.
    """
    sender: str
    receiver: str
    amount: int


@dataclass(frozen=True)
class SelectEraseTarget:
    """Point miner ``miner_id`` at a block to erase; ``""`` makes it honest."""
    miner_id: int
    block_hash: str


@dataclass(frozen=True)
class SeedRandom:
    """Set the round seed."""
    value: int


@dataclass(frozen=True)
class ProvideNames:
    """Create one address per name, in order."""
    names: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class AddMiner:
    """Add an honest miner."""
