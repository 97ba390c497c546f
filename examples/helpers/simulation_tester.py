"""
Simulation Test Helper
=======================

Provides a SimulationTester class for programmatically creating scenarios
such as funded address books, chains of a given height and erase attacks.

The helper plays the part of the host the core leaves outside: it supplies
address names and round seeds. Seeds come from a ``random.Random`` seeded
by the caller, so every scenario is reproducible.

Usage:
    from examples.helpers.simulation_tester import SimulationTester

    # Three addresses, three miners, five canonical blocks
    sim, rng = SimulationTester.create_simulation(["alice", "bob", "carol"])
    SimulationTester.mine_blocks(sim, rng, 5)

    # Point miner 0 at the second canonical block
    SimulationTester.start_erase_attack(sim, miner_id=0, depth=2)
"""

from __future__ import annotations

import os
import random
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from chainsim.simulation.model import Simulation


MAX_ROUNDS = 1000
"""Upper bound on rounds spent waiting for a condition."""


class SimulationTester:
    """
    Helper class for building simulation scenarios.

    All methods are static -- no instance state is needed. The class serves
    as a namespace for related helper functions.
    """

    @staticmethod
    def create_simulation(
        names: list[str],
        miner_count: int = 3,
        confirmations_required: int = 0,
        initial_balance: int = 100,
        seed: int = 2024,
    ) -> tuple[Simulation, random.Random]:
        """
        Create a simulation with one address per name.

        Args:
            names: Address names, supplied the way a name provider would.
            miner_count: Number of (honest) miners.
            confirmations_required: Finality lag for balances.
            initial_balance: Baseline for each address.
            seed: Seed for the round-seed generator.

        Returns:
            A tuple of (simulation, rng) where rng yields round seeds.
        """
        rng = random.Random(seed)
        sim = Simulation(
            miner_count=miner_count,
            confirmations_required=confirmations_required,
            initial_balance=initial_balance,
            names=names,
            seed=rng.randrange(1 << 30),
        )
        return sim, rng

    @staticmethod
    def seeds(rng: random.Random, count: int = MAX_ROUNDS):
        """Yield *count* round seeds from *rng*."""
        for _ in range(count):
            yield rng.randrange(1 << 30)

    @staticmethod
    def mine_blocks(sim: Simulation, rng: random.Random, count: int, amount: int = 1) -> int:
        """
        Grow the canonical chain by *count* blocks.

        A small payment between the first two addresses is queued before
        each round that needs one, so rounds are never skipped for lack of
        a transaction.

        Returns:
            The number of rounds it took.
        """
        names = [a.name for a in sim.model.address_book]
        target = sim.model.tree.height + count
        rounds = 0
        for seed in SimulationTester.seeds(rng):
            if sim.model.tree.height >= target:
                break
            if sim.model.pending_transaction() is None:
                sender, receiver = (names[0], names[1]) if rounds % 2 == 0 else (names[1], names[0])
                sim.submit(sender, receiver, amount)
            sim.advance_round(seed)
            rounds += 1
        return rounds

    @staticmethod
    def start_erase_attack(sim: Simulation, miner_id: int, depth: int) -> str:
        """
        Make *miner_id* malicious, targeting the canonical block *depth*
        links below the tip (1 = the tip itself).

        Returns:
            The hash of the targeted block.
        """
        erasable = sim.model.erasable_blocks()
        target = erasable[min(depth, len(erasable)) - 1]
        sim.select_erase_target(miner_id, target.hash)
        return target.hash
