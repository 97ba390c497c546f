"""
Example 01: Honest Mining
==========================

This example demonstrates the basic simulation loop:
1. Create a simulation with three named addresses and three honest miners.
2. Queue a few payments.
3. Advance rounds with seeds from a reproducible generator until every
   payment is mined.
4. Display the block tree and the derived balances.

Each round every miner makes one proof-of-work attempt. When two miners
succeed in the same round the tree forks; the longest-chain rule decides
which branch is canonical once one of them grows.

Usage:
    python -m examples.01_honest_mining
"""

import logging
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from chainsim.utils.visualizer import SimulationVisualizer
from examples.helpers.simulation_tester import SimulationTester


def main():
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    print("=" * 60)
    print("Proof-of-Work Simulation - Honest Mining Example")
    print("=" * 60)

    # Step 1: addresses and miners.
    print("\n[Step 1] Creating simulation...")
    sim, rng = SimulationTester.create_simulation(["alice", "bob", "carol"])
    for address in sim.model.address_book:
        print(f"  {address.name:6s} {address.hash}  baseline {address.balance}")

    # Step 2: payments. The last one overdraws and is never mined.
    print("\n[Step 2] Queueing payments...")
    sim.submit("alice", "bob", 30)
    sim.submit("bob", "carol", 50)
    sim.submit("carol", "alice", 500)
    print(f"  Pending: {len(sim.model.transaction_pool)}")

    # Step 3: mine until only the invalid payment is left.
    print("\n[Step 3] Mining...")
    done = sim.run_until(
        lambda model: model.pending_transaction() is None,
        SimulationTester.seeds(rng),
    )
    print(f"  Finished: {done}, canonical height {sim.model.tree.height}, "
          f"blocks in tree {len(sim.model.tree)}")

    # Step 4: results.
    print("\n[Step 4] Final state:")
    SimulationVisualizer(sim.model).print_summary()


if __name__ == "__main__":
    main()
