"""
Example 02: Erasing a Block
============================

This example demonstrates a history-rewriting attack:
1. Build a canonical chain of several blocks with honest miners.
2. Turn two of three miners malicious, targeting a block two links below
   the tip.
3. Keep mining. The attackers build a branch that forks off just before the
   target; once it is longer than the honest branch, the longest-chain rule
   makes it canonical and the target disappears from history.
4. Show the reorganized tree: the transaction of the erased block is back
   in the pool (or re-mined on the new branch).

With a majority of miners, the attack succeeds given enough rounds. That
is why a payment is only considered final after several confirmations.

Usage:
    python -m examples.02_erase_attack
"""

import logging
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from chainsim.consensus.fork_choice import is_block_in_chain
from chainsim.utils.visualizer import SimulationVisualizer
from examples.helpers.simulation_tester import SimulationTester


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    print("=" * 60)
    print("Proof-of-Work Simulation - Erase Attack Example")
    print("=" * 60)

    print("\n[Step 1] Building a canonical chain of 4 blocks...")
    sim, rng = SimulationTester.create_simulation(["alice", "bob"], seed=7)
    SimulationTester.mine_blocks(sim, rng, 4)
    print(f"  Canonical height: {sim.model.tree.height}")

    print("\n[Step 2] Miners 0 and 1 turn malicious...")
    target_hash = SimulationTester.start_erase_attack(sim, miner_id=0, depth=2)
    sim.select_erase_target(1, target_hash)
    target = sim.model.tree.get_link(target_hash)
    print(f"  Target: {target_hash[:16]} ({target.block.transaction!r})")

    print("\n[Step 3] Mining until the target leaves the canonical chain...")
    # Keep transactions flowing so rounds are not skipped.
    erased = False
    for seed in SimulationTester.seeds(rng):
        if sim.model.pending_transaction() is None:
            sim.submit("alice", "bob", 1)
        sim.advance_round(seed)
        if not is_block_in_chain(target, sim.canonical_chain()):
            erased = True
            break
    print(f"  Erased: {erased}")

    print("\n[Step 4] Final state:")
    SimulationVisualizer(sim.model).print_summary()


if __name__ == "__main__":
    main()
