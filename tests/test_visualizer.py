"""
Tests for the Simulation Visualizer
=====================================

Tests cover:
- Rendering an empty simulation
- Rendering the block tree, balances, miners and pool after mining
"""

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from rich.console import Console

from chainsim.simulation.model import Simulation
from chainsim.utils.visualizer import SimulationVisualizer


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def console():
    """A console that records output instead of writing to a terminal."""
    return Console(record=True, width=160, color_system=None)


@pytest.fixture
def mined_sim():
    """A simulation with at least one mined block and a pending overdraft."""
    sim = Simulation(names=["alice", "bob"], seed=21)
    sim.submit("alice", "bob", 25)
    assert sim.run_until(lambda m: m.tree.height >= 1, range(2000))
    sim.submit("bob", "alice", 10_000)
    return sim


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------

class TestSimulationVisualizer:
    """Tests for SimulationVisualizer output."""

    def test_empty_tree_message(self, console):
        """With no blocks a placeholder message is printed."""
        sim = Simulation(names=["alice"])
        SimulationVisualizer(sim.model, console=console).print_tree()
        assert "No blocks mined yet" in console.export_text()

    def test_summary_contents(self, mined_sim, console):
        """The summary shows the tree, balances, miners and pool."""
        SimulationVisualizer(mined_sim.model, console=console).print_summary()
        text = console.export_text()
        assert "genesis" in text
        assert "alice -> bob (25)" in text
        assert "Balances" in text
        assert "75" in text
        assert "Miners" in text
        assert "honest" in text
        assert "Transaction pool" in text

    def test_target_is_flagged(self, mined_sim, console):
        """Blocks under attack are marked with the attacking miner."""
        target = mined_sim.model.erasable_blocks()[0]
        mined_sim.select_erase_target(1, target.hash)
        SimulationVisualizer(mined_sim.model, console=console).print_summary()
        text = console.export_text()
        assert "targeted by miner 1" in text
        assert "malicious" in text

    def test_tree_has_every_block(self, mined_sim):
        """The rendered tree has one node per block."""
        root = SimulationVisualizer(mined_sim.model).build_tree()

        def count(node):
            return len(node.children) + sum(count(child) for child in node.children)

        assert count(root) == len(mined_sim.model.tree)
