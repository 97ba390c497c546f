"""
Simulation CLI Visualizer
==========================

This module provides a colorful command-line view of a simulation using
the ``rich`` library. It is intended as an educational tool: watching the
block tree grow, fork and reorganize makes the longest-chain rule and the
erase attack easy to follow.

The visualizer does not modify any simulation state; it is purely a
read-only presentation layer.

Features:

- **Block tree**: every accepted block, branches included. Blocks on the
  canonical chain are highlighted, blocks targeted by a malicious miner are
  flagged with the attacking miners' indexes.

- **Balances table**: each address's baseline and its balance on the
  confirmed canonical chain.

- **Miners table**: each miner's mode and the parent it would extend in the
  next round.

- **Pool table**: pending transactions with their current validity.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from rich.console import Console
from rich.table import Table
from rich.tree import Tree

from chainsim.consensus.validation import is_valid_tx
from chainsim.core.block import EMPTY
from chainsim.mining.miner import block_to_mine

if TYPE_CHECKING:
    from chainsim.core.block import Block
    from chainsim.simulation.model import Model

logger = logging.getLogger(__name__)


def _truncate_hash(h: Optional[str], length: int = 16) -> str:
    """Return the first *length* characters of a hex hash."""
    if h is None:
        return "None"
    return h[:length]


class SimulationVisualizer:
    """
    Rich CLI visualizer for a simulation Model.

    Attributes:
        model: The Model to render. Replace it to render a later state.
        console: A ``rich.console.Console`` used for all output.
    """

    def __init__(self, model: "Model", console: Optional[Console] = None) -> None:
        self.model = model
        self.console = console if console is not None else Console()

    # ------------------------------------------------------------------
    # Block tree
    # ------------------------------------------------------------------

    def build_tree(self) -> Tree:
        """
        Build the ``rich`` tree of all blocks, rooted at the genesis sentinel.
        """
        canonical = {link.hash for link in self.model.canonical_chain()}
        targets: dict[str, list[int]] = {}
        for index, miner in enumerate(self.model.miners):
            if miner.is_malicious:
                targets.setdefault(miner.block_to_erase.hash, []).append(index)

        root = Tree(f"[bold]genesis[/bold] {_truncate_hash(EMPTY.hash)}")
        stack = [(root, block) for block in self.model.tree.children_of(EMPTY)]
        stack.reverse()
        while stack:
            parent_node, block = stack.pop()
            node = parent_node.add(self._block_label(block, canonical, targets))
            children = self.model.tree.children_of(block.link())
            stack.extend((node, child) for child in reversed(children))
        return root

    def _block_label(self, block: "Block", canonical: set, targets: dict) -> str:
        tx = block.transaction
        label = (
            f"#{block.height} {_truncate_hash(block.hash)} "
            f"{tx.sender.name or '?'} -> {tx.receiver.name or '?'} ({tx.amount})"
        )
        if block.hash in canonical:
            label = f"[bold green]{label}[/bold green]"
        else:
            label = f"[dim]{label}[/dim]"
        if block.hash in targets:
            miners = ", ".join(str(i) for i in targets[block.hash])
            label += f" [red]targeted by miner {miners}[/red]"
        return label

    def print_tree(self) -> None:
        if not len(self.model.tree):
            self.console.print("[yellow]No blocks mined yet.[/yellow]")
            return
        self.console.print(self.build_tree())

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------

    def balances_table(self) -> Table:
        table = Table(title="Balances", header_style="bold cyan", border_style="blue")
        table.add_column("Name")
        table.add_column("Address")
        table.add_column("Baseline", justify="right")
        table.add_column("Confirmed", justify="right")
        for address in self.model.address_book:
            table.add_row(
                address.name,
                _truncate_hash(address.hash, 12),
                str(address.balance),
                str(self.model.balance_of(address)),
            )
        return table

    def miners_table(self) -> Table:
        table = Table(title="Miners", header_style="bold cyan", border_style="blue")
        table.add_column("#", justify="right")
        table.add_column("Mode")
        table.add_column("Erasing")
        table.add_column("Mines on")
        for index, miner in enumerate(self.model.miners):
            parent = block_to_mine(self.model, miner)
            table.add_row(
                str(index),
                "[red]malicious[/red]" if miner.is_malicious else "honest",
                _truncate_hash(miner.block_to_erase.hash) if miner.is_malicious else "-",
                "genesis" if parent.is_empty else _truncate_hash(parent.hash),
            )
        return table

    def pool_table(self) -> Table:
        table = Table(title="Transaction pool", header_style="bold cyan", border_style="blue")
        table.add_column("Hash")
        table.add_column("From")
        table.add_column("To")
        table.add_column("Amount", justify="right")
        table.add_column("Valid")
        chain = self.model.confirmed_chain()
        for tx in self.model.transaction_pool:
            table.add_row(
                _truncate_hash(tx.hash),
                tx.sender.name or "?",
                tx.receiver.name or "?",
                str(tx.amount),
                "yes" if is_valid_tx(chain, tx) else "[red]no[/red]",
            )
        return table

    def print_summary(self) -> None:
        """Print the block tree followed by the balances, miners and pool tables."""
        self.print_tree()
        self.console.print(self.balances_table())
        self.console.print(self.miners_table())
        if len(self.model.transaction_pool):
            self.console.print(self.pool_table())
