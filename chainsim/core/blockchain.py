"""
Block Tree Storage
===================

This module implements ``BlockTree``, the arena that owns every block the
simulation has accepted. It is the single source of truth for the shape of
the tree:

- **Block Storage and Indexing**: Blocks are stored in a hash-map keyed by
  block hash, so any block can be found from the identifier a host or a
  miner's erase target refers to.

- **Chain Tips**: The tree keeps the list of discovered tip links -- blocks
  with no known children -- in discovery order. A fresh tree has a single
  tip, the genesis predecessor ``EMPTY``. Adding a block removes its parent
  from the tip list (if present) and appends the new block.

- **Best Chain**: The canonical chain is the longest chain behind the tips
  (see ``chainsim.consensus.fork_choice``).

The tree is append-only. Blocks are never pruned, and their content never
changes; the only bookkeeping written after creation is a parent's
``next_blocks`` list, and only ``add_block`` writes it.

- **Snapshots**: ``copy()`` returns a tree with its own index and tip list
  over the same Block objects. Blocks added to the copy do not appear in
  the original. Tip detection is scoped to the tree's own index, so a
  child recorded in a shared ``next_blocks`` list only counts in the trees
  that hold it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterator

from chainsim.consensus.fork_choice import all_links, is_tip, longest_chain
from chainsim.core.block import EMPTY, BlockLink

if TYPE_CHECKING:
    from chainsim.core.block import Block

logger = logging.getLogger(__name__)


class BlockTree:
    """
    Append-only tree of accepted blocks.

    Attributes:
        blocks: Hash-map of all known blocks, keyed by block hash.
        tips: Links with no known children, in discovery order.
    """

    def __init__(self) -> None:
        self.blocks: dict[str, Block] = {}
        self.tips: list[BlockLink] = [EMPTY]

    def copy(self) -> BlockTree:
        """Return a snapshot sharing the blocks but not the index or tips."""
        tree = BlockTree()
        tree.blocks = dict(self.blocks)
        tree.tips = list(self.tips)
        return tree

    # ------------------------------------------------------------------
    # Block storage and retrieval
    # ------------------------------------------------------------------

    def add_block(self, block: "Block") -> bool:
        """
        Attempt to add a new block to the tree.

        The block is accepted when its hash is new and its parent is either
        ``EMPTY`` or a block already in the tree.

        Args:
            block: The candidate block.

        Returns:
            True if the block was accepted, False otherwise.
        """
        block_hash = block.hash

        if block_hash in self.blocks:
            logger.debug("Block %s already known", block_hash[:16])
            return False

        parent_link = block.previous_block
        if not parent_link.is_empty and parent_link.hash not in self.blocks:
            logger.warning(
                "Block %s rejected: unknown parent %s", block_hash[:16], parent_link.hash[:16],
            )
            return False

        if block.calculate_hash() != block_hash:
            logger.warning("Block %s rejected: cached hash does not match content", block_hash[:16])
            return False

        self.blocks[block_hash] = block

        # The parent is no longer a tip; the new block is.
        parent = parent_link.block
        if parent is not None and block_hash not in parent.next_blocks:
            parent.next_blocks.append(block_hash)
        self.tips = [tip for tip in self.tips if tip.hash != parent_link.hash]
        self.tips.append(block.link())

        logger.info(
            "Block %s added at height %d on %s",
            block_hash[:16], block.height, parent_link.hash[:16],
        )
        return True

    def get_block(self, block_hash: str) -> "Block | None":
        """
        Retrieve a block by its hash.

        Returns:
            The Block object, or None if not found.
        """
        return self.blocks.get(block_hash)

    def get_link(self, block_hash: str) -> BlockLink:
        """
        Return a link to the block with *block_hash*.

        Returns:
            A BlockRef, or ``EMPTY`` when the hash is unknown.
        """
        block = self.blocks.get(block_hash)
        return EMPTY if block is None else block.link()

    # ------------------------------------------------------------------
    # Chain tips and navigation
    # ------------------------------------------------------------------

    def best_chain(self) -> list[BlockLink]:
        """The canonical chain, tip first, ending with ``EMPTY``."""
        return longest_chain(self.tips, self.blocks)

    def best_tip(self) -> BlockLink:
        chain = self.best_chain()
        return chain[0] if chain else EMPTY

    def is_tip(self, link: BlockLink) -> bool:
        """True if *link* has no children in this tree."""
        return is_tip(link, self.blocks)

    @property
    def height(self) -> int:
        """Number of blocks on the canonical chain (0 for an empty tree)."""
        return max(len(self.best_chain()) - 1, 0)

    def all_links(self) -> list[BlockLink]:
        """Links to every stored block, ordered by height."""
        return all_links(self.tips)

    def children_of(self, link: BlockLink) -> list["Block"]:
        """Known children of *link*, in the order they were added."""
        if link.is_empty:
            return [b for b in self.blocks.values() if b.previous_block.is_empty]
        return [self.blocks[h] for h in link.block.next_blocks if h in self.blocks]

    def __len__(self) -> int:
        return len(self.blocks)

    def __contains__(self, block_hash: str) -> bool:
        return block_hash in self.blocks

    def __iter__(self) -> Iterator["Block"]:
        return iter(list(self.blocks.values()))

    def __repr__(self) -> str:
        return f"BlockTree(blocks={len(self.blocks)}, tips={len(self.tips)}, height={self.height})"
