"""
Simulated Proof-of-Work Mining
===============================

This module implements one mining round of the simulation.

How a Round Works:
------------------
Real miners grind through nonces until a header hash falls below the
target. The simulator compresses that search into a single deterministic
attempt per miner per round:

1. Each miner chooses the parent it wants to extend (``block_to_mine``):
   - an honest miner extends the tip of the longest chain;
   - a malicious miner extends the nearest branch that excludes the block
     it wants erased (``chainsim.consensus.fork_search``).
2. The round seed, supplied by the host, and the miner's index give the
   miner's nonce: the first ``NONCE_LENGTH`` characters of
   SHA-256(str(index + seed)).
3. The candidate hash is SHA-256(tx.hash ++ parent.hash ++ nonce) -- exactly
   the hash the resulting Block will carry.
4. The attempt succeeds when the candidate hash meets the toy difficulty
   predicate. Miners that fail produce nothing and try again next round
   with a new seed.

Several miners may succeed in the same round. If they extended different
parents (or the same parent), the tree forks and the longest-chain rule
settles it in later rounds.

The round is a pure function of the model and the transaction: the core
never generates randomness. Committing the successful candidates to the
block tree is the caller's job (``chainsim.simulation.model.advance``).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from chainsim.consensus.difficulty import meets_difficulty
from chainsim.consensus.fork_choice import canonical_tip
from chainsim.consensus.fork_search import malicious_block_to_mine
from chainsim.consensus.rules import NONCE_LENGTH
from chainsim.core.block import EMPTY, Block, BlockLink, block_link_hash
from chainsim.crypto.hash import sha256_hex

if TYPE_CHECKING:
    from chainsim.core.transaction import Transaction
    from chainsim.simulation.model import Model

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Nonce and candidate hash
# ---------------------------------------------------------------------------

def compute_nonce(miner_index: int, seed: int) -> str:
    """
    Compute a miner's nonce for a round.

    Args:
        miner_index: Position of the miner in the model's miner list.
        seed: The round seed.

    Returns:
        The first ``NONCE_LENGTH`` hex characters of
        SHA-256(str(miner_index + seed)).
    """
    return sha256_hex(str(miner_index + seed))[:NONCE_LENGTH]


def candidate_block_hash(
    tx: "Transaction", previous_block: BlockLink, miner_index: int, seed: int
) -> str:
    """
    Hash of the block a miner would produce this round.

    Args:
        tx: Transaction being mined.
        previous_block: Parent the miner extends.
        miner_index: Position of the miner.
        seed: The round seed.

    Returns:
        64-character hex digest; equal to ``Block(tx, previous_block,
        compute_nonce(miner_index, seed)).hash``.
    """
    return sha256_hex(
        tx.hash + block_link_hash(previous_block) + compute_nonce(miner_index, seed)
    )


# ---------------------------------------------------------------------------
# Miners
# ---------------------------------------------------------------------------

class Miner:
    """
    A simulated miner.

    Attributes:
        block_to_erase: ``EMPTY`` for an honest miner. A block link turns the
            miner malicious: it then only extends branches that exclude
            that block.
    """

    __slots__ = ("block_to_erase",)

    def __init__(self, block_to_erase: BlockLink = EMPTY) -> None:
        self.block_to_erase = block_to_erase

    @property
    def is_malicious(self) -> bool:
        return not self.block_to_erase.is_empty

    def with_target(self, block_to_erase: BlockLink) -> Miner:
        """Return a copy of this miner targeting *block_to_erase*."""
        return Miner(block_to_erase=block_to_erase)

    def __repr__(self) -> str:
        if self.is_malicious:
            return f"Miner(erasing={self.block_to_erase.hash[:16]})"
        return "Miner(honest)"

    def __eq__(self, other) -> bool:
        if not isinstance(other, Miner):
            return NotImplemented
        return self.block_to_erase == other.block_to_erase

    def __hash__(self) -> int:
        return hash(self.block_to_erase)


class MinedBlock:
    """
    A successful mining attempt, not yet committed to the tree.

    Attributes:
        miner_index: Position of the miner that produced it.
        nonce: The miner's nonce for the round.
        hash: Candidate hash that met the difficulty predicate.
        parent: Link the block extends.
    """

    __slots__ = ("miner_index", "nonce", "hash", "parent")

    def __init__(self, miner_index: int, nonce: str, hash: str, parent: BlockLink) -> None:
        self.miner_index = miner_index
        self.nonce = nonce
        self.hash = hash
        self.parent = parent

    def to_block(self, tx: "Transaction") -> Block:
        """Build the Block this attempt describes."""
        return Block(transaction=tx, previous_block=self.parent, nonce=self.nonce)

    def as_tuple(self) -> tuple[str, str, BlockLink]:
        return (self.nonce, self.hash, self.parent)

    def __repr__(self) -> str:
        return (
            f"MinedBlock(miner={self.miner_index}, hash={self.hash[:16]}, "
            f"parent={self.parent.hash[:16]})"
        )


# ---------------------------------------------------------------------------
# Mining round
# ---------------------------------------------------------------------------

def block_to_mine(model: "Model", miner: Miner) -> BlockLink:
    """
    Choose the parent *miner* extends this round.

    Args:
        model: Current simulation state.
        miner: The miner.

    Returns:
        The longest-chain tip for an honest miner; the fork-search result for
        a malicious one. ``EMPTY`` when nothing better exists.
    """
    if not miner.is_malicious:
        return canonical_tip(model.discovered_blocks, model.tree.blocks)
    return malicious_block_to_mine(model.discovered_blocks, miner.block_to_erase, model.tree.blocks)


def mined_blocks_for(model: "Model", tx: "Transaction") -> list[MinedBlock]:
    """
    Run one simultaneous proof-of-work attempt for every miner.

    Args:
        model: Current simulation state (miners, tips and round seed).
        tx: Transaction every miner tries to include.

    Returns:
        Successful attempts in miner order. Empty when no miner's candidate
        hash met the difficulty predicate.
    """
    seed = model.round_seed
    results: list[MinedBlock] = []
    for index, miner in enumerate(model.miners):
        parent = block_to_mine(model, miner)
        nonce = compute_nonce(index, seed)
        candidate = candidate_block_hash(tx, parent, index, seed)
        if meets_difficulty(candidate):
            logger.debug(
                "Miner %d found %s on %s (nonce %s)", index, candidate[:16], parent.hash[:16], nonce,
            )
            results.append(MinedBlock(index, nonce, candidate, parent))
        else:
            logger.debug("Miner %d missed with %s", index, candidate[:16])
    return results
