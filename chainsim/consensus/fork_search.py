"""
Malicious Fork Search
======================

A malicious miner picks one block already on the chain and tries to erase
it from history. The only way to do that under the longest-chain rule is
to grow a competing branch, rooted before the target, until it is longer
than the branch that contains the target. Every block the attacker mines
must therefore extend such a competing branch.

The search:

1. The *fork point* is the target's parent: the last block both branches
   share.
2. Among the chains behind the known tips, keep those that contain the fork
   point and do not contain the target -- branches that left the honest
   chain exactly at the fork point.
3. Of those, pick the chain whose head is *nearest* to the fork point
   (smallest distance from the head down to the fork point). Ties go to
   the tip appearing latest in the input order, matching the longest-chain
   tie-break.
4. Mine on that chain's head. With no competing branch yet, mine directly
   on the fork point, which starts one.

Choosing the nearest fork models an attacker that keeps a single race
going. Picking the *farthest* fork instead would describe a different attack
model and is not offered here.

Whatever the search returns, the chain behind it never contains the target.
"""

from __future__ import annotations

import logging
from typing import Container, Iterable, Optional

from chainsim.consensus.fork_choice import (
    chain_for_block,
    distance_to_block,
    is_block_in_chain,
    longest_chain,
    tip_links,
)
from chainsim.core.block import EMPTY, BlockLink

logger = logging.getLogger(__name__)


def competing_chains(
    links: Iterable[BlockLink],
    block_to_erase: BlockLink,
    known: Optional[Container[str]] = None,
) -> list[list[BlockLink]]:
    """
    Chains behind the known tips that fork off just before *block_to_erase*.

    Args:
        links: Known links; non-tips are ignored.
        block_to_erase: The block the attacker wants removed.
        known: Block hashes in scope for tip detection.

    Returns:
        Tip-to-root chains containing the target's parent but not the target,
        in tip order.
    """
    fork_point = block_to_erase.previous
    if fork_point is None:
        return []
    chains = []
    for tip in tip_links(links, known):
        chain = chain_for_block(tip)
        if is_block_in_chain(fork_point, chain) and not is_block_in_chain(block_to_erase, chain):
            chains.append(chain)
    return chains


def malicious_block_to_mine(
    links: Iterable[BlockLink],
    block_to_erase: BlockLink,
    known: Optional[Container[str]] = None,
) -> BlockLink:
    """
    Choose the parent an attacker should extend to erase *block_to_erase*.

    Args:
        links: Known links, typically the discovered tip set.
        block_to_erase: Target of the attack. Must be a block, not ``EMPTY``.
        known: Block hashes in scope for tip detection.

    Returns:
        The head of the nearest competing branch, or the target's parent
        when no competing branch exists yet. ``EMPTY`` is returned unchanged
        for an ``EMPTY`` target, which has nothing to erase.
    """
    if block_to_erase.is_empty:
        return EMPTY

    fork_point = block_to_erase.previous
    best_chain: list[BlockLink] | None = None
    best_distance = 0
    for chain in competing_chains(links, block_to_erase, known):
        distance = distance_to_block(chain, fork_point)
        if best_chain is None or distance <= best_distance:
            best_chain = chain
            best_distance = distance

    if best_chain is None:
        logger.debug(
            "No competing branch for %s; mining on fork point %s",
            block_to_erase.hash[:16], fork_point.hash[:16],
        )
        return fork_point

    logger.debug(
        "Competing branch for %s found at distance %d (head %s)",
        block_to_erase.hash[:16], best_distance, best_chain[0].hash[:16],
    )
    return best_chain[0]


def erasable_blocks(links: Iterable[BlockLink], known: Optional[Container[str]] = None) -> list[BlockLink]:
    """
    Blocks an attacker can target: the canonical chain without ``EMPTY``.

    Returns:
        Tip-to-root list of block links.
    """
    return [link for link in longest_chain(links, known) if not link.is_empty]
