"""
Chain Traversal and Fork Choice
================================

The simulated blockchain is really a block *tree*: whenever two miners
succeed in the same round, or an attacker builds on an older block, two
branches grow from one parent. This module answers the questions every node
has to answer about that tree:

- **Which blocks are tips?** A tip is a block with no known children -- the
  head of a candidate chain. The genesis predecessor ``EMPTY`` is trivially
  a tip of the empty tree.

- **What is the chain behind a tip?** Follow ``previous_block`` links back to
  ``EMPTY``. The result is ordered tip-to-root and includes both ends.

- **Which chain is canonical?** The longest-chain rule: the chain with the
  most links wins. Bitcoin uses most cumulative work; with a fixed toy
  difficulty every block carries equal work, so length is equivalent.

Tie-break:
----------
When several chains share the maximal length, the tip appearing *latest* in
the input order wins. Tips are kept in discovery order, so on an exact tie
the most recently discovered branch is canonical. The rule is arbitrary but
reproducible; it never depends on anything but the order of the input.

Chains are plain lists of ``BlockLink``. Membership and distance compare
links by hash, not by object identity.
"""

from __future__ import annotations

from typing import Container, Iterable, Optional, Sequence

from chainsim.core.block import EMPTY, BlockLink


def chain_for_block(link: BlockLink) -> list[BlockLink]:
    """
    Reconstruct the chain ending at *link*.

    Args:
        link: ``EMPTY`` or a reference to any block in the tree.

    Returns:
        Links from *link* back to ``EMPTY``, tip first, both inclusive. A
        block at height ``h`` yields ``h + 1`` links.
    """
    chain: list[BlockLink] = []
    current = link
    while current is not None:
        chain.append(current)
        current = current.previous
    return chain


def is_tip(link: BlockLink, known: Optional[Container[str]] = None) -> bool:
    """
    Check whether a link is the head of a candidate chain.

    Args:
        link: Link to test.
        known: Block hashes in scope. Children outside it are ignored, so a
            block stays a tip of a snapshot taken before its children were
            added. Defaults to every child ever recorded.

    Returns:
        True for ``EMPTY``; for a block, True iff it has no known children.
    """
    if link.is_empty:
        return True
    if known is None:
        return link.block.is_tip()
    return not any(child in known for child in link.block.next_blocks)


def tip_links(links: Iterable[BlockLink], known: Optional[Container[str]] = None) -> list[BlockLink]:
    """Restrict *links* to tips, preserving order."""
    return [link for link in links if is_tip(link, known)]


def longest_chain(links: Iterable[BlockLink], known: Optional[Container[str]] = None) -> list[BlockLink]:
    """
    Select the canonical chain among the tips in *links*.

    Non-tip links are ignored. Among chains of equal maximal length, the
    one whose tip appears last in *links* is returned.

    Args:
        links: Known links, typically the discovered tip set.
        known: Block hashes in scope for tip detection (see ``is_tip``).

    Returns:
        The longest chain (tip-to-root), or an empty list when *links*
        contains no tip.
    """
    best: list[BlockLink] = []
    for tip in tip_links(links, known):
        chain = chain_for_block(tip)
        if len(chain) >= len(best):
            best = chain
    return best


def canonical_tip(links: Iterable[BlockLink], known: Optional[Container[str]] = None) -> BlockLink:
    """Head of the longest chain, or ``EMPTY`` when there is none."""
    chain = longest_chain(links, known)
    return chain[0] if chain else EMPTY


def distance_to_block(chain: Sequence[BlockLink], target: BlockLink) -> int:
    """
    Count links from the head of *chain* up to and including *target*.

    Args:
        chain: Tip-to-root chain.
        target: Link to locate.

    Returns:
        1 when *target* is the head, 2 for its parent, and so on. When
        *target* is not on the chain, ``len(chain)`` is returned as a
        sentinel; check ``is_block_in_chain`` first.
    """
    for position, link in enumerate(chain):
        if link.hash == target.hash:
            return position + 1
    return len(chain)


def is_block_in_chain(target: BlockLink, chain: Iterable[BlockLink]) -> bool:
    """True iff some link in *chain* has the same hash as *target*."""
    target_hash = target.hash
    return any(link.hash == target_hash for link in chain)


def orphaned_links(old_chain: Sequence[BlockLink], new_chain: Sequence[BlockLink]) -> list[BlockLink]:
    """
    Links of *old_chain* that are not part of *new_chain*.

    After a reorganization these are the blocks that were canonical and no
    longer are, newest first. ``EMPTY`` is shared by every chain and never
    appears in the result.

    Args:
        old_chain: The previously canonical chain.
        new_chain: The newly canonical chain.

    Returns:
        Tip-to-root list of unwound links.
    """
    new_hashes = {link.hash for link in new_chain}
    return [link for link in old_chain if link.hash not in new_hashes]


def all_links(links: Iterable[BlockLink]) -> list[BlockLink]:
    """
    Every distinct block reachable from *links*, ordered by height.

    ``EMPTY`` is excluded. Blocks at the same height keep the order in
    which they were first reached.
    """
    seen: dict[str, BlockLink] = {}
    for link in links:
        for ancestor in chain_for_block(link):
            if not ancestor.is_empty and ancestor.hash not in seen:
                seen[ancestor.hash] = ancestor
    return sorted(seen.values(), key=lambda link: link.block.height)
