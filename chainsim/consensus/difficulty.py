"""
Toy Difficulty Predicate
=========================

In Bitcoin a block is valid when its header hash, read as a 256-bit
integer, is below the target encoded in the header's difficulty bits.
The simulator replaces that with a prefix test on the hex digest: a hash
"meets difficulty" when it starts with ``DIFFICULTY_PREFIX``.

Each additional leading hex zero makes a random hash 16 times less likely
to pass, which mirrors how lowering a Bitcoin target by a factor of 16
raises the expected work by the same factor. There is no adjustment
algorithm: the prefix is fixed for the whole run.
"""

from __future__ import annotations

from chainsim.consensus.rules import DIFFICULTY_PREFIX


def meets_difficulty(block_hash: str, prefix: str = DIFFICULTY_PREFIX) -> bool:
    """
    Check whether a candidate hash satisfies the toy difficulty predicate.

    Args:
        block_hash: Hex digest of a candidate block.
        prefix: Required leading characters (default ``"0"``).

    Returns:
        True iff the hash starts with the prefix.

    Examples:
        >>> meets_difficulty("0abcd")
        True
        >>> meets_difficulty("1abcd")
        False
    """
    return block_hash.startswith(prefix)


def success_probability(prefix: str = DIFFICULTY_PREFIX) -> float:
    """
    Probability that a single uniformly random hex hash meets the predicate.

    Args:
        prefix: Required leading characters.

    Returns:
        16 ** -len(prefix).
    """
    return 16.0 ** -len(prefix)
