"""
Block data structures.

This module implements the two structures that make up the block tree:

- **BlockLink**: a reference to a predecessor. It has exactly two variants:
  ``EmptyLink`` -- the genesis predecessor, a singleton exposed as ``EMPTY``
  -- and ``BlockRef``, a shared read-only reference to a Block. Many links
  may point at the same Block; none of them owns it.

- **Block**: one transaction, the link to its predecessor and the nonce of
  the mining attempt that produced it. The block hash is computed once at
  construction from those three fields and cached.

Because a block can only be created pointing at an existing link and its
content is read-only, following ``previous_block`` always terminates at
``EMPTY``: the tree is acyclic by construction.

The one piece of mutable bookkeeping is ``next_blocks``, the hashes of known
children, used for tip detection. It is not part of the hash and only the
block tree (``chainsim.core.blockchain.BlockTree``) appends to it.
"""

from __future__ import annotations

from chainsim.consensus.rules import EMPTY_LINK_PREIMAGE
from chainsim.core.transaction import Transaction
from chainsim.crypto.hash import sha256_hex


EMPTY_LINK_HASH = sha256_hex(EMPTY_LINK_PREIMAGE)
"""Hash of the genesis predecessor: SHA-256 of the literal string "0"."""


# ---------------------------------------------------------------------------
# BlockLink
# ---------------------------------------------------------------------------

class BlockLink:
    """
    A reference to a predecessor block, or the genesis sentinel.

    Links compare and hash by the hash of what they reference, never by
    object identity.
    """

    __slots__ = ()

    @property
    def is_empty(self) -> bool:
        raise NotImplementedError

    @property
    def hash(self) -> str:
        raise NotImplementedError

    @property
    def block(self) -> "Block | None":
        raise NotImplementedError

    @property
    def previous(self) -> "BlockLink | None":
        """The predecessor link, or None past the root."""
        raise NotImplementedError

    def __eq__(self, other) -> bool:
        if not isinstance(other, BlockLink):
            return NotImplemented
        return self.hash == other.hash

    def __hash__(self) -> int:
        return hash(self.hash)


class EmptyLink(BlockLink):
    """The genesis predecessor. Use the module-level ``EMPTY`` instance."""

    __slots__ = ()

    @property
    def is_empty(self) -> bool:
        return True

    @property
    def hash(self) -> str:
        return EMPTY_LINK_HASH

    @property
    def block(self) -> None:
        return None

    @property
    def previous(self) -> None:
        return None

    def __repr__(self) -> str:
        return "EMPTY"


EMPTY = EmptyLink()


class BlockRef(BlockLink):
    """A shared, read-only reference to an existing Block."""

    __slots__ = ("_block",)

    def __init__(self, block: "Block"):
        if not isinstance(block, Block):
            raise TypeError(f"BlockRef requires a Block, got {type(block).__name__}")
        self._block = block

    @property
    def is_empty(self) -> bool:
        return False

    @property
    def hash(self) -> str:
        # Cached on the block, never recomputed here.
        return self._block.hash

    @property
    def block(self) -> "Block":
        return self._block

    @property
    def previous(self) -> BlockLink:
        return self._block.previous_block

    def __repr__(self) -> str:
        return f"BlockRef({self._block.hash[:16]})"


def block_link_hash(link: BlockLink) -> str:
    """
    Return the hash a link contributes to a child's preimage.

    Args:
        link: ``EMPTY`` or a ``BlockRef``.

    Returns:
        ``EMPTY_LINK_HASH`` for the genesis predecessor, otherwise the cached
        hash of the referenced block.
    """
    return link.hash


# ---------------------------------------------------------------------------
# Block
# ---------------------------------------------------------------------------

class Block:
    """
    An immutable block in the candidate tree.

    Attributes:
        transaction: The single payment this block records.
        previous_block: Link to the predecessor (``EMPTY`` for a first block).
        nonce: Nonce of the mining attempt that produced this block.
        hash: Cached SHA-256 of ``transaction.hash ++ previous.hash ++ nonce``.
        height: Number of blocks from the root up to and including this one.
        next_blocks: Hashes of known children; empty for a chain tip.
    """

    __slots__ = ("_transaction", "_previous_block", "_nonce", "_hash", "_height", "next_blocks")

    def __init__(self, transaction: Transaction, previous_block: BlockLink, nonce: str):
        """
        Create a block and compute its hash.

        Args:
            transaction: Payload.
            previous_block: Predecessor link; must already exist.
            nonce: Nonce string from the mining attempt.
        """
        if not isinstance(previous_block, BlockLink):
            raise TypeError("previous_block must be a BlockLink")
        self._transaction = transaction
        self._previous_block = previous_block
        self._nonce = nonce
        self._hash = self.calculate_hash()
        parent = previous_block.block
        self._height = 1 if parent is None else parent.height + 1
        self.next_blocks: list[str] = []

    @property
    def transaction(self) -> Transaction:
        return self._transaction

    @property
    def previous_block(self) -> BlockLink:
        return self._previous_block

    @property
    def nonce(self) -> str:
        return self._nonce

    @property
    def hash(self) -> str:
        return self._hash

    @property
    def height(self) -> int:
        return self._height

    def calculate_hash(self) -> str:
        """
        Recompute the hash from the block's fields.

        Used once at construction; afterwards it only serves to verify that
        the cached ``hash`` still matches the content.

        Returns:
            64-character lowercase hex string.
        """
        return sha256_hex(
            self._transaction.hash + block_link_hash(self._previous_block) + self._nonce
        )

    def is_tip(self) -> bool:
        return not self.next_blocks

    def link(self) -> BlockRef:
        """Return a new shared reference to this block."""
        return BlockRef(self)

    def to_dict(self) -> dict:
        return {
            "hash": self._hash,
            "previous_block": self._previous_block.hash,
            "nonce": self._nonce,
            "height": self._height,
            "transaction": self._transaction.to_dict(),
            "next_blocks": list(self.next_blocks),
        }

    def __repr__(self) -> str:
        return (
            f"Block(height={self._height}, hash={self._hash[:16]}..., "
            f"tx={self._transaction!r})"
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, Block):
            return NotImplemented
        return self._hash == other._hash

    def __hash__(self) -> int:
        return hash(self._hash)
