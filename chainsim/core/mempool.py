"""
Transaction Pool
=================

The transaction pool is the holding area for payments that have been
submitted but not yet mined. It plays the part of a Bitcoin node's mempool
with two simplifications:

- **First-in, first-out**: there are no fees, so there is nothing to
  prioritize by. Miners take the oldest transaction that is valid against
  the confirmed canonical chain.

- **Validation on selection**: transactions are not checked on entry. An
  overdrawn or self-addressed payment sits in the pool and is skipped at
  selection time, so it can become mineable later (for example once the
  sender has received funds).

After a chain reorganization the transactions of unwound blocks are
returned to the *front* of the queue, in their original order, the way a
node puts unwound transactions back into its mempool.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import TYPE_CHECKING, Iterable, Iterator, Optional, Sequence

from chainsim.consensus.validation import next_tx

if TYPE_CHECKING:
    from chainsim.core.block import Block, BlockLink
    from chainsim.core.transaction import Transaction

logger = logging.getLogger(__name__)


class TransactionPool:
    """
    FIFO queue of pending transactions.

    Duplicate payments are allowed: the pool is a queue, not a set. Removal
    by hash removes the oldest matching entry only.

    Attributes:
        _queue: Pending transactions, oldest first.
    """

    def __init__(self, transactions: Iterable["Transaction"] = ()) -> None:
        self._queue: deque[Transaction] = deque(transactions)

    def add_transaction(self, tx: "Transaction") -> None:
        """Append *tx* to the back of the queue."""
        self._queue.append(tx)
        logger.info("Queued transaction %s (%d pending)", tx.hash[:16], len(self._queue))

    def remove_transaction(self, tx_hash: str) -> Optional["Transaction"]:
        """
        Remove the oldest transaction with hash *tx_hash*.

        Returns:
            The removed transaction, or None if no entry matched.
        """
        for tx in self._queue:
            if tx.hash == tx_hash:
                self._queue.remove(tx)
                logger.debug("Removed transaction %s from pool", tx_hash[:16])
                return tx
        return None

    def next_valid(self, chain: Sequence["BlockLink"]) -> Optional["Transaction"]:
        """
        Return the oldest transaction valid against *chain* without removing it.
        """
        return next_tx(chain, self._queue)

    def clear_confirmed(self, block: "Block") -> None:
        """Drop the transaction recorded in *block*, if it is pending."""
        self.remove_transaction(block.transaction.hash)

    def requeue(self, transactions: Iterable["Transaction"]) -> None:
        """
        Put *transactions* back at the front of the queue.

        The given order is preserved: the first element becomes the oldest
        pending transaction.
        """
        restored = list(transactions)
        self._queue.extendleft(reversed(restored))
        if restored:
            logger.info("Returned %d transaction(s) to the pool", len(restored))

    def copy(self) -> TransactionPool:
        return TransactionPool(self._queue)

    @property
    def transactions(self) -> list["Transaction"]:
        return list(self._queue)

    def __len__(self) -> int:
        return len(self._queue)

    def __iter__(self) -> Iterator["Transaction"]:
        return iter(list(self._queue))

    def __contains__(self, tx: "Transaction") -> bool:
        return any(pending.hash == tx.hash for pending in self._queue)

    def __repr__(self) -> str:
        return f"TransactionPool(size={len(self._queue)})"
