"""
Tests for TransactionPool
===========================

Tests cover:
- FIFO ordering and duplicates
- Removal by hash
- Selection without removal
- Requeueing unwound transactions
- Copy independence
"""

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from chainsim.core.address import Address
from chainsim.core.block import EMPTY, Block
from chainsim.core.mempool import TransactionPool
from chainsim.core.transaction import Transaction


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def alice():
    return Address("alice", "a", 10)


@pytest.fixture
def bob():
    return Address("bob", "b", 10)


@pytest.fixture
def pool():
    return TransactionPool()


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------

class TestTransactionPool:
    """Tests for the FIFO transaction pool."""

    def test_starts_empty(self, pool):
        """A new pool is empty."""
        assert len(pool) == 0
        assert pool.next_valid([]) is None

    def test_fifo_order(self, pool, alice, bob):
        """Transactions iterate oldest first."""
        t1 = Transaction(alice, bob, 1)
        t2 = Transaction(bob, alice, 2)
        pool.add_transaction(t1)
        pool.add_transaction(t2)
        assert list(pool) == [t1, t2]

    def test_duplicates_allowed(self, pool, alice, bob):
        """Identical payments may be queued twice."""
        pool.add_transaction(Transaction(alice, bob, 1))
        pool.add_transaction(Transaction(alice, bob, 1))
        assert len(pool) == 2

    def test_remove_first_match_only(self, pool, alice, bob):
        """Removal by hash drops the oldest match."""
        tx = Transaction(alice, bob, 1)
        pool.add_transaction(tx)
        pool.add_transaction(Transaction(alice, bob, 1))
        assert pool.remove_transaction(tx.hash) is tx
        assert len(pool) == 1

    def test_remove_unknown(self, pool):
        """Removing an unknown hash returns None."""
        assert pool.remove_transaction("00" * 32) is None

    def test_next_valid_does_not_remove(self, pool, alice, bob):
        """Selection leaves the transaction queued."""
        pool.add_transaction(Transaction(alice, bob, 50))
        good = Transaction(alice, bob, 5)
        pool.add_transaction(good)
        assert pool.next_valid([]) is good
        assert len(pool) == 2

    def test_clear_confirmed(self, pool, alice, bob):
        """clear_confirmed drops the block's transaction."""
        tx = Transaction(alice, bob, 5)
        pool.add_transaction(tx)
        pool.clear_confirmed(Block(tx, EMPTY, "00000"))
        assert tx not in pool

    def test_requeue_goes_to_front(self, pool, alice, bob):
        """Requeued transactions come first, in the given order."""
        pending = Transaction(alice, bob, 1)
        old1 = Transaction(alice, bob, 2)
        old2 = Transaction(alice, bob, 3)
        pool.add_transaction(pending)
        pool.requeue([old1, old2])
        assert pool.transactions == [old1, old2, pending]

    def test_copy_is_independent(self, pool, alice, bob):
        """Changes to a copy do not affect the original."""
        pool.add_transaction(Transaction(alice, bob, 1))
        clone = pool.copy()
        clone.add_transaction(Transaction(alice, bob, 2))
        assert len(pool) == 1
        assert len(clone) == 2
