"""
Tests for Balance Accounting and Transaction Validation
=========================================================

Tests cover:
- Confirmed-chain truncation
- Balance replay (debits, credits, baseline, determinism)
- Transaction validation rules and error messages
- Selecting the next mineable transaction
"""

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from chainsim.consensus.validation import (
    ValidationError,
    balance_for,
    check_transaction,
    confirmed_chain,
    is_valid_tx,
    next_tx,
)
from chainsim.core.address import Address
from chainsim.core.block import EMPTY, Block
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
def carol():
    return Address("carol", "c", 0)


@pytest.fixture
def one_block_chain(alice, bob):
    """A chain whose only block records alice -> bob, 5."""
    block = Block(Transaction(alice, bob, 5), EMPTY, "00000")
    return [block.link()]


@pytest.fixture
def two_block_chain(alice, bob, carol):
    """alice -> bob 5, then bob -> carol 12 (tip first, with EMPTY)."""
    first = Block(Transaction(alice, bob, 5), EMPTY, "00001")
    second = Block(Transaction(bob, carol, 12), first.link(), "00002")
    return [second.link(), first.link(), EMPTY]


# ---------------------------------------------------------------------------
# confirmed_chain Tests
# ---------------------------------------------------------------------------

class TestConfirmedChain:
    """Tests for confirmed-chain truncation."""

    def test_zero_keeps_everything(self, two_block_chain):
        """With no confirmations required, nothing is dropped."""
        assert confirmed_chain(two_block_chain, 0) == two_block_chain

    def test_drops_newest(self, two_block_chain):
        """The newest links are dropped first."""
        assert confirmed_chain(two_block_chain, 1) == two_block_chain[1:]

    def test_longer_than_chain(self, two_block_chain):
        """Requiring more confirmations than links leaves nothing."""
        assert confirmed_chain(two_block_chain, 10) == []


# ---------------------------------------------------------------------------
# balance_for Tests
# ---------------------------------------------------------------------------

class TestBalanceFor:
    """Tests for balance replay."""

    def test_empty_chain_is_baseline(self, alice):
        """With no blocks the balance is the baseline."""
        assert balance_for([], alice) == 10
        assert balance_for([EMPTY], alice) == 10

    def test_one_block_scenario(self, one_block_chain, alice, bob):
        """After alice -> bob 5: alice 5, bob 15."""
        assert balance_for(one_block_chain, alice) == 5
        assert balance_for(one_block_chain, bob) == 15

    def test_two_blocks(self, two_block_chain, alice, bob, carol):
        """Debits and credits accumulate along the chain."""
        assert balance_for(two_block_chain, alice) == 5
        assert balance_for(two_block_chain, bob) == 3
        assert balance_for(two_block_chain, carol) == 12

    def test_unrelated_address(self, two_block_chain):
        """An address not on the chain keeps its baseline."""
        dave = Address("dave", "d", 7)
        assert balance_for(two_block_chain, dave) == 7

    def test_matches_by_hash(self, one_block_chain):
        """Balances follow the hash, not the Address object."""
        alias = Address("someone", "a", 10)
        assert balance_for(one_block_chain, alias) == 5

    def test_confirmations_hide_recent_blocks(self, two_block_chain, carol):
        """Unconfirmed blocks do not count."""
        assert balance_for(confirmed_chain(two_block_chain, 1), carol) == 0

    def test_deterministic(self, two_block_chain, bob):
        """Replaying the same chain twice gives the same balance."""
        assert balance_for(two_block_chain, bob) == balance_for(two_block_chain, bob)

    def test_stored_balance_is_not_updated(self, one_block_chain, alice):
        """Replay never writes back to the Address."""
        balance_for(one_block_chain, alice)
        assert alice.balance == 10


# ---------------------------------------------------------------------------
# Validation Tests
# ---------------------------------------------------------------------------

class TestIsValidTx:
    """Tests for transaction validation."""

    def test_valid_against_empty_chain(self, alice, bob):
        """alice -> bob 5 is valid with a baseline of 10."""
        assert is_valid_tx([], Transaction(alice, bob, 5))

    def test_exact_balance_is_valid(self, alice, bob):
        """Spending the whole balance is allowed."""
        assert is_valid_tx([], Transaction(alice, bob, 10))

    def test_overdraw_invalid(self, alice, bob):
        """Spending more than the balance is invalid."""
        assert not is_valid_tx([], Transaction(alice, bob, 11))

    def test_overdraw_after_replay(self, one_block_chain, alice, bob):
        """The replayed balance, not the baseline, is checked."""
        assert not is_valid_tx(one_block_chain, Transaction(alice, bob, 6))
        assert is_valid_tx(one_block_chain, Transaction(bob, alice, 15))

    def test_zero_amount_invalid(self, alice, bob):
        """Zero amounts are invalid."""
        assert not is_valid_tx([], Transaction(alice, bob, 0))

    def test_negative_amount_invalid(self, alice, bob):
        """Negative amounts are invalid."""
        assert not is_valid_tx([], Transaction(alice, bob, -5))

    def test_self_payment_invalid(self, alice):
        """Sender and receiver must differ."""
        assert not is_valid_tx([], Transaction(alice, Address("alias", "a", 0), 1))

    def test_check_reports_reason(self, alice, bob):
        """check_transaction names the violated rule."""
        with pytest.raises(ValidationError, match="Insufficient balance"):
            check_transaction([], Transaction(alice, bob, 50))
        with pytest.raises(ValidationError, match="positive"):
            check_transaction([], Transaction(alice, bob, 0))
        with pytest.raises(ValidationError, match="same address"):
            check_transaction([], Transaction(alice, alice, 1))

    def test_accepted_transactions_satisfy_rules(self, two_block_chain, alice, bob, carol):
        """Everything accepted has a positive amount, distinct parties and cover."""
        people = [alice, bob, carol]
        for sender in people:
            for receiver in people:
                for amount in (-1, 0, 1, 5, 12, 20):
                    tx = Transaction(sender, receiver, amount)
                    if is_valid_tx(two_block_chain, tx):
                        assert tx.amount > 0
                        assert tx.sender.hash != tx.receiver.hash
                        assert balance_for(two_block_chain, tx.sender) >= tx.amount


# ---------------------------------------------------------------------------
# next_tx Tests
# ---------------------------------------------------------------------------

class TestNextTx:
    """Tests for next_tx."""

    def test_empty_pool(self):
        """An empty pool yields None."""
        assert next_tx([], []) is None

    def test_all_invalid(self, alice, bob):
        """A pool of invalid transactions yields None."""
        pool = [Transaction(alice, bob, 100), Transaction(alice, alice, 1)]
        assert next_tx([], pool) is None

    def test_skips_invalid(self, alice, bob, carol):
        """The first valid transaction in order is returned."""
        overdraw = Transaction(carol, alice, 1)
        good = Transaction(alice, bob, 3)
        later = Transaction(bob, alice, 1)
        assert next_tx([], [overdraw, good, later]) is good
