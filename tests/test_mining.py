"""
Tests for Mining (Difficulty, Nonces, Rounds)
===============================================

Tests cover:
- The toy difficulty predicate
- Nonce and candidate-hash computation
- Parent selection for honest and malicious miners
- Which miners succeed in a round
"""

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from chainsim.consensus.difficulty import meets_difficulty, success_probability
from chainsim.consensus.fork_choice import chain_for_block, is_block_in_chain
from chainsim.consensus.rules import NONCE_LENGTH
from chainsim.core.address import Address
from chainsim.core.block import EMPTY, Block
from chainsim.core.transaction import Transaction
from chainsim.crypto.hash import sha256_hex
from chainsim.mining.miner import (
    MinedBlock,
    Miner,
    block_to_mine,
    candidate_block_hash,
    compute_nonce,
    mined_blocks_for,
)
from chainsim.simulation.model import Model


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def tx():
    return Transaction(Address("alice", "a", 10), Address("bob", "b", 10), 1)


@pytest.fixture
def model():
    """Four honest miners, empty tree."""
    return Model.initial(miner_count=4)


def grow(model, tx, parent, nonce):
    block = Block(tx, parent, nonce)
    assert model.tree.add_block(block)
    return block.link()


# ---------------------------------------------------------------------------
# Difficulty Tests
# ---------------------------------------------------------------------------

class TestDifficulty:
    """Tests for the toy difficulty predicate."""

    def test_leading_zero_meets(self):
        """A hash starting with '0' meets difficulty."""
        assert meets_difficulty("0abcd") is True

    def test_other_leading_char_fails(self):
        """A hash starting with anything else does not."""
        assert meets_difficulty("1abcd") is False

    def test_custom_prefix(self):
        """A longer prefix is stricter."""
        assert meets_difficulty("00ab", prefix="00")
        assert not meets_difficulty("0abc", prefix="00")

    def test_success_probability(self):
        """One hex prefix character gives 1/16."""
        assert success_probability() == pytest.approx(1 / 16)


# ---------------------------------------------------------------------------
# Nonce and Candidate Hash Tests
# ---------------------------------------------------------------------------

class TestNonce:
    """Tests for nonce and candidate-hash computation."""

    def test_nonce_definition(self):
        """The nonce is a truncated hash of index + seed."""
        assert compute_nonce(2, 40) == sha256_hex("42")[:NONCE_LENGTH]

    def test_nonce_length(self):
        """Nonces are NONCE_LENGTH characters."""
        assert len(compute_nonce(0, 123)) == NONCE_LENGTH

    def test_nonce_depends_on_sum(self):
        """Only the sum of index and seed matters."""
        assert compute_nonce(1, 10) == compute_nonce(3, 8)

    def test_candidate_equals_block_hash(self, tx):
        """The candidate hash is the hash of the block it would produce."""
        parent = Block(tx, EMPTY, "xxxxx").link()
        candidate = candidate_block_hash(tx, parent, 1, 99)
        assert candidate == Block(tx, parent, compute_nonce(1, 99)).hash

    def test_candidate_depends_on_parent(self, tx):
        """Different parents give different candidates."""
        parent = Block(tx, EMPTY, "xxxxx").link()
        assert candidate_block_hash(tx, parent, 0, 5) != candidate_block_hash(tx, EMPTY, 0, 5)


# ---------------------------------------------------------------------------
# Parent Selection Tests
# ---------------------------------------------------------------------------

class TestBlockToMine:
    """Tests for block_to_mine."""

    def test_honest_on_empty_tree(self, model):
        """Honest miners start from EMPTY."""
        assert block_to_mine(model, Miner()) is EMPTY

    def test_honest_extends_longest_tip(self, model, tx):
        """Honest miners extend the canonical tip."""
        b1 = grow(model, tx, EMPTY, "00001")
        b2 = grow(model, tx, b1, "00002")
        grow(model, tx, b1, "0000s")
        b3 = grow(model, tx, b2, "00003")
        assert block_to_mine(model, Miner()) == b3

    def test_malicious_avoids_target(self, model, tx):
        """A malicious miner mines on a parent whose chain excludes its target."""
        b1 = grow(model, tx, EMPTY, "00001")
        target = grow(model, tx, b1, "00002")
        grow(model, tx, target, "00003")
        attacker = Miner(block_to_erase=target)
        parent = block_to_mine(model, attacker)
        assert parent == b1
        assert not is_block_in_chain(target, chain_for_block(parent))

    def test_malicious_flag(self, tx):
        """Miners with a target are malicious."""
        assert not Miner().is_malicious
        assert Miner(Block(tx, EMPTY, "00000").link()).is_malicious


# ---------------------------------------------------------------------------
# Mining Round Tests
# ---------------------------------------------------------------------------

class TestMinedBlocksFor:
    """Tests for mined_blocks_for."""

    def test_results_match_difficulty(self, model, tx):
        """Exactly the miners whose candidate meets difficulty succeed."""
        for seed in range(50):
            round_model = model.replace(round_seed=seed)
            mined = mined_blocks_for(round_model, tx)
            expected = [
                i for i in range(len(model.miners))
                if meets_difficulty(candidate_block_hash(tx, EMPTY, i, seed))
            ]
            assert [m.miner_index for m in mined] == expected
            for m in mined:
                assert meets_difficulty(m.hash)
                assert m.nonce == compute_nonce(m.miner_index, seed)
                assert m.parent is EMPTY

    def test_some_round_succeeds(self, model, tx):
        """Within a few hundred seeds some miner succeeds."""
        assert any(mined_blocks_for(model.replace(round_seed=s), tx) for s in range(300))

    def test_to_block_hash_matches(self, model, tx):
        """A successful attempt builds a block with the candidate hash."""
        for seed in range(300):
            mined = mined_blocks_for(model.replace(round_seed=seed), tx)
            if mined:
                block = mined[0].to_block(tx)
                assert block.hash == mined[0].hash
                assert block.previous_block is EMPTY
                return
        pytest.fail("no successful round in 300 seeds")

    def test_as_tuple(self, tx):
        """as_tuple returns (nonce, hash, parent)."""
        result = MinedBlock(0, "abcde", "0" * 64, EMPTY)
        assert result.as_tuple() == ("abcde", "0" * 64, EMPTY)

    def test_no_miners_no_blocks(self, tx):
        """A model without miners mines nothing."""
        assert mined_blocks_for(Model.initial(miner_count=0), tx) == []
