"""
Simulation State and Transitions
=================================

This module ties the components together. ``Model`` is the complete state
of a run: the miners, the block tree, the transaction pool, the address
book and the current round seed. ``advance(model, event)`` is the
transition function: it returns the next Model for one event.

Ownership:
  A new Model gets its own copies of the miner list, the pool, the address
  book and the block tree's index and tip list. Block objects are shared
  between successive models; they are immutable, and tip detection only
  counts children in a model's own index, so advancing a state never
  changes what an earlier state reports.

Round policy:
  - The transaction mined in a round is the oldest pool entry that is
    valid against the *confirmed* canonical chain. With no such entry the
    round is skipped; the seed is still recorded.
  - Every successful attempt becomes a block.
  - A pending transaction leaves the pool when a block carrying it joins
    the canonical chain. A block that only extends a shorter branch leaves
    its transaction queued.
  - When the round moves the canonical chain off the previous best tip (a
    reorganization), transactions of the unwound blocks that are not on the
    new canonical chain go back to the front of the pool.

Nothing here raises for bad simulation input. Unknown addresses, miners or
blocks degrade to sentinels and are logged at WARNING.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence

from chainsim.consensus.fork_choice import is_block_in_chain, orphaned_links
from chainsim.consensus.fork_search import erasable_blocks
from chainsim.consensus.rules import (
    DEFAULT_CONFIRMATIONS_REQUIRED,
    DEFAULT_INITIAL_BALANCE,
    DEFAULT_MINER_COUNT,
)
from chainsim.consensus.validation import balance_for, confirmed_chain
from chainsim.core.address import EMPTY_ADDRESS, Address, resolve_address
from chainsim.core.block import BlockLink
from chainsim.core.blockchain import BlockTree
from chainsim.core.mempool import TransactionPool
from chainsim.core.transaction import Transaction
from chainsim.mining.miner import Miner, mined_blocks_for
from chainsim.simulation.events import (
    AddMiner,
    AdvanceRound,
    ProvideNames,
    SeedRandom,
    SelectEraseTarget,
    SubmitTransaction,
)

logger = logging.getLogger(__name__)


class Model:
    """
    Complete simulation state.

    Attributes:
        miners: Miners by index; index order is the order they mine in.
        tree: Block tree of this state. Blocks are shared with earlier
            states; the index and tip list are not.
        transaction_pool: Pending transactions.
        address_book: Known addresses, in creation order.
        round_seed: Seed for the next round's nonces.
        confirmations_required: Newest canonical blocks excluded from
            balance computation.
        initial_balance: Baseline given to addresses created from names.
    """

    def __init__(
        self,
        miners: Sequence[Miner],
        tree: BlockTree,
        transaction_pool: TransactionPool,
        address_book: Sequence[Address],
        round_seed: int = 0,
        confirmations_required: int = DEFAULT_CONFIRMATIONS_REQUIRED,
        initial_balance: int = DEFAULT_INITIAL_BALANCE,
    ) -> None:
        self.miners: list[Miner] = list(miners)
        self.tree = tree
        self.transaction_pool = transaction_pool
        self.address_book: list[Address] = list(address_book)
        self.round_seed = round_seed
        self.confirmations_required = confirmations_required
        self.initial_balance = initial_balance

    @classmethod
    def initial(
        cls,
        miner_count: int = DEFAULT_MINER_COUNT,
        confirmations_required: int = DEFAULT_CONFIRMATIONS_REQUIRED,
        initial_balance: int = DEFAULT_INITIAL_BALANCE,
        names: Iterable[str] = (),
        seed: int = 0,
    ) -> Model:
        """
        Build the starting state of a run.

        Args:
            miner_count: Number of honest miners.
            confirmations_required: Finality lag for balances.
            initial_balance: Baseline for every named address.
            names: Address names to create immediately.
            seed: Initial round seed; also seeds the addresses.

        Returns:
            A Model with an empty block tree and an empty pool.
        """
        model = cls(
            miners=[Miner() for _ in range(miner_count)],
            tree=BlockTree(),
            transaction_pool=TransactionPool(),
            address_book=[],
            round_seed=seed,
            confirmations_required=confirmations_required,
            initial_balance=initial_balance,
        )
        names = tuple(names)
        if names:
            model = advance(model, ProvideNames(names))
        return model

    def replace(self, **changes) -> Model:
        """
        Return a new Model with *changes* applied.

        Containers are copied, including the block tree index and tips.
        """
        fields = {
            "miners": list(self.miners),
            "tree": self.tree.copy(),
            "transaction_pool": self.transaction_pool.copy(),
            "address_book": list(self.address_book),
            "round_seed": self.round_seed,
            "confirmations_required": self.confirmations_required,
            "initial_balance": self.initial_balance,
        }
        fields.update(changes)
        return Model(**fields)

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    @property
    def discovered_blocks(self) -> list[BlockLink]:
        """The known tip links, in discovery order."""
        return list(self.tree.tips)

    def canonical_chain(self) -> list[BlockLink]:
        return self.tree.best_chain()

    def confirmed_chain(self) -> list[BlockLink]:
        """Canonical chain minus its newest ``confirmations_required`` links."""
        return confirmed_chain(self.canonical_chain(), self.confirmations_required)

    def balance_of(self, address: Address) -> int:
        return balance_for(self.confirmed_chain(), address)

    def pending_transaction(self) -> Optional[Transaction]:
        """The transaction the next round will mine, if any."""
        return self.transaction_pool.next_valid(self.confirmed_chain())

    def erasable_blocks(self) -> list[BlockLink]:
        return erasable_blocks(self.tree.tips, self.tree.blocks)

    def __repr__(self) -> str:
        return (
            f"Model(miners={len(self.miners)}, blocks={len(self.tree)}, "
            f"pending={len(self.transaction_pool)}, addresses={len(self.address_book)}, "
            f"seed={self.round_seed})"
        )


# ---------------------------------------------------------------------------
# Transition function
# ---------------------------------------------------------------------------

def advance(model: Model, event: object) -> Model:
    """
    Apply one event and return the next state.

    Args:
        model: Current state. Its containers are not modified.
        event: One of the events in ``chainsim.simulation.events``.

    Returns:
        The next Model.

    Raises:
        TypeError: If *event* is not a simulation event.
    """
    if isinstance(event, AdvanceRound):
        return _advance_round(model, event)
    elif isinstance(event, SubmitTransaction):
        return _submit_transaction(model, event)
    elif isinstance(event, SelectEraseTarget):
        return _select_erase_target(model, event)
    elif isinstance(event, SeedRandom):
        return model.replace(round_seed=event.value)
    elif isinstance(event, ProvideNames):
        return _provide_names(model, event)
    elif isinstance(event, AddMiner):
        next_model = model.replace()
        next_model.miners.append(Miner())
        logger.info("Added honest miner %d", len(next_model.miners) - 1)
        return next_model
    raise TypeError(f"Unknown simulation event: {event!r}")


def _advance_round(model: Model, event: AdvanceRound) -> Model:
    seed = model.round_seed if event.seed is None else event.seed
    next_model = model.replace(round_seed=seed)

    tx = next_model.pending_transaction()
    if tx is None:
        logger.info("Round skipped (seed %d): no valid transaction pending", seed)
        return next_model

    old_chain = next_model.canonical_chain()
    mined = mined_blocks_for(next_model, tx)
    if not mined:
        logger.info("Round with seed %d: no miner met the difficulty", seed)
        return next_model

    accepted = 0
    for candidate in mined:
        if next_model.tree.add_block(candidate.to_block(tx)):
            accepted += 1

    new_chain = next_model.canonical_chain()
    settle_transaction_pool(next_model.transaction_pool, old_chain, new_chain)
    if accepted and tx in next_model.transaction_pool:
        logger.info("Transaction %s mined off the canonical chain; still pending", tx.hash[:16])
    logger.info(
        "Round with seed %d: %d block(s) accepted, canonical height %d",
        seed, accepted, next_model.tree.height,
    )
    return next_model


def settle_transaction_pool(
    pool: TransactionPool, old_chain: Sequence[BlockLink], new_chain: Sequence[BlockLink]
) -> None:
    """
    Bring *pool* in line with a change of canonical chain (mutates *pool*).

    Transactions of blocks that joined the canonical chain are dropped from
    the pool. When the old tip is no longer canonical, transactions of the
    unwound blocks that are not on the new chain are requeued at the front,
    oldest block first.

    Args:
        pool: The pool to update.
        old_chain: Canonical chain before the change, tip first.
        new_chain: Canonical chain after the change, tip first.
    """
    for link in reversed(orphaned_links(new_chain, old_chain)):
        pool.clear_confirmed(link.block)

    if not old_chain or is_block_in_chain(old_chain[0], new_chain):
        return

    unwound = orphaned_links(old_chain, new_chain)
    logger.info(
        "Reorg: old tip=%s, new tip=%s, %d block(s) unwound",
        old_chain[0].hash[:16], new_chain[0].hash[:16], len(unwound),
    )
    kept = {link.block.transaction.hash for link in new_chain if not link.is_empty}
    pool.requeue(
        link.block.transaction
        for link in reversed(unwound)
        if link.block.transaction.hash not in kept
    )


def _submit_transaction(model: Model, event: SubmitTransaction) -> Model:
    sender = resolve_address(event.sender, model.address_book)
    receiver = resolve_address(event.receiver, model.address_book)
    if sender is None:
        logger.warning("Unknown sender %r; using the empty address", event.sender)
        sender = EMPTY_ADDRESS
    if receiver is None:
        logger.warning("Unknown receiver %r; using the empty address", event.receiver)
        receiver = EMPTY_ADDRESS

    next_model = model.replace()
    next_model.transaction_pool.add_transaction(Transaction(sender, receiver, event.amount))
    return next_model


def _select_erase_target(model: Model, event: SelectEraseTarget) -> Model:
    if not 0 <= event.miner_id < len(model.miners):
        logger.warning("Unknown miner %d; erase target ignored", event.miner_id)
        return model

    target = model.tree.get_link(event.block_hash)
    if event.block_hash and target.is_empty:
        logger.warning("Unknown block %r; miner %d stays honest", event.block_hash[:16], event.miner_id)

    next_model = model.replace()
    next_model.miners[event.miner_id] = next_model.miners[event.miner_id].with_target(target)
    if target.is_empty:
        logger.info("Miner %d is honest", event.miner_id)
    else:
        logger.info("Miner %d now erasing block %s", event.miner_id, target.hash[:16])
    return next_model


def _provide_names(model: Model, event: ProvideNames) -> Model:
    next_model = model.replace()
    for name in event.names:
        seed = next_model.round_seed + len(next_model.address_book)
        address = Address.from_seed(name, seed, next_model.initial_balance)
        next_model.address_book.append(address)
        logger.info("Created address %s for %r", address.hash[:16], name)
    return next_model


# ---------------------------------------------------------------------------
# Host helper
# ---------------------------------------------------------------------------

class Simulation:
    """
    Mutable host around the transition function.

    Holds the current Model and replaces it on every dispatched event.
    Convenient for scripts and tests that drive many events in a row.

    Attributes:
        model: The current state.
    """

    def __init__(self, model: Optional[Model] = None, **initial_options) -> None:
        self.model = model if model is not None else Model.initial(**initial_options)

    def dispatch(self, event: object) -> Model:
        self.model = advance(self.model, event)
        return self.model

    def submit(self, sender: str, receiver: str, amount: int) -> Model:
        return self.dispatch(SubmitTransaction(sender, receiver, amount))

    def advance_round(self, seed: Optional[int] = None) -> Model:
        return self.dispatch(AdvanceRound(seed))

    def select_erase_target(self, miner_id: int, block_hash: str) -> Model:
        return self.dispatch(SelectEraseTarget(miner_id, block_hash))

    def run_until(self, condition, seeds: Iterable[int]) -> bool:
        """
        Advance one round per seed until ``condition(model)`` holds.

        Args:
            condition: Predicate over the current Model.
            seeds: Round seeds to use, in order.

        Returns:
            True if the condition was reached, False if the seeds ran out.
        """
        if condition(self.model):
            return True
        for seed in seeds:
            self.advance_round(seed)
            if condition(self.model):
                return True
        return False

    def canonical_chain(self) -> list[BlockLink]:
        return self.model.canonical_chain()

    def address(self, name: str) -> Address:
        """The address named *name*, or the empty-address sentinel."""
        found = resolve_address(name, self.model.address_book)
        return EMPTY_ADDRESS if found is None else found

    def balances(self) -> dict[str, int]:
        """Name -> balance on the confirmed canonical chain."""
        return {address.name: self.model.balance_of(address) for address in self.model.address_book}

    def __repr__(self) -> str:
        return f"Simulation({self.model!r})"
