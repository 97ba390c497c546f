"""
Balance Accounting and Transaction Validation
==============================================

The simulator has no UTXO set and no stored account state. An address's
balance is *derived*: start from its baseline stake and replay every
transaction on a chain, debiting it as sender and crediting it as receiver.
Two nodes that agree on the chain therefore agree on every balance, and a
balance can never drift from the history it summarizes.

Finality:
---------
Very recent blocks can still be orphaned by a competing branch. Balance
queries therefore run on a *confirmed* chain: the canonical chain with its
newest ``confirmations_required`` links dropped. A payment counts only
once enough blocks have been built on top of it.

Transaction rules:
------------------
A transaction is valid against a chain iff

- the amount is positive,
- sender and receiver are different identities (by hash),
- the sender's replayed balance covers the amount.

``check_transaction`` raises ``ValidationError`` naming the first violated
rule; ``is_valid_tx`` is the boolean form the pool and the miners use.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable, Optional, Sequence

from chainsim.core.block import BlockLink

if TYPE_CHECKING:
    from chainsim.core.address import Address
    from chainsim.core.transaction import Transaction

logger = logging.getLogger(__name__)


class ValidationError(Exception):
    """
    Raised when a transaction fails validation against a chain.

    The message describes the violated rule. It never escapes the core:
    callers that only need a yes/no answer use ``is_valid_tx``.
    """
    pass


# ---------------------------------------------------------------------------
# Balances
# ---------------------------------------------------------------------------

def confirmed_chain(chain: Sequence[BlockLink], confirmations_required: int) -> list[BlockLink]:
    """
    Drop the newest *confirmations_required* links from a tip-to-root chain.

    Args:
        chain: Tip-to-root chain.
        confirmations_required: Number of head links to exclude; values
            below 1 keep the whole chain.

    Returns:
        The remaining links, still tip-to-root. Empty when the chain is
        shorter than the requirement.
    """
    if confirmations_required <= 0:
        return list(chain)
    return list(chain[confirmations_required:])


def balance_delta(link: BlockLink, address: "Address") -> int:
    """
    Net effect of one link on *address*.

    Returns:
        ``-amount`` when the address sent the block's transaction,
        ``+amount`` when it received it, 0 otherwise and for ``EMPTY``.
    """
    block = link.block
    if block is None:
        return 0
    tx = block.transaction
    delta = 0
    if tx.sender.hash == address.hash:
        delta -= tx.amount
    if tx.receiver.hash == address.hash:
        delta += tx.amount
    return delta


def balance_for(chain: Iterable[BlockLink], address: "Address") -> int:
    """
    Replay a chain and return the balance of *address*.

    The walk starts from the address's baseline balance and visits every
    link down to the root. ``EMPTY`` contributes nothing, so chains with or
    without the sentinel give the same answer.

    Args:
        chain: Chain to replay, usually already passed through
            ``confirmed_chain``.
        address: Address whose balance is wanted; matched by hash.

    Returns:
        The derived balance. The result depends only on the chain contents
        and the baseline.
    """
    balance = address.balance
    for link in chain:
        balance += balance_delta(link, address)
    return balance


# ---------------------------------------------------------------------------
# Transaction validation
# ---------------------------------------------------------------------------

def check_transaction(chain: Sequence[BlockLink], tx: "Transaction") -> bool:
    """
    Validate *tx* against *chain*, raising on the first violated rule.

    Args:
        chain: Chain whose replayed balances are authoritative.
        tx: Candidate transaction.

    Returns:
        True if every rule holds.

    Raises:
        ValidationError: If the amount is not positive, the parties are the
            same identity, or the sender's balance is insufficient.
    """
    if tx.amount <= 0:
        raise ValidationError(f"Amount must be positive, got {tx.amount}")

    if tx.sender.hash == tx.receiver.hash:
        raise ValidationError(
            f"Sender and receiver are the same address ({tx.sender.hash[:16]!r})"
        )

    balance = balance_for(chain, tx.sender)
    if balance < tx.amount:
        raise ValidationError(
            f"Insufficient balance for {tx.sender.name or tx.sender.hash[:16]}: "
            f"{balance} < {tx.amount}"
        )

    return True


def is_valid_tx(chain: Sequence[BlockLink], tx: "Transaction") -> bool:
    """
    Boolean form of ``check_transaction``.

    Returns:
        True iff the amount is positive, the parties differ and the sender's
        replayed balance on *chain* is at least the amount.
    """
    try:
        return check_transaction(chain, tx)
    except ValidationError as e:
        logger.debug("Transaction %s invalid: %s", tx.hash[:16], e)
        return False


def next_tx(chain: Sequence[BlockLink], pool: Iterable["Transaction"]) -> Optional["Transaction"]:
    """
    Pick the next mineable transaction from a pool.

    The pool is scanned in order; invalid transactions are skipped silently
    and stay where they are.

    Args:
        chain: Chain to validate against.
        pool: Pending transactions, oldest first.

    Returns:
        The first valid transaction, or None when there is none.
    """
    for tx in pool:
        if is_valid_tx(chain, tx):
            return tx
    return None
