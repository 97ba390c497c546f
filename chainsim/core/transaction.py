"""
Simulation transaction.

A transaction moves ``amount`` from ``sender`` to ``receiver``. Unlike a
Bitcoin transaction there are no inputs, outputs or scripts: ownership is
an account balance derived from chain history, and the transaction is the
only payload a block carries.

Transactions are immutable once created. Construction accepts any amount;
positivity, distinct parties and sufficient balance are checked at
validation time (``chainsim.consensus.validation``), so an invalid
transaction can sit in the pool and simply never be mined.

The transaction hash is SHA-256 over ``amount ++ sender.hash ++
receiver.hash``. It has no salt or timestamp, so two submissions of the
same payment share a hash.
"""

from __future__ import annotations

from chainsim.core.address import Address
from chainsim.crypto.hash import sha256_hex


def transaction_hash(tx: Transaction) -> str:
    """
    Compute the hash of a transaction from its content.

    Args:
        tx: The transaction.

    Returns:
        64-character hex digest of ``str(amount) + sender.hash + receiver.hash``.
    """
    return sha256_hex(f"{tx.amount}{tx.sender.hash}{tx.receiver.hash}")


class Transaction:
    """
    An immutable payment between two addresses.

    Attributes:
        sender: Paying address.
        receiver: Receiving address.
        amount: Integer amount; must be positive to be valid.
    """

    __slots__ = ("_sender", "_receiver", "_amount", "_hash")

    def __init__(self, sender: Address, receiver: Address, amount: int):
        self._sender = sender
        self._receiver = receiver
        self._amount = amount
        self._hash: str | None = None

    @property
    def sender(self) -> Address:
        return self._sender

    @property
    def receiver(self) -> Address:
        return self._receiver

    @property
    def amount(self) -> int:
        return self._amount

    @property
    def hash(self) -> str:
        """
        The transaction hash, computed on first access and cached.

        Returns:
            64-character lowercase hex string.
        """
        if self._hash is None:
            self._hash = transaction_hash(self)
        return self._hash

    def to_dict(self) -> dict:
        return {
            "sender": self._sender.to_dict(),
            "receiver": self._receiver.to_dict(),
            "amount": self._amount,
            "hash": self.hash,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Transaction:
        return cls(
            sender=Address.from_dict(data["sender"]),
            receiver=Address.from_dict(data["receiver"]),
            amount=data["amount"],
        )

    def __repr__(self) -> str:
        return (
            f"Transaction({self._sender.name or self._sender.hash[:8]} -> "
            f"{self._receiver.name or self._receiver.hash[:8]}, amount={self._amount})"
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, Transaction):
            return NotImplemented
        return self.hash == other.hash

    def __hash__(self) -> int:
        return hash(self.hash)
