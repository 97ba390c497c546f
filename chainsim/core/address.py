"""
Simulation addresses.

An address is a participant in the simulated economy: a human-readable
name, a stable hash identifier and a baseline balance.

The baseline balance is the stake the address holds *before* any block is
mined. It is never updated in place. The authoritative balance is always
recomputed by replaying a chain (see ``chainsim.consensus.validation``), so
the stored field cannot drift from chain history.

Two addresses are the same identity iff their hashes are equal; names are
labels only and may repeat.
"""

from __future__ import annotations

from typing import Iterable, Optional

from chainsim.crypto.keys import address_from_seed


class Address:
    """
    A named participant identified by its hash.

    Attributes:
        name: Human-readable label supplied by the host's name provider.
        hash: Stable identifier, derived once from a seed.
        balance: Baseline (pre-chain) balance. Advisory only.
    """

    __slots__ = ("_name", "_hash", "_balance")

    def __init__(self, name: str, hash: str, balance: int = 0):
        self._name = name
        self._hash = hash
        self._balance = balance

    @property
    def name(self) -> str:
        return self._name

    @property
    def hash(self) -> str:
        return self._hash

    @property
    def balance(self) -> int:
        return self._balance

    @classmethod
    def from_seed(cls, name: str, seed: int, balance: int = 0) -> Address:
        """
        Create an address whose hash is derived deterministically from *seed*.

        Args:
            name: Display name.
            seed: Integer seed; equal seeds give equal hashes.
            balance: Baseline balance.

        Returns:
            A new Address.
        """
        return cls(name=name, hash=address_from_seed(seed), balance=balance)

    def is_empty(self) -> bool:
        """True for the empty-address sentinel returned by failed lookups."""
        return self._hash == ""

    def to_dict(self) -> dict:
        return {"name": self._name, "hash": self._hash, "balance": self._balance}

    @classmethod
    def from_dict(cls, data: dict) -> Address:
        return cls(name=data["name"], hash=data["hash"], balance=data["balance"])

    def __repr__(self) -> str:
        return f"Address(name={self._name!r}, hash={self._hash[:8]!r}, balance={self._balance})"

    def __eq__(self, other) -> bool:
        if not isinstance(other, Address):
            return NotImplemented
        return self._hash == other._hash

    def __hash__(self) -> int:
        return hash(self._hash)


EMPTY_ADDRESS = Address(name="", hash="", balance=0)
"""Sentinel returned when an address lookup finds no match."""


def find_address(address_hash: str, address_book: Iterable[Address]) -> Address:
    """
    Look up an address by hash.

    Args:
        address_hash: The hash to search for.
        address_book: Known addresses.

    Returns:
        The first address with that hash, or ``EMPTY_ADDRESS``.
    """
    for address in address_book:
        if address.hash == address_hash:
            return address
    return EMPTY_ADDRESS


def find_address_by_name(name: str, address_book: Iterable[Address]) -> Address:
    """
    Look up an address by display name.

    Returns:
        The first address with that name, or ``EMPTY_ADDRESS``.
    """
    for address in address_book:
        if address.name == name:
            return address
    return EMPTY_ADDRESS


def resolve_address(key: str, address_book: Iterable[Address]) -> Optional[Address]:
    """
    Resolve a form value that may be either an address hash or a name.

    Hash matches win over name matches.

    Returns:
        The matching Address, or None when neither lookup succeeds.
    """
    book = list(address_book)
    found = find_address(key, book)
    if found.is_empty():
        found = find_address_by_name(key, book)
    return None if found.is_empty() else found
