"""
Simulation Hash Functions
==========================

This module implements the hash functions used throughout the simulator.

Every identifier in the simulation -- transaction hashes, block hashes,
nonces and the genesis sentinel -- is a SHA-256 digest rendered as a
lowercase hex string. Values are hashed as the UTF-8 encoding of their
concatenated string form, so the same fields always produce the same hash.

Key constructions:
- **sha256_hex**: SHA-256 over a text preimage. The workhorse of the
  simulation: block hashes, transaction hashes and nonces are all built on it.
- **double_sha256**: SHA-256 applied twice. Used for Base58Check checksums
  when deriving addresses.
- **pubkey_hash**: the 20-byte digest that forms the payload of an address.
  Bitcoin uses RIPEMD-160(SHA-256(pubkey)) here; RIPEMD-160 is not available
  in every OpenSSL build, so the simulator truncates a double SHA-256 instead.
"""

import hashlib


def sha256(data: bytes) -> bytes:
    """
    Compute the SHA-256 hash of the input data.

    Args:
        data: The raw bytes to hash.

    Returns:
        The 32-byte SHA-256 digest.

    Example:
        >>> sha256(b"hello").hex()
        '2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824'
    """
    return hashlib.sha256(data).digest()


def sha256_hex(text: str) -> str:
    """
    Hash a text preimage and return the digest as a lowercase hex string.

    All simulation hashes go through this function. Callers build the
    preimage by concatenating string fields (for example
    ``str(amount) + sender_hash + receiver_hash``), so the hash is fully
    determined by content and carries no salt.

    Args:
        text: The preimage, encoded as UTF-8 before hashing.

    Returns:
        The 64-character hex digest.

    Example:
        >>> sha256_hex("0")
        '5feceb66ffc86f38d952786c6d696c79c2dbc239dd4e91b46729d73a27fb57e9'
    """
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def double_sha256(data: bytes) -> bytes:
    """
    Compute the double SHA-256 hash: SHA-256(SHA-256(data)).

    Args:
        data: The raw bytes to hash.

    Returns:
        The 32-byte double-SHA-256 digest.
    """
    return hashlib.sha256(hashlib.sha256(data).digest()).digest()


def pubkey_hash(data: bytes) -> bytes:
    """
    Compute the 20-byte public key hash used as an address payload.

    Args:
        data: The serialized public key bytes.

    Returns:
        The first 20 bytes of double_sha256(data).
    """
    return double_sha256(data)[:20]
