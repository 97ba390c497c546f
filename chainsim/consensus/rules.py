"""
Simulation Parameters
======================

This module holds the constants that parameterize a simulation run. They
play the role consensus parameters play in a real node: every component
reads them from here, and a simulation overrides the per-run ones through
``Model.initial``.

Toy Proof-of-Work:
------------------
Real Bitcoin compares a 256-bit header hash against a target derived from
the difficulty bits, and miners grind through billions of nonces. This
simulator makes exactly one attempt per miner per round and accepts it when
the hex hash starts with ``DIFFICULTY_PREFIX``. With a single ``"0"`` prefix
an attempt succeeds with probability 1/16. It is a teaching device, not a
security property.

Confirmations:
--------------
Balances are computed on the canonical chain minus its newest
``confirmations_required`` blocks, modelling the convention that recent
blocks are not yet final (Bitcoin users commonly wait for 6).
"""

DIFFICULTY_PREFIX = "0"
"""Leading characters a candidate block hash must start with to be accepted."""

NONCE_LENGTH = 5
"""Number of hex characters kept from the nonce hash."""

EMPTY_LINK_PREIMAGE = "0"
"""Preimage hashed to produce the genesis-predecessor hash."""

DEFAULT_CONFIRMATIONS_REQUIRED = 0
"""Newest canonical blocks excluded from balance computation by default."""

DEFAULT_MINER_COUNT = 3
"""Number of miners a fresh simulation starts with. All start honest."""

DEFAULT_INITIAL_BALANCE = 100
"""Baseline (pre-chain) balance given to every address created from a name."""
