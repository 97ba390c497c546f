# Hash primitives and deterministic address derivation

from .hash import sha256, sha256_hex, double_sha256, pubkey_hash
from .keys import PrivateKey, PublicKey, address_from_seed, decode_address

__all__ = [
    # Hash functions
    'sha256',
    'sha256_hex',
    'double_sha256',
    'pubkey_hash',
    # Key management
    'PrivateKey',
    'PublicKey',
    'address_from_seed',
    'decode_address',
]
