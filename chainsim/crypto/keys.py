"""
Deterministic Key Derivation and Address Encoding
==================================================

Simulated addresses are identified by a stable hash derived once from a
seed. To keep that identifier shaped like a real Bitcoin address, the seed
is turned into a secp256k1 key pair and the public key is encoded the way a
P2PKH address is:

1. Hash the seed into a 256-bit secret exponent (deterministic, no
   randomness is generated here -- the seed is supplied by the caller).
2. Derive the public key by point multiplication on secp256k1.
3. Serialize the public key in compressed form (33 bytes).
4. Hash it down to a 20-byte payload (``pubkey_hash``).
5. Base58Check-encode version byte + payload + checksum.

The same seed always yields the same address, so an address book can be
rebuilt from its seeds.
"""

import base58
from ecdsa import SECP256k1, SigningKey, VerifyingKey

from .hash import double_sha256, pubkey_hash, sha256_hex


# =============================================================================
# Internal Helper Functions
# =============================================================================

def _base58check_encode(version: bytes, payload: bytes) -> str:
    """
    Encode data with Base58Check encoding used in Bitcoin.

    Base58Check adds a version byte prefix and a 4-byte checksum suffix
    (first 4 bytes of double-SHA-256) to the payload, then encodes the
    result using Base58.

    Args:
        version: The version byte(s) identifying the data type.
        payload: The data to encode.

    Returns:
        The Base58Check-encoded string.
    """
    data = version + payload
    checksum = double_sha256(data)[:4]
    return base58.b58encode(data + checksum).decode('ascii')


def _base58check_decode(encoded: str) -> tuple:
    """
    Decode a Base58Check-encoded string.

    Args:
        encoded: The Base58Check-encoded string to decode.

    Returns:
        A tuple of (version_bytes, payload_bytes).

    Raises:
        ValueError: If the checksum does not match (invalid or corrupted data).
    """
    decoded = base58.b58decode(encoded)
    payload = decoded[:-4]
    checksum = decoded[-4:]
    if checksum != double_sha256(payload)[:4]:
        raise ValueError("Invalid Base58Check checksum")
    return payload[0:1], payload[1:]


# =============================================================================
# PublicKey Class
# =============================================================================

class PublicKey:
    """
    A public key on the secp256k1 curve, used only to derive addresses.
    """

    def __init__(self, key: VerifyingKey):
        self._key = key

    def to_bytes(self) -> bytes:
        """
        Serialize the public key in compressed form.

        Returns:
            33 bytes: 0x02 or 0x03 (parity of y) followed by x.
        """
        raw = self._key.to_string()
        x = raw[:32]
        y = raw[32:]
        if y[-1] % 2 == 0:
            return b'\x02' + x
        return b'\x03' + x

    def to_hex(self) -> str:
        return self.to_bytes().hex()

    def to_address(self, version: bytes = b'\x00') -> str:
        """
        Derive a Base58Check address from this public key.

        Args:
            version: Address version byte (0x00 gives addresses starting
                with '1', like Bitcoin mainnet P2PKH).

        Returns:
            The Base58Check-encoded address string.
        """
        return _base58check_encode(version, pubkey_hash(self.to_bytes()))

    def __repr__(self) -> str:
        return f"PublicKey({self.to_hex()})"

    def __eq__(self, other) -> bool:
        if not isinstance(other, PublicKey):
            return NotImplemented
        return self.to_bytes() == other.to_bytes()

    def __hash__(self) -> int:
        return hash(self.to_bytes())


# =============================================================================
# PrivateKey Class
# =============================================================================

class PrivateKey:
    """
    A secp256k1 private key.

    Keys in the simulator are never random: they are derived from an integer
    seed supplied by the host, so a run is reproducible from its inputs.
    """

    def __init__(self, secret_exponent: int):
        """
        Args:
            secret_exponent: Integer in the range [1, n-1] where n is the
                curve order.

        Raises:
            ValueError: If the exponent is outside the valid range.
        """
        order = SECP256k1.order
        if not 1 <= secret_exponent < order:
            raise ValueError(
                f"Secret exponent must be in [1, {order - 1}], got {secret_exponent}"
            )
        self._key = SigningKey.from_secret_exponent(secret_exponent, curve=SECP256k1)

    @classmethod
    def from_seed(cls, seed: int) -> 'PrivateKey':
        """
        Derive a private key deterministically from an integer seed.

        The seed is hashed and reduced into the valid exponent range, so
        neighbouring seeds give unrelated keys.

        Args:
            seed: Any integer (negative values are allowed).

        Returns:
            A PrivateKey that is identical for identical seeds.
        """
        digest = int(sha256_hex(str(seed)), 16)
        return cls(digest % (SECP256k1.order - 1) + 1)

    @property
    def public_key(self) -> PublicKey:
        return PublicKey(self._key.get_verifying_key())

    def to_hex(self) -> str:
        return self._key.to_string().hex()

    def __repr__(self) -> str:
        return f"PrivateKey({self.to_hex()[:8]}...)"

    def __eq__(self, other) -> bool:
        if not isinstance(other, PrivateKey):
            return NotImplemented
        return self.to_hex() == other.to_hex()

    def __hash__(self) -> int:
        return hash(self.to_hex())


def address_from_seed(seed: int) -> str:
    """
    Derive the address string for a seed.

    Args:
        seed: Integer seed.

    Returns:
        Base58Check address of the seed's deterministic key pair.
    """
    return PrivateKey.from_seed(seed).public_key.to_address()


def decode_address(address: str) -> bytes:
    """
    Validate an address and return its 20-byte payload.

    Raises:
        ValueError: If the checksum or payload length is wrong.
    """
    _version, payload = _base58check_decode(address)
    if len(payload) != 20:
        raise ValueError(f"Address payload must be 20 bytes, got {len(payload)}")
    return payload
