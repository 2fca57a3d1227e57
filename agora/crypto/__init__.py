"""
Cryptographic primitives for Agora.

This module provides:
- Hashing (Keccak-256)
- Key generation (secp256k1)
- Address derivation for participants and deployed instances

Design Notes:
-------------
Participants are identified by Ethereum-style addresses: the last 20 bytes of
keccak256(public_key), hex-encoded with a 0x prefix. Deployed auctions get an
address derived from their creator and a creation nonce, in the same way a
contract factory assigns addresses to the contracts it creates.
"""

import secrets
from dataclasses import dataclass

from Crypto.Hash import keccak
from py_ecc.secp256k1 import secp256k1


# =============================================================================
# Constants
# =============================================================================

# secp256k1 curve order (number of points on the curve)
SECP256K1_ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141

ADDRESS_SIZE = 20


# =============================================================================
# Hashing
# =============================================================================


def keccak256(data: bytes) -> bytes:
    """
    Compute Keccak-256 hash (Ethereum-style).

    Used for: address derivation, compatibility with EVM conventions.
    """
    k = keccak.new(digest_bits=256)
    k.update(data)
    return k.digest()


# =============================================================================
# Key Generation
# =============================================================================


@dataclass
class KeyPair:
    """
    An ECDSA keypair on secp256k1.

    Attributes:
        private_key: 32-byte secret key (integer in [1, order-1])
        public_key: 64-byte uncompressed public key (x || y coordinates)
    """
    private_key: bytes  # 32 bytes
    public_key: bytes   # 64 bytes (uncompressed, no 0x04 prefix)

    @property
    def address(self) -> str:
        """Hex address of this keypair (0x + 40 hex chars)."""
        return bytes_to_hex(address_from_public_key(self.public_key))


def private_key_to_public_key(private_key: bytes) -> bytes:
    """
    Derive public key from private key.

    Args:
        private_key: 32-byte private key

    Returns:
        64-byte uncompressed public key
    """
    if len(private_key) != 32:
        raise ValueError("Private key must be 32 bytes")

    public_key_point = secp256k1.privtopub(private_key)
    x_bytes = public_key_point[0].to_bytes(32, byteorder="big")
    y_bytes = public_key_point[1].to_bytes(32, byteorder="big")
    return x_bytes + y_bytes


def generate_keypair() -> KeyPair:
    """
    Generate a new random keypair.

    Uses cryptographically secure random number generator.
    """
    private_key_int = secrets.randbelow(SECP256K1_ORDER - 1) + 1
    private_key = private_key_int.to_bytes(32, byteorder="big")
    return KeyPair(private_key=private_key, public_key=private_key_to_public_key(private_key))


# =============================================================================
# Addresses
# =============================================================================


def address_from_public_key(public_key: bytes) -> bytes:
    """
    Derive address from public key (Ethereum-style).

    address = keccak256(public_key)[-20:]
    """
    if len(public_key) != 64:
        raise ValueError("Public key must be 64 bytes")
    return keccak256(public_key)[-ADDRESS_SIZE:]


def derive_instance_address(creator: str, nonce: int) -> str:
    """
    Derive the address of an instance created by `creator`.

    address = keccak256(creator || nonce)[-20:]

    Args:
        creator: Hex address of the creating registry
        nonce: Number of instances the creator made before this one

    Returns:
        Hex address with 0x prefix
    """
    if nonce < 0:
        raise ValueError(f"nonce must be non-negative, got {nonce}")
    digest = keccak256(hex_to_bytes(creator) + nonce.to_bytes(8, byteorder="big"))
    return bytes_to_hex(digest[-ADDRESS_SIZE:])


def random_address() -> str:
    """Random hex address, for identities that hold no key (registries, tests)."""
    return bytes_to_hex(secrets.token_bytes(ADDRESS_SIZE))


# =============================================================================
# Utility Functions
# =============================================================================


def bytes_to_hex(data: bytes) -> str:
    """Convert bytes to hex string with 0x prefix."""
    return "0x" + data.hex()


def hex_to_bytes(hex_str: str) -> bytes:
    """Convert hex string (with or without 0x prefix) to bytes."""
    if hex_str.startswith("0x") or hex_str.startswith("0X"):
        hex_str = hex_str[2:]
    return bytes.fromhex(hex_str)


def is_valid_address(address: str) -> bool:
    """Check if string is a valid address format."""
    if not address.startswith("0x"):
        return False
    if len(address) != 42:  # 0x + 40 hex chars
        return False
    try:
        int(address, 16)
        return True
    except ValueError:
        return False


__all__ = [
    "keccak256",
    "KeyPair",
    "private_key_to_public_key",
    "generate_keypair",
    "address_from_public_key",
    "derive_instance_address",
    "random_address",
    "bytes_to_hex",
    "hex_to_bytes",
    "is_valid_address",
    "SECP256K1_ORDER",
    "ADDRESS_SIZE",
]
