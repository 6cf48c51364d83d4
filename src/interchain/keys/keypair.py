"""
secp256k1 account keys generated by the orchestrator.

Relayer wallets and test-user wallets are created here, never by the relayer
or the chain. The generated `KeyEntry` is an immutable value: the chain that
funds it and the relayer that signs with it each hold a read-only copy.

Account addresses are the first 20 bytes of SHA-256 over the compressed public
key, bech32-encoded under the chain's prefix.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass

from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec

from interchain.ibc.types import KeyEntry

from .bech32 import Bech32

__all__ = [
    "AccountKeypair",
    "address_from_public_key",
    "generate_key_entry",
    "verify_signature",
]

ADDRESS_LENGTH = 20
"""Account address length in bytes."""


@dataclass(frozen=True, slots=True)
class AccountKeypair:
    """
    secp256k1 keypair backing one chain account.

    Attributes:
        private_key: The secp256k1 private key.
    """

    private_key: ec.EllipticCurvePrivateKey

    @classmethod
    def generate(cls) -> AccountKeypair:
        """Generate a new random secp256k1 keypair."""
        return cls(private_key=ec.generate_private_key(ec.SECP256K1()))

    @classmethod
    def from_bytes(cls, data: bytes) -> AccountKeypair:
        """
        Load keypair from raw private key bytes.

        Args:
            data: 32-byte secp256k1 private key.

        Raises:
            ValueError: If data is not a valid secp256k1 private key.
        """
        if len(data) != 32:
            raise ValueError(f"Expected 32 bytes, got {len(data)}")

        private_key = ec.derive_private_key(int.from_bytes(data, "big"), ec.SECP256K1())
        return cls(private_key=private_key)

    def private_key_bytes(self) -> bytes:
        """Return the raw 32-byte private key."""
        return self.private_key.private_numbers().private_value.to_bytes(32, "big")

    def public_key_bytes(self) -> bytes:
        """
        Return the compressed secp256k1 public key (33 bytes).

        The compressed format starts with 0x02 (even y) or 0x03 (odd y),
        followed by the 32-byte x coordinate.
        """
        return self.private_key.public_key().public_bytes(
            encoding=serialization.Encoding.X962,
            format=serialization.PublicFormat.CompressedPoint,
        )

    def address(self, bech32_prefix: str) -> str:
        """Account address under a chain's bech32 prefix."""
        return address_from_public_key(self.public_key_bytes(), bech32_prefix)

    def sign(self, message: bytes) -> bytes:
        """Sign a message with ECDSA-SHA256. Returns a DER-encoded signature."""
        return self.private_key.sign(message, ec.ECDSA(hashes.SHA256()))

    def to_key_entry(self, key_name: str, bech32_prefix: str) -> KeyEntry:
        """Freeze this keypair into the value handed to chains and relayers."""
        return KeyEntry(
            key_name=key_name,
            private_key=self.private_key_bytes().hex(),
            public_key=self.public_key_bytes().hex(),
            address=self.address(bech32_prefix),
        )


def address_from_public_key(public_key: bytes, bech32_prefix: str) -> str:
    """Derive the bech32 account address of a compressed public key."""
    account = hashlib.sha256(public_key).digest()[:ADDRESS_LENGTH]
    return Bech32.encode(bech32_prefix, account)


def generate_key_entry(key_name: str, bech32_prefix: str) -> KeyEntry:
    """Generate fresh key material for one account on one chain."""
    return AccountKeypair.generate().to_key_entry(key_name, bech32_prefix)


def verify_signature(public_key_bytes: bytes, message: bytes, signature: bytes) -> bool:
    """
    Verify an ECDSA-SHA256 signature.

    Args:
        public_key_bytes: 33-byte compressed secp256k1 public key.
        message: Original message that was signed.
        signature: DER-encoded ECDSA signature.

    Returns:
        True if the signature is valid.
    """
    from cryptography.exceptions import InvalidSignature

    public_key = ec.EllipticCurvePublicKey.from_encoded_point(ec.SECP256K1(), public_key_bytes)

    try:
        public_key.verify(signature, message, ec.ECDSA(hashes.SHA256()))
        return True
    except InvalidSignature:
        return False
