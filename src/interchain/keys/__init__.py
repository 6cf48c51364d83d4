"""Account key material and address encoding."""

from .bech32 import Bech32
from .keypair import (
    AccountKeypair,
    address_from_public_key,
    generate_key_entry,
    verify_signature,
)

__all__ = [
    "AccountKeypair",
    "Bech32",
    "address_from_public_key",
    "generate_key_entry",
    "verify_signature",
]
