"""
Bech32 address encoding (BIP-173).

Account addresses on the chains under test are bech32 strings such as
"cosmos1qypqxpq9qcrsszg2pvxq6rs0zqg3yyc5lzv7xu". The human-readable prefix
identifies the chain; the data part carries the account bytes.
"""

from __future__ import annotations

from typing import Final


class Bech32:
    """Bech32 encoding/decoding with the BIP-173 checksum."""

    CHARSET: Final[str] = "qpzry9x8gf2tvdw0s3jn54khce6mua7l"
    """Data-part alphabet (excludes 1, b, i, o)."""

    GENERATOR: Final[tuple[int, ...]] = (
        0x3B6A57B2,
        0x26508E6D,
        0x1EA119FA,
        0x3D4233DD,
        0x2A1462B3,
    )
    """BCH code generator coefficients."""

    @classmethod
    def _polymod(cls, values: list[int]) -> int:
        chk = 1
        for value in values:
            top = chk >> 25
            chk = (chk & 0x1FFFFFF) << 5 ^ value
            for i, gen in enumerate(cls.GENERATOR):
                if (top >> i) & 1:
                    chk ^= gen
        return chk

    @staticmethod
    def _hrp_expand(hrp: str) -> list[int]:
        return [ord(c) >> 5 for c in hrp] + [0] + [ord(c) & 31 for c in hrp]

    @staticmethod
    def convert_bits(data: bytes | list[int], from_bits: int, to_bits: int, pad: bool) -> list[int]:
        """
        Regroup a sequence of `from_bits`-wide values into `to_bits`-wide values.

        Raises:
            ValueError: If the input has a value out of range or invalid padding.
        """
        acc = 0
        bits = 0
        result: list[int] = []
        max_value = (1 << to_bits) - 1
        for value in data:
            if value < 0 or value >> from_bits:
                raise ValueError(f"Value {value} does not fit in {from_bits} bits")
            acc = (acc << from_bits) | value
            bits += from_bits
            while bits >= to_bits:
                bits -= to_bits
                result.append((acc >> bits) & max_value)
        if pad:
            if bits:
                result.append((acc << (to_bits - bits)) & max_value)
        elif bits >= from_bits or ((acc << (to_bits - bits)) & max_value):
            raise ValueError("Invalid padding in bech32 data")
        return result

    @classmethod
    def encode(cls, hrp: str, data: bytes) -> str:
        """
        Encode raw bytes under a human-readable prefix.

        Args:
            hrp: Human-readable prefix (e.g. "cosmos").
            data: Payload bytes (typically a 20-byte account hash).

        Returns:
            Lowercase bech32 string.
        """
        five_bit = cls.convert_bits(data, 8, 5, pad=True)
        polymod = cls._polymod(cls._hrp_expand(hrp) + five_bit + [0] * 6) ^ 1
        checksum = [(polymod >> 5 * (5 - i)) & 31 for i in range(6)]
        return hrp + "1" + "".join(cls.CHARSET[d] for d in five_bit + checksum)

    @classmethod
    def decode(cls, address: str) -> tuple[str, bytes]:
        """
        Decode a bech32 string into its prefix and payload bytes.

        Raises:
            ValueError: If the string is malformed or the checksum fails.
        """
        if address.lower() != address and address.upper() != address:
            raise ValueError(f"Mixed-case bech32 string: {address!r}")
        address = address.lower()

        pos = address.rfind("1")
        if pos < 1 or pos + 7 > len(address):
            raise ValueError(f"Invalid bech32 separator position in {address!r}")

        hrp = address[:pos]
        try:
            values = [cls.CHARSET.index(c) for c in address[pos + 1 :]]
        except ValueError:
            raise ValueError(f"Invalid bech32 character in {address!r}") from None

        if cls._polymod(cls._hrp_expand(hrp) + values) != 1:
            raise ValueError(f"Invalid bech32 checksum in {address!r}")

        return hrp, bytes(cls.convert_bits(values[:-6], 5, 8, pad=False))
