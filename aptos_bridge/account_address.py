# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Account addresses for the Aptos ledger side of the bridge.

An address is 32 bytes. For a single Ed25519 key it is derived as
``sha3_256(public_key_bytes || 0x00)``; the trailing byte identifies the
signature scheme so that different schemes never map the same key material to
the same address.

String forms follow AIP-40: special addresses ``0x0`` through ``0xf`` are shown
in SHORT form, every other address as ``0x`` followed by 64 hex characters.
"""

from __future__ import annotations

import hashlib
import unittest

from . import asymmetric_crypto, ed25519


class AuthKeyScheme:
    """Scheme identifier bytes appended to key material before hashing."""

    Ed25519: bytes = b"\x00"


class ParseAddressError(Exception):
    """An address string or byte sequence could not be parsed."""


class AccountAddress:
    """A 32-byte account identifier."""

    address: bytes
    LENGTH: int = 32

    def __init__(self, address: bytes):
        self.address = address

        if len(address) != AccountAddress.LENGTH:
            raise ParseAddressError("Expected address of length 32")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AccountAddress):
            return NotImplemented
        return self.address == other.address

    def __hash__(self) -> int:
        return hash(self.address)

    def __str__(self):
        suffix = self.address.hex()
        if self.is_special():
            suffix = suffix.lstrip("0") or "0"
        return f"0x{suffix}"

    def __repr__(self):
        return self.__str__()

    def is_special(self):
        """True for ``0x0`` through ``0xf``: 31 zero bytes then a value below 16."""
        return all(b == 0 for b in self.address[:-1]) and self.address[-1] < 0b10000

    @staticmethod
    def from_str(address: str) -> AccountAddress:
        """Strict AIP-40 parsing.

        Requires the ``0x`` prefix and LONG form, except for special addresses
        which may use SHORT form.

        Raises:
            ParseAddressError: If the string does not follow the strict format.
        """
        if not address.startswith("0x"):
            raise ParseAddressError("Hex string must start with a leading 0x.")

        out = AccountAddress.from_str_relaxed(address)

        if len(address) != AccountAddress.LENGTH * 2 + 2:
            if not out.is_special():
                raise ParseAddressError(
                    "The given hex string is not a special address, it must be "
                    "represented as 0x + 64 chars."
                )
            # 0x0f is not a valid SHORT form, only 0xf is.
            if len(address) != 3:
                raise ParseAddressError(
                    "The given hex string is a special address not in LONG form, "
                    "it must be 0x0 to 0xf without padding zeroes."
                )

        return out

    @staticmethod
    def from_str_relaxed(address: str) -> AccountAddress:
        """Lenient parsing: optional ``0x`` prefix and any length from 1 to 64.

        Short inputs are left padded with zeroes, so ``"1"`` and
        ``"0x0001"`` both parse to ``0x1``.

        Raises:
            ParseAddressError: If the string is empty, too long or not hex.
        """
        addr = address

        if address[0:2] == "0x":
            addr = address[2:]

        if len(addr) < 1:
            raise ParseAddressError(
                "Hex string is too short, must be 1 to 64 chars long, excluding the "
                "leading 0x."
            )

        if len(addr) > 64:
            raise ParseAddressError(
                "Hex string is too long, must be 1 to 64 chars long, excluding the "
                "leading 0x."
            )

        if len(addr) < AccountAddress.LENGTH * 2:
            pad = "0" * (AccountAddress.LENGTH * 2 - len(addr))
            addr = pad + addr

        try:
            return AccountAddress(bytes.fromhex(addr))
        except ValueError as e:
            raise ParseAddressError(f"Invalid hex string: {address}") from e

    @staticmethod
    def from_key(key: asymmetric_crypto.PublicKey) -> AccountAddress:
        """Derive the account address owned by a public key.

        Raises:
            Exception: If the key type is not supported.
        """
        hasher = hashlib.sha3_256()
        hasher.update(key.to_crypto_bytes())

        if isinstance(key, ed25519.PublicKey):
            hasher.update(AuthKeyScheme.Ed25519)
        else:
            raise Exception("Unsupported asymmetric_crypto.PublicKey key type.")

        return AccountAddress(hasher.digest())


class Test(unittest.TestCase):
    def test_from_key(self):
        private_key = ed25519.PrivateKey.from_hex(
            "9bf49a6a0755f953811fce125f2683d50429c3bb49e074147e0089a52eae155f"
        )
        public_key = private_key.public_key()

        hasher = hashlib.sha3_256()
        hasher.update(public_key.to_crypto_bytes() + b"\x00")
        expected = AccountAddress(hasher.digest())

        self.assertEqual(AccountAddress.from_key(public_key), expected)
        self.assertEqual(len(str(expected)), 66)

    def test_special_addresses(self):
        self.assertEqual(str(AccountAddress.from_str("0x1")), "0x1")
        self.assertEqual(str(AccountAddress(bytes(32))), "0x0")
        self.assertEqual(
            str(AccountAddress.from_str_relaxed("10")),
            "0x0000000000000000000000000000000000000000000000000000000000000010",
        )

    def test_from_str_relaxed(self):
        long_form = "ca843279e3427144cead5e4d5999a3d0ca843279e3427144cead5e4d5999a3d0"
        self.assertEqual(
            AccountAddress.from_str_relaxed(long_form),
            AccountAddress.from_str(f"0x{long_form}"),
        )
        self.assertEqual(
            AccountAddress.from_str_relaxed("0x0f"), AccountAddress.from_str("0xf")
        )

    def test_from_str_rejects(self):
        with self.assertRaises(ParseAddressError):
            AccountAddress.from_str("1")
        with self.assertRaises(ParseAddressError):
            AccountAddress.from_str("0x0f")
        with self.assertRaises(ParseAddressError):
            AccountAddress.from_str("0x10")
        with self.assertRaises(ParseAddressError):
            AccountAddress.from_str_relaxed("0x")
        with self.assertRaises(ParseAddressError):
            AccountAddress.from_str_relaxed("0xzz")
        with self.assertRaises(ParseAddressError):
            AccountAddress.from_str_relaxed("0" * 65)
