# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Accounts taking part in the bridge: an Ed25519 key pair plus the address it
derives.

Accounts live only as long as the process holding them; nothing here stores
key material.
"""

from __future__ import annotations

import unittest

from . import asymmetric_crypto, ed25519
from .account_address import AccountAddress


class Account:
    """An Ed25519 key pair and the account address derived from it.

    Examples:
        Fresh and deterministic accounts::

            owner = Account.generate()
            holder = Account.from_seed(bytes(32))

            print(f"Owner: {owner.address()}")
            print(f"Holder public key: {holder.public_key()}")
    """

    account_address: AccountAddress
    private_key: ed25519.PrivateKey

    def __init__(
        self, account_address: AccountAddress, private_key: ed25519.PrivateKey
    ):
        self.account_address = account_address
        self.private_key = private_key

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Account):
            return NotImplemented
        return (
            self.account_address == other.account_address
            and self.private_key == other.private_key
        )

    def __repr__(self) -> str:
        return f"Account({self.account_address})"

    @staticmethod
    def generate() -> Account:
        """Create an account from a cryptographically random key pair."""
        private_key = ed25519.PrivateKey.random()
        account_address = AccountAddress.from_key(private_key.public_key())
        return Account(account_address, private_key)

    @staticmethod
    def from_seed(seed: bytes) -> Account:
        """Create an account deterministically from a 32-byte seed.

        The same seed always yields the same key pair and therefore the same
        address.

        Raises:
            InvalidKeyMaterial: If the seed is not 32 bytes long.
        """
        private_key = ed25519.PrivateKey.from_seed(seed)
        account_address = AccountAddress.from_key(private_key.public_key())
        return Account(account_address, private_key)

    @staticmethod
    def load_key(key: str) -> Account:
        """Create an account from a hex or AIP-80 encoded private key."""
        private_key = ed25519.PrivateKey.from_str(key)
        account_address = AccountAddress.from_key(private_key.public_key())
        return Account(account_address, private_key)

    def address(self) -> AccountAddress:
        """The hash-derived address, ``0x`` followed by 64 hex characters."""
        return self.account_address

    def auth_key(self) -> str:
        """Authentication key for the current public key.

        Equals the address for every account created here, since key rotation
        is not supported.
        """
        return str(AccountAddress.from_key(self.private_key.public_key()))

    def sign(self, data: bytes) -> asymmetric_crypto.Signature:
        return self.private_key.sign(data)

    def public_key(self) -> ed25519.PublicKey:
        """Returns the public key for the associated account"""
        return self.private_key.public_key()


class Test(unittest.TestCase):
    def test_key(self):
        message = b"test message"
        account = Account.generate()
        signature = account.sign(message)
        self.assertTrue(account.public_key().verify(message, signature))

    def test_auth_key_matches_address(self):
        account = Account.generate()
        self.assertEqual(str(account.address()), account.auth_key())

    def test_seed_is_deterministic(self):
        seed = bytes(range(32))
        first = Account.from_seed(seed)
        second = Account.from_seed(seed)
        self.assertEqual(first, second)
        self.assertEqual(first.address(), second.address())
        self.assertEqual(str(first.public_key()), str(second.public_key()))

    def test_distinct_seeds_give_distinct_addresses(self):
        addresses = {
            str(Account.from_seed(bytes([i]) * 32).address()) for i in range(16)
        }
        self.assertEqual(len(addresses), 16)

    def test_load_key(self):
        start = Account.generate()
        loaded = Account.load_key(start.private_key.hex())
        self.assertEqual(start, loaded)

    def test_invalid_seed(self):
        with self.assertRaises(asymmetric_crypto.InvalidKeyMaterial):
            Account.from_seed(b"short")

    def test_public_key_hex(self):
        account = Account.from_seed(bytes(32))
        public_key = str(account.public_key())
        self.assertTrue(public_key.startswith("0x"))
        self.assertEqual(len(public_key), 2 + 64)
