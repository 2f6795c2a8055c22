# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Ed25519 keys and signatures for bridge accounts.

Thin wrappers around PyNaCl's ``SigningKey``/``VerifyKey``. The node hands the
client a signing message and expects the 64-byte detached Ed25519 signature
over it; :meth:`PrivateKey.sign` returns exactly that.

Examples:
    Deterministic keys from a seed::

        seed = bytes(32)
        private_key = PrivateKey.from_seed(seed)
        signature = private_key.sign(b"message")
        assert private_key.public_key().verify(b"message", signature)
"""

from __future__ import annotations

import unittest
from typing import cast

from nacl.exceptions import BadSignatureError, CryptoError
from nacl.signing import SigningKey, VerifyKey

from . import asymmetric_crypto
from .asymmetric_crypto import InvalidKeyMaterial


class PrivateKey(asymmetric_crypto.PrivateKey):
    """Ed25519 private key.

    The private key is exactly 32 bytes; those 32 bytes are also the seed
    NaCl expands into the full signing key, so a seed and a private key are
    interchangeable.

    Attributes:
        LENGTH: The byte length of Ed25519 private keys (32)
        key: The underlying NaCl SigningKey instance
    """

    LENGTH: int = 32

    key: SigningKey

    def __init__(self, key: SigningKey):
        self.key = key

    def __eq__(self, other: object):
        if not isinstance(other, PrivateKey):
            return NotImplemented
        return self.key == other.key

    def __str__(self):
        return self.aip80()

    @staticmethod
    def from_hex(value: str | bytes) -> PrivateKey:
        """Parse a hex string, AIP-80 string or raw bytes into a private key.

        Raises:
            InvalidKeyMaterial: If the input is not 32 bytes of valid hex.
        """
        return PrivateKey.from_seed(
            PrivateKey.parse_hex_input(
                value, asymmetric_crypto.PrivateKeyVariant.Ed25519, PrivateKey.LENGTH
            )
        )

    @staticmethod
    def from_str(value: str) -> PrivateKey:
        return PrivateKey.from_hex(value)

    @staticmethod
    def from_seed(seed: bytes) -> PrivateKey:
        """Derive a private key deterministically from a 32-byte seed.

        Raises:
            InvalidKeyMaterial: If the seed is not exactly 32 bytes.
        """
        if len(seed) != PrivateKey.LENGTH:
            raise InvalidKeyMaterial(
                f"Expected a {PrivateKey.LENGTH} byte seed, got {len(seed)}"
            )
        try:
            return PrivateKey(SigningKey(seed))
        except (CryptoError, TypeError, ValueError) as e:
            raise InvalidKeyMaterial(str(e)) from e

    def hex(self) -> str:
        return f"0x{self.key.encode().hex()}"

    def aip80(self) -> str:
        return PrivateKey.format_private_key(
            self.hex(), asymmetric_crypto.PrivateKeyVariant.Ed25519
        )

    def public_key(self) -> PublicKey:
        return PublicKey(self.key.verify_key)

    @staticmethod
    def random() -> PrivateKey:
        """Generate a private key from the system's secure random source."""
        return PrivateKey(SigningKey.generate())

    def sign(self, data: bytes) -> Signature:
        """Sign ``data`` and return the detached 64-byte signature.

        NaCl's combined output is ``signature || message``; only the leading
        signature bytes are kept.
        """
        return Signature(self.key.sign(data).signature)


class PublicKey(asymmetric_crypto.PublicKey):
    """Ed25519 public key, 32 bytes."""

    LENGTH: int = 32

    key: VerifyKey

    def __init__(self, key: VerifyKey):
        self.key = key

    def __eq__(self, other: object):
        if not isinstance(other, PublicKey):
            return NotImplemented
        return self.key == other.key

    def __str__(self) -> str:
        return f"0x{self.key.encode().hex()}"

    @staticmethod
    def from_str(value: str) -> PublicKey:
        if value[0:2] == "0x":
            value = value[2:]
        try:
            return PublicKey(VerifyKey(bytes.fromhex(value)))
        except (CryptoError, ValueError) as e:
            raise InvalidKeyMaterial(str(e)) from e

    def verify(self, data: bytes, signature: asymmetric_crypto.Signature) -> bool:
        """Verify ``signature`` over ``data``; returns False on any mismatch."""
        try:
            signature = cast(Signature, signature)
            self.key.verify(data, signature.data())
        except (BadSignatureError, ValueError, TypeError):
            return False
        return True

    def to_crypto_bytes(self) -> bytes:
        return self.key.encode()


class Signature(asymmetric_crypto.Signature):
    """Ed25519 signature, 64 bytes."""

    LENGTH: int = 64

    signature: bytes

    def __init__(self, signature: bytes):
        self.signature = signature

    def __eq__(self, other: object):
        if not isinstance(other, Signature):
            return NotImplemented
        return self.signature == other.signature

    def __str__(self) -> str:
        return f"0x{self.signature.hex()}"

    def data(self) -> bytes:
        return self.signature

    @staticmethod
    def from_str(value: str) -> Signature:
        if value[0:2] == "0x":
            value = value[2:]
        return Signature(bytes.fromhex(value))


class Test(unittest.TestCase):
    def test_private_key_from_str(self):
        private_key_hex = PrivateKey.from_str(
            "0x4e5e3be60f4bbd5e98d086d932f3ce779ff4b58da99bf9e5241ae1212a29e5fe"
        )
        private_key_with_prefix = PrivateKey.from_str(
            "ed25519-priv-0x4e5e3be60f4bbd5e98d086d932f3ce779ff4b58da99bf9e5241ae1212a29e5fe"
        )
        private_key_bytes = PrivateKey.from_hex(
            bytes.fromhex(
                "4e5e3be60f4bbd5e98d086d932f3ce779ff4b58da99bf9e5241ae1212a29e5fe"
            )
        )
        self.assertEqual(private_key_hex.hex(), private_key_with_prefix.hex())
        self.assertEqual(private_key_hex.hex(), private_key_bytes.hex())

    def test_private_key_aip80_formatting(self):
        private_key_with_prefix = "ed25519-priv-0x4e5e3be60f4bbd5e98d086d932f3ce779ff4b58da99bf9e5241ae1212a29e5fe"
        self.assertEqual(
            str(PrivateKey.from_str(private_key_with_prefix)),
            private_key_with_prefix,
        )

    def test_sign_and_verify(self):
        in_value = b"test_message"

        private_key = PrivateKey.random()
        public_key = private_key.public_key()

        signature = private_key.sign(in_value)
        self.assertEqual(len(signature.data()), Signature.LENGTH)
        self.assertTrue(public_key.verify(in_value, signature))
        self.assertFalse(public_key.verify(b"other_message", signature))
        self.assertEqual(Signature.from_str(str(signature)), signature)
        self.assertEqual(Signature.from_str(signature.data().hex()), signature)

    def test_signature_is_prefix_of_combined_output(self):
        private_key = PrivateKey.from_seed(bytes(range(32)))
        combined = bytes(private_key.key.sign(b"payload"))
        self.assertEqual(private_key.sign(b"payload").data(), combined[:64])

    def test_seed_is_deterministic(self):
        seed = b"\x07" * 32
        self.assertEqual(PrivateKey.from_seed(seed), PrivateKey.from_seed(seed))
        self.assertEqual(
            str(PrivateKey.from_seed(seed).public_key()),
            str(PrivateKey.from_seed(seed).public_key()),
        )

    def test_invalid_key_material(self):
        with self.assertRaises(InvalidKeyMaterial):
            PrivateKey.from_seed(b"\x01" * 31)
        with self.assertRaises(InvalidKeyMaterial):
            PrivateKey.from_hex("0x1234")
        with self.assertRaises(InvalidKeyMaterial):
            PrivateKey.from_hex("0xzz")

    def test_public_key_from_str(self):
        public_key = PrivateKey.random().public_key()
        self.assertEqual(PublicKey.from_str(str(public_key)), public_key)
