# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Asymmetric cryptographic interfaces used by the bridge accounts.

This module defines the structural protocols that concrete key types follow
(see ``ed25519.py``) together with the helpers for turning operator supplied
key material into raw bytes. Anything that cannot be turned into a usable key
is reported as :class:`InvalidKeyMaterial`.

Examples:
    Parsing a hex encoded private key::

        from aptos_bridge.asymmetric_crypto import PrivateKey, PrivateKeyVariant

        key_bytes = PrivateKey.parse_hex_input(
            "ed25519-priv-0x1234abcd...", PrivateKeyVariant.Ed25519
        )
"""

from __future__ import annotations

from enum import Enum

from typing_extensions import Protocol


class InvalidKeyMaterial(Exception):
    """Seed or private key bytes that cannot form a key pair."""


class PrivateKeyVariant(Enum):
    """Signature schemes a private key may belong to.

    The value doubles as the AIP-80 prefix stem, e.g. ``ed25519-priv-``.
    """

    Ed25519 = "ed25519"


class PrivateKey(Protocol):
    """Protocol for private keys able to sign transaction signing messages.

    Methods:
        hex() -> str: Hexadecimal representation of the private key
        public_key() -> PublicKey: Derive the corresponding public key
        sign(data: bytes) -> Signature: Sign data and return signature
    """

    def hex(self) -> str:
        ...

    def public_key(self) -> PublicKey:
        ...

    def sign(self, data: bytes) -> Signature:
        ...

    AIP80_PREFIXES: dict[PrivateKeyVariant, str] = {
        PrivateKeyVariant.Ed25519: "ed25519-priv-",
    }

    @staticmethod
    def format_private_key(
        private_key: bytes | str, key_type: PrivateKeyVariant
    ) -> str:
        """Format a private key as an AIP-80 string, ``{scheme}-priv-0x{hex}``."""
        if key_type not in PrivateKey.AIP80_PREFIXES:
            raise ValueError(f"Unknown private key type: {key_type}")
        aip80_prefix = PrivateKey.AIP80_PREFIXES[key_type]

        key_value: str | None = None
        if isinstance(private_key, str):
            if private_key.startswith(aip80_prefix):
                key_value = private_key.split("-")[2]
            else:
                key_value = private_key
        elif isinstance(private_key, bytes):
            key_value = f"0x{private_key.hex()}"
        else:
            raise TypeError("Input value must be a string or bytes.")

        return f"{aip80_prefix}{key_value}"

    @staticmethod
    def parse_hex_input(
        value: str | bytes, key_type: PrivateKeyVariant, length: int | None = None
    ) -> bytes:
        """Parse private key input to raw bytes.

        Accepts raw bytes, a plain hex string (with or without ``0x``) or an
        AIP-80 compliant string.

        Args:
            value: The key material.
            key_type: The expected signature scheme.
            length: When given, the exact number of bytes the key must have.

        Returns:
            The decoded key bytes.

        Raises:
            InvalidKeyMaterial: If the input is not valid hex or has the wrong
                length.
            TypeError: If value is neither a string nor bytes.
        """
        if key_type not in PrivateKey.AIP80_PREFIXES:
            raise ValueError(f"Unknown private key type: {key_type}")
        aip80_prefix = PrivateKey.AIP80_PREFIXES[key_type]

        if isinstance(value, str):
            if value.startswith(aip80_prefix):
                value = value.split("-")[2]
            if value[0:2] == "0x":
                value = value[2:]
            try:
                parsed = bytes.fromhex(value)
            except ValueError as e:
                raise InvalidKeyMaterial(f"Invalid hex key material: {e}") from e
        elif isinstance(value, bytes):
            parsed = value
        else:
            raise TypeError("Input value must be a string or bytes.")

        if length is not None and len(parsed) != length:
            raise InvalidKeyMaterial(
                f"Expected {length} bytes of key material, got {len(parsed)}"
            )
        return parsed


class PublicKey(Protocol):
    """Protocol for public keys: verification and address derivation."""

    def to_crypto_bytes(self) -> bytes:
        """The raw key bytes that are hashed into an account address."""
        ...

    def verify(self, data: bytes, signature: Signature) -> bool:
        ...


class Signature(Protocol):
    """Protocol for signatures produced by a :class:`PrivateKey`."""

    def data(self) -> bytes:
        ...
