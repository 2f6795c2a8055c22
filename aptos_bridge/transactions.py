# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Transaction envelopes in the node's JSON form.

The node computes the canonical signing message itself (see
``RestClient.signing_message``), so everything here only needs to produce the
JSON request body: a payload, the envelope around it and the signature block
attached once the envelope has been signed.

Examples:
    Building an entry function call::

        payload = TransactionPayload(
            EntryFunctionCall.natural(
                f"{contract}::apt_eth",
                "mint",
                [],
                [recipient.address(), 1_000],
            )
        )
"""

from __future__ import annotations

import unittest
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from .account_address import AccountAddress


class PayloadKind(Enum):
    """Payload variants understood by the node, valued by their JSON tag."""

    MODULE_PUBLISH = "module_bundle_payload"
    ENTRY_FUNCTION_CALL = "script_function_payload"


def encode_argument(value: Any) -> str:
    """String-encode an entry function argument the way the JSON API expects.

    Addresses become ``0x`` hex, integers decimal strings, bytes ``0x`` hex and
    booleans ``true``/``false``.
    """
    if isinstance(value, AccountAddress):
        return str(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, bytes):
        return f"0x{value.hex()}"
    if isinstance(value, str):
        return value
    raise TypeError(f"Unsupported entry function argument: {value!r}")


@dataclass
class ModulePublish:
    """Publishes one compiled Move module under the sender's address."""

    bytecode: bytes

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": PayloadKind.MODULE_PUBLISH.value,
            "modules": [{"bytecode": f"0x{self.bytecode.hex()}"}],
        }


@dataclass
class EntryFunctionCall:
    """Calls ``<address>::<module>::<function>`` with string encoded arguments."""

    function_id: str
    type_arguments: List[str] = field(default_factory=list)
    arguments: List[str] = field(default_factory=list)

    @staticmethod
    def natural(
        module: str,
        function: str,
        ty_args: List[str],
        args: List[Any],
    ) -> EntryFunctionCall:
        return EntryFunctionCall(
            f"{module}::{function}",
            list(ty_args),
            [encode_argument(arg) for arg in args],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": PayloadKind.ENTRY_FUNCTION_CALL.value,
            "function": self.function_id,
            "type_arguments": self.type_arguments,
            "arguments": self.arguments,
        }


class TransactionPayload:
    """Tagged wrapper over the supported payload variants."""

    variant: PayloadKind
    value: Union[ModulePublish, EntryFunctionCall]

    def __init__(self, payload: Union[ModulePublish, EntryFunctionCall]):
        if isinstance(payload, ModulePublish):
            self.variant = PayloadKind.MODULE_PUBLISH
        elif isinstance(payload, EntryFunctionCall):
            self.variant = PayloadKind.ENTRY_FUNCTION_CALL
        else:
            raise TypeError("Invalid payload type")
        self.value = payload

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TransactionPayload):
            return NotImplemented
        return self.variant == other.variant and self.value == other.value

    def __str__(self) -> str:
        return str(self.value)

    def to_dict(self) -> Dict[str, Any]:
        return self.value.to_dict()


@dataclass
class SignatureBlock:
    """The ``signature`` member of a signed transaction request."""

    public_key: str
    signature: str
    type: str = "ed25519_signature"

    def to_dict(self) -> Dict[str, str]:
        return {
            "type": self.type,
            "public_key": self.public_key,
            "signature": self.signature,
        }


class SigningFailure(Exception):
    """The transaction could not be signed."""


@dataclass
class TransactionRequest:
    """An unsigned (or, once :meth:`attach_signature` ran, signed) envelope."""

    sender: AccountAddress
    sequence_number: int
    max_gas_amount: int
    gas_unit_price: int
    gas_currency_code: str
    expiration_timestamp_secs: int
    payload: TransactionPayload
    signature: Optional[SignatureBlock] = None

    def attach_signature(self, signature: SignatureBlock) -> None:
        if self.signature is not None:
            raise SigningFailure(
                f"Transaction {self.sender}:{self.sequence_number} is already signed"
            )
        self.signature = signature

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "sender": str(self.sender),
            "sequence_number": str(self.sequence_number),
            "max_gas_amount": str(self.max_gas_amount),
            "gas_unit_price": str(self.gas_unit_price),
            "gas_currency_code": self.gas_currency_code,
            "expiration_timestamp_secs": str(self.expiration_timestamp_secs),
            "payload": self.payload.to_dict(),
        }
        if self.signature is not None:
            data["signature"] = self.signature.to_dict()
        return data


class Test(unittest.TestCase):
    def test_entry_function_payload(self):
        recipient = AccountAddress.from_str("0x1")
        payload = TransactionPayload(
            EntryFunctionCall.natural(
                "0x1::TestCoin", "transfer", [], [recipient, 1_000]
            )
        )
        self.assertEqual(payload.variant, PayloadKind.ENTRY_FUNCTION_CALL)
        self.assertEqual(
            payload.to_dict(),
            {
                "type": "script_function_payload",
                "function": "0x1::TestCoin::transfer",
                "type_arguments": [],
                "arguments": ["0x1", "1000"],
            },
        )

    def test_module_publish_payload(self):
        payload = TransactionPayload(ModulePublish(b"\xa1\x1c\xeb\x0b"))
        self.assertEqual(payload.variant, PayloadKind.MODULE_PUBLISH)
        self.assertEqual(
            payload.to_dict(),
            {
                "type": "module_bundle_payload",
                "modules": [{"bytecode": "0xa11ceb0b"}],
            },
        )

    def test_invalid_payload(self):
        with self.assertRaises(TypeError):
            TransactionPayload({"type": "script_function_payload"})  # type: ignore[arg-type]
        with self.assertRaises(TypeError):
            encode_argument(1.5)

    def test_request_signed_once(self):
        request = TransactionRequest(
            AccountAddress.from_str("0x1"),
            3,
            2000,
            1,
            "XUS",
            1_700_000_600,
            TransactionPayload(ModulePublish(b"\x00")),
        )
        unsigned = request.to_dict()
        self.assertNotIn("signature", unsigned)
        self.assertEqual(unsigned["sequence_number"], "3")
        self.assertEqual(unsigned["expiration_timestamp_secs"], "1700000600")

        request.attach_signature(SignatureBlock("0xaa", "0xbb"))
        self.assertEqual(
            request.to_dict()["signature"],
            {"type": "ed25519_signature", "public_key": "0xaa", "signature": "0xbb"},
        )
        with self.assertRaises(SigningFailure):
            request.attach_signature(SignatureBlock("0xaa", "0xbb"))
