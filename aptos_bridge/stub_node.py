# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
An in-process stand-in for the node and faucet HTTP APIs.

``StubNode`` answers the handful of endpoints the bridge uses through an
``httpx.MockTransport``, so the whole pipeline can run without a network:

- ``GET /accounts/{address}`` and ``GET /accounts/{address}/resources``
- ``POST /transactions/signing_message``, ``POST /transactions`` and
  ``GET /transactions/{hash}``
- the faucet's ``POST /mint`` and health check

Submitted transactions are verified (signature, authentication key, sequence
number, expiration) and executed immediately. Entry functions that abort are
rejected at submission with a 400, which the client reports as a
``RemoteError``. A transaction is then reported as pending for
``pending_polls`` status queries before it shows up as committed.

Only the test coin transfer and the aptEth module entry points are modelled.

Examples:
    Wiring clients to the stub::

        node = StubNode()
        rest_client = RestClient(node.node_url, transport=node.transport())
        faucet_client = FaucetClient(node.faucet_url, rest_client)
"""

from __future__ import annotations

import hashlib
import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Set

import httpx
from nacl.exceptions import BadSignatureError
from nacl.signing import VerifyKey

from .account_address import AccountAddress, AuthKeyScheme, ParseAddressError
from .async_client import TEST_COIN_BALANCE

SIGNING_PREFIX = hashlib.sha3_256(b"RawTransaction::").digest()


class MoveAbort(Exception):
    """An entry function aborted; the transaction is rejected."""


@dataclass
class _AccountState:
    sequence_number: int = 0
    resources: Dict[str, Dict[str, Any]] = field(default_factory=dict)


@dataclass
class _AssetState:
    owner: str
    scaling_factor: int
    registered: Set[str] = field(default_factory=set)


class StubNode:
    """Node and faucet stand-in served through an ``httpx.MockTransport``."""

    node_url: str
    faucet_url: str
    pending_polls: int
    faucet_minimum: int

    def __init__(
        self,
        node_url: str = "https://fullnode.stub.test",
        faucet_url: str = "https://faucet.stub.test",
        pending_polls: int = 0,
        faucet_minimum: int = 0,
    ):
        self.node_url = node_url
        self.faucet_url = faucet_url
        self.pending_polls = pending_polls
        self.faucet_minimum = faucet_minimum
        self.accounts: Dict[str, _AccountState] = {}
        self.modules: Dict[str, bytes] = {}
        self.assets: Dict[str, _AssetState] = {}
        self.transactions: Dict[str, Dict[str, Any]] = {}
        self.submitted: List[Dict[str, Any]] = []
        self.failures: Dict[str, str] = {}
        self._polls_left: Dict[str, int] = {}

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def fail_function(self, function_name: str, reason: str = "forced failure"):
        """Make every call to an entry function named ``function_name`` abort."""
        self.failures[function_name] = reason

    def balance(self, address: AccountAddress | str, resource_type: str) -> int:
        state = self.accounts.get(self._normalize(str(address)))
        if state is None or resource_type not in state.resources:
            return 0
        return int(state.resources[resource_type]["coin"]["value"])

    #
    # Routing
    #

    def handle(self, request: httpx.Request) -> httpx.Response:
        if request.url.host == httpx.URL(self.faucet_url).host:
            return self._handle_faucet(request)

        segments = [s for s in request.url.path.split("/") if s]
        method = request.method
        try:
            if method == "GET" and len(segments) == 2 and segments[0] == "accounts":
                return self._get_account(segments[1])
            if (
                method == "GET"
                and len(segments) == 3
                and segments[0] == "accounts"
                and segments[2] == "resources"
            ):
                return self._get_resources(segments[1])
            if method == "POST" and segments == ["transactions", "signing_message"]:
                return self._signing_message(json.loads(request.content))
            if method == "POST" and segments == ["transactions"]:
                return self._submit(json.loads(request.content))
            if method == "GET" and len(segments) == 2 and segments[0] == "transactions":
                return self._get_transaction(segments[1])
        except (KeyError, ValueError, ParseAddressError) as e:
            return _error(400, f"Invalid request: {e}")
        return _error(404, f"No route for {method} {request.url.path}")

    def _handle_faucet(self, request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return httpx.Response(200, text="tap:ok")
        if request.method != "POST" or request.url.path.rstrip("/") != "/mint":
            return _error(404, f"No route for {request.method} {request.url.path}")
        try:
            amount = int(request.url.params["amount"])
            address = self._normalize(request.url.params["address"])
        except (KeyError, ValueError, ParseAddressError) as e:
            return _error(400, f"Invalid mint request: {e}")

        state = self.accounts.setdefault(address, _AccountState())
        self._credit(state, TEST_COIN_BALANCE, max(amount, self.faucet_minimum))
        txn_hash = self._record({"type": "faucet_mint", "address": address})
        return httpx.Response(200, json=[txn_hash])

    #
    # Accounts
    #

    def _get_account(self, address: str) -> httpx.Response:
        address = self._normalize(address)
        state = self.accounts.get(address)
        if state is None:
            return _error(404, f"Account not found: {address}")
        return httpx.Response(
            200,
            json={
                "sequence_number": str(state.sequence_number),
                "authentication_key": address,
            },
        )

    def _get_resources(self, address: str) -> httpx.Response:
        address = self._normalize(address)
        state = self.accounts.get(address)
        if state is None:
            return _error(404, f"Account not found: {address}")
        account_resource = {
            "type": "0x1::Account::Account",
            "data": {"sequence_number": str(state.sequence_number)},
        }
        resources = [account_resource]
        resources += [
            {"type": resource_type, "data": data}
            for resource_type, data in state.resources.items()
        ]
        return httpx.Response(200, json=resources)

    #
    # Transactions
    #

    def _signing_message(self, body: Dict[str, Any]) -> httpx.Response:
        if "signature" in body:
            return _error(400, "Signing message requested for a signed transaction")
        return httpx.Response(
            200, json={"message": f"0x{self._message_for(body).hex()}"}
        )

    def _submit(self, body: Dict[str, Any]) -> httpx.Response:
        signature = body.pop("signature", None)
        if signature is None:
            return _error(400, "Transaction is not signed")

        sender = self._normalize(body["sender"])
        public_key = bytes.fromhex(signature["public_key"][2:])
        try:
            VerifyKey(public_key).verify(
                self._message_for(body), bytes.fromhex(signature["signature"][2:])
            )
        except (BadSignatureError, ValueError):
            return _error(400, "Invalid signature")

        auth_key = hashlib.sha3_256(public_key + AuthKeyScheme.Ed25519).digest()
        if str(AccountAddress(auth_key)) != sender:
            return _error(400, "Public key does not match the sender's auth key")

        state = self.accounts.get(sender)
        if state is None:
            return _error(400, f"Sender account not found: {sender}")
        if int(body["sequence_number"]) != state.sequence_number:
            return _error(
                400,
                f"Sequence number {body['sequence_number']} does not match "
                f"{state.sequence_number}",
            )
        if int(body["expiration_timestamp_secs"]) <= int(time.time()):
            return _error(400, "Transaction expired")

        try:
            self._execute(sender, body["payload"])
        except MoveAbort as e:
            logging.debug(f"stub node rejected transaction from {sender}: {e}")
            return _error(400, f"Move abort: {e}")

        state.sequence_number += 1
        self.submitted.append(body)
        txn_hash = self._record({"type": "user_transaction", "sender": sender})
        return httpx.Response(202, json={"hash": txn_hash, "type": "pending_transaction"})

    def _get_transaction(self, txn_hash: str) -> httpx.Response:
        if txn_hash not in self.transactions:
            return _error(404, f"Transaction not found: {txn_hash}")
        if self._polls_left[txn_hash] > 0:
            self._polls_left[txn_hash] -= 1
            return httpx.Response(
                200, json={"type": "pending_transaction", "hash": txn_hash}
            )
        return httpx.Response(200, json=self.transactions[txn_hash])

    def _record(self, info: Dict[str, Any]) -> str:
        seed = f"{len(self.transactions)}:{json.dumps(info, sort_keys=True)}"
        txn_hash = f"0x{hashlib.sha3_256(seed.encode()).hexdigest()}"
        self.transactions[txn_hash] = dict(info, hash=txn_hash, success=True)
        self._polls_left[txn_hash] = self.pending_polls
        return txn_hash

    @staticmethod
    def _message_for(body: Dict[str, Any]) -> bytes:
        canonical = json.dumps(body, sort_keys=True, separators=(",", ":"))
        return SIGNING_PREFIX + hashlib.sha3_256(canonical.encode()).digest()

    #
    # Execution
    #

    def _execute(self, sender: str, payload: Dict[str, Any]) -> None:
        if payload["type"] == "module_bundle_payload":
            for module in payload["modules"]:
                self.modules[sender] = bytes.fromhex(module["bytecode"][2:])
            return
        if payload["type"] != "script_function_payload":
            raise MoveAbort(f"Unknown payload type {payload['type']}")

        address, module_name, function_name = payload["function"].split("::")
        if function_name in self.failures:
            raise MoveAbort(self.failures[function_name])
        args = payload["arguments"]

        if self._normalize(address) == "0x1" and module_name == "TestCoin":
            if function_name != "transfer":
                raise MoveAbort(f"Unknown function {payload['function']}")
            self._move(sender, self._normalize(args[0]), TEST_COIN_BALANCE, int(args[1]))
            return

        contract = self._normalize(address)
        if contract not in self.modules:
            raise MoveAbort(f"Module {payload['function']} is not published")
        handler = self._asset_functions().get(function_name)
        if handler is None:
            raise MoveAbort(f"Unknown function {payload['function']}")
        handler(contract, module_name, sender, args)

    def _asset_functions(
        self,
    ) -> Dict[str, Callable[[str, str, str, List[str]], None]]:
        return {
            "initialize": self._initialize,
            "register": self._register,
            "mint": self._mint,
            "transfer": self._transfer,
            "burn": self._burn,
        }

    def _initialize(self, contract, module_name, sender, args):
        if sender != contract:
            raise MoveAbort("Only the publishing account may initialize")
        if contract in self.assets:
            raise MoveAbort("Already initialized")
        self.assets[contract] = _AssetState(owner=sender, scaling_factor=int(args[0]))
        self._open_balance(sender, _asset_type(contract, module_name))

    def _register(self, contract, module_name, sender, args):
        asset = self._asset(contract)
        if sender != asset.owner:
            raise MoveAbort("Only the owner may register addresses")
        registered = self._normalize(args[0])
        asset.registered.add(registered)
        self._open_balance(registered, _asset_type(contract, module_name))

    def _mint(self, contract, module_name, sender, args):
        asset = self._asset(contract)
        if sender != asset.owner:
            raise MoveAbort("Only the owner may mint")
        recipient = self._normalize(args[0])
        if recipient not in asset.registered and recipient != asset.owner:
            raise MoveAbort(f"{recipient} is not registered")
        state = self.accounts.setdefault(recipient, _AccountState())
        self._credit(state, _asset_type(contract, module_name), int(args[1]))

    def _transfer(self, contract, module_name, sender, args):
        self._asset(contract)
        recipient = self._normalize(args[0])
        resource_type = _asset_type(contract, module_name)
        self._open_balance(recipient, resource_type)
        self._move(sender, recipient, resource_type, int(args[1]))

    def _burn(self, contract, module_name, sender, args):
        self._asset(contract)
        resource_type = _asset_type(contract, module_name)
        self._debit(self.accounts[sender], resource_type, int(args[0]))

    def _asset(self, contract: str) -> _AssetState:
        asset = self.assets.get(contract)
        if asset is None:
            raise MoveAbort(f"Asset at {contract} is not initialized")
        return asset

    def _open_balance(self, address: str, resource_type: str) -> None:
        state = self.accounts.setdefault(address, _AccountState())
        state.resources.setdefault(resource_type, {"coin": {"value": "0"}})

    def _move(self, sender: str, recipient: str, resource_type: str, amount: int):
        self._debit(self.accounts[sender], resource_type, amount)
        state = self.accounts.setdefault(recipient, _AccountState())
        self._credit(state, resource_type, amount)

    @staticmethod
    def _credit(state: _AccountState, resource_type: str, amount: int) -> None:
        data = state.resources.setdefault(resource_type, {"coin": {"value": "0"}})
        data["coin"]["value"] = str(int(data["coin"]["value"]) + amount)

    @staticmethod
    def _debit(state: _AccountState, resource_type: str, amount: int) -> None:
        data: Optional[Dict[str, Any]] = state.resources.get(resource_type)
        if data is None or int(data["coin"]["value"]) < amount:
            raise MoveAbort(f"Insufficient {resource_type} balance")
        data["coin"]["value"] = str(int(data["coin"]["value"]) - amount)

    @staticmethod
    def _normalize(address: str) -> str:
        return str(AccountAddress.from_str_relaxed(address))


def _asset_type(contract: str, module_name: str) -> str:
    return f"{contract}::{module_name}::Balance"


def _error(status_code: int, message: str) -> httpx.Response:
    return httpx.Response(status_code, json={"code": status_code, "message": message})
