# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Asynchronous clients for the node and the faucet the bridge talks to.

- **RestClient** wraps the full node's REST API: account lookups, resource
  scans and the transaction pipeline (build, sign, submit, wait).
- **FaucetClient** funds test accounts and waits for the funding transactions
  through a ``RestClient``.

Transaction pipeline:
    1. ``create_transaction`` looks up the sender's current sequence number and
       wraps the payload in a :class:`TransactionRequest` that expires
       ``expiration_ttl`` seconds from now.
    2. ``sign_transaction`` asks the node for the canonical signing message of
       that request, signs it with the sender's key and attaches the signature
       block.
    3. ``submit_transaction`` posts the signed request and returns its hash.
    4. ``wait_for_transaction`` polls the hash until the node no longer
       reports it as pending.

Nothing is cached between transactions: each one starts from a freshly
fetched sequence number, so two transactions from the same account must not
be in flight at once.

Examples:
    Funding an account and sending test coins::

        rest_client = RestClient("https://fullnode.devnet.aptoslabs.com")
        faucet_client = FaucetClient("https://faucet.devnet.aptoslabs.com", rest_client)

        alice = Account.generate()
        bob = Account.generate()
        await faucet_client.fund_account(alice.address(), 1_000_000)

        txn_hash = await rest_client.transfer(alice, bob.address(), 1_000)
        await rest_client.wait_for_transaction(txn_hash)
        print(await rest_client.account_balance(bob.address()))

        await rest_client.close()

Error Handling:
    - RemoteError: the node or faucet answered with an unexpected status
    - AccountNotFound: the account lookup used for sequence numbers failed
    - TransactionTimeout: a transaction stayed pending for every poll
    - SigningFailure: no usable signing message or signature
"""

import asyncio
import json
import logging
import time
import unittest
import unittest.mock
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from .account import Account
from .account_address import AccountAddress
from .metadata import Metadata
from .transactions import (
    EntryFunctionCall,
    ModulePublish,
    SignatureBlock,
    SigningFailure,
    TransactionPayload,
    TransactionRequest,
)

TEST_COIN_BALANCE = "0x1::TestCoin::Balance"


@dataclass
class ClientConfig:
    """Common configuration for clients, particularly for submitting transactions.

    Attributes:
        expiration_ttl: Seconds from construction until a transaction expires.
        gas_unit_price: Price per unit of gas.
        max_gas_amount: Gas budget for every transaction.
        gas_currency_code: Currency the gas is paid in.
        transaction_wait_attempts: Status polls before giving up on a
            transaction.
        transaction_poll_interval: Seconds to sleep after each pending poll.
        http2: Enable HTTP/2.
        api_key: Optional bearer token sent with every request.
    """

    expiration_ttl: int = 600
    gas_unit_price: int = 1
    max_gas_amount: int = 2000
    gas_currency_code: str = "XUS"
    transaction_wait_attempts: int = 10
    transaction_poll_interval: float = 1.0
    http2: bool = True
    api_key: Optional[str] = None


class RestClient:
    """A wrapper around the node's REST API."""

    client: httpx.AsyncClient
    client_config: ClientConfig
    base_url: str

    def __init__(
        self,
        base_url: str,
        client_config: ClientConfig = ClientConfig(),
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the REST client.

        Args:
            base_url: Base URL of the node's REST API, without a trailing slash.
            client_config: Gas, expiration and polling settings.
            transport: Replaces the network transport; used to run against an
                in-process node.
        """
        self.base_url = base_url.rstrip("/")
        # Default limits
        limits = httpx.Limits()
        # Default timeouts but do not set a pool timeout, since the idea is that jobs will wait as
        # long as progress is being made.
        timeout = httpx.Timeout(60.0, pool=None)
        # Default headers
        headers = {Metadata.APTOS_HEADER: Metadata.get_aptos_header_val()}
        self.client = httpx.AsyncClient(
            http2=client_config.http2,
            limits=limits,
            timeout=timeout,
            headers=headers,
            transport=transport,
        )
        self.client_config = client_config
        if client_config.api_key:
            self.client.headers["Authorization"] = f"Bearer {client_config.api_key}"

    async def close(self):
        await self.client.aclose()

    #
    # Account accessors
    #

    async def account(self, account_address: AccountAddress) -> Dict[str, str]:
        """Returns the sequence number and authentication key for an account.

        :raises AccountNotFound: If the node answers with anything but 200.
        """
        response = await self._get(endpoint=f"accounts/{account_address}")
        if response.status_code != 200:
            raise AccountNotFound(
                f"{response.text} - {account_address}",
                account_address,
                response.status_code,
            )
        return response.json()

    async def account_sequence_number(self, account_address: AccountAddress) -> int:
        account_res = await self.account(account_address)
        return int(account_res["sequence_number"])

    async def account_resources(
        self, account_address: AccountAddress
    ) -> List[Dict[str, Any]]:
        """Returns all resources associated with the account.

        :raises RemoteError: If the node answers with anything but 200; the
            response body is kept as the message.
        """
        response = await self._get(endpoint=f"accounts/{account_address}/resources")
        if response.status_code != 200:
            raise RemoteError(
                f"{response.text} - {account_address}", response.status_code
            )
        return response.json()

    async def account_resource(
        self, account_address: AccountAddress, resource_type: str
    ) -> Optional[Dict[str, Any]]:
        """Scan the account's resources for ``resource_type``.

        Returns the resource's ``data`` member, or None when the account holds
        no such resource. Absence is a normal state, e.g. for an account that
        has never received the asset.
        """
        for resource in await self.account_resources(account_address):
            if resource["type"] == resource_type:
                return resource["data"]
        return None

    async def account_balance(
        self, account_address: AccountAddress, resource_type: str = TEST_COIN_BALANCE
    ) -> Optional[int]:
        """Returns the coin balance held in ``resource_type``, None if absent."""
        data = await self.account_resource(account_address, resource_type)
        if data is None:
            return None
        return int(data["coin"]["value"])

    #
    # Transaction pipeline
    #

    async def create_transaction(
        self, sender: AccountAddress, payload: TransactionPayload
    ) -> TransactionRequest:
        """Generates a transaction request that can be signed and then submitted.

        The sequence number comes from an account lookup made right here, the
        expiration is the current time plus ``expiration_ttl``. A request that
        is not committed before it expires is rejected by the node.
        """
        sequence_number = await self.account_sequence_number(sender)
        return TransactionRequest(
            sender=sender,
            sequence_number=sequence_number,
            max_gas_amount=self.client_config.max_gas_amount,
            gas_unit_price=self.client_config.gas_unit_price,
            gas_currency_code=self.client_config.gas_currency_code,
            expiration_timestamp_secs=int(time.time())
            + self.client_config.expiration_ttl,
            payload=payload,
        )

    async def signing_message(self, transaction: TransactionRequest) -> bytes:
        """Fetch the node's canonical signing message for an unsigned request.

        :raises RemoteError: If the node cannot produce the message.
        :raises SigningFailure: If the message is missing or not hex.
        """
        response = await self._post(
            endpoint="transactions/signing_message", data=transaction.to_dict()
        )
        if response.status_code != 200:
            raise RemoteError(
                f"{response.text} - {json.dumps(transaction.to_dict())}",
                response.status_code,
            )
        message = response.json().get("message")
        if not isinstance(message, str):
            raise SigningFailure(f"No signing message in response: {response.text}")
        if message[0:2] == "0x":
            message = message[2:]
        try:
            return bytes.fromhex(message)
        except ValueError as e:
            raise SigningFailure(f"Signing message is not hex: {message}") from e

    async def sign_transaction(
        self, sender: Account, transaction: TransactionRequest
    ) -> TransactionRequest:
        """Converts a request produced by ``create_transaction`` into a signed one.

        The signature block carries the 64-byte Ed25519 signature over the
        node's signing message and the sender's public key.
        """
        to_sign = await self.signing_message(transaction)
        try:
            signature = sender.sign(to_sign)
        except (TypeError, ValueError) as e:
            raise SigningFailure(f"Unable to sign for {sender.address()}: {e}") from e
        transaction.attach_signature(
            SignatureBlock(
                public_key=str(sender.public_key()),
                signature=f"0x{signature.data().hex()}",
            )
        )
        return transaction

    async def submit_transaction(self, transaction: TransactionRequest) -> str:
        """Submits a signed transaction and returns its hash.

        :raises RemoteError: Unless the node accepts the transaction with a 202.
        """
        response = await self._post(endpoint="transactions", data=transaction.to_dict())
        if response.status_code != 202:
            raise RemoteError(
                f"{response.text} - {json.dumps(transaction.to_dict())}",
                response.status_code,
            )
        return response.json()["hash"]

    async def submit_payload(self, sender: Account, payload: TransactionPayload) -> str:
        """Build, sign and submit ``payload`` from ``sender``; returns the hash."""
        transaction = await self.create_transaction(sender.address(), payload)
        signed_transaction = await self.sign_transaction(sender, transaction)
        return await self.submit_transaction(signed_transaction)

    async def submit_and_wait(self, sender: Account, payload: TransactionPayload) -> str:
        txn_hash = await self.submit_payload(sender, payload)
        await self.wait_for_transaction(txn_hash)
        return txn_hash

    async def transaction_pending(self, txn_hash: str) -> bool:
        response = await self._get(endpoint=f"transactions/{txn_hash}")
        # Not indexed yet.
        if response.status_code == 404:
            return True
        if response.status_code != 200:
            raise RemoteError(response.text, response.status_code)
        return response.json()["type"] == "pending_transaction"

    async def transaction_by_hash(self, txn_hash: str) -> Dict[str, Any]:
        response = await self._get(endpoint=f"transactions/{txn_hash}")
        if response.status_code != 200:
            raise RemoteError(response.text, response.status_code)
        return response.json()

    async def wait_for_transaction(self, txn_hash: str) -> None:
        """Waits for a transaction to move past pending state.

        Polls up to ``transaction_wait_attempts`` times, sleeping
        ``transaction_poll_interval`` seconds after every pending answer.

        :raises TransactionTimeout: If every poll reported the transaction as
            pending.
        :raises RemoteError: On any status other than 200 and 404.
        """
        attempts = self.client_config.transaction_wait_attempts
        for attempt in range(attempts):
            if not await self.transaction_pending(txn_hash):
                return
            logging.debug(f"transaction {txn_hash} pending, poll {attempt + 1}")
            await asyncio.sleep(self.client_config.transaction_poll_interval)
        raise TransactionTimeout(
            f"Waiting for transaction {txn_hash} timed out after {attempts} polls",
            txn_hash,
        )

    #
    # Transaction wrappers
    #

    async def transfer(
        self, sender: Account, recipient: AccountAddress, amount: int
    ) -> str:
        """Transfer test coins from ``sender`` to ``recipient``; returns the hash."""
        payload = EntryFunctionCall.natural(
            "0x1::TestCoin",
            "transfer",
            [],
            [recipient, amount],
        )
        return await self.submit_payload(sender, TransactionPayload(payload))

    async def publish_module(self, sender: Account, module_bytecode: bytes) -> str:
        """Publish a compiled module under the sender's address; returns the hash."""
        payload = TransactionPayload(ModulePublish(module_bytecode))
        return await self.submit_payload(sender, payload)

    async def _post(
        self,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        # format params:
        params = {} if params is None else params
        params = {key: val for key, val in params.items() if val is not None}
        return await self.client.post(
            url=f"{self.base_url}/{endpoint}",
            params=params,
            json=data,
        )

    async def _get(
        self, endpoint: str, params: Optional[Dict[str, Any]] = None
    ) -> httpx.Response:
        # format params:
        params = {} if params is None else params
        params = {key: val for key, val in params.items() if val is not None}
        return await self.client.get(
            url=f"{self.base_url}/{endpoint}",
            params=params,
        )


class FaucetClient:
    """Faucet creates and funds accounts. This is a thin wrapper around that."""

    base_url: str
    rest_client: RestClient
    headers: Dict[str, str]

    def __init__(
        self, base_url: str, rest_client: RestClient, auth_token: Optional[str] = None
    ):
        self.base_url = base_url.rstrip("/")
        self.rest_client = rest_client
        self.headers = {}
        if auth_token:
            self.headers["Authorization"] = f"Bearer {auth_token}"

    async def close(self):
        await self.rest_client.close()

    async def fund_account(
        self, address: AccountAddress, amount: int, wait_for_transaction=True
    ) -> List[str]:
        """This creates an account if it does not exist and mints the specified amount of
        coins into that account.

        The faucet may run several transactions for one request; each returned
        hash is awaited in turn, and the funds are only guaranteed to be
        available once this returns.
        """
        request = f"{self.base_url}/mint?amount={amount}&address={address}"
        response = await self.rest_client.client.post(request, headers=self.headers)
        if response.status_code != 200:
            raise RemoteError(response.text, response.status_code)
        txn_hashes = response.json()
        if wait_for_transaction:
            for txn_hash in txn_hashes:
                await self.rest_client.wait_for_transaction(txn_hash)
        return txn_hashes

    async def healthy(self) -> bool:
        response = await self.rest_client.client.get(self.base_url)
        return "tap:ok" == response.text


class RemoteError(Exception):
    """The node or faucet returned an unexpected status code"""

    status_code: int

    def __init__(self, message: str, status_code: int):
        # Call the base class constructor with the parameters it needs
        super().__init__(message)
        self.status_code = status_code


class AccountNotFound(Exception):
    """The account was not found"""

    account: AccountAddress
    status_code: int

    def __init__(self, message: str, account: AccountAddress, status_code: int = 404):
        # Call the base class constructor with the parameters it needs
        super().__init__(message)
        self.account = account
        self.status_code = status_code


class TransactionTimeout(Exception):
    """The transaction was still pending after the last poll"""

    txn_hash: str

    def __init__(self, message: str, txn_hash: str):
        super().__init__(message)
        self.txn_hash = txn_hash


class Test(unittest.IsolatedAsyncioTestCase):
    NODE_URL = "https://fullnode.bridge.test"
    FAUCET_URL = "https://faucet.bridge.test"

    def rest_client(self, handler, **config) -> RestClient:
        return RestClient(
            self.NODE_URL,
            ClientConfig(transaction_poll_interval=0, **config),
            transport=httpx.MockTransport(handler),
        )

    async def test_wait_returns_on_first_non_pending(self):
        statuses = [
            httpx.Response(404, text="not found"),
            httpx.Response(200, json={"type": "pending_transaction"}),
            httpx.Response(200, json={"type": "user_transaction", "success": True}),
        ]
        requests: List[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return statuses[len(requests) - 1]

        rest_client = self.rest_client(handler)
        await rest_client.wait_for_transaction("0xabc")
        self.assertEqual(len(requests), 3)
        self.assertEqual(requests[0].url.path, "/transactions/0xabc")
        await rest_client.close()

    async def test_wait_times_out_after_ten_polls(self):
        requests: List[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(404, text="not found")

        rest_client = self.rest_client(handler)
        with self.assertRaises(TransactionTimeout) as cm:
            await rest_client.wait_for_transaction("0xabc")
        self.assertEqual(cm.exception.txn_hash, "0xabc")
        self.assertEqual(len(requests), 10)
        await rest_client.close()

    async def test_wait_sleeps_between_polls(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, text="not found")

        rest_client = RestClient(self.NODE_URL, transport=httpx.MockTransport(handler))
        with unittest.mock.patch(
            "asyncio.sleep", new_callable=unittest.mock.AsyncMock
        ) as sleep:
            with self.assertRaises(TransactionTimeout):
                await rest_client.wait_for_transaction("0xabc")
        self.assertEqual(sleep.await_count, 10)
        sleep.assert_has_awaits([unittest.mock.call(1.0)] * 10)
        await rest_client.close()

    async def test_transaction_by_hash(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/transactions/0xabc":
                return httpx.Response(
                    200, json={"type": "user_transaction", "hash": "0xabc"}
                )
            return httpx.Response(500, text="boom")

        rest_client = self.rest_client(handler)
        transaction = await rest_client.transaction_by_hash("0xabc")
        self.assertEqual(transaction["type"], "user_transaction")
        with self.assertRaises(RemoteError) as cm:
            await rest_client.transaction_by_hash("0xdef")
        self.assertEqual(cm.exception.status_code, 500)
        await rest_client.close()

    async def test_wait_raises_on_server_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, text="boom")

        rest_client = self.rest_client(handler)
        with self.assertRaises(RemoteError) as cm:
            await rest_client.wait_for_transaction("0xabc")
        self.assertEqual(cm.exception.status_code, 500)
        self.assertIn("boom", str(cm.exception))
        await rest_client.close()

    def test_default_config(self):
        config = ClientConfig()
        self.assertEqual(config.transaction_wait_attempts, 10)
        self.assertEqual(config.transaction_poll_interval, 1.0)
        self.assertEqual(config.expiration_ttl, 600)

    async def test_account_not_found(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"message": "missing"})

        rest_client = self.rest_client(handler)
        address = AccountAddress.from_str("0x1")
        with self.assertRaises(AccountNotFound) as cm:
            await rest_client.account(address)
        self.assertEqual(cm.exception.account, address)
        with self.assertRaises(RemoteError):
            await rest_client.account_resources(address)
        await rest_client.close()

    async def test_resource_scan(self):
        resources = [
            {"type": "0x1::Account::Account", "data": {"sequence_number": "0"}},
            {"type": TEST_COIN_BALANCE, "data": {"coin": {"value": "1234"}}},
        ]

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=resources)

        rest_client = self.rest_client(handler)
        address = AccountAddress.from_str("0x1")
        self.assertEqual(await rest_client.account_balance(address), 1234)
        self.assertIsNone(
            await rest_client.account_balance(address, "0x1::Other::Balance")
        )
        self.assertIsNone(await rest_client.account_resource(address, "0x2::Foo::Bar"))
        await rest_client.close()

    async def test_create_transaction(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200, json={"sequence_number": "7", "authentication_key": "0x00"}
            )

        rest_client = self.rest_client(handler)
        sender = Account.generate()
        payload = TransactionPayload(ModulePublish(b"\x01"))
        before = int(time.time())
        transaction = await rest_client.create_transaction(sender.address(), payload)
        after = int(time.time())

        self.assertEqual(transaction.sequence_number, 7)
        self.assertEqual(transaction.sender, sender.address())
        self.assertEqual(transaction.max_gas_amount, 2000)
        self.assertEqual(transaction.gas_unit_price, 1)
        self.assertEqual(transaction.gas_currency_code, "XUS")
        self.assertGreaterEqual(transaction.expiration_timestamp_secs, before + 600)
        self.assertLessEqual(transaction.expiration_timestamp_secs, after + 600)
        await rest_client.close()

    async def test_sign_transaction_verifies(self):
        message = b"\xb5\xe9\x7d\xb0" + bytes(range(60))
        bodies: List[Dict[str, Any]] = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={"message": f"0x{message.hex()}"})

        rest_client = self.rest_client(handler)
        sender = Account.generate()
        transaction = TransactionRequest(
            sender.address(),
            0,
            2000,
            1,
            "XUS",
            int(time.time()) + 600,
            TransactionPayload(ModulePublish(b"\x01")),
        )
        signed = await rest_client.sign_transaction(sender, transaction)

        self.assertNotIn("signature", bodies[0])
        assert signed.signature is not None
        self.assertEqual(signed.signature.public_key, str(sender.public_key()))
        signature_bytes = bytes.fromhex(signed.signature.signature[2:])
        self.assertEqual(len(signature_bytes), 64)
        sender.public_key().key.verify(message, signature_bytes)
        await rest_client.close()

    async def test_signing_message_errors(self):
        responses = [
            httpx.Response(400, text="bad request"),
            httpx.Response(200, json={"unexpected": True}),
            httpx.Response(200, json={"message": "0xnothex"}),
        ]

        def handler(request: httpx.Request) -> httpx.Response:
            return responses.pop(0)

        rest_client = self.rest_client(handler)
        sender = Account.generate()

        def transaction() -> TransactionRequest:
            return TransactionRequest(
                sender.address(),
                0,
                2000,
                1,
                "XUS",
                0,
                TransactionPayload(ModulePublish(b"\x01")),
            )

        with self.assertRaises(RemoteError):
            await rest_client.sign_transaction(sender, transaction())
        with self.assertRaises(SigningFailure):
            await rest_client.sign_transaction(sender, transaction())
        with self.assertRaises(SigningFailure):
            await rest_client.sign_transaction(sender, transaction())
        await rest_client.close()

    async def test_sign_transaction_rejects_bad_key(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"message": "0xb5e9"})

        rest_client = self.rest_client(handler)
        sender = Account.generate()
        transaction = TransactionRequest(
            sender.address(),
            0,
            2000,
            1,
            "XUS",
            0,
            TransactionPayload(ModulePublish(b"\x01")),
        )
        with unittest.mock.patch.object(
            Account, "sign", side_effect=ValueError("bad key")
        ):
            with self.assertRaises(SigningFailure):
                await rest_client.sign_transaction(sender, transaction)
        self.assertIsNone(transaction.signature)
        await rest_client.close()

    async def test_submit_requires_accepted(self):
        responses = [
            httpx.Response(202, json={"hash": "0xfeed"}),
            httpx.Response(200, json={"hash": "0xfeed"}),
        ]

        def handler(request: httpx.Request) -> httpx.Response:
            return responses.pop(0)

        rest_client = self.rest_client(handler)
        transaction = TransactionRequest(
            AccountAddress.from_str("0x1"),
            0,
            2000,
            1,
            "XUS",
            0,
            TransactionPayload(ModulePublish(b"\x01")),
        )
        self.assertEqual(await rest_client.submit_transaction(transaction), "0xfeed")
        with self.assertRaises(RemoteError) as cm:
            await rest_client.submit_transaction(transaction)
        self.assertEqual(cm.exception.status_code, 200)
        await rest_client.close()

    async def test_transfer(self):
        submitted: List[Dict[str, Any]] = []

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.startswith("/accounts/"):
                return httpx.Response(200, json={"sequence_number": "7"})
            if request.url.path == "/transactions/signing_message":
                return httpx.Response(200, json={"message": "0xb5e9"})
            submitted.append(json.loads(request.content))
            return httpx.Response(202, json={"hash": "0xbeef"})

        rest_client = self.rest_client(handler)
        sender = Account.generate()
        recipient = Account.generate().address()
        self.assertEqual(await rest_client.transfer(sender, recipient, 1_000), "0xbeef")

        self.assertEqual(len(submitted), 1)
        self.assertEqual(submitted[0]["sequence_number"], "7")
        self.assertEqual(
            submitted[0]["payload"],
            {
                "type": "script_function_payload",
                "function": "0x1::TestCoin::transfer",
                "type_arguments": [],
                "arguments": [str(recipient), "1000"],
            },
        )
        self.assertEqual(submitted[0]["signature"]["type"], "ed25519_signature")
        await rest_client.close()

    async def test_faucet_health(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="tap:ok")

        faucet_client = FaucetClient(self.FAUCET_URL, self.rest_client(handler))
        self.assertTrue(await faucet_client.healthy())
        await faucet_client.close()

    async def test_faucet_waits_for_every_hash(self):
        polled: List[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "faucet.bridge.test":
                self.assertEqual(request.url.params["amount"], "500")
                return httpx.Response(200, json=["0x01", "0x02"])
            polled.append(request.url.path)
            return httpx.Response(200, json={"type": "user_transaction"})

        rest_client = self.rest_client(handler)
        faucet_client = FaucetClient(self.FAUCET_URL, rest_client)
        hashes = await faucet_client.fund_account(AccountAddress.from_str("0x1"), 500)
        self.assertEqual(hashes, ["0x01", "0x02"])
        self.assertEqual(polled, ["/transactions/0x01", "/transactions/0x02"])
        await faucet_client.close()

    async def test_faucet_errors(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "faucet.bridge.test":
                return httpx.Response(200, json=["0x01"])
            return httpx.Response(404, text="not found")

        rest_client = self.rest_client(handler)
        faucet_client = FaucetClient(self.FAUCET_URL, rest_client)
        with self.assertRaises(TransactionTimeout):
            await faucet_client.fund_account(AccountAddress.from_str("0x1"), 500)

        def failing(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, text="faucet down")

        faucet_client = FaucetClient(self.FAUCET_URL, self.rest_client(failing))
        with self.assertRaises(RemoteError):
            await faucet_client.fund_account(AccountAddress.from_str("0x1"), 500)
        await faucet_client.close()
        await rest_client.close()
