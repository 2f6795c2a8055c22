# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Client for the aptEth Move module and the two bridge operations built on it.

``BridgeClient`` extends :class:`RestClient` with one method per entry point of
the module (``initialize``, ``register``, ``mint``, ``transfer``, ``burn``).
Each builds, signs and submits one transaction and returns its hash without
waiting for it.

The bridge operations chain two of those calls:

- ``bridge_to_aptos``: register the destination address, then mint to it.
- ``bridge_to_eth``: transfer out of the holder's balance to the burning
  account, then burn from there.

The two transactions are independent. If the second one fails the first one
stays committed; the returned :class:`BridgeResult` records which step failed
and which hashes were already committed so the caller can decide on a
compensating action.

Examples:
    Bridging into the Aptos side::

        client = BridgeClient(NODE_URL, owner.address())
        await client.wait_for_transaction(await client.initialize(owner, 18))

        result = await client.bridge_to_aptos(owner, holder, 10_000_000_000)
        if not result.success:
            print(f"{result.failed_step} failed after {result.committed}")
"""

import logging
import unittest
import unittest.mock
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

import httpx

from .account import Account
from .account_address import AccountAddress
from .async_client import ClientConfig, FaucetClient, RemoteError, RestClient
from .stub_node import StubNode
from .transactions import EntryFunctionCall, TransactionPayload

DEFAULT_MODULE_NAME = "apt_eth"


class BridgeStep(Enum):
    REGISTER = "register"
    MINT = "mint"
    TRANSFER = "transfer"
    BURN = "burn"


class BridgeStepFailure(Exception):
    """A step of a bridge operation failed.

    Attributes:
        step: The step that failed.
        committed: Hashes of the steps that were committed before it.
    """

    step: BridgeStep
    committed: List[str]

    def __init__(self, message: str, step: BridgeStep, committed: List[str]):
        super().__init__(message)
        self.step = step
        self.committed = committed


@dataclass
class BridgeResult:
    """Outcome of a two step bridge operation."""

    success: bool
    committed: List[str] = field(default_factory=list)
    failed_step: Optional[BridgeStep] = None
    error: Optional[Exception] = None

    def raise_for_failure(self) -> None:
        if self.success:
            return
        assert self.failed_step is not None
        raise BridgeStepFailure(
            f"{self.failed_step.value} failed: {self.error}",
            self.failed_step,
            list(self.committed),
        ) from self.error


class BridgeClient(RestClient):
    """RestClient bound to one published aptEth module."""

    contract_address: AccountAddress
    module_name: str

    def __init__(
        self,
        base_url: str,
        contract_address: AccountAddress,
        module_name: str = DEFAULT_MODULE_NAME,
        client_config: ClientConfig = ClientConfig(),
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(base_url, client_config, transport)
        self.contract_address = contract_address
        self.module_name = module_name

    def module(self) -> str:
        return f"{self.contract_address}::{self.module_name}"

    def balance_resource(self) -> str:
        return f"{self.module()}::Balance"

    async def asset_balance(self, account_address: AccountAddress) -> Optional[int]:
        """aptEth balance of an account, None if it holds no balance resource."""
        return await self.account_balance(account_address, self.balance_resource())

    async def _call(self, sender: Account, function: str, args: List) -> str:
        payload = EntryFunctionCall.natural(self.module(), function, [], args)
        return await self.submit_payload(sender, TransactionPayload(payload))

    #
    # Entry points
    #

    async def initialize(self, owner: Account, scaling_factor: int) -> str:
        """Create the asset under the publishing account."""
        return await self._call(owner, "initialize", [scaling_factor])

    async def register(self, owner: Account, registered: AccountAddress) -> str:
        """Register ``registered`` as a holder, opening its balance."""
        return await self._call(owner, "register", [registered])

    async def mint(self, owner: Account, recipient: AccountAddress, amount: int) -> str:
        return await self._call(owner, "mint", [recipient, amount])

    async def transfer_asset(
        self, sender: Account, recipient: AccountAddress, amount: int
    ) -> str:
        return await self._call(sender, "transfer", [recipient, amount])

    async def burn(self, holder: Account, amount: int) -> str:
        return await self._call(holder, "burn", [amount])

    #
    # Bridge operations
    #

    async def bridge_to_aptos(
        self, owner: Account, registered: Account, amount: int
    ) -> BridgeResult:
        """Register ``registered`` and mint ``amount`` to it, signed by ``owner``."""
        result = BridgeResult(success=False)
        step = BridgeStep.REGISTER
        try:
            txn_hash = await self.register(owner, registered.address())
            await self.wait_for_transaction(txn_hash)
            result.committed.append(txn_hash)

            step = BridgeStep.MINT
            txn_hash = await self.mint(owner, registered.address(), amount)
            await self.wait_for_transaction(txn_hash)
            result.committed.append(txn_hash)
        except Exception as e:
            logging.error(f"bridge to aptos failed at {step.value}: {e}", exc_info=True)
            result.failed_step = step
            result.error = e
            return result
        result.success = True
        return result

    async def bridge_to_eth(
        self, holder: Account, burner: Account, amount: int
    ) -> BridgeResult:
        """Move ``amount`` from ``holder`` to ``burner`` and burn it there."""
        result = BridgeResult(success=False)
        step = BridgeStep.TRANSFER
        try:
            txn_hash = await self.transfer_asset(holder, burner.address(), amount)
            await self.wait_for_transaction(txn_hash)
            result.committed.append(txn_hash)

            step = BridgeStep.BURN
            txn_hash = await self.burn(burner, amount)
            await self.wait_for_transaction(txn_hash)
            result.committed.append(txn_hash)
        except Exception as e:
            logging.error(f"bridge to eth failed at {step.value}: {e}", exc_info=True)
            result.failed_step = step
            result.error = e
            return result
        result.success = True
        return result


class Test(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.node = StubNode(pending_polls=1)
        self.owner = Account.generate()
        self.holder = Account.generate()
        self.client = BridgeClient(
            self.node.node_url,
            self.owner.address(),
            client_config=ClientConfig(transaction_poll_interval=0),
            transport=self.node.transport(),
        )
        faucet = FaucetClient(self.node.faucet_url, self.client)
        await faucet.fund_account(self.owner.address(), 1_000_000)
        await faucet.fund_account(self.holder.address(), 1_000_000)
        await self.client.wait_for_transaction(
            await self.client.publish_module(self.owner, b"\xa1\x1c\xeb\x0b")
        )

    async def asyncTearDown(self):
        await self.client.close()

    async def test_call_before_initialize_fails(self):
        with self.assertRaises(RemoteError) as cm:
            await self.client.register(self.owner, self.holder.address())
        self.assertEqual(cm.exception.status_code, 400)

        await self.client.wait_for_transaction(
            await self.client.initialize(self.owner, 18)
        )
        await self.client.wait_for_transaction(
            await self.client.register(self.owner, self.holder.address())
        )
        self.assertEqual(await self.client.asset_balance(self.holder.address()), 0)

    async def test_entry_function_payload(self):
        await self.client.initialize(self.owner, 18)
        payload = self.node.submitted[-1]["payload"]
        self.assertEqual(
            payload["function"], f"{self.owner.address()}::apt_eth::initialize"
        )
        self.assertEqual(payload["arguments"], ["18"])
        self.assertEqual(payload["type_arguments"], [])

    async def test_bridge_round_trip(self):
        await self.client.wait_for_transaction(
            await self.client.initialize(self.owner, 18)
        )
        self.assertIsNone(await self.client.asset_balance(self.holder.address()))

        result = await self.client.bridge_to_aptos(self.owner, self.holder, 1_000)
        self.assertTrue(result.success)
        self.assertEqual(len(result.committed), 2)
        self.assertIsNone(result.failed_step)
        result.raise_for_failure()
        self.assertEqual(await self.client.asset_balance(self.holder.address()), 1_000)

        result = await self.client.bridge_to_eth(self.holder, self.owner, 400)
        self.assertTrue(result.success)
        self.assertEqual(await self.client.asset_balance(self.holder.address()), 600)
        self.assertEqual(await self.client.asset_balance(self.owner.address()), 0)

    async def test_mint_failure_keeps_registration(self):
        await self.client.wait_for_transaction(
            await self.client.initialize(self.owner, 18)
        )
        self.node.fail_function("mint")

        result = await self.client.bridge_to_aptos(self.owner, self.holder, 1_000)
        self.assertFalse(result.success)
        self.assertEqual(result.failed_step, BridgeStep.MINT)
        self.assertEqual(len(result.committed), 1)
        self.assertIsInstance(result.error, RemoteError)
        # Registration persists, the mint never happened.
        self.assertEqual(await self.client.asset_balance(self.holder.address()), 0)

        with self.assertRaises(BridgeStepFailure) as cm:
            result.raise_for_failure()
        self.assertEqual(cm.exception.step, BridgeStep.MINT)
        self.assertEqual(cm.exception.committed, result.committed)

    async def test_burn_failure(self):
        await self.client.wait_for_transaction(
            await self.client.initialize(self.owner, 18)
        )
        result = await self.client.bridge_to_aptos(self.owner, self.holder, 1_000)
        self.assertTrue(result.success)
        self.node.fail_function("burn")

        result = await self.client.bridge_to_eth(self.holder, self.owner, 250)
        self.assertFalse(result.success)
        self.assertEqual(result.failed_step, BridgeStep.BURN)
        self.assertEqual(await self.client.asset_balance(self.owner.address()), 250)

    async def test_first_step_failure(self):
        with unittest.mock.patch.object(
            BridgeClient, "register", side_effect=RemoteError("down", 503)
        ):
            result = await self.client.bridge_to_aptos(self.owner, self.holder, 1)
        self.assertFalse(result.success)
        self.assertEqual(result.failed_step, BridgeStep.REGISTER)
        self.assertEqual(result.committed, [])
