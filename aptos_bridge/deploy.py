# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Deploy the aptEth module and bridge a first batch of tokens into it.

The script:
    1. generates an owner and a holder account and funds both from the faucet
    2. prints their test coin and aptEth balances
    3. waits for the operator to rebuild the module with the owner's address
       and copy it to ``module_path``
    4. publishes the module, initializes the asset and bridges
       ``BRIDGE_AMOUNT`` to the holder
    5. prints the final balances

Usage::

    python -m aptos_bridge.deploy path/to/apt_eth.mv

The operator confirmation is an injected coroutine so the whole sequence can
run unattended, e.g. against ``StubNode`` in tests.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import tempfile
import unittest
import unittest.mock
from typing import Any, Awaitable, Callable, List, Optional

import httpx

from . import common
from .account import Account
from .account_address import AccountAddress
from .async_client import (
    TEST_COIN_BALANCE,
    ClientConfig,
    FaucetClient,
    RemoteError,
    RestClient,
)
from .bridge_client import BridgeClient, BridgeResult, BridgeStep
from .stub_node import StubNode

OWNER_FUNDING = 1_000_000
HOLDER_FUNDING = 1_000_000_000
SCALING_FACTOR = 18
BRIDGE_AMOUNT = 10_000_000_000

CONFIRM_PROMPT = (
    "Update the module with the owner's address, build, copy to the provided "
    "path, and press enter."
)

Confirm = Callable[[str], Awaitable[Any]]


async def prompt_operator(prompt: str) -> str:
    """Read a line from stdin without blocking the event loop."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, input, prompt)


async def print_balances(
    client: BridgeClient,
    accounts: List[tuple[str, Account]],
    asset_resource: Optional[str],
):
    for name, account in accounts:
        print(f"{name}: {await client.account_balance(account.address())}")
    if asset_resource is None:
        return
    for name, account in accounts:
        balance = await client.account_balance(account.address(), asset_resource)
        print(f"{name} aptEth: {balance}")


async def main(
    module_path: str,
    confirm: Confirm = prompt_operator,
    node_url: str = common.NODE_URL,
    faucet_url: str = common.FAUCET_URL,
    client_config: Optional[ClientConfig] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    owner: Optional[Account] = None,
    holder: Optional[Account] = None,
) -> BridgeResult:
    owner = owner or Account.generate()
    holder = holder or Account.generate()
    accounts = [("Owner", owner), ("Holder", holder)]

    print("\n=== Addresses ===")
    print(f"Owner: {owner.address()}")
    print(f"Holder: {holder.address()}")

    if client_config is None:
        client_config = ClientConfig(api_key=common.API_KEY)
    rest_client = BridgeClient(
        node_url,
        owner.address(),
        common.APT_ETH_NAME,
        client_config,
        transport,
    )
    faucet_client = FaucetClient(faucet_url, rest_client, common.FAUCET_AUTH_TOKEN)

    try:
        await faucet_client.fund_account(owner.address(), OWNER_FUNDING)
        await faucet_client.fund_account(holder.address(), HOLDER_FUNDING)

        existing_asset = None
        if common.APT_ETH_ADDRESS:
            contract = AccountAddress.from_str_relaxed(common.APT_ETH_ADDRESS)
            existing_asset = f"{contract}::{common.APT_ETH_NAME}::Balance"

        print("\n=== Initial Balance ===")
        await print_balances(rest_client, accounts, existing_asset)

        await confirm(CONFIRM_PROMPT)
        with open(module_path, "rb") as f:
            module_bytecode = f.read()

        print("\n=== Testing aptEth ===")
        print("Publishing...")
        txn_hash = await rest_client.publish_module(owner, module_bytecode)
        print("\n=== Tx Hash ===")
        print(txn_hash)
        await rest_client.wait_for_transaction(txn_hash)

        txn_hash = await rest_client.initialize(owner, SCALING_FACTOR)
        await rest_client.wait_for_transaction(txn_hash)

        result = await rest_client.bridge_to_aptos(owner, holder, BRIDGE_AMOUNT)
        if result.success:
            print(f"\nBridged {BRIDGE_AMOUNT} to {holder.address()}")
        else:
            assert result.failed_step is not None
            print(f"\nBridge failed at {result.failed_step.value}: {result.error}")
            print(f"Committed: {result.committed}")

        print("\n=== After Balance ===")
        await print_balances(rest_client, accounts, rest_client.balance_resource())
        return result
    finally:
        await faucet_client.close()


def cli(argv: List[str]) -> int:
    parser = argparse.ArgumentParser(description="Deploy the aptEth bridge module.")
    parser.add_argument("module_path", help="Path to the compiled aptEth module")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Logging level, e.g. INFO or DEBUG",
    )
    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level.upper())

    result = asyncio.run(main(args.module_path))
    return 0 if result.success else 1


def run() -> None:
    sys.exit(cli(sys.argv[1:]))


class Test(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.node = StubNode(pending_polls=2)
        self.config = ClientConfig(transaction_poll_interval=0)
        self.module = tempfile.NamedTemporaryFile(suffix=".mv")
        self.module.write(b"\xa1\x1c\xeb\x0b\x05")
        self.module.flush()
        self.owner = Account.generate()
        self.holder = Account.generate()

    async def asyncTearDown(self):
        self.module.close()

    async def run_main(self, confirm: Confirm) -> BridgeResult:
        with unittest.mock.patch("builtins.print"):
            return await main(
                self.module.name,
                confirm,
                self.node.node_url,
                self.node.faucet_url,
                self.config,
                self.node.transport(),
                self.owner,
                self.holder,
            )

    async def account_balance(self, address, resource_type=TEST_COIN_BALANCE):
        rest_client = RestClient(
            self.node.node_url, self.config, transport=self.node.transport()
        )
        try:
            return await rest_client.account_balance(address, resource_type)
        finally:
            await rest_client.close()

    async def test_deploy(self):
        published_at_confirm = []

        async def confirm(prompt: str):
            published_at_confirm.append(dict(self.node.modules))

        result = await self.run_main(confirm)

        self.assertTrue(result.success)
        self.assertEqual(published_at_confirm, [{}])
        self.assertEqual(
            self.node.modules[str(self.owner.address())], b"\xa1\x1c\xeb\x0b\x05"
        )
        self.assertEqual(
            await self.account_balance(self.holder.address()), HOLDER_FUNDING
        )
        asset = f"{self.owner.address()}::{common.APT_ETH_NAME}::Balance"
        self.assertEqual(
            await self.account_balance(self.holder.address(), asset), BRIDGE_AMOUNT
        )

    async def test_deploy_reports_failed_mint(self):
        self.node.fail_function("mint")
        result = await self.run_main(unittest.mock.AsyncMock())

        self.assertFalse(result.success)
        self.assertEqual(result.failed_step, BridgeStep.MINT)
        self.assertEqual(len(result.committed), 1)
        asset = f"{self.owner.address()}::{common.APT_ETH_NAME}::Balance"
        self.assertEqual(await self.account_balance(self.holder.address(), asset), 0)

    async def test_initialize_failure_propagates(self):
        self.node.fail_function("initialize")
        with self.assertRaises(RemoteError):
            await self.run_main(unittest.mock.AsyncMock())

    async def test_faucet_minimum(self):
        self.node.faucet_minimum = 5_000_000
        result = await self.run_main(unittest.mock.AsyncMock())
        self.assertTrue(result.success)
        self.assertEqual(await self.account_balance(self.owner.address()), 5_000_000)

    async def test_funded_balance(self):
        self.node.faucet_minimum = 500
        rest_client = RestClient(
            self.node.node_url, self.config, transport=self.node.transport()
        )
        faucet_client = FaucetClient(self.node.faucet_url, rest_client)
        address = self.owner.address()

        await faucet_client.fund_account(address, 100)
        self.assertEqual(await rest_client.account_balance(address), 500)
        await faucet_client.fund_account(address, 1_000)
        self.assertEqual(await rest_client.account_balance(address), 1_500)
        await faucet_client.close()

    def test_cli_requires_module_path(self):
        with unittest.mock.patch("sys.stderr"):
            with self.assertRaises(SystemExit):
                cli([])


if __name__ == "__main__":
    run()
