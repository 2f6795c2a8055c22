# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
aptos-bridge - deploy the aptEth test token and bridge it into an Aptos testnet.

aptEth mirrors an Ethereum-side balance on the Aptos side. Bridging in
registers the destination account with the published module and mints to it;
bridging out transfers the tokens to a burning account and burns them there.

Quick Start:
    Running the full deployment against devnet::

        python -m aptos_bridge.deploy ./build/apt_eth.mv

    Or driving the bridge client directly::

        import asyncio
        from aptos_bridge.account import Account
        from aptos_bridge.async_client import FaucetClient
        from aptos_bridge.bridge_client import BridgeClient

        async def main():
            owner = Account.generate()
            holder = Account.generate()
            client = BridgeClient("https://fullnode.devnet.aptoslabs.com", owner.address())
            faucet = FaucetClient("https://faucet.devnet.aptoslabs.com", client)
            await faucet.fund_account(owner.address(), 1_000_000)

            # The module must already be published by ``owner``.
            await client.wait_for_transaction(await client.initialize(owner, 18))
            result = await client.bridge_to_aptos(owner, holder, 10_000)
            result.raise_for_failure()
            await client.close()

        asyncio.run(main())

Module Organization:
    - **account**, **account_address**, **ed25519**, **asymmetric_crypto**:
      keys, signatures and address derivation
    - **transactions**: payloads and the transaction request sent to the node
    - **async_client**: node and faucet clients, client configuration, errors
    - **bridge_client**: aptEth entry points and the two bridge operations
    - **deploy**: the end-to-end deployment script
    - **common**: environment configuration
    - **stub_node**: in-process node and faucet for tests
"""
