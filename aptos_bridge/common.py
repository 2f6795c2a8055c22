# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Environment configuration for the deploy script.

Values are read from the process environment after loading a local ``.env``
file, if one exists; variables already set in the environment win.

Environment Variables:
    APTOS_NODE_URL: REST endpoint of the full node
    APTOS_FAUCET_URL: Faucet used to fund the test accounts
    FAUCET_AUTH_TOKEN: Optional bearer token for the faucet
    API_KEY: Optional bearer token for the node
    APT_ETH_ADDRESS: Address of an already published aptEth module, if any
    APT_ETH_NAME: Name of the aptEth module (default ``apt_eth``)
"""

import os

from dotenv import load_dotenv

load_dotenv()

FAUCET_URL = os.getenv(
    "APTOS_FAUCET_URL",
    "https://faucet.devnet.aptoslabs.com",
)

FAUCET_AUTH_TOKEN = os.getenv("FAUCET_AUTH_TOKEN")

NODE_URL = os.getenv("APTOS_NODE_URL", "https://fullnode.devnet.aptoslabs.com")

API_KEY = os.getenv("API_KEY")

APT_ETH_ADDRESS = os.getenv("APT_ETH_ADDRESS")

APT_ETH_NAME = os.getenv("APT_ETH_NAME", "apt_eth")
