# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Client identification for requests sent to the node and the faucet.

Every request made by ``RestClient`` carries an ``x-aptos-client`` header of
the form ``aptos-bridge/{version}``, with the version read from the installed
package metadata.
"""

import importlib.metadata as metadata

PACKAGE_NAME = "aptos-bridge"


class Metadata:
    APTOS_HEADER = "x-aptos-client"

    @staticmethod
    def get_aptos_header_val() -> str:
        """Header value identifying this client, e.g. ``aptos-bridge/0.1.0``.

        Raises:
            PackageNotFoundError: If the package is not installed.
        """
        version = metadata.version(PACKAGE_NAME)
        return f"aptos-bridge/{version}"
