"""Check a depositor's unified USDC balance on Circle Gateway.

Queries the Gateway ``/info`` endpoint for the supported domains and their
Gateway Wallet contracts, then the depositor's balance on every domain.

Environment variables
---------------------
- ``ADDRESS``: depositor address to query (required).
- ``GATEWAY_NETWORK``: ``testnet`` (default) or ``mainnet``.
- ``LOG_LEVEL``: Logging level (default: ``info``).

Usage::

    ADDRESS=0xfBF2cc6708DC303484b3b8008F1DEcC6d934787a python scripts/circle_gateway/check-unified-balance.py

    # Mainnet
    GATEWAY_NETWORK=mainnet ADDRESS=0xAbc... python scripts/circle_gateway/check-unified-balance.py
"""

import logging
import os

from tabulate import tabulate

from gateway_defi.circle_gateway.api import GatewayApiClient
from gateway_defi.circle_gateway.balance import BalanceAggregator
from gateway_defi.circle_gateway.constants import GATEWAY_API_URL, GATEWAY_TESTNET_API_URL, USDC_DECIMALS
from gateway_defi.circle_gateway.domains import create_mainnet_registry, create_testnet_registry
from gateway_defi.circle_gateway.session import create_gateway_session
from gateway_defi.utils import from_raw_amount, setup_console_logging

logger = logging.getLogger(__name__)


def main():
    log_level = os.environ.get("LOG_LEVEL", "info")
    setup_console_logging(default_log_level=log_level)

    address = os.environ.get("ADDRESS")
    assert address, "ADDRESS environment variable required"

    network = os.environ.get("GATEWAY_NETWORK", "testnet").lower()
    assert network in ("mainnet", "testnet"), f"GATEWAY_NETWORK must be 'mainnet' or 'testnet', got '{network}'"

    if network == "testnet":
        api_url = GATEWAY_TESTNET_API_URL
        registry = create_testnet_registry()
    else:
        api_url = GATEWAY_API_URL
        registry = create_mainnet_registry()

    print(f"Depositor: {address}")
    print(f"Network: {network}")
    print(f"API: {api_url}")

    client = GatewayApiClient(create_gateway_session(api_url=api_url), default_domains=registry.domain_ids)
    refreshed = registry.refresh(client)

    rows = [[d.domain, d.chain_name, d.chain_id, d.wallet_contract or "-", "yes" if d.is_trusted else "no"] for d in registry.domains]
    print("\nGateway domains:")
    print(tabulate(rows, headers=["Domain", "Chain", "Chain id", "Gateway Wallet", "Verified"], tablefmt="simple"))
    if not refreshed:
        print("Could not load contracts from the Gateway API, see the log")

    aggregator = BalanceAggregator(client, registry)
    balance = aggregator.get_unified_balance(address)

    if balance.chain_balances:
        rows = [[domain, registry.lookup(domain).chain_name, f"{from_raw_amount(raw, USDC_DECIMALS):,.6f}"] for domain, raw in sorted(balance.chain_balances.items())]
        print("\nBalances:")
        print(tabulate(rows, headers=["Domain", "Chain", "USDC"], tablefmt="simple"))
    else:
        print("\nBalances: none")

    print(f"\nUnified balance: {balance.total_balance_human:,.6f} USDC (as of {balance.last_updated.isoformat()} UTC)")


if __name__ == "__main__":
    main()
