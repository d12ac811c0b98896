"""Run the Circle Gateway vault HTTP service.

Loads Gateway Wallet contracts from the Gateway API at startup,
then serves the routes of :py:mod:`gateway_defi.circle_gateway.server`.

Environment variables
---------------------
- ``VAULT_ADDRESS``: vault receiving minted USDC (required).
- ``PORT``: listening port (default: ``8080``).
- ``LOG_LEVEL``: Logging level (default: ``info``).
- See :py:mod:`gateway_defi.circle_gateway.config` for the rest.

Usage::

    VAULT_ADDRESS=0x... python scripts/circle_gateway/run-gateway-server.py
"""

import logging
import os

import uvicorn

from gateway_defi.circle_gateway.config import GatewayConfig
from gateway_defi.circle_gateway.server import create_app
from gateway_defi.circle_gateway.service import GatewayService
from gateway_defi.utils import setup_console_logging

logger = logging.getLogger(__name__)


def main():
    log_level = os.environ.get("LOG_LEVEL", "info")
    setup_console_logging(default_log_level=log_level)

    config = GatewayConfig.from_env()
    port = int(os.environ.get("PORT", "8080"))

    service = GatewayService.create(config)
    if not service.refresh_domains():
        logger.warning("Starting without verified Gateway Wallet contracts, transfers will be refused until a refresh succeeds")

    uvicorn.run(create_app(service), host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
