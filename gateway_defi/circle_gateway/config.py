"""Gateway service configuration.

Read from environment variables by :py:meth:`GatewayConfig.from_env`.

Environment variables
---------------------
- ``VAULT_ADDRESS``: vault receiving the minted USDC (required).
- ``GATEWAY_NETWORK``: ``testnet`` (default) or ``mainnet``.
- ``GATEWAY_API_URL``: override the Gateway API base URL.
- ``VAULT_CHAIN``: chain the vault lives on, default ``arbitrum``.
- ``GATEWAY_MAX_FEE``: maximum fee per burn intent in raw USDC units, default ``0``.
- ``GATEWAY_DEADLINE_HORIZON``: burn intent lifetime in seconds, default ``3600``.
- ``GATEWAY_REQUESTS_PER_SECOND``: Gateway API rate limit, default ``5``.
"""

import logging
import os
from dataclasses import dataclass

from eth_typing import HexAddress

from gateway_defi.circle_gateway.constants import DEFAULT_DEADLINE_HORIZON, GATEWAY_API_URL, GATEWAY_TESTNET_API_URL
from gateway_defi.circle_gateway.errors import ConfigurationError
from gateway_defi.circle_gateway.session import DEFAULT_REQUESTS_PER_SECOND
from gateway_defi.utils import addr, is_good_address

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class GatewayConfig:
    """Validated service configuration.

    A vault address must be given explicitly. There is no placeholder
    fallback: signing a burn intent to a wrong recipient loses funds.
    """

    #: Vault on the destination chain, receives every mint
    vault_address: HexAddress

    #: ``testnet`` or ``mainnet``
    network: str = "testnet"

    #: Gateway API base URL
    api_url: str = GATEWAY_TESTNET_API_URL

    #: Chain name of the vault, resolved through the domain registry
    vault_chain: str = "arbitrum"

    #: Maximum fee per burn intent, raw USDC units
    max_fee: int = 0

    #: Burn intent lifetime in seconds
    deadline_horizon: int = DEFAULT_DEADLINE_HORIZON

    #: Gateway API rate limit
    requests_per_second: float = DEFAULT_REQUESTS_PER_SECOND

    def __post_init__(self):
        if not is_good_address(self.vault_address):
            raise ConfigurationError(f"Vault address is not a usable EVM address: {self.vault_address!r}")
        if self.network not in ("testnet", "mainnet"):
            raise ConfigurationError(f"Network must be 'testnet' or 'mainnet', got {self.network!r}")
        if self.max_fee < 0:
            raise ConfigurationError(f"Max fee must be non-negative, got {self.max_fee}")
        if self.deadline_horizon <= 0:
            raise ConfigurationError(f"Deadline horizon must be positive, got {self.deadline_horizon}")
        if self.requests_per_second <= 0:
            raise ConfigurationError(f"Requests per second must be positive, got {self.requests_per_second}")
        # Store the checksummed form
        object.__setattr__(self, "vault_address", addr(self.vault_address))

    @property
    def is_testnet(self) -> bool:
        return self.network == "testnet"

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "GatewayConfig":
        """Read configuration from environment variables.

        :param environ:
            Defaults to :py:data:`os.environ`.

        :raise ConfigurationError:
            Required variable missing or a value is invalid.
        """
        if environ is None:
            environ = os.environ

        vault_address = environ.get("VAULT_ADDRESS")
        if not vault_address:
            raise ConfigurationError("VAULT_ADDRESS environment variable required")

        network = environ.get("GATEWAY_NETWORK", "testnet").lower()
        default_url = GATEWAY_TESTNET_API_URL if network == "testnet" else GATEWAY_API_URL

        try:
            config = cls(
                vault_address=vault_address,
                network=network,
                api_url=environ.get("GATEWAY_API_URL") or default_url,
                vault_chain=environ.get("VAULT_CHAIN", "arbitrum"),
                max_fee=int(environ.get("GATEWAY_MAX_FEE", "0")),
                deadline_horizon=int(environ.get("GATEWAY_DEADLINE_HORIZON", str(DEFAULT_DEADLINE_HORIZON))),
                requests_per_second=float(environ.get("GATEWAY_REQUESTS_PER_SECOND", str(DEFAULT_REQUESTS_PER_SECOND))),
            )
        except ValueError as e:
            raise ConfigurationError(f"Bad numeric configuration value: {e}") from e

        logger.info("Gateway config: network %s, API %s, vault %s on %s", config.network, config.api_url, config.vault_address, config.vault_chain)
        return config
