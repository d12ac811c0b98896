"""Unified USDC balance across Gateway domains.

One batched ``POST /balances`` call covers every domain in the registry.
The result is cached per depositor address and served when the Gateway API
is unavailable, favouring availability over freshness.

The cache is a plain dict. Concurrent refreshes of the same address
overwrite whole entries, the last writer wins even if it carried an older
response. This is acceptable for a stale-tolerant read path.
"""

import datetime
import logging
import time
from dataclasses import dataclass, field

from eth_typing import HexAddress

from gateway_defi.circle_gateway.api import GatewayApiClient
from gateway_defi.circle_gateway.burn_intent import Clock
from gateway_defi.circle_gateway.constants import GATEWAY_TOKEN, USDC_DECIMALS
from gateway_defi.circle_gateway.domains import DomainRegistry
from gateway_defi.circle_gateway.errors import GatewayError
from gateway_defi.utils import addr, from_raw_amount, from_unix_timestamp, to_raw_amount

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class UnifiedBalance:
    """Depositor USDC balance summed over all Gateway domains."""

    #: Lower-cased depositor address
    address: str

    #: Domain id -> raw USDC amount (6 decimals).
    #:
    #: Only domains reported by the Gateway API are present.
    chain_balances: dict[int, int] = field(default_factory=dict)

    #: Naive UTC datetime of the Gateway API response, or of the fallback
    last_updated: datetime.datetime | None = None

    @property
    def total_balance(self) -> int:
        """Raw USDC total, always the sum of :py:attr:`chain_balances`."""
        return sum(self.chain_balances.values())

    @property
    def total_balance_human(self):
        """Total as :py:class:`~decimal.Decimal` USDC."""
        return from_raw_amount(self.total_balance, USDC_DECIMALS)


def normalise_address(address: HexAddress | str) -> str:
    """Cache key of an address.

    :raise ValueError:
        Not an EVM address.
    """
    return addr(address).lower()


class BalanceAggregator:
    """Fetch and cache unified balances."""

    def __init__(
        self,
        client: GatewayApiClient,
        registry: DomainRegistry,
        clock: Clock = time.time,
        token: str = GATEWAY_TOKEN,
        cache: dict[str, UnifiedBalance] | None = None,
    ):
        self.client = client
        self.registry = registry
        self.clock = clock
        self.token = token
        self.cache: dict[str, UnifiedBalance] = cache if cache is not None else {}

    def get_cached_balance(self, address: HexAddress | str) -> UnifiedBalance | None:
        """Last successfully fetched balance, if any."""
        return self.cache.get(normalise_address(address))

    def get_unified_balance(self, address: HexAddress | str) -> UnifiedBalance:
        """Get the unified balance of a depositor.

        Gateway API failures are never raised. If the fetch fails, the
        cached entry is returned unchanged, or a zero balance stamped
        with the current time when nothing is cached.

        :param address:
            Depositor address in any case.

        :raise ValueError:
            Malformed address.
        """
        key = normalise_address(address)

        try:
            balances = self.client.balances(self.token, depositor=addr(address), domains=self.registry.domain_ids)
        except GatewayError:
            cached = self.cache.get(key)
            if cached is not None:
                logger.warning("Failed to fetch unified balance for %s, serving cached balance from %s", key, cached.last_updated, exc_info=True)
                return cached

            logger.warning("Failed to fetch unified balance for %s, no cached balance, returning zero", key, exc_info=True)
            return UnifiedBalance(address=key, chain_balances={}, last_updated=from_unix_timestamp(self.clock()))

        chain_balances: dict[int, int] = {}
        for b in balances:
            # Same domain twice would be a Gateway bug, sum rather than drop
            chain_balances[b.domain] = chain_balances.get(b.domain, 0) + to_raw_amount(b.balance, USDC_DECIMALS)

        unified = UnifiedBalance(
            address=key,
            chain_balances=chain_balances,
            last_updated=from_unix_timestamp(self.clock()),
        )
        self.cache[key] = unified

        logger.info("Unified balance of %s is %s USDC over %d domain(s)", key, unified.total_balance_human, len(chain_balances))
        return unified
