"""Gateway domain registry.

Maps Circle Gateway domain ids to EVM chain ids and Gateway Wallet
contract addresses.

The registry is seeded from a static table with no contract addresses,
then :py:meth:`DomainRegistry.refresh` fills the addresses from the Gateway
``/info`` endpoint. Until a refresh succeeds for a domain its wallet contract
is untrusted and burn intents from that domain cannot be signed.

Example::

    from gateway_defi.circle_gateway.api import GatewayApiClient
    from gateway_defi.circle_gateway.domains import create_testnet_registry
    from gateway_defi.circle_gateway.session import create_gateway_session

    registry = create_testnet_registry()
    client = GatewayApiClient(create_gateway_session(), default_domains=registry.domain_ids)
    registry.refresh(client)

    domain = registry.lookup(registry.lookup_by_chain_name("arbitrumSepolia"))
    print(domain.chain_id, domain.wallet_contract)
"""

import dataclasses
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable

from eth_typing import HexAddress

from gateway_defi.circle_gateway.constants import (
    CHAIN_NAME_ALIASES,
    GATEWAY_DOMAIN_NAMES,
    MAINNET_CHAIN_IDS,
    TESTNET_CHAIN_IDS,
)
from gateway_defi.circle_gateway.errors import GatewayError, UnknownDomain, UnsupportedChain, UntrustedContract

if TYPE_CHECKING:
    from gateway_defi.circle_gateway.api import GatewayApiClient

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class GatewayDomain:
    """One chain supported by Circle Gateway."""

    #: Gateway domain id, e.g. ``3`` for Arbitrum
    domain: int

    #: Human readable chain name
    chain_name: str

    #: EVM chain id
    chain_id: int

    #: GatewayWallet contract, the escrow users deposit into.
    #:
    #: ``None`` until filled from the Gateway API.
    wallet_contract: HexAddress | None = None

    #: GatewayMinter contract on this chain, if any
    minter_contract: HexAddress | None = None

    #: Set when the contract addresses came from the Gateway API
    verified: bool = False

    @property
    def is_trusted(self) -> bool:
        """Can burn intents from this domain be signed."""
        return self.verified and self.wallet_contract is not None


class DomainRegistry:
    """Process-wide table of supported Gateway domains.

    Refresh replaces whole :py:class:`GatewayDomain` records,
    so lookups never see a half-updated domain without any locking.
    """

    def __init__(
        self,
        domains: Iterable[GatewayDomain],
        chain_aliases: dict[str, int] | None = None,
    ):
        self._domains: dict[int, GatewayDomain] = {}
        for d in domains:
            if d.domain in self._domains:
                raise ValueError(f"Duplicate Gateway domain id {d.domain}")
            if d.domain < 0:
                raise ValueError(f"Gateway domain id must be non-negative, got {d.domain}")
            self._domains[d.domain] = d

        if chain_aliases is None:
            chain_aliases = CHAIN_NAME_ALIASES

        self._aliases = {name.lower(): domain for name, domain in chain_aliases.items() if domain in self._domains}

    def __repr__(self) -> str:
        return f"<DomainRegistry domains={self.domain_ids}>"

    @property
    def domains(self) -> list[GatewayDomain]:
        """All domains, sorted by domain id."""
        return [self._domains[d] for d in self.domain_ids]

    @property
    def domain_ids(self) -> list[int]:
        return sorted(self._domains)

    def lookup(self, domain: int) -> GatewayDomain:
        """Get a domain by its id.

        :raise UnknownDomain:
            Domain id is not supported.
        """
        try:
            return self._domains[domain]
        except KeyError as e:
            raise UnknownDomain(f"Unknown Gateway domain {domain}, known domains are {self.domain_ids}") from e

    def lookup_by_chain_name(self, name: str) -> int:
        """Resolve a chain name like ``"arbitrumSepolia"`` to a domain id.

        Case-insensitive.

        :raise UnsupportedChain:
            Chain name not known.
        """
        domain = self._aliases.get(name.lower()) if isinstance(name, str) else None
        if domain is None:
            raise UnsupportedChain(f"Unsupported source chain: {name}")
        return domain

    def get_trusted_wallet_contract(self, domain: int) -> HexAddress:
        """Get the wallet contract of a domain for signing.

        :raise UntrustedContract:
            The address has not been confirmed by the Gateway API yet.
        """
        d = self.lookup(domain)
        if not d.is_trusted:
            raise UntrustedContract(f"Gateway Wallet contract for domain {domain} ({d.chain_name}) has not been loaded from the Gateway API, refusing to sign against it")
        return d.wallet_contract

    def refresh(self, client: "GatewayApiClient") -> bool:
        """Load contract addresses from the Gateway ``/info`` endpoint.

        Never raises: on failure the error is logged and the previous
        addresses stay in place.

        :return:
            ``True`` if the Gateway API answered.
        """
        try:
            info = client.info()
        except GatewayError:
            logger.warning("Failed to refresh Gateway domain contracts, keeping previous values", exc_info=True)
            return False

        updated = 0
        for entry in info.domains:
            current = self._domains.get(entry.domain)
            if current is None:
                logger.info("Gateway reports domain %d (%s %s) which has no chain id mapping, ignoring", entry.domain, entry.chain, entry.network)
                continue

            if entry.wallet_contract is None:
                logger.debug("Gateway reports no wallet contract for domain %d", entry.domain)
                continue

            self._domains[entry.domain] = dataclasses.replace(
                current,
                wallet_contract=entry.wallet_contract,
                minter_contract=entry.minter_contract or current.minter_contract,
                verified=True,
            )
            updated += 1

        logger.info("Gateway contracts refreshed for %d/%d domains", updated, len(self._domains))
        return True


def _create_registry(chain_ids: dict[int, int]) -> DomainRegistry:
    return DomainRegistry(GatewayDomain(domain=domain, chain_name=GATEWAY_DOMAIN_NAMES[domain], chain_id=chain_id) for domain, chain_id in chain_ids.items())


def create_testnet_registry() -> DomainRegistry:
    """Registry for Sepolia, Avalanche Fuji, Arbitrum Sepolia and Base Sepolia."""
    return _create_registry(TESTNET_CHAIN_IDS)


def create_mainnet_registry() -> DomainRegistry:
    """Registry for Ethereum, Avalanche, Arbitrum and Base mainnets."""
    return _create_registry(MAINNET_CHAIN_IDS)
