"""Gateway service orchestration.

:py:class:`GatewayService` wires the domain registry, Gateway API client,
balance aggregator and burn intent signer together, and owns the signer
lifecycle:

- **uninitialised**: balance queries and deposit instructions work,
  transfers raise :py:class:`~gateway_defi.circle_gateway.errors.NotInitialized`
- **initialised**: a private key is bound and transfers to the vault can be signed

All collaborators are injected so the service can be driven with fakes.

Example::

    from gateway_defi.circle_gateway.config import GatewayConfig
    from gateway_defi.circle_gateway.service import GatewayService, TransferSource

    service = GatewayService.create(GatewayConfig.from_env())
    service.refresh_domains()
    service.initialize(private_key)

    result = service.transfer_to_vault(
        user_address,
        sources=[TransferSource(domain=0, amount=1_000_000)],
        total_amount=1_000_000,
    )
"""

import enum
import logging
import time
from dataclasses import dataclass, field

from eth_account import Account
from eth_typing import HexAddress
from eth_utils import ValidationError

from gateway_defi.circle_gateway.api import GatewayApiClient, GatewayAttestation
from gateway_defi.circle_gateway.balance import BalanceAggregator, UnifiedBalance
from gateway_defi.circle_gateway.burn_intent import Clock, NonceSource, build_burn_intent, random_nonce
from gateway_defi.circle_gateway.config import GatewayConfig
from gateway_defi.circle_gateway.constants import GATEWAY_TOKEN, USDC_DECIMALS
from gateway_defi.circle_gateway.domains import DomainRegistry, create_mainnet_registry, create_testnet_registry
from gateway_defi.circle_gateway.errors import ConfigurationError, InvalidAmount, InvalidPrivateKey, NotInitialized, UnsupportedChain
from gateway_defi.circle_gateway.session import create_gateway_session
from gateway_defi.circle_gateway.signing import LocalAccountSigner, TypedDataSigner, TypedDataSigningCapability
from gateway_defi.utils import addr, from_raw_amount

logger = logging.getLogger(__name__)


class GatewayServiceState(enum.Enum):
    """Signer lifecycle of :py:class:`GatewayService`."""

    #: No signing key bound yet
    uninitialised = "uninitialised"

    #: Signing key bound, transfers allowed
    initialised = "initialised"


@dataclass(slots=True, frozen=True)
class TransferSource:
    """One domain to pull USDC from."""

    #: Source Gateway domain id
    domain: int

    #: Raw USDC amount
    amount: int


@dataclass(slots=True)
class DepositInstructions:
    """Off-system steps a user performs to get USDC into the Gateway Wallet."""

    success: bool

    message: str

    steps: list[str] = field(default_factory=list)


@dataclass(slots=True)
class TransferResult:
    """Outcome of :py:meth:`GatewayService.transfer_to_vault`."""

    success: bool

    attestations: list[GatewayAttestation] = field(default_factory=list)


class GatewayService:
    """Unified balance reads and vault transfers over Circle Gateway."""

    def __init__(
        self,
        config: GatewayConfig,
        client: GatewayApiClient,
        registry: DomainRegistry,
        clock: Clock = time.time,
        nonce_source: NonceSource = random_nonce,
        balance_cache: dict[str, UnifiedBalance] | None = None,
        signer: TypedDataSigningCapability | None = None,
    ):
        """
        :param config:
            Validated configuration, carries the vault address.

        :param client:
            Gateway API client.

        :param registry:
            Domain registry, refreshed by :py:meth:`refresh_domains`.

        :param clock:
            UNIX time source for deadlines and balance timestamps.

        :param nonce_source:
            Burn intent nonce source.

        :param balance_cache:
            Shared balance cache, a fresh dict by default.

        :param signer:
            Pre-bound signing capability. Usually bound later with :py:meth:`initialize`.

        :raise ConfigurationError:
            The vault chain is not in the registry.
        """
        self.config = config
        self.client = client
        self.registry = registry
        self.clock = clock
        self.nonce_source = nonce_source
        self.balances = BalanceAggregator(client, registry, clock=clock, token=GATEWAY_TOKEN, cache=balance_cache)
        self.signer = TypedDataSigner(registry, signer, clock=clock)

        try:
            self.vault_domain = registry.lookup_by_chain_name(config.vault_chain)
        except UnsupportedChain as e:
            raise ConfigurationError(f"Vault chain {config.vault_chain} is not a supported Gateway chain") from e

    def __repr__(self) -> str:
        return f"<GatewayService {self.state.value} vault={self.config.vault_address} domain={self.vault_domain}>"

    @classmethod
    def create(cls, config: GatewayConfig) -> "GatewayService":
        """Create a service talking to the real Gateway API.

        Call :py:meth:`refresh_domains` before signing anything.
        """
        registry = create_testnet_registry() if config.is_testnet else create_mainnet_registry()
        session = create_gateway_session(api_url=config.api_url, requests_per_second=config.requests_per_second)
        client = GatewayApiClient(session, default_domains=registry.domain_ids)
        return cls(config=config, client=client, registry=registry)

    @property
    def state(self) -> GatewayServiceState:
        if self.signer.signer is None:
            return GatewayServiceState.uninitialised
        return GatewayServiceState.initialised

    @property
    def server_address(self) -> HexAddress | None:
        """Address of the bound signing key."""
        if self.signer.signer is None:
            return None
        return self.signer.signer.address

    def refresh_domains(self) -> bool:
        """Load Gateway Wallet contract addresses. Never raises."""
        return self.registry.refresh(self.client)

    def initialize(self, private_key: str) -> HexAddress:
        """Bind a signing key.

        Initialising again replaces the previous key.

        :param private_key:
            Hex private key, with or without ``0x`` prefix.

        :return:
            Address of the key.

        :raise InvalidPrivateKey:
            Key cannot be parsed.
        """
        try:
            account = Account.from_key(private_key)
        except (ValueError, TypeError, ValidationError) as e:
            # Never echo the key itself
            raise InvalidPrivateKey("Could not parse private key") from e

        self.signer.bind(LocalAccountSigner(account))
        logger.info("Circle Gateway service initialised with address %s", account.address)
        return account.address

    def get_unified_balance(self, address: HexAddress | str) -> UnifiedBalance:
        """Unified USDC balance, see :py:meth:`BalanceAggregator.get_unified_balance`."""
        return self.balances.get_unified_balance(address)

    def initiate_deposit(
        self,
        user_address: HexAddress | str,
        source_chain: str,
        amount: int,
    ) -> DepositInstructions:
        """Describe how to deposit USDC from a chain into the vault.

        Informational only, nothing is sent anywhere. The output depends only on
        the arguments and the registry's current contract addresses.

        :param user_address:
            Depositor.

        :param source_chain:
            Chain name, e.g. ``"baseSepolia"``.

        :param amount:
            Raw USDC amount.

        :raise UnsupportedChain:
            Source chain not known.
        """
        domain = self.registry.lookup(self.registry.lookup_by_chain_name(source_chain))
        depositor = addr(user_address)

        if type(amount) is not int or amount <= 0:
            raise InvalidAmount(f"Deposit amount must be a positive integer, got {amount!r}")

        human_amount = from_raw_amount(amount, USDC_DECIMALS)
        vault_chain = self.registry.lookup(self.vault_domain).chain_name
        wallet_contract = domain.wallet_contract or "(not yet loaded from Gateway API)"

        steps = [
            f"1. Approve USDC spending for Gateway Wallet on {source_chain}",
            f"2. Deposit {human_amount} USDC into Gateway Wallet contract at {wallet_contract}",
            "3. Wait for finalization (varies by chain)",
            f"4. Sign burn intent to transfer to {vault_chain} vault",
            f"5. Mint USDC on {vault_chain} and auto-deposit into vault {self.config.vault_address}",
        ]

        return DepositInstructions(
            success=True,
            message=f"Deposit flow initiated for {human_amount} USDC from {source_chain} by {depositor}",
            steps=steps,
        )

    def transfer_to_vault(
        self,
        user_address: HexAddress | str,
        sources: list[TransferSource],
        total_amount: int | None = None,
    ) -> TransferResult:
        """Burn unified balance on the source domains and mint into the vault.

        Builds and signs one burn intent per source, then submits them
        as a single batch. Any failure aborts the whole batch.

        ``total_amount`` is not enforced: the transferred amount is the sum of
        ``sources``. A mismatch is only logged.

        :raise NotInitialized:
            No signing key bound.

        :raise InvalidAmount:
            No sources, or a non-positive source amount.

        :raise ExternalApiError:
            Gateway rejected the batch.
        """
        if self.state != GatewayServiceState.initialised:
            raise NotInitialized("Service not initialized")

        if not sources:
            raise InvalidAmount("No transfer sources given")

        depositor = addr(user_address)
        source_total = sum(s.amount for s in sources)

        if total_amount is not None and total_amount != source_total:
            logger.warning("Transfer total %s does not match sum of sources %d for %s, transferring the sum of sources", total_amount, source_total, depositor)

        if self.server_address != depositor:
            logger.warning("Signer %s is not the depositor %s, Gateway will reject unless the signer is an authorised delegate", self.server_address, depositor)

        signed_intents = []
        for source in sources:
            intent = build_burn_intent(
                depositor=depositor,
                source_domain=source.domain,
                amount=source.amount,
                destination_domain=self.vault_domain,
                recipient=self.config.vault_address,
                max_fee=self.config.max_fee,
                deadline_horizon=self.config.deadline_horizon,
                clock=self.clock,
                nonce_source=self.nonce_source,
                registry=self.registry,
            )
            signed_intents.append(self.signer.sign_burn_intent(intent))

        attestations = self.client.transfer(signed_intents)

        logger.info("Transferred %s USDC from %d domain(s) to vault %s", from_raw_amount(source_total, USDC_DECIMALS), len(sources), self.config.vault_address)
        return TransferResult(success=True, attestations=attestations)

    def submit_burn_intents(self, burn_intents: list[dict]) -> dict:
        """Pass already signed, wire-encoded burn intents through to Gateway."""
        return self.client.submit_burn_intents_json(burn_intents)

    def fetch_info(self) -> dict:
        """Raw Gateway ``/info`` response."""
        return self.client.fetch_info_json()
