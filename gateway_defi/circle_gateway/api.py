"""Circle Gateway REST API client.

Typed wrappers for the `Gateway API <https://developers.circle.com/api-reference/gateway/all>`__
endpoints this package needs:

- ``GET /info`` - supported domains and their contracts
- ``POST /balances`` - depositor balances per domain
- ``POST /transfer`` - submit signed burn intents, receive attestations

Uses :py:func:`~gateway_defi.circle_gateway.session.create_gateway_session` for
HTTP connections with rate limiting and retry logic.

Example::

    from gateway_defi.circle_gateway.api import GatewayApiClient
    from gateway_defi.circle_gateway.session import create_gateway_session

    client = GatewayApiClient(create_gateway_session())
    for b in client.balances("USDC", depositor="0xAbc..."):
        print(f"Domain {b.domain}: {b.balance} USDC")
"""

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable

import requests
from eth_typing import HexAddress

from gateway_defi.circle_gateway.burn_intent import UINT256_MAX, SignedBurnIntent
from gateway_defi.circle_gateway.constants import GATEWAY_DOMAIN_NAMES, USDC_DECIMALS
from gateway_defi.circle_gateway.errors import ExternalApiError, NetworkError, ResponseFormatError
from gateway_defi.circle_gateway.session import GatewaySession
from gateway_defi.utils import addr

logger = logging.getLogger(__name__)

#: Largest human balance accepted from the API, raw amount must fit uint256
MAX_BALANCE = Decimal(UINT256_MAX).scaleb(-USDC_DECIMALS)


@dataclass(slots=True)
class GatewayDomainInfo:
    """One domain entry of ``GET /info``."""

    #: Gateway domain id
    domain: int

    #: Chain label, e.g. ``"Ethereum"``
    chain: str

    #: Network label, e.g. ``"Sepolia"``
    network: str

    #: GatewayWallet address on this domain, if deployed
    wallet_contract: HexAddress | None

    #: GatewayMinter address on this domain, if deployed
    minter_contract: HexAddress | None


@dataclass(slots=True)
class GatewayInfo:
    """Parsed ``GET /info`` response."""

    domains: list[GatewayDomainInfo]


@dataclass(slots=True)
class GatewayBalance:
    """Depositor balance on one domain."""

    #: Gateway domain id
    domain: int

    #: Depositor address as echoed by the API, if any
    depositor: str | None

    #: Human USDC amount (decimal string parsed to :py:class:`~decimal.Decimal`)
    balance: Decimal


@dataclass(slots=True)
class GatewayAttestation:
    """Attestation for one accepted burn intent."""

    #: Burn intent as echoed back by the API
    burn_intent: dict

    #: Attestation payload to pass to the GatewayMinter
    attestation: str


def _parse_contract(value: Any) -> HexAddress | None:
    """Contracts come either as a plain address or as ``{"address": ...}``."""
    if value is None:
        return None
    if isinstance(value, dict):
        value = value.get("address")
    if not isinstance(value, str):
        raise ResponseFormatError(f"Bad contract entry: {value!r}")
    try:
        return addr(value)
    except ValueError as e:
        raise ResponseFormatError(f"Bad contract address: {value!r}") from e


def _parse_domain_id(value: Any) -> int:
    if type(value) is not int or value < 0:
        raise ResponseFormatError(f"Bad domain id: {value!r}")
    return value


def parse_info(data: dict) -> GatewayInfo:
    """Parse ``GET /info`` response body.

    :raise ResponseFormatError:
        Body does not have the expected shape.
    """
    if not isinstance(data, dict) or not isinstance(data.get("domains"), list):
        raise ResponseFormatError(f"Gateway info response has no domains list: {data!r}")

    domains = []
    for entry in data["domains"]:
        if not isinstance(entry, dict):
            raise ResponseFormatError(f"Bad info domain entry: {entry!r}")
        domains.append(
            GatewayDomainInfo(
                domain=_parse_domain_id(entry.get("domain")),
                chain=str(entry.get("chain", "")),
                network=str(entry.get("network", "")),
                wallet_contract=_parse_contract(entry.get("walletContract")),
                minter_contract=_parse_contract(entry.get("minterContract")),
            )
        )
    return GatewayInfo(domains=domains)


def parse_balances(data: dict) -> list[GatewayBalance]:
    """Parse ``POST /balances`` response body.

    Balances are decimal strings and are never routed through ``float``.

    :raise ResponseFormatError:
        Body does not have the expected shape, or a balance is not a non-negative
        decimal within uint256 range.
    """
    if not isinstance(data, dict) or not isinstance(data.get("balances"), list):
        raise ResponseFormatError(f"Gateway balances response has no balances list: {data!r}")

    results = []
    for entry in data["balances"]:
        if not isinstance(entry, dict):
            raise ResponseFormatError(f"Bad balance entry: {entry!r}")

        raw_balance = entry.get("balance")
        if not isinstance(raw_balance, str):
            raise ResponseFormatError(f"Balance must be a decimal string: {entry!r}")
        try:
            balance = Decimal(raw_balance)
        except InvalidOperation as e:
            raise ResponseFormatError(f"Balance is not a decimal: {raw_balance!r}") from e
        if not balance.is_finite() or balance < 0 or balance > MAX_BALANCE:
            raise ResponseFormatError(f"Balance out of range: {raw_balance!r}")

        results.append(
            GatewayBalance(
                domain=_parse_domain_id(entry.get("domain")),
                depositor=entry.get("depositor"),
                balance=balance,
            )
        )
    return results


def parse_transfer(data: dict) -> list[GatewayAttestation]:
    """Parse ``POST /transfer`` response body.

    :raise ResponseFormatError:
        Body does not have the expected shape.
    """
    if not isinstance(data, dict) or not isinstance(data.get("attestations"), list):
        raise ResponseFormatError(f"Gateway transfer response has no attestations list: {data!r}")

    results = []
    for entry in data["attestations"]:
        if not isinstance(entry, dict) or not isinstance(entry.get("attestation"), str):
            raise ResponseFormatError(f"Bad attestation entry: {entry!r}")
        results.append(
            GatewayAttestation(
                burn_intent=entry.get("burnIntent") or {},
                attestation=entry["attestation"],
            )
        )
    return results


class GatewayApiClient:
    """Thin typed wrapper over the Gateway REST API.

    - Non-2xx answers raise :py:class:`~gateway_defi.circle_gateway.errors.ExternalApiError`
    - Transport failures raise :py:class:`~gateway_defi.circle_gateway.errors.NetworkError`
    - Unparseable 2xx bodies raise :py:class:`~gateway_defi.circle_gateway.errors.ResponseFormatError`
    """

    def __init__(
        self,
        session: GatewaySession,
        default_domains: Iterable[int] | None = None,
    ):
        """
        :param session:
            Session from :py:func:`~gateway_defi.circle_gateway.session.create_gateway_session`.

        :param default_domains:
            Domains queried by :py:meth:`balances` when none are given.
        """
        self.session = session
        self.default_domains = list(default_domains) if default_domains is not None else list(GATEWAY_DOMAIN_NAMES)

    def __repr__(self) -> str:
        return f"<GatewayApiClient api_url={self.session.api_url!r}>"

    def _request(self, method: str, path: str, payload: dict | None = None) -> Any:
        url = f"{self.session.api_url}{path}"
        logger.debug("Gateway API %s %s", method, url)
        try:
            response = self.session.request(
                method,
                url,
                json=payload,
                headers={"Content-Type": "application/json"},
                timeout=getattr(self.session, "timeout", 30.0),
            )
        except requests.RequestException as e:
            raise NetworkError(f"Could not reach Gateway API at {url}: {e}") from e

        if not response.ok:
            raise ExternalApiError(response.status_code, response.text, url)

        try:
            return response.json()
        except ValueError as e:
            raise ResponseFormatError(f"Gateway API returned non-JSON body from {url}") from e

    def fetch_info_json(self) -> dict:
        """Raw ``GET /info`` response."""
        return self._request("GET", "/info")

    def info(self) -> GatewayInfo:
        """Supported domains and their contract addresses."""
        info = parse_info(self.fetch_info_json())
        logger.info("Gateway API reports %d domain(s)", len(info.domains))
        return info

    def balances(
        self,
        token: str,
        depositor: HexAddress | str,
        domains: Iterable[int] | None = None,
    ) -> list[GatewayBalance]:
        """Fetch depositor balances in one batched request.

        :param token:
            Token symbol, always ``"USDC"`` here.

        :param depositor:
            Depositor address.

        :param domains:
            Domains to query. Defaults to :py:attr:`default_domains`.

        :return:
            One entry per domain the API reports. Domains the API omits are missing.
        """
        source_domains = list(domains) if domains is not None else self.default_domains
        payload = {
            "token": token,
            "sources": [{"depositor": depositor, "domain": domain} for domain in source_domains],
        }
        balances = parse_balances(self._request("POST", "/balances", payload))
        logger.debug("Depositor %s has %d balance entries", depositor, len(balances))
        return balances

    def submit_burn_intents_json(self, burn_intents: list[dict]) -> dict:
        """Raw ``POST /transfer`` with already wire-encoded ``{burnIntent, signature}`` entries."""
        return self._request("POST", "/transfer", {"burnIntents": burn_intents})

    def transfer(self, signed_intents: list[SignedBurnIntent]) -> list[GatewayAttestation]:
        """Submit signed burn intents as one batch.

        The batch either succeeds as a whole or raises, there is no partial success.

        :return:
            One attestation per accepted intent.
        """
        assert len(signed_intents) > 0, "Empty burn intent batch"
        data = self.submit_burn_intents_json([s.to_wire() for s in signed_intents])
        attestations = parse_transfer(data)
        logger.info("Gateway accepted %d/%d burn intent(s)", len(attestations), len(signed_intents))
        return attestations
