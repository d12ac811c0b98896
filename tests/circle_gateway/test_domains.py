"""Gateway domain registry."""

import pytest
import requests
from web3 import Web3

from gateway_defi.circle_gateway.domains import DomainRegistry, GatewayDomain, create_mainnet_registry
from gateway_defi.circle_gateway.errors import UnknownDomain, UnsupportedChain, UntrustedContract
from tests.circle_gateway.helpers import TEST_MINTER_CONTRACT, TEST_WALLET_CONTRACT, make_info_body


def test_testnet_registry_static_table(registry):
    """Seeded domains have chain ids but no trusted contracts."""
    assert registry.domain_ids == [0, 1, 3, 6]
    assert registry.lookup(0).chain_id == 11155111
    assert registry.lookup(1).chain_id == 43113
    assert registry.lookup(3).chain_id == 421614
    assert registry.lookup(6).chain_id == 84532
    for d in registry.domains:
        assert d.wallet_contract is None
        assert not d.is_trusted


def test_mainnet_registry_chain_ids():
    """Mainnet registry maps to mainnet chain ids."""
    registry = create_mainnet_registry()
    assert registry.lookup(3).chain_id == 42161
    assert registry.lookup(6).chain_id == 8453


def test_lookup_unknown_domain(registry):
    with pytest.raises(UnknownDomain):
        registry.lookup(2)


def test_lookup_by_chain_name_aliases(registry):
    """Chain names are case-insensitive and accept testnet aliases."""
    assert registry.lookup_by_chain_name("ethereum") == 0
    assert registry.lookup_by_chain_name("sepolia") == 0
    assert registry.lookup_by_chain_name("avalancheFuji") == 1
    assert registry.lookup_by_chain_name("arbitrumSepolia") == 3
    assert registry.lookup_by_chain_name("BASE") == 6


def test_lookup_by_chain_name_unsupported(registry):
    with pytest.raises(UnsupportedChain, match="solana"):
        registry.lookup_by_chain_name("solana")


def test_duplicate_domain_rejected():
    with pytest.raises(ValueError, match="Duplicate"):
        DomainRegistry([GatewayDomain(0, "Ethereum", 1), GatewayDomain(0, "Other", 2)])


def test_alias_to_missing_domain_is_unsupported():
    """An alias pointing at a domain the registry lacks is not resolvable."""
    registry = DomainRegistry([GatewayDomain(0, "Ethereum", 1)])
    with pytest.raises(UnsupportedChain):
        registry.lookup_by_chain_name("base")


def test_refresh_fills_contracts(registry, client, fake_session):
    """After a successful refresh every reported domain has a verified contract."""
    fake_session.queue(200, make_info_body())

    assert registry.refresh(client) is True

    method, url, _ = fake_session.requests[0]
    assert method == "GET"
    assert url.endswith("/info")

    for d in registry.domains:
        assert d.is_trusted
        assert d.wallet_contract == Web3.to_checksum_address(TEST_WALLET_CONTRACT)
        assert d.minter_contract == Web3.to_checksum_address(TEST_MINTER_CONTRACT)
        assert registry.get_trusted_wallet_contract(d.domain) == d.wallet_contract


def test_refresh_partial_report(registry, client, fake_session):
    """Domains missing from the report stay untrusted, unknown domains are ignored."""
    fake_session.queue(200, make_info_body(domains=(0, 26)))

    assert registry.refresh(client) is True

    assert registry.lookup(0).is_trusted
    assert not registry.lookup(6).is_trusted
    assert 26 not in registry.domain_ids
    with pytest.raises(UntrustedContract):
        registry.get_trusted_wallet_contract(6)


def test_refresh_http_error_keeps_previous(verified_registry, client, fake_session):
    """A failing refresh never raises and keeps earlier addresses."""
    before = verified_registry.lookup(3)
    fake_session.queue(503, "unavailable")

    assert verified_registry.refresh(client) is False
    assert verified_registry.lookup(3) is before


def test_refresh_network_error_never_raises(registry, client, fake_session):
    fake_session.queue_error(requests.ConnectionError("boom"))

    assert registry.refresh(client) is False
    assert not registry.lookup(0).is_trusted


def test_refresh_malformed_body_never_raises(registry, client, fake_session):
    fake_session.queue(200, {"chains": []})
    assert registry.refresh(client) is False


def test_untrusted_before_refresh(registry):
    """Static table addresses cannot be used for signing."""
    with pytest.raises(UntrustedContract):
        registry.get_trusted_wallet_contract(0)
