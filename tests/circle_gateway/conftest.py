"""Circle Gateway test fixtures.

No network access: the Gateway API is replaced by
:py:class:`~tests.circle_gateway.helpers.FakeGatewaySession`,
which serves queued responses and records requests.
"""

import pytest

from gateway_defi.circle_gateway.api import GatewayApiClient
from gateway_defi.circle_gateway.config import GatewayConfig
from gateway_defi.circle_gateway.domains import DomainRegistry, create_testnet_registry
from gateway_defi.circle_gateway.service import GatewayService
from tests.circle_gateway.helpers import TEST_VAULT_ADDRESS, FakeClock, FakeGatewaySession, make_info_body


@pytest.fixture()
def fake_session() -> FakeGatewaySession:
    return FakeGatewaySession()


@pytest.fixture()
def client(fake_session) -> GatewayApiClient:
    return GatewayApiClient(fake_session, default_domains=[0, 1, 3, 6])


@pytest.fixture()
def registry() -> DomainRegistry:
    """Testnet registry, contracts not loaded."""
    return create_testnet_registry()


@pytest.fixture()
def verified_registry(registry, client, fake_session) -> DomainRegistry:
    """Testnet registry with contracts loaded from a fake ``/info``."""
    fake_session.queue(200, make_info_body())
    assert registry.refresh(client)
    fake_session.requests.clear()
    return registry


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def config() -> GatewayConfig:
    return GatewayConfig(vault_address=TEST_VAULT_ADDRESS, vault_chain="arbitrumSepolia")


@pytest.fixture()
def service(config, client, verified_registry, clock) -> GatewayService:
    """Uninitialised service over verified contracts with deterministic nonces."""
    nonces = iter(range(1, 1000))
    return GatewayService(
        config=config,
        client=client,
        registry=verified_registry,
        clock=clock,
        nonce_source=lambda: next(nonces),
    )
