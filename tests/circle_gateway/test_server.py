"""HTTP routes over a service with a fake Gateway API."""

import pytest
import requests
from fastapi.testclient import TestClient

from gateway_defi.circle_gateway.server import create_app
from tests.circle_gateway.helpers import TEST_DEPOSITOR, TEST_NOW, TEST_PRIVATE_KEY, TEST_SIGNER_ADDRESS, make_info_body


@pytest.fixture()
def http(service) -> TestClient:
    return TestClient(create_app(service))


def test_init(http):
    resp = http.post("/init", json={"privateKey": TEST_PRIVATE_KEY})
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "address": TEST_SIGNER_ADDRESS}


def test_init_bad_key(http):
    resp = http.post("/init", json={"privateKey": "0x1234"})
    assert resp.status_code == 400
    assert "0x1234" not in resp.text


def test_balance(http, fake_session):
    """Amounts as strings, timestamp in milliseconds."""
    fake_session.queue(200, {"balances": [{"domain": 6, "balance": "1.25"}, {"domain": 0, "balance": "3"}]})

    resp = http.get(f"/balance/{TEST_DEPOSITOR}")

    assert resp.status_code == 200
    assert resp.json() == {
        "address": TEST_DEPOSITOR,
        "totalBalance": "4250000",
        "chainBalances": {"0": "3000000", "6": "1250000"},
        "lastUpdated": TEST_NOW * 1000,
    }


def test_balance_api_down_returns_zero(http, fake_session):
    fake_session.queue_error(requests.ConnectionError("down"))
    resp = http.get(f"/balance/{TEST_DEPOSITOR}")
    assert resp.status_code == 200
    assert resp.json()["totalBalance"] == "0"
    assert resp.json()["chainBalances"] == {}


def test_balance_bad_address(http):
    resp = http.get("/balance/0xnotanaddress")
    assert resp.status_code == 400


def test_deposit(http):
    resp = http.post("/deposit", json={"sourceChain": "baseSepolia", "amount": "1000000", "userAddress": TEST_DEPOSITOR})
    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is True
    assert len(data["steps"]) == 5


def test_deposit_unsupported_chain(http):
    resp = http.post("/deposit", json={"sourceChain": "polygon", "amount": "1000000", "userAddress": TEST_DEPOSITOR})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Unsupported source chain: polygon"}


@pytest.mark.parametrize("amount", ["1.5", "-1", "abc", 1.5])
def test_deposit_amount_must_be_integer(http, amount):
    resp = http.post("/deposit", json={"sourceChain": "ethereum", "amount": amount, "userAddress": TEST_DEPOSITOR})
    assert resp.status_code == 422


def test_unknown_field_rejected(http):
    resp = http.post("/init", json={"privateKey": TEST_PRIVATE_KEY, "extra": 1})
    assert resp.status_code == 422


def test_transfer_before_init(http, fake_session):
    resp = http.post("/transfer-to-vault", json={"userAddress": TEST_DEPOSITOR, "sources": [{"domain": 0, "amount": "1000000"}], "totalAmount": "1000000"})
    assert resp.status_code == 409
    assert fake_session.requests == []


def test_transfer_empty_sources(http):
    resp = http.post("/transfer-to-vault", json={"userAddress": TEST_DEPOSITOR, "sources": []})
    assert resp.status_code == 422


def test_transfer_total_amount_required(http, fake_session):
    resp = http.post("/transfer-to-vault", json={"userAddress": TEST_DEPOSITOR, "sources": [{"domain": 0, "amount": "1000000"}]})
    assert resp.status_code == 422
    assert fake_session.requests == []


def test_transfer_amount_beyond_uint256(http, fake_session):
    """Oversized amount is a caller error, not a signing crash."""
    http.post("/init", json={"privateKey": TEST_PRIVATE_KEY})
    amount = str(2**256)

    resp = http.post("/transfer-to-vault", json={"userAddress": TEST_DEPOSITOR, "sources": [{"domain": 0, "amount": amount}], "totalAmount": amount})

    assert resp.status_code == 400
    assert "error" in resp.json()
    assert fake_session.requests == []


def test_transfer_to_vault(http, fake_session):
    http.post("/init", json={"privateKey": TEST_PRIVATE_KEY})
    fake_session.queue(200, {"attestations": [{"burnIntent": {"amount": "1000000"}, "attestation": "0xbeef"}]})

    resp = http.post(
        "/transfer-to-vault",
        json={"userAddress": TEST_DEPOSITOR, "sources": [{"domain": 0, "amount": "1000000"}], "totalAmount": "1000000"},
    )

    assert resp.status_code == 200
    assert resp.json() == {"success": True, "attestations": [{"burnIntent": {"amount": "1000000"}, "attestation": "0xbeef"}]}
    assert fake_session.requests[0][1].endswith("/transfer")


def test_transfer_upstream_error(http, fake_session):
    """Gateway API rejection maps to 502 with the upstream status."""
    http.post("/init", json={"privateKey": TEST_PRIVATE_KEY})
    fake_session.queue(400, {"message": "insufficient balance"})

    resp = http.post("/transfer-to-vault", json={"userAddress": TEST_DEPOSITOR, "sources": [{"domain": 0, "amount": "1000000"}], "totalAmount": "1000000"})

    assert resp.status_code == 502
    assert resp.json()["status"] == 400


def test_attestation_passthrough(http, fake_session):
    fake_session.queue(200, {"attestations": []})
    burn_intents = [{"burnIntent": {"amount": "1"}, "signature": "0x00"}]

    resp = http.post("/attestation", json={"burnIntents": burn_intents})

    assert resp.status_code == 200
    assert resp.json() == {"attestations": []}
    assert fake_session.requests[0][2] == {"burnIntents": burn_intents}


def test_info_passthrough(http, fake_session):
    fake_session.queue(200, make_info_body(domains=(0,)))
    resp = http.get("/info")
    assert resp.status_code == 200
    assert resp.json() == make_info_body(domains=(0,))


def test_info_network_error(http, fake_session):
    fake_session.queue_error(requests.Timeout("timed out"))
    resp = http.get("/info")
    assert resp.status_code == 504
