"""Fakes and constants shared by the Circle Gateway tests."""

import json

import requests

#: Anvil default account 0, never holds real funds
TEST_PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"

TEST_SIGNER_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"

TEST_WALLET_CONTRACT = "0x0077777d7eba4688bdef3e311b846f25870a19b9"

TEST_MINTER_CONTRACT = "0x0022222abe238cc2c7bb1f21003f0a260052475b"

TEST_VAULT_ADDRESS = "0x1111111111111111111111111111111111111111"

TEST_DEPOSITOR = "0xf39fd6e51aad88f6f4ce6ab8827279cfffb92266"

#: 2026-01-01 00:00:00 UTC
TEST_NOW = 1767225600


def make_response(status_code: int, body) -> requests.Response:
    """Build a real :py:class:`requests.Response` without network."""
    response = requests.Response()
    response.status_code = status_code
    response.encoding = "utf-8"
    if isinstance(body, (dict, list)):
        response._content = json.dumps(body).encode("utf-8")
        response.headers["Content-Type"] = "application/json"
    else:
        response._content = str(body).encode("utf-8")
    return response


class FakeGatewaySession:
    """Stands in for :py:class:`~gateway_defi.circle_gateway.session.GatewaySession`."""

    def __init__(self, api_url: str = "https://gateway.test/v1"):
        self.api_url = api_url
        self.timeout = 5.0
        self.requests: list[tuple[str, str, dict | None]] = []
        self.responses: list[requests.Response | Exception] = []

    def queue(self, status_code: int, body):
        self.responses.append(make_response(status_code, body))

    def queue_error(self, exc: Exception):
        self.responses.append(exc)

    def request(self, method, url, json=None, headers=None, timeout=None):
        self.requests.append((method, url, json))
        assert self.responses, f"No fake response queued for {method} {url}"
        result = self.responses.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


def make_info_body(domains=(0, 1, 3, 6)) -> dict:
    return {
        "domains": [
            {
                "chain": "Chain",
                "network": "Testnet",
                "domain": domain,
                "walletContract": {"address": TEST_WALLET_CONTRACT, "supportedTokens": ["USDC"]},
                "minterContract": {"address": TEST_MINTER_CONTRACT, "supportedTokens": ["USDC"]},
            }
            for domain in domains
        ]
    }


class FakeClock:
    """Settable clock."""

    def __init__(self, now: float = TEST_NOW):
        self.now = now

    def __call__(self) -> float:
        return self.now
