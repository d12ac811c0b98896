"""Circle Gateway exceptions.

Validation and lifecycle errors are raised to the caller as is.
The balance read path catches :py:class:`GatewayError` and degrades to cached data,
the transfer path lets it propagate.
"""


class GatewayError(Exception):
    """Base class for all Circle Gateway errors."""


class UnsupportedChain(GatewayError):
    """Chain name does not map to any Gateway domain."""


class UnknownDomain(GatewayError):
    """Domain id is not in the registry."""


class InvalidAmount(GatewayError):
    """Amount or fee outside the allowed range."""


class InvalidPrivateKey(GatewayError):
    """Private key could not be turned into an account."""


class ExternalApiError(GatewayError):
    """Gateway API answered with a non-2xx status."""

    def __init__(self, status: int, body: str = "", url: str = ""):
        self.status = status
        self.body = body
        self.url = url
        super().__init__(f"Gateway API error {status} at {url}: {body[:200]}")


class ResponseFormatError(GatewayError):
    """Gateway API answered 2xx with a body we cannot parse."""


class NetworkError(GatewayError):
    """Could not reach the Gateway API."""


class NotInitialized(GatewayError):
    """Signing flow used before a key was bound."""


class SigningUnavailable(GatewayError):
    """No signing capability configured at signing time."""


class UntrustedContract(GatewayError):
    """Wallet contract address was never verified against the Gateway API."""


class IntentExpired(GatewayError):
    """Burn intent deadline is not in the future."""


class ConfigurationError(GatewayError):
    """Missing or unsafe configuration at startup."""
