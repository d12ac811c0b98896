"""HTTP session management for Circle Gateway API.

This module provides session creation with retry logic and rate limiting
for Gateway API requests.

The :py:class:`GatewaySession` carries the API URL so that
:py:class:`~gateway_defi.circle_gateway.api.GatewayApiClient` does not need
a separate ``api_url`` argument.
"""

import logging

from requests import Session
from requests_ratelimiter import LimiterAdapter
from urllib3.util.retry import Retry

from gateway_defi.circle_gateway.constants import GATEWAY_TESTNET_API_URL

logger = logging.getLogger(__name__)

#: Default number of retries for API requests
DEFAULT_RETRIES = 5

#: Default backoff factor for retries (seconds)
DEFAULT_BACKOFF_FACTOR = 0.5

#: Default rate limit for Gateway API requests per second.
#:
#: Circle does not publish a Gateway limit; stay well below the
#: 35 requests/second the Iris API allows.
DEFAULT_REQUESTS_PER_SECOND = 5.0

#: Default per-request timeout in seconds
DEFAULT_TIMEOUT = 30.0


class LoggingRetry(Retry):
    """urllib3 retry policy that logs every retry attempt.

    Retries are otherwise silent and a slow API looks like a hung process.
    """

    def __init__(self, *args, logger: logging.Logger | None = None, **kwargs):
        self.logger = logger or logging.getLogger(__name__)
        super().__init__(*args, **kwargs)

    def new(self, **kw) -> "LoggingRetry":
        retry = super().new(**kw)
        retry.logger = self.logger
        return retry

    def increment(self, method=None, url=None, response=None, error=None, _pool=None, _stacktrace=None):
        self.logger.warning(
            "Retrying %s %s, status %s, error %s, total retries left %s",
            method,
            url,
            response.status if response is not None else None,
            error,
            self.total,
        )
        return super().increment(
            method=method,
            url=url,
            response=response,
            error=error,
            _pool=_pool,
            _stacktrace=_stacktrace,
        )


class GatewaySession(Session):
    """A :py:class:`requests.Session` subclass that carries the Gateway API URL.

    Use :py:func:`create_gateway_session` to create instances.
    """

    #: Gateway API base URL (e.g. ``https://gateway-api-testnet.circle.com/v1``).
    api_url: str

    #: Per-request timeout in seconds
    timeout: float

    def __init__(self, api_url: str = GATEWAY_TESTNET_API_URL, timeout: float = DEFAULT_TIMEOUT):
        super().__init__()
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout

    def __repr__(self) -> str:
        return f"<GatewaySession api_url={self.api_url!r}>"


def create_gateway_session(
    api_url: str = GATEWAY_TESTNET_API_URL,
    retries: int = DEFAULT_RETRIES,
    backoff_factor: float = DEFAULT_BACKOFF_FACTOR,
    requests_per_second: float = DEFAULT_REQUESTS_PER_SECOND,
    pool_maxsize: int = 16,
    timeout: float = DEFAULT_TIMEOUT,
) -> GatewaySession:
    """Create a :py:class:`GatewaySession` configured for Circle Gateway API.

    The session is configured with:

    - The API URL stored in :py:attr:`GatewaySession.api_url`
    - Rate limiting to respect Gateway API throttling
    - Retry logic for handling transient errors using exponential backoff

    Example::

        from gateway_defi.circle_gateway.constants import GATEWAY_API_URL
        from gateway_defi.circle_gateway.session import create_gateway_session

        # Testnet (default)
        session = create_gateway_session()

        # Mainnet
        session = create_gateway_session(api_url=GATEWAY_API_URL)

    :param api_url:
        Gateway API base URL including the ``/v1`` version prefix.
    :param retries:
        Maximum number of retry attempts for failed requests
    :param backoff_factor:
        Backoff factor for exponential retry delays
    :param requests_per_second:
        Maximum requests per second
    :param pool_maxsize:
        Maximum number of connections to keep in the connection pool.
    :param timeout:
        Per-request timeout in seconds.
    :return:
        Configured :py:class:`GatewaySession`
    """
    session = GatewaySession(api_url=api_url, timeout=timeout)

    # Need to whitelist POST as /balances is a read served over POST.
    # 500 is left out of the forcelist so a failed /transfer batch is not resubmitted.
    retry_policy = LoggingRetry(
        total=retries,
        backoff_factor=backoff_factor,
        status_forcelist=[429, 502, 503, 504],
        respect_retry_after_header=True,
        logger=logger,
        allowed_methods=LoggingRetry.DEFAULT_ALLOWED_METHODS | frozenset(["POST"]),
        raise_on_status=False,
    )

    adapter = LimiterAdapter(
        per_second=requests_per_second,
        max_retries=retry_policy,
        pool_connections=pool_maxsize,
        pool_maxsize=pool_maxsize,
    )
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session
