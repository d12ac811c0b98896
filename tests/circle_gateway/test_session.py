"""Gateway HTTP session setup."""

import logging

from requests_ratelimiter import LimiterAdapter

from gateway_defi.circle_gateway.session import GatewaySession, LoggingRetry, create_gateway_session


def test_create_gateway_session():
    session = create_gateway_session(api_url="https://gateway.test/v1/", retries=2, timeout=10.0)

    assert isinstance(session, GatewaySession)
    assert session.api_url == "https://gateway.test/v1"
    assert session.timeout == 10.0
    assert repr(session) == "<GatewaySession api_url='https://gateway.test/v1'>"

    adapter = session.get_adapter("https://gateway.test/v1/info")
    assert isinstance(adapter, LimiterAdapter)
    retry = adapter.max_retries
    assert isinstance(retry, LoggingRetry)
    assert retry.total == 2
    assert "POST" in retry.allowed_methods
    assert 500 not in retry.status_forcelist
    assert 429 in retry.status_forcelist


def test_logging_retry_keeps_logger(caplog):
    """Each retry attempt is logged with the configured logger."""
    logger = logging.getLogger("test_gateway_retry")
    retry = LoggingRetry(total=3, logger=logger)

    with caplog.at_level(logging.WARNING, logger="test_gateway_retry"):
        next_retry = retry.increment(method="POST", url="/balances")

    assert next_retry.logger is logger
    assert next_retry.total == 2
    assert "Retrying POST /balances" in caplog.text
