"""Bunch of random utilities."""

import calendar
import datetime
import logging
import os
from decimal import ROUND_DOWN, Decimal
from typing import Optional

import coloredlogs
from eth_typing import HexAddress, HexStr
from web3 import Web3

logger = logging.getLogger(__name__)

#: The all-zero EVM address, never a valid vault or contract
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


def to_unix_timestamp(dt: datetime.datetime) -> float:
    """Convert Python UTC datetime to UNIX seconds since epoch.

    Example:

    .. code-block:: python

        import datetime
        from gateway_defi.utils import to_unix_timestamp

        dt = datetime.datetime(1970, 1, 1)
        unix_time = to_unix_timestamp(dt)
        assert unix_time == 0

    :param dt:
        Python datetime to convert

    :return:
        Datetime as seconds since 1970-1-1
    """
    # https://stackoverflow.com/a/5499906/315168
    return calendar.timegm(dt.utctimetuple())


def from_unix_timestamp(timestamp: float) -> datetime.datetime:
    """Convert UNIX seconds since epoch to naive Python datetime.

    :param timestamp:
        Timestamp in since 1970-1-1 as float or int as seconds

    :return:
        Naive Python datetime in UTC timezone (tzinfo is None, but the time is in UTC)
    """
    assert type(timestamp) in (int, float), f"Got {type(timestamp)}: {timestamp}"
    return datetime.datetime.fromtimestamp(timestamp, tz=datetime.timezone.utc).replace(tzinfo=None)


def addr(address: str | HexAddress | HexStr) -> HexAddress:
    """Convert and checksum an address.

    :param address:
        ``0x``-prefixed hex address in any case.

    :return:
        Checksummed :py:class:`HexAddress`

    :raises ValueError:
        If the string is not a 20-byte hex address.
    """
    if not isinstance(address, str) or not Web3.is_address(address):
        raise ValueError(f"Not an EVM address: {address!r}")
    return HexAddress(HexStr(Web3.to_checksum_address(address)))


def is_good_address(address: str | None) -> bool:
    """Check the address is a real, non-zero EVM address."""
    if not address or not Web3.is_address(address):
        return False
    return address.lower() != ZERO_ADDRESS


def to_raw_amount(amount: Decimal, decimals: int) -> int:
    """Convert a human decimal token amount to raw fixed-point units.

    Rounds down, so dust below the token precision is never counted.

    :param amount:
        Token amount, e.g. ``Decimal("5.5")``

    :param decimals:
        Token decimals, 6 for USDC

    :return:
        Raw integer amount, e.g. ``5_500_000``
    """
    assert isinstance(amount, Decimal), f"Got {type(amount)}: {amount}"
    return int((amount * (Decimal(10) ** decimals)).to_integral_value(rounding=ROUND_DOWN))


def from_raw_amount(raw: int, decimals: int) -> Decimal:
    """Convert raw fixed-point units to a human decimal amount."""
    return Decimal(raw).scaleb(-decimals)


def setup_console_logging(
    default_log_level="warning",
    simplified_logging=False,
    std_out_log_level: Optional[int] = None,
) -> logging.Logger:
    """Set up coloured log output.

    - Helper function to have nicer logging output in scripts and the server
    - Tune down some noisy dependency library logging

    :param default_log_level:
        Used when ``LOG_LEVEL`` environment variable is not set.

    :return:
        Root logger
    """

    level = os.environ.get("LOG_LEVEL", default_log_level).upper()
    numeric_level = getattr(logging, level, None)
    assert numeric_level, f"No level: {level}"

    if not std_out_log_level:
        std_out_log_level = numeric_level

    if simplified_logging:
        fmt = "%(message)s"
        date_fmt = "%H:%M:%S"
    else:
        fmt = "%(asctime)s %(name)-44s [%(threadName)s] %(message)s"
        date_fmt = "%Y-%m-%d %H:%M:%S"

    coloredlogs.install(level=std_out_log_level, fmt=fmt, datefmt=date_fmt)

    # Mute noise
    logging.getLogger("web3.providers.HTTPProvider").setLevel(logging.WARNING)
    logging.getLogger("web3.RequestManager").setLevel(logging.WARNING)
    logging.getLogger("urllib3.connectionpool").setLevel(logging.WARNING)
    return logging.getLogger()
