"""Shared helpers."""

import datetime
from decimal import Decimal

import pytest

from gateway_defi.utils import ZERO_ADDRESS, addr, from_raw_amount, from_unix_timestamp, is_good_address, to_raw_amount, to_unix_timestamp


def test_unix_timestamp():
    dt = datetime.datetime(2026, 1, 1)
    assert to_unix_timestamp(dt) == 1767225600
    assert from_unix_timestamp(1767225600) == dt


def test_addr():
    assert addr("0xf39fd6e51aad88f6f4ce6ab8827279cfffb92266") == "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
    with pytest.raises(ValueError):
        addr("0xabc")
    with pytest.raises(ValueError):
        addr(None)


def test_is_good_address():
    assert is_good_address("0x1111111111111111111111111111111111111111")
    assert not is_good_address(ZERO_ADDRESS)
    assert not is_good_address(None)
    assert not is_good_address("vault")


@pytest.mark.parametrize(
    "human,raw",
    [
        (Decimal("10"), 10_000_000),
        (Decimal("0.000001"), 1),
        (Decimal("0.0000019"), 1),
        (Decimal("1.9999999"), 1_999_999),
    ],
)
def test_to_raw_amount_rounds_down(human, raw):
    assert to_raw_amount(human, 6) == raw


def test_from_raw_amount():
    assert from_raw_amount(1_500_000, 6) == Decimal("1.5")
    assert str(from_raw_amount(1_500_000, 6)) == "1.500000"
