from __future__ import annotations

from decimal import Decimal

import pytest

from ethwallet.errors import InvalidAmount
from ethwallet.storage.models import (
    AccountRecord,
    TransferRequest,
    ether_to_wei,
    normalize_address,
    parse_ether_amount,
)

ADDR = "ab" * 20


@pytest.mark.parametrize(
    "value",
    [ADDR, "0x" + ADDR, "0X" + ADDR.upper(), f"  {ADDR}\n"],
)
def test_normalize_address(value):
    assert normalize_address(value) == ADDR


@pytest.mark.parametrize("value", ["", "0x", "0x1234", "zz" * 20, "0x" + ADDR + "00"])
def test_normalize_address_rejects_garbage(value):
    with pytest.raises(ValueError):
        normalize_address(value)


def test_record_normalizes_and_displays():
    record = AccountRecord(address="0x" + ADDR.upper(), keystore={"crypto": {}})
    assert record.address == ADDR
    assert record.display_address == "0x" + ADDR
    assert record.matches(ADDR.upper())
    assert not record.matches("garbage")


@pytest.mark.parametrize(
    "text, wei",
    [
        ("1", 10**18),
        ("0.5", 5 * 10**17),
        (" 2.25 ", 2_250_000_000_000_000_000),
        ("0.000000000000000001", 1),
        ("1e-18", 1),
        ("100", 100 * 10**18),
        ("0.500", 5 * 10**17),
        ("1.000000000000000000000", 10**18),
        ("12345678901.123456789012345678", 12345678901123456789012345678),
    ],
)
def test_parse_ether_amount(text, wei):
    assert ether_to_wei(parse_ether_amount(text)) == wei


@pytest.mark.parametrize(
    "text",
    ["", "abc", "0", "-1", "NaN", "Infinity", "0.0000000000000000001", "1.0000000000000000000000000001"],
)
def test_parse_ether_amount_rejects(text):
    with pytest.raises(InvalidAmount):
        parse_ether_amount(text)


def test_transfer_request_value_wei():
    request = TransferRequest(sender="0x" + ADDR, receiver="0x" + ADDR, amount_ether=Decimal("1.5"))
    assert request.value_wei == 1_500_000_000_000_000_000
