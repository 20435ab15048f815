"""Pydantic models for keystore entries and transfer workflows."""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from ethwallet.errors import InvalidAmount

_ADDRESS_RE = re.compile(r"^[0-9a-f]{40}$")

MAX_ETHER_DECIMALS = 18


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def normalize_address(address: str) -> str:
    """Return the canonical form of *address*: lower-case hex, no ``0x``.

    Raises ``ValueError`` if the result is not 40 hex characters.
    """
    value = address.strip()
    if value[:2] in ("0x", "0X"):
        value = value[2:]
    value = value.lower()
    if not _ADDRESS_RE.match(value):
        raise ValueError(f"Not an Ethereum address: {address!r}")
    return value


def _fraction_digits(amount: Decimal) -> int:
    """Number of significant fractional digits, read from the exact digit tuple."""
    _, digits, exponent = amount.as_tuple()
    if not isinstance(exponent, int) or exponent >= 0:
        return 0
    places = -exponent
    trailing = len(digits) - len("".join(map(str, digits)).rstrip("0"))
    return max(places - trailing, 0)


def parse_ether_amount(text: str) -> Decimal:
    """Parse an operator-entered ether amount.

    The amount must be a finite, strictly positive decimal with at most 18
    fractional digits, so that it maps onto a whole number of wei.
    """
    try:
        amount = Decimal(text.strip())
    except (InvalidOperation, AttributeError) as exc:
        raise InvalidAmount(f"Invalid amount: {text!r}") from exc
    if not amount.is_finite():
        raise InvalidAmount(f"Invalid amount: {text!r}")
    if amount <= 0:
        raise InvalidAmount(f"Amount must be greater than zero, got {text!r}")
    if _fraction_digits(amount) > MAX_ETHER_DECIMALS:
        raise InvalidAmount(
            f"Amount {text!r} has more than {MAX_ETHER_DECIMALS} decimal places"
        )
    return amount


def ether_to_wei(amount: Decimal) -> int:
    """Convert an amount validated by :func:`parse_ether_amount` to wei.

    Integer arithmetic on the digit tuple, so no decimal context rounding.
    """
    sign, digits, exponent = amount.as_tuple()
    coefficient = int("".join(map(str, digits)) or "0")
    shift = exponent + MAX_ETHER_DECIMALS
    if shift >= 0:
        wei = coefficient * 10**shift
    else:
        wei, remainder = divmod(coefficient, 10**-shift)
        if remainder:
            raise InvalidAmount(f"Amount {amount} is not a whole number of wei")
    return -wei if sign else wei


# ---------------------------------------------------------------------------
# Record models
# ---------------------------------------------------------------------------

class AccountRecord(BaseModel):
    """One entry of the keystore document.

    ``keystore`` is the encrypted Web3 Secret Storage object exactly as it was
    produced by ``eth_account``; it is written back unchanged.
    """

    model_config = ConfigDict(frozen=True)

    address: str
    keystore: dict[str, Any]

    @field_validator("address")
    @classmethod
    def _normalize(cls, value: str) -> str:
        return normalize_address(value)

    @classmethod
    def from_keystore(cls, keystore: dict[str, Any]) -> "AccountRecord":
        """Build a record from an encrypted keystore object."""
        if not isinstance(keystore, dict):
            raise ValueError("keystore entry must be an object")
        if "crypto" not in keystore and "Crypto" not in keystore:
            raise ValueError("keystore entry has no 'crypto' section")
        address = keystore.get("address")
        if not isinstance(address, str):
            raise ValueError("keystore entry has no 'address'")
        return cls(address=address, keystore=keystore)

    @property
    def display_address(self) -> str:
        return "0x" + self.address

    def matches(self, address: str) -> bool:
        """Case-insensitive, prefix-insensitive address comparison."""
        try:
            return normalize_address(address) == self.address
        except ValueError:
            return False


class BalanceRow(BaseModel):
    """One row of the ``list`` table."""

    address: str
    balance: Optional[Decimal] = None
    error: Optional[str] = None


class TransferRequest(BaseModel):
    """A native ether transfer, ready for fee estimation and signing."""

    model_config = ConfigDict(frozen=True)

    sender: str
    receiver: str
    amount_ether: Decimal

    @property
    def value_wei(self) -> int:
        return ether_to_wei(self.amount_ether)
