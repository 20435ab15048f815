"""ethwallet storage layer -- pydantic models for keystore entries and transfers."""

from ethwallet.storage.models import (
    AccountRecord,
    BalanceRow,
    TransferRequest,
    ether_to_wei,
    normalize_address,
    parse_ether_amount,
)

__all__ = [
    "AccountRecord",
    "BalanceRow",
    "TransferRequest",
    "ether_to_wei",
    "normalize_address",
    "parse_ether_amount",
]
