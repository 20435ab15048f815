"""High-level wallet manager used by the CLI commands."""

from __future__ import annotations

import asyncio
import logging
from decimal import Decimal
from typing import Any

from ethwallet.errors import AccountNotFound, NetworkError, SigningFailed, WalletError
from ethwallet.storage.models import (
    AccountRecord,
    BalanceRow,
    TransferRequest,
    parse_ether_amount,
)
from ethwallet.wallet.credentials import CredentialGate
from ethwallet.wallet.keystore import KeystoreStore
from ethwallet.wallet.provider import Web3Provider

logger = logging.getLogger("ethwallet.wallet.manager")


class WalletManager:
    """Orchestrates keystore, credential gate and Web3 provider for one command."""

    def __init__(self, store: KeystoreStore, gate: CredentialGate, provider: Web3Provider) -> None:
        self.store = store
        self.gate = gate
        self.provider = provider

    # ------------------------------------------------------------------
    # Balances
    # ------------------------------------------------------------------

    async def _balance_row(self, record: AccountRecord) -> BalanceRow:
        address = record.display_address
        try:
            balance = await asyncio.to_thread(self.provider.get_balance, address)
        except WalletError as e:
            logger.warning(f"Failed to get balance for {address}: {e}")
            return BalanceRow(address=address, error=str(e))
        return BalanceRow(address=address, balance=balance)

    async def list_balances(self) -> list[BalanceRow]:
        """Fetch balances for every account concurrently.

        Rows come back in keystore order. A failure for one address only
        degrades its own row.
        """
        return list(await asyncio.gather(*(self._balance_row(r) for r in self.store)))

    def get_balance(self, address: str) -> Decimal:
        """Balance of an arbitrary address in ether."""
        return self.provider.get_balance(address)

    # ------------------------------------------------------------------
    # Account lifecycle
    # ------------------------------------------------------------------

    def add_account(self, key: bytes, password: str) -> AccountRecord:
        """Encrypt *key* with *password* and append it to the keystore."""
        keystore = self.gate.encrypt(key, password)
        record = AccountRecord.from_keystore(keystore)
        self.store.append(record)
        return record

    # ------------------------------------------------------------------
    # Transfers
    # ------------------------------------------------------------------

    def find_account(self, address: str) -> AccountRecord:
        """Look up a local account, raising ``AccountNotFound`` if absent."""
        record = self.store.find_by_address(address)
        if record is None:
            raise AccountNotFound(address.strip())
        return record

    def unlock(self, record: AccountRecord, password: str) -> bytes:
        """Decrypt the key of *record*. Raises ``InvalidPassword`` on mismatch."""
        return self.gate.decrypt(record.keystore, password)

    def build_transfer(self, record: AccountRecord, receiver: str, amount: str) -> TransferRequest:
        """Validate operator input and build a transfer from *record*."""
        return TransferRequest(
            sender=self.provider.checksum(record.address),
            receiver=self.provider.checksum(receiver),
            amount_ether=parse_ether_amount(amount),
        )

    def send(self, request: TransferRequest, key: bytes) -> dict[str, Any]:
        """Sign and broadcast *request*. No retry is attempted."""
        logger.info(
            f"Sending {request.amount_ether} ether from {request.sender} to {request.receiver}"
        )
        try:
            receipt = self.provider.sign_and_send(request, key)
        except (NetworkError, SigningFailed):
            logger.warning(f"Transfer from {request.sender} failed")
            raise
        logger.info(f"Transfer from {request.sender} mined in block {receipt.get('blockNumber')}")
        return receipt
