"""Web3 JSON-RPC provider: balances, gas, key handling and broadcasting."""

from __future__ import annotations

import logging
import threading
from decimal import Decimal
from typing import Any, Optional

from eth_account import Account
from web3 import Web3
from web3.middleware import ExtraDataToPOAMiddleware

from ethwallet.errors import InvalidAddress, InvalidKeyMaterial, NetworkError, SigningFailed
from ethwallet.storage.models import TransferRequest
from ethwallet.wallet.chains import Network

logger = logging.getLogger("ethwallet.wallet.provider")


class Web3Provider:
    """Ledger client bound to one RPC endpoint.

    The ``Web3`` instance is built on first use, so commands that never touch
    the network (``new``, ``import``) work offline.
    """

    def __init__(
        self,
        network: Network,
        rpc_timeout: float = 30.0,
        receipt_timeout: float = 120.0,
    ) -> None:
        self.network = network
        self.rpc_timeout = rpc_timeout
        self.receipt_timeout = receipt_timeout
        self._w3: Optional[Web3] = None
        self._w3_lock = threading.Lock()

    @property
    def w3(self) -> Web3:
        """Return the (cached) Web3 instance.

        Injects POA middleware for non-mainnet presets. Safe to call from the
        worker threads of a concurrent balance listing.
        """
        with self._w3_lock:
            if self._w3 is None:
                self._w3 = self._connect()
        return self._w3

    def _connect(self) -> Web3:
        w3 = Web3(
            Web3.HTTPProvider(
                self.network.rpc_url,
                request_kwargs={"timeout": self.rpc_timeout},
            )
        )
        chain = self.network.chain
        if chain is not None and chain.chain_id != 1:
            w3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)
        return w3

    @staticmethod
    def checksum(address: str) -> str:
        """Return the checksummed form of *address*, adding ``0x`` if missing."""
        value = address.strip()
        if not value.lower().startswith("0x"):
            value = "0x" + value
        if not Web3.is_address(value):
            raise InvalidAddress(address)
        return Web3.to_checksum_address(value)

    # ------------------------------------------------------------------
    # Balances and fees
    # ------------------------------------------------------------------

    def get_balance_wei(self, address: str) -> int:
        checksum = self.checksum(address)
        try:
            return int(self.w3.eth.get_balance(checksum))
        except Exception as exc:
            raise NetworkError(f"Failed to get balance of {checksum}: {exc}") from exc

    def get_balance(self, address: str) -> Decimal:
        """Get the balance in ether."""
        return Decimal(str(Web3.from_wei(self.get_balance_wei(address), "ether")))

    def get_gas_price(self) -> int:
        try:
            return int(self.w3.eth.gas_price)
        except Exception as exc:
            raise NetworkError(f"Failed to get gas price: {exc}") from exc

    def estimate_gas(self, tx: dict[str, Any]) -> int:
        try:
            return int(self.w3.eth.estimate_gas(tx))
        except Exception as exc:
            raise NetworkError(f"Failed to estimate gas: {exc}") from exc

    # ------------------------------------------------------------------
    # Keys
    # ------------------------------------------------------------------

    def create_account(self) -> tuple[str, bytes]:
        """Generate a fresh key pair. Returns ``(checksum_address, key)``."""
        acct = Account.create()
        return acct.address, bytes(acct.key)

    def import_account(self, private_key: str) -> tuple[str, bytes]:
        """Derive the account for a hex private key (``0x`` optional).

        Raises ``InvalidKeyMaterial`` if the text is not a valid key.
        """
        value = private_key.strip()
        if not value:
            raise InvalidKeyMaterial("Invalid private key: empty input")
        try:
            acct = Account.from_key(value)
        except Exception as exc:
            raise InvalidKeyMaterial("Invalid private key") from exc
        return acct.address, bytes(acct.key)

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def build_transaction(self, request: TransferRequest) -> dict[str, Any]:
        """Fill nonce, chain id, gas price and gas limit for *request*."""
        tx: dict[str, Any] = {
            "from": request.sender,
            "to": request.receiver,
            "value": request.value_wei,
            "gasPrice": self.get_gas_price(),
        }
        tx["gas"] = self.estimate_gas(tx)
        try:
            tx["nonce"] = self.w3.eth.get_transaction_count(request.sender)
            tx["chainId"] = self.w3.eth.chain_id
        except Exception as exc:
            raise NetworkError(f"Failed to prepare transaction: {exc}") from exc
        return tx

    def sign_and_send(self, request: TransferRequest, key: bytes) -> dict[str, Any]:
        """Sign and broadcast *request*, then wait for the receipt.

        Returns the receipt as a plain dict with hashes as 0x-prefixed strings.
        """
        tx = self.build_transaction(request)
        tx.pop("from")
        try:
            signed = Account.sign_transaction(tx, key)
        except Exception as exc:
            raise SigningFailed(f"Failed to sign transaction: {exc}") from exc
        try:
            tx_hash = self.w3.eth.send_raw_transaction(signed.raw_transaction)
        except Exception as exc:
            raise NetworkError(f"Error sending transaction: {exc}") from exc
        tx_hex = Web3.to_hex(tx_hash)
        logger.info(f"Transaction {tx_hex} broadcast, waiting for receipt")
        try:
            receipt = self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.receipt_timeout)
        except Exception as exc:
            raise NetworkError(f"Transaction {tx_hex} sent but no receipt: {exc}") from exc
        return {
            k: Web3.to_hex(v) if isinstance(v, (bytes, bytearray)) else v
            for k, v in dict(receipt).items()
        }
