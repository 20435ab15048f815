from __future__ import annotations

from decimal import Decimal
import threading
import time
from types import SimpleNamespace

import pytest
from eth_account import Account
from hexbytes import HexBytes

from ethwallet.errors import InvalidAddress, InvalidKeyMaterial, NetworkError, SigningFailed
from ethwallet.storage.models import TransferRequest
from ethwallet.wallet.chains import resolve_network
from ethwallet.wallet.provider import Web3Provider

from conftest import KEY_A, KEY_B, address_of


class StubEth:
    def __init__(self, balance=0, fail=False):
        self.balance = balance
        self.fail = fail
        self.gas_price = 2 * 10**9
        self.chain_id = 1337
        self.raw = None

    def get_balance(self, address):
        if self.fail:
            raise ConnectionError("node unreachable")
        return self.balance

    def estimate_gas(self, tx):
        return 21000

    def get_transaction_count(self, address):
        return 4

    def send_raw_transaction(self, raw):
        self.raw = raw
        return HexBytes(b"\xcd" * 32)

    def wait_for_transaction_receipt(self, tx_hash, timeout):
        return {"transactionHash": HexBytes(tx_hash), "blockNumber": 9, "gasUsed": 21000, "status": 1}


def _provider(eth: StubEth) -> Web3Provider:
    provider = Web3Provider(resolve_network("http://127.0.0.1:8545"))
    provider._w3 = SimpleNamespace(eth=eth)
    return provider


def test_get_balance_converts_wei_to_ether():
    provider = _provider(StubEth(balance=1_500_000_000_000_000_000))
    assert provider.get_balance(address_of(KEY_A)) == Decimal("1.5")


def test_rpc_failure_becomes_network_error():
    provider = _provider(StubEth(fail=True))
    with pytest.raises(NetworkError, match="node unreachable"):
        provider.get_balance(address_of(KEY_A))


@pytest.mark.parametrize("value", ["", "0x12", "hello", "0x" + "g" * 40])
def test_checksum_rejects_invalid_addresses(value):
    with pytest.raises(InvalidAddress):
        Web3Provider.checksum(value)


def test_checksum_accepts_unprefixed_lowercase():
    address = address_of(KEY_A)
    assert Web3Provider.checksum(address[2:].lower()) == address


def test_import_account_derives_address():
    provider = Web3Provider(resolve_network("ethereum"))
    address, key = provider.import_account(f"  {KEY_B[2:]}\n")
    assert address == address_of(KEY_B)
    assert key == bytes.fromhex(KEY_B[2:])


@pytest.mark.parametrize("text", ["", "   ", "0x1234", "not-a-key", "0x" + "00" * 32])
def test_import_account_rejects_malformed_keys(text):
    with pytest.raises(InvalidKeyMaterial):
        Web3Provider(resolve_network("ethereum")).import_account(text)


def test_create_account_returns_matching_key():
    address, key = Web3Provider(resolve_network("ethereum")).create_account()
    assert Account.from_key(key).address == address


def test_sign_and_send_signs_for_sender():
    eth = StubEth()
    provider = _provider(eth)
    request = TransferRequest(
        sender=address_of(KEY_A),
        receiver=address_of(KEY_B),
        amount_ether=Decimal("0.1"),
    )

    receipt = provider.sign_and_send(request, bytes.fromhex(KEY_A[2:]))

    assert receipt["transactionHash"] == "0x" + "cd" * 32
    assert receipt["status"] == 1
    assert Account.recover_transaction(eth.raw) == address_of(KEY_A)


def test_sign_and_send_reports_signing_errors():
    eth = StubEth()
    provider = _provider(eth)
    request = TransferRequest(
        sender=address_of(KEY_A),
        receiver=address_of(KEY_B),
        amount_ether=Decimal("0.1"),
    )

    with pytest.raises(SigningFailed):
        provider.sign_and_send(request, b"\x00" * 32)
    assert eth.raw is None


def test_client_is_built_once_across_threads(monkeypatch):
    provider = Web3Provider(resolve_network("http://127.0.0.1:8545"))
    built = []

    def slow_connect():
        time.sleep(0.05)
        client = SimpleNamespace(eth=StubEth())
        built.append(client)
        return client

    monkeypatch.setattr(provider, "_connect", slow_connect)
    seen = []
    threads = [threading.Thread(target=lambda: seen.append(provider.w3)) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(built) == 1
    assert all(client is built[0] for client in seen)
