"""Shared fixtures: fast keystore encryption and a fake ledger client."""

from __future__ import annotations

import time

import pytest
from eth_account import Account

from ethwallet.errors import NetworkError
from ethwallet.storage.models import AccountRecord, normalize_address
from ethwallet.wallet.chains import resolve_network
from ethwallet.wallet.credentials import CredentialGate
from ethwallet.wallet.keystore import KeystoreStore
from ethwallet.wallet.manager import WalletManager
from ethwallet.wallet.provider import Web3Provider

# Test-only keys, never use on-chain.
KEY_A = "0x" + "11" * 32
KEY_B = "0x" + "22" * 32
KEY_C = "0x" + "33" * 32
PASSWORD = "correct horse"

_WALLET_ENV_VARS = (
    "WALLET_ENV",
    "NETWORK",
    "WALLET_DATA_DIR",
    "WALLET_KDF",
    "WALLET_KDF_ITERATIONS",
    "WALLET_RPC_TIMEOUT",
    "WALLET_RECEIPT_TIMEOUT",
)


def address_of(key: str) -> str:
    return Account.from_key(key).address


class FakeProvider(Web3Provider):
    """Web3Provider with the RPC calls replaced by canned answers."""

    def __init__(self, balances=None, failing=(), delays=None):
        super().__init__(resolve_network("http://127.0.0.1:8545"))
        self.balances = {normalize_address(a): wei for a, wei in (balances or {}).items()}
        self.failing = {normalize_address(a) for a in failing}
        self.delays = {normalize_address(a): d for a, d in (delays or {}).items()}
        self.calls: list[tuple] = []
        self.sent: list[tuple] = []

    @property
    def w3(self):
        raise AssertionError("tests must not reach a real node")

    def get_balance_wei(self, address: str) -> int:
        key = normalize_address(self.checksum(address))
        self.calls.append(("get_balance", key))
        if key in self.delays:
            time.sleep(self.delays[key])
        if key in self.failing:
            raise NetworkError("connection refused")
        return self.balances.get(key, 0)

    def get_gas_price(self) -> int:
        self.calls.append(("gas_price",))
        return 10**9

    def estimate_gas(self, tx) -> int:
        self.calls.append(("estimate_gas",))
        return 21000

    def sign_and_send(self, request, key):
        self.calls.append(("sign_and_send",))
        self.sent.append((request, key))
        return {
            "transactionHash": "0x" + "ab" * 32,
            "blockNumber": 7,
            "gasUsed": 21000,
            "status": 1,
        }


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Start every test without wallet variables; undo anything .env files set."""
    for name in _WALLET_ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


@pytest.fixture
def gate() -> CredentialGate:
    return CredentialGate(kdf="pbkdf2", iterations=2)


@pytest.fixture
def store(tmp_path) -> KeystoreStore:
    s = KeystoreStore(tmp_path / "data" / "keystores.test.json")
    s.initialize()
    return s


@pytest.fixture
def make_record(gate):
    def _make(key: str, password: str = PASSWORD) -> AccountRecord:
        return AccountRecord.from_keystore(gate.encrypt(bytes.fromhex(key[2:]), password))

    return _make


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def manager(store, gate, fake_provider) -> WalletManager:
    return WalletManager(store, gate, fake_provider)
