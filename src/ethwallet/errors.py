"""Exception hierarchy for the wallet.

Every failure a command distinguishes has its own class so the CLI can print a
specific message instead of a traceback.  All of them derive from
:class:`WalletError`.
"""

from __future__ import annotations


class WalletError(Exception):
    """Base class for every error raised by ethwallet."""


class ConfigError(WalletError):
    """The environment configuration could not be read or is invalid."""


# ---------------------------------------------------------------------------
# Keystore document
# ---------------------------------------------------------------------------


class StoreError(WalletError):
    """Base class for keystore document failures."""

    def __init__(self, message: str, path: object = None) -> None:
        super().__init__(message)
        self.path = path


class StoreUnavailable(StoreError):
    """The keystore document cannot be read or written."""


class StoreCorrupt(StoreError):
    """The keystore document does not have the expected shape."""


class DuplicateAccount(WalletError):
    """An account with the same address is already in the keystore."""

    def __init__(self, address: str) -> None:
        super().__init__(f"Account 0x{address} already exists in the wallet")
        self.address = address


class AccountNotFound(WalletError):
    """No account in the keystore matches the requested address."""

    def __init__(self, address: str) -> None:
        super().__init__(f"No such account inside the wallet: {address}")
        self.address = address


# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------


class CredentialError(WalletError):
    """Base class for encrypt/decrypt failures."""


class InvalidPassword(CredentialError):
    """The password does not unlock the keystore entry."""


class EncryptionFailed(CredentialError):
    """The keystore primitive failed for a reason other than a bad password."""


class InvalidKeyMaterial(WalletError):
    """The supplied private key is malformed."""


# ---------------------------------------------------------------------------
# Transfers / network
# ---------------------------------------------------------------------------


class InvalidAddress(WalletError):
    """The text is not a valid Ethereum address."""

    def __init__(self, address: str) -> None:
        super().__init__(f"Invalid address: {address!r}")
        self.address = address


class InvalidAmount(WalletError):
    """The amount cannot be converted to a whole number of wei."""


class NetworkError(WalletError):
    """A JSON-RPC call to the node failed."""


class SigningFailed(WalletError):
    """The transaction could not be signed with the unlocked key."""
