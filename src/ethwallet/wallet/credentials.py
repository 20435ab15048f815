"""Password prompts and the encrypt/decrypt boundary, using eth-account."""

from __future__ import annotations

import logging
from typing import Any, Optional

import typer
from eth_account import Account

from ethwallet.errors import EncryptionFailed, InvalidPassword

logger = logging.getLogger("ethwallet.wallet.credentials")

_MAC_MISMATCH = "MAC mismatch"


class CredentialGate:
    """Turns key material into an encrypted keystore entry and back.

    Secrets are only ever read through masked prompts; they are never taken
    from command-line arguments and never logged.
    """

    def __init__(self, kdf: str = "scrypt", iterations: Optional[int] = None) -> None:
        self.kdf = kdf
        self.iterations = iterations

    # ------------------------------------------------------------------
    # Prompts
    # ------------------------------------------------------------------

    def prompt_secret(self, label: str, confirm: bool = False) -> str:
        """Ask the operator for a secret without echoing it.

        With ``confirm=True`` the value has to be typed twice.
        """
        return typer.prompt(
            label,
            hide_input=True,
            confirmation_prompt="Repeat for confirmation" if confirm else False,
        )

    # ------------------------------------------------------------------
    # Crypto
    # ------------------------------------------------------------------

    def encrypt(self, key: bytes, password: str) -> dict[str, Any]:
        """Encrypt a private key into a Web3 Secret Storage object.

        Raises
        ------
        EncryptionFailed
            If ``eth_account`` rejects the key or the KDF parameters.
        """
        try:
            return Account.encrypt(key, password, kdf=self.kdf, iterations=self.iterations)
        except Exception as exc:
            raise EncryptionFailed(f"Failed to encrypt account: {exc}") from exc

    def decrypt(self, keystore: dict[str, Any], password: str) -> bytes:
        """Decrypt a keystore object and return the raw 32-byte private key.

        Raises
        ------
        InvalidPassword
            If the password does not match.
        EncryptionFailed
            If the payload is malformed or uses an unsupported scheme.
        """
        try:
            return bytes(Account.decrypt(keystore, password))
        except ValueError as exc:
            if _MAC_MISMATCH in str(exc):
                raise InvalidPassword("Unable to unlock account, invalid password") from exc
            raise EncryptionFailed(f"Failed to decrypt keystore: {exc}") from exc
        except Exception as exc:
            raise EncryptionFailed(f"Failed to decrypt keystore: {exc}") from exc
