"""Configuration for ethwallet.

The active environment name (``dev`` unless ``--env`` / ``WALLET_ENV`` says
otherwise) selects both the ``.env.<environment>`` file that is loaded into
the process environment and the keystore document path
``<data_dir>/keystores.<environment>.json``.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from ethwallet.errors import ConfigError

logger = logging.getLogger("ethwallet.config")

DEFAULT_ENVIRONMENT = "dev"
DEFAULT_NETWORK = "http://127.0.0.1:8545"

# Maps environment variable name to Settings field.
_ENV_FIELDS = {
    "NETWORK": "network",
    "WALLET_DATA_DIR": "data_dir",
    "WALLET_KDF": "kdf",
    "WALLET_KDF_ITERATIONS": "kdf_iterations",
    "WALLET_RPC_TIMEOUT": "rpc_timeout",
    "WALLET_RECEIPT_TIMEOUT": "receipt_timeout",
}


class Settings(BaseModel):
    """Settings read once at startup."""

    environment: str = DEFAULT_ENVIRONMENT
    network: str = DEFAULT_NETWORK  # RPC URL or a preset name (see wallet.chains)
    data_dir: Path = Path("data")
    kdf: Literal["scrypt", "pbkdf2"] = "scrypt"
    kdf_iterations: Optional[int] = Field(default=None, gt=0)
    rpc_timeout: float = Field(default=30.0, gt=0)
    receipt_timeout: float = Field(default=120.0, gt=0)

    @field_validator("environment")
    @classmethod
    def _check_environment(cls, value: str) -> str:
        value = value.strip()
        if not value or any(sep in value for sep in ("/", "\\", "..")):
            raise ValueError(f"invalid environment name {value!r}")
        return value

    @field_validator("network")
    @classmethod
    def _check_network(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("NETWORK must not be empty")
        return value

    @property
    def keystore_path(self) -> Path:
        """Location of the keystore document for this environment."""
        return self.data_dir / f"keystores.{self.environment}.json"


def env_file_for(environment: str, base_dir: Path | None = None) -> Path:
    """Return the ``.env.<environment>`` path, relative to *base_dir* (cwd by default)."""
    return (base_dir or Path.cwd()) / f".env.{environment}"


def load_settings(environment: str = DEFAULT_ENVIRONMENT, base_dir: Path | None = None) -> Settings:
    """Load ``.env.<environment>`` and build validated :class:`Settings`.

    Variables already present in the process environment take precedence over
    the file.  A missing file is not an error; the defaults apply.

    Raises
    ------
    ConfigError
        If any value fails validation.
    """
    env_file = env_file_for(environment, base_dir)
    if env_file.is_file():
        load_dotenv(env_file, override=False)
        logger.debug(f"Loaded environment file {env_file}")
    else:
        logger.debug(f"No environment file at {env_file}, using process environment")

    raw: dict[str, object] = {"environment": environment}
    for var_name, field_name in _ENV_FIELDS.items():
        value = os.environ.get(var_name)
        if value not in (None, ""):
            raw[field_name] = value

    try:
        settings = Settings.model_validate(raw)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration for environment '{environment}': {exc}") from exc

    if base_dir is not None and not settings.data_dir.is_absolute():
        settings = settings.model_copy(update={"data_dir": base_dir / settings.data_dir})
    return settings
