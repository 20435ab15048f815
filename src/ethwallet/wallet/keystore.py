"""File-backed keystore document holding every local account."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Iterator, Optional

from pydantic import ValidationError

from ethwallet.errors import DuplicateAccount, StoreCorrupt, StoreUnavailable
from ethwallet.storage.models import AccountRecord

logger = logging.getLogger("ethwallet.wallet.keystore")


def _serialize(records: list[AccountRecord]) -> str:
    return json.dumps([r.keystore for r in records], indent=2) + "\n"


class KeystoreStore:
    """Ordered collection of encrypted accounts persisted as one JSON array.

    Parameters
    ----------
    path:
        The keystore document, usually ``data/keystores.<environment>.json``.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._records: Optional[list[AccountRecord]] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def exists(self) -> bool:
        return self.path.is_file()

    def initialize(self) -> bool:
        """Create an empty document if none exists.

        Returns ``True`` if a document was created, ``False`` if one was
        already there (it is left untouched).
        """
        if self.exists():
            return False
        self.save([])
        logger.info(f"Created empty keystore document at {self.path}")
        return True

    def load(self) -> list[AccountRecord]:
        """Read and validate the document.

        Raises
        ------
        StoreUnavailable
            If the file is missing or cannot be read.
        StoreCorrupt
            If the content is not an array of well-formed keystore entries
            with unique addresses.
        """
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise StoreUnavailable(f"Keystore document {self.path} does not exist", self.path) from exc
        except OSError as exc:
            raise StoreUnavailable(f"Cannot read keystore document {self.path}: {exc}", self.path) from exc

        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise StoreCorrupt(f"Keystore document {self.path} is not valid JSON: {exc}", self.path) from exc
        if not isinstance(data, list):
            raise StoreCorrupt(f"Keystore document {self.path} must contain a JSON array", self.path)

        records: list[AccountRecord] = []
        seen: set[str] = set()
        for index, entry in enumerate(data):
            try:
                record = AccountRecord.from_keystore(entry)
            except (ValueError, ValidationError) as exc:
                raise StoreCorrupt(f"Entry #{index} of {self.path} is malformed: {exc}", self.path) from exc
            if record.address in seen:
                raise StoreCorrupt(
                    f"Entry #{index} of {self.path} duplicates account 0x{record.address}", self.path
                )
            seen.add(record.address)
            records.append(record)

        self._records = records
        logger.debug(f"Loaded {len(records)} account(s) from {self.path}")
        return list(records)

    def save(self, records: list[AccountRecord]) -> None:
        """Overwrite the document with *records*.

        The content is written to a temporary file in the same directory and
        renamed over the document, so a crash never leaves it truncated.
        """
        payload = _serialize(records)
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, self.path)
            tmp_name = None
        except OSError as exc:
            raise StoreUnavailable(f"Cannot write keystore document {self.path}: {exc}", self.path) from exc
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    logger.warning(f"Could not remove temporary file {tmp_name}")

        self._records = list(records)
        logger.debug(f"Saved {len(records)} account(s) to {self.path}")

    # ------------------------------------------------------------------
    # Queries and mutations
    # ------------------------------------------------------------------

    @property
    def records(self) -> list[AccountRecord]:
        """The cached records, loading the document on first access."""
        if self._records is None:
            self.load()
        return list(self._records or [])

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[AccountRecord]:
        return iter(self.records)

    def find_by_address(self, address: str) -> Optional[AccountRecord]:
        """Return the record for *address* (``0x`` optional, any case), or ``None``."""
        for record in self.records:
            if record.matches(address):
                return record
        return None

    def append(self, record: AccountRecord) -> None:
        """Add *record* at the end and persist the whole document.

        Raises ``DuplicateAccount`` without touching the document if the
        address is already present.
        """
        records = self.records
        if any(existing.address == record.address for existing in records):
            raise DuplicateAccount(record.address)
        records.append(record)
        self.save(records)
        logger.info(f"Account 0x{record.address} added to {self.path}")
