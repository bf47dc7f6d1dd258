"""Persistence helpers for the Yahoo OAuth token record."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List

logger = logging.getLogger(__name__)


class TokenStoreError(RuntimeError):
    """Raised when the token file cannot be read or written."""


class TokenNotFoundError(TokenStoreError):
    """Raised when the token file does not exist."""


class EmptyTokenError(TokenStoreError):
    """Raised instead of writing a token record with empty fields."""


@dataclass
class TokenRecord:
    """Access/refresh token pair as returned by the token endpoint."""

    access_token: str
    refresh_token: str
    expires_in: int
    token_type: str = "bearer"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to serializable dict."""
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "expires_in": self.expires_in,
            "token_type": self.token_type,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TokenRecord":
        """Create a record from a decoded JSON object.

        Missing or null keys become empty values and values of the wrong JSON
        type raise ``TypeError``; completeness is only enforced when
        the record is saved.
        """
        return cls(
            access_token=_string_field(data, "access_token"),
            refresh_token=_string_field(data, "refresh_token"),
            expires_in=_int_field(data, "expires_in"),
            token_type=_string_field(data, "token_type"),
        )

    def missing_fields(self) -> List[str]:
        """Return the names of required fields that are empty or zero."""
        missing = [
            name
            for name in ("access_token", "refresh_token", "token_type")
            if not getattr(self, name)
        ]
        if not self.expires_in:
            missing.append("expires_in")
        return missing

    @property
    def is_complete(self) -> bool:
        return not self.missing_fields()


def _string_field(data: Dict[str, Any], name: str) -> str:
    value = data.get(name)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a string, got {type(value).__name__}")
    return value


def _int_field(data: Dict[str, Any], name: str) -> int:
    value = data.get(name)
    if value is None:
        return 0
    # bool is an int subclass but JSON true/false is not a duration.
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an integer, got {type(value).__name__}")
    return value


class TokenStore:
    """File-based storage for a single token record."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def load(self) -> TokenRecord:
        """Read the record back verbatim; no completeness check is applied."""
        if not self.path.exists():
            raise TokenNotFoundError(f"does the file ({self.path}) exist?")

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise TokenStoreError(f"unable to read token file {self.path}: {exc}") from exc

        if not isinstance(data, dict):
            raise TokenStoreError(f"token file {self.path} does not hold a JSON object")

        try:
            record = TokenRecord.from_dict(data)
        except (TypeError, ValueError) as exc:
            raise TokenStoreError(f"token file {self.path} has an invalid field: {exc}") from exc

        logger.debug("Loaded token from %s", self.path)
        return record

    def save(self, record: TokenRecord) -> None:
        """Overwrite the token file with ``record``.

        Records with an empty access token, refresh token or token type, or a
        zero expiry, are refused before the file is touched.
        """
        missing = record.missing_fields()
        if missing:
            raise EmptyTokenError(
                f"token is empty: not writing to file (missing {', '.join(missing)})"
            )

        payload = json.dumps(record.to_dict(), indent=2)
        logger.info("Writing token to %s", self.path)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(payload, encoding="utf-8")
        except OSError as exc:
            raise TokenStoreError(f"unable to write token file {self.path}: {exc}") from exc
