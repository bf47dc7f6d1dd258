"""Runtime settings for the OAuth helper, resolved once from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional

ENV_CLIENT_ID = "YAHOO_APP_CLIENT_ID"
ENV_CLIENT_SECRET = "YAHOO_APP_CLIENT_SECRET"
ENV_CLIENT_CODE = "YAHOO_APP_CLIENT_CODE"
ENV_TOKEN_FILE = "YAHOO_APP_TOKEN_FILE"


@dataclass(frozen=True)
class HelperConfig:
    """Container for Yahoo app credentials and the token file location."""

    client_id: str = ""
    client_secret: str = ""
    client_code: str = ""
    token_file: str = ""

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "HelperConfig":
        """Read settings from environment variables; unset ones are empty."""
        env = os.environ if environ is None else environ
        return cls(
            client_id=env.get(ENV_CLIENT_ID, ""),
            client_secret=env.get(ENV_CLIENT_SECRET, ""),
            client_code=env.get(ENV_CLIENT_CODE, ""),
            token_file=env.get(ENV_TOKEN_FILE, ""),
        )

    def with_overrides(self, **values: Optional[str]) -> "HelperConfig":
        """Return a copy where explicitly given values replace the current ones.

        ``None`` means "not passed" and keeps the environment value; an empty
        string passed explicitly still wins.
        """
        changes = {key: value for key, value in values.items() if value is not None}
        return replace(self, **changes)
