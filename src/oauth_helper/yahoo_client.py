"""Yahoo OAuth2 token endpoint client.

The flow:

- create a Yahoo app to be issued a client id and a client secret;
- open the authorization URL in a browser to obtain a one-time code;
- exchange the code for an access token and a refresh token;
- exchange the refresh token for a new access token once the old one expires.

The client id and secret are sent to the token endpoint as HTTP Basic auth
(``Authorization: Basic <base64 client_id:client_secret>``).
"""

from __future__ import annotations

import logging
from typing import Dict, Mapping, Optional
from urllib.parse import urlencode

import requests

from .token_store import TokenRecord

logger = logging.getLogger(__name__)

CREATE_APP_URL = "https://developer.yahoo.com/apps/create/"
DEFAULT_AUTH_URL = "https://api.login.yahoo.com/oauth2/request_auth"
DEFAULT_TOKEN_URL = "https://api.login.yahoo.com/oauth2/get_token"
# Out-of-band redirect: Yahoo shows the code on a page instead of redirecting.
OOB_REDIRECT_URI = "oob"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


class TokenExchangeError(RuntimeError):
    """Raised when the token endpoint cannot be reached or rejects the request."""


def build_authorization_url(client_id: str, auth_url: str = DEFAULT_AUTH_URL) -> str:
    """Return the URL a user opens in a browser to retrieve a code.

    This step cannot be done programmatically.
    """
    params = {
        "client_id": client_id,
        "redirect_uri": OOB_REDIRECT_URI,
        "response_type": "code",
    }
    return f"{auth_url}?{urlencode(params)}"


def authorization_code_form(client_id: str, client_secret: str, code: str) -> Dict[str, str]:
    """Form values for the initial code exchange."""
    return {
        "client_id": client_id,
        "client_secret": client_secret,
        "code": code,
        "grant_type": "authorization_code",
        "redirect_uri": OOB_REDIRECT_URI,
    }


def refresh_token_form(client_id: str, client_secret: str, refresh_token: str) -> Dict[str, str]:
    """Form values for exchanging a refresh token."""
    return {
        "client_id": client_id,
        "client_secret": client_secret,
        "grant_type": "refresh_token",
        "redirect_uri": OOB_REDIRECT_URI,
        "refresh_token": refresh_token,
    }


class YahooTokenClient:
    """Exchange codes and refresh tokens at the Yahoo token endpoint."""

    def __init__(
        self,
        token_url: str = DEFAULT_TOKEN_URL,
        session: Optional[requests.Session] = None,
        *,
        timeout: Optional[float] = None,
    ) -> None:
        self.token_url = token_url
        self._owns_session = session is None
        self.session = session or requests.Session()
        self.timeout = timeout

    def close(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._owns_session:
            self.session.close()

    def __enter__(self) -> "YahooTokenClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def exchange(
        self,
        client_id: str,
        client_secret: str,
        form: Mapping[str, str],
    ) -> TokenRecord:
        """POST ``form`` to the token endpoint and parse the token response."""
        body = urlencode(sorted(form.items()))
        headers = {
            "Content-Type": FORM_CONTENT_TYPE,
            "Content-Length": str(len(body)),
        }
        logger.debug("Requesting %s grant from %s", form.get("grant_type"), self.token_url)

        try:
            response = self.session.post(
                self.token_url,
                data=body,
                auth=(client_id, client_secret),
                headers=headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.HTTPError as exc:
            error_response = exc.response
            status = error_response.status_code if error_response is not None else "unknown"
            if error_response is not None:
                logger.debug("Token endpoint response body: %s", error_response.text)
            raise TokenExchangeError(f"token endpoint returned HTTP {status}") from exc
        except requests.RequestException as exc:
            raise TokenExchangeError(f"unable to reach token endpoint: {exc}") from exc

        # raise_for_status lets a final 1xx or 3xx through.
        if not 200 <= response.status_code < 300:
            raise TokenExchangeError(f"token endpoint returned HTTP {response.status_code}")

        try:
            payload = response.json()
        except ValueError as exc:
            raise TokenExchangeError("token endpoint returned a malformed JSON body") from exc
        if not isinstance(payload, dict):
            raise TokenExchangeError("token endpoint response is not a JSON object")

        try:
            return TokenRecord.from_dict(payload)
        except (TypeError, ValueError) as exc:
            raise TokenExchangeError(f"token endpoint returned an invalid field: {exc}") from exc

    def exchange_code(self, client_id: str, client_secret: str, code: str) -> TokenRecord:
        """Exchange an authorization code for access and refresh tokens."""
        return self.exchange(
            client_id,
            client_secret,
            authorization_code_form(client_id, client_secret, code),
        )

    def refresh(self, client_id: str, client_secret: str, refresh_token: str) -> TokenRecord:
        """Exchange a refresh token for a new access token."""
        return self.exchange(
            client_id,
            client_secret,
            refresh_token_form(client_id, client_secret, refresh_token),
        )
