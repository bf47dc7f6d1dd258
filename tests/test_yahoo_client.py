"""Unit tests for the Yahoo token endpoint client."""

from __future__ import annotations

from urllib.parse import parse_qs

import pytest
import requests

from mocks import MockResponse, MockSession
from oauth_helper.token_store import TokenRecord
from oauth_helper.yahoo_client import (
    DEFAULT_TOKEN_URL,
    TokenExchangeError,
    YahooTokenClient,
    build_authorization_url,
    refresh_token_form,
)

TOKEN_PAYLOAD = {
    "access_token": "abc123",
    "refresh_token": "refresh123",
    "expires_in": 3600,
    "token_type": "bearer",
}


def sent_form(session: MockSession) -> dict:
    body = session.post_calls[0]["kwargs"]["data"]
    return {key: values[0] for key, values in parse_qs(body).items()}


def test_authorization_url_contains_required_parameters() -> None:
    url = build_authorization_url("client")

    assert url.startswith("https://api.login.yahoo.com/oauth2/request_auth?")
    assert "client_id=client" in url
    assert "redirect_uri=oob" in url
    assert "response_type=code" in url


def test_exchange_code_posts_form_with_basic_auth() -> None:
    session = MockSession(post_responses=[MockResponse(TOKEN_PAYLOAD)])
    client = YahooTokenClient(session=session)

    token = client.exchange_code("client", "secret", "authcode")

    assert token == TokenRecord("abc123", "refresh123", 3600, "bearer")
    call = session.post_calls[0]
    assert call["url"] == DEFAULT_TOKEN_URL
    assert call["kwargs"]["auth"] == ("client", "secret")
    assert call["kwargs"]["timeout"] is None
    assert sent_form(session) == {
        "client_id": "client",
        "client_secret": "secret",
        "code": "authcode",
        "grant_type": "authorization_code",
        "redirect_uri": "oob",
    }


def test_exchange_sets_form_headers_and_content_length() -> None:
    session = MockSession(post_responses=[MockResponse(TOKEN_PAYLOAD)])
    client = YahooTokenClient(session=session)

    client.exchange("client", "secret", {"grant_type": "refresh_token", "refresh_token": "r w"})

    kwargs = session.post_calls[0]["kwargs"]
    body = kwargs["data"]
    assert body == "grant_type=refresh_token&refresh_token=r+w"
    assert kwargs["headers"]["Content-Type"] == "application/x-www-form-urlencoded"
    assert kwargs["headers"]["Content-Length"] == str(len(body))


def test_refresh_sends_refresh_grant() -> None:
    session = MockSession(post_responses=[MockResponse(TOKEN_PAYLOAD)])
    client = YahooTokenClient(token_url="https://example.test/token", session=session)

    client.refresh("client", "secret", "stored-refresh")

    assert session.post_calls[0]["url"] == "https://example.test/token"
    form = sent_form(session)
    assert form["grant_type"] == "refresh_token"
    assert form["refresh_token"] == "stored-refresh"
    assert form["redirect_uri"] == "oob"
    assert "code" not in form


def test_refresh_token_form_matches_exchange_fields() -> None:
    assert refresh_token_form("id", "secret", "r") == {
        "client_id": "id",
        "client_secret": "secret",
        "grant_type": "refresh_token",
        "redirect_uri": "oob",
        "refresh_token": "r",
    }


def test_non_success_status_raises_exchange_error() -> None:
    session = MockSession(
        post_responses=[MockResponse({"error": "invalid_grant"}, status_code=400)]
    )
    client = YahooTokenClient(session=session)

    with pytest.raises(TokenExchangeError, match="HTTP 400"):
        client.exchange_code("client", "secret", "stale-code")


def test_network_failure_raises_exchange_error() -> None:
    session = MockSession(post_responses=[requests.ConnectionError("connection refused")])
    client = YahooTokenClient(session=session)

    with pytest.raises(TokenExchangeError, match="unable to reach"):
        client.exchange_code("client", "secret", "code")


def test_malformed_body_raises_exchange_error() -> None:
    session = MockSession(post_responses=[MockResponse("<html>oops</html>")])
    client = YahooTokenClient(session=session)

    with pytest.raises(TokenExchangeError, match="malformed"):
        client.exchange_code("client", "secret", "code")


def test_success_body_missing_fields_yields_incomplete_record() -> None:
    session = MockSession(post_responses=[MockResponse({"access_token": "only-access"})])
    client = YahooTokenClient(session=session)

    token = client.exchange_code("client", "secret", "code")

    assert token.access_token == "only-access"
    assert not token.is_complete


@pytest.mark.parametrize("status_code", [300, 304])
def test_unfollowed_redirect_status_raises_exchange_error(status_code: int) -> None:
    session = MockSession(post_responses=[MockResponse(TOKEN_PAYLOAD, status_code=status_code)])
    client = YahooTokenClient(session=session)

    with pytest.raises(TokenExchangeError, match=f"HTTP {status_code}"):
        client.exchange_code("client", "secret", "code")


def test_non_object_body_raises_exchange_error() -> None:
    session = MockSession(post_responses=[MockResponse([])])
    client = YahooTokenClient(session=session)

    with pytest.raises(TokenExchangeError, match="JSON object"):
        client.exchange_code("client", "secret", "code")


def test_non_numeric_expiry_raises_exchange_error() -> None:
    session = MockSession(post_responses=[MockResponse(dict(TOKEN_PAYLOAD, expires_in="soon"))])
    client = YahooTokenClient(session=session)

    with pytest.raises(TokenExchangeError, match="expires_in"):
        client.exchange_code("client", "secret", "code")


def test_wrongly_typed_token_field_raises_exchange_error() -> None:
    session = MockSession(post_responses=[MockResponse(dict(TOKEN_PAYLOAD, refresh_token=["r"]))])
    client = YahooTokenClient(session=session)

    with pytest.raises(TokenExchangeError, match="refresh_token"):
        client.refresh("client", "secret", "stored-refresh")


def test_close_releases_own_session(monkeypatch: pytest.MonkeyPatch) -> None:
    client = YahooTokenClient()
    closed = []
    monkeypatch.setattr(client.session, "close", lambda: closed.append(True))

    with client:
        pass

    assert closed == [True]


def test_close_leaves_injected_session_open() -> None:
    session = MockSession()

    with YahooTokenClient(session=session):
        pass

    assert session.closed is False
