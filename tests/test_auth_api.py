"""Tests for the OAuth callback, session and sign-out endpoints."""

from authlib.integrations.starlette_client import OAuthError

from app.api.v1 import auth as auth_api
from app.core.security import decode_session_token
from app.schemas.user import OAuthProfile, OAuthTokens

EMAIL = "reader@example.com"


class FakeOAuthClient:
    def __init__(self, error: OAuthError | None = None) -> None:
        self.error = error

    async def authorize_access_token(self, request):
        if self.error is not None:
            raise self.error
        return {"access_token": "provider-token", "token_type": "bearer"}


def _install_provider(monkeypatch, account_ids: dict[str, str], error: OAuthError | None = None):
    monkeypatch.setattr(auth_api, "get_oauth_client", lambda provider: FakeOAuthClient(error))

    async def fake_profile(provider, token):
        return OAuthProfile(
            provider=provider,
            provider_account_id=account_ids[provider],
            email=EMAIL,
            name="Reader",
            tokens=OAuthTokens(access_token=token["access_token"]),
        )

    monkeypatch.setattr(auth_api, "fetch_oauth_profile", fake_profile)


def _session_token(response) -> str | None:
    for header in response.headers.get_list("set-cookie"):
        if header.startswith("newsdesk_session="):
            return header.split(";", 1)[0].split("=", 1)[1]
    return None


async def test_session_is_empty_when_signed_out(client):
    response = await client.get("/api/v1/auth/session")

    assert response.status_code == 200
    assert response.json() == {}


async def test_session_exposes_user(make_client):
    async with make_client({"sub": "abc", "email": EMAIL, "name": "Reader"}) as ac:
        response = await ac.get("/api/v1/auth/session")

    body = response.json()
    assert body["user"] == {"id": "abc", "name": "Reader", "email": EMAIL, "image": None}
    assert "expires" in body
    assert "claims" not in body


async def test_signout_clears_cookie(make_client):
    async with make_client() as ac:
        response = await ac.post("/api/v1/auth/signout")

    assert response.status_code == 200
    assert 'newsdesk_session=""' in response.headers["set-cookie"]


async def test_unknown_provider(client):
    response = await client.get("/api/v1/auth/twitter")

    assert response.status_code == 404


async def test_callback_signs_in_new_user(client, monkeypatch):
    _install_provider(monkeypatch, {"github": "1001"})

    response = await client.get("/api/v1/auth/github/callback")

    assert response.status_code == 302
    assert response.headers["location"] == "/?status=login_success&provider=github"
    token = _session_token(response)
    assert token is not None
    claims = decode_session_token(token)
    assert claims["email"] == EMAIL
    assert claims["sub"] == claims["userId"]


async def test_callback_rejects_email_bound_to_other_provider(client, monkeypatch):
    _install_provider(monkeypatch, {"github": "1001", "google": "g-77"})

    first = await client.get("/api/v1/auth/github/callback")
    second = await client.get("/api/v1/auth/google/callback")

    assert first.status_code == 302
    assert second.status_code == 302
    assert second.headers["location"] == "/auth/error?error=duplicate_email&provider=google"
    assert _session_token(second) is None


async def test_callback_returning_user_keeps_id(client, monkeypatch):
    _install_provider(monkeypatch, {"github": "1001"})

    first = await client.get("/api/v1/auth/github/callback")
    second = await client.get("/api/v1/auth/github/callback")

    first_claims = decode_session_token(_session_token(first))
    second_claims = decode_session_token(_session_token(second))
    assert first_claims["sub"] == second_claims["sub"]


async def test_callback_token_exchange_failure(client, monkeypatch):
    _install_provider(monkeypatch, {"github": "1001"}, error=OAuthError(error="access_denied"))

    response = await client.get("/api/v1/auth/github/callback")

    assert response.status_code == 302
    assert response.headers["location"] == "/auth/error?error=OAuthCallback"
