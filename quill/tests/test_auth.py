"""Tests for Clerk session token verification."""

import time

import jwt
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from httpx import ASGITransport, AsyncClient

from quill.auth import AuthError, verify_session_token


@pytest.fixture(scope="module")
def rsa_keys():
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return private_pem, public_pem.decode()


@pytest.fixture
def clerk_settings(mock_settings, rsa_keys):
    _, public_pem = rsa_keys
    # Stored the way it usually arrives from a single-line env var
    mock_settings.clerk_jwt_key = public_pem.replace("\n", "\\n")
    mock_settings.clerk_issuer = "https://clerk.quill.test"
    mock_settings.clerk_authorized_parties = ["http://localhost:3000"]
    return mock_settings


def _token(private_pem, **overrides) -> str:
    now = int(time.time())
    claims = {
        "sub": "user_abc",
        "iss": "https://clerk.quill.test",
        "azp": "http://localhost:3000",
        "iat": now,
        "nbf": now,
        "exp": now + 60,
    }
    claims.update(overrides)
    claims = {k: v for k, v in claims.items() if v is not None}
    return jwt.encode(claims, private_pem, algorithm="RS256")


class TestVerifySessionToken:
    def test_valid_token(self, clerk_settings, rsa_keys):
        assert verify_session_token(_token(rsa_keys[0])) == "user_abc"

    def test_expired(self, clerk_settings, rsa_keys):
        token = _token(rsa_keys[0], exp=int(time.time()) - 120)
        with pytest.raises(AuthError, match="expired"):
            verify_session_token(token)

    def test_wrong_issuer(self, clerk_settings, rsa_keys):
        with pytest.raises(AuthError):
            verify_session_token(_token(rsa_keys[0], iss="https://evil.test"))

    def test_unauthorized_party(self, clerk_settings, rsa_keys):
        with pytest.raises(AuthError, match="Unauthorized party"):
            verify_session_token(_token(rsa_keys[0], azp="https://evil.test"))

    def test_missing_subject(self, clerk_settings, rsa_keys):
        with pytest.raises(AuthError):
            verify_session_token(_token(rsa_keys[0], sub=None))

    def test_wrong_signing_key(self, clerk_settings):
        other = rsa.generate_private_key(public_exponent=65537, key_size=2048)
        other_pem = other.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
        with pytest.raises(AuthError):
            verify_session_token(_token(other_pem))

    def test_hs256_rejected(self, clerk_settings):
        token = jwt.encode(
            {"sub": "user_abc", "exp": int(time.time()) + 60}, "secret", algorithm="HS256"
        )
        with pytest.raises(AuthError):
            verify_session_token(token)

    def test_not_configured(self, mock_settings):
        mock_settings.clerk_jwt_key = ""
        mock_settings.clerk_jwks_url = ""
        with pytest.raises(AuthError, match="not configured"):
            verify_session_token("anything")

    def test_jwks_lookup(self, mock_settings, rsa_keys, mocker):
        _, public_pem = rsa_keys
        signing_key = mocker.Mock(key=serialization.load_pem_public_key(public_pem.encode()))
        client = mocker.Mock()
        client.get_signing_key_from_jwt.return_value = signing_key
        client.uri = mock_settings.clerk_jwks_url
        mocker.patch("quill.auth.jwt.PyJWKClient", return_value=client)

        token = _token(rsa_keys[0])
        assert verify_session_token(token) == "user_abc"
        client.get_signing_key_from_jwt.assert_called_once_with(token)


class TestAuthDependencies:
    async def test_bearer_token_creates_user(self, clerk_settings, rsa_keys, engine):
        from quill.main import app

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.get(
                "/api/users/me", headers={"Authorization": f"Bearer {_token(rsa_keys[0])}"}
            )

        assert response.status_code == 200
        assert response.json()["user"]["clerk_user_id"] == "user_abc"

    async def test_session_cookie_accepted(self, clerk_settings, rsa_keys, engine):
        from quill.main import app

        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
            cookies={"__session": _token(rsa_keys[0])},
        ) as client:
            response = await client.get("/api/users/me")

        assert response.status_code == 200

    async def test_missing_token(self, clerk_settings, engine):
        from quill.main import app

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.get("/api/users/me")

        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Not authenticated"}
        assert response.headers["WWW-Authenticate"] == "Bearer"

    async def test_invalid_token(self, clerk_settings, engine):
        from quill.main import app

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.get(
                "/api/users/me", headers={"Authorization": "Bearer not-a-jwt"}
            )

        assert response.status_code == 401
