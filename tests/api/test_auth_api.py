"""Tests for admin login and the bearer gate over HTTP."""

from datetime import timedelta
from unittest.mock import AsyncMock

import jwt
import pytest
from fastapi.testclient import TestClient

from artgallery.api.app import create_app
from artgallery.api.dependencies import build_services
from artgallery.auth.credentials import AdminAuthConfig, CredentialIssuer, utcnow
from conftest import ADMIN_EMAIL, ADMIN_PASSWORD, JWT_SECRET, PNG_BYTES


def test_login_success(client):
    response = client.post(
        "/admin/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD}
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    claims = jwt.decode(
        body["token"], JWT_SECRET, algorithms=["HS256"], audience="artgallery-admin"
    )
    assert claims["role"] == "admin"


@pytest.mark.parametrize(
    "payload",
    [
        {"email": ADMIN_EMAIL, "password": "wrong"},
        {"email": "other@example.com", "password": ADMIN_PASSWORD},
        {},
    ],
)
def test_login_rejected(client, payload):
    response = client.post("/admin/login", json=payload)

    assert response.status_code == 401
    assert response.json() == {"success": False, "message": "Invalid credentials"}


def test_login_without_secret(settings):
    unconfigured = settings.model_copy(update={"jwt_secret": None})
    services = build_services(unconfigured, repository=AsyncMock(), blob_store=AsyncMock())
    client = TestClient(create_app(unconfigured, services))

    response = client.post(
        "/admin/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD}
    )

    assert response.status_code == 500
    assert response.json() == {"success": False, "message": "Admin auth not configured"}


class TestBearerGate:
    @pytest.fixture
    def mocked(self, settings):
        repository = AsyncMock()
        blob_store = AsyncMock()
        blob_store.name = "local"
        services = build_services(settings, repository=repository, blob_store=blob_store)
        return TestClient(create_app(settings, services)), repository, blob_store

    def test_upload_without_token_touches_nothing(self, mocked):
        client, repository, blob_store = mocked

        response = client.post(
            "/admin/artworks",
            data={"title": "Sunset"},
            files={"image": ("sunset.png", PNG_BYTES, "image/png")},
        )

        assert response.status_code == 401
        assert response.json() == {"detail": "No token provided"}
        assert response.headers["www-authenticate"] == "Bearer"
        blob_store.store.assert_not_called()
        repository.create.assert_not_called()

    def test_invalid_token(self, mocked):
        client, repository, _ = mocked

        response = client.delete(
            "/admin/artworks/00000000-0000-0000-0000-000000000000",
            headers={"Authorization": "Bearer not.a.token"},
        )

        assert response.status_code == 401
        assert response.json() == {"detail": "Invalid token"}
        repository.delete.assert_not_called()

    def test_expired_token(self, mocked, settings):
        client, repository, _ = mocked
        issuer = CredentialIssuer(
            AdminAuthConfig.from_settings(settings),
            clock=lambda: utcnow() - timedelta(days=8),
        )
        token = issuer.mint(ADMIN_EMAIL).token

        response = client.get(
            "/admin/artworks", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 401
        assert response.json() == {"detail": "Token expired"}
        repository.list_all.assert_not_called()

    def test_non_admin_token(self, mocked):
        client, _, blob_store = mocked
        now = int(utcnow().timestamp())
        token = jwt.encode(
            {
                "iss": "artgallery",
                "aud": "artgallery-admin",
                "sub": ADMIN_EMAIL,
                "role": "viewer",
                "iat": now,
                "exp": now + 3600,
            },
            JWT_SECRET,
            algorithm="HS256",
        )

        response = client.post(
            "/admin/artworks",
            headers={"Authorization": f"Bearer {token}"},
            data={"title": "Sunset"},
            files={"image": ("sunset.png", PNG_BYTES, "image/png")},
        )

        assert response.status_code == 401
        assert response.json() == {"detail": "Admin access required"}
        blob_store.store.assert_not_called()

    def test_gallery_is_public(self, mocked):
        client, repository, _ = mocked
        repository.list_public.return_value = []

        response = client.get("/gallery")

        assert response.status_code == 200
        assert response.json() == {"artworks": []}
