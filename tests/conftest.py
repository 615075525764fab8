"""
Shared pytest fixtures and configuration for all tests.
"""

import asyncio
from collections.abc import Generator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from artgallery.api.app import create_app
from artgallery.api.dependencies import GalleryServices, build_services
from artgallery.auth.passwords import hash_password
from artgallery.config import Settings

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "correct-horse-battery"
JWT_SECRET = "test-signing-secret"

# Low iteration count keeps login tests fast
ADMIN_PASSWORD_HASH = hash_password(ADMIN_PASSWORD, iterations=1_000)

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings pointing at a throwaway SQLite database and upload directory."""
    return Settings(
        _env_file=None,
        admin_email=ADMIN_EMAIL,
        admin_password_hash=ADMIN_PASSWORD_HASH,
        jwt_secret=JWT_SECRET,
        database_url=f"sqlite:///{tmp_path / 'gallery.db'}",
        upload_dir=str(tmp_path / "uploads"),
        storage_backend="local",
    )


@pytest.fixture
def services(settings: Settings) -> Generator[GalleryServices, None, None]:
    services = build_services(settings)
    assert services.database is not None
    asyncio.run(services.database.create_schema())
    yield services
    asyncio.run(services.database.dispose())


@pytest.fixture
def client(services: GalleryServices) -> TestClient:
    app = create_app(services.settings, services)
    return TestClient(app)


@pytest.fixture
def admin_token(client: TestClient) -> str:
    response = client.post(
        "/admin/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD}
    )
    assert response.status_code == 200
    return response.json()["token"]


@pytest.fixture
def auth_headers(admin_token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {admin_token}"}
