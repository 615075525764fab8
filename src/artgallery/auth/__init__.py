"""Admin authentication: credential issuing and verification."""

from .credentials import (
    ADMIN_ROLE,
    AdminAuthConfig,
    Credential,
    CredentialIssuer,
    CredentialVerifier,
    Identity,
)
from .passwords import hash_password, verify_password

__all__ = [
    "ADMIN_ROLE",
    "AdminAuthConfig",
    "Credential",
    "CredentialIssuer",
    "CredentialVerifier",
    "Identity",
    "hash_password",
    "verify_password",
]
