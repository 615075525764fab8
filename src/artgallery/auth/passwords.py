"""Password hashing helpers (pbkdf2_hmac)."""

from __future__ import annotations

import hashlib
import secrets

ALGORITHM = "pbkdf2_sha256"
DEFAULT_ITERATIONS = 200_000


def hash_password(
    password: str, salt: str | None = None, iterations: int = DEFAULT_ITERATIONS
) -> str:
    """Hash a password into the ``pbkdf2_sha256$<iterations>$<salt>$<hex>`` format."""
    salt = salt or secrets.token_hex(16)
    dk = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("utf-8"), iterations)
    return f"{ALGORITHM}${iterations}${salt}${dk.hex()}"


def verify_password(password: str, encoded: str) -> bool:
    """Check a password against an encoded hash in constant time."""
    try:
        algorithm, iterations, salt, expected = encoded.split("$", 3)
        rounds = int(iterations)
    except ValueError:
        return False
    if algorithm != ALGORITHM:
        return False
    candidate = hash_password(password, salt=salt, iterations=rounds)
    return secrets.compare_digest(candidate.rsplit("$", 1)[1], expected)


def is_password_hash(value: str) -> bool:
    return value.startswith(f"{ALGORITHM}$") and value.count("$") == 3
