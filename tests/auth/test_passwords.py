"""Tests for pbkdf2 password hashing."""

from artgallery.auth.passwords import hash_password, is_password_hash, verify_password


def test_hash_format():
    encoded = hash_password("secret", salt="abc", iterations=1000)

    algorithm, iterations, salt, digest = encoded.split("$")
    assert algorithm == "pbkdf2_sha256"
    assert iterations == "1000"
    assert salt == "abc"
    assert len(digest) == 64


def test_verify_roundtrip():
    encoded = hash_password("secret", iterations=1000)

    assert verify_password("secret", encoded) is True
    assert verify_password("Secret", encoded) is False


def test_random_salt_per_hash():
    assert hash_password("secret", iterations=1000) != hash_password("secret", iterations=1000)


def test_verify_rejects_malformed_hash():
    assert verify_password("secret", "not-a-hash") is False
    assert verify_password("secret", "md5$1000$salt$abcd") is False
    assert verify_password("secret", "pbkdf2_sha256$many$salt$abcd") is False


def test_is_password_hash():
    assert is_password_hash(hash_password("x", iterations=1000))
    assert not is_password_hash("plain-password")
