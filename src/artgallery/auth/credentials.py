"""Admin credential issuing and verification with self-signed JWTs."""

from __future__ import annotations

import secrets
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any, NotRequired, TypedDict

import jwt
from jwt.exceptions import InvalidTokenError

from ..exceptions import (
    ConfigurationError,
    Forbidden,
    InvalidCredentials,
    InvalidToken,
    MissingToken,
)
from ..logging import get_logger
from .passwords import hash_password, is_password_hash, verify_password

if TYPE_CHECKING:
    from ..config import Settings

logger = get_logger(__name__)

ADMIN_ROLE = "admin"
BEARER_PREFIX = "Bearer "

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(UTC)


class Identity(TypedDict):
    """Identity decoded from a verified credential."""

    role: str
    email: str
    issued_at: datetime
    expires_at: datetime
    claims: NotRequired[dict[str, Any]]


@dataclass(frozen=True)
class Credential:
    """A signed, time-bounded admin token."""

    token: str
    role: str
    email: str
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class AdminAuthConfig:
    """Static admin identity and signing parameters.

    ``password_hash`` always holds a pbkdf2 hash; plaintext passwords from the
    environment are hashed once in :meth:`from_settings`.
    """

    email: str | None
    password_hash: str | None
    secret: str | None
    algorithm: str = "HS256"
    issuer: str = "artgallery"
    audience: str = "artgallery-admin"
    token_ttl: timedelta = timedelta(days=7)

    @property
    def is_complete(self) -> bool:
        return bool(self.email and self.password_hash and self.secret)

    @classmethod
    def from_settings(cls, settings: Settings) -> AdminAuthConfig:
        password_hash = settings.admin_password_hash
        if not password_hash and settings.admin_password:
            if is_password_hash(settings.admin_password):
                password_hash = settings.admin_password
            else:
                password_hash = hash_password(settings.admin_password)

        return cls(
            email=settings.admin_email,
            password_hash=password_hash,
            secret=settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
            token_ttl=timedelta(days=settings.token_expiry_days),
        )


class CredentialIssuer:
    """Validates the admin login and mints signed credentials."""

    def __init__(self, config: AdminAuthConfig, clock: Clock = utcnow):
        self.config = config
        self._clock = clock

    def issue(self, email: str | None, password: str | None) -> Credential:
        """Check the submitted login against the configured admin and sign a token.

        Raises:
            ConfigurationError: If email, password or signing secret is not configured
            InvalidCredentials: If the login does not match; no hint on which field
        """
        config = self.config
        if not config.is_complete:
            logger.error("Admin login attempted without complete auth configuration")
            raise ConfigurationError()

        # Evaluate both comparisons so timing does not reveal which field failed
        email_ok = _constant_time_equals(email or "", config.email or "")
        password_ok = verify_password(password or "", config.password_hash or "")
        if not (email_ok and password_ok):
            logger.warning("Admin login rejected", email=email)
            raise InvalidCredentials()

        return self.mint(config.email or "")

    def mint(self, email: str) -> Credential:
        """Sign an admin credential for ``email`` without checking a password."""
        config = self.config
        if not config.secret:
            raise ConfigurationError()

        issued_at = self._clock()
        expires_at = issued_at + config.token_ttl
        payload = {
            "iss": config.issuer,
            "aud": config.audience,
            "sub": email,
            "email": email,
            "role": ADMIN_ROLE,
            "iat": int(issued_at.timestamp()),
            "nbf": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp()),
        }
        token = jwt.encode(payload, config.secret, algorithm=config.algorithm)

        logger.info("Admin credential issued", email=email, expires_at=expires_at.isoformat())
        return Credential(
            token=token,
            role=ADMIN_ROLE,
            email=email,
            issued_at=issued_at,
            expires_at=expires_at,
        )


class CredentialVerifier:
    """Request gate validating the bearer credential and its role claim."""

    def __init__(self, config: AdminAuthConfig, clock: Clock = utcnow):
        self.config = config
        self._clock = clock

    @staticmethod
    def extract_token(authorization: str | None) -> str:
        if not authorization:
            raise MissingToken()
        token = authorization
        if token.startswith(BEARER_PREFIX):
            token = token[len(BEARER_PREFIX) :]
        token = token.strip()
        if not token:
            raise MissingToken()
        return token

    def verify(self, authorization: str | None) -> Identity:
        """Verify a raw ``Authorization`` header value.

        Raises:
            MissingToken: If no bearer token is present
            InvalidToken: If the signature, claims or expiry do not validate
            Forbidden: If the token is valid but not an admin credential
        """
        token = self.extract_token(authorization)
        config = self.config
        if not config.secret:
            logger.warning("Token presented but no signing secret is configured")
            raise InvalidToken()

        try:
            # Expiry is checked below against the injected clock
            payload = jwt.decode(
                token,
                config.secret,
                algorithms=[config.algorithm],
                issuer=config.issuer,
                audience=config.audience,
                options={
                    "verify_exp": False,
                    "verify_nbf": False,
                    "verify_iat": False,
                    "require": ["exp", "iat", "sub"],
                },
            )
        except InvalidTokenError as e:
            logger.warning("JWT token validation failed", error=str(e))
            raise InvalidToken() from e

        try:
            expires_at = datetime.fromtimestamp(payload["exp"], UTC)
            issued_at = datetime.fromtimestamp(payload["iat"], UTC)
        except (TypeError, ValueError, OverflowError, OSError) as e:
            logger.warning("JWT token has malformed timestamps", error=str(e))
            raise InvalidToken() from e

        now = self._clock()
        if expires_at <= now:
            logger.info("Expired admin token rejected", email=payload.get("email"))
            raise InvalidToken("Token expired")

        role = payload.get("role")
        if role != ADMIN_ROLE:
            logger.warning("Token without admin role rejected", role=role)
            raise Forbidden()

        return Identity(
            role=role,
            email=payload.get("email") or payload["sub"],
            issued_at=issued_at,
            expires_at=expires_at,
            claims=payload,
        )


def _constant_time_equals(left: str, right: str) -> bool:
    return secrets.compare_digest(left.encode("utf-8"), right.encode("utf-8"))
