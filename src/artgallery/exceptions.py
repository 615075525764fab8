"""Error taxonomy shared by the auth, storage and artwork layers.

Every error carries the HTTP status it maps to, so the API layer can render
any of them from a single exception handler.
"""


class GalleryError(Exception):
    """Base exception for all expected gallery failures."""

    status_code: int = 500

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message()
        super().__init__(self.message)

    @classmethod
    def default_message(cls) -> str:
        return "Internal server error"


class ValidationError(GalleryError):
    """Missing or malformed input the caller can correct."""

    status_code = 400


class AuthError(GalleryError):
    """Base class for credential failures."""

    status_code = 401

    @classmethod
    def default_message(cls) -> str:
        return "Authentication required"


class MissingToken(AuthError):
    @classmethod
    def default_message(cls) -> str:
        return "No token provided"


class InvalidToken(AuthError):
    @classmethod
    def default_message(cls) -> str:
        return "Invalid token"


class Forbidden(AuthError):
    @classmethod
    def default_message(cls) -> str:
        return "Admin access required"


class InvalidCredentials(AuthError):
    """Login rejected; never says which field was wrong."""

    @classmethod
    def default_message(cls) -> str:
        return "Invalid credentials"


class NotFoundError(GalleryError):
    status_code = 404

    @classmethod
    def default_message(cls) -> str:
        return "Not found"


class StorageError(GalleryError):
    """Blob backend failure (transient or permanent)."""

    status_code = 502

    @classmethod
    def default_message(cls) -> str:
        return "Storage operation failed"


class SecurityError(StorageError):
    """Storage key rejected as unsafe."""

    status_code = 400


class PersistenceError(GalleryError):
    """Metadata store failure."""

    status_code = 500

    @classmethod
    def default_message(cls) -> str:
        return "Failed to save artwork"


class ConfigurationError(GalleryError):
    """Required secrets are absent from the deployment configuration."""

    status_code = 500

    @classmethod
    def default_message(cls) -> str:
        return "Admin auth not configured"
