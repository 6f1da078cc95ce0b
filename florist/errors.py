from fastapi import status


class FloristError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    headers = None

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(FloristError):
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(FloristError):
    status_code = status.HTTP_404_NOT_FOUND


class AuthenticationError(FloristError):
    status_code = status.HTTP_401_UNAUTHORIZED
    headers = {"WWW-Authenticate": "Bearer"}


class AuthorizationError(FloristError):
    status_code = status.HTTP_403_FORBIDDEN


class StorageError(FloristError):
    """Persistence failure. The message is logged, never shown to clients."""


class TranslationError(FloristError):
    """The translation pipeline itself broke; the record is not created."""


class TranslationDegraded(Exception):
    """Upstream translation failed and the fallback text was used.

    Raised and caught inside the provider adapter only.
    """
