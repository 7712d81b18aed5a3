"""Storefront error taxonomy.

Services raise these; the application maps each one to an HTTP status and a
``{"error": message}`` body, so internal details never reach the client.
"""


class StorefrontError(Exception):
    """Base class for all storefront errors."""

    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
        self.message = message


class ValidationError(StorefrontError):
    """Bad input shape or values."""

    status_code = 400


class AuthenticationError(StorefrontError):
    """Missing or invalid credentials."""

    status_code = 401


class NotFoundError(StorefrontError):
    """No entity exists at the requested id."""

    status_code = 404


class ConflictError(StorefrontError):
    """A uniqueness constraint was violated."""

    status_code = 409


class InfrastructureError(StorefrontError):
    """The store is unavailable or an operation on it failed."""

    status_code = 500
