"""Authentication exceptions.

These exceptions are raised by the haven_auth package and are translated
into 401 responses by the API dependencies.
"""


class AuthError(Exception):
    """Base exception for all authentication errors."""

    def __init__(self, message: str = "Authentication error"):
        self.message = message
        super().__init__(self.message)


class InvalidTokenError(AuthError):
    """Raised when a JWT token is invalid, expired, or malformed."""

    def __init__(self, message: str = "Invalid or expired token"):
        super().__init__(message)
