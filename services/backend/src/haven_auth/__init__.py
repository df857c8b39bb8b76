"""Haven Auth - JWT verification for API requests.

Users sign up and log in elsewhere; this package only verifies the bearer
tokens they present and exposes the user id carried in the ``sub`` claim.

Usage:
    from haven_auth import JWTService, InvalidTokenError

    payload = JWTService(secret_key).verify_token(token)
"""

from haven_auth.exceptions import AuthError, InvalidTokenError
from haven_auth.schemas import TokenPayload
from haven_auth.services import JWTService

__all__ = [
    "JWTService",
    "TokenPayload",
    "AuthError",
    "InvalidTokenError",
]
