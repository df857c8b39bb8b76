"""JWT token service.

Verifies the bearer tokens presented to the API. Token creation is kept for
the CLI and for tests that need to act as a signed-in user.
"""

from datetime import datetime, timedelta, timezone
from uuid import UUID

import jwt

from haven_auth.exceptions import InvalidTokenError
from haven_auth.schemas import TokenPayload


class JWTService:
    """Service for JWT token creation and verification.

    Examples
    --------
    >>> service = JWTService(secret_key="your-secret-key")
    >>> token = service.create_access_token(user_id, "user@example.com")
    >>> payload = service.verify_token(token)
    >>> print(payload.user_id)
    """

    DEFAULT_ACCESS_EXPIRE_HOURS = 24
    ALGORITHM = "HS256"

    def __init__(
        self,
        secret_key: str,
        access_token_expire_hours: int = DEFAULT_ACCESS_EXPIRE_HOURS,
    ):
        """Initialize the JWT service.

        Parameters
        ----------
        secret_key
            Secret key for signing tokens. Must be kept secure.
        access_token_expire_hours
            Hours until access token expires (default 24)
        """
        if not secret_key:
            msg = "JWT secret key cannot be empty"
            raise ValueError(msg)

        self._secret_key = secret_key
        self._access_expire = timedelta(hours=access_token_expire_hours)

    def create_access_token(
        self,
        user_id: UUID,
        email: str | None = None,
        expires_delta: timedelta | None = None,
    ) -> str:
        """Create a short-lived access token.

        Parameters
        ----------
        user_id
            The user's unique identifier
        email
            The user's email address (optional)
        expires_delta
            Custom expiration time (optional)

        Returns
        -------
        The encoded JWT token string
        """
        now = datetime.now(tz=timezone.utc)
        payload = {
            "sub": str(user_id),
            "type": "access",
            "iat": now,
            "exp": now + (expires_delta or self._access_expire),
        }
        if email:
            payload["email"] = email

        return jwt.encode(payload, self._secret_key, algorithm=self.ALGORITHM)

    def verify_token(self, token: str) -> TokenPayload:
        """Verify and decode a JWT token.

        Parameters
        ----------
        token
            The JWT token string to verify

        Returns
        -------
        TokenPayload containing the decoded data

        Raises
        ------
        InvalidTokenError
            If token is invalid, expired, or malformed
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self.ALGORITHM],
            )

            return TokenPayload(
                user_id=UUID(payload["sub"]),
                email=payload.get("email"),
                exp=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
                token_type=payload.get("type", "access"),
            )

        except jwt.ExpiredSignatureError as e:
            raise InvalidTokenError("Token has expired") from e
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError(f"Invalid token: {e}") from e
        except (KeyError, ValueError) as e:
            raise InvalidTokenError(f"Malformed token payload: {e}") from e
