"""Authentication services."""

from haven_auth.services.jwt_service import JWTService

__all__ = ["JWTService"]
