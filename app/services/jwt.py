"""JWT Token Service.

Principals are issued by an external identity provider; this service only
mints and verifies tokens whose ``sub`` claim is the principal id.
"""

from datetime import datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from app.config import get_settings


class JWTService:
    """Handles JWT token creation and validation."""

    def __init__(self) -> None:
        settings = get_settings()
        self.secret_key = settings.JWT_SECRET_KEY
        self.algorithm = settings.JWT_ALGORITHM
        self.expire_minutes = settings.JWT_EXPIRE_MINUTES

    def create_token(self, principal_id: str, expire_minutes: int | None = None, **claims: Any) -> str:
        """Create a JWT token for the given principal. Extra claims are copied into the payload."""
        expire = datetime.utcnow() + timedelta(minutes=expire_minutes or self.expire_minutes)
        payload = {**claims, "sub": str(principal_id), "exp": expire}
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def decode_token(self, token: str) -> dict[str, Any] | None:
        """Decode and validate a JWT token. Returns None if invalid."""
        try:
            return jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError:
            return None

    def principal_from_token(self, token: str) -> str | None:
        """Return the principal id carried by a valid token, else None."""
        payload = self.decode_token(token)
        # Purpose-bound tokens (signed blob links) never authenticate a caller
        if not payload or not payload.get("sub") or payload.get("purpose"):
            return None
        return str(payload["sub"])


_jwt_service: JWTService | None = None


def get_jwt_service() -> JWTService:
    """Get singleton JWT service instance."""
    global _jwt_service
    if _jwt_service is None:
        _jwt_service = JWTService()
    return _jwt_service
