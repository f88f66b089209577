"""Authentication and ownership dependencies for FastAPI routes."""

from dataclasses import dataclass

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.client import Client
from app.models.session import RecordingSession
from app.services.client import get_client_service
from app.services.jwt import get_jwt_service
from app.services.session import get_session_service

AUTH_COOKIE_NAME = "ss_auth_token"


@dataclass
class CurrentPrincipal:
    """Authenticated caller context."""

    principal_id: str


def get_current_principal(request: Request) -> CurrentPrincipal:
    """Extract and validate the principal from Bearer token or cookie. Raises 401 if invalid."""
    token: str | None = None

    # Check Authorization header first
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        token = auth_header[7:]

    # Fall back to cookie
    if not token:
        token = request.cookies.get(AUTH_COOKIE_NAME)

    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")

    principal_id = get_jwt_service().principal_from_token(token)
    if not principal_id:
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    return CurrentPrincipal(principal_id=principal_id)


def get_owned_session(
    session_id: str,
    principal: CurrentPrincipal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> RecordingSession:
    """Load a session owned by the caller. Missing and foreign sessions both yield 404."""
    session = get_session_service().get_session(db, session_id, principal.principal_id)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


def get_owned_client(
    client_id: str,
    principal: CurrentPrincipal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> Client:
    """Load a client owned by the caller. Missing and foreign clients both yield 404."""
    client = get_client_service().get_client(db, client_id, principal.principal_id)
    if not client:
        raise HTTPException(status_code=404, detail="Client not found")
    return client
