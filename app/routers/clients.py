"""Client API endpoints: records, search, archiving and per-client sessions."""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import CurrentPrincipal, get_current_principal, get_owned_client
from app.errors import ClientHasActiveSessionsError
from app.models.client import Client, ClientStatus
from app.schemas.client import (
    ClientCreate,
    ClientDetailResponse,
    ClientListResponse,
    ClientResponse,
    ClientUpdate,
)
from app.schemas.session import SessionListResponse, SessionResponse
from app.services.client import get_client_service

router = APIRouter(prefix="/api/v1/clients", tags=["Clients"])


@router.get("/", response_model=ClientListResponse)
def list_clients(
    search: str | None = None,
    status: ClientStatus | None = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    principal: CurrentPrincipal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> ClientListResponse:
    """List the caller's clients, newest first. Search matches name, email or phone."""
    clients, total = get_client_service().list_clients(
        db, principal.principal_id, search=search, status=status, limit=limit, offset=offset
    )
    return ClientListResponse(
        items=[ClientResponse.model_validate(c) for c in clients],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.post("/", response_model=ClientResponse, status_code=201)
def create_client(
    payload: ClientCreate,
    principal: CurrentPrincipal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> ClientResponse:
    """Create a new client."""
    client = get_client_service().create_client(db, principal.principal_id, **payload.model_dump())
    return ClientResponse.model_validate(client)


@router.get("/{client_id}", response_model=ClientDetailResponse)
def get_client(
    client: Client = Depends(get_owned_client),
    db: Session = Depends(get_db),
) -> ClientDetailResponse:
    """Get a single client with its session count."""
    return ClientDetailResponse(
        **ClientResponse.model_validate(client).model_dump(),
        session_count=get_client_service().count_sessions(db, client),
    )


@router.patch("/{client_id}", response_model=ClientResponse)
def update_client(
    payload: ClientUpdate,
    client: Client = Depends(get_owned_client),
    db: Session = Depends(get_db),
) -> ClientResponse:
    """Update client fields; update_last_contact stamps the last contact date."""
    updates = payload.model_dump(exclude_unset=True)
    touch = updates.pop("update_last_contact", False)
    if not updates and not touch:
        raise HTTPException(status_code=400, detail="No fields to update")
    client = get_client_service().update_client(db, client, updates, touch_last_contact=touch)
    return ClientResponse.model_validate(client)


@router.delete("/{client_id}", response_model=ClientResponse)
def archive_client(
    client: Client = Depends(get_owned_client),
    db: Session = Depends(get_db),
) -> ClientResponse:
    """Archive a client. Clients with an active session cannot be archived."""
    try:
        client = get_client_service().archive_client(db, client)
    except ClientHasActiveSessionsError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None
    return ClientResponse.model_validate(client)


@router.get("/{client_id}/sessions", response_model=SessionListResponse)
def list_client_sessions(
    client: Client = Depends(get_owned_client),
    db: Session = Depends(get_db),
) -> SessionListResponse:
    """List the sessions recorded for a client, newest first."""
    sessions = get_client_service().get_client_sessions(db, client)
    return SessionListResponse(
        items=[SessionResponse.model_validate(s) for s in sessions],
        total=len(sessions),
    )
