"""Client service: client records and their sessions, scoped to the owning principal."""

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.errors import ClientHasActiveSessionsError
from app.models.client import Client, ClientStatus
from app.models.session import RecordingSession, SessionStatus

logger = logging.getLogger("session_scribe")

UPDATABLE_FIELDS = {
    "name",
    "age",
    "phone",
    "email",
    "address",
    "date_of_birth",
    "emergency_contact",
    "notes",
    "tags",
    "status",
}
REQUIRED_FIELDS = {"name", "tags", "status"}


class ClientService:
    """Handles client creation, search, update and archiving."""

    def create_client(self, db: Session, owner_id: str, name: str, **fields: Any) -> Client:
        """Create a client. The creation time counts as the first contact."""
        client = Client(
            owner_id=owner_id,
            name=name,
            last_contact_date=datetime.utcnow(),
            **{k: v for k, v in fields.items() if k in UPDATABLE_FIELDS and k != "status"},
        )
        if client.tags is None:
            client.tags = []
        db.add(client)
        db.commit()
        db.refresh(client)
        logger.info("Created client %s for %s", client.id, owner_id)
        return client

    def list_clients(
        self,
        db: Session,
        owner_id: str,
        search: str | None = None,
        status: ClientStatus | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Client], int]:
        """Return one page of the owner's clients, newest first, and the total match count."""
        query = db.query(Client).filter(Client.owner_id == owner_id)
        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(Client.name.ilike(pattern), Client.email.ilike(pattern), Client.phone.ilike(pattern))
            )
        if status is not None:
            query = query.filter(Client.status == status)
        total = query.count()
        clients = query.order_by(Client.created_at.desc()).offset(offset).limit(limit).all()
        return clients, total

    def get_client(self, db: Session, client_id: str, owner_id: str) -> Client | None:
        """Get a single client by ID, scoped to owner."""
        return db.query(Client).filter(Client.id == client_id, Client.owner_id == owner_id).first()

    def update_client(
        self, db: Session, client: Client, updates: dict[str, Any], touch_last_contact: bool = False
    ) -> Client:
        for field, value in updates.items():
            if field not in UPDATABLE_FIELDS or (value is None and field in REQUIRED_FIELDS):
                continue
            setattr(client, field, value)
        if touch_last_contact:
            client.last_contact_date = datetime.utcnow()
        db.commit()
        db.refresh(client)
        return client

    def touch_last_contact(self, db: Session, client: Client) -> None:
        client.last_contact_date = datetime.utcnow()
        db.commit()

    def archive_client(self, db: Session, client: Client) -> Client:
        """Soft delete. Raises ClientHasActiveSessionsError while a session is active."""
        active = (
            db.query(RecordingSession.id)
            .filter(RecordingSession.client_id == client.id, RecordingSession.status == SessionStatus.ACTIVE)
            .first()
        )
        if active:
            raise ClientHasActiveSessionsError("Cannot archive client with active sessions")
        client.status = ClientStatus.ARCHIVED
        db.commit()
        db.refresh(client)
        logger.info("Archived client %s", client.id)
        return client

    def get_client_sessions(self, db: Session, client: Client) -> list[RecordingSession]:
        """Sessions linked to the client, newest first."""
        return (
            db.query(RecordingSession)
            .filter(RecordingSession.client_id == client.id, RecordingSession.owner_id == client.owner_id)
            .order_by(RecordingSession.created_at.desc())
            .all()
        )

    def count_sessions(self, db: Session, client: Client) -> int:
        return db.query(RecordingSession).filter(RecordingSession.client_id == client.id).count()


_client_service: ClientService | None = None


def get_client_service() -> ClientService:
    """Get singleton client service instance."""
    global _client_service
    if _client_service is None:
        _client_service = ClientService()
    return _client_service
