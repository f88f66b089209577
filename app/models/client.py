"""Client model: the person a practitioner's sessions are about."""

import enum
import uuid
from datetime import datetime

from sqlalchemy import JSON, Column, Date, DateTime, Enum, String, Text

from app.database import Base


class ClientStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    ARCHIVED = "archived"


class Client(Base):
    """A client record owned by a single principal. Archived rather than deleted."""

    __tablename__ = "client"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    owner_id = Column(String(128), nullable=False, index=True)
    name = Column(String(255), nullable=False, index=True)
    age = Column(String(10), nullable=True)
    phone = Column(String(50), nullable=True)
    email = Column(String(255), nullable=True)
    address = Column(Text, nullable=True)
    date_of_birth = Column(Date, nullable=True)
    emergency_contact = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    status = Column(
        Enum(ClientStatus, native_enum=False, length=20), nullable=False, default=ClientStatus.ACTIVE, index=True
    )
    last_contact_date = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
