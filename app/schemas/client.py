"""Pydantic schemas for client endpoints."""

from datetime import date, datetime

from pydantic import BaseModel, Field

from app.models.client import ClientStatus


class ClientCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    age: str | None = Field(default=None, max_length=10)
    phone: str | None = Field(default=None, max_length=50)
    email: str | None = Field(default=None, max_length=255)
    address: str | None = None
    date_of_birth: date | None = None
    emergency_contact: str | None = None
    notes: str | None = None
    tags: list[str] = []


class ClientUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    age: str | None = Field(default=None, max_length=10)
    phone: str | None = Field(default=None, max_length=50)
    email: str | None = Field(default=None, max_length=255)
    address: str | None = None
    date_of_birth: date | None = None
    emergency_contact: str | None = None
    notes: str | None = None
    tags: list[str] | None = None
    status: ClientStatus | None = None
    update_last_contact: bool = False


class ClientResponse(BaseModel):
    id: str
    owner_id: str
    name: str
    age: str | None
    phone: str | None
    email: str | None
    address: str | None
    date_of_birth: date | None
    emergency_contact: str | None
    notes: str | None
    tags: list[str]
    status: ClientStatus
    last_contact_date: datetime | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ClientDetailResponse(ClientResponse):
    session_count: int = 0


class ClientListResponse(BaseModel):
    items: list[ClientResponse]
    total: int
    limit: int
    offset: int
