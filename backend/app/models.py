import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import ConfigDict, EmailStr, field_validator
from pydantic import Field as SchemaField
from sqlalchemy import JSON, DateTime
from sqlmodel import Field, Relationship, SQLModel

from app.design.catalog import CamelModel, MaterialSelection
from app.design.lifecycle import INITIAL_STATUS, DesignStatus


def get_datetime_utc() -> datetime:
    return datetime.now(timezone.utc)


def normalize_email(value: str) -> str:
    return value.strip().lower()


# Shared properties
class UserBase(SQLModel):
    email: EmailStr = Field(unique=True, index=True, max_length=255)


# Login checks the password exactly as typed
class UserLogin(SQLModel):
    email: EmailStr = Field(max_length=255)
    password: str = Field(min_length=1, max_length=128)

    @field_validator("email", mode="before")
    @classmethod
    def _canonical_email(cls, value: object) -> object:
        return normalize_email(value) if isinstance(value, str) else value


class UserRegister(UserLogin):
    password: str = Field(min_length=8, max_length=128)

    @field_validator("password", mode="before")
    @classmethod
    def _strip_password(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value


# Database model, database table inferred from class name
class User(UserBase, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    hashed_password: str
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    designs: list["Design"] = Relationship(back_populates="owner", cascade_delete=True)


# Properties to return via API, id is always required
class UserPublic(UserBase):
    id: uuid.UUID
    created_at: datetime | None = None


# Generic message
class Message(SQLModel):
    message: str


# JSON payload containing access token
class Token(SQLModel):
    access_token: str
    token_type: str = "bearer"


# Contents of JWT token
class TokenPayload(SQLModel):
    sub: str | None = None


class Design(SQLModel, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str = Field(max_length=255)
    # Normalized selections keyed by material key, camelCase inner fields
    selections: dict = Field(default_factory=dict, sa_type=JSON)
    status: str = Field(default=INITIAL_STATUS.value, max_length=20, index=True)
    rejection_reason: str | None = Field(default=None)
    # Bumped on every write; status transitions compare-and-swap on it
    version: int = Field(default=1, nullable=False)
    created_at: datetime = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    updated_at: datetime = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    owner_id: uuid.UUID = Field(
        foreign_key="user.id", nullable=False, ondelete="CASCADE", index=True
    )
    owner: User | None = Relationship(back_populates="designs")


# API schemas for designs use camelCase on the wire
class DesignUpsert(CamelModel):
    name: str | None = SchemaField(default=None, max_length=255)
    # Left untyped so malformed entries reach the selection validator
    selections: Any = SchemaField(default_factory=dict)


class DesignReject(CamelModel):
    reason: str | None = None


class DesignPublic(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    selections: dict[str, MaterialSelection]
    status: DesignStatus
    rejection_reason: str | None = None
    created_at: datetime
    updated_at: datetime


class DesignsPublic(CamelModel):
    data: list[DesignPublic]
    count: int


class SubmissionPublic(DesignPublic):
    user_id: uuid.UUID
    user_email: str


class SubmissionsPublic(CamelModel):
    data: list[SubmissionPublic]
    count: int
