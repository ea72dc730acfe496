"""User Schemas — Pydantic models with field-level validation for API boundaries.

Invariants:
    - UserCreate.email matches a basic address pattern; normalized later by the service
    - full_name: 2-200 chars, stripped, non-empty
    - document_type and document_number are given together or not at all
    - UserUpdate.status only accepts active/blocked (deletion has its own endpoint)

Design Decisions:
    - Document checksum (CPF) validated in core/documents.py, not here: the same rule
      guards updates and any future import path
"""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.core.domain_types import DocumentType, UserRole

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
PHONE_PATTERN = r"^\+?[0-9][0-9\s\-()]{6,28}$"


class UserCreate(BaseModel):
    """User registration payload."""
    email: str = Field(max_length=255, pattern=EMAIL_PATTERN)
    full_name: str = Field(min_length=2, max_length=200)
    phone: str | None = Field(None, pattern=PHONE_PATTERN)
    document_type: DocumentType | None = None
    document_number: str | None = Field(None, min_length=5, max_length=30)
    role: UserRole = UserRole.CUSTOMER

    @field_validator("full_name")
    @classmethod
    def strip_full_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("full_name must have at least 2 non-blank characters")
        return v

    @model_validator(mode="after")
    def validate_document_pair(self):
        _check_document_pair(self.document_type, self.document_number)
        return self


class UserUpdate(BaseModel):
    """Partial update: only fields present in the payload are applied."""
    email: str | None = Field(None, max_length=255, pattern=EMAIL_PATTERN)
    full_name: str | None = Field(None, min_length=2, max_length=200)
    phone: str | None = Field(None, pattern=PHONE_PATTERN)
    document_type: DocumentType | None = None
    document_number: str | None = Field(None, min_length=5, max_length=30)
    role: UserRole | None = None
    status: Literal["active", "blocked"] | None = None

    @field_validator("full_name")
    @classmethod
    def strip_full_name(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if len(v) < 2:
            raise ValueError("full_name must have at least 2 non-blank characters")
        return v

    @model_validator(mode="after")
    def validate_document_pair(self):
        _check_document_pair(self.document_type, self.document_number)
        return self


class UserResponse(BaseModel):
    """Public-facing user data."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    full_name: str
    phone: str | None
    document_type: str | None
    document_number: str | None
    role: str
    status: str
    created_at: datetime
    updated_at: datetime


class Pagination(BaseModel):
    limit: int
    offset: int
    total: int


class UserListResponse(BaseModel):
    items: list[UserResponse]
    pagination: Pagination


def _check_document_pair(
    document_type: DocumentType | None, document_number: str | None,
) -> None:
    if (document_type is None) != (document_number is None):
        raise ValueError(
            "document_type and document_number must be provided together",
        )
