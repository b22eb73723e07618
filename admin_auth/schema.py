# (c) Copyright Datacraft, 2026
from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class AdminProfile(BaseModel):
    """Public view of an admin. Never carries challenge or key material."""
    id: UUID
    email: str
    name: str
    role: str
    last_login_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


# WebAuthn Schemas


class RegistrationOptionsRequest(BaseModel):
    """Request to start security key registration."""
    email: str | None = None


class RegistrationVerifyRequest(BaseModel):
    """Request to complete security key registration."""
    email: str | None = None
    credential: dict[str, Any] | None = None
    device_name: str | None = Field(default=None, alias="deviceName")

    model_config = ConfigDict(populate_by_name=True)


class RegistrationVerifyResponse(BaseModel):
    """Response after successful registration."""
    verified: bool
    credential_id: UUID | None = None
    device_name: str | None = None
    message: str | None = None

    model_config = ConfigDict(from_attributes=True)


class AuthenticationOptionsRequest(BaseModel):
    """Request to start security key authentication."""
    email: str | None = None


class AuthenticationVerifyRequest(BaseModel):
    """Request to complete security key authentication."""
    email: str | None = None
    credential: dict[str, Any] | None = None


class AuthenticationVerifyResponse(BaseModel):
    """Response after successful authentication."""
    verified: bool
    admin: AdminProfile | None = None

    model_config = ConfigDict(from_attributes=True)


class CredentialInfo(BaseModel):
    """Information about a registered security key."""
    id: UUID
    device_name: str | None = None
    transports: list[str] = []
    device_type: str | None = None
    last_used_at: datetime | None = None
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class CredentialListResponse(BaseModel):
    """Response with list of security keys."""
    credentials: list[CredentialInfo]

    model_config = ConfigDict(from_attributes=True)


class SuccessResponse(BaseModel):
    success: bool
    message: str | None = None


class SessionResponse(BaseModel):
    authenticated: bool
    admin: AdminProfile | None = None
