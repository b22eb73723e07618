# (c) Copyright Datacraft, 2026
"""ORM models for admins, their WebAuthn credentials and sessions."""
import uuid
from datetime import datetime
from typing import List
from uuid import UUID

from sqlalchemy import (
	String, ForeignKey, Index, CheckConstraint,
	Boolean, BigInteger, LargeBinary, JSON, Uuid
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, UTCDateTime, utc_now


class Admin(Base):
	"""Admin account. Holds at most one in-flight ceremony challenge."""

	__tablename__ = "admins"

	id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
	email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)
	name: Mapped[str] = mapped_column(String(100), nullable=False)
	role: Mapped[str] = mapped_column(String(20), default="admin")
	is_active: Mapped[bool] = mapped_column(Boolean, default=True)
	last_login_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

	current_challenge: Mapped[str | None] = mapped_column(String(255), nullable=True)
	challenge_expires_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

	created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utc_now)
	updated_at: Mapped[datetime] = mapped_column(
		UTCDateTime, default=utc_now, onupdate=utc_now
	)

	# Relationships
	credentials: Mapped[List["WebAuthnCredential"]] = relationship(
		"WebAuthnCredential", back_populates="admin", cascade="all, delete-orphan"
	)
	sessions: Mapped[List["AdminSession"]] = relationship(
		"AdminSession", back_populates="admin", cascade="all, delete-orphan"
	)

	__table_args__ = (
		Index("idx_admin_challenge_expiry", "challenge_expires_at"),
	)

	def __repr__(self):
		return f"Admin({self.email})"


class WebAuthnCredential(Base):
	"""Public-key credential registered by an admin's authenticator."""

	__tablename__ = "webauthn_credentials"

	id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
	admin_id: Mapped[UUID] = mapped_column(
		ForeignKey("admins.id", ondelete="CASCADE"),
		nullable=False,
	)
	credential_id: Mapped[str] = mapped_column(String(1024), nullable=False, unique=True)
	public_key: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
	counter: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
	device_name: Mapped[str] = mapped_column(String(64), default="Security Key")
	transports: Mapped[list[str]] = mapped_column(JSON, default=list)
	device_type: Mapped[str | None] = mapped_column(String(32), nullable=True)
	backed_up: Mapped[bool] = mapped_column(Boolean, default=False)
	aaguid: Mapped[str | None] = mapped_column(String(36), nullable=True)
	last_used_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
	created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utc_now)

	admin: Mapped["Admin"] = relationship("Admin", back_populates="credentials")

	__table_args__ = (
		Index("idx_webauthn_credential_admin", "admin_id"),
		CheckConstraint("counter >= 0", name="ck_webauthn_counter_positive"),
	)


class AdminSession(Base):
	"""Server-side session. The primary key is the SHA-256 of the token."""

	__tablename__ = "admin_sessions"

	id: Mapped[str] = mapped_column(String(64), primary_key=True)
	admin_id: Mapped[UUID] = mapped_column(
		ForeignKey("admins.id", ondelete="CASCADE"),
		nullable=False,
	)
	created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utc_now)
	expires_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
	last_seen_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

	admin: Mapped["Admin"] = relationship("Admin", back_populates="sessions")

	__table_args__ = (
		Index("idx_admin_session_admin", "admin_id"),
		Index("idx_admin_session_expiry", "expires_at"),
	)
