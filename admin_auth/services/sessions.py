# (c) Copyright Datacraft, 2026
"""Server-side admin sessions."""
import hashlib
import logging
import secrets
from datetime import datetime, timedelta
from typing import Callable
from uuid import UUID

from sqlalchemy import delete
from sqlalchemy.orm import Session

from admin_auth.db.base import utc_now
from admin_auth.db.orm import Admin, AdminSession
from admin_auth.schema import AdminProfile

logger = logging.getLogger(__name__)


def hash_token(token: str) -> str:
	return hashlib.sha256(token.encode()).hexdigest()


class SessionManager:
	"""Binds opaque session tokens to admin ids.

	Tokens are passed explicitly; nothing here depends on a request object.
	Only the SHA-256 of a token is stored.
	"""

	SESSION_EXPIRY_MINUTES = 720

	def __init__(
		self,
		db: Session,
		clock: Callable[[], datetime] = utc_now,
		ttl: timedelta = timedelta(minutes=SESSION_EXPIRY_MINUTES),
	):
		self.db = db
		self.clock = clock
		self.ttl = ttl

	def establish(self, admin_id: UUID, replace: str | None = None) -> str:
		"""Create a session for ``admin_id``.

		``replace`` is the token the request already carried; it is destroyed
		so a request context never holds two sessions. Flushes only, the
		caller commits.

		Returns:
			The new opaque token
		"""
		if replace:
			self._delete(replace)

		token = secrets.token_urlsafe(32)
		now = self.clock()
		self.db.add(AdminSession(
			id=hash_token(token),
			admin_id=admin_id,
			created_at=now,
			expires_at=now + self.ttl,
			last_seen_at=now,
		))
		self.db.flush()
		return token

	def validate(self, token: str | None) -> AdminProfile | None:
		"""Resolve a token to the bound admin's profile.

		Expired sessions, and sessions whose admin is missing or inactive,
		are destroyed as a side effect.

		Returns:
			AdminProfile, or None when the session is invalid
		"""
		if not token:
			return None

		session = self.db.get(AdminSession, hash_token(token))
		if session is None:
			return None

		now = self.clock()
		if session.expires_at <= now:
			self._destroy(session, "expired")
			return None

		admin = self.db.get(Admin, session.admin_id)
		if admin is None or not admin.is_active:
			self._destroy(session, "admin missing or inactive")
			return None

		session.last_seen_at = now
		self.db.commit()
		return AdminProfile.model_validate(admin)

	def destroy(self, token: str | None) -> None:
		"""Delete the session if it exists. Idempotent."""
		if token:
			self._delete(token)
		self.db.commit()

	def purge_expired(self, now: datetime | None = None) -> int:
		result = self.db.execute(
			delete(AdminSession)
			.where(AdminSession.expires_at <= (now or self.clock()))
			.execution_options(synchronize_session=False)
		)
		self.db.flush()
		return result.rowcount

	def _destroy(self, session: AdminSession, reason: str) -> None:
		logger.info(f"Destroying session of admin {session.admin_id}: {reason}")
		self.db.delete(session)
		self.db.commit()

	def _delete(self, token: str) -> None:
		self.db.execute(
			delete(AdminSession)
			.where(AdminSession.id == hash_token(token))
			.execution_options(synchronize_session="fetch")
		)
		self.db.flush()
