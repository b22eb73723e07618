# (c) Copyright Datacraft, 2026
"""Per-admin ceremony challenges with expiry."""
import logging
import secrets
from datetime import datetime, timedelta
from typing import Callable

from sqlalchemy import update
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import set_committed_value
from webauthn.helpers import bytes_to_base64url

from admin_auth.db.base import utc_now
from admin_auth.db.orm import Admin

logger = logging.getLogger(__name__)

CHALLENGE_EXPIRY_MINUTES = 5
CHALLENGE_BYTES = 32


def generate_challenge() -> str:
	"""Fresh random challenge, Base64URL encoded."""
	return bytes_to_base64url(secrets.token_bytes(CHALLENGE_BYTES))


def _store(obj, **values) -> None:
	"""Mirror a bulk UPDATE that matched onto the instance the caller holds."""
	for key, value in values.items():
		set_committed_value(obj, key, value)


def is_valid_challenge(admin: Admin, now: datetime) -> bool:
	"""Challenge present, expiry present and strictly in the future."""
	if not admin.current_challenge or not admin.challenge_expires_at:
		return False
	return admin.challenge_expires_at > now


class ChallengeStore:
	"""Challenge field pair on the admin row.

	Every write is a single UPDATE so concurrent requests and the janitor
	rely on the database's row atomicity rather than on in-process locks.
	Methods flush but never commit; the calling ceremony owns the transaction.
	"""

	def __init__(
		self,
		db: Session,
		clock: Callable[[], datetime] = utc_now,
		ttl: timedelta = timedelta(minutes=CHALLENGE_EXPIRY_MINUTES),
	):
		self.db = db
		self.clock = clock
		self.ttl = ttl

	def begin_challenge(
		self,
		admin: Admin,
		challenge: str,
		ttl: timedelta | None = None,
	) -> datetime:
		"""Replace any challenge on ``admin`` with ``challenge``.

		Returns:
			The expiry written
		"""
		expires_at = self.clock() + (ttl or self.ttl)
		self.db.execute(
			update(Admin)
			.where(Admin.id == admin.id)
			.values(current_challenge=challenge, challenge_expires_at=expires_at)
			.execution_options(synchronize_session=False)
		)
		self.db.flush()
		_store(admin, current_challenge=challenge, challenge_expires_at=expires_at)
		return expires_at

	def read_challenge(self, admin: Admin) -> tuple[str, datetime] | None:
		if not admin.current_challenge or not admin.challenge_expires_at:
			return None
		return admin.current_challenge, admin.challenge_expires_at

	def is_valid_challenge(self, admin: Admin) -> bool:
		return is_valid_challenge(admin, self.clock())

	def consume_challenge(self, admin: Admin, expected: str | None = None) -> bool:
		"""Clear the challenge.

		With ``expected`` the update only applies while the stored value is
		still ``expected``, so a ceremony can never consume a challenge that a
		newer Begin has issued.

		Returns:
			True if a challenge was cleared
		"""
		stmt = update(Admin).where(
			Admin.id == admin.id,
			Admin.current_challenge.is_not(None),
		)
		if expected is not None:
			stmt = stmt.where(Admin.current_challenge == expected)

		result = self.db.execute(
			stmt.values(current_challenge=None, challenge_expires_at=None)
			.execution_options(synchronize_session=False)
		)
		self.db.flush()
		if result.rowcount == 0:
			return False
		_store(admin, current_challenge=None, challenge_expires_at=None)
		return True

	def sweep_expired(self, now: datetime | None = None) -> int:
		"""Clear every challenge whose expiry is at or before ``now``.

		Returns:
			Number of admins affected
		"""
		now = now or self.clock()
		result = self.db.execute(
			update(Admin)
			.where(
				Admin.current_challenge.is_not(None),
				Admin.challenge_expires_at <= now,
			)
			.values(current_challenge=None, challenge_expires_at=None)
			.execution_options(synchronize_session="fetch")
		)
		self.db.flush()
		return result.rowcount
