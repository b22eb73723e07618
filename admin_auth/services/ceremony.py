# (c) Copyright Datacraft, 2026
"""Shared plumbing of the registration and authentication ceremonies."""
import logging
import secrets
from datetime import datetime, timedelta
from typing import Any, Callable

from sqlalchemy.orm import Session

from admin_auth.db.base import utc_now
from admin_auth.db.orm import Admin
from admin_auth.exceptions import SessionError, ValidationError
from admin_auth.utils import is_email, normalize_email, raise_on_empty
from admin_auth.webauthn.verifier import WebAuthnVerifier, client_challenge

from .admins import AdminDirectory
from .challenges import CHALLENGE_EXPIRY_MINUTES, ChallengeStore
from .credentials import CredentialRegistry

logger = logging.getLogger(__name__)


class CeremonyService:
	"""Base for the two WebAuthn ceremonies."""

	def __init__(
		self,
		db: Session,
		verifier: WebAuthnVerifier,
		rp_id: str = "localhost",
		rp_name: str = "Admin Panel",
		origin: str = "http://localhost:3002",
		timeout: int = 60000,
		clock: Callable[[], datetime] = utc_now,
		challenge_ttl: timedelta = timedelta(minutes=CHALLENGE_EXPIRY_MINUTES),
	):
		self.db = db
		self.verifier = verifier
		self.rp_id = rp_id
		self.rp_name = rp_name
		self.origin = origin
		self.timeout = timeout
		self.clock = clock
		self.admins = AdminDirectory(db)
		self.challenges = ChallengeStore(db, clock=clock, ttl=challenge_ttl)
		self.credentials = CredentialRegistry(db)

	def _require_email(self, email: str | None) -> str:
		normalized = normalize_email(email)
		if not normalized:
			raise ValidationError("Email is required")
		if not is_email(normalized):
			raise ValidationError("Email address is not valid")
		return normalized

	def _require_fields(self, **fields: Any) -> None:
		try:
			raise_on_empty(**fields)
		except ValueError as e:
			raise ValidationError(str(e))

	def _check_ceremony(self, admin: Admin | None, response: dict[str, Any], kind: str) -> str:
		"""Stored challenge of the ceremony ``response`` belongs to.

		Raises:
			SessionError: no ceremony in flight, expired, or superseded
		"""
		if admin is None or not self.challenges.is_valid_challenge(admin):
			raise SessionError(f"Invalid {kind} session")

		expected = admin.current_challenge
		signed = client_challenge(response)
		if not secrets.compare_digest(signed.encode(), expected.encode()):
			logger.warning(f"Stale {kind} challenge presented for admin {admin.id}")
			raise SessionError(f"Invalid {kind} session")
		return expected
