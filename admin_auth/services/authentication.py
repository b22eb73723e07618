# (c) Copyright Datacraft, 2026
"""Security key authentication ceremony."""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable

from sqlalchemy.orm import Session

from admin_auth.db.base import utc_now
from admin_auth.exceptions import (
	AdminAuthError,
	CredentialNotFoundError,
	InactiveAccountError,
	NoCredentialsError,
	NotFoundError,
	SessionError,
	VerificationError,
)
from admin_auth.schema import AdminProfile
from admin_auth.webauthn.options import AuthenticationOptions, build_authentication_options
from admin_auth.webauthn.verifier import WebAuthnVerifier, response_credential_id

from .ceremony import CeremonyService
from .challenges import CHALLENGE_EXPIRY_MINUTES, generate_challenge
from .sessions import SessionManager

logger = logging.getLogger(__name__)


@dataclass
class AuthenticationResult:
	"""Result of a completed login."""
	verified: bool
	profile: AdminProfile
	session_token: str


def counter_regressed(stored: int, reported: int) -> bool:
	"""Clone detection.

	Authenticators without counter support report 0 every time, so 0 -> 0 is
	accepted. Once a nonzero value was stored the counter must strictly grow.
	"""
	return stored != 0 and reported <= stored


class AuthenticationService(CeremonyService):
	"""Logs admins in with a registered security key.

	Idle -> ChallengeIssued (``begin``) -> Verified | Failed (``verify``).
	"""

	def __init__(
		self,
		db: Session,
		verifier: WebAuthnVerifier,
		sessions: SessionManager | None = None,
		rp_id: str = "localhost",
		rp_name: str = "Admin Panel",
		origin: str = "http://localhost:3002",
		timeout: int = 60000,
		clock: Callable[[], datetime] = utc_now,
		challenge_ttl: timedelta = timedelta(minutes=CHALLENGE_EXPIRY_MINUTES),
	):
		super().__init__(
			db,
			verifier,
			rp_id=rp_id,
			rp_name=rp_name,
			origin=origin,
			timeout=timeout,
			clock=clock,
			challenge_ttl=challenge_ttl,
		)
		self.sessions = sessions or SessionManager(db, clock=clock)

	async def begin(self, email: str | None) -> AuthenticationOptions:
		"""Issue an authentication challenge for ``email``."""
		email = self._require_email(email)

		admin = self.admins.get_by_email(email)
		if admin is None:
			logger.warning(f"Authentication requested for unknown admin {email}")
			raise NotFoundError("Admin not found")
		if not admin.is_active:
			logger.warning(f"Authentication requested for inactive admin {admin.id}")
			raise InactiveAccountError("Account is inactive")

		allowed = self.credentials.valid_credentials(admin.id)
		if not allowed:
			logger.warning(f"Admin {admin.id} has no security keys registered")
			raise NoCredentialsError("No security keys registered")

		challenge = generate_challenge()
		self.challenges.begin_challenge(admin, challenge)
		options = build_authentication_options(
			rp_id=self.rp_id,
			timeout=self.timeout,
			challenge=challenge,
			allow=allowed,
		)
		self.db.commit()

		logger.info(f"Authentication challenge issued for admin {admin.id}")
		return options

	async def verify(
		self,
		email: str | None,
		response: dict[str, Any] | None,
		current_session: str | None = None,
	) -> AuthenticationResult:
		"""Verify an assertion and open a session.

		``current_session`` is the token the request already carries, if any;
		it is replaced by the new session.
		"""
		self._require_fields(email=email, credential=response)
		email = self._require_email(email)

		admin = self.admins.get_by_email(email)
		expected = self._check_ceremony(admin, response, "authentication")
		if not admin.is_active:
			raise InactiveAccountError("Account is inactive")

		# Only this admin's credentials are searched
		stored = self.credentials.find_by_credential_id(
			admin.id, response_credential_id(response)
		)
		if stored is None:
			logger.warning(f"Unknown credential presented for admin {admin.id}")
			raise CredentialNotFoundError("Credential not found")

		assertion = self.verifier.verify_authentication(
			response=response,
			expected_challenge=expected,
			expected_origin=self.origin,
			expected_rp_id=self.rp_id,
			public_key=stored.public_key,
			current_counter=stored.counter,
		)

		if counter_regressed(stored.counter, assertion.new_counter):
			logger.warning(
				f"Possible cloned authenticator: credential {stored.id} reported "
				f"counter {assertion.new_counter}, stored {stored.counter}"
			)
			raise VerificationError(
				"Security key counter did not advance",
				detail=f"stored={stored.counter} reported={assertion.new_counter}",
				status_code=401,
			)

		now = self.clock()
		try:
			self.credentials.bump_counter(stored, assertion.new_counter, now)
			admin.last_login_at = now
			if not self.challenges.consume_challenge(admin, expected=expected):
				raise SessionError("Authentication session was replaced")
			token = self.sessions.establish(admin.id, replace=current_session)
			self.db.commit()
		except AdminAuthError:
			self.db.rollback()
			raise

		logger.info(f"Admin {admin.id} logged in with credential {stored.id}")
		return AuthenticationResult(
			verified=True,
			profile=AdminProfile.model_validate(admin),
			session_token=token,
		)
