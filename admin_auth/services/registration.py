# (c) Copyright Datacraft, 2026
"""Security key registration ceremony."""
import logging
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from admin_auth.exceptions import AdminAuthError, SessionError, ValidationError
from admin_auth.utils import sanitize_device_name
from admin_auth.webauthn.options import RegistrationOptions, build_registration_options
from admin_auth.webauthn.verifier import response_credential_id, response_transports

from .challenges import generate_challenge
from .ceremony import CeremonyService

logger = logging.getLogger(__name__)


@dataclass
class RegistrationResult:
	"""Result of a completed registration."""
	verified: bool
	credential_id: UUID | None = None
	device_name: str | None = None


class RegistrationService(CeremonyService):
	"""Registers security keys for admins, creating the admin on first use.

	Idle -> ChallengeIssued (``begin``) -> Verified | Failed (``verify``).
	"""

	async def begin(self, email: str | None) -> RegistrationOptions:
		"""Issue a registration challenge for ``email``."""
		email = self._require_email(email)

		lookup = self.admins.lookup_or_create(email)
		admin = lookup.admin
		if lookup.created:
			logger.info(f"New admin {admin.id} started registration")

		existing = self.credentials.valid_credentials(admin.id)
		challenge = generate_challenge()
		self.challenges.begin_challenge(admin, challenge)

		options = build_registration_options(
			rp_id=self.rp_id,
			rp_name=self.rp_name,
			timeout=self.timeout,
			admin_id=admin.id,
			user_name=admin.email,
			display_name=admin.name,
			challenge=challenge,
			exclude=existing,
		)
		self.db.commit()

		logger.info(
			f"Registration challenge issued for admin {admin.id} "
			f"({len(existing)} credentials excluded)"
		)
		return options

	async def verify(
		self,
		email: str | None,
		response: dict[str, Any] | None,
		device_name: str | None = None,
	) -> RegistrationResult:
		"""Verify the authenticator's attestation and store the credential.

		On verification failure the challenge stays in place until it expires;
		the same challenge cannot be used again by a fresh Begin anyway.
		"""
		self._require_fields(email=email, credential=response)
		email = self._require_email(email)

		admin = self.admins.get_by_email(email)
		expected = self._check_ceremony(admin, response, "registration")

		verified = self.verifier.verify_registration(
			response=response,
			expected_challenge=expected,
			expected_origin=self.origin,
			expected_rp_id=self.rp_id,
		)

		credential_id = response_credential_id(response) or verified.credential_id
		if not credential_id:
			logger.error(f"Verified registration for admin {admin.id} carried no credential id")
			raise ValidationError("Missing credential ID")

		name = sanitize_device_name(device_name)
		try:
			credential = self.credentials.create_credential(
				admin_id=admin.id,
				credential_id=credential_id,
				public_key=verified.public_key,
				counter=verified.counter or 0,
				device_name=name,
				transports=response_transports(response),
				device_type=verified.device_type,
				backed_up=verified.backed_up,
				aaguid=verified.aaguid,
			)
			if not self.challenges.consume_challenge(admin, expected=expected):
				raise SessionError("Registration session was replaced")
			self.db.commit()
		except AdminAuthError:
			self.db.rollback()
			raise

		logger.info(f"Security key {credential.id} registered for admin {admin.id}")
		return RegistrationResult(
			verified=True,
			credential_id=credential.id,
			device_name=credential.device_name,
		)
