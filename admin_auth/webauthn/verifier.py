# (c) Copyright Datacraft, 2026
"""Verification port around the py_webauthn library."""

import json
import logging
from dataclasses import dataclass
from typing import Any

from webauthn import (
	verify_authentication_response,
	verify_registration_response,
)
from webauthn.helpers import (
	base64url_to_bytes,
	bytes_to_base64url,
)

from admin_auth.exceptions import ValidationError, VerificationError

logger = logging.getLogger(__name__)


@dataclass
class VerifiedCredential:
	"""Data extracted from a verified registration response."""
	credential_id: str  # Base64URL encoded
	public_key: bytes
	counter: int = 0
	device_type: str | None = None
	backed_up: bool = False
	aaguid: str | None = None


@dataclass
class VerifiedAssertion:
	"""Data extracted from a verified authentication response."""
	credential_id: str  # Base64URL encoded
	new_counter: int


def response_credential_id(response: dict[str, Any]) -> str:
	"""Credential ID claimed by a client response (``id``, else ``rawId``)."""
	credential_id = response.get("id") or response.get("rawId") or ""
	if not isinstance(credential_id, str):
		return ""
	return credential_id.strip()


def response_transports(response: dict[str, Any]) -> list[str]:
	inner = response.get("response")
	if not isinstance(inner, dict):
		return []
	transports = inner.get("transports") or []
	if not isinstance(transports, list):
		return []
	return [t for t in transports if isinstance(t, str) and t]


def client_challenge(response: dict[str, Any]) -> str:
	"""Challenge the browser signed over, taken from ``clientDataJSON``.

	Raises:
		ValidationError: the response carries no decodable client data
	"""
	inner = response.get("response")
	if not isinstance(inner, dict) or not inner.get("clientDataJSON"):
		raise ValidationError("Authenticator response is missing client data")

	try:
		client_data = json.loads(base64url_to_bytes(inner["clientDataJSON"]))
	except (TypeError, ValueError) as e:
		raise ValidationError(
			"Authenticator response has malformed client data",
			detail=str(e),
		)

	challenge = client_data.get("challenge") if isinstance(client_data, dict) else None
	if not isinstance(challenge, str) or not challenge:
		raise ValidationError("Authenticator response has no challenge")
	return challenge


def is_valid_credential_id(credential_id: str | None) -> bool:
	"""True for a non-empty, decodable base64url credential id."""
	if not credential_id or not isinstance(credential_id, str):
		return False
	try:
		return len(base64url_to_bytes(credential_id)) > 0
	except (TypeError, ValueError):
		return False


class WebAuthnVerifier:
	"""Cryptographic verification collaborator.

	Implementations raise ``VerificationError`` for every failure so the
	protocol services never see library specific exceptions.
	"""

	def verify_registration(
		self,
		response: dict[str, Any],
		expected_challenge: str,
		expected_origin: str,
		expected_rp_id: str,
	) -> VerifiedCredential:
		raise NotImplementedError

	def verify_authentication(
		self,
		response: dict[str, Any],
		expected_challenge: str,
		expected_origin: str,
		expected_rp_id: str,
		public_key: bytes,
		current_counter: int,
	) -> VerifiedAssertion:
		raise NotImplementedError


class PyWebAuthnVerifier(WebAuthnVerifier):
	"""Verifier backed by py_webauthn."""

	def __init__(self, require_user_verification: bool = False):
		self.require_user_verification = require_user_verification

	def verify_registration(
		self,
		response: dict[str, Any],
		expected_challenge: str,
		expected_origin: str,
		expected_rp_id: str,
	) -> VerifiedCredential:
		"""Verify registration response from authenticator.

		Args:
			response: Response from navigator.credentials.create()
			expected_challenge: Stored challenge (Base64URL)
			expected_origin: Origin the browser must report
			expected_rp_id: Relying Party ID the credential is scoped to

		Returns:
			VerifiedCredential with the new public key and initial counter
		"""
		try:
			verification = verify_registration_response(
				credential=response,
				expected_challenge=base64url_to_bytes(expected_challenge),
				expected_rp_id=expected_rp_id,
				expected_origin=expected_origin,
				require_user_verification=self.require_user_verification,
			)
		except Exception as e:
			logger.warning(f"Registration verification failed: {e}")
			raise VerificationError(
				"Registration verification failed",
				detail=str(e),
			)

		device_type = verification.credential_device_type
		return VerifiedCredential(
			credential_id=bytes_to_base64url(verification.credential_id),
			public_key=verification.credential_public_key,
			counter=verification.sign_count or 0,
			device_type=device_type.value if device_type else None,
			backed_up=bool(verification.credential_backed_up),
			aaguid=verification.aaguid or None,
		)

	def verify_authentication(
		self,
		response: dict[str, Any],
		expected_challenge: str,
		expected_origin: str,
		expected_rp_id: str,
		public_key: bytes,
		current_counter: int,
	) -> VerifiedAssertion:
		"""Verify authentication response.

		Args:
			response: Response from navigator.credentials.get()
			expected_challenge: Stored challenge (Base64URL)
			expected_origin: Origin the browser must report
			expected_rp_id: Relying Party ID the credential is scoped to
			public_key: Stored credential public key
			current_counter: Stored signature counter

		Returns:
			VerifiedAssertion with the authenticator's new counter
		"""
		try:
			verification = verify_authentication_response(
				credential=response,
				expected_challenge=base64url_to_bytes(expected_challenge),
				expected_rp_id=expected_rp_id,
				expected_origin=expected_origin,
				credential_public_key=public_key,
				credential_current_sign_count=current_counter,
				require_user_verification=self.require_user_verification,
			)
		except Exception as e:
			logger.warning(f"Authentication verification failed: {e}")
			raise VerificationError(
				"Authentication failed",
				detail=str(e),
				status_code=401,
			)

		return VerifiedAssertion(
			credential_id=bytes_to_base64url(verification.credential_id),
			new_counter=verification.new_sign_count,
		)
