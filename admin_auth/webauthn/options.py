# (c) Copyright Datacraft, 2026
"""Ceremony options handed to the browser's authenticator."""

import uuid
from typing import Any, Iterable

from pydantic import BaseModel
from webauthn import (
	generate_authentication_options,
	generate_registration_options,
)
from webauthn.helpers import (
	base64url_to_bytes,
	bytes_to_base64url,
)
from webauthn.helpers.structs import (
	AttestationConveyancePreference,
	AuthenticatorSelectionCriteria,
	AuthenticatorTransport,
	COSEAlgorithmIdentifier,
	PublicKeyCredentialDescriptor,
	PublicKeyCredentialType,
	ResidentKeyRequirement,
	UserVerificationRequirement,
)

from admin_auth.db.orm import WebAuthnCredential

SUPPORTED_ALGORITHMS = [
	COSEAlgorithmIdentifier.ECDSA_SHA_256,
	COSEAlgorithmIdentifier.EDDSA,
	COSEAlgorithmIdentifier.RSASSA_PKCS1_v1_5_SHA_256,
]


class CredentialDescriptor(BaseModel):
	"""Entry of an allow or exclude list."""
	id: str
	type: str = "public-key"
	transports: list[str] = []


class RegistrationOptions(BaseModel):
	"""Registration options for client."""
	challenge: str
	rp_id: str
	rp_name: str
	user_handle: str
	user_name: str
	display_name: str
	timeout: int
	attestation: str
	authenticator_selection: dict[str, Any]
	pub_key_cred_params: list[dict[str, Any]]
	exclude_credentials: list[CredentialDescriptor] = []


class AuthenticationOptions(BaseModel):
	"""Authentication options for client."""
	challenge: str
	rp_id: str
	timeout: int
	user_verification: str
	allow_credentials: list[CredentialDescriptor] = []


def _transports(values: Iterable[str] | None) -> list[AuthenticatorTransport]:
	known = []
	for value in values or []:
		try:
			known.append(AuthenticatorTransport(value))
		except ValueError:
			continue
	return known


def _descriptors(
	credentials: Iterable[WebAuthnCredential],
) -> tuple[list[PublicKeyCredentialDescriptor], list[CredentialDescriptor]]:
	library, client = [], []
	for cred in credentials:
		transports = _transports(cred.transports)
		library.append(
			PublicKeyCredentialDescriptor(
				id=base64url_to_bytes(cred.credential_id),
				type=PublicKeyCredentialType.PUBLIC_KEY,
				transports=transports if transports else None,
			)
		)
		client.append(
			CredentialDescriptor(
				id=cred.credential_id,
				transports=[t.value for t in transports],
			)
		)
	return library, client


def user_handle(admin_id: uuid.UUID) -> str:
	"""Opaque WebAuthn user handle for an admin."""
	return bytes_to_base64url(str(admin_id).encode())


def build_registration_options(
	*,
	rp_id: str,
	rp_name: str,
	timeout: int,
	admin_id: uuid.UUID,
	user_name: str,
	display_name: str,
	challenge: str,
	exclude: Iterable[WebAuthnCredential] = (),
) -> RegistrationOptions:
	"""Generate options for security key registration.

	Args:
		admin_id: Admin's UUID, used as the user handle
		user_name: Normalized email
		display_name: Name shown by the authenticator
		challenge: Fresh challenge already written to the challenge store
		exclude: Credentials the authenticator must not register again

	Returns:
		RegistrationOptions
	"""
	exclude_credentials, exclude_client = _descriptors(exclude)

	# No authenticator attachment: platform and roaming keys are both allowed
	options = generate_registration_options(
		rp_id=rp_id,
		rp_name=rp_name,
		user_id=str(admin_id).encode(),
		user_name=user_name,
		user_display_name=display_name,
		challenge=base64url_to_bytes(challenge),
		timeout=timeout,
		attestation=AttestationConveyancePreference.NONE,
		authenticator_selection=AuthenticatorSelectionCriteria(
			resident_key=ResidentKeyRequirement.PREFERRED,
			user_verification=UserVerificationRequirement.PREFERRED,
		),
		supported_pub_key_algs=SUPPORTED_ALGORITHMS,
		exclude_credentials=exclude_credentials if exclude_credentials else None,
	)

	return RegistrationOptions(
		challenge=bytes_to_base64url(options.challenge),
		rp_id=rp_id,
		rp_name=rp_name,
		user_handle=user_handle(admin_id),
		user_name=user_name,
		display_name=display_name,
		timeout=timeout,
		attestation="none",
		authenticator_selection={
			"residentKey": "preferred",
			"userVerification": "preferred",
		},
		pub_key_cred_params=[
			{"type": "public-key", "alg": alg.value}
			for alg in SUPPORTED_ALGORITHMS
		],
		exclude_credentials=exclude_client,
	)


def build_authentication_options(
	*,
	rp_id: str,
	timeout: int,
	challenge: str,
	allow: Iterable[WebAuthnCredential],
) -> AuthenticationOptions:
	"""Generate options for security key authentication."""
	allow_credentials, allow_client = _descriptors(allow)

	options = generate_authentication_options(
		rp_id=rp_id,
		challenge=base64url_to_bytes(challenge),
		timeout=timeout,
		allow_credentials=allow_credentials,
		user_verification=UserVerificationRequirement.PREFERRED,
	)

	return AuthenticationOptions(
		challenge=bytes_to_base64url(options.challenge),
		rp_id=rp_id,
		timeout=timeout,
		user_verification="preferred",
		allow_credentials=allow_client,
	)
