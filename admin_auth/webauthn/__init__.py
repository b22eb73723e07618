# (c) Copyright Datacraft, 2026
"""WebAuthn/FIDO2 options and verification."""

from .options import (
	AuthenticationOptions,
	CredentialDescriptor,
	RegistrationOptions,
	build_authentication_options,
	build_registration_options,
	user_handle,
)
from .verifier import (
	PyWebAuthnVerifier,
	VerifiedAssertion,
	VerifiedCredential,
	WebAuthnVerifier,
	client_challenge,
	is_valid_credential_id,
	response_credential_id,
	response_transports,
)

__all__ = [
	"AuthenticationOptions",
	"CredentialDescriptor",
	"RegistrationOptions",
	"build_authentication_options",
	"build_registration_options",
	"user_handle",
	"PyWebAuthnVerifier",
	"VerifiedAssertion",
	"VerifiedCredential",
	"WebAuthnVerifier",
	"client_challenge",
	"is_valid_credential_id",
	"response_credential_id",
	"response_transports",
]
