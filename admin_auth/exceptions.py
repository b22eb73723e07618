# (c) Copyright Datacraft, 2026
"""Error taxonomy for the passwordless admin authentication core."""


class AdminAuthError(Exception):
	"""Base error. Carries a stable code and a remediation hint."""
	code = "admin_auth_error"
	status_code = 400
	hint = "Please try again."

	def __init__(
		self,
		message: str,
		*,
		detail: str | None = None,
		status_code: int | None = None,
	):
		super().__init__(message)
		self.message = message
		self.detail = detail
		if status_code is not None:
			self.status_code = status_code

	def to_dict(self, include_detail: bool = False) -> dict:
		payload = {
			"error": self.code,
			"message": self.message,
			"hint": self.hint,
		}
		if include_detail and self.detail:
			payload["details"] = self.detail
		return payload


class ValidationError(AdminAuthError):
	"""Malformed or missing input."""
	code = "validation_error"
	status_code = 400
	hint = "Check the submitted fields and try again."


class NotFoundError(AdminAuthError):
	"""Admin or credential absent."""
	code = "not_found"
	status_code = 404
	hint = "Check the email address or register a security key first."


class CredentialNotFoundError(NotFoundError):
	"""Claimed credential is not registered for the admin in the ceremony."""
	code = "credential_not_found"
	status_code = 400
	hint = "This security key is not registered for this account. Try another key."


class InactiveAccountError(AdminAuthError):
	code = "account_inactive"
	status_code = 403
	hint = "This admin account has been deactivated. Contact another administrator."


class NoCredentialsError(AdminAuthError):
	code = "no_credentials"
	status_code = 400
	hint = "No security keys registered. Register one first."


class SessionError(AdminAuthError):
	"""No ceremony in flight, or its challenge expired or was superseded."""
	code = "invalid_ceremony"
	status_code = 400
	hint = "The sign-in attempt expired. Start again from the beginning."


class VerificationError(AdminAuthError):
	"""Cryptographic verification of an authenticator response failed."""
	code = "verification_failed"
	status_code = 400
	hint = "The security key response could not be verified. Retry, possibly with a different key."


class ConflictError(AdminAuthError):
	code = "credential_conflict"
	status_code = 409
	hint = "This security key is already registered."


class LastCredentialError(AdminAuthError):
	code = "last_credential"
	status_code = 400
	hint = "Register another security key before removing this one."


class NotAuthenticatedError(AdminAuthError):
	code = "not_authenticated"
	status_code = 401
	hint = "Please log in to access this resource."
