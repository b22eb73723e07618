# (c) Copyright Datacraft, 2026
"""Authentication services."""
from .admins import AdminDirectory, AdminLookup
from .challenges import ChallengeStore, generate_challenge, is_valid_challenge
from .credentials import CredentialRegistry
from .registration import RegistrationService, RegistrationResult
from .authentication import AuthenticationService, AuthenticationResult
from .sessions import SessionManager
from .janitor import ChallengeJanitor

__all__ = [
	"AdminDirectory",
	"AdminLookup",
	"ChallengeStore",
	"generate_challenge",
	"is_valid_challenge",
	"CredentialRegistry",
	"RegistrationService",
	"RegistrationResult",
	"AuthenticationService",
	"AuthenticationResult",
	"SessionManager",
	"ChallengeJanitor",
]
