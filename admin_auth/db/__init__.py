# (c) Copyright Datacraft, 2026
"""Database module for admin-auth."""
from .orm import Admin, WebAuthnCredential, AdminSession
from .base import Base, UTCDateTime, utc_now

__all__ = [
	'Base',
	'UTCDateTime',
	'utc_now',
	'Admin',
	'WebAuthnCredential',
	'AdminSession',
]
