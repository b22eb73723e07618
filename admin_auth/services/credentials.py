# (c) Copyright Datacraft, 2026
"""Registry of admins' WebAuthn credentials."""
import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy import select, update, delete, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import set_committed_value

from admin_auth.db.orm import Admin, WebAuthnCredential
from admin_auth.exceptions import (
	ConflictError,
	LastCredentialError,
	NotFoundError,
	VerificationError,
)
from admin_auth.webauthn.verifier import is_valid_credential_id

logger = logging.getLogger(__name__)


class CredentialRegistry:
	"""Credential rows. Methods flush; the calling ceremony commits."""

	def __init__(self, db: Session):
		self.db = db

	def list_credentials(self, admin_id: UUID) -> list[WebAuthnCredential]:
		stmt = (
			select(WebAuthnCredential)
			.where(WebAuthnCredential.admin_id == admin_id)
			.order_by(WebAuthnCredential.created_at.desc(), WebAuthnCredential.id)
		)
		return list(self.db.scalars(stmt))

	def valid_credentials(self, admin_id: UUID) -> list[WebAuthnCredential]:
		"""Credentials usable in allow/exclude lists."""
		credentials = []
		for cred in self.list_credentials(admin_id):
			if not is_valid_credential_id(cred.credential_id):
				logger.warning(f"Skipping malformed credential {cred.id} of admin {admin_id}")
				continue
			credentials.append(cred)
		return credentials

	def create_credential(
		self,
		admin_id: UUID,
		credential_id: str,
		public_key: bytes,
		counter: int = 0,
		device_name: str = "Security Key",
		transports: list[str] | None = None,
		device_type: str | None = None,
		backed_up: bool = False,
		aaguid: str | None = None,
	) -> WebAuthnCredential:
		"""Store a new credential.

		Raises:
			ConflictError: the credential id is already registered, for any admin
		"""
		existing = self.db.scalar(
			select(WebAuthnCredential.id).where(
				WebAuthnCredential.credential_id == credential_id
			)
		)
		if existing is not None:
			raise ConflictError("Security key is already registered")

		credential = WebAuthnCredential(
			admin_id=admin_id,
			credential_id=credential_id,
			public_key=public_key,
			counter=counter or 0,
			device_name=device_name,
			transports=list(transports or []),
			device_type=device_type,
			backed_up=backed_up,
			aaguid=aaguid,
		)
		self.db.add(credential)
		try:
			self.db.flush()
		except IntegrityError as e:
			self.db.rollback()
			raise ConflictError("Security key is already registered", detail=str(e.orig))
		return credential

	def find_by_credential_id(
		self,
		admin_id: UUID,
		credential_id: str,
	) -> WebAuthnCredential | None:
		"""Look up a credential id within one admin's credentials only."""
		if not credential_id:
			return None
		return self.db.scalar(
			select(WebAuthnCredential).where(
				WebAuthnCredential.admin_id == admin_id,
				WebAuthnCredential.credential_id == credential_id,
			)
		)

	def bump_counter(
		self,
		credential: WebAuthnCredential,
		new_counter: int,
		used_at: datetime,
	) -> None:
		"""Advance the signature counter and stamp last use.

		The UPDATE only matches while the stored counter is lower than
		``new_counter``, or both are zero for authenticators without a counter.

		Raises:
			VerificationError: the stored counter is not below ``new_counter``
		"""
		stmt = update(WebAuthnCredential).where(WebAuthnCredential.id == credential.id)
		if new_counter == 0:
			stmt = stmt.where(WebAuthnCredential.counter == 0)
		else:
			stmt = stmt.where(WebAuthnCredential.counter < new_counter)

		result = self.db.execute(
			stmt.values(counter=new_counter, last_used_at=used_at)
			.execution_options(synchronize_session=False)
		)
		if result.rowcount == 0:
			logger.warning(
				f"Counter regression on credential {credential.id}: "
				f"stored {credential.counter}, reported {new_counter}"
			)
			raise VerificationError(
				"Security key counter did not advance",
				detail=f"stored={credential.counter} reported={new_counter}",
				status_code=401,
			)
		self.db.flush()
		set_committed_value(credential, "counter", new_counter)
		set_committed_value(credential, "last_used_at", used_at)

	def delete_credential(self, admin_id: UUID, credential_pk: UUID) -> None:
		"""Remove one of the admin's credentials.

		Raises:
			NotFoundError: no such credential for this admin
			LastCredentialError: it is the admin's only credential
		"""
		# Serialize concurrent deletes for the same admin
		self.db.scalar(
			select(Admin.id).where(Admin.id == admin_id).with_for_update()
		)

		credential = self.db.scalar(
			select(WebAuthnCredential).where(
				WebAuthnCredential.id == credential_pk,
				WebAuthnCredential.admin_id == admin_id,
			)
		)
		if credential is None:
			raise NotFoundError("Credential not found")

		count = self.db.scalar(
			select(func.count())
			.select_from(WebAuthnCredential)
			.where(WebAuthnCredential.admin_id == admin_id)
		)
		if count <= 1:
			raise LastCredentialError("Cannot delete your last security key")

		self.db.execute(
			delete(WebAuthnCredential)
			.where(WebAuthnCredential.id == credential.id)
			.execution_options(synchronize_session="fetch")
		)
		self.db.flush()
		logger.info(f"Credential {credential_pk} deleted for admin {admin_id}")
