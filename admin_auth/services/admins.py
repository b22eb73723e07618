# (c) Copyright Datacraft, 2026
"""Admin account lookup."""
import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from admin_auth.db.orm import Admin
from admin_auth.utils import display_name_from_email

logger = logging.getLogger(__name__)


@dataclass
class AdminLookup:
	"""Result of lookup-or-create. ``created`` tells the two branches apart."""
	admin: Admin
	created: bool


class AdminDirectory:
	"""Reads and creates admin rows. Emails must already be normalized."""

	def __init__(self, db: Session):
		self.db = db

	def get_by_email(self, email: str) -> Admin | None:
		return self.db.scalar(select(Admin).where(Admin.email == email))

	def lookup_or_create(self, email: str) -> AdminLookup:
		admin = self.get_by_email(email)
		if admin:
			return AdminLookup(admin=admin, created=False)

		admin = Admin(
			email=email,
			name=display_name_from_email(email),
			role="admin",
			is_active=True,
		)
		self.db.add(admin)
		try:
			self.db.flush()
		except IntegrityError:
			# Created concurrently by another request
			self.db.rollback()
			existing = self.get_by_email(email)
			if existing is None:
				raise
			return AdminLookup(admin=existing, created=False)

		logger.info(f"Created admin {admin.id} for {email}")
		return AdminLookup(admin=admin, created=True)
