# (c) Copyright Datacraft, 2026
from datetime import datetime, timezone

from sqlalchemy import DateTime
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.types import TypeDecorator


class UTCDateTime(TypeDecorator):
	"""Timezone-aware UTC datetime stored as naive UTC.

	SQLite has no timezone support; storing naive UTC everywhere keeps
	comparisons in SQL (``expires_at <= :now``) consistent across backends.
	"""
	impl = DateTime
	cache_ok = True

	def process_bind_param(self, value, dialect):
		if value is None:
			return None
		if value.tzinfo is not None:
			value = value.astimezone(timezone.utc).replace(tzinfo=None)
		return value

	def process_result_value(self, value, dialect):
		if value is None:
			return None
		return value.replace(tzinfo=timezone.utc)


def utc_now() -> datetime:
	return datetime.now(timezone.utc)


class Base(DeclarativeBase):
	pass
