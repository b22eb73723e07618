# (c) Copyright Datacraft, 2026
"""Sweeps expired challenges and sessions.

Runs inline after requests, on a background interval, or from cron via
``admin-auth-sweep``. Sweeping is housekeeping only: expiry is enforced at
every verify step whether or not a sweep has run.
"""
import argparse
import asyncio
import logging
from datetime import datetime
from typing import Callable

from sqlalchemy.orm import sessionmaker

from admin_auth.db.base import utc_now

from .challenges import ChallengeStore
from .sessions import SessionManager

logger = logging.getLogger(__name__)


class ChallengeJanitor:
	"""Clears stale ceremony state. Failures are logged, never raised."""

	def __init__(
		self,
		session_factory: sessionmaker,
		clock: Callable[[], datetime] = utc_now,
	):
		self.session_factory = session_factory
		self.clock = clock

	def run_once(self) -> int:
		"""Sweep once in a fresh database session.

		Returns:
			Number of challenges cleared, 0 if the sweep failed
		"""
		try:
			with self.session_factory() as db:
				now = self.clock()
				cleared = ChallengeStore(db, clock=self.clock).sweep_expired(now)
				purged = SessionManager(db, clock=self.clock).purge_expired(now)
				db.commit()
		except Exception:
			logger.exception("Challenge sweep failed")
			return 0

		if cleared or purged:
			logger.info(f"Cleaned up {cleared} expired challenges and {purged} expired sessions")
		return cleared

	async def run_in_background(self) -> int:
		"""Sweep in a worker thread."""
		loop = asyncio.get_running_loop()
		return await loop.run_in_executor(None, self.run_once)

	async def run_forever(self, interval: float) -> None:
		"""Sweep every ``interval`` seconds until cancelled."""
		logger.info(f"Challenge janitor running every {interval}s")
		while True:
			await self.run_in_background()
			await asyncio.sleep(interval)


def main(argv: list[str] | None = None) -> int:
	"""Command line entry point for cron."""
	from admin_auth.config import get_settings
	from admin_auth.db.engine import make_engine, make_session_factory

	parser = argparse.ArgumentParser(
		prog="admin-auth-sweep",
		description="Clear expired WebAuthn challenges and admin sessions.",
	)
	parser.add_argument("--db-url", help="database URL (defaults to ADMIN_DB_URL)")
	args = parser.parse_args(argv)

	settings = get_settings()
	logging.basicConfig(level=settings.log_level)
	engine = make_engine(args.db_url or settings.db_url)
	try:
		cleared = ChallengeJanitor(make_session_factory(engine)).run_once()
	finally:
		engine.dispose()

	print(f"Cleared {cleared} expired challenges")
	return 0


if __name__ == "__main__":
	raise SystemExit(main())
