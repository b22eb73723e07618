# (c) Copyright Datacraft, 2026
"""Application factory."""
import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Callable

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.orm import sessionmaker

from admin_auth.config import Settings, get_settings
from admin_auth.db.base import Base, utc_now
from admin_auth.db.engine import make_engine, make_session_factory
from admin_auth.exceptions import AdminAuthError, NotAuthenticatedError, ValidationError
from admin_auth.routers import session_router, webauthn_router
from admin_auth.services import ChallengeJanitor
from admin_auth.webauthn.verifier import PyWebAuthnVerifier, WebAuthnVerifier

logger = logging.getLogger(__name__)


def create_app(
	settings: Settings | None = None,
	session_factory: sessionmaker | None = None,
	verifier: WebAuthnVerifier | None = None,
	clock: Callable[[], datetime] = utc_now,
) -> FastAPI:
	settings = settings or get_settings()
	logging.basicConfig(level=settings.log_level)

	if session_factory is None:
		engine = make_engine(settings.db_url)
		Base.metadata.create_all(engine)
		session_factory = make_session_factory(engine)

	janitor = ChallengeJanitor(session_factory, clock=clock)

	@asynccontextmanager
	async def lifespan(app: FastAPI):
		task = None
		if settings.sweep_interval_seconds > 0:
			task = asyncio.create_task(
				app.state.janitor.run_forever(settings.sweep_interval_seconds)
			)
		yield
		if task is not None:
			task.cancel()
			with contextlib.suppress(asyncio.CancelledError):
				await task

	app = FastAPI(title="Admin Auth", lifespan=lifespan)
	app.state.settings = settings
	app.state.session_factory = session_factory
	app.state.verifier = verifier or PyWebAuthnVerifier()
	app.state.clock = clock
	app.state.janitor = janitor
	app.state.sweeps = set()

	@app.middleware("http")
	async def sweep_expired_challenges(request: Request, call_next):
		response = await call_next(request)
		if settings.sweep_on_request:
			# Fire and forget; the janitor logs its own failures
			sweep = asyncio.create_task(request.app.state.janitor.run_in_background())
			request.app.state.sweeps.add(sweep)
			sweep.add_done_callback(request.app.state.sweeps.discard)
		return response

	def render(exc: AdminAuthError) -> JSONResponse:
		return JSONResponse(
			status_code=exc.status_code,
			content=exc.to_dict(include_detail=not settings.is_production),
		)

	@app.exception_handler(AdminAuthError)
	async def admin_auth_error_handler(request: Request, exc: AdminAuthError):
		if exc.status_code >= 500:
			logger.error(f"{exc.code}: {exc.message} ({exc.detail})")
		response = render(exc)
		if isinstance(exc, NotAuthenticatedError) and settings.session_cookie_name in request.cookies:
			# The session is gone; clear the stale cookie
			response.delete_cookie(settings.session_cookie_name)
		return response

	@app.exception_handler(RequestValidationError)
	async def request_validation_error_handler(request: Request, exc: RequestValidationError):
		problems = "; ".join(
			f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
			for error in exc.errors()
		)
		return render(ValidationError("Malformed request", detail=problems))

	@app.exception_handler(Exception)
	async def unexpected_error_handler(request: Request, exc: Exception):
		logger.exception(f"Unhandled error on {request.method} {request.url.path}")
		content = {
			"error": "internal_error",
			"message": "Internal server error",
			"hint": "Please try again later.",
		}
		if not settings.is_production:
			content["details"] = str(exc)
		return JSONResponse(status_code=500, content=content)

	app.include_router(webauthn_router)
	app.include_router(session_router)
	return app
