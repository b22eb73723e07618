# (c) Copyright Datacraft, 2026
"""FastAPI dependencies wiring services to the running app."""
from datetime import timedelta

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from admin_auth.config import Settings
from admin_auth.db.engine import get_db
from admin_auth.exceptions import NotAuthenticatedError
from admin_auth.schema import AdminProfile
from admin_auth.services import (
    AuthenticationService,
    CredentialRegistry,
    RegistrationService,
    SessionManager,
)
from admin_auth.utils import get_token


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_session_manager(
    request: Request,
    db: Session = Depends(get_db),
) -> SessionManager:
    settings = request.app.state.settings
    return SessionManager(
        db,
        clock=request.app.state.clock,
        ttl=timedelta(minutes=settings.session_expire_minutes),
    )


def get_registration_service(
    request: Request,
    db: Session = Depends(get_db),
) -> RegistrationService:
    """Get RegistrationService with configuration."""
    settings = request.app.state.settings
    return RegistrationService(
        db,
        request.app.state.verifier,
        rp_id=settings.webauthn_rp_id,
        rp_name=settings.webauthn_rp_name,
        origin=settings.webauthn_origin,
        timeout=settings.webauthn_timeout,
        clock=request.app.state.clock,
        challenge_ttl=timedelta(minutes=settings.challenge_ttl_minutes),
    )


def get_authentication_service(
    request: Request,
    db: Session = Depends(get_db),
    sessions: SessionManager = Depends(get_session_manager),
) -> AuthenticationService:
    """Get AuthenticationService with configuration."""
    settings = request.app.state.settings
    return AuthenticationService(
        db,
        request.app.state.verifier,
        sessions=sessions,
        rp_id=settings.webauthn_rp_id,
        rp_name=settings.webauthn_rp_name,
        origin=settings.webauthn_origin,
        timeout=settings.webauthn_timeout,
        clock=request.app.state.clock,
        challenge_ttl=timedelta(minutes=settings.challenge_ttl_minutes),
    )


def get_credential_registry(db: Session = Depends(get_db)) -> CredentialRegistry:
    return CredentialRegistry(db)


async def get_current_admin(
    request: Request,
    sessions: SessionManager = Depends(get_session_manager),
) -> AdminProfile:
    """Profile bound to the request's session, checked on every call."""
    token = get_token(request)
    if not token:
        raise NotAuthenticatedError("Not authenticated")

    profile = sessions.validate(token)
    if profile is None:
        raise NotAuthenticatedError("Admin account not found or inactive")
    return profile
