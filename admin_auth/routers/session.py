# (c) Copyright Datacraft, 2026
"""Admin session endpoints."""
import logging

from fastapi import APIRouter, Depends, Request, Response

from admin_auth import schema
from admin_auth.config import Settings
from admin_auth.dependencies import (
	get_app_settings,
	get_current_admin,
	get_session_manager,
)
from admin_auth.services import SessionManager
from admin_auth.utils import get_token

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/admin/auth", tags=["Authentication"])


@router.get("/session", response_model=schema.SessionResponse)
async def current_session(
	admin: schema.AdminProfile = Depends(get_current_admin),
) -> schema.SessionResponse:
	"""Check whether the request carries a valid session."""
	return schema.SessionResponse(authenticated=True, admin=admin)


@router.post("/logout", response_model=schema.SuccessResponse)
async def logout(
	request: Request,
	response: Response,
	sessions: SessionManager = Depends(get_session_manager),
	settings: Settings = Depends(get_app_settings),
) -> schema.SuccessResponse:
	"""Destroy the current session. Safe to call without one."""
	sessions.destroy(get_token(request))
	response.delete_cookie(settings.session_cookie_name)
	return schema.SuccessResponse(success=True, message="Logged out successfully")
