# (c) Copyright Datacraft, 2026
"""WebAuthn API endpoints for admin security keys."""
import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Request, Response

from admin_auth import schema
from admin_auth.config import Settings
from admin_auth.exceptions import AdminAuthError
from admin_auth.dependencies import (
	get_app_settings,
	get_authentication_service,
	get_credential_registry,
	get_current_admin,
	get_registration_service,
)
from admin_auth.services import (
	AuthenticationService,
	CredentialRegistry,
	RegistrationService,
)
from admin_auth.utils import get_token
from admin_auth.webauthn.options import AuthenticationOptions, RegistrationOptions

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/admin/webauthn", tags=["WebAuthn"])


@router.post("/register/options", response_model=RegistrationOptions)
async def registration_options(
	request: schema.RegistrationOptionsRequest,
	service: RegistrationService = Depends(get_registration_service),
) -> RegistrationOptions:
	"""Start security key registration (creates the admin on first use)."""
	return await service.begin(request.email)


@router.post("/register/verify", response_model=schema.RegistrationVerifyResponse)
async def registration_verify(
	request: schema.RegistrationVerifyRequest,
	service: RegistrationService = Depends(get_registration_service),
) -> schema.RegistrationVerifyResponse:
	"""Complete security key registration."""
	result = await service.verify(
		request.email,
		request.credential,
		device_name=request.device_name,
	)
	return schema.RegistrationVerifyResponse(
		verified=result.verified,
		credential_id=result.credential_id,
		device_name=result.device_name,
		message="Security key registered successfully",
	)


@router.post("/authenticate/options", response_model=AuthenticationOptions)
async def authentication_options(
	request: schema.AuthenticationOptionsRequest,
	service: AuthenticationService = Depends(get_authentication_service),
) -> AuthenticationOptions:
	"""Start security key authentication (no session required)."""
	return await service.begin(request.email)


@router.post("/authenticate/verify", response_model=schema.AuthenticationVerifyResponse)
async def authentication_verify(
	body: schema.AuthenticationVerifyRequest,
	request: Request,
	response: Response,
	service: AuthenticationService = Depends(get_authentication_service),
	settings: Settings = Depends(get_app_settings),
) -> schema.AuthenticationVerifyResponse:
	"""Complete security key authentication and open a session."""
	result = await service.verify(
		body.email,
		body.credential,
		current_session=get_token(request),
	)

	response.set_cookie(
		key=settings.session_cookie_name,
		value=result.session_token,
		max_age=settings.session_expire_minutes * 60,
		httponly=True,
		secure=settings.session_cookie_secure,
		samesite="lax",
	)
	return schema.AuthenticationVerifyResponse(
		verified=result.verified,
		admin=result.profile,
	)


@router.get("/credentials", response_model=schema.CredentialListResponse)
async def list_credentials(
	admin: schema.AdminProfile = Depends(get_current_admin),
	registry: CredentialRegistry = Depends(get_credential_registry),
) -> schema.CredentialListResponse:
	"""List the logged-in admin's security keys."""
	credentials = registry.list_credentials(admin.id)
	return schema.CredentialListResponse(
		credentials=[
			schema.CredentialInfo.model_validate(cred) for cred in credentials
		]
	)


@router.delete("/credentials/{credential_id}", response_model=schema.SuccessResponse)
async def delete_credential(
	credential_id: UUID,
	admin: schema.AdminProfile = Depends(get_current_admin),
	registry: CredentialRegistry = Depends(get_credential_registry),
) -> schema.SuccessResponse:
	"""Delete a security key. The last one can never be removed."""
	try:
		registry.delete_credential(admin.id, credential_id)
		registry.db.commit()
	except AdminAuthError:
		registry.db.rollback()
		raise

	return schema.SuccessResponse(success=True, message="Security key removed")
