# (c) Copyright Datacraft, 2026
"""API routers."""
from .webauthn import router as webauthn_router
from .session import router as session_router

__all__ = ["webauthn_router", "session_router"]
