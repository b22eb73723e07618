import logging

from functools import lru_cache
from enum import Enum

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


logger = logging.getLogger(__name__)


class Environment(str, Enum):
    DEVELOPMENT = "development"
    PRODUCTION = "production"


class Settings(BaseSettings):
    environment: Environment = Environment.DEVELOPMENT
    db_url: str = "sqlite:///./admin_auth.db"
    log_level: str = "INFO"

    # WebAuthn settings
    webauthn_rp_id: str = Field(default="localhost", description="Relying Party ID (domain)")
    webauthn_rp_name: str = Field(default="Admin Panel", description="Relying Party display name")
    webauthn_origin: str = Field(default="http://localhost:3002", description="Expected origin for WebAuthn")
    webauthn_timeout: int = Field(default=60000, gt=0, description="WebAuthn timeout in ms")
    challenge_ttl_minutes: int = Field(default=5, gt=0, description="Lifetime of a ceremony challenge")

    # Session settings
    session_cookie_name: str = "admin_session"
    session_expire_minutes: int = Field(gt=0, default=720)
    session_cookie_secure: bool = False

    # Challenge janitor
    sweep_on_request: bool = Field(default=True, description="Sweep expired challenges after each request")
    sweep_interval_seconds: int = Field(default=0, ge=0, description="Background sweep period, 0 disables")

    model_config = SettingsConfigDict(env_prefix='admin_')

    @property
    def is_production(self) -> bool:
        return self.environment == Environment.PRODUCTION


@lru_cache()
def get_settings():
    return Settings()
