"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

from delivery_tracker.domain.capture import CameraConstraints

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_anon_key: str
    deliveries_table: str = "deliveries"
    roles_table: str = "user_roles"
    camera_index: int = 0
    camera_facing_mode: str = "environment"
    camera_width: int = 1280
    camera_height: int = 720
    jpeg_quality: int = 85
    notification_limit: int = 50
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    def camera_constraints(self) -> CameraConstraints:
        """Return the preferred camera request."""
        return CameraConstraints(
            facing_mode=self.camera_facing_mode,
            width=self.camera_width,
            height=self.camera_height,
        )
