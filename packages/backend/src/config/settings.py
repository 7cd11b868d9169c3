"""Pydantic Settings for the backend service.

Environment variables are read without a prefix so that the deployment
contract stays ``PORT``, ``DATABASE_URL`` and friends. A ``.env`` file in the
working directory is honoured; empty values count as unset.
Example: PORT=9000 DATABASE_URL=postgresql+psycopg://user:pw@host/db
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

_DEFAULT_CORS_POLICY_PATH = str(Path(__file__).with_name("cors_policy.yaml"))


class ServiceSettings(BaseSettings):
    """Immutable service configuration snapshot, built once at startup."""

    # Server
    host: str = "0.0.0.0"
    port: int = 8080
    environment: str = "development"
    log_level: str = "INFO"
    app_version: str = "1.0.0"

    # Database (Supabase). Empty disables datastore-dependent checks.
    database_url: str = ""
    supabase_url: str = ""
    supabase_anon_key: str = ""

    # JWT
    jwt_secret: str = ""
    jwt_expiry_hours: int = 1
    refresh_expiry_hours: int = 168  # 7 days

    # Razorpay
    razorpay_key_id: str = ""
    razorpay_key_secret: str = ""
    razorpay_webhook_secret: str = ""

    # Firebase Cloud Messaging
    fcm_server_key: str = ""

    # MSG91 (SMS)
    msg91_auth_key: str = ""
    msg91_sender_id: str = ""
    msg91_flow_id: str = ""

    # Health probes / shutdown
    probe_timeout_seconds: float = Field(default=5.0, gt=0)
    shutdown_timeout_seconds: int = Field(default=30, ge=0)

    # CORS
    cors_policy_path: str = _DEFAULT_CORS_POLICY_PATH

    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
        frozen=True,
    )

    @field_validator(
        "port",
        "jwt_expiry_hours",
        "refresh_expiry_hours",
        "shutdown_timeout_seconds",
        mode="before",
    )
    @classmethod
    def _int_or_default(cls, value: object, info) -> object:  # noqa: ANN001
        """Fall back to the field default when an integer env value is malformed."""
        if isinstance(value, str):
            try:
                return int(value.strip())
            except ValueError:
                default = cls.model_fields[info.field_name].default
                logger.warning(
                    "Invalid integer for %s: %r, using default %s",
                    info.field_name.upper(),
                    value,
                    default,
                )
                return default
        return value

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"
