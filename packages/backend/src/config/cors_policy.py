"""CORS policy model and YAML loader.

Provides a typed Pydantic model for the cross-origin policy applied by the
CORS middleware and a loader that parses the YAML config into it.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

logger = logging.getLogger(__name__)


class CorsPolicy(BaseModel):
    """Fixed cross-origin access policy."""

    allow_origins: list[str] = Field(default_factory=lambda: ["*"])
    allow_methods: list[str] = Field(
        default_factory=lambda: ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
    )
    allow_headers: list[str] = Field(
        default_factory=lambda: [
            "Origin",
            "Content-Type",
            "Accept",
            "Authorization",
            "X-Request-ID",
        ]
    )
    expose_headers: list[str] = Field(default_factory=lambda: ["X-Request-ID"])
    allow_credentials: bool = False
    max_age: int = Field(default=86400, ge=0)

    @property
    def allows_any_origin(self) -> bool:
        return "*" in self.allow_origins

    def resolve_origin(self, origin: str | None) -> str | None:
        """Return the value for ``Access-Control-Allow-Origin``, or None to omit it."""
        if self.allows_any_origin and not self.allow_credentials:
            return "*"
        if origin and (self.allows_any_origin or origin in self.allow_origins):
            return origin
        return None


_DEFAULT_POLICY = CorsPolicy()


def load_cors_policy(yaml_path: str) -> CorsPolicy:
    """Parse a CORS policy YAML file into a CorsPolicy.

    Args:
        yaml_path: Path to the YAML configuration file.

    Returns:
        The parsed policy. If the file is missing, malformed or fails
        validation, returns the built-in default policy.
    """
    path = Path(yaml_path)

    if not path.exists():
        logger.warning("CORS policy file not found at %s, using built-in defaults", yaml_path)
        return _DEFAULT_POLICY

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        logger.error("Failed to parse CORS policy YAML at %s: %s", yaml_path, exc)
        return _DEFAULT_POLICY

    if not isinstance(raw, dict) or not isinstance(raw.get("cors"), dict):
        logger.error("CORS policy YAML at %s missing top-level 'cors' mapping", yaml_path)
        return _DEFAULT_POLICY

    try:
        policy = CorsPolicy(**raw["cors"])
    except PydanticValidationError as exc:
        logger.error("Invalid CORS policy in %s: %s", yaml_path, exc)
        return _DEFAULT_POLICY

    logger.info("Loaded CORS policy from %s (origins=%s)", yaml_path, policy.allow_origins)
    return policy
