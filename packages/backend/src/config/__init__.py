"""Configuration module: settings and CORS policy."""

from src.config.cors_policy import CorsPolicy, load_cors_policy
from src.config.settings import ServiceSettings

__all__ = [
    "CorsPolicy",
    "ServiceSettings",
    "load_cors_policy",
]
