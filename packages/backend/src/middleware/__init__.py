"""Middleware package: recovery, request logging, CORS and exception handlers."""

from src.middleware.cors import CORSMiddleware
from src.middleware.error_handler import register_error_handlers
from src.middleware.recovery import RecoveryMiddleware
from src.middleware.request_logger import RequestLoggerMiddleware

__all__ = [
    "CORSMiddleware",
    "RecoveryMiddleware",
    "RequestLoggerMiddleware",
    "register_error_handlers",
]
