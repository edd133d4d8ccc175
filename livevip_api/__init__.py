"""Live stream collection API backing the dashboard front end."""

from .app import create_app
from .errors import LiveVipError, NotFound, StorageUnavailable, ValidationError

__all__ = [
    "create_app",
    "LiveVipError",
    "NotFound",
    "StorageUnavailable",
    "ValidationError",
]
