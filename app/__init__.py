"""
App package - Application configuration and core utilities.
Contains settings, exceptions, and foundational application code.
"""

from app.config import settings
from app.exceptions import (
    CaloError,
    ServiceValidationError,
    NotFoundError,
    ConflictError,
    LimitExceededError,
)

__all__ = [
    "settings",
    "CaloError",
    "ServiceValidationError",
    "NotFoundError",
    "ConflictError",
    "LimitExceededError",
]
