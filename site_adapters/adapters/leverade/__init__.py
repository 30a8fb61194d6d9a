"""Leverade API adapter package."""

from .cache import ResponseCache
from .client import (
    LeveradeAPIError,
    LeveradeClient,
    LeveradeError,
    MatchNotFoundError,
    strip_authorization_headers,
)
from .models import LeveradeResponse

__all__ = [
    # Client
    "LeveradeClient",
    "ResponseCache",
    "strip_authorization_headers",
    # Exceptions
    "LeveradeError",
    "LeveradeAPIError",
    "MatchNotFoundError",
    # Data classes
    "LeveradeResponse",
]
