"""Directus CMS adapter package."""

from .client import (
    CMSAPIError,
    CMSClient,
    CMSError,
    TeamNotFoundError,
    TranslationUnavailableError,
)

__all__ = [
    # Client
    "CMSClient",
    # Exceptions
    "CMSError",
    "CMSAPIError",
    "TranslationUnavailableError",
    "TeamNotFoundError",
]
