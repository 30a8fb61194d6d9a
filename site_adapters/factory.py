"""Factory for the CMS and Leverade clients.

Web handlers build one ``Services`` bundle per request locale and use its
clients the way page components use the injected services.
"""

from dataclasses import dataclass
from typing import Optional

import structlog

from .adapters.cms import CMSClient
from .adapters.leverade import LeveradeClient
from .config import Config
from .core.locale import LocaleContext

logger = structlog.get_logger()


def create_cms_client(config: Config, locale: Optional[str] = None) -> CMSClient:
    """Create a CMS client for ``locale`` (the default locale when omitted)."""
    locale_context = LocaleContext(locale=locale or config.default_locale, default_locale=config.default_locale)
    logger.info("Creating CMS client", cms_url=config.cms_url, locale=locale_context.locale)
    return CMSClient(
        base_url=config.cms_url,
        locale=locale_context,
        token=config.cms_token or None,
        request_timeout=config.http_timeout_seconds,
    )


def create_leverade_client(config: Config) -> LeveradeClient:
    logger.info("Creating Leverade client", leverade_url=config.leverade_url)
    return LeveradeClient(base_url=config.leverade_url, request_timeout=config.http_timeout_seconds)


@dataclass
class Services:
    """The clients available to request handlers."""

    cms: CMSClient
    leverade: LeveradeClient

    async def __aenter__(self) -> "Services":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self) -> None:
        await self.cms.close()
        await self.leverade.close()


def create_services(config: Config, locale: Optional[str] = None) -> Services:
    """Create both clients from the configuration.

    Args:
        config: Application configuration
        locale: Locale of the request, the default locale when omitted

    Returns:
        Services bundle, to be closed once no longer needed
    """
    return Services(cms=create_cms_client(config, locale), leverade=create_leverade_client(config))
