"""Shared pytest fixtures for the adapter tests."""

from datetime import datetime

import pytest
import pytest_asyncio

from site_adapters.adapters.cms import CMSClient
from site_adapters.adapters.leverade import LeveradeClient
from site_adapters.core.locale import LocaleContext

from tests.cms_api_mocks import CMS_URL
from tests.leverade_api_mocks import LEVERADE_URL

FROZEN_NOW = datetime(2024, 5, 10, 12, 0)


@pytest.fixture
def frozen_clock():
    """Clock always returning 2024-05-10 12:00."""
    return lambda: FROZEN_NOW


@pytest.fixture
def french_locale():
    """Request in French with English as fallback."""
    return LocaleContext(locale="fr", default_locale="en")


@pytest_asyncio.fixture
async def cms_client(french_locale, frozen_clock):
    """CMS client pointing at the mocked CMS."""
    client = CMSClient(CMS_URL, locale=french_locale, clock=frozen_clock)
    yield client
    await client.close()


@pytest_asyncio.fixture
async def leverade_client(frozen_clock):
    """Leverade client pointing at the mocked API."""
    client = LeveradeClient(LEVERADE_URL, clock=frozen_clock)
    yield client
    await client.close()
