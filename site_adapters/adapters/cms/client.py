"""Directus CMS client for news, events and national teams."""

import copy
import json
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Union

import httpx
import structlog

from site_adapters.core.dates import DateFormatter, format_date, to_utc_iso, utc_now
from site_adapters.core.entities import CalendarEvent, ListMeta, ListResult, NewsEntry, Team
from site_adapters.core.filters import FilterExpression, any_of, condition
from site_adapters.core.locale import LocaleContext, NotFound

from .normalizers import flatten_news, normalize_event, normalize_team

logger = structlog.get_logger()


NEWS_LIST_FIELDS = [
    "id",
    "main_image.id",
    "main_image.description",
    "translations.languages_code",
    "translations.slug",
    "translations.title",
    "categories.id",
    "categories.news_categories_id.translations.slug",
    "categories.news_categories_id.translations.name",
]

NEWS_ENTRY_FIELDS = [
    "id",
    "date_created",
    "date_updated",
    "main_image.id",
    "main_image.description",
    "translations.languages_code",
    "translations.slug",
    "translations.title",
    "translations.body",
    "categories.id",
    "categories.news_categories_id.translations.slug",
    "categories.news_categories_id.translations.name",
]

EVENT_FIELDS = [
    "id",
    "name",
    "date_start",
    "time_start",
    "date_end",
    "time_end",
    "status",
    "description",
    "venue.id",
    "venue.name",
    "venue_other",
    "image.id",
    "image.description",
    "url",
    "category",
]

TEAM_FIELDS = [
    "name",
    "slug",
    "gender",
    "translations.languages_code",
    "translations.name",
    "translations.slug",
    "players.id",
    "players.first_name",
    "players.last_name",
    "players.number",
    "players.is_captain",
    "players.birth_year",
    "players.gender",
    "players.club.name",
    "players.positions.player_positions_id",
    "players.date_start",
    "players.date_end",
    "players.track_record",
    "players.portrait_square_head",
]


class CMSError(Exception):
    """Base exception for CMS errors."""

    pass


class CMSAPIError(CMSError):
    """The CMS could not be reached or returned an unusable response."""

    pass


class TranslationUnavailableError(CMSError):
    """An entry has no translation in the requested nor the default locale."""

    pass


class TeamNotFoundError(CMSError):
    """No team matches the requested slug."""

    pass


def translations_filter(locale: str) -> Dict[str, Any]:
    """Deep query keeping only the translations written in ``locale``."""
    # Directus expects `_filter` inside `deep`, not `filter`
    return {"_filter": {"languages_code": {"_eq": locale}}}


class CMSClient:
    """Directus client returning entities flattened to the request locale."""

    def __init__(
        self,
        base_url: str,
        locale: LocaleContext,
        token: Optional[str] = None,
        request_timeout: float = 30.0,
        format_date: DateFormatter = format_date,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize the CMS client.

        Args:
            base_url: Base URL of the Directus instance
            locale: Current and default locale of the request
            token: Optional static access token
            request_timeout: Request timeout in seconds
            format_date: Date formatter taking date-fns style patterns
            clock: Returns the current time, UTC by default
        """
        self.base_url = base_url.rstrip("/")
        self.locale = locale
        self.request_timeout = request_timeout
        self.format_date = format_date
        self.clock = clock

        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self.client = httpx.AsyncClient(base_url=self.base_url, headers=headers, timeout=request_timeout)

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.client.aclose()

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    def for_locale(self, locale: LocaleContext) -> "CMSClient":
        """Return a client bound to another locale sharing the same connection pool."""
        bound = copy.copy(self)
        bound.locale = locale
        return bound

    async def _make_request(self, path: str, params: Dict[str, Any], error_message: str) -> Dict[str, Any]:
        """Make a GET request to the CMS and return the decoded body.

        Raises:
            CMSAPIError: On transport errors, HTTP errors or a body without ``data``
        """
        try:
            response = await self.client.get(path, params=params)
        except httpx.RequestError as e:
            logger.error("HTTP request failed", path=path, error=str(e))
            raise CMSAPIError(f"Request failed: {e}")

        if response.status_code >= 400:
            logger.error(
                "CMS API error",
                path=path,
                status_code=response.status_code,
                response=response.text,
            )
            raise CMSAPIError(f"API error: {response.status_code}")

        try:
            body = response.json()
        except ValueError as e:
            logger.error("Invalid JSON from CMS", path=path, error=str(e))
            raise CMSAPIError(f"Invalid response body: {e}")
        if not isinstance(body, dict) or body.get("data") is None:
            raise CMSAPIError(error_message)
        return body

    @staticmethod
    def _query_params(
        fields: List[str],
        filter: Optional[Dict[str, Any]] = None,
        deep: Optional[Dict[str, Any]] = None,
        limit: Optional[int] = None,
        page: Optional[int] = None,
        meta: Optional[str] = None,
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = {"fields": ",".join(fields)}
        if filter is not None:
            params["filter"] = json.dumps(filter)
        if deep is not None:
            params["deep"] = json.dumps(deep)
        if limit is not None:
            params["limit"] = limit
        if page is not None:
            params["page"] = page
        if meta is not None:
            params["meta"] = meta
        return params

    @staticmethod
    def _filter_count(body: Dict[str, Any]) -> int:
        return (body.get("meta") or {}).get("filter_count") or 0

    def _categories_deep(self) -> Dict[str, Any]:
        return {"categories": {"news_categories_id": {"translations": translations_filter(self.locale.locale)}}}

    def news_filter(self, category_id: Optional[int] = None, with_image_only: bool = False) -> FilterExpression:
        """Published news, optionally in one category and/or with a main image."""
        return (
            FilterExpression()
            .where("status", "_eq", "published")
            .add_if(category_id, condition("categories.id", "_eq", category_id))
            .add_if(with_image_only, condition("main_image", "_nnull", True))
        )

    def events_filter(
        self, category_id: Optional[int] = None, month: Optional[str] = None, upcoming: bool = False
    ) -> FilterExpression:
        """Non draft events, optionally in one category, one month (``yyyy-MM``) or from now on."""
        expression = (
            FilterExpression()
            .where("status", "_neq", "draft")
            .add_if(category_id, condition("categories.id", "_eq", category_id))
        )
        if month:
            # Not all months have 31 days, the string range still matches the whole month
            expression.add(
                FilterExpression()
                .where("date_start", "_gte", f"{month}-01")
                .where("date_start", "_lte", f"{month}-31")
                .to_dict()
            )
        if upcoming:
            expression.where("date_start", "_gte", to_utc_iso(self.clock()))
        return expression

    @staticmethod
    def team_filter(team_slug: str) -> Dict[str, Any]:
        """Match the team slug or the slug of any of its translations."""
        return any_of(
            condition("slug", "_eq", team_slug),
            condition("translations.slug", "_eq", team_slug),
        )

    async def get_news(
        self,
        limit: int,
        page: int,
        category_id: Optional[int] = None,
        with_image_only: bool = False,
    ) -> ListResult[NewsEntry]:
        """Get a page of published news in the request locale.

        News not translated in the request locale are shown in the default
        locale. News available in neither are left out.

        Raises:
            CMSAPIError: If the news could not be retrieved
        """
        params = self._query_params(
            NEWS_LIST_FIELDS,
            filter=self.news_filter(category_id, with_image_only).to_dict(),
            deep=self._categories_deep(),
            limit=limit,
            page=page,
            meta="filter_count",
        )
        body = await self._make_request("/items/news", params, "Error when retrieving news")

        news: List[NewsEntry] = []
        for raw_entry in body["data"]:
            if not raw_entry or not raw_entry.get("translations"):
                continue
            match = flatten_news(raw_entry, self.locale)
            if isinstance(match, NotFound):
                logger.warning(
                    "Discarding news entry for display",
                    news_id=raw_entry.get("id"),
                    reason=match.reason,
                )
                continue
            news.append(match.value)

        filtered_category_name = None
        if category_id and news:
            for category in news[0].categories:
                if category.id == category_id:
                    filtered_category_name = category.name
                    break

        return ListResult(
            data=news,
            meta=ListMeta(total=self._filter_count(body), filtered_category_name=filtered_category_name),
        )

    async def get_one_news(self, news_id: Union[int, str]) -> NewsEntry:
        """Get a single news entry in the request locale or the default locale.

        Raises:
            CMSAPIError: If the news entry could not be retrieved
            TranslationUnavailableError: If it is translated in neither locale
        """
        params = self._query_params(NEWS_ENTRY_FIELDS, deep=self._categories_deep())
        body = await self._make_request(f"/items/news/{news_id}", params, "Error when retrieving news")
        raw_entry = body["data"]

        if not raw_entry.get("translations"):
            raise TranslationUnavailableError("News has no translations")

        match = flatten_news(raw_entry, self.locale)
        if isinstance(match, NotFound):
            raise TranslationUnavailableError("News entry not available in default locale")
        return match.value

    async def get_events(
        self,
        limit: int,
        page: int,
        category_id: Optional[int] = None,
        month: Optional[str] = None,
        upcoming: bool = False,
    ) -> ListResult[CalendarEvent]:
        """Get a page of calendar events.

        Args:
            limit: Page size
            page: Page number, starting at 1
            category_id: Only events of this category
            month: Only events starting in this month (``yyyy-MM``)
            upcoming: Only events starting from now on

        Raises:
            CMSAPIError: If the events could not be retrieved
        """
        params = self._query_params(
            EVENT_FIELDS,
            filter=self.events_filter(category_id, month, upcoming).to_dict(),
            limit=limit,
            page=page,
            meta="filter_count",
        )
        body = await self._make_request("/items/events", params, "Error when retrieving events")

        events = []
        for raw_event in body["data"]:
            event = normalize_event(raw_event)
            if event is None:
                logger.debug("Skipping incomplete event", event_id=(raw_event or {}).get("id"))
                continue
            events.append(event)

        return ListResult(data=events, meta=ListMeta(total=self._filter_count(body)))

    async def get_team(self, team_slug: str) -> Team:
        """Get a national team and its active players by slug.

        Raises:
            CMSAPIError: If the team could not be retrieved
            TeamNotFoundError: If no team has this slug
        """
        params = self._query_params(
            TEAM_FIELDS,
            filter=self.team_filter(team_slug),
            deep={"translations": translations_filter(self.locale.locale)},
            limit=1,
        )
        body = await self._make_request("/items/national_teams", params, "Error when retrieving team")

        if not body["data"] or not body["data"][0]:
            logger.info("Team not found", team_slug=team_slug)
            raise TeamNotFoundError("No team found")

        today = self.format_date(self.clock(), "yyyy-MM-dd")
        return normalize_team(body["data"][0], self.locale.locale, today)
