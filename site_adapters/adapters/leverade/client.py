"""Leverade API client for tournaments, standings, matches and teams."""

import asyncio
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Union

import httpx
import structlog

from site_adapters.core.dates import DateFormatter, format_date, utc_now

from .cache import ResponseCache
from .models import LeveradeResponse

logger = structlog.get_logger()

Identifier = Union[int, str]
DocumentTransform = Callable[[Dict[str, Any]], Dict[str, Any]]

FULL_TOURNAMENT_INCLUDES = [
    "groups",
    "groups.rounds",
    "groups.rounds.faceoffs",
    "groups.rounds.matches",
    "groups.rounds.matches.facility",
    "groups.rounds.matches.results",
    "teams",
]

UPCOMING_MATCHES_INCLUDES = ["round.group.tournament", "teams", "facility"]

MATCH_INCLUDES = [
    "round",
    "round.group",
    "round.group.tournament",
    "faceoff",
    "teams",
    "results",
    "periods",
    "matchreferees.license.profile",
    "periods.results",
    "results",
    "facility",
]


class LeveradeError(Exception):
    """Base exception for Leverade errors."""

    pass


class LeveradeAPIError(LeveradeError):
    """Leverade could not be reached or returned an unusable response."""

    pass


class MatchNotFoundError(LeveradeError):
    """No match has the requested identifier."""

    pass


async def strip_authorization_headers(request: httpx.Request) -> None:
    """Remove authorization headers added by the hosting environment on server side requests."""
    request.headers.pop("authorization", None)


class LeveradeClient:
    """Leverade client caching every response by request path."""

    def __init__(
        self,
        base_url: str,
        request_timeout: float = 30.0,
        format_date: DateFormatter = format_date,
        clock: Callable[[], datetime] = utc_now,
        headers: Optional[Dict[str, str]] = None,
    ):
        """Initialize the Leverade client.

        Args:
            base_url: Base URL of the Leverade API
            request_timeout: Request timeout in seconds
            format_date: Date formatter taking date-fns style patterns
            clock: Returns the current time, UTC by default
            headers: Extra headers sent with every request
        """
        self.base_url = base_url.rstrip("/")
        self.request_timeout = request_timeout
        self.format_date = format_date
        self.clock = clock
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Accept": "application/vnd.api+json", **(headers or {})},
            timeout=request_timeout,
            event_hooks={"request": [strip_authorization_headers]},
        )

        self.cache: ResponseCache[LeveradeResponse] = ResponseCache()
        # Requests currently being fetched, shared by concurrent callers of the same path
        self._in_flight: Dict[str, "asyncio.Task[LeveradeResponse]"] = {}

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.client.aclose()

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    async def _make_request(self, path: str, transform: Optional[DocumentTransform] = None) -> LeveradeResponse:
        """Fetch a path and store the decoded response in the cache.

        Raises:
            LeveradeAPIError: On transport errors, HTTP errors or a body without ``data``
        """
        logger.debug("Fetching from Leverade", path=path)
        try:
            response = await self.client.get(path)
        except httpx.RequestError as e:
            logger.error("HTTP request failed", path=path, error=str(e))
            raise LeveradeAPIError(f"Request failed: {e}")

        if response.status_code >= 400:
            logger.error(
                "Leverade API error",
                path=path,
                status_code=response.status_code,
                response=response.text,
            )
            raise LeveradeAPIError(f"API error: {response.status_code}")

        try:
            document = response.json()
        except ValueError as e:
            logger.error("Invalid JSON from Leverade", path=path, error=str(e))
            raise LeveradeAPIError(f"Invalid response body: {e}")
        if not isinstance(document, dict) or "data" not in document:
            raise LeveradeAPIError(f"Error when retrieving {path}")
        if transform is not None:
            document = transform(document)

        result = LeveradeResponse.from_document(response.status_code, document)
        self.cache.set(path, result)
        return result

    async def _get_cached_query(
        self,
        path: str,
        invalidate_cache: bool = False,
        transform: Optional[DocumentTransform] = None,
    ) -> LeveradeResponse:
        """Return the cached response for ``path`` or fetch it.

        Concurrent calls for the same path while it is being fetched wait for
        that fetch instead of sending their own request. Cancelling one caller
        leaves the shared fetch running for the others.
        """
        if not invalidate_cache:
            cached = self.cache.get(path)
            if cached is not None:
                logger.debug("Leverade cache hit", path=path)
                return cached
            pending = self._in_flight.get(path)
            if pending is not None:
                logger.debug("Joining in-flight Leverade request", path=path)
                return await asyncio.shield(pending)

        task = asyncio.ensure_future(self._make_request(path, transform))
        self._in_flight[path] = task
        task.add_done_callback(lambda done: self._forget_in_flight(path, done))
        return await asyncio.shield(task)

    def _forget_in_flight(self, path: str, task: "asyncio.Task[LeveradeResponse]") -> None:
        if self._in_flight.get(path) is task:
            del self._in_flight[path]
        # Marks the error as retrieved once every caller is gone
        if not task.cancelled():
            task.exception()

    async def get_full_tournament(self, tournament_id: Identifier, invalidate_cache: bool = False) -> LeveradeResponse:
        """Get a tournament with its groups, rounds, matches, results and teams."""
        return await self._get_cached_query(
            f"/tournaments/{tournament_id}?include={','.join(FULL_TOURNAMENT_INCLUDES)}",
            invalidate_cache=invalidate_cache,
        )

    async def get_standings(self, group_id: Identifier, invalidate_cache: bool = False) -> LeveradeResponse:
        """Get the standings of a group."""
        return await self._get_cached_query(f"/groups/{group_id}/standings", invalidate_cache=invalidate_cache)

    async def get_upcoming_matches(self, season_id: Identifier, invalidate_cache: bool = False) -> LeveradeResponse:
        """Get the matches of a season after today, soonest first."""
        today = self.format_date(self.clock(), "yyyy-MM-dd")
        return await self._get_cached_query(
            f"/matches?filter=datetime>{today},round.group.tournament.season.id:{season_id}"
            f"&sort=datetime&include={','.join(UPCOMING_MATCHES_INCLUDES)}",
            invalidate_cache=invalidate_cache,
        )

    async def get_match(self, match_id: Identifier, invalidate_cache: bool = False) -> LeveradeResponse:
        """Get a single match with everything needed to display it.

        `GET /matches/{id}` requires authentication, so the match is read from
        a list filtered on its id.

        Raises:
            MatchNotFoundError: If no match has this id
        """

        def unwrap_match(document: Dict[str, Any]) -> Dict[str, Any]:
            matches = document["data"]
            if not matches:
                logger.info("Match not found", match_id=match_id)
                raise MatchNotFoundError(f"Match {match_id} not found")
            return {**document, "data": matches[0]}

        return await self._get_cached_query(
            f"/matches?filter=id:{match_id}&include={','.join(MATCH_INCLUDES)}",
            invalidate_cache=invalidate_cache,
            transform=unwrap_match,
        )

    async def get_teams(self, tournament_id: Identifier, invalidate_cache: bool = False) -> LeveradeResponse:
        """Get the teams registered in a tournament."""
        return await self._get_cached_query(
            f"/teams?filter=registrable[tournament].id:{tournament_id}",
            invalidate_cache=invalidate_cache,
        )
