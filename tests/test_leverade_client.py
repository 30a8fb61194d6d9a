"""Tests for the Leverade API client."""

import asyncio
from datetime import timedelta

import httpx
import pytest
import respx

from site_adapters.adapters.leverade import (
    LeveradeAPIError,
    LeveradeClient,
    LeveradeResponse,
    MatchNotFoundError,
    strip_authorization_headers,
)

from tests.leverade_api_mocks import LEVERADE_URL, LeveradeMockData


class TestLeveradeClient:
    """Test cases for LeveradeClient."""

    def test_initialization(self):
        """Test client initialization."""
        client = LeveradeClient(LEVERADE_URL + "/", request_timeout=5.0)
        assert client.base_url == LEVERADE_URL
        assert client.request_timeout == 5.0
        assert len(client.cache) == 0

    @pytest.mark.asyncio
    async def test_get_full_tournament(self, leverade_client):
        """Test the tournament is requested with its related resources."""
        document = LeveradeMockData.document(
            LeveradeMockData.resource("tournament", "12", name="Swiss Cup", gender="female"),
            included=[LeveradeMockData.team("7", "Bern"), LeveradeMockData.match("1001")],
        )

        with respx.mock(base_url=LEVERADE_URL) as respx_mock:
            route = respx_mock.get("/tournaments/12").mock(return_value=httpx.Response(200, json=document))

            response = await leverade_client.get_full_tournament(12)

        assert isinstance(response, LeveradeResponse)
        assert response.status_code == 200
        assert response.data["attributes"]["name"] == "Swiss Cup"
        assert [team["id"] for team in response.included_by_type("team")] == ["7"]
        assert response.find_included("match", 1001)["type"] == "match"
        assert response.find_included("match", 999) is None
        assert route.calls.last.request.url.params["include"] == (
            "groups,groups.rounds,groups.rounds.faceoffs,groups.rounds.matches,"
            "groups.rounds.matches.facility,groups.rounds.matches.results,teams"
        )

    @pytest.mark.asyncio
    async def test_get_standings(self, leverade_client):
        """Test the standings path."""
        with respx.mock(base_url=LEVERADE_URL) as respx_mock:
            respx_mock.get("/groups/3/standings").mock(
                return_value=httpx.Response(200, json={"data": [{"team": "7", "position": 1}]})
            )

            response = await leverade_client.get_standings(3)

        assert response.data == [{"team": "7", "position": 1}]
        assert response.included == []

    @pytest.mark.asyncio
    async def test_get_upcoming_matches(self, leverade_client):
        """Test upcoming matches are filtered after today within the season."""
        document = LeveradeMockData.document([LeveradeMockData.match("1001")])

        with respx.mock(base_url=LEVERADE_URL) as respx_mock:
            route = respx_mock.get("/matches").mock(return_value=httpx.Response(200, json=document))

            response = await leverade_client.get_upcoming_matches("77")

        params = route.calls.last.request.url.params
        assert params["filter"] == "datetime>2024-05-10,round.group.tournament.season.id:77"
        assert params["sort"] == "datetime"
        assert params["include"] == "round.group.tournament,teams,facility"
        assert len(response.data) == 1

    @pytest.mark.asyncio
    async def test_get_match_unwraps_single_result(self, leverade_client):
        """Test the match list envelope is unwrapped to the match itself."""
        document = LeveradeMockData.document([LeveradeMockData.match("1001")], included=[])

        with respx.mock(base_url=LEVERADE_URL) as respx_mock:
            route = respx_mock.get("/matches").mock(return_value=httpx.Response(200, json=document))

            response = await leverade_client.get_match(1001)

        assert response.data["id"] == "1001"
        assert route.calls.last.request.url.params["filter"] == "id:1001"
        assert "matchreferees.license.profile" in route.calls.last.request.url.params["include"]

    @pytest.mark.asyncio
    async def test_get_match_not_found(self, leverade_client):
        """Test an empty match list is reported as not found and not cached."""
        with respx.mock(base_url=LEVERADE_URL) as respx_mock:
            respx_mock.get("/matches").mock(return_value=httpx.Response(200, json=LeveradeMockData.document([])))

            with pytest.raises(MatchNotFoundError, match="Match 404 not found"):
                await leverade_client.get_match(404)

        assert len(leverade_client.cache) == 0

    @pytest.mark.asyncio
    async def test_get_teams(self, leverade_client):
        """Test teams are filtered on the tournament registration."""
        document = LeveradeMockData.document([LeveradeMockData.team("7", "Bern")])

        with respx.mock(base_url=LEVERADE_URL) as respx_mock:
            route = respx_mock.get("/teams").mock(return_value=httpx.Response(200, json=document))

            response = await leverade_client.get_teams(12)

        assert route.calls.last.request.url.params["filter"] == "registrable[tournament].id:12"
        assert response.data[0]["attributes"]["name"] == "Bern"

    @pytest.mark.asyncio
    async def test_identical_path_is_served_from_cache(self, leverade_client):
        """Test a second call for the same path does not hit the network."""
        with respx.mock(base_url=LEVERADE_URL) as respx_mock:
            route = respx_mock.get("/groups/3/standings").mock(return_value=httpx.Response(200, json={"data": []}))

            first = await leverade_client.get_standings(3)
            second = await leverade_client.get_standings(3)

        assert second is first
        assert route.call_count == 1
        assert "/groups/3/standings" in leverade_client.cache

    @pytest.mark.asyncio
    async def test_invalidate_cache_forces_a_fresh_call(self, leverade_client):
        """Test invalidate_cache replaces the cached response."""
        with respx.mock(base_url=LEVERADE_URL) as respx_mock:
            route = respx_mock.get("/groups/3/standings").mock(
                side_effect=[
                    httpx.Response(200, json={"data": ["old"]}),
                    httpx.Response(200, json={"data": ["new"]}),
                ]
            )

            first = await leverade_client.get_standings(3)
            refreshed = await leverade_client.get_standings(3, invalidate_cache=True)
            cached = await leverade_client.get_standings(3)

        assert route.call_count == 2
        assert refreshed is not first
        assert refreshed.data == ["new"]
        assert cached is refreshed

    @pytest.mark.asyncio
    async def test_different_paths_are_cached_separately(self, leverade_client):
        """Test the cache key is the request path."""
        with respx.mock(base_url=LEVERADE_URL) as respx_mock:
            respx_mock.get("/groups/3/standings").mock(return_value=httpx.Response(200, json={"data": [3]}))
            respx_mock.get("/groups/4/standings").mock(return_value=httpx.Response(200, json={"data": [4]}))

            three = await leverade_client.get_standings(3)
            four = await leverade_client.get_standings(4)

        assert three.data == [3]
        assert four.data == [4]
        assert len(leverade_client.cache) == 2

    @pytest.mark.asyncio
    async def test_concurrent_identical_requests_are_coalesced(self, leverade_client):
        """Test concurrent callers of the same path share one request."""
        with respx.mock(base_url=LEVERADE_URL) as respx_mock:
            route = respx_mock.get("/groups/3/standings").mock(return_value=httpx.Response(200, json={"data": []}))

            first, second = await asyncio.gather(
                leverade_client.get_standings(3),
                leverade_client.get_standings(3),
            )

        assert route.call_count == 1
        assert first is second

    @pytest.mark.asyncio
    async def test_cancelled_waiter_does_not_cancel_shared_request(self, leverade_client):
        """Test cancelling a caller joined to an in-flight request leaves the first caller served."""
        release = asyncio.Event()

        async def slow_standings(request):
            await release.wait()
            return httpx.Response(200, json={"data": ["shared"]})

        with respx.mock(base_url=LEVERADE_URL) as respx_mock:
            route = respx_mock.get("/groups/3/standings").mock(side_effect=slow_standings)

            first = asyncio.create_task(leverade_client.get_standings(3))
            await asyncio.sleep(0)
            second = asyncio.create_task(leverade_client.get_standings(3))
            await asyncio.sleep(0)

            second.cancel()
            with pytest.raises(asyncio.CancelledError):
                await second

            release.set()
            response = await first

        assert response.data == ["shared"]
        assert route.call_count == 1
        assert "/groups/3/standings" in leverade_client.cache

    @pytest.mark.asyncio
    async def test_cancelled_first_caller_does_not_cancel_shared_request(self, leverade_client):
        """Test the request started by a cancelled caller still serves the callers joined to it."""
        release = asyncio.Event()

        async def slow_standings(request):
            await release.wait()
            return httpx.Response(200, json={"data": ["shared"]})

        with respx.mock(base_url=LEVERADE_URL) as respx_mock:
            route = respx_mock.get("/groups/3/standings").mock(side_effect=slow_standings)

            first = asyncio.create_task(leverade_client.get_standings(3))
            await asyncio.sleep(0)
            second = asyncio.create_task(leverade_client.get_standings(3))
            await asyncio.sleep(0)

            first.cancel()
            with pytest.raises(asyncio.CancelledError):
                await first

            release.set()
            response = await second

        assert response.data == ["shared"]
        assert route.call_count == 1
        assert leverade_client.cache.get("/groups/3/standings") is response

    @pytest.mark.asyncio
    async def test_failed_coalesced_request_reaches_every_caller_and_is_not_cached(self, leverade_client):
        """Test a failed shared request raises for all waiting callers and the next call retries."""
        with respx.mock(base_url=LEVERADE_URL) as respx_mock:
            route = respx_mock.get("/groups/3/standings").mock(
                side_effect=[
                    httpx.Response(500, text="Internal Server Error"),
                    httpx.Response(200, json={"data": ["recovered"]}),
                ]
            )

            results = await asyncio.gather(
                leverade_client.get_standings(3),
                leverade_client.get_standings(3),
                return_exceptions=True,
            )

            assert route.call_count == 1
            assert all(isinstance(result, LeveradeAPIError) for result in results)
            assert "/groups/3/standings" not in leverade_client.cache

            retried = await leverade_client.get_standings(3)

        assert route.call_count == 2
        assert retried.data == ["recovered"]

    @pytest.mark.asyncio
    async def test_authorization_headers_are_stripped(self):
        """Test client wide and per request authorization headers are removed."""
        async with LeveradeClient(LEVERADE_URL, headers={"Authorization": "Bearer leaked"}) as client:
            with respx.mock(base_url=LEVERADE_URL) as respx_mock:
                route = respx_mock.get("/groups/3/standings").mock(return_value=httpx.Response(200, json={"data": []}))

                await client.get_standings(3)
                assert "authorization" not in route.calls.last.request.headers

                await client.client.get("/groups/3/standings", headers={"authorization": "Bearer per-request"})
                assert "authorization" not in route.calls.last.request.headers

    @pytest.mark.asyncio
    async def test_strip_authorization_headers(self):
        """Test the request hook on its own."""
        request = httpx.Request("GET", LEVERADE_URL, headers={"Authorization": "Bearer x", "Accept": "application/json"})

        await strip_authorization_headers(request)

        assert "authorization" not in request.headers
        assert request.headers["accept"] == "application/json"

    @pytest.mark.asyncio
    async def test_missing_data(self, leverade_client):
        """Test a body without data is an error."""
        with respx.mock(base_url=LEVERADE_URL) as respx_mock:
            respx_mock.get("/groups/3/standings").mock(return_value=httpx.Response(200, json={"errors": []}))

            with pytest.raises(LeveradeAPIError, match="Error when retrieving"):
                await leverade_client.get_standings(3)

        assert len(leverade_client.cache) == 0

    @pytest.mark.asyncio
    async def test_body_is_not_json(self, leverade_client):
        """Test an HTML page served with a 200 status is an API error."""
        with respx.mock(base_url=LEVERADE_URL) as respx_mock:
            respx_mock.get("/groups/3/standings").mock(return_value=httpx.Response(200, text="<html>oops</html>"))

            with pytest.raises(LeveradeAPIError, match="Invalid response body"):
                await leverade_client.get_standings(3)

        assert len(leverade_client.cache) == 0

    def test_default_clock_is_utc(self):
        """Test the default clock returns an aware UTC datetime."""
        now = LeveradeClient(LEVERADE_URL).clock()

        assert now.utcoffset() == timedelta(0)

    @pytest.mark.asyncio
    async def test_server_error(self, leverade_client):
        """Test server error response handling."""
        with respx.mock(base_url=LEVERADE_URL) as respx_mock:
            respx_mock.get("/groups/3/standings").mock(return_value=httpx.Response(503, text="Unavailable"))

            with pytest.raises(LeveradeAPIError) as exc_info:
                await leverade_client.get_standings(3)

        assert "API error: 503" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_request_error(self, leverade_client):
        """Test HTTP request exception handling."""
        with respx.mock(base_url=LEVERADE_URL) as respx_mock:
            respx_mock.get("/groups/3/standings").mock(side_effect=httpx.ConnectError("Connection failed"))

            with pytest.raises(LeveradeAPIError) as exc_info:
                await leverade_client.get_standings(3)

        assert "Request failed" in str(exc_info.value)
