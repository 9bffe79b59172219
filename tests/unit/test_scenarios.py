"""Offline runs of both scenarios, with TMDb reads also served by the mock."""

import pytest
import pytest_asyncio

from movrelay.clients.posts import PostsClient
from movrelay.clients.tmdb import TMDbClient
from movrelay.core.config import Settings
from movrelay.core.exceptions import ConfigurationError, EmptyResultsError, UnexpectedStatusError
from movrelay.mock.stubs import CREATED_POST_ID, UPDATED_TITLE, json_stub
from movrelay.services.scenarios import ScenarioRunner
from tests.fixtures.tmdb_responses import tmdb_page


@pytest_asyncio.fixture
async def runner(fresh_mock_server):
    scenario_runner = ScenarioRunner(
        tmdb=TMDbClient(api_key="test-api-key", base_url=fresh_mock_server.base_url),
        posts=PostsClient(fresh_mock_server.base_url),
    )
    yield scenario_runner
    await scenario_runner.close()


@pytest.mark.asyncio
async def test_fetch_and_round_trip(runner, fresh_mock_server) -> None:
    """now playing -> POST -> PATCH -> DELETE yields 200/201/200/200."""
    report = await runner.fetch_and_round_trip()

    assert report.status_codes == [200, 201, 200, 200]
    assert report.movie.title == "Zootopia 2"
    assert report.post_id == CREATED_POST_ID
    assert report.updated_title == UPDATED_TITLE

    methods = [(r.method, r.path) for r in fresh_mock_server.requests]
    assert methods == [
        ("GET", "/3/movie/now_playing"),
        ("POST", "/posts"),
        ("PATCH", f"/posts/{CREATED_POST_ID}"),
        ("DELETE", f"/posts/{CREATED_POST_ID}"),
    ]
    assert "api_key=test-api-key" in fresh_mock_server.requests[0].query

    posted = fresh_mock_server.find_requests("POST", "/posts")[0].json_body()
    patched = fresh_mock_server.find_requests("PATCH")[0].json_body()
    assert posted["title"] == "Zootopia 2"
    assert patched["title"] == "Zootopia 2 - updated"
    assert patched["id"] == posted["id"] == 1084242


@pytest.mark.asyncio
async def test_search_and_post(runner, fresh_mock_server) -> None:
    """search 'matrix' -> POST yields 201 and a positive id."""
    report = await runner.search_and_post("matrix")

    assert report.status_codes == [200, 201]
    assert report.movie.title == "The Matrix"
    assert report.post_id > 0

    search = fresh_mock_server.find_requests("GET", "/3/search/movie")[0]
    assert "query=matrix" in search.query


@pytest.mark.asyncio
async def test_empty_now_playing_aborts_before_writes(runner, fresh_mock_server) -> None:
    fresh_mock_server.stub_for(json_stub("GET", tmdb_page([]), path_pattern=r"/3/movie/now_playing"))

    with pytest.raises(EmptyResultsError):
        await runner.fetch_and_round_trip()

    assert fresh_mock_server.find_requests("POST") == []


@pytest.mark.asyncio
async def test_unexpected_post_status_aborts(runner, fresh_mock_server) -> None:
    fresh_mock_server.stub_for(json_stub("POST", {"error": "boom"}, status=500, url="/posts"))

    with pytest.raises(UnexpectedStatusError) as exc_info:
        await runner.fetch_and_round_trip()

    assert exc_info.value.status_code == 500
    assert fresh_mock_server.find_requests("PATCH") == []


def test_from_settings_requires_api_key() -> None:
    settings = Settings(_env_file=None, tmdb_api_key=None)

    with pytest.raises(ConfigurationError):
        ScenarioRunner.from_settings(settings, posts_base_url="http://127.0.0.1:1")


def test_from_settings_builds_clients() -> None:
    settings = Settings(_env_file=None, tmdb_api_key="k", tmdb_language="fr-FR", http_timeout=5)

    runner = ScenarioRunner.from_settings(settings, posts_base_url="http://127.0.0.1:1/")

    assert runner.tmdb.api_key == "k"
    assert runner.tmdb.language == "fr-FR"
    assert runner.posts.base_url == "http://127.0.0.1:1"
    assert runner.posts.timeout == 5
