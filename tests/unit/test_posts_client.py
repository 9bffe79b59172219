"""Unit tests for the posts write client."""

from unittest.mock import AsyncMock

import httpx
import pytest

from movrelay.clients.posts import PostsClient
from movrelay.core.exceptions import MissingFieldError, UnexpectedStatusError, ValidationFailure
from movrelay.mock.stubs import CREATED_POST_ID, UPDATED_TITLE
from movrelay.models.movie import Movie


@pytest.fixture
def movie() -> Movie:
    return Movie(title="The Matrix", tmdb_id=603, year=1999, overview="Neo wakes up.")


@pytest.mark.asyncio
async def test_create_post_returns_stubbed_id(mock_server, movie) -> None:
    """POST /posts yields 201 and the fixed id."""
    async with PostsClient(mock_server.base_url) as client:
        created = await client.create_post(movie)

    assert created.id == CREATED_POST_ID


@pytest.mark.asyncio
async def test_create_post_sends_movie_json(mock_server, movie) -> None:
    """The request body is the movie in TMDb JSON shape."""
    before = len(mock_server.find_requests("POST", "/posts"))

    async with PostsClient(mock_server.base_url) as client:
        await client.create_post(movie)

    sent = mock_server.find_requests("POST", "/posts")[before:]
    assert len(sent) == 1
    body = sent[0].json_body()
    assert body["id"] == 603
    assert body["title"] == "The Matrix"
    assert "tmdb_id" not in body


@pytest.mark.asyncio
async def test_update_post_returns_title(mock_server, movie) -> None:
    """PATCH /posts/{id} yields 200 and a title field."""
    async with PostsClient(mock_server.base_url) as client:
        updated = await client.update_post(CREATED_POST_ID, movie.append_to_title(" - updated"))

    assert updated.title == UPDATED_TITLE
    sent = mock_server.find_requests("PATCH", f"/posts/{CREATED_POST_ID}")
    assert sent[-1].json_body()["title"] == "The Matrix - updated"


@pytest.mark.asyncio
async def test_delete_post_returns_200(mock_server) -> None:
    async with PostsClient(mock_server.base_url) as client:
        status = await client.delete_post(CREATED_POST_ID)

    assert status == 200


@pytest.mark.asyncio
async def test_delete_post_accepts_204() -> None:
    client = PostsClient("http://posts.invalid")
    client.delete = AsyncMock(return_value=httpx.Response(204))

    assert await client.delete_post(1) == 204


@pytest.mark.asyncio
async def test_delete_post_rejects_404() -> None:
    client = PostsClient("http://posts.invalid")
    client.delete = AsyncMock(return_value=httpx.Response(404))

    with pytest.raises(UnexpectedStatusError, match="200 or 204"):
        await client.delete_post(1)


@pytest.mark.asyncio
async def test_create_post_rejects_200(movie) -> None:
    """Only 201 counts as created."""
    client = PostsClient("http://posts.invalid")
    client.post = AsyncMock(return_value=httpx.Response(200, json={"id": 1}))

    with pytest.raises(UnexpectedStatusError, match="should return 201"):
        await client.create_post(movie)


@pytest.mark.asyncio
async def test_create_post_rejects_non_positive_id(movie) -> None:
    client = PostsClient("http://posts.invalid")
    client.post = AsyncMock(return_value=httpx.Response(201, json={"id": 0}))

    with pytest.raises(ValidationFailure, match="should return an id"):
        await client.create_post(movie)


@pytest.mark.asyncio
async def test_update_post_requires_title(movie) -> None:
    client = PostsClient("http://posts.invalid")
    client.patch = AsyncMock(return_value=httpx.Response(200, json={"title": None}))

    with pytest.raises(MissingFieldError):
        await client.update_post(1, movie)


@pytest.mark.asyncio
async def test_update_post_rejects_non_json_body(movie) -> None:
    client = PostsClient("http://posts.invalid")
    client.patch = AsyncMock(return_value=httpx.Response(200, content=b"<html></html>"))

    with pytest.raises(ValidationFailure, match="not JSON"):
        await client.update_post(1, movie)


@pytest.mark.asyncio
async def test_update_post_reads_numeric_title_as_text(movie) -> None:
    client = PostsClient("http://posts.invalid")
    client.patch = AsyncMock(return_value=httpx.Response(200, json={"title": 123}))

    updated = await client.update_post(1, movie)

    assert updated.title == "123"


@pytest.mark.asyncio
async def test_update_post_rejects_structured_title(movie) -> None:
    """A title that is not text stays inside the error hierarchy."""
    client = PostsClient("http://posts.invalid")
    client.patch = AsyncMock(return_value=httpx.Response(200, json={"title": {"text": "x"}}))

    with pytest.raises(ValidationFailure, match="PATCH /posts/1"):
        await client.update_post(1, movie)
