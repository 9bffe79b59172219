"""Write client for a JSONPlaceholder-style ``/posts`` resource."""

from typing import Any, TypeVar

from loguru import logger
from pydantic import BaseModel, ValidationError

from movrelay.clients.base import BaseClient
from movrelay.core.exceptions import ValidationFailure
from movrelay.models.movie import Movie
from movrelay.models.post import CreatedPost, UpdatedPost
from movrelay.validation import (
    assert_status_code,
    assert_status_in,
    require_field,
    require_positive_id,
    response_json,
)

ReplyT = TypeVar("ReplyT", bound=BaseModel)


def _parse_reply(model: type[ReplyT], data: Any, context: str) -> ReplyT:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ValidationFailure(f"{context}: unexpected response body: {e}") from e


class PostsClient(BaseClient):
    """Create, patch and delete posts carrying movie JSON."""

    POSTS_PATH = "/posts"
    DELETE_OK = (200, 204)

    def __init__(self, base_url: str, timeout: float = BaseClient.DEFAULT_TIMEOUT):
        """
        Initialize posts client.

        Args:
            base_url: Server root, e.g. the mock server's base URL
            timeout: Request timeout in seconds
        """
        super().__init__(base_url=base_url, timeout=timeout)

    def _post_path(self, post_id: int) -> str:
        return f"{self.POSTS_PATH}/{post_id}"

    async def create_post(self, movie: Movie) -> CreatedPost:
        """POST the movie; expects 201 and a positive id."""
        response = await self.post(self.POSTS_PATH, json=movie.to_payload())
        assert_status_code(response, 201, "POST to mocked JSONPlaceholder should return 201")

        data = response_json(response)
        post_id = require_positive_id(
            require_field(data, "id"),
            "Mocked JSONPlaceholder should return an id for the created resource",
        )
        created = _parse_reply(CreatedPost, data, f"POST {self.POSTS_PATH}")
        logger.info(f"[Posts] Created post {post_id} from [tmdb:{movie.tmdb_id}] {movie.title}")
        return created

    async def update_post(self, post_id: int, movie: Movie) -> UpdatedPost:
        """PATCH the post with the movie; expects 200 and a title field."""
        path = self._post_path(post_id)
        response = await self.patch(path, json=movie.to_payload())
        assert_status_code(response, 200, "PATCH should return 200 on mocked JSONPlaceholder")

        data = response_json(response)
        require_field(data, "title")
        updated = _parse_reply(UpdatedPost, data, f"PATCH {path}")
        logger.info(f"[Posts] Updated post {post_id}: title={updated.title!r}")
        return updated

    async def delete_post(self, post_id: int) -> int:
        """DELETE the post; expects 200 or 204. Returns the status code."""
        response = await self.delete(self._post_path(post_id))
        assert_status_in(response, self.DELETE_OK, "DELETE should return 200 or 204")

        logger.info(f"[Posts] Deleted post {post_id} ({response.status_code})")
        return response.status_code
